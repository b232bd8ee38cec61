"""
Integration tests for the budget flow.

Storage is replaced with in-memory implementations of the storage
interfaces; nothing talks to Google Sheets.
"""

import asyncio
from typing import Optional
from uuid import UUID, uuid4

import pytest

from src.audit import AuditLogger
from src.budget import BudgetCustomizationError, InvalidWeightsError
from src.models.audit import AuditEvent, AuditEventType
from src.models.budget import BudgetRecord
from src.orchestrator import BudgetFlow, create_app_components
from src.services.storage import (
    AuditStorageInterface,
    BudgetStorageInterface,
    NotFoundError,
    StorageError,
)
from src.validation import ProfileValidator


class InMemoryBudgetStorage(BudgetStorageInterface):
    def __init__(self):
        self.records: dict[str, BudgetRecord] = {}
    
    async def save_budget(self, record: BudgetRecord) -> bool:
        self.records[record.user_id] = record
        return True
    
    async def get_budget(self, user_id: str) -> Optional[BudgetRecord]:
        return self.records.get(user_id)
    
    async def delete_budget(self, user_id: str) -> bool:
        return self.records.pop(user_id, None) is not None
    
    async def list_budgets(self, city=None, limit=100, offset=0) -> list[BudgetRecord]:
        records = sorted(self.records.values(), key=lambda r: r.updated_at, reverse=True)
        return records[offset:offset + limit]


class FailingBudgetStorage(InMemoryBudgetStorage):
    async def save_budget(self, record: BudgetRecord) -> bool:
        raise StorageError("Sheets quota exceeded")


class InMemoryAuditStorage(AuditStorageInterface):
    def __init__(self):
        self.events: list[AuditEvent] = []
    
    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True
    
    async def get_events_by_correlation_id(self, correlation_id: UUID) -> list[AuditEvent]:
        return [e for e in self.events if e.correlation_id == correlation_id]
    
    async def get_events_by_entity(self, entity_type: str, entity_id: UUID) -> list[AuditEvent]:
        return [
            e for e in self.events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
    
    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self.events))[:limit]


class BrokenAuditStorage(InMemoryAuditStorage):
    async def append_event(self, event: AuditEvent) -> bool:
        raise StorageError("Audit sheet unavailable")


PROFILE = {
    "monthly_income": 50000,
    "city": "Mumbai",
    "family_size": 1,
    "age": 28,
}


@pytest.fixture
def budget_storage():
    return InMemoryBudgetStorage()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def flow(budget_storage, audit_storage):
    return BudgetFlow(
        validator=ProfileValidator(),
        budget_storage=budget_storage,
        audit_logger=AuditLogger(audit_storage),
        base_percentages={
            "food_dining": 0.25,
            "home_utilities": 0.30,
            "transportation": 0.10,
            "entertainment": 0.08,
            "shopping": 0.05,
            "healthcare": 0.07,
            "savings": 0.15,
        },
    )


def event_types(audit_storage) -> list[AuditEventType]:
    return [e.event_type for e in audit_storage.events]


class TestGenerateBudget:
    """Tests for BudgetFlow.generate_budget."""
    
    def test_generates_and_saves(self, flow, budget_storage, audit_storage):
        """Test a valid profile produces a saved, assessed budget."""
        record, result, message = asyncio.run(flow.generate_budget("user-1", PROFILE))
        assert result.can_generate is True
        assert message.startswith("✅")
        assert record.user_id == "user-1"
        assert record.health.score == 100
        assert record.allocation.metadata["city_table"] == "Mumbai"
        assert budget_storage.records["user-1"] == record
        assert event_types(audit_storage) == [
            AuditEventType.PROFILE_VALIDATION_PASSED,
            AuditEventType.BUDGET_GENERATED,
            AuditEventType.BUDGET_SAVED,
        ]
    
    def test_events_share_correlation_id(self, flow, audit_storage):
        """Test one generation is traceable through one correlation ID."""
        correlation_id = uuid4()
        asyncio.run(flow.generate_budget("user-1", PROFILE, correlation_id))
        events = asyncio.run(audit_storage.get_events_by_correlation_id(correlation_id))
        assert len(events) == 3
    
    def test_invalid_profile_generates_nothing(self, flow, budget_storage, audit_storage):
        """Test a rejected profile is audited and not allocated."""
        record, result, message = asyncio.run(
            flow.generate_budget("user-1", {**PROFILE, "age": 12})
        )
        assert record is None
        assert result.can_generate is False
        assert "Please fix the issues above" in message
        assert budget_storage.records == {}
        assert event_types(audit_storage) == [AuditEventType.PROFILE_VALIDATION_FAILED]
        assert audit_storage.events[0].details["stage"] == "schema"
    
    def test_regenerate_overwrites(self, flow, budget_storage):
        """Test regenerating replaces the user's budget."""
        first, _, _ = asyncio.run(flow.generate_budget("user-1", PROFILE))
        second, _, _ = asyncio.run(
            flow.generate_budget("user-1", {**PROFILE, "family_size": 4})
        )
        assert len(budget_storage.records) == 1
        assert budget_storage.records["user-1"].allocation.budget_id == second.allocation.budget_id
        assert second.allocation.savings_percentage < first.allocation.savings_percentage
    
    def test_zero_weights_are_configuration_errors(self, budget_storage, audit_storage):
        """Test unusable weights are audited as configuration errors and raised."""
        flow = BudgetFlow(
            budget_storage=budget_storage,
            audit_logger=AuditLogger(audit_storage),
            base_percentages={"savings": 0.0, "food_dining": 0.0},
        )
        with pytest.raises(InvalidWeightsError):
            asyncio.run(flow.generate_budget("user-1", PROFILE))
        assert budget_storage.records == {}
        assert event_types(audit_storage)[-1] == AuditEventType.CONFIGURATION_ERROR
    
    def test_storage_failure_is_audited_and_raised(self, audit_storage):
        """Test save failures are logged and propagated."""
        flow = BudgetFlow(
            budget_storage=FailingBudgetStorage(),
            audit_logger=AuditLogger(audit_storage),
        )
        with pytest.raises(StorageError, match="quota"):
            asyncio.run(flow.generate_budget("user-1", PROFILE))
        assert event_types(audit_storage)[-1] == AuditEventType.STORAGE_ERROR
    
    def test_without_storage(self):
        """Test budgets can be generated with no storage or audit log."""
        flow = BudgetFlow()
        record, _, _ = asyncio.run(flow.generate_budget("user-1", PROFILE))
        assert record is not None
        assert asyncio.run(flow.get_budget("user-1")) is None
        assert asyncio.run(flow.delete_budget("user-1")) is False
    
    def test_audit_failure_does_not_break_flow(self, budget_storage):
        """Test a broken audit log never stops a budget from being saved."""
        flow = BudgetFlow(
            budget_storage=budget_storage,
            audit_logger=AuditLogger(BrokenAuditStorage()),
        )
        record, _, _ = asyncio.run(flow.generate_budget("user-1", PROFILE))
        assert budget_storage.records["user-1"] == record


class TestBudgetMaintenance:
    """Tests for loading, customizing and deleting budgets."""
    
    def test_get_budget(self, flow, audit_storage):
        """Test a saved budget can be loaded and the load is audited."""
        record, _, _ = asyncio.run(flow.generate_budget("user-1", PROFILE))
        loaded = asyncio.run(flow.get_budget("user-1"))
        assert loaded == record
        assert event_types(audit_storage)[-1] == AuditEventType.BUDGET_LOADED
    
    def test_get_missing_budget(self, flow, audit_storage):
        """Test loading an unknown user's budget returns None quietly."""
        assert asyncio.run(flow.get_budget("nobody")) is None
        assert audit_storage.events == []
    
    def test_customize_budget(self, flow, budget_storage, audit_storage):
        """Test customizing updates, reassesses and saves the budget."""
        record, _, _ = asyncio.run(flow.generate_budget("user-1", PROFILE))
        updated = asyncio.run(flow.customize_budget("user-1", {"savings": 2000}))
        
        assert updated.allocation.budget_id == record.allocation.budget_id
        assert updated.allocation.is_customized is True
        assert updated.allocation.savings_amount == 2000
        assert updated.health.score < record.health.score
        assert budget_storage.records["user-1"] == updated
        
        customized = [
            e for e in audit_storage.events
            if e.event_type == AuditEventType.BUDGET_CUSTOMIZED
        ]
        assert customized[0].details["overrides"] == {"savings": 2000}
    
    def test_customize_missing_budget(self, flow):
        """Test customizing requires an existing budget."""
        with pytest.raises(NotFoundError):
            asyncio.run(flow.customize_budget("nobody", {"savings": 2000}))
    
    def test_customize_rejects_invalid_amounts(self, flow, budget_storage):
        """Test invalid overrides leave the stored budget untouched."""
        record, _, _ = asyncio.run(flow.generate_budget("user-1", PROFILE))
        with pytest.raises(BudgetCustomizationError):
            asyncio.run(flow.customize_budget("user-1", {"savings": -5}))
        assert budget_storage.records["user-1"] == record
    
    def test_customize_rejects_nan(self, flow, budget_storage):
        """Test NaN overrides are rejected before anything is saved."""
        record, _, _ = asyncio.run(flow.generate_budget("user-1", PROFILE))
        with pytest.raises(BudgetCustomizationError, match="finite number"):
            asyncio.run(flow.customize_budget("user-1", {"savings": float("nan")}))
        assert budget_storage.records["user-1"] == record
    
    def test_customize_audits_trimmed_category_names(self, flow, audit_storage):
        """Test overrides are audited under the category they changed."""
        asyncio.run(flow.generate_budget("user-1", PROFILE))
        asyncio.run(flow.customize_budget("user-1", {" savings ": 2500}))
        customized = [
            e for e in audit_storage.events
            if e.event_type == AuditEventType.BUDGET_CUSTOMIZED
        ]
        assert customized[0].details["overrides"] == {"savings": 2500}
    
    def test_padded_user_id_round_trip(self, flow, budget_storage):
        """Test a padded user ID finds the budget saved under the trimmed one."""
        record, _, _ = asyncio.run(flow.generate_budget(" alice ", PROFILE))
        assert record.user_id == "alice"
        assert list(budget_storage.records) == ["alice"]
        
        assert asyncio.run(flow.get_budget(" alice ")) == record
        updated = asyncio.run(flow.customize_budget(" alice ", {"savings": 2000}))
        assert updated.allocation.savings_amount == 2000
        assert asyncio.run(flow.delete_budget(" alice ")) is True
        assert budget_storage.records == {}
    
    def test_delete_budget(self, flow, audit_storage):
        """Test deleting removes the budget and is audited."""
        asyncio.run(flow.generate_budget("user-1", PROFILE))
        assert asyncio.run(flow.delete_budget("user-1")) is True
        assert asyncio.run(flow.get_budget("user-1")) is None
        assert event_types(audit_storage)[-1] == AuditEventType.BUDGET_DELETED
        assert asyncio.run(flow.delete_budget("user-1")) is False


class TestCreateAppComponents:
    """Tests for the component factory."""
    
    def test_without_storage(self):
        """Test components can be built with local-only logging."""
        flow, sheets_client = create_app_components(use_storage=False)
        assert isinstance(flow, BudgetFlow)
        assert sheets_client is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
