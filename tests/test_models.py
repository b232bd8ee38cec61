"""
Tests for Budget Planner

Test strategy:
1. Unit tests for individual components (models, engine, validator)
2. Integration tests for flows (with in-memory storage)
3. No real API calls in tests (use mocks)
"""

import pytest
from uuid import uuid4

from src.budget.tables import DEFAULT_CATEGORY_WEIGHTS
from src.models.budget import (
    MAX_RUPEE_AMOUNT,
    BudgetAllocation,
    BudgetCategory,
    BudgetHealth,
    BudgetProfile,
    BudgetRecord,
    CategoryAllocation,
    IncomeFrequency,
    IncomeSource,
    round_rupees,
)
from src.models.validation import ValidationIssue, ValidationResult
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


def make_allocation(total: float = 10000) -> BudgetAllocation:
    return BudgetAllocation(
        categories={
            "food_dining": CategoryAllocation(
                category="food_dining", amount=4000, percentage=0.4
            ),
            "savings": CategoryAllocation(
                category="savings", amount=6000, percentage=0.6
            ),
        },
        total_budget=total,
        total_allocated=10000,
        savings_amount=6000,
        savings_percentage=0.6,
    )


class TestRounding:
    """Tests for whole-rupee rounding."""
    
    def test_rounds_half_up(self):
        """Test that exact halves round up, not to even."""
        assert round_rupees(2.5) == 3
        assert round_rupees(500.5) == 501
    
    def test_rounds_down_below_half(self):
        """Test that values below .5 round down."""
        assert round_rupees(0.49) == 0
        assert round_rupees(1234.4) == 1234


class TestProfileModels:
    """Tests for profile-related Pydantic models."""
    
    def test_profile_creation(self):
        """Test BudgetProfile model creation."""
        profile = BudgetProfile(
            monthly_income=50000,
            city="Mumbai",
            family_size=2,
            age=30,
        )
        assert profile.monthly_income == 50000
        assert profile.income_sources == []
    
    def test_profile_strips_whitespace(self):
        """Test that whitespace is stripped from the city."""
        profile = BudgetProfile(
            monthly_income=50000, city="  Pune  ", family_size=1, age=30
        )
        assert profile.city == "Pune"
    
    def test_profile_rejects_zero_income(self):
        """Test that income must be positive."""
        with pytest.raises(ValueError):
            BudgetProfile(monthly_income=0, family_size=1, age=30)
    
    def test_profile_family_size_bounds(self):
        """Test family size must be between 1 and 20."""
        with pytest.raises(ValueError):
            BudgetProfile(monthly_income=50000, family_size=0, age=30)
        with pytest.raises(ValueError):
            BudgetProfile(monthly_income=50000, family_size=21, age=30)
    
    def test_profile_age_bounds(self):
        """Test age must be between 18 and 100."""
        with pytest.raises(ValueError):
            BudgetProfile(monthly_income=50000, family_size=1, age=17)
        with pytest.raises(ValueError):
            BudgetProfile(monthly_income=50000, family_size=1, age=101)
    
    @pytest.mark.parametrize("income", [float("inf"), float("nan"), "inf", "Infinity"])
    def test_profile_rejects_non_finite_income(self, income):
        """Test infinite and NaN incomes never reach the engine."""
        with pytest.raises(ValueError):
            BudgetProfile(monthly_income=income, family_size=1, age=30)
    
    def test_profile_rejects_absurd_income(self):
        """Test incomes above the sanity cap are rejected."""
        with pytest.raises(ValueError):
            BudgetProfile(monthly_income=MAX_RUPEE_AMOUNT * 10, family_size=1, age=30)
    
    @pytest.mark.parametrize("amount", [float("inf"), "inf", float("nan")])
    def test_income_source_rejects_non_finite_amount(self, amount):
        """Test income source amounts must be finite."""
        with pytest.raises(ValueError):
            IncomeSource(name="Salary", amount=amount)
    
    def test_income_stability(self):
        """Test stable income and its share of the included income."""
        profile = BudgetProfile(
            monthly_income=60000,
            family_size=1,
            age=30,
            income_sources=[
                IncomeSource(name="Salary", amount=45000),
                IncomeSource(name="Freelance", amount=15000, is_stable=False),
                IncomeSource(name="Rent", amount=8000, include_in_budget=False),
            ],
        )
        assert profile.stable_sources_total == 45000
        assert profile.income_stability_ratio == pytest.approx(0.75)
    
    def test_income_stability_without_sources(self):
        """Test a profile with no sources counts its income as stable."""
        profile = BudgetProfile(monthly_income=40000, family_size=1, age=30)
        assert profile.stable_sources_total == 40000
        assert profile.income_stability_ratio == 1.0
    
    def test_income_source_monthly_amount(self):
        """Test payouts are normalized to monthly amounts."""
        weekly = IncomeSource(
            name="Freelance", amount=1000, frequency=IncomeFrequency.WEEKLY
        )
        annual = IncomeSource(
            name="Bonus", amount=120000, frequency=IncomeFrequency.ANNUALLY
        )
        assert weekly.monthly_amount == 4330
        assert annual.monthly_amount == 9960
    
    def test_income_source_frequency_from_string(self):
        """Test frequencies parse from their string values."""
        source = IncomeSource(name="Salary", amount=1000, frequency="bi-weekly")
        assert source.frequency == IncomeFrequency.BI_WEEKLY
        assert source.monthly_amount == 2170
    
    def test_budget_income_prefers_included_sources(self):
        """Test included income sources override the declared income."""
        profile = BudgetProfile(
            monthly_income=50000,
            family_size=1,
            age=30,
            income_sources=[
                IncomeSource(name="Salary", amount=60000),
                IncomeSource(name="Rent", amount=10000, include_in_budget=False),
            ],
        )
        assert profile.included_sources_total == 60000
        assert profile.budget_income == 60000
    
    def test_budget_income_falls_back_to_declared(self):
        """Test declared income is used when no source is included."""
        profile = BudgetProfile(
            monthly_income=50000,
            family_size=1,
            age=30,
            income_sources=[
                IncomeSource(name="Rent", amount=10000, include_in_budget=False),
            ],
        )
        assert profile.budget_income == 50000


class TestAllocationModels:
    """Tests for allocation-related Pydantic models."""
    
    def test_category_allocation_rejects_negative_amount(self):
        """Test that category amounts cannot be negative."""
        with pytest.raises(ValueError):
            CategoryAllocation(category="food_dining", amount=-1, percentage=0.1)
    
    def test_percentage_of(self):
        """Test category shares on a 0-100 scale."""
        allocation = make_allocation()
        assert allocation.percentage_of("savings") == pytest.approx(60)
        assert allocation.percentage_of("shopping") == 0.0
    
    def test_overallocation(self):
        """Test allocations above the budget are flagged."""
        assert make_allocation(total=10000).is_overallocated is False
        assert make_allocation(total=9000).is_overallocated is True
        assert make_allocation(total=9000).unallocated == -1000
    
    def test_health_grade_pattern(self):
        """Test that only known grades are accepted."""
        health = BudgetHealth(score=95, grade="A+", status="Healthy")
        assert health.grade == "A+"
        with pytest.raises(ValueError):
            BudgetHealth(score=10, grade="D", status="Concerning")
    
    def test_record_rejects_tab_in_user_id(self):
        """Test user IDs cannot contain tabs or newlines."""
        with pytest.raises(ValueError, match="tabs or newlines"):
            BudgetRecord(
                user_id="user\t1",
                profile=BudgetProfile(monthly_income=10000, family_size=1, age=30),
                allocation=make_allocation(),
                health=BudgetHealth(score=100, grade="A+", status="Healthy"),
            )
    
    def test_category_weights_are_frozen(self):
        """Test the default weight table cannot be mutated."""
        with pytest.raises(ValueError):
            DEFAULT_CATEGORY_WEIGHTS["savings"].base_percentage = 0.5


class TestAuditModels:
    """Tests for audit-related models."""
    
    def test_audit_event_creation(self):
        """Test AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.BUDGET_GENERATED,
            description="Test event",
        )
        assert event.event_type == AuditEventType.BUDGET_GENERATED
        assert event.severity == AuditSeverity.INFO
    
    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.BUDGET_SAVED,
            description="Budget saved",
            details={"user_id": "user-1"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "budget_saved"
        assert log_dict["details"]["user_id"] == "user-1"
    
    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.BUDGET_CUSTOMIZED,
            description="User customized",
            is_user_action=True,
        )
        row = event.to_sheets_row()
        assert len(row) == 11  # Expected number of columns
        assert row[2] == "budget_customized"  # event_type
        assert row[10] == "True"  # is_user_action
    
    def test_audit_event_builder_budget_generated(self):
        """Test AuditEventBuilder for budget generation."""
        budget_id = uuid4()
        correlation_id = uuid4()
        event = AuditEventBuilder.budget_generated(
            budget_id=budget_id,
            user_id="user-1",
            total_budget=50000,
            savings_percentage=0.2,
            metadata={"city_table": "Mumbai"},
            correlation_id=correlation_id,
        )
        assert event.event_type == AuditEventType.BUDGET_GENERATED
        assert event.entity_id == budget_id
        assert event.correlation_id == correlation_id
        assert event.details["city_table"] == "Mumbai"
        assert event.is_user_action is True
    
    def test_audit_event_builder_overallocated_customization_warns(self):
        """Test customizations that overspend are logged as warnings."""
        event = AuditEventBuilder.budget_customized(
            budget_id=uuid4(),
            user_id="user-1",
            overrides={"food_dining": 90000},
            is_overallocated=True,
            correlation_id=uuid4(),
        )
        assert event.severity == AuditSeverity.WARNING
    
    def test_audit_event_builder_configuration_error_is_critical(self):
        """Test configuration errors are critical."""
        event = AuditEventBuilder.configuration_error(
            error_message="Effective weights sum to 0",
        )
        assert event.event_type == AuditEventType.CONFIGURATION_ERROR
        assert event.severity == AuditSeverity.CRITICAL
        assert event.error_message == "Effective weights sum to 0"


class TestValidationResult:
    """Tests for ValidationResult model."""
    
    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            schema_valid=False,
            semantic_valid=False,
            is_valid=False,
            can_generate=False,
            issues=[
                ValidationIssue(
                    field="monthly_income",
                    issue_type="missing",
                    message="Monthly income is required",
                    severity="error",
                )
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1
    
    def test_validation_result_warnings_only(self):
        """Test result with only warnings."""
        result = ValidationResult(
            schema_valid=True,
            semantic_valid=True,
            is_valid=True,
            can_generate=True,
            issues=[
                ValidationIssue(
                    field="monthly_income",
                    issue_type="suspicious_value",
                    message="Income seems low",
                    severity="warning",
                )
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0


class TestBudgetCategories:
    """Tests for budget category enum."""
    
    def test_all_categories_have_weights(self):
        """Test every default category has a base weight."""
        for category in BudgetCategory:
            assert category.value in DEFAULT_CATEGORY_WEIGHTS
    
    def test_default_weights_sum_to_one(self):
        """Test the default base percentages add up to 100%."""
        total = sum(w.base_percentage for w in DEFAULT_CATEGORY_WEIGHTS.values())
        assert total == pytest.approx(1.0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
