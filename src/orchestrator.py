"""
Main Orchestrator for Budget Planner

This module ties together all the components and defines the
end-to-end budget flow:
profile → validate → allocate → assess health → save

DESIGN DECISION: The orchestrator enforces the boundaries:
- No budget is generated from a profile that failed validation
- The allocation engine stays pure; persistence happens here
- Every step is audited

This is the "glue" that ensures the system works correctly
even when individual components might behave unexpectedly.
"""

import logging
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

import structlog

from src.audit import AuditLogger, create_correlation_id
from src.budget import (
    InvalidWeightsError,
    allocate_profile,
    apply_customization,
    assess_budget_health,
)
from src.config import get_settings
from src.models.budget import BudgetRecord
from src.models.validation import ValidationResult
from src.services.storage import (
    BudgetStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsBudgetStorage,
    GoogleSheetsClient,
    NotFoundError,
    StorageError,
)
from src.validation import ProfileValidator


logger = structlog.get_logger(__name__)


class BudgetFlow:
    """
    Orchestrates budget generation and maintenance for one user at a time.
    
    Flow:
    1. Validate → Two-stage profile validation
    2. Allocate → Deterministic per-category split of the budget income
    3. Assess → Health score, grade and issues
    4. Save → Persist (one budget per user, overwritten on regenerate)
    
    Storage is optional. Without it budgets are generated but not kept.
    """
    
    def __init__(
        self,
        validator: Optional[ProfileValidator] = None,
        budget_storage: Optional[BudgetStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        base_percentages: Optional[dict[str, float]] = None,
    ):
        self._validator = validator or ProfileValidator()
        self._budget_storage = budget_storage
        self._audit_logger = audit_logger
        if base_percentages is None:
            base_percentages = get_settings().budget.base_percentages
        self._base_percentages = base_percentages
    
    async def _save(self, record: BudgetRecord, correlation_id: UUID) -> None:
        """Persist a record and audit the outcome."""
        if not self._budget_storage:
            return
        
        try:
            await self._budget_storage.save_budget(record)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation="save_budget",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise
        
        if self._audit_logger:
            await self._audit_logger.log_budget_saved(
                budget_id=record.allocation.budget_id,
                user_id=record.user_id,
                correlation_id=correlation_id,
            )
    
    async def generate_budget(
        self,
        user_id: str,
        profile_data: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[BudgetRecord], ValidationResult, str]:
        """
        Validate a profile and generate (and save) its budget.
        
        Returns:
            (record, validation_result, user_message)
        
        record is None when the profile failed validation; nothing is
        allocated or saved in that case.
        
        Raises:
            InvalidWeightsError: If the configured base percentages are unusable
            StorageError: If the budget could not be saved
        """
        # Stored records strip the user ID, so every lookup does too
        user_id = user_id.strip()
        correlation_id = correlation_id or create_correlation_id()
        
        result = self._validator.validate(profile_data)
        message = self._validator.get_user_friendly_summary(result)
        
        if not result.can_generate:
            if self._audit_logger:
                issues = [
                    {"field": i.field, "type": i.issue_type, "message": i.message}
                    for i in result.issues
                    if i.severity == "error"
                ]
                stage = "schema" if not result.schema_valid else "semantic"
                await self._audit_logger.log_profile_validation_failed(
                    validation_id=result.validation_id,
                    user_id=user_id,
                    stage=stage,
                    issues=issues,
                    correlation_id=correlation_id,
                )
            return None, result, message
        
        if self._audit_logger:
            await self._audit_logger.log_profile_validated(
                validation_id=result.validation_id,
                user_id=user_id,
                warning_count=len(result.warnings),
                correlation_id=correlation_id,
            )
        
        try:
            allocation = allocate_profile(result.profile, self._base_percentages)
        except InvalidWeightsError as e:
            if self._audit_logger:
                await self._audit_logger.log_configuration_error(
                    error_message=str(e),
                    details={"base_percentages": self._base_percentages},
                    correlation_id=correlation_id,
                )
            raise
        
        record = BudgetRecord(
            user_id=user_id,
            profile=result.profile,
            allocation=allocation,
            health=assess_budget_health(allocation),
        )
        
        if self._audit_logger:
            await self._audit_logger.log_budget_generated(
                budget_id=allocation.budget_id,
                user_id=record.user_id,
                total_budget=allocation.total_budget,
                savings_percentage=allocation.savings_percentage,
                metadata=allocation.metadata,
                correlation_id=correlation_id,
            )
        
        await self._save(record, correlation_id)
        
        return record, result, message
    
    async def get_budget(
        self,
        user_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[BudgetRecord]:
        """
        Load a user's stored budget.
        
        Returns None if the user has no budget or storage isn't configured.
        """
        user_id = user_id.strip()
        
        if not self._budget_storage:
            return None
        
        correlation_id = correlation_id or create_correlation_id()
        
        try:
            record = await self._budget_storage.get_budget(user_id)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation="get_budget",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise
        
        if record and self._audit_logger:
            await self._audit_logger.log_budget_loaded(
                budget_id=record.allocation.budget_id,
                user_id=user_id,
                correlation_id=correlation_id,
            )
        
        return record
    
    async def customize_budget(
        self,
        user_id: str,
        overrides: dict[str, float],
        correlation_id: Optional[UUID] = None,
    ) -> BudgetRecord:
        """
        Apply user-chosen category amounts to a stored budget.
        
        The budget's health is reassessed against the new amounts.
        
        Raises:
            NotFoundError: If the user has no stored budget
            BudgetCustomizationError: If the overrides are invalid
        """
        user_id = user_id.strip()
        correlation_id = correlation_id or create_correlation_id()
        
        record = await self.get_budget(user_id, correlation_id)
        if record is None:
            raise NotFoundError(f"No budget found for user {user_id}")
        
        allocation = apply_customization(record.allocation, overrides)
        updated = record.model_copy(update={
            "allocation": allocation,
            "health": assess_budget_health(allocation),
            "updated_at": datetime.utcnow(),
        })
        
        if self._audit_logger:
            await self._audit_logger.log_budget_customized(
                budget_id=allocation.budget_id,
                user_id=user_id,
                overrides={
                    name.strip(): allocation.categories[name.strip()].amount
                    for name in overrides
                },
                is_overallocated=allocation.is_overallocated,
                correlation_id=correlation_id,
            )
        
        await self._save(updated, correlation_id)
        
        return updated
    
    async def delete_budget(
        self,
        user_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Delete a user's stored budget.
        
        Returns:
            True if a budget was deleted
        """
        user_id = user_id.strip()
        
        if not self._budget_storage:
            return False
        
        correlation_id = correlation_id or create_correlation_id()
        
        try:
            deleted = await self._budget_storage.delete_budget(user_id)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation="delete_budget",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise
        
        if deleted and self._audit_logger:
            await self._audit_logger.log_budget_deleted(
                user_id=user_id,
                correlation_id=correlation_id,
            )
        
        return deleted


def create_app_components(
    use_storage: bool = True,
) -> tuple[BudgetFlow, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.
    
    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False for testing without storage.
    
    Returns:
        (budget_flow, sheets_client)
    """
    logging.basicConfig(
        level=get_settings().app.log_level,
        format="%(message)s",
    )
    
    sheets_client = None
    budget_storage = None
    audit_logger = None
    
    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            budget_storage = GoogleSheetsBudgetStorage(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            budget_storage = None
            audit_logger = AuditLogger()  # Local-only logging
    else:
        audit_logger = AuditLogger()  # Local-only logging
    
    budget_flow = BudgetFlow(
        budget_storage=budget_storage,
        audit_logger=audit_logger,
    )
    
    return budget_flow, sheets_client
