"""
Audit Logger

DESIGN DECISION: Every significant action on a budget is logged.
This provides:
1. Complete traceability
2. Debugging capability
3. User can see the history of their budget

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from src.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from src.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.
    
    Logs events both to:
    1. Structured local log (for debugging)
    2. Google Sheets (for persistence and user visibility)
    """
    
    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.
        
        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger()
    
    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.
        
        Always logs locally. Persists to storage if available.
        
        Returns True if storage write succeeded (or no storage configured).
        """
        # Always log locally
        log_dict = event.to_log_dict()
        
        if event.severity == AuditSeverity.CRITICAL:
            self._logger.critical("audit_event", **log_dict)
        elif event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)
        
        # Persist to storage if available
        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False
        
        return True
    
    async def log_profile_validated(
        self,
        validation_id: UUID,
        user_id: str,
        warning_count: int,
        correlation_id: UUID,
    ) -> None:
        """Log a profile that passed validation."""
        event = AuditEventBuilder.profile_validated(
            validation_id=validation_id,
            user_id=user_id,
            warning_count=warning_count,
            correlation_id=correlation_id,
        )
        await self.log(event)
    
    async def log_profile_validation_failed(
        self,
        validation_id: UUID,
        user_id: str,
        stage: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log validation failure."""
        event = AuditEventBuilder.profile_validation_failed(
            validation_id=validation_id,
            user_id=user_id,
            stage=stage,
            issues=issues,
            correlation_id=correlation_id,
        )
        await self.log(event)
    
    async def log_budget_generated(
        self,
        budget_id: UUID,
        user_id: str,
        total_budget: float,
        savings_percentage: float,
        metadata: dict,
        correlation_id: UUID,
    ) -> None:
        """Log budget generation."""
        event = AuditEventBuilder.budget_generated(
            budget_id=budget_id,
            user_id=user_id,
            total_budget=total_budget,
            savings_percentage=savings_percentage,
            metadata=metadata,
            correlation_id=correlation_id,
        )
        await self.log(event)
    
    async def log_budget_customized(
        self,
        budget_id: UUID,
        user_id: str,
        overrides: dict[str, int],
        is_overallocated: bool,
        correlation_id: UUID,
    ) -> None:
        """Log user customization of category amounts."""
        event = AuditEventBuilder.budget_customized(
            budget_id=budget_id,
            user_id=user_id,
            overrides=overrides,
            is_overallocated=is_overallocated,
            correlation_id=correlation_id,
        )
        await self.log(event)
    
    async def log_budget_saved(
        self,
        budget_id: UUID,
        user_id: str,
        correlation_id: UUID,
    ) -> None:
        """Log budget save."""
        event = AuditEventBuilder.budget_saved(
            budget_id=budget_id,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        await self.log(event)
    
    async def log_budget_loaded(
        self,
        budget_id: UUID,
        user_id: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.budget_loaded(
            budget_id=budget_id,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        await self.log(event)
    
    async def log_budget_deleted(
        self,
        user_id: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.budget_deleted(
            user_id=user_id,
            correlation_id=correlation_id,
        )
        await self.log(event)
    
    async def log_configuration_error(
        self,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a broken category weight configuration."""
        event = AuditEventBuilder.configuration_error(
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)
    
    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log storage backend error."""
        event = AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)
    
    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.
    
    Use this at the start of a new user action (e.g., budget generation).
    Pass it through all subsequent operations.
    """
    return uuid4()
