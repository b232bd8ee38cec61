"""
Audit Models for Budget Planner

Every significant action in the system is logged for audit purposes.
This provides:
1. Traceability of every generated or customized budget
2. Debugging information when things go wrong
3. The ability to reconstruct how a stored budget came to be

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Validation
    PROFILE_VALIDATION_PASSED = "profile_validation_passed"
    PROFILE_VALIDATION_FAILED = "profile_validation_failed"
    
    # Budget lifecycle
    BUDGET_GENERATED = "budget_generated"
    BUDGET_CUSTOMIZED = "budget_customized"
    BUDGET_SAVED = "budget_saved"
    BUDGET_LOADED = "budget_loaded"
    BUDGET_DELETED = "budget_deleted"
    
    # Failures
    CONFIGURATION_ERROR = "configuration_error"
    STORAGE_ERROR = "storage_error"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.
    
    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """
    
    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )
    
    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )
    
    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'budget', 'profile')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )
    
    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all events in one generation)"
    )
    
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    
    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    
    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )
    
    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }
    
    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.
        
        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.
    
    Usage:
        event = AuditEventBuilder.budget_generated(budget_id, user_id, ...)
        event = AuditEventBuilder.budget_customized(budget_id, user_id, ...)
    """
    
    @staticmethod
    def profile_validated(
        validation_id: UUID,
        user_id: str,
        warning_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROFILE_VALIDATION_PASSED,
            entity_type="profile",
            entity_id=validation_id,
            correlation_id=correlation_id,
            description=f"Profile validated with {warning_count} warnings",
            details={
                "user_id": user_id,
                "warning_count": warning_count,
            },
        )
    
    @staticmethod
    def profile_validation_failed(
        validation_id: UUID,
        user_id: str,
        stage: str,
        issues: list[dict],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROFILE_VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="profile",
            entity_id=validation_id,
            correlation_id=correlation_id,
            description=f"{stage.capitalize()} validation failed with {len(issues)} issues",
            details={
                "user_id": user_id,
                "stage": stage,
                "issues": issues,
            },
            is_user_action=True,
        )
    
    @staticmethod
    def budget_generated(
        budget_id: UUID,
        user_id: str,
        total_budget: float,
        savings_percentage: float,
        metadata: dict,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_GENERATED,
            entity_type="budget",
            entity_id=budget_id,
            correlation_id=correlation_id,
            description=(
                f"Budget generated for ₹{total_budget:,.0f} "
                f"with {savings_percentage:.0%} savings"
            ),
            details={
                "user_id": user_id,
                "total_budget": total_budget,
                "savings_percentage": savings_percentage,
                **metadata,
            },
            is_user_action=True,
        )
    
    @staticmethod
    def budget_customized(
        budget_id: UUID,
        user_id: str,
        overrides: dict[str, int],
        is_overallocated: bool,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_CUSTOMIZED,
            severity=AuditSeverity.WARNING if is_overallocated else AuditSeverity.INFO,
            entity_type="budget",
            entity_id=budget_id,
            correlation_id=correlation_id,
            description=f"User customized {len(overrides)} categories",
            details={
                "user_id": user_id,
                "overrides": overrides,
                "is_overallocated": is_overallocated,
            },
            is_user_action=True,
        )
    
    @staticmethod
    def budget_saved(
        budget_id: UUID,
        user_id: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_SAVED,
            entity_type="budget",
            entity_id=budget_id,
            correlation_id=correlation_id,
            description=f"Budget saved for user {user_id}",
            details={
                "user_id": user_id,
            },
        )
    
    @staticmethod
    def budget_loaded(
        budget_id: UUID,
        user_id: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_LOADED,
            severity=AuditSeverity.DEBUG,
            entity_type="budget",
            entity_id=budget_id,
            correlation_id=correlation_id,
            description=f"Budget loaded for user {user_id}",
            details={
                "user_id": user_id,
            },
        )
    
    @staticmethod
    def budget_deleted(
        user_id: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_DELETED,
            entity_type="budget",
            correlation_id=correlation_id,
            description=f"Budget deleted for user {user_id}",
            details={
                "user_id": user_id,
            },
            is_user_action=True,
        )
    
    @staticmethod
    def configuration_error(
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONFIGURATION_ERROR,
            severity=AuditSeverity.CRITICAL,
            description="Budget configuration error",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
    
    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={
                "operation": operation,
            },
            correlation_id=correlation_id,
        )
    
    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
