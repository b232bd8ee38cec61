"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

The interface is intentionally simple - we're not building a full ORM.
One budget document per user, plus an append-only audit log.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from src.models.audit import AuditEvent
from src.models.budget import BudgetRecord


class BudgetStorageInterface(ABC):
    """
    Abstract interface for budget storage operations.
    
    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods.
    """
    
    @abstractmethod
    async def save_budget(self, record: BudgetRecord) -> bool:
        """
        Save a user's budget, replacing any budget they already have.
        
        Budgets are not versioned: regenerating or customizing
        overwrites the stored document.
        
        Args:
            record: The budget record to save
        
        Returns:
            True if saved successfully
        
        Raises:
            StorageError: If save fails
        """
        pass
    
    @abstractmethod
    async def get_budget(self, user_id: str) -> Optional[BudgetRecord]:
        """
        Retrieve a user's budget.
        
        Args:
            user_id: The user's identifier
        
        Returns:
            The budget record if found, None otherwise
        """
        pass
    
    @abstractmethod
    async def delete_budget(self, user_id: str) -> bool:
        """
        Delete a user's budget.
        
        Args:
            user_id: The user's identifier
        
        Returns:
            True if a budget was deleted
        """
        pass
    
    @abstractmethod
    async def list_budgets(
        self,
        city: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[BudgetRecord]:
        """
        List stored budgets, most recently updated first.
        
        Args:
            city: Filter by profile city (case-insensitive)
            limit: Maximum number of results
            offset: Number of results to skip
        
        Returns:
            List of matching budget records
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.
    
    Audit logs are append-only - we never delete or modify them.
    """
    
    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.
        
        Returns:
            True if logged successfully
        """
        pass
    
    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one budget generation).
        
        Returns:
            List of related events in chronological order
        """
        pass
    
    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.
        
        Args:
            entity_type: Type of entity (e.g., 'budget', 'profile')
            entity_id: The entity's ID
        
        Returns:
            List of events in chronological order
        """
        pass
    
    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.
        
        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """More than one row claims the same key."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
