"""
Abstract Storage Interfaces

DESIGN DECISION: Ledger data lives in a relational store reached through
SQLAlchemy sessions (see database.py). Two smaller concerns sit behind
abstract interfaces so they can be swapped without touching services:
1. The persisted "current account" selection (memory, JSON file, ...)
2. The audit trail (SQL table, or nothing at all)

Both are intentionally tiny. They are not a general repository layer.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from ledgerdash.models.audit import AuditEvent


class SelectionStoreInterface(ABC):
    """
    Persists the id of the currently selected account.

    The value must survive reloads of the presentation layer.
    """

    @abstractmethod
    def load(self) -> Optional[int]:
        """
        Return the saved account id, or None if nothing was saved.

        Unreadable storage is treated as "nothing saved".
        """
        pass

    @abstractmethod
    def save(self, account_id: int) -> None:
        """
        Save the selected account id.

        Raises:
            StorageError: If the selection cannot be written
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Forget the saved selection."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one overdue processing run).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: int,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Args:
            entity_type: Type of entity (e.g., 'transaction', 'credit_card')
            entity_id: The entity's ID

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
        account_id: Optional[int] = None,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events, optionally for one account.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
