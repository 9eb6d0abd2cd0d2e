"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep the ledger and the orchestrator decoupled from storage

The interface is intentionally simple - we're not building a full ORM.
Concurrent edits to the same row are last-write-wins.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from loonie.models.audit import AuditEvent
from loonie.models.group import Expense, Group, Member


class GroupStorageInterface(ABC):
    """
    Abstract interface for group, member and expense storage.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def create_group(self, group: Group) -> Group:
        """
        Save a new group.

        Raises:
            DuplicateError: If a group with this id exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_group(self, group_id: UUID) -> Optional[Group]:
        """
        Retrieve a group by its ID.

        Returns:
            The group if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_members(self, group_id: UUID) -> list[Member]:
        """
        List a group's members, oldest first.

        Returns:
            Members ordered by created_at ascending
        """
        pass

    @abstractmethod
    async def add_member(self, member: Member) -> Member:
        """
        Add a member to an existing group.

        Raises:
            NotFoundError: If the group doesn't exist
            DuplicateError: If a member with this id exists
        """
        pass

    @abstractmethod
    async def update_member(self, member: Member) -> Member:
        """
        Replace a stored member with `member` (matched by id).

        Raises:
            NotFoundError: If the member doesn't exist
        """
        pass

    @abstractmethod
    async def remove_member(self, member_id: UUID) -> bool:
        """
        Remove a member.

        Returns:
            True if a member was removed, False if it didn't exist
        """
        pass

    @abstractmethod
    async def list_expenses(self, group_id: UUID) -> list[Expense]:
        """
        List a group's expenses, newest first.

        Returns:
            Expenses ordered by created_at descending
        """
        pass

    @abstractmethod
    async def add_expense(self, expense: Expense) -> Expense:
        """
        Add an expense to an existing group.

        Raises:
            NotFoundError: If the group doesn't exist
            DuplicateError: If an expense with this id exists
        """
        pass

    @abstractmethod
    async def delete_expense(self, expense_id: UUID) -> bool:
        """
        Delete an expense.

        Returns:
            True if an expense was deleted, False if it didn't exist
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
        Get all events for a correlation ID (e.g., one user action).

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
            entity_type: Type of entity (e.g., 'member', 'expense')
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
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
