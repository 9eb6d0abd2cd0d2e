"""
In-Memory Storage

Keeps everything in plain dicts. Used by tests and as the default backend
when no Google Sheets credentials are configured. Nothing survives a
restart.
"""

from typing import Optional
from uuid import UUID

from loonie.models.audit import AuditEvent
from loonie.models.group import Expense, Group, Member
from loonie.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    GroupStorageInterface,
    NotFoundError,
)


class InMemoryGroupStorage(GroupStorageInterface):
    """Dict-backed implementation of group storage."""

    def __init__(self):
        self._groups: dict[UUID, Group] = {}
        self._members: dict[UUID, Member] = {}
        self._expenses: dict[UUID, Expense] = {}

    def _require_group(self, group_id: UUID) -> None:
        if group_id not in self._groups:
            raise NotFoundError(f"Group not found: {group_id}")

    async def create_group(self, group: Group) -> Group:
        if group.id in self._groups:
            raise DuplicateError(f"Group already exists: {group.id}")
        self._groups[group.id] = group
        return group

    async def get_group(self, group_id: UUID) -> Optional[Group]:
        return self._groups.get(group_id)

    async def list_members(self, group_id: UUID) -> list[Member]:
        members = [m for m in self._members.values() if m.group_id == group_id]
        # sorted() is stable, so ties keep insertion order
        return sorted(members, key=lambda m: m.created_at)

    async def add_member(self, member: Member) -> Member:
        self._require_group(member.group_id)
        if member.id in self._members:
            raise DuplicateError(f"Member already exists: {member.id}")
        self._members[member.id] = member
        return member

    async def update_member(self, member: Member) -> Member:
        if member.id not in self._members:
            raise NotFoundError(f"Member not found: {member.id}")
        self._members[member.id] = member
        return member

    async def remove_member(self, member_id: UUID) -> bool:
        return self._members.pop(member_id, None) is not None

    async def list_expenses(self, group_id: UUID) -> list[Expense]:
        expenses = [e for e in self._expenses.values() if e.group_id == group_id]
        return sorted(expenses, key=lambda e: e.created_at, reverse=True)

    async def add_expense(self, expense: Expense) -> Expense:
        self._require_group(expense.group_id)
        if expense.id in self._expenses:
            raise DuplicateError(f"Expense already exists: {expense.id}")
        self._expenses[expense.id] = expense
        return expense

    async def delete_expense(self, expense_id: UUID) -> bool:
        return self._expenses.pop(expense_id, None) is not None


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
