"""
Main Orchestrator for Loonie

This module ties together storage, validation, the ledger and the audit
log, and defines the end-to-end flows:
1. Group setup (create group → add/rename/remove members)
2. Expense entry (input → validate → save)
3. Ledger (load snapshot → balances → settlements)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing is written without passing validation
- The ledger only ever sees a fresh, immutable snapshot
- Every write is audited

Balances and settlements are never stored. They are recomputed from
storage on every summarize() call.
"""

from typing import Awaitable, Optional, TypeVar
from uuid import UUID

import structlog

from loonie.audit import AuditLogger, create_correlation_id
from loonie.config import get_currency_table, get_settings
from loonie.ledger import summarize
from loonie.models.group import ColorScheme, Expense, Group, GroupSnapshot, Member
from loonie.models.ledger import LedgerSummary
from loonie.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsGroupStorage,
    GroupStorageInterface,
    InMemoryGroupStorage,
    NotFoundError,
    StorageError,
)
from loonie.validation import EntryValidator


logger = structlog.get_logger(__name__)

T = TypeVar("T")


class GroupFlow:
    """
    Orchestrates everything a user can do to a group.

    Flow for an expense:
    1. Load → Current members from storage
    2. Validate → Amount, payer, currency, description
    3. Save → Persist to storage
    4. Audit → Record who added what

    Rejected input raises a LedgerInputError and nothing is written.
    """

    def __init__(
        self,
        storage: GroupStorageInterface,
        validator: Optional[EntryValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._validator = validator or EntryValidator()
        self._audit_logger = audit_logger
        self._currency_table = get_currency_table()
        self._settings = get_settings().ledger

    async def _store(
        self,
        operation: str,
        call: Awaitable[T],
        group_id: Optional[UUID],
        correlation_id: UUID,
    ) -> T:
        """Await a storage call, auditing and re-raising any StorageError."""
        try:
            return await call
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation=operation,
                    error_message=str(e),
                    group_id=group_id,
                    correlation_id=correlation_id,
                )
            raise

    # -------------------------------------------------------------------------
    # Groups
    # -------------------------------------------------------------------------

    async def create_group(
        self,
        name: str,
        emoji: Optional[str] = None,
        color_scheme: Optional[ColorScheme] = None,
        currency_default: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Group:
        """
        Create a new, empty group.

        Raises:
            MissingGroupNameError: If the name is empty
            TextTooLongError: If the name or emoji is too long
            UnsupportedCurrencyError: If currency_default is not supported
        """
        correlation_id = correlation_id or create_correlation_id()

        fields = {
            "name": self._validator.check_group_name(name),
            "currency_default": self._validator.check_currency(
                currency_default or self._settings.default_currency
            ),
        }
        emoji = self._validator.check_emoji(emoji or "")
        if emoji:
            fields["emoji"] = emoji
        if color_scheme:
            fields["color_scheme"] = color_scheme
        group = Group(**fields)

        await self._store(
            "create_group", self._storage.create_group(group), group.id, correlation_id
        )

        if self._audit_logger:
            await self._audit_logger.log_group_created(
                group_id=group.id,
                name=group.name,
                correlation_id=correlation_id,
            )

        return group

    async def get_group(
        self,
        group_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> Group:
        """
        Raises:
            NotFoundError: If the group doesn't exist
        """
        correlation_id = correlation_id or create_correlation_id()

        group = await self._store(
            "get_group", self._storage.get_group(group_id), group_id, correlation_id
        )
        if group is None:
            raise NotFoundError(f"Group not found: {group_id}")
        return group

    async def _load(
        self,
        group_id: UUID,
        correlation_id: UUID,
    ) -> tuple[Group, GroupSnapshot]:
        group = await self.get_group(group_id, correlation_id)
        members = await self._store(
            "list_members", self._storage.list_members(group_id), group_id, correlation_id
        )
        expenses = await self._store(
            "list_expenses", self._storage.list_expenses(group_id), group_id, correlation_id
        )
        snapshot = GroupSnapshot(
            group_id=group_id,
            members=tuple(members),
            expenses=tuple(expenses),
        )
        return group, snapshot

    async def load_snapshot(
        self,
        group_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> GroupSnapshot:
        """Read the group's current members and expenses into a snapshot."""
        _, snapshot = await self._load(group_id, correlation_id or create_correlation_id())
        return snapshot

    # -------------------------------------------------------------------------
    # Members
    # -------------------------------------------------------------------------

    async def add_member(
        self,
        group_id: UUID,
        name: str = "",
        correlation_id: Optional[UUID] = None,
    ) -> Member:
        """
        Add a member. An empty name adds a placeholder to be named later.

        Raises:
            DuplicateMemberNameError: If another member already has this name
        """
        correlation_id = correlation_id or create_correlation_id()

        snapshot = await self.load_snapshot(group_id, correlation_id)
        cleaned = self._validator.check_member_name(snapshot, name)
        member = Member(group_id=group_id, name=cleaned)

        await self._store(
            "add_member", self._storage.add_member(member), group_id, correlation_id
        )

        if self._audit_logger:
            await self._audit_logger.log_member_added(
                group_id=group_id,
                member_id=member.id,
                name=member.name,
                correlation_id=correlation_id,
            )

        return member

    async def rename_member(
        self,
        group_id: UUID,
        member_id: UUID,
        new_name: str,
        correlation_id: Optional[UUID] = None,
    ) -> Member:
        """
        Change a member's display name.

        Expenses refer to their payer by name, so renaming a payer leaves
        their old expenses without a matching member (see review_snapshot).

        Raises:
            NotFoundError: If the member is not in this group
            DuplicateMemberNameError: If another member already has this name
        """
        correlation_id = correlation_id or create_correlation_id()

        snapshot = await self.load_snapshot(group_id, correlation_id)
        current = snapshot.find_member(member_id)
        if current is None:
            raise NotFoundError(f"Member not found: {member_id}")

        cleaned = self._validator.check_member_name(snapshot, new_name, member_id=member_id)
        if cleaned == current.name:
            return current

        updated = current.model_copy(update={"name": cleaned})
        await self._store(
            "update_member", self._storage.update_member(updated), group_id, correlation_id
        )

        if self._audit_logger:
            await self._audit_logger.log_member_renamed(
                group_id=group_id,
                member_id=member_id,
                old_name=current.name,
                new_name=cleaned,
                correlation_id=correlation_id,
            )

        return updated

    async def remove_member(
        self,
        group_id: UUID,
        member_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Remove a member. Their past expenses stay and are re-split across
        the members that remain.

        Returns:
            True if the member was removed, False if they weren't in the group
        """
        correlation_id = correlation_id or create_correlation_id()

        snapshot = await self.load_snapshot(group_id, correlation_id)
        member = snapshot.find_member(member_id)
        if member is None:
            return False

        removed = await self._store(
            "remove_member", self._storage.remove_member(member_id), group_id, correlation_id
        )

        if removed and self._audit_logger:
            await self._audit_logger.log_member_removed(
                group_id=group_id,
                member_id=member_id,
                name=member.name,
                correlation_id=correlation_id,
            )

        return removed

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    async def add_expense(
        self,
        group_id: UUID,
        amount: object,
        paid_by: str,
        description: str,
        currency: Optional[str] = None,
        category: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """
        Validate and save a new expense.

        Args:
            amount: As entered by the user (string, number or Decimal)
            paid_by: Name of a named member
            currency: Defaults to the group's default currency
            category: Defaults to 'Other'

        Raises:
            LedgerInputError: If validation fails (InvalidExpenseAmountError,
                EmptyGroupError, UnknownPayerError, ...). Nothing is saved.
        """
        correlation_id = correlation_id or create_correlation_id()

        group, snapshot = await self._load(group_id, correlation_id)
        currency = currency or group.currency_default

        expense, errors, result = self._validator.check_expense(
            snapshot, amount, paid_by, description, currency, category
        )
        if errors:
            if self._audit_logger:
                await self._audit_logger.log_expense_rejected(
                    group_id=group_id,
                    issues=[
                        {"field": i.field, "type": i.issue_type, "message": i.message}
                        for i in result.issues
                    ],
                    correlation_id=correlation_id,
                )
            raise errors[0]

        for warning in result.warnings:
            logger.warning("expense_warning", group_id=str(group_id), warning=warning)

        await self._store(
            "add_expense", self._storage.add_expense(expense), group_id, correlation_id
        )

        if self._audit_logger:
            await self._audit_logger.log_expense_added(
                group_id=group_id,
                expense_id=expense.id,
                paid_by=expense.paid_by,
                amount=str(expense.amount),
                currency=expense.currency,
                correlation_id=correlation_id,
            )

        return expense

    async def delete_expense(
        self,
        group_id: UUID,
        expense_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Returns:
            True if the expense was deleted, False if it wasn't in the group
        """
        correlation_id = correlation_id or create_correlation_id()

        snapshot = await self.load_snapshot(group_id, correlation_id)
        expense = next((e for e in snapshot.expenses if e.id == expense_id), None)
        if expense is None:
            return False

        deleted = await self._store(
            "delete_expense", self._storage.delete_expense(expense_id), group_id, correlation_id
        )

        if deleted and self._audit_logger:
            await self._audit_logger.log_expense_deleted(
                group_id=group_id,
                expense_id=expense_id,
                description=expense.description,
                correlation_id=correlation_id,
            )

        return deleted

    # -------------------------------------------------------------------------
    # Ledger
    # -------------------------------------------------------------------------

    async def summarize(
        self,
        group_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerSummary:
        """
        Compute balances and settlements from the group's current data.

        Never raises for an empty group; the summary is simply empty.
        """
        correlation_id = correlation_id or create_correlation_id()

        snapshot = await self.load_snapshot(group_id, correlation_id)

        review = self._validator.review_snapshot(snapshot)
        for issue in review.issues:
            logger.warning(
                "ledger_input_issue",
                group_id=str(group_id),
                issue_type=issue.issue_type,
                message=issue.message,
            )

        summary = summarize(
            snapshot,
            currency_table=self._currency_table,
            epsilon=self._settings.settlement_epsilon,
        )

        if self._audit_logger:
            await self._audit_logger.log_ledger_computed(
                group_id=group_id,
                member_count=summary.member_count,
                expense_count=summary.expense_count,
                settlement_count=len(summary.settlements),
                correlation_id=correlation_id,
            )

        return summary


def create_app_components(
    use_storage: bool = True,
) -> tuple[GroupFlow, AuditLogger]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use the configured storage backend.
                    Set to False to keep everything in memory.

    Returns:
        (group_flow, audit_logger)
    """
    storage: GroupStorageInterface = InMemoryGroupStorage()
    audit_logger = AuditLogger()  # Local-only logging

    if use_storage and get_settings().app.storage_backend == "google_sheets":
        try:
            sheets_client = GoogleSheetsClient()
            storage = GoogleSheetsGroupStorage(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))

    return GroupFlow(storage=storage, audit_logger=audit_logger), audit_logger
