"""
Integration tests for GroupFlow.

Everything runs against in-memory storage.
"""

import asyncio
from decimal import Decimal
from uuid import uuid4

import pytest

from loonie.audit import AuditLogger
from loonie.ledger import describe_settlement
from loonie.models.audit import AuditEventType, AuditSeverity
from loonie.orchestrator import GroupFlow, create_app_components
from loonie.services.storage import (
    InMemoryAuditStorage,
    InMemoryGroupStorage,
    NotFoundError,
    StorageError,
)
from loonie.validation import (
    DuplicateMemberNameError,
    EmptyGroupError,
    InvalidExpenseAmountError,
    MissingGroupNameError,
    TextTooLongError,
    UnknownPayerError,
    UnsupportedCurrencyError,
)


class FailingExpenseStorage(InMemoryGroupStorage):
    async def add_expense(self, expense):
        raise StorageError("sheet is read-only")


class FailingReadStorage(InMemoryGroupStorage):
    async def list_expenses(self, group_id):
        raise StorageError("quota exceeded")


class CountingStorage(InMemoryGroupStorage):
    def __init__(self):
        super().__init__()
        self.get_group_calls = 0

    async def get_group(self, group_id):
        self.get_group_calls += 1
        return await super().get_group(group_id)


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def flow(audit_storage):
    return GroupFlow(InMemoryGroupStorage(), audit_logger=AuditLogger(audit_storage))


def event_types(audit_storage):
    return [e.event_type for e in audit_storage.events]


async def trip_with(flow, *names):
    group = await flow.create_group("Ski trip")
    for name in names:
        await flow.add_member(group.id, name)
    return group


class TestGroupSetup:
    """Creating groups and managing members."""

    def test_create_group(self, flow, audit_storage):
        group = run(flow.create_group("  Ski trip ", emoji="⛷️", currency_default="cad"))

        assert group.name == "Ski trip"
        assert group.emoji == "⛷️"
        assert group.currency_default == "CAD"
        assert run(flow.get_group(group.id)) == group
        assert event_types(audit_storage) == [AuditEventType.GROUP_CREATED]

    def test_create_group_unsupported_currency(self, flow):
        with pytest.raises(UnsupportedCurrencyError):
            run(flow.create_group("Trip", currency_default="JPY"))

    def test_group_name_checked_before_saving(self, flow, audit_storage):
        with pytest.raises(MissingGroupNameError):
            run(flow.create_group("   "))
        with pytest.raises(TextTooLongError):
            run(flow.create_group("G" * 101))
        with pytest.raises(TextTooLongError):
            run(flow.create_group("Trip", emoji="🍔" * 17))

        assert audit_storage.events == []

    def test_missing_group(self, flow):
        with pytest.raises(NotFoundError):
            run(flow.get_group(uuid4()))
        with pytest.raises(NotFoundError):
            run(flow.add_member(uuid4(), "Alice"))

    def test_add_members_in_order(self, flow):
        async def scenario():
            group = await trip_with(flow, "Alice", "", "Bob")
            return await flow.load_snapshot(group.id)

        snapshot = run(scenario())

        assert [m.name for m in snapshot.members] == ["Alice", "", "Bob"]
        assert snapshot.member_names == ["Alice", "Bob"]

    def test_duplicate_member_name(self, flow):
        async def scenario():
            group = await trip_with(flow, "Alice")
            await flow.add_member(group.id, " Alice ")

        with pytest.raises(DuplicateMemberNameError):
            run(scenario())

    def test_member_name_too_long(self, flow):
        async def scenario():
            group = await trip_with(flow)
            await flow.add_member(group.id, "A" * 101)

        with pytest.raises(TextTooLongError):
            run(scenario())

    def test_rename_placeholder(self, flow, audit_storage):
        async def scenario():
            group = await trip_with(flow)
            member = await flow.add_member(group.id)
            renamed = await flow.rename_member(group.id, member.id, "Carol")
            return member, renamed

        member, renamed = run(scenario())

        assert renamed.id == member.id
        assert renamed.name == "Carol"
        assert event_types(audit_storage)[-1] == AuditEventType.MEMBER_RENAMED

    def test_rename_to_same_name_is_a_no_op(self, flow, audit_storage):
        async def scenario():
            group = await trip_with(flow, "Alice")
            alice = (await flow.load_snapshot(group.id)).members[0]
            return await flow.rename_member(group.id, alice.id, "Alice")

        run(scenario())

        assert AuditEventType.MEMBER_RENAMED not in event_types(audit_storage)

    def test_rename_missing_member(self, flow):
        async def scenario():
            group = await trip_with(flow, "Alice")
            await flow.rename_member(group.id, uuid4(), "Bob")

        with pytest.raises(NotFoundError):
            run(scenario())

    def test_remove_member(self, flow, audit_storage):
        async def scenario():
            group = await trip_with(flow, "Alice")
            member = await flow.add_member(group.id, "Bob")
            first = await flow.remove_member(group.id, member.id)
            second = await flow.remove_member(group.id, member.id)
            return group, first, second

        group, first, second = run(scenario())

        assert (first, second) == (True, False)
        assert run(flow.load_snapshot(group.id)).member_names == ["Alice"]
        assert event_types(audit_storage).count(AuditEventType.MEMBER_REMOVED) == 1


class TestExpenseEntry:
    """Adding and deleting expenses."""

    def test_add_expense_uses_group_currency(self, flow, audit_storage):
        async def scenario():
            group = await flow.create_group("Trip", currency_default="EUR")
            await flow.add_member(group.id, "Alice")
            return await flow.add_expense(group.id, "42.10", "Alice", "Groceries")

        expense = run(scenario())

        assert expense.amount == Decimal("42.10")
        assert expense.currency == "EUR"
        assert event_types(audit_storage)[-1] == AuditEventType.EXPENSE_ADDED

    def test_rejected_expense_is_audited_and_not_saved(self, flow, audit_storage):
        async def scenario():
            group = await trip_with(flow, "Alice")
            try:
                await flow.add_expense(group.id, "-5", "Alice", "Refund")
            finally:
                snapshot = await flow.load_snapshot(group.id)
                assert snapshot.expenses == ()

        with pytest.raises(InvalidExpenseAmountError):
            run(scenario())

        rejected = audit_storage.events[-1]
        assert rejected.event_type == AuditEventType.EXPENSE_REJECTED
        assert rejected.severity == AuditSeverity.WARNING
        assert rejected.details["issues"][0]["type"] == "invalid_amount"

    def test_overlong_description_is_audited(self, flow, audit_storage):
        async def scenario():
            group = await trip_with(flow, "Alice")
            await flow.add_expense(group.id, "10", "Alice", "x" * 201)

        with pytest.raises(TextTooLongError):
            run(scenario())

        rejected = audit_storage.events[-1]
        assert rejected.event_type == AuditEventType.EXPENSE_REJECTED
        assert rejected.details["issues"][0]["type"] == "too_long"
        assert rejected.details["issues"][0]["field"] == "description"

    def test_group_is_read_once_per_expense(self):
        storage = CountingStorage()
        flow = GroupFlow(storage)

        async def scenario():
            group = await trip_with(flow, "Alice")
            storage.get_group_calls = 0
            await flow.add_expense(group.id, "10", "Alice", "Taxi")

        run(scenario())

        assert storage.get_group_calls == 1

    def test_unknown_payer(self, flow):
        async def scenario():
            group = await trip_with(flow, "Alice", "Bob")
            await flow.add_expense(group.id, "10", "Zed", "Taxi")

        with pytest.raises(UnknownPayerError):
            run(scenario())

    def test_expense_in_empty_group(self, flow):
        async def scenario():
            group = await trip_with(flow, "")
            await flow.add_expense(group.id, "10", "Alice", "Taxi")

        with pytest.raises(EmptyGroupError):
            run(scenario())

    def test_delete_expense(self, flow, audit_storage):
        async def scenario():
            group = await trip_with(flow, "Alice", "Bob")
            expense = await flow.add_expense(group.id, "10", "Alice", "Taxi")
            deleted = await flow.delete_expense(group.id, expense.id)
            again = await flow.delete_expense(group.id, expense.id)
            return group, deleted, again

        group, deleted, again = run(scenario())

        assert (deleted, again) == (True, False)
        assert run(flow.summarize(group.id)).balances == {
            "Alice": Decimal("0"),
            "Bob": Decimal("0"),
        }
        assert AuditEventType.EXPENSE_DELETED in event_types(audit_storage)

    def test_storage_failure_is_audited_and_raised(self, audit_storage):
        flow = GroupFlow(FailingExpenseStorage(), audit_logger=AuditLogger(audit_storage))

        async def scenario():
            group = await trip_with(flow, "Alice")
            await flow.add_expense(group.id, "10", "Alice", "Taxi")

        with pytest.raises(StorageError):
            run(scenario())

        failure = audit_storage.events[-1]
        assert failure.event_type == AuditEventType.STORAGE_ERROR
        assert failure.error_message == "sheet is read-only"
        assert failure.details["operation"] == "add_expense"

    def test_read_failure_is_audited_and_raised(self, audit_storage):
        flow = GroupFlow(FailingReadStorage(), audit_logger=AuditLogger(audit_storage))

        async def scenario():
            group = await trip_with(flow, "Alice")
            await flow.summarize(group.id)

        with pytest.raises(StorageError, match="quota exceeded"):
            run(scenario())

        failure = audit_storage.events[-1]
        assert failure.event_type == AuditEventType.STORAGE_ERROR
        assert failure.details["operation"] == "list_expenses"
        assert failure.correlation_id is not None


class TestSummarize:
    """End-to-end ledger flow."""

    def test_two_people_one_dinner(self, flow, audit_storage):
        async def scenario():
            group = await trip_with(flow, "Alice", "Bob")
            await flow.add_expense(group.id, "100", "Alice", "Dinner", category="Food & Drinks")
            return await flow.summarize(group.id)

        summary = run(scenario())

        assert summary.balances == {"Alice": Decimal("50"), "Bob": Decimal("-50")}
        assert summary.total_spent == Decimal("100")
        assert len(summary.settlements) == 1
        assert describe_settlement(summary.settlements[0]) == (
            "Bob owes Alice: $50.00 (USD), C$67.50 (CAD), €45.50 (EUR), £39.50 (GBP)"
        )
        assert event_types(audit_storage)[-1] == AuditEventType.LEDGER_COMPUTED

    def test_new_member_resplits_old_expenses(self, flow):
        async def scenario():
            group = await trip_with(flow, "Alice", "Bob")
            await flow.add_expense(group.id, "90", "Alice", "Cabin")
            before = await flow.summarize(group.id)
            await flow.add_member(group.id, "Carol")
            after = await flow.summarize(group.id)
            return before, after

        before, after = run(scenario())

        assert before.balances["Bob"] == Decimal("-45")
        assert after.balances["Bob"] == Decimal("-30")
        assert after.balances["Carol"] == Decimal("-30")

    def test_renamed_payer_becomes_unmatched(self, flow):
        async def scenario():
            group = await trip_with(flow, "Alice", "Bob")
            await flow.add_expense(group.id, "100", "Alice", "Dinner")
            alice = (await flow.load_snapshot(group.id)).members[0]
            await flow.rename_member(group.id, alice.id, "Alicia")
            return await flow.summarize(group.id)

        summary = run(scenario())

        assert summary.balances == {"Alicia": Decimal("-50"), "Bob": Decimal("-50")}
        assert summary.settlements == ()

    def test_empty_group(self, flow):
        async def scenario():
            group = await trip_with(flow)
            return await flow.summarize(group.id)

        summary = run(scenario())

        assert summary.balances == {}
        assert summary.is_settled is True


class TestAppComponents:
    """Tests for create_app_components."""

    def test_in_memory_components(self):
        flow, audit_logger = create_app_components(use_storage=False)

        assert isinstance(flow, GroupFlow)
        assert isinstance(audit_logger, AuditLogger)

        group = run(flow.create_group("Trip"))
        assert run(flow.get_group(group.id)) == group


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
