"""Shared fixtures and builders for the test suite."""

from datetime import datetime, timedelta
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from loonie.models.group import Expense, GroupSnapshot, Member


BASE_TIME = datetime(2024, 6, 1, 12, 0, 0)


def make_members(group_id: UUID, *names: str) -> list[Member]:
    """Members with increasing created_at, in the order given."""
    return [
        Member(group_id=group_id, name=name, created_at=BASE_TIME + timedelta(minutes=i))
        for i, name in enumerate(names)
    ]


def make_expense(group_id: UUID, amount: str, paid_by: str, **kwargs) -> Expense:
    fields = {
        "group_id": group_id,
        "amount": Decimal(amount),
        "paid_by": paid_by,
        "description": kwargs.pop("description", "Dinner"),
    }
    fields.update(kwargs)
    return Expense(**fields)


def make_snapshot(group_id: UUID, names: list[str], expenses: list[tuple[str, str]]) -> GroupSnapshot:
    """expenses are (amount, paid_by) pairs."""
    return GroupSnapshot(
        group_id=group_id,
        members=tuple(make_members(group_id, *names)),
        expenses=tuple(make_expense(group_id, amount, payer) for amount, payer in expenses),
    )


@pytest.fixture
def group_id() -> UUID:
    return uuid4()
