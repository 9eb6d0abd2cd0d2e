"""
Balance Calculator

Turns a group's members and expenses into a signed balance per member:
positive means the group owes them, negative means they owe the group.

SPLIT POLICY: every expense is divided by the number of members the group
has *right now* (named and unnamed), not by the members present when the
expense was logged. Adding or removing a member therefore changes every
past split. This matches how the app has always behaved; changing it needs
each expense to record its own participants.

The calculator never raises. Bad amounts and unknown payers are rejected
by loonie.validation before an expense is stored.
"""

from decimal import Decimal
from typing import Sequence

from loonie.models.group import Expense, GroupSnapshot, Member


ZERO = Decimal("0")


def compute_balances(
    members: Sequence[Member],
    expenses: Sequence[Expense],
) -> dict[str, Decimal]:
    """
    Compute each named member's net balance.

    Args:
        members: Group members in display order (unnamed ones included)
        expenses: Group expenses, in any order

    Returns:
        {member name: balance}, in member order. Empty for an empty group.

    Expense amounts are used as-is, whatever their currency. An expense
    whose payer is no longer a named member debits everyone and credits
    nobody.
    """
    # Unnamed members still count toward the split
    group_size = len(members)
    if group_size == 0:
        return {}

    balances: dict[str, Decimal] = {}
    for member in members:
        if member.name:
            balances[member.name] = ZERO

    for expense in expenses:
        split_amount = expense.amount / group_size
        for member in members:
            if not member.name:
                continue
            if member.name == expense.paid_by:
                balances[member.name] += expense.amount - split_amount
            else:
                balances[member.name] -= split_amount

    return balances


def snapshot_balances(snapshot: GroupSnapshot) -> dict[str, Decimal]:
    """Shortcut for compute_balances on a GroupSnapshot."""
    return compute_balances(snapshot.members, snapshot.expenses)


def total_spent(expenses: Sequence[Expense]) -> Decimal:
    """Sum of all expense amounts, in base units."""
    return sum((expense.amount for expense in expenses), ZERO)
