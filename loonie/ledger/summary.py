"""Everything the presentation layer needs for one group, in one call."""

from decimal import Decimal
from typing import Mapping, Optional

from loonie.ledger.balances import compute_balances, total_spent
from loonie.ledger.settlements import compute_settlements
from loonie.models.group import GroupSnapshot
from loonie.models.ledger import CurrencyInfo, LedgerSummary


def summarize(
    snapshot: GroupSnapshot,
    currency_table: Optional[Mapping[str, CurrencyInfo]] = None,
    epsilon: Optional[Decimal] = None,
) -> LedgerSummary:
    """Balances and settlements for a snapshot. Pure; safe to call repeatedly."""
    balances = compute_balances(snapshot.members, snapshot.expenses)
    settlements = compute_settlements(balances, currency_table, epsilon)

    return LedgerSummary(
        group_id=snapshot.group_id,
        balances=balances,
        settlements=tuple(settlements),
        member_count=len(snapshot.members),
        expense_count=len(snapshot.expenses),
        total_spent=total_spent(snapshot.expenses),
    )
