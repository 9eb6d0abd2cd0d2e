"""
Debt Simplifier

Reduces per-member balances to a short list of "X pays Y" transfers.

The matching is greedy: each debtor, in balance order, pays creditors in
balance order until their debt is gone. It always zeroes every balance and
never overpays anyone, but the number of transfers is not guaranteed to be
the smallest possible.
"""

from decimal import Decimal
from typing import Mapping, Optional, Union

from loonie.config import get_currency_table, get_settings
from loonie.models.ledger import CurrencyAmount, CurrencyInfo, Settlement


def compute_settlements(
    balances: Mapping[str, Union[Decimal, int, float]],
    currency_table: Optional[Mapping[str, CurrencyInfo]] = None,
    epsilon: Optional[Decimal] = None,
) -> list[Settlement]:
    """
    Compute the transfers that settle a group.

    Args:
        balances: {member name: balance} as returned by compute_balances.
                  Iteration order decides the order of the result.
                  int and float values are converted via str, so 0.1
                  stays Decimal("0.1").
        currency_table: Currencies to convert each transfer into.
                        Defaults to the configured table.
        epsilon: Balances and transfers at or below this are ignored.
                 Defaults to settings.ledger.settlement_epsilon.

    Returns:
        Transfers in debtor order, then creditor order.
        The balances mapping is not modified.
    """
    if currency_table is None:
        currency_table = get_currency_table()
    if epsilon is None:
        epsilon = get_settings().ledger.settlement_epsilon

    outstanding = {
        name: balance
        for name, balance in _as_decimals(balances).items()
        if abs(balance) > epsilon
    }
    debtors = [(name, balance) for name, balance in outstanding.items() if balance < 0]
    # Remaining credit per creditor, drawn down as debtors pay
    creditors = {name: balance for name, balance in outstanding.items() if balance > 0}

    settlements: list[Settlement] = []

    for debtor, balance in debtors:
        remaining_debt = -balance
        for creditor, credit in creditors.items():
            if remaining_debt <= 0:
                break
            if credit <= 0:
                continue

            amount = min(remaining_debt, credit)
            if amount > epsilon:
                settlements.append(
                    _build_settlement(debtor, creditor, amount, currency_table)
                )
            remaining_debt -= amount
            creditors[creditor] = credit - amount

    return settlements


def _as_decimals(balances: Mapping[str, Union[Decimal, int, float]]) -> dict[str, Decimal]:
    return {
        name: balance if isinstance(balance, Decimal) else Decimal(str(balance))
        for name, balance in balances.items()
    }


def _build_settlement(
    debtor: str,
    creditor: str,
    amount: Decimal,
    currency_table: Mapping[str, CurrencyInfo],
) -> Settlement:
    return Settlement(
        from_member=debtor,
        to_member=creditor,
        amount=amount,
        amounts=tuple(
            CurrencyAmount(currency=code, amount=amount * info.rate)
            for code, info in currency_table.items()
        ),
    )


def apply_settlements(
    balances: Mapping[str, Union[Decimal, int, float]],
    settlements: list[Settlement],
) -> dict[str, Decimal]:
    """
    Return the balances left after every settlement is paid.

    Useful for checking a settlement plan: every entry should end up
    within epsilon of zero.
    """
    remaining = _as_decimals(balances)
    for settlement in settlements:
        remaining[settlement.from_member] += settlement.amount
        remaining[settlement.to_member] -= settlement.amount
    return remaining
