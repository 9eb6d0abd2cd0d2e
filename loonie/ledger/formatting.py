"""Display helpers for amounts and settlements."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Optional

from loonie.config import get_currency_table, get_settings
from loonie.models.ledger import CurrencyInfo, Settlement
from loonie.validation import UnsupportedCurrencyError


def round_display(amount: Decimal, precision: int = 2) -> Decimal:
    """Round half-up to `precision` decimal places."""
    return amount.quantize(Decimal(1).scaleb(-precision), rounding=ROUND_HALF_UP)


def format_amount(
    amount: Decimal,
    currency: str,
    currency_table: Optional[Mapping[str, CurrencyInfo]] = None,
    precision: Optional[int] = None,
) -> str:
    """
    Format an amount with its currency symbol, e.g. 'C$67.50'.

    precision defaults to settings.ledger.display_precision.

    Raises:
        UnsupportedCurrencyError: If the currency is not in the table
    """
    if precision is None:
        precision = get_settings().ledger.display_precision
    table = currency_table if currency_table is not None else get_currency_table()
    info = table.get(currency)
    if info is None:
        raise UnsupportedCurrencyError(currency, list(table))

    return f"{info.symbol}{round_display(amount, precision):.{precision}f}"


def describe_settlement(
    settlement: Settlement,
    currency_table: Optional[Mapping[str, CurrencyInfo]] = None,
) -> str:
    """
    One line per settlement, for plain-text output:

        Bob owes Alice: $50.00 (USD), C$67.50 (CAD), €45.50 (EUR), £39.50 (GBP)
    """
    table = currency_table if currency_table is not None else get_currency_table()
    parts = [
        f"{format_amount(converted.amount, converted.currency, table)} ({converted.currency})"
        for converted in settlement.amounts
    ]
    return f"{settlement.from_member} owes {settlement.to_member}: {', '.join(parts)}"
