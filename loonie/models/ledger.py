"""
Ledger Models

Derived values produced by the balance calculator and debt simplifier.
None of these are persisted; they are recomputed from a GroupSnapshot
whenever they are needed.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


DISPLAY_QUANTUM = Decimal("0.01")


class CurrencyInfo(BaseModel):
    """One row of the static currency table."""
    model_config = ConfigDict(frozen=True)

    code: str = Field(..., pattern="^[A-Z]{3}$")
    symbol: str = Field(..., min_length=1)
    rate: Decimal = Field(
        ...,
        gt=0,
        description="Units of this currency per one base unit"
    )


class CurrencyAmount(BaseModel):
    """An amount expressed in a given currency, for display."""
    model_config = ConfigDict(frozen=True)

    currency: str
    amount: Decimal

    @property
    def display_amount(self) -> Decimal:
        """Amount rounded to cents."""
        return self.amount.quantize(DISPLAY_QUANTUM, rounding=ROUND_HALF_UP)


class Settlement(BaseModel):
    """
    A single proposed payment: `from_member` pays `to_member`.

    `amount` is in base units. `amounts` holds the same payment converted
    to every supported currency, in currency table order.
    """
    model_config = ConfigDict(frozen=True)

    from_member: str
    to_member: str
    amount: Decimal = Field(..., gt=0)
    amounts: tuple[CurrencyAmount, ...] = ()

    def amount_in(self, currency: str) -> Decimal:
        for converted in self.amounts:
            if converted.currency == currency:
                return converted.amount
        raise KeyError(currency)


class LedgerSummary(BaseModel):
    """Everything the presentation layer shows for a group."""
    model_config = ConfigDict(frozen=True)

    group_id: UUID
    balances: dict[str, Decimal] = Field(default_factory=dict)
    settlements: tuple[Settlement, ...] = ()
    member_count: int = Field(default=0, ge=0)
    expense_count: int = Field(default=0, ge=0)
    total_spent: Decimal = Decimal("0")
    computed_at: datetime = Field(
        default_factory=datetime.utcnow
    )

    @property
    def is_settled(self) -> bool:
        return not self.settlements
