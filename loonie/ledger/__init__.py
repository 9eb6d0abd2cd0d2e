"""
Ledger package.

Pure functions only: no I/O, no shared state, safe to call from anywhere.
"""

from loonie.ledger.balances import compute_balances, snapshot_balances, total_spent
from loonie.ledger.formatting import describe_settlement, format_amount, round_display
from loonie.ledger.settlements import apply_settlements, compute_settlements
from loonie.ledger.summary import summarize

__all__ = [
    "apply_settlements",
    "compute_balances",
    "compute_settlements",
    "describe_settlement",
    "format_amount",
    "round_display",
    "snapshot_balances",
    "summarize",
    "total_spent",
]
