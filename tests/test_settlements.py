"""Tests for the debt simplifier and display formatting."""

import pytest
from decimal import Decimal

from loonie.config import CURRENCIES
from loonie.ledger import (
    apply_settlements,
    compute_balances,
    compute_settlements,
    describe_settlement,
    format_amount,
    round_display,
    summarize,
)
from loonie.models.ledger import CurrencyInfo
from loonie.validation import UnsupportedCurrencyError

from conftest import make_expense, make_members, make_snapshot


EPSILON = Decimal("0.01")


def D(value: str) -> Decimal:
    return Decimal(value)


class TestComputeSettlements:
    """Tests for compute_settlements."""

    def test_bob_owes_alice(self):
        settlements = compute_settlements({"Alice": D("50"), "Bob": D("-50")})

        assert len(settlements) == 1
        settlement = settlements[0]
        assert settlement.from_member == "Bob"
        assert settlement.to_member == "Alice"
        assert settlement.amount == D("50")

    def test_amounts_in_every_currency(self):
        settlement = compute_settlements({"Alice": D("50"), "Bob": D("-50")})[0]

        assert [a.currency for a in settlement.amounts] == ["USD", "CAD", "EUR", "GBP"]
        assert settlement.amount_in("USD") == D("50")
        assert settlement.amount_in("CAD") == D("67.50")
        assert settlement.amount_in("EUR") == D("45.50")
        assert settlement.amount_in("GBP") == D("39.50")

    def test_two_debtors_one_creditor_in_balance_order(self):
        settlements = compute_settlements({"A": D("60"), "B": D("-30"), "C": D("-30")})

        assert [(s.from_member, s.to_member, s.amount) for s in settlements] == [
            ("B", "A", D("30")),
            ("C", "A", D("30")),
        ]

    def test_greedy_matching_across_creditors(self):
        balances = {"A": D("50"), "B": D("30"), "C": D("-60"), "D": D("-20")}

        settlements = compute_settlements(balances)

        assert [(s.from_member, s.to_member, s.amount) for s in settlements] == [
            ("C", "A", D("50")),
            ("C", "B", D("10")),
            ("D", "B", D("20")),
        ]

    def test_order_depends_on_mapping_order(self):
        balances = {"B": D("30"), "A": D("50"), "D": D("-20"), "C": D("-60")}

        settlements = compute_settlements(balances)

        assert [(s.from_member, s.to_member, s.amount) for s in settlements] == [
            ("D", "B", D("20")),
            ("C", "B", D("10")),
            ("C", "A", D("50")),
        ]

    def test_balances_within_epsilon_are_settled(self):
        assert compute_settlements({"A": D("0.005"), "B": D("-0.005")}) == []
        assert compute_settlements({"A": D("0.01"), "B": D("-0.01")}) == []

    def test_tiny_debtor_is_ignored(self):
        balances = {"A": D("10"), "B": D("-9.995"), "C": D("-0.005")}

        settlements = compute_settlements(balances)

        assert len(settlements) == 1
        assert settlements[0].from_member == "B"
        assert settlements[0].amount == D("9.995")

    def test_no_transfer_at_or_below_epsilon(self):
        balances = {"A": D("10.005"), "B": D("-10"), "C": D("-0.02")}

        settlements = compute_settlements(balances)

        assert [(s.from_member, s.to_member, s.amount) for s in settlements] == [
            ("B", "A", D("10")),
        ]

    def test_custom_epsilon(self):
        balances = {"A": D("0.5"), "B": D("-0.5")}
        assert compute_settlements(balances, epsilon=D("1")) == []
        assert len(compute_settlements(balances, epsilon=D("0.1"))) == 1

    def test_custom_currency_table(self):
        table = {"JPY": CurrencyInfo(code="JPY", symbol="¥", rate=D("150"))}

        settlement = compute_settlements({"A": D("2"), "B": D("-2")}, currency_table=table)[0]

        assert len(settlement.amounts) == 1
        assert settlement.amount_in("JPY") == D("300")

    def test_empty_and_all_settled(self):
        assert compute_settlements({}) == []
        assert compute_settlements({"A": D("0"), "B": D("0")}) == []

    def test_does_not_mutate_balances(self):
        balances = {"A": D("50"), "B": D("30"), "C": D("-80")}
        before = dict(balances)

        compute_settlements(balances)

        assert balances == before

    def test_float_balances(self):
        settlement = compute_settlements({"Alice": 50.0, "Bob": -50.0})[0]

        assert settlement.amount == D("50")
        assert settlement.amount_in("CAD") == D("67.50")

    def test_apply_to_float_balances(self):
        balances = {"Alice": 12.5, "Bob": 0.1, "Carol": -12.6}
        settlements = compute_settlements(balances)

        remaining = apply_settlements(balances, settlements)

        assert all(isinstance(value, Decimal) for value in remaining.values())
        assert all(abs(value) <= EPSILON for value in remaining.values())

    def test_settlements_zero_every_balance(self, group_id):
        """Paying every transfer leaves nobody owing more than epsilon."""
        members = make_members(group_id, "A", "B", "C", "D", "E")
        expenses = [
            make_expense(group_id, "100", "A"),
            make_expense(group_id, "37.50", "B"),
            make_expense(group_id, "12.99", "B"),
            make_expense(group_id, "250", "E"),
            make_expense(group_id, "3.33", "C"),
        ]
        balances = compute_balances(members, expenses)

        settlements = compute_settlements(balances)
        remaining = apply_settlements(balances, settlements)

        assert all(abs(value) <= EPSILON for value in remaining.values())
        assert all(s.amount > EPSILON for s in settlements)

    def test_never_overpays_a_creditor(self):
        balances = {"A": D("10"), "B": D("5"), "C": D("-7"), "D": D("-8")}

        settlements = compute_settlements(balances)
        received: dict[str, Decimal] = {}
        for s in settlements:
            received[s.to_member] = received.get(s.to_member, D("0")) + s.amount

        assert received["A"] <= D("10")
        assert received["B"] <= D("5")


class TestSummarize:
    """Tests for the one-call summary."""

    def test_summary_fields(self, group_id):
        snapshot = make_snapshot(group_id, ["Alice", "Bob", ""], [("90", "Alice"), ("30", "Bob")])

        summary = summarize(snapshot)

        assert summary.group_id == group_id
        assert summary.member_count == 3
        assert summary.expense_count == 2
        assert summary.total_spent == D("120")
        assert summary.balances == {"Alice": D("50"), "Bob": D("-10")}
        assert len(summary.settlements) == 1
        assert summary.settlements[0].from_member == "Bob"
        assert summary.settlements[0].amount == D("10")

    def test_empty_group_summary(self, group_id):
        summary = summarize(make_snapshot(group_id, [], []))
        assert summary.balances == {}
        assert summary.is_settled is True


class TestFormatting:
    """Tests for amount and settlement formatting."""

    def test_format_amount(self):
        assert format_amount(D("67.5"), "CAD") == "C$67.50"
        assert format_amount(D("50"), "USD") == "$50.00"
        assert format_amount(D("45.5"), "EUR") == "€45.50"

    def test_format_amount_rounds_half_up(self):
        assert format_amount(D("0.125"), "GBP") == "£0.13"
        assert format_amount(D("33.3333333"), "USD") == "$33.33"

    def test_format_amount_precision(self, monkeypatch):
        assert format_amount(D("1.2345"), "USD", precision=3) == "$1.235"
        monkeypatch.setenv("LOONIE_DISPLAY_PRECISION", "0")
        assert format_amount(D("1.5"), "USD") == "$2"

    def test_format_amount_unknown_currency(self):
        with pytest.raises(UnsupportedCurrencyError):
            format_amount(D("1"), "JPY")

    def test_round_display(self):
        assert round_display(D("2.345")) == D("2.35")
        assert round_display(D("2.345"), precision=1) == D("2.3")

    def test_describe_settlement(self):
        settlement = compute_settlements({"Alice": D("50"), "Bob": D("-50")})[0]

        assert describe_settlement(settlement) == (
            "Bob owes Alice: $50.00 (USD), C$67.50 (CAD), €45.50 (EUR), £39.50 (GBP)"
        )

    def test_currency_table_reference_rates(self):
        assert CURRENCIES["USD"].rate == D("1")
        assert CURRENCIES["CAD"].rate == D("1.35")
        assert CURRENCIES["EUR"].rate == D("0.91")
        assert CURRENCIES["GBP"].rate == D("0.79")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
