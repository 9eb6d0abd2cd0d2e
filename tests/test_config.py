"""Tests for configuration and the currency table."""

from decimal import Decimal

import pytest

from loonie.config import (
    COLOR_SCHEMES,
    CURRENCIES,
    EXPENSE_CATEGORIES,
    category_emoji,
    get_currency_table,
    get_settings,
    validate_all_settings,
)
from loonie.models.group import ColorScheme, ExpenseCategory


class TestLedgerSettings:
    """Tests for LedgerSettings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("LOONIE_SETTLEMENT_EPSILON", raising=False)
        monkeypatch.delenv("LOONIE_DEFAULT_CURRENCY", raising=False)

        ledger = get_settings().ledger

        assert ledger.settlement_epsilon == Decimal("0.01")
        assert ledger.base_currency == "USD"
        assert ledger.default_currency == "USD"
        assert ledger.display_precision == 2

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("LOONIE_SETTLEMENT_EPSILON", "0.5")
        monkeypatch.setenv("LOONIE_DEFAULT_CURRENCY", "CAD")

        ledger = get_settings().ledger

        assert ledger.settlement_epsilon == Decimal("0.5")
        assert ledger.default_currency == "CAD"

    def test_invalid_epsilon_rejected(self, monkeypatch):
        monkeypatch.setenv("LOONIE_SETTLEMENT_EPSILON", "-1")
        with pytest.raises(ValueError):
            get_settings().ledger

    def test_storage_backend_default(self, monkeypatch):
        monkeypatch.delenv("STORAGE_BACKEND", raising=False)
        assert get_settings().app.storage_backend == "memory"


class TestValidateAllSettings:
    def test_missing_sheets_config_is_reported(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)

        results = validate_all_settings()

        assert results["ledger"] is True
        assert results["app"] is True
        assert results["google_sheets"] is False
        assert "google_sheets_error" in results

    def test_currency_table_checked_against_base_currency(self, monkeypatch):
        monkeypatch.delenv("LOONIE_BASE_CURRENCY", raising=False)
        assert validate_all_settings()["currency_table"] is True

        monkeypatch.setenv("LOONIE_BASE_CURRENCY", "EUR")
        results = validate_all_settings()

        assert results["currency_table"] is False
        assert "EUR" in results["currency_table_error"]


class TestCurrencyTable:
    """Tests for the static currency and category tables."""

    def test_table_is_a_copy(self):
        table = get_currency_table()
        table.pop("USD")
        assert "USD" in CURRENCIES
        assert "USD" in get_currency_table()

    def test_base_currency_must_have_rate_one(self, monkeypatch):
        monkeypatch.setenv("LOONIE_BASE_CURRENCY", "EUR")
        with pytest.raises(ValueError, match="rate 1"):
            get_currency_table()

    def test_base_currency_must_be_in_table(self, monkeypatch):
        monkeypatch.setenv("LOONIE_BASE_CURRENCY", "JPY")
        with pytest.raises(ValueError):
            get_currency_table()

    def test_symbols(self):
        assert [info.symbol for info in CURRENCIES.values()] == ["$", "C$", "€", "£"]

    def test_every_category_has_an_emoji(self):
        assert set(EXPENSE_CATEGORIES) == set(ExpenseCategory)
        assert category_emoji(ExpenseCategory.TRANSPORT) == EXPENSE_CATEGORIES[ExpenseCategory.TRANSPORT]

    def test_every_color_scheme_has_a_name(self):
        assert set(COLOR_SCHEMES) == set(ColorScheme)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
