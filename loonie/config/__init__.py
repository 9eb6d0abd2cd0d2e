"""Configuration package."""

from loonie.config.currencies import (
    COLOR_SCHEMES,
    CURRENCIES,
    EXPENSE_CATEGORIES,
    category_emoji,
    get_currency_table,
)
from loonie.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    LedgerSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "COLOR_SCHEMES",
    "CURRENCIES",
    "EXPENSE_CATEGORIES",
    "category_emoji",
    "get_currency_table",
    "AppSettings",
    "GoogleSheetsSettings",
    "LedgerSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
