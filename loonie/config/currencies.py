"""
Static lookup tables.

The currency table is fixed configuration, not live exchange rates.
Rates are units of each currency per one base (USD-equivalent) unit.
"""

from decimal import Decimal

from loonie.config.settings import get_settings
from loonie.models.group import ColorScheme, ExpenseCategory
from loonie.models.ledger import CurrencyInfo


CURRENCIES: dict[str, CurrencyInfo] = {
    "USD": CurrencyInfo(code="USD", symbol="$", rate=Decimal("1")),
    "CAD": CurrencyInfo(code="CAD", symbol="C$", rate=Decimal("1.35")),
    "EUR": CurrencyInfo(code="EUR", symbol="€", rate=Decimal("0.91")),
    "GBP": CurrencyInfo(code="GBP", symbol="£", rate=Decimal("0.79")),
}

EXPENSE_CATEGORIES: dict[ExpenseCategory, str] = {
    ExpenseCategory.FOOD_AND_DRINKS: "🍽️",
    ExpenseCategory.RENT_HOUSING: "🏠",
    ExpenseCategory.TRANSPORT: "🚗",
    ExpenseCategory.ENTERTAINMENT: "🎭",
    ExpenseCategory.SHOPPING: "🛒",
    ExpenseCategory.OTHER: "✨",
}

COLOR_SCHEMES: dict[ColorScheme, str] = {
    ColorScheme.INDIGO_PURPLE: "Indigo Purple",
    ColorScheme.RUBY_RED: "Ruby Red",
    ColorScheme.EMERALD_TEAL: "Emerald Teal",
    ColorScheme.AMBER_ORANGE: "Amber Orange",
    ColorScheme.BLUE_CYAN: "Ocean Blue",
}


def get_currency_table() -> dict[str, CurrencyInfo]:
    """
    Return a copy of the currency table, in display order.

    Raises:
        ValueError: If settings.ledger.base_currency is missing from the
            table or its rate is not 1
    """
    base = get_settings().ledger.base_currency
    info = CURRENCIES.get(base)
    if info is None or info.rate != 1:
        raise ValueError(f"Base currency {base} must be in the currency table with rate 1")
    return dict(CURRENCIES)


def category_emoji(category: ExpenseCategory) -> str:
    return EXPENSE_CATEGORIES.get(category, EXPENSE_CATEGORIES[ExpenseCategory.OTHER])
