"""Entry validation package."""

from loonie.validation.errors import (
    DuplicateMemberNameError,
    EmptyGroupError,
    InvalidCategoryError,
    InvalidExpenseAmountError,
    LedgerInputError,
    MissingDescriptionError,
    MissingGroupNameError,
    TextTooLongError,
    UnknownPayerError,
    UnsupportedCurrencyError,
)
from loonie.validation.validator import EntryValidator, parse_amount, parse_category

__all__ = [
    "DuplicateMemberNameError",
    "EmptyGroupError",
    "InvalidCategoryError",
    "InvalidExpenseAmountError",
    "LedgerInputError",
    "MissingDescriptionError",
    "MissingGroupNameError",
    "TextTooLongError",
    "UnknownPayerError",
    "UnsupportedCurrencyError",
    "EntryValidator",
    "parse_amount",
    "parse_category",
]
