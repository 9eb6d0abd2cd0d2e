"""
Input errors raised at the data-entry boundary.

Every error knows how to describe itself as a ValidationIssue so the same
failure can be raised to a caller or shown in a list of problems.
"""

from typing import Iterable, Optional

from loonie.models.group import ValidationIssue


class LedgerInputError(ValueError):
    """Base class for input rejected before it reaches the ledger."""

    field = "input"
    issue_type = "invalid_input"

    def __init__(self, message: str, suggested_fix: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.suggested_fix = suggested_fix

    def to_issue(self) -> ValidationIssue:
        return ValidationIssue(
            field=self.field,
            issue_type=self.issue_type,
            message=self.message,
            severity="error",
            suggested_fix=self.suggested_fix,
        )


class InvalidExpenseAmountError(LedgerInputError):
    """Amount is missing, non-numeric, non-finite or not positive."""

    field = "amount"
    issue_type = "invalid_amount"

    def __init__(self, raw_amount: object, reason: str):
        super().__init__(
            f"Invalid amount {raw_amount!r}: {reason}",
            suggested_fix="Enter a positive number, e.g. 12.50",
        )
        self.raw_amount = raw_amount


class EmptyGroupError(LedgerInputError):
    """The group has no named members, so nobody can pay or owe."""

    field = "members"
    issue_type = "empty_group"

    def __init__(self):
        super().__init__(
            "The group has no named members yet",
            suggested_fix="Add at least one person before logging expenses",
        )


class UnknownPayerError(LedgerInputError):
    """The payer is not a named member of the group."""

    field = "paid_by"
    issue_type = "unknown_payer"

    def __init__(self, payer: str, known_members: Iterable[str]):
        known = list(known_members)
        super().__init__(
            f"'{payer}' is not a member of this group",
            suggested_fix=f"Pick one of: {', '.join(known)}" if known else None,
        )
        self.payer = payer
        self.known_members = known


class UnsupportedCurrencyError(LedgerInputError):
    """Currency code is not in the currency table."""

    field = "currency"
    issue_type = "unsupported_currency"

    def __init__(self, currency: str, supported: Iterable[str]):
        supported = list(supported)
        super().__init__(
            f"Unsupported currency: {currency}",
            suggested_fix=f"Use one of: {', '.join(supported)}",
        )
        self.currency = currency
        self.supported = supported


class MissingDescriptionError(LedgerInputError):
    """Expense has no description."""

    field = "description"
    issue_type = "missing"

    def __init__(self):
        super().__init__(
            "Description is required",
            suggested_fix="Say what the expense was for",
        )


class DuplicateMemberNameError(LedgerInputError):
    """Another member of the group already uses this name."""

    field = "name"
    issue_type = "duplicate_name"

    def __init__(self, name: str):
        super().__init__(
            f"There is already a member called '{name}'",
            suggested_fix="Add a last name or initial to tell them apart",
        )
        self.name = name


class InvalidCategoryError(LedgerInputError):
    """Category is not one of the known expense categories."""

    field = "category"
    issue_type = "invalid_category"

    def __init__(self, category: str, supported: Iterable[str]):
        supported = list(supported)
        super().__init__(
            f"Unknown category: {category}",
            suggested_fix=f"Use one of: {', '.join(supported)}",
        )
        self.category = category


class TextTooLongError(LedgerInputError):
    """A name, description or emoji is longer than storage allows."""

    issue_type = "too_long"

    def __init__(self, field: str, value: str, max_length: int):
        super().__init__(
            f"{field.capitalize()} is too long ({len(value)} characters, max {max_length})",
            suggested_fix=f"Shorten it to {max_length} characters or fewer",
        )
        self.field = field
        self.max_length = max_length


class MissingGroupNameError(LedgerInputError):
    """Group has no name."""

    field = "name"
    issue_type = "missing"

    def __init__(self):
        super().__init__(
            "Group name is required",
            suggested_fix="Give the group a short name, e.g. 'Ski trip'",
        )
