"""
Entry Validation

DESIGN DECISION: Everything a user types is checked here, before it is
written to storage and long before it reaches the ledger. The ledger
functions assume clean input and never raise.

CHECKS:
- Amount: numeric, finite, greater than zero
- Payer: a named member of the group (UnknownPayer is rejected at creation)
- Group: has at least one named member
- Currency: present in the currency table
- Description: not empty
- Names, descriptions: not longer than the stored columns allow
- Member names: unique within the group

Blocking problems are errors and raise a LedgerInputError subclass from
the build_* methods. Suspicious but possible input (a very large amount)
is a warning and never blocks.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for the caller to act on.
"""

from decimal import Decimal, InvalidOperation
from typing import Mapping, Optional
from uuid import UUID

from loonie.config import get_currency_table, get_settings
from loonie.models.group import (
    DESCRIPTION_MAX_LENGTH,
    EMOJI_MAX_LENGTH,
    NAME_MAX_LENGTH,
    Expense,
    ExpenseCategory,
    GroupSnapshot,
    ValidationIssue,
    ValidationResult,
)
from loonie.models.ledger import CurrencyInfo
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


def parse_amount(raw: object) -> Decimal:
    """
    Parse a user-entered amount into a Decimal.

    Accepts Decimal, int, float and numeric strings ("12.50", " 3 ").

    Raises:
        InvalidExpenseAmountError: If the value is missing, not a number,
            NaN/infinite, or not greater than zero
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise InvalidExpenseAmountError(raw, "amount is required")

    # bool is an int subclass; True is not an amount
    if isinstance(raw, bool):
        raise InvalidExpenseAmountError(raw, "not a number")

    if isinstance(raw, Decimal):
        amount = raw
    elif isinstance(raw, (int, float, str)):
        try:
            amount = Decimal(str(raw).strip())
        except InvalidOperation:
            raise InvalidExpenseAmountError(raw, "not a number")
    else:
        raise InvalidExpenseAmountError(raw, "not a number")

    if not amount.is_finite():
        raise InvalidExpenseAmountError(raw, "must be a finite number")
    if amount <= 0:
        raise InvalidExpenseAmountError(raw, "must be greater than zero")

    return amount


def parse_category(raw: Optional[str]) -> ExpenseCategory:
    """Empty means 'Other'. Accepts the label ('Transport') or the enum name ('TRANSPORT')."""
    if isinstance(raw, ExpenseCategory):
        return raw
    if raw is None or not str(raw).strip():
        return ExpenseCategory.OTHER

    value = str(raw).strip()
    try:
        return ExpenseCategory(value)
    except ValueError:
        pass
    try:
        return ExpenseCategory[value.upper()]
    except KeyError:
        raise InvalidCategoryError(value, [c.value for c in ExpenseCategory])


class EntryValidator:
    """
    Validates groups, members and expenses before they are written.

    Works against a GroupSnapshot so checks such as "is the payer a member"
    see the same data the ledger will.
    """

    def __init__(
        self,
        currency_table: Optional[Mapping[str, CurrencyInfo]] = None,
    ):
        """
        Args:
            currency_table: Supported currencies.
                            Defaults to the configured table.
        """
        self._currencies = currency_table if currency_table is not None else get_currency_table()
        self._settings = get_settings().ledger

    # -------------------------------------------------------------------------
    # Currencies
    # -------------------------------------------------------------------------

    def check_currency(self, currency: str) -> str:
        """Return the upper-cased code, or raise UnsupportedCurrencyError."""
        code = (currency or "").strip().upper()
        if code not in self._currencies:
            raise UnsupportedCurrencyError(currency, list(self._currencies))
        return code

    # -------------------------------------------------------------------------
    # Groups
    # -------------------------------------------------------------------------

    def check_group_name(self, name: Optional[str]) -> str:
        """Return the stripped group name."""
        cleaned = (name or "").strip()
        if not cleaned:
            raise MissingGroupNameError()
        if len(cleaned) > NAME_MAX_LENGTH:
            raise TextTooLongError("name", cleaned, NAME_MAX_LENGTH)
        return cleaned

    def check_emoji(self, emoji: str) -> str:
        cleaned = emoji.strip()
        if len(cleaned) > EMOJI_MAX_LENGTH:
            raise TextTooLongError("emoji", cleaned, EMOJI_MAX_LENGTH)
        return cleaned

    # -------------------------------------------------------------------------
    # Members
    # -------------------------------------------------------------------------

    def check_member_name(
        self,
        snapshot: GroupSnapshot,
        name: str,
        member_id: Optional[UUID] = None,
    ) -> str:
        """
        Validate a new or changed member name.

        Empty names are allowed (placeholder rows). A non-empty name must
        not be used by any other member of the group.

        Args:
            snapshot: Current state of the group
            name: Proposed name
            member_id: The member being renamed, if any

        Returns:
            The stripped name
        """
        cleaned = (name or "").strip()
        if not cleaned:
            return cleaned
        if len(cleaned) > NAME_MAX_LENGTH:
            raise TextTooLongError("name", cleaned, NAME_MAX_LENGTH)

        for member in snapshot.members:
            if member.id != member_id and member.name == cleaned:
                raise DuplicateMemberNameError(cleaned)

        return cleaned

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    def _check_expense(
        self,
        snapshot: GroupSnapshot,
        amount: object,
        paid_by: Optional[str],
        description: Optional[str],
        currency: Optional[str],
        category: Optional[str],
    ) -> tuple[dict, list[LedgerInputError], list[ValidationIssue]]:
        """
        Run every expense check and collect the results.

        Returns: (parsed_fields, errors, warnings)
        """
        parsed: dict = {}
        errors: list[LedgerInputError] = []
        warnings: list[ValidationIssue] = []

        try:
            parsed["amount"] = parse_amount(amount)
        except InvalidExpenseAmountError as e:
            errors.append(e)

        names = snapshot.member_names
        payer = (paid_by or "").strip()
        if not names:
            errors.append(EmptyGroupError())
        elif payer not in names:
            errors.append(UnknownPayerError(payer, names))
        else:
            parsed["paid_by"] = payer

        text = (description or "").strip()
        if not text:
            errors.append(MissingDescriptionError())
        elif len(text) > DESCRIPTION_MAX_LENGTH:
            errors.append(TextTooLongError("description", text, DESCRIPTION_MAX_LENGTH))
        else:
            parsed["description"] = text

        try:
            parsed["currency"] = self.check_currency(
                currency or self._settings.default_currency
            )
        except UnsupportedCurrencyError as e:
            errors.append(e)

        try:
            parsed["category"] = parse_category(category)
        except InvalidCategoryError as e:
            errors.append(e)

        # Suspicious but allowed
        max_amount = self._settings.max_expense_amount
        if "amount" in parsed and parsed["amount"] > max_amount:
            warnings.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({parsed['amount']:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        return parsed, errors, warnings

    def check_expense(
        self,
        snapshot: GroupSnapshot,
        amount: object,
        paid_by: Optional[str],
        description: Optional[str],
        currency: Optional[str] = None,
        category: Optional[str] = None,
    ) -> tuple[Optional[Expense], list[LedgerInputError], ValidationResult]:
        """
        Run every expense check once.

        Returns:
            (expense, errors, result). expense is None when errors is not
            empty; result lists every error and warning as ValidationIssues.
        """
        parsed, errors, warnings = self._check_expense(
            snapshot, amount, paid_by, description, currency, category
        )
        result = ValidationResult(
            is_valid=not errors,
            issues=[e.to_issue() for e in errors] + warnings,
        )
        if errors:
            return None, errors, result

        return Expense(group_id=snapshot.group_id, **parsed), errors, result

    def validate_expense(
        self,
        snapshot: GroupSnapshot,
        amount: object,
        paid_by: Optional[str],
        description: Optional[str],
        currency: Optional[str] = None,
        category: Optional[str] = None,
    ) -> ValidationResult:
        """
        Check a proposed expense without raising.

        Returns:
            ValidationResult with every issue found
        """
        _, _, result = self.check_expense(
            snapshot, amount, paid_by, description, currency, category
        )
        return result

    def build_expense(
        self,
        snapshot: GroupSnapshot,
        amount: object,
        paid_by: Optional[str],
        description: Optional[str],
        currency: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Expense:
        """
        Validate user input and build the Expense to store.

        Raises:
            LedgerInputError: The first blocking problem found
                (InvalidExpenseAmountError, EmptyGroupError, UnknownPayerError, ...)
        """
        expense, errors, _ = self.check_expense(
            snapshot, amount, paid_by, description, currency, category
        )
        if errors:
            raise errors[0]
        return expense

    # -------------------------------------------------------------------------
    # Loaded data
    # -------------------------------------------------------------------------

    def review_snapshot(self, snapshot: GroupSnapshot) -> ValidationResult:
        """
        Look for data the ledger will accept but handle in a surprising way.

        Never blocks: the ledger is total over any snapshot. Reports
        an empty group and expenses whose payer is no longer a named
        member (renamed or removed after the expense was logged).
        """
        issues = []
        names = set(snapshot.member_names)

        if not snapshot.members:
            issues.append(ValidationIssue(
                field="members",
                issue_type="empty_group",
                message="The group has no members; there is nothing to split",
                severity="info",
            ))

        for expense in snapshot.expenses:
            if expense.paid_by not in names:
                issues.append(ValidationIssue(
                    field="paid_by",
                    issue_type="orphaned_payer",
                    message=(
                        f"'{expense.description}' was paid by '{expense.paid_by}', "
                        "who is no longer in the group"
                    ),
                    severity="warning",
                    suggested_fix="Delete the expense and log it again with a current member",
                ))

        return ValidationResult(is_valid=True, issues=issues)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """
        Generate a short, readable summary of validation results.
        """
        if not result.issues:
            return "✅ All checks passed."

        lines = []

        if result.has_errors:
            lines.append("❌ Please fix the following:")
            for issue in result.errors:
                lines.append(f"   • {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
