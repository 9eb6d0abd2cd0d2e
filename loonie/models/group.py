"""
Core Data Models for Loonie

These models define the strict schemas for groups, members and expenses.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging
4. Be immutable, so a snapshot can be shared without copying

DESIGN DECISION: Every entity model is frozen. An edit (e.g. renaming a
member) produces a new instance via model_copy(update=...), and the ledger
only ever sees an immutable GroupSnapshot.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    Supported expense categories.

    Values are the labels shown to users, so they are stored verbatim.
    """
    FOOD_AND_DRINKS = "Food & Drinks"
    RENT_HOUSING = "Rent/Housing"
    TRANSPORT = "Transport"
    ENTERTAINMENT = "Entertainment"
    SHOPPING = "Shopping"
    OTHER = "Other"


class ColorScheme(str, Enum):
    """Color theme picked when the group is created."""
    INDIGO_PURPLE = "indigo-purple"
    RUBY_RED = "ruby-red"
    EMERALD_TEAL = "emerald-teal"
    AMBER_ORANGE = "amber-orange"
    BLUE_CYAN = "blue-cyan"


CURRENCY_CODE_PATTERN = "^[A-Z]{3}$"

# Text limits, shared with loonie.validation
NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 200
EMOJI_MAX_LENGTH = 16


# =============================================================================
# GROUP, MEMBER, EXPENSE
# =============================================================================

class Group(BaseModel):
    """
    A shared group. Anyone holding the group id can see and edit it.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique group ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=NAME_MAX_LENGTH,
        description="Group name (required)"
    )
    emoji: str = Field(
        default="🍔",
        min_length=1,
        max_length=EMOJI_MAX_LENGTH,
    )
    color_scheme: ColorScheme = Field(
        default=ColorScheme.INDIGO_PURPLE,
        description="Color theme"
    )
    currency_default: str = Field(
        default="USD",
        pattern=CURRENCY_CODE_PATTERN,
        description="Currency pre-selected for new expenses"
    )
    created_at: datetime = Field(
        default_factory=datetime.utcnow
    )


class Member(BaseModel):
    """
    A person in a group.

    An empty name is a placeholder row that is still being edited. It counts
    toward the group size but holds no balance.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique, stable member ID"
    )
    group_id: UUID
    name: str = Field(
        default="",
        max_length=NAME_MAX_LENGTH,
        description="Display name (empty means unnamed)"
    )
    created_at: datetime = Field(
        default_factory=datetime.utcnow
    )

    @property
    def is_named(self) -> bool:
        return bool(self.name)

    @property
    def initials(self) -> str:
        """Up to two initials for avatars, e.g. 'Mary Ann Smith' -> 'MA'."""
        return "".join(part[0] for part in self.name.split()).upper()[:2]


class Expense(BaseModel):
    """
    A shared expense paid by one member and split across the whole group.

    CRITICAL: The payer is referenced by name, not id. The validator makes
    sure the name belongs to a named member when the expense is created.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique expense ID"
    )
    group_id: UUID
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount paid, in units of `currency`"
    )
    currency: str = Field(
        default="USD",
        pattern=CURRENCY_CODE_PATTERN,
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=DESCRIPTION_MAX_LENGTH,
        description="What the expense was for"
    )
    category: ExpenseCategory = Field(
        default=ExpenseCategory.OTHER
    )
    paid_by: str = Field(
        ...,
        min_length=1,
        max_length=NAME_MAX_LENGTH,
        description="Name of the member who paid"
    )
    created_at: datetime = Field(
        default_factory=datetime.utcnow
    )

    @field_validator('amount')
    @classmethod
    def validate_finite(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("Amount must be a finite number")
        return v


class GroupSnapshot(BaseModel):
    """
    Immutable view of one group's members and expenses at a point in time.

    This is the only input the ledger needs. Members keep their creation
    order, which decides the order of balances and settlements.
    """
    model_config = ConfigDict(frozen=True)

    group_id: UUID
    members: tuple[Member, ...] = ()
    expenses: tuple[Expense, ...] = ()
    taken_at: datetime = Field(
        default_factory=datetime.utcnow
    )

    @model_validator(mode='after')
    def validate_membership(self) -> 'GroupSnapshot':
        """Everything in a snapshot must belong to the same group."""
        member_ids = set()
        for member in self.members:
            if member.group_id != self.group_id:
                raise ValueError(f"Member {member.id} belongs to another group")
            if member.id in member_ids:
                raise ValueError(f"Duplicate member id: {member.id}")
            member_ids.add(member.id)

        for expense in self.expenses:
            if expense.group_id != self.group_id:
                raise ValueError(f"Expense {expense.id} belongs to another group")

        return self

    @property
    def named_members(self) -> list[Member]:
        return [m for m in self.members if m.is_named]

    @property
    def member_names(self) -> list[str]:
        return [m.name for m in self.named_members]

    def find_member(self, member_id: UUID) -> Optional[Member]:
        for member in self.members:
            if member.id == member_id:
                return member
        return None


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'invalid_amount', 'unknown_payer')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """
    Result of validating user input before it is written.

    Errors block the write. Warnings are shown but don't block.
    """

    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "error"]

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")
