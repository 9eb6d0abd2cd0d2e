"""
Data Models Package

This package contains all Pydantic models used in Loonie.
All data flowing through the system must conform to these schemas.
"""

from loonie.models.group import (
    ColorScheme,
    Expense,
    ExpenseCategory,
    Group,
    GroupSnapshot,
    Member,
    ValidationIssue,
    ValidationResult,
)
from loonie.models.ledger import (
    CurrencyAmount,
    CurrencyInfo,
    LedgerSummary,
    Settlement,
)
from loonie.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Group models
    "ColorScheme",
    "Expense",
    "ExpenseCategory",
    "Group",
    "GroupSnapshot",
    "Member",
    "ValidationIssue",
    "ValidationResult",
    # Ledger models
    "CurrencyAmount",
    "CurrencyInfo",
    "LedgerSummary",
    "Settlement",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
