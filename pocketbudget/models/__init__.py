"""
Data Models Package

This package contains all Pydantic models used in Pocket Budget.
All data flowing through the system must conform to these schemas.
"""

from pocketbudget.models.expense import (
    BudgetConfiguration,
    BudgetSnapshot,
    BudgetStatus,
    BudgetType,
    Expense,
    ExpenseCategory,
    ExpenseDraft,
    ExpensePatch,
    ValidationIssue,
    ValidationResult,
    normalize_timestamp,
    utc_now,
)
from pocketbudget.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense and budget models
    "BudgetConfiguration",
    "BudgetSnapshot",
    "BudgetStatus",
    "BudgetType",
    "Expense",
    "ExpenseCategory",
    "ExpenseDraft",
    "ExpensePatch",
    "ValidationIssue",
    "ValidationResult",
    "normalize_timestamp",
    "utc_now",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
