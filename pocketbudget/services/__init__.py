"""Services package."""

from pocketbudget.services.storage import (
    BudgetConfigStoreInterface,
    ExpenseStoreInterface,
    HttpExpenseStore,
    LocalBudgetConfigStore,
    LocalExpenseStore,
    NotFoundError,
    SqlExpenseStore,
    StorageError,
    StorageUnavailableError,
)

__all__ = [
    "BudgetConfigStoreInterface",
    "ExpenseStoreInterface",
    "HttpExpenseStore",
    "LocalBudgetConfigStore",
    "LocalExpenseStore",
    "NotFoundError",
    "SqlExpenseStore",
    "StorageError",
    "StorageUnavailableError",
]
