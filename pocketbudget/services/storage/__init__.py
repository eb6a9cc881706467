"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Expenses live either in the local key-value document or behind the HTTP API
(which stores them in a relational table); the budget configuration always
lives in the local document.
"""

from pocketbudget.services.storage.interface import (
    BudgetConfigStoreInterface,
    ExpenseStoreInterface,
    NotFoundError,
    StorageError,
    StorageUnavailableError,
)
from pocketbudget.services.storage.local import (
    JsonKeyValueStore,
    LocalBudgetConfigStore,
    LocalExpenseStore,
)
from pocketbudget.services.storage.api_client import HttpExpenseStore
from pocketbudget.services.storage.sql import ExpenseRecord, SqlExpenseStore

__all__ = [
    # Interfaces
    "BudgetConfigStoreInterface",
    "ExpenseStoreInterface",
    # Exceptions
    "NotFoundError",
    "StorageError",
    "StorageUnavailableError",
    # Local document implementation
    "JsonKeyValueStore",
    "LocalBudgetConfigStore",
    "LocalExpenseStore",
    # HTTP implementation
    "HttpExpenseStore",
    # Relational implementation
    "ExpenseRecord",
    "SqlExpenseStore",
]
