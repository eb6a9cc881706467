"""
Abstract Storage Interfaces

DESIGN DECISION: We define abstract interfaces for storage operations.
This allows us to:
1. Keep expenses on the device or on the API server, selected by configuration
2. Share one set of workflows between both backends
3. Test every workflow against a temporary local store

The interfaces are intentionally simple - we're not building a full ORM.
Just the operations the budget screens need.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from pocketbudget.models.expense import (
    BudgetConfiguration,
    BudgetType,
    Expense,
    ExpenseDraft,
    ExpensePatch,
)


class ExpenseStoreInterface(ABC):
    """
    Abstract interface for expense storage operations.

    Any storage implementation (local document, database, HTTP API)
    must implement these methods. Every mutating call has persisted
    its change by the time it returns.
    """

    @abstractmethod
    async def list_expenses(self) -> list[Expense]:
        """
        List all expenses.

        Returns:
            Expenses in store order (insertion order or ascending id).
            Callers sort for display.

        Raises:
            StorageUnavailableError: If the store cannot be read
        """
        pass

    @abstractmethod
    async def create_expense(self, draft: ExpenseDraft) -> Expense:
        """
        Persist a new expense.

        Args:
            draft: Validated expense data. A missing date means "now".

        Returns:
            The stored expense with its assigned id

        Raises:
            StorageUnavailableError: If the write fails
        """
        pass

    @abstractmethod
    async def update_expense(self, expense_id: str, patch: ExpensePatch) -> Expense:
        """
        Merge-patch an existing expense.

        Args:
            expense_id: The expense's identifier
            patch: Fields to change; unset fields are left untouched

        Returns:
            The updated expense

        Raises:
            NotFoundError: If the expense doesn't exist
            StorageUnavailableError: If the write fails
        """
        pass

    @abstractmethod
    async def delete_expense(self, expense_id: str) -> None:
        """
        Delete an expense by ID.

        Raises:
            NotFoundError: If the expense doesn't exist
            StorageUnavailableError: If the write fails
        """
        pass

    @abstractmethod
    async def clear_expenses(self) -> None:
        """
        Remove every expense. Irreversible and idempotent.

        Raises:
            StorageUnavailableError: If the write fails
        """
        pass

    async def get_expense(self, expense_id: str) -> Optional[Expense]:
        """Retrieve an expense by its ID, or None."""
        for expense in await self.list_expenses():
            if expense.id == str(expense_id):
                return expense
        return None


class BudgetConfigStoreInterface(ABC):
    """
    Abstract interface for the budget configuration.

    The reset marker lets a "start a new budget period" reset span the
    configuration store and the expense store: it is written first and
    removed together with the configuration, so an interrupted reset
    can be detected and finished.
    """

    @abstractmethod
    async def get_type(self) -> Optional[BudgetType]:
        pass

    @abstractmethod
    async def set_type(self, budget_type: BudgetType) -> None:
        pass

    @abstractmethod
    async def get_amount(self) -> Optional[Decimal]:
        pass

    @abstractmethod
    async def set_amount(self, amount: Decimal) -> None:
        """
        Store the budget amount.

        Raises:
            InvalidArgumentError: If amount is not > 0
        """
        pass

    @abstractmethod
    async def mark_reset_pending(self) -> None:
        """Record that a reset has started."""
        pass

    @abstractmethod
    async def is_reset_pending(self) -> bool:
        pass

    @abstractmethod
    async def clear_configuration(self) -> None:
        """Remove type, amount and the reset marker in one atomic write."""
        pass

    async def get_configuration(self) -> BudgetConfiguration:
        return BudgetConfiguration(
            type=await self.get_type(),
            amount=await self.get_amount(),
        )


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class StorageUnavailableError(StorageError):
    """The underlying store could not be read or written."""
    pass
