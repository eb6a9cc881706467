"""
Local Key-Value Storage Implementation

DESIGN DECISION: The on-device store is a single JSON document of
string values, keyed exactly like the mobile app's storage:

    budget_type     "weekly" | "monthly"
    budget_amount   decimal as string, e.g. "1000.00"
    expenses        JSON list of expense objects

TRADEOFFS:
- Every operation re-reads the document, so several screens can share it
  without a cache going stale
- Every write replaces the whole document through a temporary file and
  os.replace, so a crash never leaves a half-written file behind
- Malformed content is treated as empty rather than crashing the app;
  each recovery is logged
"""

import json
import os
import tempfile
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional, Union
from uuid import uuid4

import structlog
from pydantic import ValidationError

from pocketbudget.models.expense import (
    BudgetType,
    Expense,
    ExpenseDraft,
    ExpensePatch,
)
from pocketbudget.services.storage.interface import (
    BudgetConfigStoreInterface,
    ExpenseStoreInterface,
    NotFoundError,
    StorageUnavailableError,
)
from pocketbudget.validation.validator import InvalidArgumentError

logger = structlog.get_logger(__name__)

BUDGET_TYPE_KEY = "budget_type"
BUDGET_AMOUNT_KEY = "budget_amount"
EXPENSES_KEY = "expenses"
RESET_PENDING_KEY = "budget_reset_pending"


class JsonKeyValueStore:
    """
    Low-level key-value document on disk.

    Values are strings; writing None removes a key.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def read_all(self) -> dict[str, str]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise StorageUnavailableError(f"Failed to read {self._path}: {e}")

        if not text.strip():
            return {}

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning("local_store_corrupt", path=str(self._path), error=str(e))
            return {}

        if not isinstance(data, dict):
            logger.warning("local_store_corrupt", path=str(self._path), error="not an object")
            return {}

        values = {}
        for key, value in data.items():
            if isinstance(value, str):
                values[key] = value
            else:
                logger.warning("local_store_value_dropped", key=key)
        return values

    def get(self, key: str) -> Optional[str]:
        return self.read_all().get(key)

    def write(self, changes: dict[str, Optional[str]]) -> None:
        """
        Apply changes in one atomic replace of the document.

        Raises:
            StorageUnavailableError: If the document cannot be written
        """
        data = self.read_all()
        for key, value in changes.items():
            if value is None:
                data.pop(key, None)
            else:
                data[key] = value

        directory = self._path.parent
        tmp_name = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=directory,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                json.dump(data, tmp, ensure_ascii=False, indent=2)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self._path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageUnavailableError(f"Failed to write {self._path}: {e}")


class LocalExpenseStore(ExpenseStoreInterface):
    """
    Expenses kept in the `expenses` key of the local document.

    Expenses are listed in insertion order.
    """

    def __init__(self, kv_store: JsonKeyValueStore):
        self._kv = kv_store

    def _load(self) -> list[Expense]:
        raw = self._kv.get(EXPENSES_KEY)
        if raw is None:
            return []

        try:
            items = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("local_expenses_corrupt", error=str(e))
            return []

        if not isinstance(items, list):
            logger.warning("local_expenses_corrupt", error="not a list")
            return []

        expenses = []
        for index, item in enumerate(items):
            try:
                expenses.append(Expense.model_validate(item))
            except ValidationError as e:
                # Skip malformed entries
                logger.warning(
                    "local_expense_skipped",
                    index=index,
                    error_count=e.error_count(),
                )
        return expenses

    def _save(self, expenses: list[Expense]) -> None:
        payload = json.dumps(
            [expense.model_dump(mode="json") for expense in expenses],
            ensure_ascii=False,
        )
        self._kv.write({EXPENSES_KEY: payload})

    async def list_expenses(self) -> list[Expense]:
        return self._load()

    async def create_expense(self, draft: ExpenseDraft) -> Expense:
        expenses = self._load()
        existing_ids = {expense.id for expense in expenses}

        expense_id = uuid4().hex
        while expense_id in existing_ids:
            expense_id = uuid4().hex

        expense = draft.to_expense(expense_id)
        expenses.append(expense)
        self._save(expenses)
        return expense

    async def update_expense(self, expense_id: str, patch: ExpensePatch) -> Expense:
        expenses = self._load()
        for index, expense in enumerate(expenses):
            if expense.id == str(expense_id):
                updated = patch.apply_to(expense)
                expenses[index] = updated
                self._save(expenses)
                return updated

        raise NotFoundError(f"Expense not found: {expense_id}")

    async def delete_expense(self, expense_id: str) -> None:
        expenses = self._load()
        remaining = [e for e in expenses if e.id != str(expense_id)]
        if len(remaining) == len(expenses):
            raise NotFoundError(f"Expense not found: {expense_id}")
        self._save(remaining)

    async def clear_expenses(self) -> None:
        self._kv.write({EXPENSES_KEY: "[]"})


class LocalBudgetConfigStore(BudgetConfigStoreInterface):
    """Budget type and amount kept in the local document."""

    def __init__(self, kv_store: JsonKeyValueStore):
        self._kv = kv_store

    async def get_type(self) -> Optional[BudgetType]:
        raw = self._kv.get(BUDGET_TYPE_KEY)
        if raw is None:
            return None
        try:
            return BudgetType(raw)
        except ValueError:
            logger.warning("local_budget_type_invalid", value=raw)
            return None

    async def set_type(self, budget_type: BudgetType) -> None:
        self._kv.write({BUDGET_TYPE_KEY: BudgetType(budget_type).value})

    async def get_amount(self) -> Optional[Decimal]:
        raw = self._kv.get(BUDGET_AMOUNT_KEY)
        if raw is None:
            return None
        try:
            amount = Decimal(raw)
        except InvalidOperation:
            logger.warning("local_budget_amount_invalid", value=raw)
            return None
        if not amount.is_finite() or amount <= 0:
            logger.warning("local_budget_amount_invalid", value=raw)
            return None
        return amount

    async def set_amount(self, amount: Decimal) -> None:
        if not isinstance(amount, Decimal) or not amount.is_finite() or amount <= 0:
            raise InvalidArgumentError.single(
                "budget_amount",
                "invalid_value",
                "Budget amount must be greater than zero",
            )
        self._kv.write({BUDGET_AMOUNT_KEY: str(amount)})

    async def mark_reset_pending(self) -> None:
        self._kv.write({RESET_PENDING_KEY: "true"})

    async def is_reset_pending(self) -> bool:
        return self._kv.get(RESET_PENDING_KEY) is not None

    async def clear_configuration(self) -> None:
        self._kv.write({
            BUDGET_TYPE_KEY: None,
            BUDGET_AMOUNT_KEY: None,
            RESET_PENDING_KEY: None,
        })
