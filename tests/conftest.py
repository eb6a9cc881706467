"""Shared fixtures for the Pocket Budget tests."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import create_engine

from pocketbudget.models.expense import Expense, ExpenseCategory
from pocketbudget.services.storage import (
    JsonKeyValueStore,
    LocalBudgetConfigStore,
    LocalExpenseStore,
    SqlExpenseStore,
)

BASE_TIME = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


def make_expense(amount, minutes=0, category=ExpenseCategory.FOOD, expense_id=None, note=None):
    """Build an expense at BASE_TIME + minutes."""
    return Expense(
        id=expense_id or f"e{minutes}-{amount}",
        amount=Decimal(str(amount)),
        category=category,
        note=note,
        date=BASE_TIME + timedelta(minutes=minutes),
    )


@pytest.fixture
def kv_store(tmp_path):
    return JsonKeyValueStore(tmp_path / "data.json")


@pytest.fixture
def local_expense_store(kv_store):
    return LocalExpenseStore(kv_store)


@pytest.fixture
def local_config_store(kv_store):
    return LocalBudgetConfigStore(kv_store)


@pytest.fixture
def sql_store(tmp_path):
    # Flask runs async views on a worker thread
    engine = create_engine(
        f"sqlite:///{tmp_path / 'expenses.db'}",
        connect_args={"check_same_thread": False},
    )
    store = SqlExpenseStore(engine=engine)
    store.connect()
    yield store
    store.dispose()
