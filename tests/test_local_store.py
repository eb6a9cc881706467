"""Tests for the on-device key-value stores."""

import asyncio
import json
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from pocketbudget.models.expense import BudgetType, ExpenseCategory, ExpenseDraft, ExpensePatch
from pocketbudget.services.storage import (
    JsonKeyValueStore,
    LocalExpenseStore,
    NotFoundError,
    StorageUnavailableError,
)
from pocketbudget.validation import InvalidArgumentError


def draft(amount, category="Food", note=None, date=None):
    return ExpenseDraft(amount=Decimal(str(amount)), category=category, note=note, date=date)


class TestJsonKeyValueStore:
    """Tests for the low-level document."""

    def test_missing_file_is_empty(self, kv_store):
        assert kv_store.read_all() == {}

    def test_write_and_read(self, kv_store):
        kv_store.write({"budget_type": "weekly"})
        assert kv_store.get("budget_type") == "weekly"

    def test_none_removes_key(self, kv_store):
        kv_store.write({"a": "1", "b": "2"})
        kv_store.write({"a": None})
        assert kv_store.read_all() == {"b": "2"}

    def test_corrupt_document_reads_as_empty(self, kv_store):
        kv_store.path.write_text("{not json", encoding="utf-8")
        assert kv_store.read_all() == {}

    def test_non_object_document_reads_as_empty(self, kv_store):
        kv_store.path.write_text("[1, 2]", encoding="utf-8")
        assert kv_store.read_all() == {}

    def test_non_string_values_are_dropped(self, kv_store):
        kv_store.path.write_text(json.dumps({"a": "ok", "b": 5}), encoding="utf-8")
        assert kv_store.read_all() == {"a": "ok"}

    def test_write_leaves_no_temporary_files(self, kv_store):
        kv_store.write({"a": "1"})
        assert [p.name for p in kv_store.path.parent.iterdir()] == [kv_store.path.name]

    def test_unwritable_location_raises(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("x", encoding="utf-8")
        store = JsonKeyValueStore(blocker / "data.json")
        with pytest.raises(StorageUnavailableError):
            store.write({"a": "1"})


class TestLocalExpenseStore:
    """Tests for expenses in the local document."""

    def test_create_assigns_unique_ids(self, local_expense_store):
        first = asyncio.run(local_expense_store.create_expense(draft(10)))
        second = asyncio.run(local_expense_store.create_expense(draft(20)))
        assert first.id != second.id

    def test_create_defaults_date(self, local_expense_store):
        expense = asyncio.run(local_expense_store.create_expense(draft(10)))
        assert expense.date.tzinfo is not None
        assert expense.date.microsecond == 0

    def test_list_in_insertion_order(self, local_expense_store):
        for amount in (1, 2, 3):
            asyncio.run(local_expense_store.create_expense(draft(amount)))
        expenses = asyncio.run(local_expense_store.list_expenses())
        assert [e.amount for e in expenses] == [Decimal(1), Decimal(2), Decimal(3)]

    def test_persists_across_instances(self, kv_store):
        when = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)
        created = asyncio.run(LocalExpenseStore(kv_store).create_expense(
            draft("120.50", "School Supplies", "notebooks", when)
        ))
        reloaded = asyncio.run(LocalExpenseStore(kv_store).list_expenses())
        assert reloaded == [created]

    def test_update_merges_fields(self, local_expense_store):
        expense = asyncio.run(local_expense_store.create_expense(draft(10, note="bus")))
        updated = asyncio.run(local_expense_store.update_expense(
            expense.id, ExpensePatch(category=ExpenseCategory.TRANSPORTATION)
        ))
        assert updated.category == ExpenseCategory.TRANSPORTATION
        assert updated.note == "bus"
        assert updated.date == expense.date
        assert asyncio.run(local_expense_store.get_expense(expense.id)) == updated

    def test_update_missing_raises(self, local_expense_store):
        with pytest.raises(NotFoundError):
            asyncio.run(local_expense_store.update_expense("nope", ExpensePatch(note="x")))

    def test_delete(self, local_expense_store):
        keep = asyncio.run(local_expense_store.create_expense(draft(1)))
        gone = asyncio.run(local_expense_store.create_expense(draft(2)))
        asyncio.run(local_expense_store.delete_expense(gone.id))
        assert asyncio.run(local_expense_store.list_expenses()) == [keep]

    def test_delete_missing_raises_and_keeps_list(self, local_expense_store):
        expense = asyncio.run(local_expense_store.create_expense(draft(1)))
        with pytest.raises(NotFoundError):
            asyncio.run(local_expense_store.delete_expense("nope"))
        assert asyncio.run(local_expense_store.list_expenses()) == [expense]

    def test_clear_is_idempotent(self, local_expense_store):
        asyncio.run(local_expense_store.create_expense(draft(1)))
        asyncio.run(local_expense_store.clear_expenses())
        asyncio.run(local_expense_store.clear_expenses())
        assert asyncio.run(local_expense_store.list_expenses()) == []

    def test_corrupt_expenses_blob_reads_as_empty(self, kv_store, local_expense_store):
        kv_store.write({"expenses": "{broken"})
        assert asyncio.run(local_expense_store.list_expenses()) == []

    def test_malformed_entries_are_skipped(self, kv_store, local_expense_store):
        """Test that one bad entry does not hide the rest."""
        kv_store.write({"expenses": json.dumps([
            {"id": "a", "amount": "10", "category": "Food", "date": "2024-05-01T09:30:00Z"},
            {"id": "b", "amount": "-3", "category": "Food", "date": "2024-05-01T09:30:00Z"},
            {"id": "c", "amount": "5", "category": "🎬 Entertainment", "date": "2024-05-01T10:00:00Z"},
        ])})
        expenses = asyncio.run(local_expense_store.list_expenses())
        assert [e.id for e in expenses] == ["a", "c"]
        assert expenses[1].category == ExpenseCategory.ENTERTAINMENT


class TestLocalBudgetConfigStore:
    """Tests for the budget configuration keys."""

    def test_unset_configuration(self, local_config_store):
        config = asyncio.run(local_config_store.get_configuration())
        assert config.type is None
        assert config.amount is None

    def test_set_and_get(self, local_config_store, kv_store):
        asyncio.run(local_config_store.set_type(BudgetType.MONTHLY))
        asyncio.run(local_config_store.set_amount(Decimal("1500.00")))
        config = asyncio.run(local_config_store.get_configuration())
        assert config.type == BudgetType.MONTHLY
        assert config.amount == Decimal("1500.00")
        assert kv_store.get("budget_amount") == "1500.00"

    @pytest.mark.parametrize("amount", [Decimal(0), Decimal(-1), Decimal("NaN")])
    def test_set_amount_rejects_non_positive(self, local_config_store, amount):
        with pytest.raises(InvalidArgumentError):
            asyncio.run(local_config_store.set_amount(amount))

    def test_invalid_stored_values_read_as_unset(self, kv_store, local_config_store):
        kv_store.write({"budget_type": "yearly", "budget_amount": "lots"})
        config = asyncio.run(local_config_store.get_configuration())
        assert config.type is None
        assert config.amount is None

    def test_reset_marker(self, kv_store, local_config_store):
        asyncio.run(local_config_store.set_type(BudgetType.WEEKLY))
        asyncio.run(local_config_store.mark_reset_pending())
        assert asyncio.run(local_config_store.is_reset_pending())

        asyncio.run(local_config_store.clear_configuration())
        assert not asyncio.run(local_config_store.is_reset_pending())
        assert asyncio.run(local_config_store.get_type()) is None

    def test_clear_configuration_keeps_expenses(self, kv_store, local_config_store, local_expense_store):
        asyncio.run(local_expense_store.create_expense(draft(5)))
        asyncio.run(local_config_store.set_type(BudgetType.WEEKLY))
        asyncio.run(local_config_store.clear_configuration())
        assert len(asyncio.run(local_expense_store.list_expenses())) == 1
