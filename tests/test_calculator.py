"""Tests for the pure budget calculations."""

import random
from decimal import Decimal

import pytest

from pocketbudget.calculator import (
    allowance_period,
    budget_status,
    build_snapshot,
    percentage_used,
    recent_expenses,
    remaining,
    sort_expenses,
    spending_by_category,
    suggested_periodic_allowance,
    total_spent,
)
from pocketbudget.models.expense import (
    BudgetConfiguration,
    BudgetStatus,
    BudgetType,
    ExpenseCategory,
)

from tests.conftest import make_expense


def weekly(amount):
    return BudgetConfiguration(type=BudgetType.WEEKLY, amount=Decimal(str(amount)))


def monthly(amount):
    return BudgetConfiguration(type=BudgetType.MONTHLY, amount=Decimal(str(amount)))


class TestTotals:
    """Tests for total and remaining."""

    def test_total_spent(self):
        expenses = [make_expense(300, 1), make_expense(300, 2), make_expense(300, 3)]
        assert total_spent(expenses) == Decimal("900.00")

    def test_total_spent_empty(self):
        assert total_spent([]) == Decimal("0.00")

    def test_total_has_no_float_drift(self):
        """Test that cents add up exactly."""
        expenses = [make_expense("0.10", i) for i in range(3)]
        assert total_spent(expenses) == Decimal("0.30")

    def test_total_is_order_independent(self):
        expenses = [make_expense(f"{i}.{i:02d}", i) for i in range(1, 40)]
        shuffled = list(expenses)
        random.Random(7).shuffle(shuffled)
        assert total_spent(expenses) == total_spent(shuffled)

    def test_remaining_may_be_negative(self):
        expenses = [make_expense(600, 1), make_expense(500, 2)]
        assert remaining(weekly(1000), expenses) == Decimal("-100.00")

    def test_remaining_without_budget_is_none(self):
        assert remaining(BudgetConfiguration(), [make_expense(10)]) is None

    def test_remaining_with_zero_budget_is_none(self):
        assert remaining(weekly(0), [make_expense(10)]) is None

    def test_remaining_decreases_as_expenses_are_added(self):
        """Test that adding an expense never increases remaining."""
        config = monthly(5000)
        expenses = []
        previous = remaining(config, expenses)
        for i in range(1, 10):
            expenses.append(make_expense(i * 37, i))
            current = remaining(config, expenses)
            assert current < previous
            previous = current


class TestPercentageAndStatus:
    """Tests for percentage used and status classification."""

    def test_percentage(self):
        assert percentage_used(weekly(1000), [make_expense(250)]) == Decimal(25)

    def test_percentage_without_budget_is_none(self):
        assert percentage_used(BudgetConfiguration(type=BudgetType.WEEKLY), []) is None
        assert percentage_used(weekly(0), []) is None

    def test_percentage_never_decreases_as_expenses_are_added(self):
        config = weekly(1000)
        expenses = []
        previous = percentage_used(config, expenses)
        for i in range(1, 10):
            expenses.append(make_expense(50, i))
            current = percentage_used(config, expenses)
            assert current >= previous
            previous = current

    @pytest.mark.parametrize(
        "percentage,left,expected",
        [
            (Decimal(0), Decimal(1000), BudgetStatus.GOOD),
            (Decimal("49.99"), Decimal(1), BudgetStatus.GOOD),
            (Decimal(50), Decimal(1), BudgetStatus.CAUTION),
            (Decimal(75), Decimal(1), BudgetStatus.WARNING),
            (Decimal(90), Decimal(1), BudgetStatus.CRITICAL),
            (Decimal(100), Decimal(0), BudgetStatus.CRITICAL),
            (Decimal(110), Decimal(-100), BudgetStatus.EXCEEDED),
        ],
    )
    def test_status_thresholds(self, percentage, left, expected):
        assert budget_status(percentage, left) == expected

    def test_negative_remaining_wins_over_percentage(self):
        """Test that exceeded is checked first."""
        assert budget_status(Decimal(10), Decimal("-0.01")) == BudgetStatus.EXCEEDED

    def test_status_without_budget(self):
        assert budget_status(None, None) == BudgetStatus.NO_BUDGET

    def test_weekly_900_of_1000_is_critical(self):
        """Weekly 1000 with three 300 expenses."""
        expenses = [make_expense(300, 1), make_expense(300, 2), make_expense(300, 3)]
        snapshot = build_snapshot(weekly(1000), expenses)
        assert snapshot.total_spent == Decimal("900.00")
        assert snapshot.remaining == Decimal("100.00")
        assert snapshot.percentage_used == Decimal("90.00")
        assert snapshot.status == BudgetStatus.CRITICAL
        assert snapshot.suggested_allowance == Decimal("14.29")
        assert snapshot.allowance_period == "day"

    def test_spending_exactly_the_budget_is_critical(self):
        snapshot = build_snapshot(weekly(1000), [make_expense(1000)])
        assert snapshot.remaining == Decimal("0.00")
        assert snapshot.status == BudgetStatus.CRITICAL
        assert not snapshot.is_over_budget
        assert snapshot.suggested_allowance is None

    def test_one_over_budget_is_exceeded(self):
        snapshot = build_snapshot(monthly(1000), [make_expense(600, 1), make_expense(401, 2)])
        assert snapshot.remaining == Decimal("-1.00")
        assert snapshot.status == BudgetStatus.EXCEEDED
        assert snapshot.is_over_budget


class TestAllowance:
    """Tests for the suggested per-period allowance."""

    def test_weekly_is_daily(self):
        assert suggested_periodic_allowance(Decimal("700"), BudgetType.WEEKLY) == Decimal("100.00")
        assert allowance_period(BudgetType.WEEKLY) == "day"

    def test_monthly_is_weekly(self):
        assert suggested_periodic_allowance(Decimal("1000"), BudgetType.MONTHLY) == Decimal("250.00")
        assert allowance_period(BudgetType.MONTHLY) == "week"

    def test_rounds_half_up(self):
        # 0.10 / 4 = 0.025
        assert suggested_periodic_allowance(Decimal("0.10"), BudgetType.MONTHLY) == Decimal("0.03")

    @pytest.mark.parametrize("left", [Decimal(0), Decimal(-5), None])
    def test_nothing_left(self, left):
        assert suggested_periodic_allowance(left, BudgetType.WEEKLY) is None

    def test_without_type(self):
        assert suggested_periodic_allowance(Decimal(100), None) is None
        assert allowance_period(None) is None


class TestOrdering:
    """Tests for expense ordering."""

    def test_newest_first(self):
        expenses = [make_expense(1, 1), make_expense(2, 3), make_expense(3, 2)]
        ordered = sort_expenses(expenses)
        assert [e.amount for e in ordered] == [Decimal(2), Decimal(3), Decimal(1)]

    def test_equal_timestamps_keep_store_order(self):
        expenses = [
            make_expense(1, 0, expense_id="a"),
            make_expense(2, 0, expense_id="b"),
            make_expense(3, 0, expense_id="c"),
        ]
        assert [e.id for e in sort_expenses(expenses)] == ["a", "b", "c"]

    def test_sort_is_deterministic(self):
        expenses = [make_expense(i % 3 + 1, i % 4, expense_id=str(i)) for i in range(12)]
        assert sort_expenses(expenses) == sort_expenses(expenses)

    def test_recent_limit(self):
        expenses = [make_expense(i, i) for i in range(1, 9)]
        recent = recent_expenses(expenses)
        assert len(recent) == 5
        assert recent[0].amount == Decimal(8)

    def test_recent_with_fewer_expenses(self):
        assert len(recent_expenses([make_expense(1)], limit=5)) == 1


class TestSnapshot:
    """Tests for the assembled snapshot."""

    def test_no_budget_snapshot(self):
        snapshot = build_snapshot(BudgetConfiguration(), [make_expense(10)])
        assert snapshot.status == BudgetStatus.NO_BUDGET
        assert snapshot.remaining is None
        assert snapshot.percentage_used is None
        assert snapshot.suggested_allowance is None
        assert snapshot.total_spent == Decimal("10.00")
        assert not snapshot.has_budget

    def test_zero_budget_snapshot(self):
        snapshot = build_snapshot(weekly(0), [])
        assert snapshot.budget_amount is None
        assert snapshot.status == BudgetStatus.NO_BUDGET

    def test_expense_count(self):
        snapshot = build_snapshot(weekly(100), [make_expense(1, 1), make_expense(2, 2)])
        assert snapshot.expense_count == 2

    def test_spending_by_category(self):
        expenses = [
            make_expense(10, 1, ExpenseCategory.FOOD),
            make_expense(50, 2, ExpenseCategory.HEALTH),
            make_expense(15, 3, ExpenseCategory.FOOD),
        ]
        totals = spending_by_category(expenses)
        assert list(totals) == [ExpenseCategory.HEALTH, ExpenseCategory.FOOD]
        assert totals[ExpenseCategory.FOOD] == Decimal("25.00")
