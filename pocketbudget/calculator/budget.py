"""
Budget Calculator

DESIGN DECISION: Every calculation here is a pure function of the budget
configuration and the expense list. Nothing reads storage, so the same
numbers come out whichever backend supplied the expenses.

Sums are accumulated in integer cents, so the total does not depend on
the order the expenses arrive in.

"Undefined" results (no budget set, nothing left to allocate) are None,
never zero: a zero would read as "you have nothing left".
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence

from pocketbudget.models.expense import (
    BudgetConfiguration,
    BudgetSnapshot,
    BudgetStatus,
    BudgetType,
    Expense,
    ExpenseCategory,
)

CENT = Decimal("0.01")
HUNDRED = Decimal(100)

# Most severe first; the first matching threshold wins
STATUS_THRESHOLDS = (
    (Decimal(90), BudgetStatus.CRITICAL),
    (Decimal(75), BudgetStatus.WARNING),
    (Decimal(50), BudgetStatus.CAUTION),
)

# How many allowance periods one budget period holds
ALLOWANCE_DIVISORS = {
    BudgetType.WEEKLY: (Decimal(7), "day"),
    BudgetType.MONTHLY: (Decimal(4), "week"),
}


def _to_cents(amount: Decimal) -> int:
    return int((amount * HUNDRED).to_integral_value(rounding=ROUND_HALF_UP))


def _from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / HUNDRED).quantize(CENT)


def total_spent(expenses: Iterable[Expense]) -> Decimal:
    """Sum of all expense amounts."""
    return _from_cents(sum(_to_cents(expense.amount) for expense in expenses))


def remaining(
    configuration: BudgetConfiguration,
    expenses: Iterable[Expense],
) -> Optional[Decimal]:
    """
    Budget amount minus total spent. May be negative.

    Returns None ("no budget") when the amount is unset or zero.
    """
    if not configuration.has_amount:
        return None
    return (configuration.amount - total_spent(expenses)).quantize(CENT)


def percentage_used(
    configuration: BudgetConfiguration,
    expenses: Iterable[Expense],
) -> Optional[Decimal]:
    """
    Total spent as a percentage of the budget, unrounded.

    Returns None when there is no budget to divide by.
    """
    if not configuration.has_amount:
        return None
    return total_spent(expenses) / configuration.amount * HUNDRED


def budget_status(
    percentage: Optional[Decimal],
    remaining_amount: Optional[Decimal],
) -> BudgetStatus:
    """
    Classify budget usage.

    Checked from most to least severe: a negative remainder is EXCEEDED
    regardless of percentage; exactly zero remaining is not exceeded.
    """
    if percentage is None or remaining_amount is None:
        return BudgetStatus.NO_BUDGET
    if remaining_amount < 0:
        return BudgetStatus.EXCEEDED
    for threshold, status in STATUS_THRESHOLDS:
        if percentage >= threshold:
            return status
    return BudgetStatus.GOOD


def suggested_periodic_allowance(
    remaining_amount: Optional[Decimal],
    budget_type: Optional[BudgetType],
) -> Optional[Decimal]:
    """
    How much can be spent per sub-period to stay within budget.

    Weekly budgets get a daily figure (remaining / 7), monthly budgets a
    weekly figure (remaining / 4). None when nothing is left.
    """
    if remaining_amount is None or budget_type is None or remaining_amount <= 0:
        return None
    divisor, _ = ALLOWANCE_DIVISORS[budget_type]
    return (remaining_amount / divisor).quantize(CENT, rounding=ROUND_HALF_UP)


def allowance_period(budget_type: Optional[BudgetType]) -> Optional[str]:
    if budget_type is None:
        return None
    return ALLOWANCE_DIVISORS[budget_type][1]


def sort_expenses(expenses: Iterable[Expense]) -> list[Expense]:
    """
    Newest first.

    The sort is stable, so expenses with the same timestamp keep the
    store's order (insertion order locally, ascending id on the server)
    and repeated calls give the same result.
    """
    return sorted(expenses, key=lambda expense: expense.date, reverse=True)


def recent_expenses(expenses: Iterable[Expense], limit: int = 5) -> list[Expense]:
    return sort_expenses(expenses)[:limit]


def spending_by_category(expenses: Iterable[Expense]) -> dict[ExpenseCategory, Decimal]:
    """Totals per category, largest first."""
    cents: dict[ExpenseCategory, int] = {}
    for expense in expenses:
        cents[expense.category] = cents.get(expense.category, 0) + _to_cents(expense.amount)
    ordered = sorted(cents.items(), key=lambda item: item[1], reverse=True)
    return {category: _from_cents(value) for category, value in ordered}


def build_snapshot(
    configuration: BudgetConfiguration,
    expenses: Sequence[Expense],
) -> BudgetSnapshot:
    """Assemble every derived figure the home screen shows."""
    spent = total_spent(expenses)
    left = remaining(configuration, expenses)
    percentage = percentage_used(configuration, expenses)

    return BudgetSnapshot(
        budget_type=configuration.type,
        budget_amount=configuration.amount if configuration.has_amount else None,
        total_spent=spent,
        remaining=left,
        percentage_used=percentage.quantize(CENT, rounding=ROUND_HALF_UP) if percentage is not None else None,
        status=budget_status(percentage, left),
        suggested_allowance=suggested_periodic_allowance(left, configuration.type),
        allowance_period=allowance_period(configuration.type),
        expense_count=len(expenses),
    )
