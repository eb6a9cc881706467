"""Budget calculator package."""

from pocketbudget.calculator.budget import (
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

__all__ = [
    "allowance_period",
    "budget_status",
    "build_snapshot",
    "percentage_used",
    "recent_expenses",
    "remaining",
    "sort_expenses",
    "spending_by_category",
    "suggested_periodic_allowance",
    "total_spent",
]
