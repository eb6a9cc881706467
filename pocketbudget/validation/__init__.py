"""Input validation package."""

from pocketbudget.validation.validator import ExpenseInputValidator, InvalidArgumentError

__all__ = ["ExpenseInputValidator", "InvalidArgumentError"]
