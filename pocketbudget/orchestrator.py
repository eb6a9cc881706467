"""
Main Orchestrator for Pocket Budget

This module ties together all the components and defines the
end-to-end flows the screens call:
1. Expenses (validate → persist → audit) for add, edit, delete and clear
2. Budget (onboarding route, type and amount setup, reset, dashboard snapshot)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Raw input is validated before any store is touched
- Every failure is audited before it is re-raised to the screen
- Stores are injected, never global; create_app_components picks
  the expense backend from configuration
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from pocketbudget.audit import AuditLogger, create_correlation_id
from pocketbudget.calculator import build_snapshot, recent_expenses, sort_expenses
from pocketbudget.config import Settings, get_settings
from pocketbudget.models.expense import (
    BudgetConfiguration,
    BudgetSnapshot,
    BudgetType,
    Expense,
)
from pocketbudget.services.storage import (
    BudgetConfigStoreInterface,
    ExpenseStoreInterface,
    HttpExpenseStore,
    JsonKeyValueStore,
    LocalBudgetConfigStore,
    LocalExpenseStore,
    NotFoundError,
    StorageError,
)
from pocketbudget.validation import ExpenseInputValidator, InvalidArgumentError


class Route(str, Enum):
    """Where the app should open."""
    ONBOARDING = "onboarding"      # No budget type chosen yet
    BUDGET_SETUP = "budget_setup"  # Type chosen, amount missing
    HOME = "home"                  # Fully configured


async def _finish_reset(
    config_store: BudgetConfigStoreInterface,
    expense_store: ExpenseStoreInterface,
    audit_logger: AuditLogger,
    correlation_id: UUID,
) -> None:
    await expense_store.clear_expenses()
    await audit_logger.log_expenses_cleared(correlation_id, is_user_action=False)
    await config_store.clear_configuration()


async def recover_pending_reset(
    config_store: BudgetConfigStoreInterface,
    expense_store: ExpenseStoreInterface,
    audit_logger: AuditLogger,
) -> bool:
    """
    Complete a reset that was interrupted.

    Both flows call this before touching either store, so nothing the
    user enters after a failed reset can be wiped by finishing it later.

    Returns True if one was found.
    """
    correlation_id = create_correlation_id()
    try:
        if not await config_store.is_reset_pending():
            return False
        await _finish_reset(config_store, expense_store, audit_logger, correlation_id)
    except StorageError as e:
        await audit_logger.log_storage_error(
            operation="recover budget reset",
            error_message=str(e),
            correlation_id=correlation_id,
        )
        raise

    await audit_logger.log_budget_reset_recovered(correlation_id)
    return True


class ExpenseFlow:
    """
    Orchestrates the expense workflows.

    Every method takes the raw values a screen collected and either
    returns the stored result or raises InvalidArgumentError,
    NotFoundError or StorageUnavailableError after auditing it.

    Given the budget configuration store, every call first finishes an
    interrupted reset (see BudgetFlow).
    """

    def __init__(
        self,
        expense_store: ExpenseStoreInterface,
        validator: Optional[ExpenseInputValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        config_store: Optional[BudgetConfigStoreInterface] = None,
    ):
        self._expense_store = expense_store
        self._validator = validator or ExpenseInputValidator()
        self._audit_logger = audit_logger or AuditLogger()
        self._config_store = config_store

    @property
    def validator(self) -> ExpenseInputValidator:
        return self._validator

    async def _recover_pending_reset(self) -> None:
        if self._config_store is not None:
            await recover_pending_reset(
                self._config_store, self._expense_store, self._audit_logger
            )

    async def _audit_failure(
        self,
        error: Exception,
        operation: str,
        correlation_id: UUID,
        expense_id: Optional[str] = None,
    ) -> None:
        if isinstance(error, InvalidArgumentError):
            await self._audit_logger.log_validation_failed(
                entity_type="expense",
                issues=error.to_dicts(),
                correlation_id=correlation_id,
            )
        elif isinstance(error, NotFoundError):
            await self._audit_logger.log_not_found(
                expense_id=str(expense_id),
                operation=operation,
                correlation_id=correlation_id,
            )
        else:
            await self._audit_logger.log_storage_error(
                operation=operation,
                error_message=str(error),
                correlation_id=correlation_id,
            )

    async def list_expenses(self) -> list[Expense]:
        """All expenses, newest first."""
        await self._recover_pending_reset()
        try:
            expenses = await self._expense_store.list_expenses()
        except StorageError as e:
            await self._audit_failure(e, "list expenses", create_correlation_id())
            raise
        return sort_expenses(expenses)

    async def add_expense(
        self,
        amount: Any,
        category: Any,
        note: Any = None,
        date: Any = None,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """
        Validate and persist a new expense.

        Args:
            amount: Raw amount as typed, e.g. "120.50"
            category: Category value or display label
            note: Optional note
            date: Optional timestamp; defaults to now
        """
        correlation_id = correlation_id or create_correlation_id()
        await self._recover_pending_reset()

        try:
            draft = self._validator.build_draft(amount, category, note, date)
            expense = await self._expense_store.create_expense(draft)
        except (InvalidArgumentError, StorageError) as e:
            await self._audit_failure(e, "add expense", correlation_id)
            raise

        await self._audit_logger.log_expense_created(
            expense_id=expense.id,
            amount=str(expense.amount),
            category=expense.category.value,
            correlation_id=correlation_id,
        )
        return expense

    async def edit_expense(
        self,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
        **fields: Any,
    ) -> Expense:
        """
        Merge-patch an expense with the fields the user changed.

        Fields not passed are left untouched (the edit screen keeps the
        original date by not sending it).
        """
        correlation_id = correlation_id or create_correlation_id()
        await self._recover_pending_reset()

        try:
            patch = self._validator.build_patch(fields)
            expense = await self._expense_store.update_expense(expense_id, patch)
        except (InvalidArgumentError, StorageError) as e:
            await self._audit_failure(e, "edit expense", correlation_id, expense_id)
            raise

        await self._audit_logger.log_expense_updated(
            expense_id=expense.id,
            changed_fields=sorted(patch.changes()),
            correlation_id=correlation_id,
        )
        return expense

    async def delete_expense(
        self,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        correlation_id = correlation_id or create_correlation_id()
        await self._recover_pending_reset()

        try:
            await self._expense_store.delete_expense(expense_id)
        except StorageError as e:
            await self._audit_failure(e, "delete expense", correlation_id, expense_id)
            raise

        await self._audit_logger.log_expense_deleted(expense_id, correlation_id)

    async def clear_expenses(self, correlation_id: Optional[UUID] = None) -> None:
        """Delete every expense. The screen confirms with the user first."""
        correlation_id = correlation_id or create_correlation_id()
        await self._recover_pending_reset()

        try:
            await self._expense_store.clear_expenses()
        except StorageError as e:
            await self._audit_failure(e, "clear expenses", correlation_id)
            raise

        await self._audit_logger.log_expenses_cleared(correlation_id)


class BudgetFlow:
    """
    Orchestrates the budget configuration and dashboard.

    RESET ORDER (start a new budget period):
    1. Mark the reset as pending in the configuration store
    2. Clear all expenses
    3. Clear type, amount and the marker in one atomic write

    Steps 2 and 3 are idempotent. If the process dies part-way, the
    marker is still present; recover_pending_reset() re-runs steps 2
    and 3. Every read and write in either flow calls it first, so no
    half-reset state is ever returned and nothing entered after a
    failed reset is lost when it is finished.
    """

    def __init__(
        self,
        config_store: BudgetConfigStoreInterface,
        expense_store: ExpenseStoreInterface,
        validator: Optional[ExpenseInputValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        recent_limit: int = 5,
    ):
        self._config_store = config_store
        self._expense_store = expense_store
        self._validator = validator or ExpenseInputValidator()
        self._audit_logger = audit_logger or AuditLogger()
        self._recent_limit = recent_limit

    async def recover_pending_reset(self) -> bool:
        """Complete an interrupted reset. Returns True if one was found."""
        return await recover_pending_reset(
            self._config_store, self._expense_store, self._audit_logger
        )

    async def get_configuration(self) -> BudgetConfiguration:
        await self.recover_pending_reset()
        return await self._config_store.get_configuration()

    async def resolve_route(self) -> Route:
        """Decide which screen to open, as the app's start screen does."""
        try:
            configuration = await self.get_configuration()
        except StorageError as e:
            await self._audit_logger.log_storage_error(
                operation="resolve route",
                error_message=str(e),
            )
            raise

        if configuration.type is None:
            return Route.ONBOARDING
        if not configuration.has_amount:
            return Route.BUDGET_SETUP
        return Route.HOME

    async def choose_type(
        self,
        budget_type: Any,
        correlation_id: Optional[UUID] = None,
    ) -> BudgetType:
        correlation_id = correlation_id or create_correlation_id()

        try:
            parsed = self._validator.build_budget_type(budget_type)
        except InvalidArgumentError as e:
            await self._audit_logger.log_validation_failed("budget", e.to_dicts(), correlation_id)
            raise

        try:
            await self.recover_pending_reset()
            await self._config_store.set_type(parsed)
        except StorageError as e:
            await self._audit_logger.log_storage_error("set budget type", str(e), correlation_id)
            raise

        await self._audit_logger.log_budget_type_set(parsed.value, correlation_id)
        return parsed

    async def set_amount(
        self,
        amount: Any,
        correlation_id: Optional[UUID] = None,
    ) -> Decimal:
        """Validate and store the budget amount (must be > 0)."""
        correlation_id = correlation_id or create_correlation_id()

        try:
            parsed = self._validator.build_budget_amount(amount)
            await self.recover_pending_reset()
            await self._config_store.set_amount(parsed)
        except InvalidArgumentError as e:
            await self._audit_logger.log_validation_failed("budget", e.to_dicts(), correlation_id)
            raise
        except StorageError as e:
            await self._audit_logger.log_storage_error("set budget amount", str(e), correlation_id)
            raise

        await self._audit_logger.log_budget_amount_set(str(parsed), correlation_id)
        return parsed

    async def reset_budget(self, correlation_id: Optional[UUID] = None) -> None:
        """Start a new budget period: clear type, amount and all expenses."""
        correlation_id = correlation_id or create_correlation_id()
        await self._audit_logger.log_budget_reset_started(correlation_id)

        try:
            await self._config_store.mark_reset_pending()
            await _finish_reset(
                self._config_store, self._expense_store, self._audit_logger, correlation_id
            )
        except StorageError as e:
            await self._audit_logger.log_storage_error("reset budget", str(e), correlation_id)
            raise

        await self._audit_logger.log_budget_reset_completed(correlation_id)

    async def snapshot(self) -> tuple[BudgetSnapshot, list[Expense]]:
        """
        Everything the home screen shows.

        Returns:
            (snapshot, recent_expenses)
        """
        configuration = await self.get_configuration()
        try:
            expenses = await self._expense_store.list_expenses()
        except StorageError as e:
            await self._audit_logger.log_storage_error("load dashboard", str(e))
            raise
        return (
            build_snapshot(configuration, expenses),
            recent_expenses(expenses, limit=self._recent_limit),
        )


def create_expense_store(settings: Optional[Settings] = None) -> ExpenseStoreInterface:
    """Build the expense backend named by EXPENSE_BACKEND."""
    settings = settings or get_settings()
    if settings.app.expense_backend == "http":
        api = settings.api_client
        return HttpExpenseStore(base_url=api.base_url, timeout=api.timeout_seconds)
    return LocalExpenseStore(JsonKeyValueStore(settings.local_storage.path))


def create_app_components(
    settings: Optional[Settings] = None,
    expense_store: Optional[ExpenseStoreInterface] = None,
    config_store: Optional[BudgetConfigStoreInterface] = None,
) -> tuple[ExpenseFlow, BudgetFlow]:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to build from (defaults to get_settings())
        expense_store: Override the configured expense backend
        config_store: Override the local budget configuration store

    Returns:
        (expense_flow, budget_flow)
    """
    settings = settings or get_settings()
    audit_logger = AuditLogger()
    validator = ExpenseInputValidator()

    if config_store is None:
        config_store = LocalBudgetConfigStore(JsonKeyValueStore(settings.local_storage.path))
    if expense_store is None:
        expense_store = create_expense_store(settings)

    expense_flow = ExpenseFlow(
        expense_store=expense_store,
        validator=validator,
        audit_logger=audit_logger,
        config_store=config_store,
    )
    budget_flow = BudgetFlow(
        config_store=config_store,
        expense_store=expense_store,
        validator=validator,
        audit_logger=audit_logger,
        recent_limit=settings.app.recent_expenses_limit,
    )

    return expense_flow, budget_flow
