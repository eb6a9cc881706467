"""
Audit Logger

DESIGN DECISION: Every change to the user's budget data is logged.
This provides:
1. Complete traceability of adds, edits, deletes, clears and resets
2. Debugging capability when storage or the network fails
3. A record of every rejected input

The audit logger:
- Is async so it can be awaited alongside storage calls
- Writes structured JSON lines through structlog
- Supports correlation IDs to trace related events (e.g. the steps of a reset)
"""

import logging
from collections import deque
from typing import Optional
from uuid import UUID, uuid4

import structlog

from pocketbudget.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity

MAX_RECENT_EVENTS = 200


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output to stderr at the given level."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper(), logging.INFO))


class AuditLogger:
    """
    Central audit logging service.

    Events are written as structured log lines. Logging never raises:
    an audit failure must not turn a successful write into an error.
    """

    def __init__(self):
        self._logger = structlog.get_logger("pocketbudget.audit")
        self._events: deque[AuditEvent] = deque(maxlen=MAX_RECENT_EVENTS)

    @property
    def events(self) -> list[AuditEvent]:
        """Most recent events logged by this instance, oldest first."""
        return list(self._events)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the event was written.
        """
        self._events.append(event)
        log_dict = event.to_log_dict()

        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            logging.getLogger(__name__).error("audit logging failed: %s", e)
            return False

        return True

    async def log_expense_created(
        self,
        expense_id: str,
        amount: str,
        category: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.expense_created(
            expense_id=expense_id,
            amount=amount,
            category=category,
            correlation_id=correlation_id,
        ))

    async def log_expense_updated(
        self,
        expense_id: str,
        changed_fields: list[str],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.expense_updated(
            expense_id=expense_id,
            changed_fields=changed_fields,
            correlation_id=correlation_id,
        ))

    async def log_expense_deleted(self, expense_id: str, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.expense_deleted(
            expense_id=expense_id,
            correlation_id=correlation_id,
        ))

    async def log_expenses_cleared(
        self,
        correlation_id: UUID,
        is_user_action: bool = True,
    ) -> None:
        await self.log(AuditEventBuilder.expenses_cleared(
            correlation_id=correlation_id,
            is_user_action=is_user_action,
        ))

    async def log_budget_type_set(self, budget_type: str, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.budget_type_set(
            budget_type=budget_type,
            correlation_id=correlation_id,
        ))

    async def log_budget_amount_set(self, amount: str, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.budget_amount_set(
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_budget_reset_started(self, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.budget_reset_started(correlation_id))

    async def log_budget_reset_completed(self, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.budget_reset_completed(correlation_id))

    async def log_budget_reset_recovered(self, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.budget_reset_recovered(correlation_id))

    async def log_validation_failed(
        self,
        entity_type: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.validation_failed(
            entity_type=entity_type,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_not_found(
        self,
        expense_id: str,
        operation: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.not_found(
            entity_id=expense_id,
            operation=operation,
            correlation_id=correlation_id,
        ))

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., adding an expense).
    Pass it through all subsequent operations.
    """
    return uuid4()
