"""
Relational Storage Implementation

DESIGN DECISION: The API server keeps expenses in a single relational
table reached through SQLAlchemy, so the same code runs against SQLite
in development and tests and MySQL/PostgreSQL in deployment.

    expenses(id autoincrement PK, amount NUMERIC(10,2), category VARCHAR(255),
             note TEXT NULL, date DATETIME)

Dates are stored as naive UTC DATETIME values at whole-second precision;
Expense normalises them back to aware UTC on the way out.

Concurrent writes are serialised by the database: every mutation runs in
one transaction, updates lock the row first, and deletes check the affected
row count. A delete that wins a race against an update therefore makes
the update raise NotFoundError instead of resurrecting the row.
"""

from datetime import timezone
from typing import Optional

import structlog
from sqlalchemy import Column, DateTime, Integer, Numeric, String, Text, create_engine, delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from tenacity import retry, stop_after_attempt, wait_exponential

from pocketbudget.config import get_settings
from pocketbudget.models.expense import Expense, ExpenseDraft, ExpensePatch, utc_now
from pocketbudget.services.storage.interface import (
    ExpenseStoreInterface,
    NotFoundError,
    StorageUnavailableError,
)

logger = structlog.get_logger(__name__)

Base = declarative_base()


class ExpenseRecord(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    amount = Column(Numeric(10, 2), nullable=False)
    category = Column(String(255), nullable=False)
    note = Column(Text, nullable=True)
    date = Column(DateTime, nullable=False)


def _to_db_datetime(value):
    return value.astimezone(timezone.utc).replace(tzinfo=None, microsecond=0)


def _record_to_expense(record: ExpenseRecord) -> Expense:
    return Expense(
        id=str(record.id),
        amount=record.amount,
        category=record.category,
        note=record.note,
        date=record.date.replace(tzinfo=timezone.utc),
    )


def _parse_id(expense_id) -> int:
    """Ids that are not integers cannot exist in this table."""
    try:
        return int(str(expense_id))
    except ValueError:
        raise NotFoundError(f"Expense not found: {expense_id}")


class SqlExpenseStore(ExpenseStoreInterface):
    """
    SQLAlchemy implementation of expense storage.

    Call connect() once at start-up to verify the database and create
    the table if needed.
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        engine: Optional[Engine] = None,
        echo: Optional[bool] = None,
    ):
        if engine is None:
            settings = get_settings().database
            engine = create_engine(
                database_url or settings.url,
                echo=settings.echo if echo is None else echo,
                future=True,
            )
        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False, future=True)

    @property
    def engine(self) -> Engine:
        return self._engine

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> None:
        """
        Ensure the database is reachable and the expenses table exists.

        Retried at start-up only; request handling never retries.
        """
        try:
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as e:
            logger.error("database_connect_failed", error=str(e))
            raise StorageUnavailableError(f"Failed to connect to database: {e}")
        logger.info("database_ready", url=self._engine.url.render_as_string(hide_password=True))

    def dispose(self) -> None:
        self._engine.dispose()

    async def list_expenses(self) -> list[Expense]:
        try:
            with self._session_factory() as session:
                records = session.scalars(
                    select(ExpenseRecord).order_by(ExpenseRecord.id)
                ).all()
                return [_record_to_expense(record) for record in records]
        except SQLAlchemyError as e:
            raise StorageUnavailableError(f"Failed to list expenses: {e}")

    async def get_expense(self, expense_id: str) -> Optional[Expense]:
        try:
            record_id = _parse_id(expense_id)
        except NotFoundError:
            return None
        try:
            with self._session_factory() as session:
                record = session.get(ExpenseRecord, record_id)
                return _record_to_expense(record) if record else None
        except SQLAlchemyError as e:
            raise StorageUnavailableError(f"Failed to get expense: {e}")

    async def create_expense(self, draft: ExpenseDraft) -> Expense:
        try:
            with self._session_factory.begin() as session:
                record = ExpenseRecord(
                    amount=draft.amount,
                    category=draft.category.value,
                    note=draft.note,
                    date=_to_db_datetime(draft.date or utc_now()),
                )
                session.add(record)
                session.flush()
                return _record_to_expense(record)
        except SQLAlchemyError as e:
            raise StorageUnavailableError(f"Failed to create expense: {e}")

    async def update_expense(self, expense_id: str, patch: ExpensePatch) -> Expense:
        record_id = _parse_id(expense_id)
        try:
            with self._session_factory.begin() as session:
                record = session.get(ExpenseRecord, record_id, with_for_update=True)
                if record is None:
                    raise NotFoundError(f"Expense not found: {expense_id}")

                updated = patch.apply_to(_record_to_expense(record))
                record.amount = updated.amount
                record.category = updated.category.value
                record.note = updated.note
                record.date = _to_db_datetime(updated.date)
                return updated
        except SQLAlchemyError as e:
            raise StorageUnavailableError(f"Failed to update expense: {e}")

    async def delete_expense(self, expense_id: str) -> None:
        record_id = _parse_id(expense_id)
        try:
            with self._session_factory.begin() as session:
                result = session.execute(
                    delete(ExpenseRecord).where(ExpenseRecord.id == record_id)
                )
                deleted = result.rowcount
        except SQLAlchemyError as e:
            raise StorageUnavailableError(f"Failed to delete expense: {e}")

        if deleted == 0:
            raise NotFoundError(f"Expense not found: {expense_id}")

    async def clear_expenses(self) -> None:
        try:
            with self._session_factory.begin() as session:
                session.execute(delete(ExpenseRecord))
        except SQLAlchemyError as e:
            raise StorageUnavailableError(f"Failed to clear expenses: {e}")
