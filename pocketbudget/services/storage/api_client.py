"""
HTTP Storage Implementation

Talks to the expense API server (pocketbudget.api) so the client screens
can keep their expenses on the server instead of on the device.

DESIGN DECISION: Network calls are bounded by a timeout and never retried.
One failed attempt surfaces as one StorageUnavailableError and the caller
decides whether to try again. Nothing is updated locally until the server
has confirmed the write.

The blocking requests calls run in a worker thread so the awaiting caller
keeps its event loop free.
"""

import asyncio
from decimal import Decimal
from typing import Any, Optional

import requests
import structlog
from pydantic import ValidationError

from pocketbudget.config import get_settings
from pocketbudget.models.expense import Expense, ExpenseDraft, ExpensePatch, utc_now
from pocketbudget.services.storage.interface import (
    ExpenseStoreInterface,
    NotFoundError,
    StorageUnavailableError,
)
from pocketbudget.validation.validator import InvalidArgumentError

logger = structlog.get_logger(__name__)


def _expense_from_wire(item: Any) -> Expense:
    if not isinstance(item, dict):
        raise StorageUnavailableError("Unexpected expense format from server")
    data = dict(item)
    # Amounts arrive as JSON numbers
    if isinstance(data.get("amount"), float):
        data["amount"] = Decimal(str(data["amount"]))
    try:
        return Expense.model_validate(data)
    except ValidationError as e:
        raise StorageUnavailableError(f"Malformed expense from server: {e}")


class HttpExpenseStore(ExpenseStoreInterface):
    """
    Expense storage backed by the REST API.

    Args:
        base_url: API root, e.g. http://192.168.1.20:3000
        timeout: Seconds to wait for each request
        session: requests.Session (or compatible) to send requests through
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        settings = get_settings().api_client
        self._base_url = (base_url or settings.base_url).rstrip("/")
        self._timeout = timeout or settings.timeout_seconds
        self._session = session or requests.Session()

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    def _send(self, method: str, path: str, payload: Optional[dict] = None):
        try:
            response = self._session.request(
                method,
                self._url(path),
                json=payload,
                timeout=self._timeout,
            )
        except requests.Timeout as e:
            logger.error("api_request_timeout", method=method, path=path, timeout=self._timeout)
            raise StorageUnavailableError(f"Request timed out: {method} {path}") from e
        except requests.RequestException as e:
            logger.error("api_request_failed", method=method, path=path, error=str(e))
            raise StorageUnavailableError(f"Request failed: {method} {path}: {e}") from e

        status = response.status_code
        if status == 404:
            raise NotFoundError(f"Not found: {path}")
        if status == 400:
            raise self._invalid_argument(response)
        if status >= 300:
            logger.error("api_unexpected_status", method=method, path=path, status=status)
            raise StorageUnavailableError(f"Unexpected response status: {status}")
        return response

    @staticmethod
    def _invalid_argument(response) -> InvalidArgumentError:
        try:
            body = response.json()
        except ValueError:
            body = None
        message = body.get("error") if isinstance(body, dict) else None
        return InvalidArgumentError.single(
            "request",
            "rejected_by_server",
            message or "The server rejected the expense",
        )

    @staticmethod
    def _json(response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise StorageUnavailableError("Server returned invalid JSON") from e

    async def _request(self, method: str, path: str, payload: Optional[dict] = None):
        return await asyncio.to_thread(self._send, method, path, payload)

    async def list_expenses(self) -> list[Expense]:
        response = await self._request("GET", "/expenses")
        data = self._json(response)
        if not isinstance(data, list):
            raise StorageUnavailableError("Invalid response format")
        return [_expense_from_wire(item) for item in data]

    async def create_expense(self, draft: ExpenseDraft) -> Expense:
        expense_date = draft.date or utc_now()
        payload = {
            "amount": float(draft.amount),
            "category": draft.category.value,
            "note": draft.note,
            "date": expense_date.isoformat(),
        }
        response = await self._request("POST", "/expenses", payload)
        body = self._json(response)
        if not isinstance(body, dict) or "id" not in body:
            raise StorageUnavailableError("Server did not return an expense id")
        return draft.model_copy(update={"date": expense_date}).to_expense(str(body["id"]))

    async def update_expense(self, expense_id: str, patch: ExpensePatch) -> Expense:
        payload = {}
        for name, value in patch.changes().items():
            if name == "amount":
                payload[name] = float(value)
            elif name == "category":
                payload[name] = value.value
            elif name == "date":
                payload[name] = value.isoformat()
            else:
                payload[name] = value
        response = await self._request("PUT", f"/expenses/{expense_id}", payload)
        return _expense_from_wire(self._json(response))

    async def delete_expense(self, expense_id: str) -> None:
        await self._request("DELETE", f"/expenses/{expense_id}")

    async def clear_expenses(self) -> None:
        await self._request("DELETE", "/expenses")
