"""
Expense API routes.

Stateless CRUD over the configured ExpenseStore. Bodies are JSON; amounts
go out as JSON numbers and dates as ISO-8601 UTC strings.
"""

from flask import Blueprint, current_app, jsonify, request

from pocketbudget.services.storage import ExpenseStoreInterface
from pocketbudget.validation import ExpenseInputValidator, InvalidArgumentError

expenses_bp = Blueprint("expenses", __name__, url_prefix="/expenses")

validator = ExpenseInputValidator()


def get_store() -> ExpenseStoreInterface:
    return current_app.extensions["expense_store"]


def _json_body() -> dict:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise InvalidArgumentError.single("body", "invalid_body", "Request body must be a JSON object")
    return body


@expenses_bp.route("", methods=["GET"])
async def list_expenses():
    expenses = await get_store().list_expenses()
    return jsonify([expense.to_wire() for expense in expenses])


@expenses_bp.route("", methods=["POST"])
async def create_expense():
    body = _json_body()
    # The server requires a date; clients send the creation time
    draft = validator.build_draft(
        body.get("amount"),
        body.get("category"),
        body.get("note"),
        body.get("date"),
        require_date=True,
    )
    expense = await get_store().create_expense(draft)
    return jsonify({"id": expense.id}), 201


@expenses_bp.route("/<expense_id>", methods=["PUT"])
async def update_expense(expense_id):
    patch = validator.build_patch(_json_body())
    expense = await get_store().update_expense(expense_id, patch)
    return jsonify(expense.to_wire())


@expenses_bp.route("/<expense_id>", methods=["DELETE"])
async def delete_expense(expense_id):
    await get_store().delete_expense(expense_id)
    return "", 204


@expenses_bp.route("", methods=["DELETE"])
async def clear_expenses():
    await get_store().clear_expenses()
    return "", 204
