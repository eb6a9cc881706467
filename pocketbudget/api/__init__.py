"""
Expense API server.

create_app() builds the Flask application around an ExpenseStore. By
default that is the SQL store named by DATABASE_URL; tests pass their own.
"""

from typing import Optional

import structlog
from flask import Flask, jsonify

from pocketbudget.api.routes import expenses_bp
from pocketbudget.config import Settings, get_settings
from pocketbudget.services.storage import (
    ExpenseStoreInterface,
    NotFoundError,
    SqlExpenseStore,
    StorageError,
)
from pocketbudget.validation import InvalidArgumentError

logger = structlog.get_logger(__name__)


def create_app(
    expense_store: Optional[ExpenseStoreInterface] = None,
    settings: Optional[Settings] = None,
) -> Flask:
    settings = settings or get_settings()
    app = Flask(__name__)

    if expense_store is None:
        expense_store = SqlExpenseStore(database_url=settings.database.url)
        # Ensure the table exists for a smooth first run
        expense_store.connect()
    app.extensions["expense_store"] = expense_store

    app.register_blueprint(expenses_bp)

    cors_origin = settings.server.cors_origin

    @app.after_request
    def add_cors_headers(response):
        response.headers["Access-Control-Allow-Origin"] = cors_origin
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, DELETE, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.errorhandler(InvalidArgumentError)
    def handle_invalid_argument(error):
        logger.info("request_rejected", issues=error.to_dicts())
        return jsonify({"error": str(error), "issues": error.to_dicts()}), 400

    @app.errorhandler(NotFoundError)
    def handle_not_found(error):
        return jsonify({"error": "Expense not found"}), 404

    @app.errorhandler(StorageError)
    def handle_storage_error(error):
        logger.error("storage_failure", error=str(error))
        return jsonify({"error": "Database error"}), 500

    return app


__all__ = ["create_app", "expenses_bp"]
