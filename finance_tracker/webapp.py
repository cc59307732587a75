"""Flask JSON API for the Finance Tracker."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from . import analytics, categories, transactions, users
from .config import PROJECT_ROOT, AppConfig
from .db import configure_db, init_db
from .errors import ValidationError, register_error_handlers
from .filters import TransactionFilters

logger = logging.getLogger(__name__)

API_PREFIX = "/api"
USER_ID_HEADER = "X-User-Id"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _json_body() -> Dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _caller_id(body: Optional[Dict] = None) -> str:
    """Identity of the caller for record-level mutations."""
    caller = request.headers.get(USER_ID_HEADER) or (body or {}).get("userId") or request.args.get("userId")
    caller = str(caller or "").strip()
    if not caller:
        raise ValidationError(f"userId is required (send the {USER_ID_HEADER} header)")
    return caller


def create_app(config: Optional[AppConfig] = None, config_path: Optional[str] = None) -> Flask:
    cfg = config or AppConfig.load(_resolve_config_path(config_path))
    configure_logging(cfg.log_level)

    app = Flask(__name__)
    app.config["SECRET_KEY"] = cfg.secret_key
    app.config["FINANCE_TRACKER"] = cfg

    CORS(
        app,
        resources={rf"{API_PREFIX}/*": {"origins": cfg.cors_origins}},
        supports_credentials=True,
    )
    register_error_handlers(app)
    configure_db(app, cfg)
    with app.app_context():
        init_db()

    @app.route(f"{API_PREFIX}/health")
    def health():
        return jsonify({"status": "ok", "message": "Server is running"})

    # ---- Users ----
    @app.route(f"{API_PREFIX}/users", methods=["POST"])
    def upsert_user():
        body = _json_body()
        user = users.upsert_user(body.get("id"), body.get("email"), body.get("name"))
        return jsonify(user.to_dict())

    # ---- Categories ----
    @app.route(f"{API_PREFIX}/categories/<user_id>")
    def list_categories(user_id: str):
        return jsonify([c.to_dict() for c in categories.list_categories(user_id)])

    @app.route(f"{API_PREFIX}/categories", methods=["POST"])
    def create_category():
        body = _json_body()
        category = categories.create_category(body.get("userId"), body.get("name"), body.get("type"))
        return jsonify(category.to_dict()), 201

    @app.route(f"{API_PREFIX}/categories/default/<user_id>", methods=["POST"])
    def default_categories(user_id: str):
        return jsonify([c.to_dict() for c in categories.ensure_default_categories(user_id)])

    @app.route(f"{API_PREFIX}/categories/<category_id>", methods=["DELETE"])
    def delete_category(category_id: str):
        categories.delete_category(category_id, _caller_id(_json_body()))
        return jsonify({"message": "Category deleted"})

    # ---- Transactions ----
    @app.route(f"{API_PREFIX}/transactions/<user_id>")
    def list_transactions(user_id: str):
        filters = TransactionFilters.from_args(request.args)
        return jsonify([t.to_dict() for t in transactions.list_transactions(user_id, filters)])

    @app.route(f"{API_PREFIX}/transactions/summary/<user_id>")
    def transaction_summary(user_id: str):
        filters = TransactionFilters.from_args(request.args)
        return jsonify(analytics.summarize(user_id, filters).to_dict())

    @app.route(f"{API_PREFIX}/transactions/summary/<user_id>/categories")
    def category_summary(user_id: str):
        filters = TransactionFilters.from_args(request.args)
        return jsonify(analytics.spending_by_category(user_id, filters))

    @app.route(f"{API_PREFIX}/transactions", methods=["POST"])
    def create_transaction():
        body = _json_body()
        txn = transactions.create_transaction(
            user_id=str(body.get("userId") or "").strip(),
            category_id=body.get("categoryId"),
            type=body.get("type"),
            amount=body.get("amount"),
            description=body.get("description"),
            date=body.get("date"),
        )
        return jsonify(txn.to_dict()), 201

    @app.route(f"{API_PREFIX}/transactions/<transaction_id>", methods=["PUT"])
    def update_transaction(transaction_id: str):
        body = _json_body()
        txn = transactions.update_transaction(
            transaction_id,
            _caller_id(body),
            amount=body.get("amount"),
            description=body.get("description"),
            date=body.get("date"),
            category_id=body.get("categoryId"),
            type=body.get("type"),
        )
        return jsonify(txn.to_dict())

    @app.route(f"{API_PREFIX}/transactions/<transaction_id>", methods=["DELETE"])
    def delete_transaction(transaction_id: str):
        transactions.delete_transaction(transaction_id, _caller_id(_json_body()))
        return jsonify({"message": "Transaction deleted"})

    return app


def _resolve_config_path(config_path: Optional[str]) -> Optional[Path]:
    if not config_path:
        return None
    path = Path(config_path)
    if path.is_absolute():
        return path
    return PROJECT_ROOT / path


if __name__ == "__main__":
    application = create_app()
    application.run(port=application.config["FINANCE_TRACKER"].port)
