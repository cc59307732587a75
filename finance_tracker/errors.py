"""Error taxonomy shared by the services and the HTTP layer."""

from __future__ import annotations

import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class FinanceTrackerError(Exception):
    """Base class for errors reported to API callers."""

    kind = "internal_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": self.kind}


class ValidationError(FinanceTrackerError):
    """Malformed or missing input."""

    kind = "validation_error"
    status_code = 400


class NotFoundError(FinanceTrackerError):
    """Unknown user, category or transaction, or one the caller does not own."""

    kind = "not_found"
    status_code = 404


class ConflictError(FinanceTrackerError):
    """Write rejected by a uniqueness or reference constraint."""

    kind = "conflict"
    status_code = 409


class OutOfRangeError(FinanceTrackerError):
    """A value or total exceeds what the store can represent; retrying will not help."""

    kind = "out_of_range"
    status_code = 422


class StoreError(FinanceTrackerError):
    """The underlying store failed; the request may be retried."""

    kind = "store_error"
    status_code = 503
    retry_after = 5


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(FinanceTrackerError)
    def handle_tracker_error(exc: FinanceTrackerError):
        if exc.status_code >= 500:
            logger.error("%s: %s", exc.kind, exc.message)
        else:
            logger.warning("%s: %s", exc.kind, exc.message)
        response = jsonify(exc.to_dict())
        response.status_code = exc.status_code
        if isinstance(exc, StoreError):
            response.headers["Retry-After"] = str(exc.retry_after)
        return response

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        kind = (exc.name or "error").lower().replace(" ", "_")
        response = jsonify({"error": exc.description, "kind": kind})
        response.status_code = exc.code or 500
        return response

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        logger.exception("Unhandled error")
        response = jsonify({"error": "Internal server error", "kind": "internal_error"})
        response.status_code = 500
        return response
