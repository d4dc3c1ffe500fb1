# herbtrace/errors.py
from __future__ import annotations

from typing import Any, Optional

from flask import jsonify
from pydantic import ValidationError as PydanticValidationError
from werkzeug.exceptions import HTTPException


class HerbTraceError(Exception):
    """Base error. `code` is what clients see, `status` is the HTTP status."""

    code = "SERVER_ERROR"
    status = 500

    def __init__(self, message: str = "", details: Optional[Any] = None):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.details = details

    def to_dict(self) -> dict:
        body = {"ok": False, "error": self.code, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(HerbTraceError):
    code = "VALIDATION_ERROR"
    status = 400

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError) -> "ValidationError":
        details = [
            {"loc": ".".join(str(p) for p in err.get("loc", ())), "msg": err.get("msg")}
            for err in exc.errors()
        ]
        return cls("invalid request body", details=details)


class NotFoundError(HerbTraceError):
    code = "NOT_FOUND"
    status = 404


class DuplicateTokenError(HerbTraceError):
    """A concurrent insert already claimed the idempotency token."""

    code = "DUPLICATE_TOKEN"
    status = 409

    def __init__(self, token: str):
        super().__init__(f"idempotency token already used: {token}")
        self.token = token


class StoreUnavailableError(HerbTraceError):
    code = "STORE_UNAVAILABLE"
    status = 503


# ---------------------------------------------------------
# Flask wiring
# ---------------------------------------------------------
def register_error_handlers(app):

    @app.errorhandler(HerbTraceError)
    def _handle_herbtrace_error(err: HerbTraceError):
        if err.status >= 500:
            app.logger.error("%s: %s", err.code, err.message)
        return jsonify(err.to_dict()), err.status

    @app.errorhandler(PydanticValidationError)
    def _handle_pydantic_error(err: PydanticValidationError):
        wrapped = ValidationError.from_pydantic(err)
        return jsonify(wrapped.to_dict()), wrapped.status

    @app.errorhandler(404)
    def _handle_unknown_route(_err):
        return jsonify({"ok": False, "error": "NOT_FOUND", "message": "route not found"}), 404

    @app.errorhandler(Exception)
    def _handle_unexpected_error(err: Exception):
        # HTTP errors such as 405 keep their own status
        if isinstance(err, HTTPException):
            return err
        app.logger.exception("Unhandled error: %s", err)
        return jsonify(HerbTraceError("internal server error").to_dict()), HerbTraceError.status
