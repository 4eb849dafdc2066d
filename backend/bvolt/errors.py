# Overview: API error taxonomy and the Flask handlers that render it as JSON.

from __future__ import annotations

from flask import current_app, jsonify
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.exceptions import BadRequest, HTTPException


class ApiError(Exception):
    """
    Base class for errors that reach the client as structured JSON.

    Every subclass carries an HTTP status and a stable machine-readable code.
    The code may be narrowed per raise site (e.g. PRODUCT_NOT_FOUND instead
    of the generic NOT_FOUND).
    """
    status_code = 500
    code = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str, *, code: str | None = None, details: dict | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details or {}

    def to_dict(self) -> dict:
        payload = {"error": self.message, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(ApiError):
    """400-level input problem, including amounts or references the database would refuse."""
    status_code = 400
    code = "VALIDATION_ERROR"


class LineItemInvalidError(ApiError):
    """A sale line references a product that is missing or inactive."""
    status_code = 400
    code = "PRODUCT_NOT_FOUND"


class InsufficientStockError(ApiError):
    status_code = 400
    code = "INSUFFICIENT_STOCK"


class AuthenticationError(ApiError):
    status_code = 401
    code = "NOT_AUTHENTICATED"


class PermissionDeniedError(ApiError):
    status_code = 403
    code = "INSUFFICIENT_PERMISSION"


class NotFoundError(ApiError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(ApiError):
    """409-level uniqueness/constraint conflict. Safe for the caller to retry."""
    status_code = 409
    code = "CONFLICT"


class InternalError(ApiError):
    status_code = 500
    code = "INTERNAL_SERVER_ERROR"


def integrity_error_to_api_error(exc: IntegrityError) -> ApiError:
    """
    Translate a database constraint violation into the API taxonomy.

    PostgreSQL exposes SQLSTATE via pgcode (23505 unique, 23503 foreign key,
    23502 not null); SQLite only gives a message, so both are checked.
    """
    pgcode = getattr(exc.orig, "pgcode", None)
    message = str(exc.orig).lower()

    if pgcode == "23505" or "unique" in message or "duplicate key" in message:
        return ConflictError("Record already exists", code="DUPLICATE_RECORD")
    if pgcode == "23503" or "foreign key" in message:
        return ValidationError("Invalid reference", code="INVALID_REFERENCE")
    if pgcode == "23502" or "not null" in message:
        return ValidationError("Required field not provided", code="MISSING_FIELD")
    return ValidationError("Data integrity error", code="DATABASE_CONSTRAINT_ERROR")


def _error_response(error: ApiError):
    return jsonify(error.to_dict()), error.status_code


def register_error_handlers(app) -> None:
    """Install JSON error handlers; registered last by the app factory."""

    @app.errorhandler(ApiError)
    def handle_api_error(error: ApiError):
        return _error_response(error)

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(error: IntegrityError):
        current_app.logger.warning("Integrity error: %s", error.orig)
        return _error_response(integrity_error_to_api_error(error))

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(error: SQLAlchemyError):
        current_app.logger.exception("Database error")
        return _error_response(InternalError("Database error", code="DATABASE_ERROR"))

    @app.errorhandler(BadRequest)
    def handle_bad_request(error: BadRequest):
        return _error_response(ValidationError("Malformed JSON body", code="INVALID_JSON"))

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        payload = {"error": error.description, "code": f"HTTP_{error.code}"}
        return jsonify(payload), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        current_app.logger.exception("Unhandled error")
        payload = {"error": "Internal server error", "code": "INTERNAL_SERVER_ERROR"}
        if current_app.config.get("EXPOSE_ERROR_DETAILS"):
            payload["detail"] = str(error)
        return jsonify(payload), 500
