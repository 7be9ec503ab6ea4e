# Overview: Error taxonomy shared by services and routes, plus the central Flask error handler.

"""
Error Handling

Services raise one of the AppError subclasses below. Routes do not catch them;
the handler registered by register_error_handlers() rolls back the session and
shapes the JSON envelope:

    {"success": false, "error": "<message>", "details": {...}?}

Status mapping:
- ValidationError   400  malformed, missing or out-of-range input
- UnauthorizedError 401  missing/invalid session
- ForbiddenError    403  tenant mismatch, insufficient role
- NotFoundError     404  no row for id + company scope
- ConflictError     409  uniqueness violations, invalid state transitions
- IntegrityError    409  constraint violations the service did not pre-check
- anything else     500  logged with traceback
"""

from __future__ import annotations

from flask import Flask, current_app, jsonify
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from .extensions import db


class AppError(Exception):
    """Base for errors that carry an HTTP status."""

    status_code = 500

    def __init__(self, message: str | None = None, details: dict | None = None):
        super().__init__(message or self.__class__.default_message)
        self.message = message or self.__class__.default_message
        self.details = details

    default_message = "Internal server error"


class ValidationError(AppError, ValueError):
    """400-level input problem."""
    status_code = 400
    default_message = "Validation failed"


class UnauthorizedError(AppError):
    status_code = 401
    default_message = "Authentication required"


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class ConflictError(AppError, ValueError):
    """409-level business rule conflict (e.g., duplicate GST number)."""
    status_code = 409
    default_message = "Conflict"


def error_payload(message: str, details: dict | None = None) -> dict:
    payload = {"success": False, "error": message}
    if details:
        payload["details"] = details
    return payload


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(AppError)
    def handle_app_error(exc: AppError):
        db.session.rollback()
        if exc.status_code >= 500:
            current_app.logger.exception("Request failed: %s", exc.message)
        else:
            current_app.logger.info("Request rejected (%s): %s", exc.status_code, exc.message)
        return jsonify(error_payload(exc.message, exc.details)), exc.status_code

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(exc: IntegrityError):
        db.session.rollback()
        current_app.logger.warning("Integrity error: %s", exc.orig)
        return jsonify(error_payload("Conflicts with an existing record")), 409

    @app.errorhandler(HTTPException)
    def handle_http_exception(exc: HTTPException):
        return jsonify(error_payload(exc.description or exc.name)), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        db.session.rollback()
        current_app.logger.exception("Unhandled error")
        return jsonify(error_payload("Internal server error")), 500
