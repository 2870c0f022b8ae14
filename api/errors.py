from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
import logging
import re

from models import storage
from models.schemas.common import first_messages

logger = logging.getLogger(__name__)


class Codes:
    OK = "OK"
    CREATED = "CREATED"
    UPDATED = "UPDATED"
    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    CONFLICT = "CONFLICT"
    FORM_ERRORS = "FORM_ERRORS"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    BLACKLISTED_TOKEN = "BLACKLISTED_TOKEN"
    USER_ARCHIVED = "USER_ARCHIVED"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


def envelope(code: str, data, message: str, success: bool, errors: dict | None = None) -> dict:
    payload = {"code": code, "data": data, "message": message, "success": success}
    if errors:
        payload["errors"] = errors
    return payload


def success_response(data=None, message: str = "Success.", status: int = 200, code: str = Codes.OK):
    return jsonify(envelope(code, data, message, True)), status


def error_response(code: str, message: str, status: int, errors: dict | None = None):
    return jsonify(envelope(code, None, message, False, errors)), status


def http_code(err: HTTPException) -> str:
    """Envelope code from the exception's status name, e.g. 415 -> UNSUPPORTED_MEDIA_TYPE."""
    name = re.sub(r"[^A-Z0-9]+", "_", (err.name or "").upper()).strip("_")
    return name or Codes.BAD_REQUEST


def _debug() -> bool:
    return bool(current_app and current_app.debug)


def register_error_handlers(app):
    # 400 Bad Request (generic)
    @app.errorhandler(400)
    def bad_request(e):
        message = getattr(e, "description", "Bad request")
        return error_response(Codes.BAD_REQUEST, message, 400)

    @app.errorhandler(401)
    def unauthorized(e):
        message = getattr(e, "description", "Unauthorized")
        return error_response(Codes.UNAUTHORIZED, message, 401)

    @app.errorhandler(403)
    def forbidden(e):
        message = getattr(e, "description", "Forbidden")
        return error_response(Codes.FORBIDDEN, message, 403)

    # 404 Not Found
    @app.errorhandler(404)
    def not_found(e):
        return error_response(Codes.NOT_FOUND, "Resource not found.", 404)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return error_response(Codes.METHOD_NOT_ALLOWED, "Method not allowed.", 405)

    # 409 Conflict
    @app.errorhandler(409)
    def conflict(e):
        message = getattr(e, "description", "Conflict")
        return error_response(Codes.CONFLICT, message, 409)

    # Marshmallow validation errors: field-level messages in `errors`
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        if _debug():
            logger.info("Validation failed: %s", err.messages)
        return error_response(Codes.FORM_ERRORS, "The form data is invalid.", 400, errors=first_messages(err.messages))

    # Unique constraints (e.g. two registrations racing for one email)
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        storage.rollback()
        if _debug():
            logger.exception("Integrity error", exc_info=err)
        return error_response(Codes.CONFLICT, "Unique constraint violated.", 409)

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(err: SQLAlchemyError):
        storage.rollback()
        logger.exception("Database error", exc_info=err)
        message = str(err) if _debug() else "Server error."
        return error_response(Codes.INTERNAL_SERVER_ERROR, message, 500)

    # Remaining Werkzeug HTTPExceptions keep their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return error_response(http_code(err), err.description, err.code or 400)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        # In dev, include exception details to speed up debugging
        message = f"{err.__class__.__name__}: {err}" if _debug() else "Server error."
        return error_response(Codes.INTERNAL_SERVER_ERROR, message, 500)
