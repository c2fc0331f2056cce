from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError
import logging

from user_auth import (
    AuthError,
    InvalidCredentialsError,
    LogoutError,
    SessionMismatchError,
)
from utils.decorators import forget_session_cookie


def error_response(error: str, message: str, status: int, details: dict | None = None):
    payload = {"error": error, "message": message, "status": status}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def register_error_handlers(app):
    # 400 Bad Request (generic)
    @app.errorhandler(400)
    def bad_request(e):
        if current_app and current_app.debug:
            logging.exception("Unhandled exception", exc_info=e)
        message = getattr(e, "description", "Bad request")
        return error_response("BAD_REQUEST", message, 400)

    # 401 Unauthorized: never leave a known-bad session cookie behind
    @app.errorhandler(401)
    def unauthorized(e):
        forget_session_cookie()
        message = getattr(e, "description", "Unauthorized")
        return error_response("UNAUTHORIZED", message, 401)

    # 404 Not Found
    @app.errorhandler(404)
    def not_found(e):
        if current_app and current_app.debug:
            logging.exception("Unhandled exception", exc_info=e)
        return error_response("NOT_FOUND", "Resource not found", 404)

    # 409 Conflict
    @app.errorhandler(409)
    def conflict(e):
        if current_app and current_app.debug:
            logging.exception("Unhandled exception", exc_info=e)
        message = getattr(e, "description", "Conflict")
        return error_response("CONFLICT", message, 409)

    # 422 Unprocessable Entity (validation)
    @app.errorhandler(422)
    def unprocessable(e):
        if current_app and current_app.debug:
            logging.exception("Unhandled exception", exc_info=e)
        message = getattr(e, "description", "Unprocessable entity")
        return error_response("VALIDATION_ERROR", message, 422)

    # Marshmallow validation errors map to 422
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        # err.messages contains field-level details
        if current_app and current_app.debug:
            logging.exception("Unhandled exception", exc_info=err)
        return error_response("VALIDATION_ERROR", "Invalid input", 422, details=err.messages)

    # Unknown e-mail, inactive account and wrong password look like any 404
    @app.errorhandler(InvalidCredentialsError)
    def handle_invalid_credentials(err: InvalidCredentialsError):
        logging.warning("Invalid credentials (%s)", err.reason)
        return error_response("NOT_FOUND", "Resource not found", 404)

    # Superseded, replayed or logged-out refresh token
    @app.errorhandler(SessionMismatchError)
    def handle_session_mismatch(err: SessionMismatchError):
        forget_session_cookie()
        return error_response("INVALID_SESSION", str(err), 401)

    @app.errorhandler(LogoutError)
    def handle_logout_error(err: LogoutError):
        return error_response("INTERNAL_ERROR", "Could not delete session", 500)

    # Malformed/expired tokens, vanished users
    @app.errorhandler(AuthError)
    def handle_auth_error(err: AuthError):
        if current_app and current_app.debug:
            logging.info("Authentication failed: %s: %s", err.__class__.__name__, err)
        forget_session_cookie()
        return error_response("UNAUTHORIZED", "Unauthorized", 401)

    # Integrity errors (unique constraints, FK violations, check constraints)
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        message = str(getattr(err, "orig", err))
        lower_msg = message.lower()
        if current_app and current_app.debug:
            logging.exception("Unhandled exception", exc_info=err)
        if "unique constraint" in lower_msg or "unique violation" in lower_msg:
            return error_response("CONFLICT", "Unique constraint violated.", 409, details={"db_error": message})
        return error_response("BAD_REQUEST", "Integrity error.", 400, details={"db_error": message})

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return error_response("BAD_REQUEST", err.description, err.code or 400)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        # In dev, include exception details to speed up debugging
        details = None
        if current_app and current_app.debug:
            logging.exception("Unhandled exception", exc_info=err)
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500, details=details)
