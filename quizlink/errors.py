"""
API Errors
Exceptions raised by route handlers and services, rendered as JSON
"""
from flask import jsonify, request, current_app
from werkzeug.exceptions import HTTPException

from quizlink.extensions import db


class ApiError(Exception):
    """Base error carrying an HTTP status and a user-facing message"""
    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_response(self):
        return jsonify({'error': self.message}), self.status_code


class ValidationError(ApiError):
    status_code = 400


class UnauthorizedError(ApiError):
    status_code = 401


class ForbiddenError(ApiError):
    status_code = 403


class NotFoundError(ApiError):
    status_code = 404


class ConflictError(ApiError):
    status_code = 409


def _is_api_request():
    return request.path.startswith('/api/')


def register_error_handlers(app):
    """Attach JSON error handlers to the app"""

    @app.errorhandler(ApiError)
    def handle_api_error(error):
        if error.status_code >= 500:
            db.session.rollback()
        return error.to_response()

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        if error.code is None or error.code < 400 or not _is_api_request():
            return error
        return jsonify({'error': error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        db.session.rollback()
        current_app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        if _is_api_request():
            return jsonify({'error': 'Internal server error'}), 500
        return "Internal server error", 500
