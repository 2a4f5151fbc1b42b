# glazier/errors.py
"""Error taxonomy shared by every blueprint.

Operations raise these; the handlers registered by
:func:`register_error_handlers` turn them into ``{"error": message}`` JSON
responses so no stack detail ever reaches the caller.
"""

import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException


class GlazierError(Exception):
    status_code = 500
    message = 'Internal server error'

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class Unauthenticated(GlazierError):
    status_code = 401
    message = 'Unauthorized'


class InvalidCredentials(GlazierError):
    status_code = 401
    message = 'Invalid credentials'


class NotFound(GlazierError):
    """Record absent *or* owned by someone else; callers cannot tell which."""
    status_code = 404
    message = 'Not found'


class ValidationFailed(GlazierError):
    status_code = 400
    message = 'Invalid request'


class Conflict(GlazierError):
    status_code = 400
    message = 'Conflict'


def register_error_handlers(app):
    from glazier import db

    @app.errorhandler(GlazierError)
    def domain_error(err):
        return jsonify(error=err.message), err.status_code

    @app.errorhandler(HTTPException)
    def http_error(err):
        return jsonify(error=err.name), err.code

    @app.errorhandler(Exception)
    def server_error(err):
        logging.exception('unhandled error: %s', err)
        db.session.rollback()
        return jsonify(error='Internal server error'), 500
