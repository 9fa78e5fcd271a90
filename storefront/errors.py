# storefront/errors.py
from flask import jsonify
from werkzeug.exceptions import HTTPException

from .utils.api import api_error


class StoreError(Exception):
    """Base for failures coming out of the persistence layer."""
    status_code = 500

    def __init__(self, message, data=None):
        super().__init__(message)
        self.message = message
        self.data = data


class StoreUnavailable(StoreError):
    status_code = 503


class ConstraintViolation(StoreError):
    status_code = 409


class RecordNotFound(LookupError):
    """A referenced record does not exist (or is not visible to the caller)."""


def register_error_handlers(app):
    @app.errorhandler(StoreError)
    def handle_store_error(e):
        app.logger.warning("store error (%s): %s", type(e).__name__, e.message)
        r = jsonify(api_error(e.message, e.data))
        r.status_code = e.status_code
        return r

    @app.errorhandler(RecordNotFound)
    def handle_not_found(e):
        r = jsonify(api_error(str(e) or "not found"))
        r.status_code = 404
        return r

    @app.errorhandler(ValueError)
    def handle_value_error(e):
        r = jsonify(api_error(str(e)))
        r.status_code = 422
        return r

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        r = jsonify(api_error(e.description or e.name))
        r.status_code = e.code or 500
        return r
