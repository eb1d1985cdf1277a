"""Error handlers for the application.

Every error leaves the API as ``{"error": "<message>"}`` with the status of
its taxonomy class.
"""
import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

from ride_admin.core.errors import DashboardError, InternalError

logger = logging.getLogger(__name__)

_HTTP_MESSAGES = {
    400: "Bad request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not found",
    405: "Method not allowed",
    413: "Request payload too large",
}


def register_error_handlers(app):
    """Register error handlers with the Flask app."""

    @app.errorhandler(DashboardError)
    def handle_dashboard_error(error: DashboardError):
        """Render taxonomy errors raised by services and decorators."""
        return jsonify(error.to_dict()), error.status

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        """Render werkzeug routing/abort errors as JSON."""
        message = _HTTP_MESSAGES.get(error.code, error.name)
        return jsonify({"error": message}), error.code

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        # ALWAYS log the full error; the client only sees a generic message
        logger.error("Unhandled exception: %s", error, exc_info=True)
        return jsonify(InternalError().to_dict()), 500
