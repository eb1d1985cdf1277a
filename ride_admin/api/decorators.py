"""
Flask helpers for authentication and service lookup.

Every dashboard endpoint runs the authorization gate before touching the
stores; the confirmed caller is attached to ``flask.g`` for audit records.
"""

import logging
from functools import wraps
from typing import Optional

from flask import request, current_app, g

from ride_admin.core.authorization import AuthorizedCaller, authorize_caller

logger = logging.getLogger(__name__)


def identity_service():
    return current_app.config["IDENTITY_SERVICE"]


def profile_service():
    return current_app.config["PROFILE_SERVICE"]


def ride_service():
    return current_app.config["RIDE_SERVICE"]


def audit_trail():
    return current_app.config["AUDIT_TRAIL"]


def authorize_request() -> AuthorizedCaller:
    """Run the authorization gate against the current request.

    Raises:
        Unauthenticated, PermissionUnverifiable, InsufficientPermissions
    """
    cfg = current_app.config["APP_CONFIG"]
    caller = authorize_caller(
        request.headers.get("Authorization"),
        identity_service(),
        profile_service(),
        required_role=cfg.provisioning_required_role,
    )
    g.caller = caller
    return caller


def require_session(fn):
    """
    Decorator requiring a live session owned by a caller with a profile.

    Raises the gate's errors; the app error handlers render them as JSON.

    Example:
        @bp.route("/api/users")
        @require_session
        def list_users():
            ...
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        authorize_request()
        return fn(*args, **kwargs)

    return wrapper


def get_caller() -> Optional[AuthorizedCaller]:
    """
    Get the caller confirmed by @require_session in the current request.

    Returns:
        AuthorizedCaller, or None outside a gated request
    """
    return getattr(g, "caller", None)


def caller_operator() -> str:
    """Caller id for audit records, "anonymous" outside a gated request."""
    caller = get_caller()
    return caller.id if caller else "anonymous"
