"""User provisioning endpoint.

Single URL serving the dashboard's "create user" form:
    OPTIONS -> CORS preflight ("ok")
    POST    -> authorization gate -> provisioning workflow
    other   -> 405
"""

from __future__ import annotations
import logging

from flask import Blueprint, request, jsonify, current_app

from ride_admin.api.decorators import audit_trail, authorize_request, identity_service, profile_service
from ride_admin.core.errors import MethodNotAllowed
from ride_admin.core.provisioning_service import SUCCESS_MESSAGE, provision_user

bp = Blueprint("provisioning", __name__)

logger = logging.getLogger(__name__)

CORS_ALLOW_HEADERS = "authorization, x-client-info, apikey, content-type"
CORS_ALLOW_METHODS = "POST, OPTIONS"


@bp.after_request
def add_cors_headers(response):
    """Attach CORS headers to every response of this endpoint, errors included."""
    cfg = current_app.config["APP_CONFIG"]
    response.headers["Access-Control-Allow-Origin"] = cfg.cors_allowed_origin
    response.headers["Access-Control-Allow-Headers"] = CORS_ALLOW_HEADERS
    response.headers["Access-Control-Allow-Methods"] = CORS_ALLOW_METHODS
    return response


@bp.route(
    "/functions/v1/create-user",
    methods=["OPTIONS", "POST", "GET", "PUT", "PATCH", "DELETE"],
    provide_automatic_options=False,
)
def create_user():
    """Create a platform user (identity + profile)."""
    if request.method == "OPTIONS":
        return ("ok", 200, {"Content-Type": "text/plain"})

    if request.method != "POST":
        raise MethodNotAllowed()

    caller = authorize_request()

    payload = request.get_json(silent=True)
    profile = provision_user(
        payload,
        identity_service(),
        profile_service(),
        operator=caller.id,
        audit_trail=audit_trail(),
    )

    return jsonify({"success": True, "user": profile, "message": SUCCESS_MESSAGE}), 200
