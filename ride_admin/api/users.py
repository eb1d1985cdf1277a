"""User administration endpoints backing the dashboard's users table."""

from __future__ import annotations
from typing import Optional

from flask import Blueprint, request, jsonify

from ride_admin.api.decorators import (
    audit_trail,
    caller_operator,
    identity_service,
    profile_service,
    require_session,
)
from ride_admin.core import user_admin
from ride_admin.core.errors import InvalidRequest

bp = Blueprint("users", __name__)


def _bool_arg(name: str) -> Optional[bool]:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    lowered = raw.lower()
    if lowered in ("true", "1"):
        return True
    if lowered in ("false", "0"):
        return False
    raise InvalidRequest(f"{name} must be true or false")


@bp.route("", methods=["GET"])
@require_session
def list_users():
    """List profiles, newest first (?role=, ?is_active=, ?search=)."""
    users = user_admin.list_users(
        profile_service(),
        role=request.args.get("role") or None,
        is_active=_bool_arg("is_active"),
        search=request.args.get("search"),
    )
    return jsonify({"users": users, "count": len(users)})


@bp.route("/<profile_id>", methods=["GET"])
@require_session
def get_user(profile_id: str):
    return jsonify({"user": user_admin.get_user(profile_service(), profile_id)})


@bp.route("/<profile_id>", methods=["PATCH"])
@require_session
def update_user(profile_id: str):
    """Edit name, phone, role, avatar or flags."""
    user = user_admin.update_user(
        profile_service(),
        profile_id,
        request.get_json(silent=True),
        operator=caller_operator(),
        audit_trail=audit_trail(),
    )
    return jsonify({"user": user})


@bp.route("/<profile_id>/toggle-active", methods=["POST"])
@require_session
def toggle_active(profile_id: str):
    user = user_admin.toggle_user_flag(
        profile_service(), profile_id, "is_active",
        operator=caller_operator(), audit_trail=audit_trail(),
    )
    return jsonify({"user": user})


@bp.route("/<profile_id>/toggle-verified", methods=["POST"])
@require_session
def toggle_verified(profile_id: str):
    user = user_admin.toggle_user_flag(
        profile_service(), profile_id, "is_verified",
        operator=caller_operator(), audit_trail=audit_trail(),
    )
    return jsonify({"user": user})


@bp.route("/<profile_id>", methods=["DELETE"])
@require_session
def delete_user(profile_id: str):
    """Delete the profile, then best-effort delete the identity."""
    identity_removed = user_admin.delete_user(
        profile_service(),
        identity_service(),
        profile_id,
        operator=caller_operator(),
        audit_trail=audit_trail(),
    )
    return jsonify({"success": True, "identity_removed": identity_removed})
