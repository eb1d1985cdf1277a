"""Read-only ride listing and dashboard statistics."""

from flask import Blueprint, request, jsonify

from ride_admin.api.decorators import profile_service, require_session, ride_service
from ride_admin.core.errors import InvalidRequest
from ride_admin.core.stats import dashboard_stats
from ride_admin.core.supabase import RIDE_STATUSES

bp = Blueprint("rides", __name__)


@bp.route("/rides", methods=["GET"])
@require_session
def list_rides():
    """Rides newest first with customer/driver names (?status=)."""
    status = request.args.get("status")
    filters = {}
    if status:
        if status not in RIDE_STATUSES:
            raise InvalidRequest(f"Invalid status '{status}'. Must be one of: {', '.join(RIDE_STATUSES)}")
        filters["status"] = status
    rides = ride_service().list_rides(filters)
    return jsonify({"rides": rides, "count": len(rides)})


@bp.route("/stats", methods=["GET"])
@require_session
def stats():
    """Totals and the last seven days of rides per day."""
    return jsonify(dashboard_stats(profile_service(), ride_service()))
