"""Health check endpoints."""
import logging

import requests
from flask import Blueprint

from ride_admin.api.decorators import profile_service
from ride_admin.core.supabase import SupabaseError

bp = Blueprint("health", __name__)

logger = logging.getLogger(__name__)


@bp.route("/health")
def health_check():
    """Liveness: the process is serving requests."""
    return ("ok", 200, {"Content-Type": "text/plain"})


@bp.route("/ready")
def readiness_check():
    """Readiness: the profile store answers a count query."""
    try:
        profile_service().count_profiles()
    except (SupabaseError, requests.RequestException) as exc:
        logger.warning("Readiness check failed: %s", exc)
        return ("not ready", 503, {"Content-Type": "text/plain"})
    return ("ready", 200, {"Content-Type": "text/plain"})
