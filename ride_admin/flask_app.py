"""Flask application factory and bootstrap.

This module provides the create_app() factory function for initializing
the Flask application with all blueprints, Supabase services and error
handlers.
"""
from __future__ import annotations
import logging
from typing import Optional

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from ride_admin.audit import AuditTrail
from ride_admin.config import AppConfig, load_settings
from ride_admin.core.supabase import IdentityService, ProfileService, RideService, SupabaseClient

JSON_MAX_SIZE_BYTES = 65536  # 64 KB

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(
    cfg: Optional[AppConfig] = None,
    *,
    identity_service: Optional[IdentityService] = None,
    profile_service: Optional[ProfileService] = None,
    ride_service: Optional[RideService] = None,
) -> Flask:
    """Create and configure Flask application.

    Services default to Supabase-backed implementations built from the
    configuration; tests pass in-memory replacements.
    """
    cfg = cfg or load_settings()
    _configure_logging(cfg.log_level)

    app = Flask(__name__)
    app.config["APP_CONFIG"] = cfg
    app.config["MAX_CONTENT_LENGTH"] = JSON_MAX_SIZE_BYTES
    app.json.sort_keys = False

    admin_client = SupabaseClient(cfg.supabase_url, cfg.supabase_service_role_key, cfg.request_timeout)
    anon_client = SupabaseClient(cfg.supabase_url, cfg.supabase_anon_key, cfg.request_timeout)

    app.config["IDENTITY_SERVICE"] = identity_service or IdentityService(
        admin_client, anon_client, jwt_secret=cfg.supabase_jwt_secret
    )
    app.config["PROFILE_SERVICE"] = profile_service or ProfileService(admin_client)
    app.config["RIDE_SERVICE"] = ride_service or RideService(admin_client)
    app.config["AUDIT_TRAIL"] = AuditTrail(cfg.audit_log_dir, cfg.audit_log_signing_key)

    # Trust X-Forwarded-* headers from one proxy hop (nginx)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)  # type: ignore

    # Register blueprints
    from ride_admin.api import errors, health, provisioning, rides, users

    app.register_blueprint(provisioning.bp)
    app.register_blueprint(users.bp, url_prefix="/api/users")
    app.register_blueprint(rides.bp, url_prefix="/api")
    app.register_blueprint(health.bp)

    errors.register_error_handlers(app)

    mode_label = "DEMO" if cfg.demo_mode else "PRODUCTION"
    logger.info("Mode=%s; provisioning endpoint at /functions/v1/create-user", mode_label)

    return app


def _configure_logging(level: str) -> None:
    """Install a basic handler once; gunicorn/pytest handlers are left alone."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
    logging.getLogger("ride_admin").setLevel(level)


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=5000, debug=True)
