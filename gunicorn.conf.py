"""Gunicorn configuration file.

Secrets (service role key, JWT secret, audit signing key) are read by
ride_admin.config.settings from /run/secrets first and the environment
second; this file only reports which source a worker will see.
"""
import os

wsgi_app = "ride_admin.flask_app:create_app()"
bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:5000")
workers = int(os.environ.get("GUNICORN_WORKERS", "2"))
# Provisioning makes up to three sequential upstream calls per request
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "60"))
accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info").lower()


def post_fork(server, worker):
    """
    Called just after a worker has been forked.

    Logs whether Docker secrets are mounted so a missing mount is visible
    before the first request fails.
    """
    demo_mode = os.environ.get("DEMO_MODE", "false").lower() == "true"
    if demo_mode:
        worker.log.warning("DEMO_MODE=true - demo Supabase credentials may be in use")

    from pathlib import Path
    secrets_dir = Path("/run/secrets")
    if secrets_dir.exists() and secrets_dir.is_dir():
        secret_files = list(secrets_dir.glob("*"))
        if secret_files:
            worker.log.info(f"Found {len(secret_files)} secrets in /run/secrets")
            return

    if not os.environ.get("SUPABASE_SERVICE_ROLE_KEY") and not demo_mode:
        worker.log.error("SUPABASE_SERVICE_ROLE_KEY missing from /run/secrets and environment")
    else:
        worker.log.info("Using secrets from environment variables")
