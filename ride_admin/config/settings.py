"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEMO_SUPABASE_URL = "http://127.0.0.1:54321"
DEMO_ANON_KEY = "demo-anon-key"
DEMO_SERVICE_ROLE_KEY = "demo-service-role-key"


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                logger.info("Loaded %s from /run/secrets", secret_name)
                return secret_value
        except OSError as e:
            logger.warning("Failed to read /run/secrets/%s: %s", secret_name, e)

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


@dataclass
class AppConfig:
    """Application configuration container."""
    # Mode
    demo_mode: bool

    # Supabase
    supabase_url: str
    supabase_anon_key: str
    supabase_service_role_key: str
    supabase_jwt_secret: str = ""
    request_timeout: float = 10.0

    # Authorization gate (empty = any authenticated caller with a profile)
    provisioning_required_role: str = ""

    # HTTP
    cors_allowed_origin: str = "*"

    # Audit
    audit_log_dir: str = ".runtime/audit"
    audit_log_signing_key: str = ""

    # Logging
    log_level: str = "INFO"


def _get_or_generate(var_name: str, demo_default: Optional[str] = None, required: bool = True, demo_mode: bool = False) -> str:
    """Get environment variable or use demo default."""
    value = os.environ.get(var_name)
    if value:
        return value

    if demo_mode and demo_default is not None:
        logger.info("[demo-mode] Using default for %s", var_name)
        return demo_default

    if not required:
        return ""

    raise RuntimeError(f"Environment variable {var_name} is required in production mode.")


def _parse_timeout(raw: str) -> float:
    try:
        timeout = float(raw)
    except ValueError:
        raise RuntimeError(f"SUPABASE_REQUEST_TIMEOUT must be a number, got {raw!r}")
    if timeout <= 0:
        raise RuntimeError("SUPABASE_REQUEST_TIMEOUT must be positive")
    return timeout


def load_settings() -> AppConfig:
    """Load application settings from environment and /run/secrets."""
    demo_mode = os.environ.get("DEMO_MODE", "false").lower() == "true"

    supabase_url = _get_or_generate("SUPABASE_URL", demo_default=DEMO_SUPABASE_URL, demo_mode=demo_mode)
    supabase_anon_key = _get_or_generate("SUPABASE_ANON_KEY", demo_default=DEMO_ANON_KEY, demo_mode=demo_mode)

    # Secrets: /run/secrets > environment > demo default
    service_role_key = _load_secret_from_file("supabase_service_role_key", "SUPABASE_SERVICE_ROLE_KEY")
    if not service_role_key:
        if not demo_mode:
            raise RuntimeError("SUPABASE_SERVICE_ROLE_KEY not found in /run/secrets or environment")
        logger.info("[demo-mode] Using default for SUPABASE_SERVICE_ROLE_KEY")
        service_role_key = DEMO_SERVICE_ROLE_KEY

    jwt_secret = _load_secret_from_file("supabase_jwt_secret", "SUPABASE_JWT_SECRET") or ""
    audit_log_signing_key = _load_secret_from_file("audit_log_signing_key", "AUDIT_LOG_SIGNING_KEY") or ""

    request_timeout = _parse_timeout(os.environ.get("SUPABASE_REQUEST_TIMEOUT", "10"))

    # Open policy by default; set to e.g. "admin" to require that profile role
    required_role = os.environ.get("PROVISIONING_REQUIRED_ROLE", "").strip().lower()

    cfg = AppConfig(
        demo_mode=demo_mode,
        supabase_url=supabase_url.rstrip("/"),
        supabase_anon_key=supabase_anon_key,
        supabase_service_role_key=service_role_key,
        supabase_jwt_secret=jwt_secret,
        request_timeout=request_timeout,
        provisioning_required_role=required_role,
        cors_allowed_origin=os.environ.get("CORS_ALLOWED_ORIGIN", "*").strip() or "*",
        audit_log_dir=os.environ.get("AUDIT_LOG_DIR", ".runtime/audit"),
        audit_log_signing_key=audit_log_signing_key,
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )

    mode_label = "DEMO" if demo_mode else "PRODUCTION"
    logger.info(
        "Mode=%s; supabase=%s; required_role=%s; local_jwt=%s",
        mode_label, cfg.supabase_url, required_role or "<none>", bool(jwt_secret),
    )
    if demo_mode:
        logger.warning("Demo credentials in use. Do not deploy with these defaults.")

    return cfg
