"""Audit logging utilities for provisioning and user-administration events."""

from __future__ import annotations
import datetime
import hashlib
import hmac
import json
import logging
import os
from pathlib import Path
from typing import Any, Literal

logger = logging.getLogger(__name__)

AUDIT_LOG_FILENAME = "provisioning-events.jsonl"
SECRETS_DIR = Path("/run/secrets")
SIGNING_KEY_SECRET = "audit_log_signing_key"

EventType = Literal[
    "provision_user",
    "provision_identity_failed",
    "provision_profile_failed",
    "provision_compensated",
    "provision_compensation_failed",
    "user_update",
    "user_delete",
    "identity_delete_failed",
]


def audit_log_dir() -> Path:
    """Directory holding the audit trail (AUDIT_LOG_DIR, read on every call)."""
    return Path(os.environ.get("AUDIT_LOG_DIR", ".runtime/audit"))


def _read_key_file(path: Path) -> bytes:
    if not path.is_file():
        return b""
    try:
        return path.read_text(encoding="utf-8").strip().encode("utf-8")
    except OSError:
        logger.warning("Audit signing key file %s is unreadable", path)
        return b""


def _get_signing_key() -> bytes:
    """Get the audit signing key.

    Priority:
    1. AUDIT_LOG_SIGNING_KEY_FILE
    2. /run/secrets/audit_log_signing_key (Docker secrets mount)
    3. AUDIT_LOG_SIGNING_KEY
    """
    key_file = os.environ.get("AUDIT_LOG_SIGNING_KEY_FILE")
    if key_file:
        key = _read_key_file(Path(key_file))
        if key:
            return key
    key = _read_key_file(SECRETS_DIR / SIGNING_KEY_SECRET)
    if key:
        return key
    return os.environ.get("AUDIT_LOG_SIGNING_KEY", "").strip().encode("utf-8")


class AuditTrail:
    """Append-only JSONL audit file, HMAC-SHA256 signed when a key is set.

    Usage:
        trail = AuditTrail(".runtime/audit", signing_key)
        trail.safe_log_event("provision_user", "a@b.com", operator="caller-1")
    """

    def __init__(self, log_dir: str | Path, signing_key: str | bytes = b""):
        self.log_dir = Path(log_dir)
        if isinstance(signing_key, str):
            signing_key = signing_key.strip().encode("utf-8")
        self.signing_key = signing_key

    @property
    def log_file(self) -> Path:
        return self.log_dir / AUDIT_LOG_FILENAME

    def _ensure_dir(self) -> None:
        """Create audit directory with restricted permissions."""
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.log_dir.chmod(0o700)

    def sign(self, event: dict[str, Any]) -> str:
        """Generate HMAC-SHA256 signature for audit event."""
        if not self.signing_key:
            return ""
        canonical = json.dumps(event, sort_keys=True, separators=(",", ":"))
        return hmac.new(self.signing_key, canonical.encode("utf-8"), hashlib.sha256).hexdigest()

    def log_event(
        self,
        event_type: EventType,
        subject: str,
        *,
        operator: str = "system",
        details: dict[str, Any] | None = None,
        success: bool = True,
    ) -> None:
        """Append an event to the audit trail with timestamp and signature.

        Args:
            event_type: Operation being recorded
            subject: Email or profile id the operation targeted
            operator: Caller id, "cli", or "system"
            details: Additional context (identity id, error message, etc.)
            success: Whether the operation succeeded
        """
        self._ensure_dir()

        event = {
            "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
            "event_type": event_type,
            "subject": subject,
            "operator": operator,
            "success": success,
            "details": details or {},
        }

        signature = self.sign(event)
        if signature:
            event["signature"] = signature

        with self.log_file.open("a", encoding="utf-8") as f:
            f.write(json.dumps(event, ensure_ascii=False) + "\n")

        self.log_file.chmod(0o600)

    def safe_log_event(
        self,
        event_type: EventType,
        subject: str,
        *,
        operator: str = "system",
        details: dict[str, Any] | None = None,
        success: bool = True,
    ) -> bool:
        """Log an event without ever raising.

        Audit failures must not change the outcome of the operation being
        recorded, so they are reported through the logger instead.

        Returns:
            True if event was logged successfully, False if logging failed
        """
        try:
            self.log_event(event_type, subject, operator=operator, details=details, success=success)
            return True
        except Exception as exc:
            logger.warning("Failed to log %s event for %s: %s", event_type, subject, exc)
            return False

    def verify(self) -> tuple[int, int]:
        """Verify all signatures in the audit log.

        Returns:
            Tuple of (total_events, valid_signatures)
        """
        if not self.log_file.exists():
            return 0, 0

        total = 0
        valid = 0

        with self.log_file.open("r", encoding="utf-8") as f:
            for line in f:
                if not line.strip():
                    continue
                total += 1
                try:
                    event = json.loads(line)
                    stored_sig = event.pop("signature", "")
                    if not stored_sig:
                        continue
                    computed_sig = self.sign(event)
                    if computed_sig and hmac.compare_digest(stored_sig, computed_sig):
                        valid += 1
                except (json.JSONDecodeError, KeyError):
                    continue

        return total, valid


def default_trail() -> AuditTrail:
    """Trail configured from AUDIT_LOG_DIR and the signing key sources."""
    return AuditTrail(audit_log_dir(), _get_signing_key())


def log_event(
    event_type: EventType,
    subject: str,
    *,
    operator: str = "system",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> None:
    """Append an event to the default trail."""
    default_trail().log_event(event_type, subject, operator=operator, details=details, success=success)


def verify_audit_log() -> tuple[int, int]:
    """Verify all signatures in the default trail."""
    return default_trail().verify()
