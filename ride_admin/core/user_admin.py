"""Dashboard operations on existing users.

Edits and toggles are single-row updates with no compensation. Deleting a
user removes the profile first (must succeed) and the backing identity
second (best effort), the reverse of the provisioning order.
"""
from __future__ import annotations
import datetime
import logging
from typing import Any, List, Optional

import requests

from ride_admin import audit
from ride_admin.core.errors import (
    ProfileDeletionFailed,
    ProfileNotFound,
    ProfileUpdateConflict,
    ProfileUpdateFailed,
)
from ride_admin.core.provisioning_service import external_error_message
from ride_admin.core.supabase import (
    IdentityService,
    ProfileService,
    RecordNotFoundError,
    SupabaseError,
)
from ride_admin.core.validators import validate_profile_patch

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("full_name", "email", "phone")


def _utcnow_iso() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


def list_users(
    profile_service: ProfileService,
    *,
    role: Optional[str] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
) -> List[dict]:
    """List profiles newest first, optionally filtered.

    ``role`` and ``is_active`` are pushed to the store; ``role`` is matched
    as-is so profiles outside the customer/driver set (e.g. admin) can be
    listed. ``search`` is a case-insensitive substring match on name, email
    and phone.
    """
    filters: dict = {}
    if role:
        filters["role"] = role.strip()
    if is_active is not None:
        filters["is_active"] = is_active

    users = profile_service.query_profiles(filters=filters, order=("created_at", False))

    needle = (search or "").strip().lower()
    if not needle:
        return users
    return [
        user for user in users
        if any(needle in str(user.get(field) or "").lower() for field in SEARCH_FIELDS)
    ]


def get_user(profile_service: ProfileService, profile_id: str) -> dict:
    """Return one profile.

    Raises:
        ProfileNotFound: If no profile has this id
    """
    profile = profile_service.get_profile(profile_id)
    if not profile:
        raise ProfileNotFound(f"User with id '{profile_id}' not found")
    return profile


def update_user(
    profile_service: ProfileService,
    profile_id: str,
    payload: Any,
    *,
    operator: str = "system",
    audit_trail: Optional[audit.AuditTrail] = None,
) -> dict:
    """Apply a validated edit to one profile and stamp ``updated_at``.

    Raises:
        InvalidRequest: Payload has unknown or malformed fields
        ProfileNotFound: If no profile has this id
        ProfileUpdateFailed: Store rejected the update
    """
    patch = validate_profile_patch(payload)
    return _apply_patch(profile_service, profile_id, patch, operator, audit_trail)


def set_user_active(profile_service: ProfileService, profile_id: str, value: bool, *,
                    operator: str = "system", audit_trail: Optional[audit.AuditTrail] = None) -> dict:
    return _apply_patch(profile_service, profile_id, {"is_active": bool(value)}, operator, audit_trail)


def set_user_verified(profile_service: ProfileService, profile_id: str, value: bool, *,
                      operator: str = "system", audit_trail: Optional[audit.AuditTrail] = None) -> dict:
    return _apply_patch(profile_service, profile_id, {"is_verified": bool(value)}, operator, audit_trail)


def toggle_user_flag(profile_service: ProfileService, profile_id: str, field: str, *,
                     operator: str = "system", audit_trail: Optional[audit.AuditTrail] = None) -> dict:
    """Flip ``is_active`` or ``is_verified`` relative to the stored value.

    The write is conditional on the value that was read, so two concurrent
    toggles cannot both apply the same flip.

    Raises:
        ProfileNotFound: If no profile has this id
        ProfileUpdateConflict: The flag changed between the read and the write
    """
    if field not in ("is_active", "is_verified"):
        raise ValueError(f"Cannot toggle {field}")
    current = get_user(profile_service, profile_id).get(field)
    return _apply_patch(
        profile_service,
        profile_id,
        {field: not current},
        operator,
        audit_trail,
        expected={field: current},
    )


def _apply_patch(
    profile_service: ProfileService,
    profile_id: str,
    patch: dict,
    operator: str,
    audit_trail: Optional[audit.AuditTrail] = None,
    expected: Optional[dict] = None,
) -> dict:
    patch = dict(patch, updated_at=_utcnow_iso())
    try:
        profile = profile_service.update_profile(profile_id, patch, expected=expected)
    except RecordNotFoundError:
        if expected and profile_service.get_profile(profile_id):
            logger.warning("Conditional update lost a race for %s (expected %s)", profile_id, expected)
            raise ProfileUpdateConflict(
                f"User with id '{profile_id}' was modified concurrently; reload and retry"
            )
        raise ProfileNotFound(f"User with id '{profile_id}' not found")
    except (SupabaseError, requests.RequestException) as exc:
        message = external_error_message(exc)
        logger.warning("Profile update failed for %s: %s", profile_id, message)
        raise ProfileUpdateFailed(message) from exc

    changed = sorted(key for key in patch if key != "updated_at")
    (audit_trail or audit.default_trail()).safe_log_event(
        "user_update",
        profile_id,
        operator=operator,
        details={"fields": changed},
        success=True,
    )
    return profile


def delete_user(
    profile_service: ProfileService,
    identity_service: IdentityService,
    profile_id: str,
    *,
    operator: str = "system",
    audit_trail: Optional[audit.AuditTrail] = None,
) -> bool:
    """Delete a profile, then best-effort delete its identity.

    Returns:
        True if the identity was removed too, False if it was left behind

    Raises:
        ProfileNotFound: If no profile has this id
        ProfileDeletionFailed: Store rejected the delete
    """
    trail = audit_trail or audit.default_trail()
    try:
        profile_service.delete_profile(profile_id)
    except RecordNotFoundError:
        raise ProfileNotFound(f"User with id '{profile_id}' not found")
    except (SupabaseError, requests.RequestException) as exc:
        message = external_error_message(exc)
        logger.warning("Profile deletion failed for %s: %s", profile_id, message)
        raise ProfileDeletionFailed(message) from exc

    identity_removed = True
    try:
        identity_service.delete_identity(profile_id)
    except Exception as exc:
        identity_removed = False
        message = external_error_message(exc)
        logger.error("Profile %s deleted but identity cleanup failed: %s", profile_id, message)
        trail.safe_log_event(
            "identity_delete_failed",
            profile_id,
            operator=operator,
            details={"error": message},
            success=False,
        )

    trail.safe_log_event(
        "user_delete",
        profile_id,
        operator=operator,
        details={"identity_removed": identity_removed},
        success=True,
    )
    return identity_removed
