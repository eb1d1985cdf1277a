"""
User provisioning workflow.

Creating a platform user touches two independently owned stores with no
shared transaction: the identity provider (login credentials) and the
``profiles`` table (platform record keyed by the identity id).

Workflow:
    validate ──> phase 1: create identity ──> phase 2: insert profile ──> profile
                        │ fails                      │ fails
                        v                            v
              IdentityCreationFailed        delete identity (compensation)
                                                     v
                                            ProfileCreationFailed

A failed compensation leaves an orphaned identity. It is logged at ERROR and
recorded in the audit trail with the identity id; it never replaces the
phase-2 error returned to the caller.
"""

from __future__ import annotations
import logging
import secrets
import string
from typing import Any, Callable, Optional

import requests

from ride_admin import audit
from ride_admin.core.errors import (
    CompensationFailed,
    IdentityCreationFailed,
    ProfileCreationFailed,
)
from ride_admin.core.supabase import IdentityService, ProfileService, SupabaseAPIError, SupabaseError
from ride_admin.core.validators import NewUserRequest, validate_new_user

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "User created successfully"

# Transport and provider failures that map onto a phase error
EXTERNAL_ERRORS = (SupabaseError, requests.RequestException)


def generate_temp_password(length: int = 16) -> str:
    """
    Generate a secure temporary password.

    Args:
        length: Password length (default: 16)

    Returns:
        Random password containing at least one uppercase, lowercase, digit
        and special character
    """
    specials = "!@#$%^&*"
    alphabet = string.ascii_letters + string.digits + specials
    while True:
        password = "".join(secrets.choice(alphabet) for _ in range(length))
        if (any(c.islower() for c in password)
                and any(c.isupper() for c in password)
                and any(c.isdigit() for c in password)
                and any(c in specials for c in password)):
            return password


def external_error_message(exc: BaseException) -> str:
    """Provider message for API errors, plain text for everything else."""
    if isinstance(exc, SupabaseAPIError):
        return exc.message
    return str(exc) or exc.__class__.__name__


def provision_user(
    payload: Any,
    identity_service: IdentityService,
    profile_service: ProfileService,
    *,
    operator: str = "system",
    password_factory: Callable[[], str] = generate_temp_password,
    audit_trail: Optional[audit.AuditTrail] = None,
) -> dict:
    """Create an identity and its profile, rolling the identity back on failure.

    Args:
        payload: Request body (email, full_name, phone, optional role,
            is_active, is_verified, avatar_url)
        identity_service: Identity provider client
        profile_service: Profile store client
        operator: Caller id recorded in the audit trail
        password_factory: Source of the temporary password
        audit_trail: Where events are recorded (defaults to the environment-configured trail)

    Returns:
        The created profile row

    Raises:
        InvalidRequest: Validation failed; no external call was made
        IdentityCreationFailed: Phase 1 failed; nothing was created
        ProfileCreationFailed: Phase 2 failed; identity rollback was attempted
    """
    request = validate_new_user(payload)
    trail = audit_trail or audit.default_trail()

    identity_id = _create_identity(request, identity_service, operator, password_factory, trail)

    try:
        profile = profile_service.insert_profile(request.profile_record(identity_id))
    except Exception as exc:
        message = external_error_message(exc)
        logger.warning(
            "Profile creation failed for %s (identity=%s): %s", request.email, identity_id, message
        )
        trail.safe_log_event(
            "provision_profile_failed",
            request.email,
            operator=operator,
            details={"identity_id": identity_id, "error": message},
            success=False,
        )
        compensate_identity(identity_service, identity_id, request.email, operator=operator, audit_trail=trail)
        if isinstance(exc, EXTERNAL_ERRORS):
            raise ProfileCreationFailed(message) from exc
        raise

    logger.info("Provisioned user %s (id=%s, role=%s)", request.email, identity_id, request.role.value)
    trail.safe_log_event(
        "provision_user",
        request.email,
        operator=operator,
        details={"identity_id": identity_id, "role": request.role.value},
        success=True,
    )
    return profile


def _create_identity(request: NewUserRequest, identity_service: IdentityService, operator: str,
                     password_factory: Callable[[], str], trail: audit.AuditTrail) -> str:
    """Phase 1. Raises IdentityCreationFailed with the provider's message."""
    try:
        return identity_service.create_identity(
            request.email,
            password_factory(),
            request.identity_metadata(),
        )
    except EXTERNAL_ERRORS as exc:
        message = external_error_message(exc)
        logger.warning("Identity creation failed for %s: %s", request.email, message)
        trail.safe_log_event(
            "provision_identity_failed",
            request.email,
            operator=operator,
            details={"error": message},
            success=False,
        )
        raise IdentityCreationFailed(message) from exc


def compensate_identity(
    identity_service: IdentityService,
    identity_id: str,
    email: str,
    *,
    operator: str = "system",
    audit_trail: Optional[audit.AuditTrail] = None,
) -> Optional[CompensationFailed]:
    """Delete a phase-1 identity after phase 2 failed.

    Never raises. Returns the CompensationFailed fault when the delete did
    not go through, so callers can inspect it without it masking their own
    error.
    """
    trail = audit_trail or audit.default_trail()
    try:
        identity_service.delete_identity(identity_id)
    except Exception as exc:
        fault = CompensationFailed(
            f"Failed to delete identity {identity_id}: {external_error_message(exc)}",
            identity_id,
        )
        logger.error("Orphaned identity after failed rollback | email=%s | %s", email, fault.detail)
        trail.safe_log_event(
            "provision_compensation_failed",
            email,
            operator=operator,
            details={"identity_id": identity_id, "error": fault.detail},
            success=False,
        )
        return fault

    logger.info("Rolled back identity %s for %s", identity_id, email)
    trail.safe_log_event(
        "provision_compensated",
        email,
        operator=operator,
        details={"identity_id": identity_id},
        success=True,
    )
    return None
