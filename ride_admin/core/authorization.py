"""Authorization gate for provisioning and dashboard operations.

The gate authenticates the caller's bearer token against the identity
provider and confirms the caller owns a profile. Role enforcement is opt-in
(``required_role``); with no role configured any authenticated caller with a
profile is allowed through.
"""
from __future__ import annotations
import hashlib
import logging
from dataclasses import dataclass
from typing import Optional

from ride_admin.core.errors import (
    InsufficientPermissions,
    PermissionUnverifiable,
    Unauthenticated,
)
from ride_admin.core.supabase import (
    IdentityService,
    ProfileService,
    SessionInvalidError,
    SupabaseError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthorizedCaller:
    """Caller identity id and profile, as confirmed by the gate."""
    id: str
    profile: dict

    @property
    def role(self) -> Optional[str]:
        return self.profile.get("role")


def token_fingerprint(token: str) -> str:
    """Truncated SHA-256 of a token, safe to put in logs."""
    return hashlib.sha256(token.encode()).hexdigest()[:12]


def extract_bearer_token(authorization_header: Optional[str]) -> str:
    """Return the token part of an ``Authorization`` header.

    Raises:
        Unauthenticated: If the header is missing
    """
    if not authorization_header:
        raise Unauthenticated("Missing authorization header")
    scheme, _, token = authorization_header.strip().partition(" ")
    if scheme.lower() == "bearer":
        return token.strip()
    return authorization_header.strip()


def authorize_caller(
    authorization_header: Optional[str],
    identity_service: IdentityService,
    profile_service: ProfileService,
    required_role: str = "",
) -> AuthorizedCaller:
    """Validate the caller's session and confirm a profile exists.

    Args:
        authorization_header: Raw ``Authorization`` header value
        identity_service: Identity provider used to verify the session
        profile_service: Store used to look up the caller's profile
        required_role: When set, the caller's profile role must equal it

    Returns:
        AuthorizedCaller for the session owner

    Raises:
        Unauthenticated: Header missing, token invalid or expired
        PermissionUnverifiable: No profile for the caller
        InsufficientPermissions: Profile role does not match required_role
    """
    token = extract_bearer_token(authorization_header)
    fingerprint = token_fingerprint(token)

    try:
        caller_id = identity_service.verify_session(token)
    except SessionInvalidError as exc:
        logger.warning("Session rejected | token_hash=%s | reason=%s", fingerprint, exc)
        raise Unauthenticated("Unauthorized")
    except SupabaseError as exc:
        logger.warning("Session lookup failed | token_hash=%s | reason=%s", fingerprint, exc)
        raise Unauthenticated("Unauthorized")

    try:
        profile = profile_service.get_profile(caller_id)
    except SupabaseError as exc:
        logger.warning("Caller profile lookup failed | caller=%s | reason=%s", caller_id, exc)
        profile = None

    if not profile:
        raise PermissionUnverifiable("Unable to verify user permissions")

    if required_role and profile.get("role") != required_role:
        logger.warning(
            "Caller lacks required role | caller=%s | role=%s | required=%s",
            caller_id, profile.get("role"), required_role,
        )
        raise InsufficientPermissions("Insufficient permissions")

    logger.debug("Caller authorized | caller=%s | token_hash=%s", caller_id, fingerprint)
    return AuthorizedCaller(id=caller_id, profile=profile)
