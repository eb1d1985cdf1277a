"""Supabase auth identity operations."""
from __future__ import annotations
import logging
from typing import Optional, Dict, Any

import jwt

from .client import SupabaseClient
from .exceptions import DuplicateEmailError, SupabaseAPIError, SessionInvalidError

logger = logging.getLogger(__name__)

SESSION_AUDIENCE = "authenticated"

_DUPLICATE_MARKERS = ("already registered", "already been registered", "already exists", "email_exists")


class IdentityService:
    """Service for managing login identities in Supabase auth."""

    def __init__(self, admin_client: SupabaseClient, anon_client: Optional[SupabaseClient] = None,
                 jwt_secret: str = ""):
        """Initialize identity service.

        Args:
            admin_client: Client authenticated with the service role key
            anon_client: Client carrying the anon key, used for session lookups
            jwt_secret: Project JWT secret; enables local session validation
        """
        self.admin_client = admin_client
        self.anon_client = anon_client or admin_client
        self.jwt_secret = jwt_secret

    def create_identity(self, email: str, password: str, metadata: Dict[str, Any]) -> str:
        """Create a pre-confirmed identity and return its provider-assigned id.

        Raises:
            DuplicateEmailError: Email is already registered
            SupabaseAPIError: Any other provider error
        """
        payload = {
            "email": email,
            "password": password,
            "email_confirm": True,
            "user_metadata": metadata,
        }
        try:
            resp = self.admin_client.post("/auth/v1/admin/users", json=payload)
        except SupabaseAPIError as exc:
            if _is_duplicate(exc):
                raise DuplicateEmailError(exc.status_code, exc.message, exc.endpoint) from exc
            raise

        body = resp.json()
        # Older GoTrue versions wrap the user object
        user = body.get("user", body) if isinstance(body, dict) else {}
        identity_id = user.get("id")
        if not identity_id:
            raise SupabaseAPIError(resp.status_code, "Identity created without an id", resp.url)
        logger.info("Identity created (id=%s)", identity_id)
        return identity_id

    def delete_identity(self, identity_id: str) -> None:
        """Delete an identity by id.

        Raises:
            SupabaseAPIError: On provider error (including 404)
        """
        self.admin_client.delete(f"/auth/v1/admin/users/{identity_id}")
        logger.info("Identity deleted (id=%s)", identity_id)

    def verify_session(self, token: str) -> str:
        """Exchange an access token for the caller's identity id.

        Raises:
            SessionInvalidError: Token missing, malformed, expired or revoked
        """
        if not token:
            raise SessionInvalidError("Access token is empty")

        if self.jwt_secret:
            return self._verify_locally(token)

        try:
            resp = self.anon_client.get("/auth/v1/user", token=token)
        except SupabaseAPIError as exc:
            if exc.status_code in (401, 403):
                raise SessionInvalidError(exc.message) from exc
            raise

        user_id = (resp.json() or {}).get("id")
        if not user_id:
            raise SessionInvalidError("Session lookup returned no user")
        return user_id

    def _verify_locally(self, token: str) -> str:
        try:
            claims = jwt.decode(
                token,
                self.jwt_secret,
                algorithms=["HS256"],
                audience=SESSION_AUDIENCE,
                options={"require": ["exp", "sub"]},
                leeway=5,
            )
        except jwt.ExpiredSignatureError as exc:
            raise SessionInvalidError("Token expired (exp claim)") from exc
        except jwt.InvalidTokenError as exc:
            raise SessionInvalidError(f"Token validation failed: {exc}") from exc
        return claims["sub"]


def _is_duplicate(exc: SupabaseAPIError) -> bool:
    if exc.status_code == 409:
        return True
    message = exc.message.lower()
    return any(marker in message for marker in _DUPLICATE_MARKERS)
