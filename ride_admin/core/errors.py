"""Error taxonomy shared by the provisioning workflow and the dashboard API.

Every error carries the HTTP status it maps to and renders as
``{"error": "<message>"}``.
"""
from __future__ import annotations


class DashboardError(Exception):
    """Base error with HTTP status and a caller-facing message."""

    status = 500

    def __init__(self, detail: str, status: int | None = None):
        self.detail = detail
        if status is not None:
            self.status = status
        super().__init__(detail)

    def to_dict(self) -> dict:
        """Convert to the JSON error body."""
        return {"error": self.detail}


class InvalidRequest(DashboardError):
    """Local validation failed; no external call was made."""
    status = 400


class Unauthenticated(DashboardError):
    """No session, or the session token is invalid or expired."""
    status = 401


class PermissionUnverifiable(DashboardError):
    """Session is valid but the caller has no profile."""
    status = 403


class InsufficientPermissions(DashboardError):
    """Caller's profile role does not satisfy the configured policy."""
    status = 403


class IdentityCreationFailed(DashboardError):
    """Phase 1 failed at the identity provider (includes duplicate emails)."""
    status = 400


class ProfileCreationFailed(DashboardError):
    """Phase 2 failed at the profile store."""
    status = 400


class CompensationFailed(DashboardError):
    """Rolling back a phase-1 identity failed. Logged, never returned."""
    status = 500

    def __init__(self, detail: str, identity_id: str):
        self.identity_id = identity_id
        super().__init__(detail)


class ProfileNotFound(DashboardError):
    status = 404


class ProfileUpdateFailed(DashboardError):
    status = 400


class ProfileUpdateConflict(DashboardError):
    """A conditional update matched no row because the value changed since it was read."""
    status = 409


class ProfileDeletionFailed(DashboardError):
    status = 400


class MethodNotAllowed(DashboardError):
    status = 405

    def __init__(self, detail: str = "Method not allowed"):
        super().__init__(detail)


class InternalError(DashboardError):
    status = 500

    def __init__(self, detail: str = "Internal server error"):
        super().__init__(detail)
