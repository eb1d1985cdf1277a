"""Supabase-specific exceptions for error handling."""


class SupabaseError(Exception):
    """Base exception for all Supabase operations."""
    pass


class SupabaseAPIError(SupabaseError):
    """HTTP error from the Supabase auth or REST API.
    
    Attributes:
        status_code: HTTP status code
        message: Error message extracted from the response body
        endpoint: API endpoint that failed
    """
    
    def __init__(self, status_code: int, message: str, endpoint: str):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        super().__init__(f"[{status_code}] {endpoint}: {message}")


class DuplicateEmailError(SupabaseAPIError):
    """Identity creation failed - email already registered."""
    pass


class SessionInvalidError(SupabaseError):
    """Access token is missing, malformed, expired or revoked."""
    pass


class RecordNotFoundError(SupabaseError):
    """A single-row lookup matched no row."""
    pass
