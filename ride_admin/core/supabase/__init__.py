"""Supabase API client library.

This package provides a small, testable interface to the hosted backend.

Architecture:
- client.py: HTTP client carrying API key and bearer headers
- identities.py: Auth identities (create, delete, session verification)
- profiles.py: ``profiles`` table (insert, update, delete, query, count)
- rides.py: ``rides`` table (read-only listing and aggregates)
- exceptions.py: Typed exceptions for error handling

Usage:
    from ride_admin.core.supabase import SupabaseClient, IdentityService, ProfileService

    admin = SupabaseClient("https://xyz.supabase.co", service_role_key)
    identities = IdentityService(admin)
    identity_id = identities.create_identity("a@b.com", "pw", {"role": "customer"})
"""
from .client import (
    SupabaseClient,
    REQUEST_TIMEOUT,
    extract_error_message,
    parse_content_range_total,
)
from .exceptions import (
    SupabaseError,
    SupabaseAPIError,
    DuplicateEmailError,
    SessionInvalidError,
    RecordNotFoundError,
)
from .identities import IdentityService
from .profiles import ProfileService
from .rides import RideService, RIDE_STATUSES

__all__ = [
    # Client
    "SupabaseClient",
    "REQUEST_TIMEOUT",
    "extract_error_message",
    "parse_content_range_total",

    # Exceptions
    "SupabaseError",
    "SupabaseAPIError",
    "DuplicateEmailError",
    "SessionInvalidError",
    "RecordNotFoundError",

    # Services
    "IdentityService",
    "ProfileService",
    "RideService",
    "RIDE_STATUSES",
]
