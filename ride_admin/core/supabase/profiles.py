"""Profile table operations over PostgREST."""
from __future__ import annotations
from typing import Optional, List, Dict, Any, Tuple

from .client import SupabaseClient, parse_content_range_total
from .exceptions import RecordNotFoundError

PROFILES_PATH = "/rest/v1/profiles"


def eq_filters(filters: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """Translate ``{"role": "driver"}`` into PostgREST ``{"role": "eq.driver"}``."""
    params: Dict[str, str] = {}
    for column, value in (filters or {}).items():
        if isinstance(value, bool):
            value = "true" if value else "false"
        elif value is None:
            params[column] = "is.null"
            continue
        params[column] = f"eq.{value}"
    return params


def order_param(order: Optional[Tuple[str, bool]]) -> Dict[str, str]:
    """Translate ``("created_at", False)`` into ``{"order": "created_at.desc"}``."""
    if not order:
        return {}
    column, ascending = order
    return {"order": f"{column}.{'asc' if ascending else 'desc'}"}


class ProfileService:
    """Service for reading and mutating rows of the ``profiles`` table."""

    def __init__(self, client: SupabaseClient):
        self.client = client

    def insert_profile(self, record: Dict[str, Any]) -> dict:
        """Insert one profile row and return the stored representation."""
        resp = self.client.post(
            PROFILES_PATH,
            json=[record],
            headers={"Prefer": "return=representation"},
        )
        rows = resp.json()
        return rows[0] if rows else dict(record)

    def update_profile(self, profile_id: str, patch: Dict[str, Any],
                       expected: Optional[Dict[str, Any]] = None) -> dict:
        """Apply a partial update and return the updated row.

        Args:
            profile_id: Row to update
            patch: Columns to set
            expected: Column values the row must still hold for the update to apply

        Raises:
            RecordNotFoundError: No row has this id (or it no longer matches ``expected``)
        """
        params = {"id": f"eq.{profile_id}"}
        params.update(eq_filters(expected))
        resp = self.client.patch(
            PROFILES_PATH,
            json=patch,
            params=params,
            headers={"Prefer": "return=representation"},
        )
        rows = resp.json()
        if not rows:
            raise RecordNotFoundError(f"Profile '{profile_id}' not found")
        return rows[0]

    def delete_profile(self, profile_id: str) -> None:
        """Delete the row with this id.

        Raises:
            RecordNotFoundError: No row has this id
        """
        resp = self.client.delete(
            PROFILES_PATH,
            params={"id": f"eq.{profile_id}"},
            headers={"Prefer": "return=representation"},
        )
        if not resp.json():
            raise RecordNotFoundError(f"Profile '{profile_id}' not found")

    def get_profile(self, profile_id: str, token: Optional[str] = None) -> Optional[dict]:
        """Return the profile with this id, or None."""
        params = {"select": "*", "id": f"eq.{profile_id}", "limit": "1"}
        resp = self.client.get(PROFILES_PATH, params=params, token=token)
        rows = resp.json()
        return rows[0] if rows else None

    def query_profiles(
        self,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[Tuple[str, bool]] = ("created_at", False),
    ) -> List[dict]:
        """Return profiles matching equality filters in the given order."""
        params = {"select": "*"}
        params.update(eq_filters(filters))
        params.update(order_param(order))
        resp = self.client.get(PROFILES_PATH, params=params)
        return resp.json()

    def count_profiles(self, filters: Optional[Dict[str, Any]] = None) -> int:
        """Return the exact number of profiles matching equality filters."""
        params = {"select": "id", "limit": "1"}
        params.update(eq_filters(filters))
        resp = self.client.get(PROFILES_PATH, params=params, headers={"Prefer": "count=exact"})
        return parse_content_range_total(resp.headers.get("Content-Range"))
