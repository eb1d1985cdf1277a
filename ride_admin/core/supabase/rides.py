"""Read-only ride queries over PostgREST."""
from __future__ import annotations
from datetime import datetime
from typing import Optional, List, Dict, Any

from .client import SupabaseClient, parse_content_range_total
from .profiles import eq_filters

RIDES_PATH = "/rest/v1/rides"

RIDE_STATUSES = ("pending", "searching", "accepted", "in_progress", "completed", "cancelled")

# Customer and driver are both foreign keys to profiles; the constraint name picks the join.
RIDE_SELECT = (
    "*,"
    "customer:profiles!rides_customer_id_fkey(full_name,phone),"
    "driver:profiles!rides_driver_id_fkey(full_name,phone)"
)


class RideService:
    """Service for reading the ``rides`` table."""

    def __init__(self, client: SupabaseClient):
        self.client = client

    def list_rides(self, filters: Optional[Dict[str, Any]] = None) -> List[dict]:
        """Return rides, newest first, with customer and driver embedded."""
        params = {"select": RIDE_SELECT, "order": "created_at.desc"}
        params.update(eq_filters(filters))
        resp = self.client.get(RIDES_PATH, params=params)
        return resp.json()

    def list_rides_since(self, since: datetime) -> List[dict]:
        """Return ``created_at`` and ``fare_amount`` of rides created at or after ``since``."""
        params = {
            "select": "created_at,fare_amount",
            "created_at": f"gte.{since.isoformat()}",
            "order": "created_at.asc",
        }
        resp = self.client.get(RIDES_PATH, params=params)
        return resp.json()

    def fare_amounts(self) -> List[Optional[float]]:
        """Return the fare of every ride (None where unpriced)."""
        resp = self.client.get(RIDES_PATH, params={"select": "fare_amount"})
        return [row.get("fare_amount") for row in resp.json()]

    def count_rides(self) -> int:
        """Return the exact number of rides."""
        resp = self.client.get(
            RIDES_PATH,
            params={"select": "id", "limit": "1"},
            headers={"Prefer": "count=exact"},
        )
        return parse_content_range_total(resp.headers.get("Content-Range"))
