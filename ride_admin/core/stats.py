"""Aggregate figures shown on the dashboard landing page."""
from __future__ import annotations
import datetime
import re
from collections import OrderedDict
from typing import Iterable, List, Optional

from ride_admin.core.supabase import ProfileService, RideService

CHART_WINDOW_DAYS = 7

_FRACTION = re.compile(r"\.(\d+)")


def _fare(value) -> float:
    return float(value) if value is not None else 0.0


def _parse_timestamp(value: str) -> datetime.datetime:
    # PostgREST emits "+00:00" and drops trailing zeros from the fraction;
    # fromisoformat before 3.11 wants exactly 3 or 6 digits and no "Z"
    value = value.replace("Z", "+00:00")
    value = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value, count=1)
    return datetime.datetime.fromisoformat(value)


def daily_series(rides: Iterable[dict]) -> List[dict]:
    """Group rides by calendar date, ascending, with ride count and revenue per day."""
    buckets: "OrderedDict[str, dict]" = OrderedDict()
    for ride in sorted(rides, key=lambda r: r["created_at"]):
        day = _parse_timestamp(ride["created_at"]).date().isoformat()
        bucket = buckets.setdefault(day, {"date": day, "rides": 0, "revenue": 0.0})
        bucket["rides"] += 1
        bucket["revenue"] += _fare(ride.get("fare_amount"))
    return list(buckets.values())


def dashboard_stats(
    profile_service: ProfileService,
    ride_service: RideService,
    now: Optional[datetime.datetime] = None,
) -> dict:
    """Totals plus the last seven days of rides per day."""
    now = now or datetime.datetime.now(datetime.timezone.utc)
    since = now - datetime.timedelta(days=CHART_WINDOW_DAYS)

    return {
        "total_users": profile_service.count_profiles(),
        "total_drivers": profile_service.count_profiles({"role": "driver"}),
        "total_rides": ride_service.count_rides(),
        "total_revenue": sum(_fare(fare) for fare in ride_service.fare_amounts()),
        "daily": daily_series(ride_service.list_rides_since(since)),
    }
