"""Pytest shared fixtures: in-memory Supabase services and a Flask test client."""
import datetime
import itertools
import os
import pathlib
import sys
import uuid

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DEMO_MODE", "true")

import pytest
import requests

from ride_admin import audit
from ride_admin.config import AppConfig
from ride_admin.core.supabase import (
    DuplicateEmailError,
    RecordNotFoundError,
    SessionInvalidError,
    SupabaseAPIError,
)
from ride_admin.flask_app import create_app


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch):
    """Fail loudly if a unit test reaches for the real Supabase project."""
    def _blocked(method):
        def _call(url, *args, **kwargs):
            raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")
        return _call

    for method in ("get", "post", "patch", "delete"):
        monkeypatch.setattr(requests, method, _blocked(method.upper()))


@pytest.fixture(autouse=True)
def audit_dir(monkeypatch, tmp_path):
    """Route the audit trail into a per-test directory."""
    directory = tmp_path / "audit"
    monkeypatch.setenv("AUDIT_LOG_DIR", str(directory))
    monkeypatch.delenv("AUDIT_LOG_SIGNING_KEY", raising=False)
    monkeypatch.delenv("AUDIT_LOG_SIGNING_KEY_FILE", raising=False)
    monkeypatch.setattr(audit, "SECRETS_DIR", tmp_path / "secrets")
    return directory


# ─────────────────────────────────────────────────────────────────────────────
# In-memory Supabase services
# ─────────────────────────────────────────────────────────────────────────────
_clock = itertools.count()


def _timestamp() -> str:
    base = datetime.datetime(2024, 5, 1, tzinfo=datetime.timezone.utc)
    return (base + datetime.timedelta(seconds=next(_clock))).isoformat()


class FakeIdentityService:
    """Identity provider double recording every call."""

    def __init__(self):
        self.identities = {}
        self.sessions = {}
        self.create_calls = []
        self.delete_calls = []
        self.verify_calls = []
        self.create_error = None
        self.delete_error = None

    def create_identity(self, email, password, metadata):
        self.create_calls.append({"email": email, "password": password, "metadata": metadata})
        if self.create_error is not None:
            raise self.create_error
        if any(identity["email"] == email for identity in self.identities.values()):
            raise DuplicateEmailError(
                422,
                "A user with this email address has already been registered",
                "/auth/v1/admin/users",
            )
        identity_id = str(uuid.uuid4())
        self.identities[identity_id] = {"email": email, "password": password, "metadata": metadata}
        return identity_id

    def delete_identity(self, identity_id):
        self.delete_calls.append(identity_id)
        if self.delete_error is not None:
            raise self.delete_error
        if identity_id not in self.identities:
            raise SupabaseAPIError(404, "User not found", f"/auth/v1/admin/users/{identity_id}")
        del self.identities[identity_id]

    def verify_session(self, token):
        self.verify_calls.append(token)
        if token not in self.sessions:
            raise SessionInvalidError("invalid JWT: unable to parse or verify signature")
        return self.sessions[token]

    def issue_session(self, identity_id):
        token = f"token-{identity_id}"
        self.sessions[token] = identity_id
        return token


class FakeProfileService:
    """``profiles`` table double with unique id and email."""

    def __init__(self):
        self.rows = {}
        self.insert_calls = []
        self.insert_error = None
        self.update_error = None
        self.delete_error = None
        self.calls = []

    def insert_profile(self, record):
        self.calls.append("insert")
        self.insert_calls.append(dict(record))
        if self.insert_error is not None:
            raise self.insert_error
        if record["id"] in self.rows or any(r["email"] == record["email"] for r in self.rows.values()):
            raise SupabaseAPIError(
                409,
                'duplicate key value violates unique constraint "profiles_email_key"',
                "/rest/v1/profiles",
            )
        now = _timestamp()
        row = dict(record, created_at=now, updated_at=now)
        self.rows[record["id"]] = row
        return dict(row)

    def update_profile(self, profile_id, patch, expected=None):
        self.calls.append("update")
        if self.update_error is not None:
            raise self.update_error
        row = self.rows.get(profile_id)
        if row is None or any(row.get(key) != value for key, value in (expected or {}).items()):
            raise RecordNotFoundError(f"Profile '{profile_id}' not found")
        self.rows[profile_id].update(patch)
        return dict(self.rows[profile_id])

    def delete_profile(self, profile_id):
        self.calls.append("delete")
        if self.delete_error is not None:
            raise self.delete_error
        if profile_id not in self.rows:
            raise RecordNotFoundError(f"Profile '{profile_id}' not found")
        del self.rows[profile_id]

    def get_profile(self, profile_id, token=None):
        row = self.rows.get(profile_id)
        return dict(row) if row else None

    def query_profiles(self, filters=None, order=("created_at", False)):
        rows = [
            dict(row) for row in self.rows.values()
            if all(row.get(key) == value for key, value in (filters or {}).items())
        ]
        if order:
            column, ascending = order
            rows.sort(key=lambda row: row.get(column) or "", reverse=not ascending)
        return rows

    def count_profiles(self, filters=None):
        return len(self.query_profiles(filters, order=None))


class FakeRideService:
    """Read-only ``rides`` table double."""

    def __init__(self, rides=None):
        self.rides = list(rides or [])

    def list_rides(self, filters=None):
        rows = [
            dict(ride) for ride in self.rides
            if all(ride.get(key) == value for key, value in (filters or {}).items())
        ]
        return sorted(rows, key=lambda ride: ride["created_at"], reverse=True)

    def list_rides_since(self, since):
        cutoff = since.isoformat()
        return sorted(
            ({"created_at": r["created_at"], "fare_amount": r.get("fare_amount")}
             for r in self.rides if r["created_at"] >= cutoff),
            key=lambda ride: ride["created_at"],
        )

    def fare_amounts(self):
        return [ride.get("fare_amount") for ride in self.rides]

    def count_rides(self):
        return len(self.rides)


@pytest.fixture()
def identities():
    return FakeIdentityService()


@pytest.fixture()
def profiles():
    return FakeProfileService()


@pytest.fixture()
def rides():
    return FakeRideService()


def seed_user(identities, profiles, email="admin@rides.test", role="customer", full_name="Admin User"):
    """Create an identity + profile directly in the doubles and return (id, token)."""
    identity_id = str(uuid.uuid4())
    identities.identities[identity_id] = {"email": email, "password": "x", "metadata": {}}
    now = _timestamp()
    profiles.rows[identity_id] = {
        "id": identity_id,
        "email": email,
        "full_name": full_name,
        "phone": "+224600000001",
        "role": role,
        "is_active": True,
        "is_verified": False,
        "avatar_url": None,
        "created_at": now,
        "updated_at": now,
    }
    return identity_id, identities.issue_session(identity_id)


# ─────────────────────────────────────────────────────────────────────────────
# Flask Test Client
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def app_config(audit_dir):
    return AppConfig(
        demo_mode=True,
        supabase_url="http://supabase.test",
        supabase_anon_key="anon-key",
        supabase_service_role_key="service-role-key",
        audit_log_dir=str(audit_dir),
        log_level="DEBUG",
    )


@pytest.fixture()
def flask_app(app_config, identities, profiles, rides):
    flask_app = create_app(
        app_config,
        identity_service=identities,
        profile_service=profiles,
        ride_service=rides,
    )
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture()
def client(flask_app):
    with flask_app.test_client() as client:
        yield client


@pytest.fixture()
def caller(identities, profiles):
    """An authenticated dashboard operator: (identity id, Authorization headers)."""
    caller_id, token = seed_user(identities, profiles)
    return caller_id, {"Authorization": f"Bearer {token}"}
