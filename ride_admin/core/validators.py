"""Input validation helpers for user provisioning and profile edits."""
from __future__ import annotations
import enum
from dataclasses import dataclass
from typing import Any, Optional

from ride_admin.core.errors import InvalidRequest

REQUIRED_FIELDS = ("email", "full_name", "phone")
EDITABLE_FIELDS = ("full_name", "phone", "role", "avatar_url", "is_active", "is_verified")


class Role(str, enum.Enum):
    """Platform roles a profile can hold."""
    customer = "customer"
    driver = "driver"


@dataclass(frozen=True)
class NewUserRequest:
    """Validated provisioning input with defaults applied."""
    email: str
    full_name: str
    phone: str
    role: Role = Role.customer
    is_active: bool = True
    is_verified: bool = False
    avatar_url: Optional[str] = None

    def identity_metadata(self) -> dict:
        """Metadata attached to the identity at creation time."""
        return {"full_name": self.full_name, "phone": self.phone, "role": self.role.value}

    def profile_record(self, identity_id: str) -> dict:
        """Profile row keyed by the identity id."""
        return {
            "id": identity_id,
            "email": self.email,
            "full_name": self.full_name,
            "phone": self.phone,
            "role": self.role.value,
            "is_active": self.is_active,
            "is_verified": self.is_verified,
            "avatar_url": self.avatar_url,
        }


def _text(value: Any, field: str) -> str:
    """Trimmed string value; None reads as empty.

    Raises:
        InvalidRequest: If value is present but not a string
    """
    if value is None:
        return ""
    if not isinstance(value, str):
        raise InvalidRequest(f"{field} must be a string")
    return value.strip()


def validate_role(value: Any) -> Role:
    """Return the Role for ``value``.

    Raises:
        InvalidRequest: If value is not a known role
    """
    try:
        return Role(value)
    except ValueError:
        allowed = ", ".join(role.value for role in Role)
        raise InvalidRequest(f"Invalid role '{value}'. Must be one of: {allowed}")


def validate_flag(value: Any, field: str) -> bool:
    """Require a JSON boolean."""
    if not isinstance(value, bool):
        raise InvalidRequest(f"{field} must be a boolean")
    return value


def validate_new_user(payload: Any) -> NewUserRequest:
    """Validate a provisioning request body and apply defaults.

    Raises:
        InvalidRequest: Missing or malformed fields
    """
    if not isinstance(payload, dict):
        raise InvalidRequest("Request body must be a JSON object")

    values = {field: _text(payload.get(field), field) for field in REQUIRED_FIELDS}
    missing = [field for field in REQUIRED_FIELDS if not values[field]]
    if missing:
        raise InvalidRequest(f"Missing required fields: {', '.join(missing)}")

    role = payload.get("role")
    is_active = payload.get("is_active")
    is_verified = payload.get("is_verified")
    avatar_url = _text(payload.get("avatar_url"), "avatar_url") or None

    return NewUserRequest(
        email=values["email"],
        full_name=values["full_name"],
        phone=values["phone"],
        role=validate_role(role) if role else Role.customer,
        is_active=True if is_active is None else validate_flag(is_active, "is_active"),
        is_verified=False if is_verified is None else validate_flag(is_verified, "is_verified"),
        avatar_url=avatar_url,
    )


def validate_profile_patch(payload: Any) -> dict:
    """Validate a dashboard edit and return the columns to update.

    Raises:
        InvalidRequest: Unknown, empty or malformed fields
    """
    if not isinstance(payload, dict) or not payload:
        raise InvalidRequest("Request body must be a non-empty JSON object")

    unknown = sorted(set(payload) - set(EDITABLE_FIELDS))
    if unknown:
        raise InvalidRequest(f"Fields cannot be edited: {', '.join(unknown)}")

    patch: dict = {}
    for field, value in payload.items():
        if field in ("full_name", "phone"):
            text = _text(value, field)
            if not text:
                raise InvalidRequest(f"{field} cannot be empty")
            patch[field] = text
        elif field == "role":
            patch[field] = validate_role(value).value
        elif field in ("is_active", "is_verified"):
            patch[field] = validate_flag(value, field)
        else:
            patch[field] = _text(value, field) or None
    return patch
