import pytest

from ride_admin.core.errors import InvalidRequest
from ride_admin.core.validators import (
    Role,
    validate_new_user,
    validate_profile_patch,
    validate_role,
)

BASE = {"email": "a@b.com", "full_name": "Aïssatou Camara", "phone": "+224600000000"}


def test_defaults_applied():
    request = validate_new_user(BASE)

    assert request.role is Role.customer
    assert request.is_active is True
    assert request.is_verified is False
    assert request.avatar_url is None


def test_identity_metadata_and_profile_record():
    request = validate_new_user(dict(BASE, role="driver", avatar_url="https://cdn/x.png"))

    assert request.identity_metadata() == {
        "full_name": "Aïssatou Camara",
        "phone": "+224600000000",
        "role": "driver",
    }
    record = request.profile_record("uuid-1")
    assert record["id"] == "uuid-1"
    assert record["role"] == "driver"
    assert record["avatar_url"] == "https://cdn/x.png"


@pytest.mark.parametrize(
    "payload,message",
    [
        ({}, "Missing required fields: email, full_name, phone"),
        ({"phone": "+1"}, "Missing required fields: email, full_name"),
        (dict(BASE, email=None), "Missing required fields: email"),
        ([], "Request body must be a JSON object"),
        ("text", "Request body must be a JSON object"),
    ],
)
def test_invalid_payloads(payload, message):
    with pytest.raises(InvalidRequest) as exc:
        validate_new_user(payload)
    assert exc.value.detail == message


@pytest.mark.parametrize("field", ["is_active", "is_verified"])
def test_flags_must_be_booleans(field):
    with pytest.raises(InvalidRequest, match=field):
        validate_new_user(dict(BASE, **{field: "true"}))


def test_validate_role():
    assert validate_role("driver") is Role.driver
    with pytest.raises(InvalidRequest, match="Must be one of: customer, driver"):
        validate_role("admin")


def test_profile_patch():
    patch = validate_profile_patch({"phone": " +1 ", "is_verified": True, "avatar_url": ""})
    assert patch == {"phone": "+1", "is_verified": True, "avatar_url": None}


@pytest.mark.parametrize(
    "payload",
    [None, {}, {"id": "other"}, {"email": "x@y.z"}, {"phone": "  "}, {"role": "admin"}, {"is_active": 1}],
)
def test_profile_patch_rejects(payload):
    with pytest.raises(InvalidRequest):
        validate_profile_patch(payload)


@pytest.mark.parametrize("email", ["ops@localhost", "not-an-email"])
def test_email_format_is_left_to_identity_provider(email):
    assert validate_new_user(dict(BASE, email=email)).email == email


def test_long_full_name_is_accepted():
    assert validate_new_user(dict(BASE, full_name="x" * 300)).full_name == "x" * 300


@pytest.mark.parametrize(
    "field,value",
    [("full_name", {"first": "A"}), ("phone", ["+224"]), ("email", 42), ("avatar_url", {"url": "x"})],
)
def test_new_user_text_fields_must_be_strings(field, value):
    with pytest.raises(InvalidRequest) as exc:
        validate_new_user(dict(BASE, **{field: value}))
    assert exc.value.detail == f"{field} must be a string"


@pytest.mark.parametrize(
    "field,value",
    [("full_name", {"first": "A"}), ("phone", ["+224"]), ("avatar_url", 7)],
)
def test_profile_patch_text_fields_must_be_strings(field, value):
    with pytest.raises(InvalidRequest) as exc:
        validate_profile_patch({field: value})
    assert exc.value.detail == f"{field} must be a string"
