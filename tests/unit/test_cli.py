import json

import pytest

from ride_admin import audit, cli
from ride_admin.config import AppConfig
from ride_admin.core.supabase import SupabaseAPIError

from conftest import seed_user


@pytest.fixture
def services(identities, profiles):
    return identities, profiles


def test_create_user(services, profiles, capsys):
    exit_code = cli.main(
        ["--operator", "ops", "create-user", "--email", "a@b.com", "--full-name", "Aïssatou Camara",
         "--phone", "+224600000000", "--role", "driver", "--verified"],
        services=services,
    )

    assert exit_code == 0
    printed = json.loads(capsys.readouterr().out)
    assert printed["role"] == "driver"
    assert printed["is_verified"] is True
    assert printed["is_active"] is True
    assert printed["id"] in profiles.rows


def test_create_user_failure_rolls_back(services, identities, profiles, capsys):
    profiles.insert_error = SupabaseAPIError(400, "unique constraint", "/rest/v1/profiles")

    exit_code = cli.main(
        ["create-user", "--email", "a@b.com", "--full-name", "A", "--phone", "+1"],
        services=services,
    )

    assert exit_code == 1
    assert "[create-user] Error: unique constraint" in capsys.readouterr().err
    assert identities.identities == {}


def test_rejects_unknown_role(services):
    with pytest.raises(SystemExit):
        cli.main(["create-user", "--email", "a@b.com", "--full-name", "A", "--phone", "+1",
                  "--role", "admin"], services=services)


def test_set_active(services, identities, profiles, capsys):
    user_id, _ = seed_user(identities, profiles)

    assert cli.main(["set-active", "--id", user_id, "--value", "false"], services=services) == 0
    assert profiles.rows[user_id]["is_active"] is False


def test_set_verified_unknown_user(services, capsys):
    assert cli.main(["set-verified", "--id", "missing", "--value", "true"], services=services) == 1
    assert "not found" in capsys.readouterr().err


def test_delete_user(services, identities, profiles, capsys):
    user_id, _ = seed_user(identities, profiles)

    assert cli.main(["delete-user", "--id", user_id], services=services) == 0
    assert user_id not in profiles.rows
    assert user_id not in identities.identities


def test_delete_user_warns_when_identity_remains(services, identities, profiles, capsys):
    user_id, _ = seed_user(identities, profiles)
    identities.delete_error = SupabaseAPIError(500, "internal", "/auth/v1/admin/users")

    assert cli.main(["delete-user", "--id", user_id], services=services) == 0
    assert "was not removed" in capsys.readouterr().err


def test_verify_audit(monkeypatch, capsys):
    monkeypatch.setenv("AUDIT_LOG_SIGNING_KEY", "k")
    audit.log_event("provision_user", "a@b.com")

    assert cli.main(["verify-audit"]) == 0
    assert "1/1" in capsys.readouterr().out


def test_verify_audit_unsigned_fails(capsys):
    audit.log_event("provision_user", "a@b.com")

    assert cli.main(["verify-audit"]) == 1


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 0
    assert "ride-admin" in capsys.readouterr().out


def test_signing_key_mounted_only_as_secret(services, tmp_path, monkeypatch, capsys):
    secrets_dir = tmp_path / "mounted"
    secrets_dir.mkdir()
    (secrets_dir / "audit_log_signing_key").write_text("mounted-key")
    monkeypatch.setattr(audit, "SECRETS_DIR", secrets_dir)

    assert cli.main(
        ["create-user", "--email", "a@b.com", "--full-name", "A", "--phone", "+1"],
        services=services,
    ) == 0
    assert cli.main(["verify-audit"]) == 0
    assert "1/1" in capsys.readouterr().out


def test_commands_use_configured_trail(identities, profiles, monkeypatch, tmp_path):
    config_dir = tmp_path / "configured"
    monkeypatch.setattr(cli, "load_settings", lambda: AppConfig(
        demo_mode=True,
        supabase_url="http://supabase.test",
        supabase_anon_key="anon",
        supabase_service_role_key="service",
        audit_log_dir=str(config_dir),
        audit_log_signing_key="cfg-key",
    ))
    monkeypatch.setattr(cli, "build_services", lambda cfg: (identities, profiles))
    user_id, _ = seed_user(identities, profiles)

    assert cli.main(["set-active", "--id", user_id, "--value", "false"]) == 0
    assert audit.AuditTrail(config_dir, "cfg-key").verify() == (1, 1)
