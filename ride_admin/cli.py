"""Command-line access to the provisioning workflow and user administration.

Runs the same service layer as the HTTP API, authenticated with the service
role key from the environment instead of a caller session.
"""
from __future__ import annotations
import argparse
import json
import sys
from typing import Optional, Sequence

from ride_admin import audit
from ride_admin.config import load_settings
from ride_admin.core import user_admin
from ride_admin.core.errors import DashboardError
from ride_admin.core.provisioning_service import provision_user
from ride_admin.core.supabase import IdentityService, ProfileService, SupabaseClient
from ride_admin.core.validators import Role


def build_services(cfg) -> tuple[IdentityService, ProfileService]:
    """Supabase-backed identity and profile services for a configuration."""
    admin = SupabaseClient(cfg.supabase_url, cfg.supabase_service_role_key, cfg.request_timeout)
    anon = SupabaseClient(cfg.supabase_url, cfg.supabase_anon_key, cfg.request_timeout)
    return IdentityService(admin, anon, jwt_secret=cfg.supabase_jwt_secret), ProfileService(admin)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ride-admin", description="Ride platform user administration")
    parser.add_argument("--operator", default="cli",
                        help="Operator identifier for audit logs (default: cli)")

    sub = parser.add_subparsers(dest="cmd")

    sc = sub.add_parser("create-user", help="Create identity and profile")
    sc.add_argument("--email", required=True)
    sc.add_argument("--full-name", required=True)
    sc.add_argument("--phone", required=True)
    sc.add_argument("--role", choices=[role.value for role in Role], default=Role.customer.value)
    sc.add_argument("--avatar-url")
    sc.add_argument("--inactive", action="store_true", help="Create with is_active=false")
    sc.add_argument("--verified", action="store_true", help="Create with is_verified=true")

    sd = sub.add_parser("delete-user", help="Delete profile, then identity (best effort)")
    sd.add_argument("--id", required=True, dest="profile_id")

    sa = sub.add_parser("set-active", help="Activate or deactivate a user")
    sa.add_argument("--id", required=True, dest="profile_id")
    sa.add_argument("--value", choices=["true", "false"], required=True)

    sv = sub.add_parser("set-verified", help="Mark a user verified or unverified")
    sv.add_argument("--id", required=True, dest="profile_id")
    sv.add_argument("--value", choices=["true", "false"], required=True)

    sub.add_parser("verify-audit", help="Check HMAC signatures of the audit trail")

    return parser


def main(argv: Optional[Sequence[str]] = None, services: Optional[tuple] = None) -> int:
    """Command-line entry point. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.cmd:
        parser.print_help()
        return 0

    if args.cmd == "verify-audit":
        total, valid = audit.default_trail().verify()
        print(f"Audit log: {valid}/{total} events with valid signatures")
        return 0 if total == valid else 1

    if services is None:
        cfg = load_settings()
        services = build_services(cfg)
        trail = audit.AuditTrail(cfg.audit_log_dir, cfg.audit_log_signing_key)
    else:
        trail = audit.default_trail()
    identities, profiles = services

    try:
        if args.cmd == "create-user":
            profile = provision_user(
                {
                    "email": args.email,
                    "full_name": args.full_name,
                    "phone": args.phone,
                    "role": args.role,
                    "is_active": not args.inactive,
                    "is_verified": args.verified,
                    "avatar_url": args.avatar_url,
                },
                identities,
                profiles,
                operator=args.operator,
                audit_trail=trail,
            )
            print(json.dumps(profile, ensure_ascii=False, indent=2))
        elif args.cmd == "delete-user":
            removed = user_admin.delete_user(
                profiles, identities, args.profile_id, operator=args.operator, audit_trail=trail
            )
            if not removed:
                print(f"[delete-user] Warning: identity {args.profile_id} was not removed", file=sys.stderr)
            print(f"[delete-user] Profile {args.profile_id} deleted")
        elif args.cmd == "set-active":
            profile = user_admin.set_user_active(
                profiles, args.profile_id, args.value == "true", operator=args.operator, audit_trail=trail
            )
            print(json.dumps(profile, ensure_ascii=False, indent=2))
        elif args.cmd == "set-verified":
            profile = user_admin.set_user_verified(
                profiles, args.profile_id, args.value == "true", operator=args.operator, audit_trail=trail
            )
            print(json.dumps(profile, ensure_ascii=False, indent=2))
    except DashboardError as e:
        print(f"[{args.cmd}] Error: {e.detail}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
