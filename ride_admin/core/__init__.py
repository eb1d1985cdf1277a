"""Core Business Logic Module

This module provides the dashboard's business logic, independent of the
HTTP layer so the CLI and the Flask API share one implementation.

Module Structure:
    - supabase/              : Low-level Supabase auth and REST clients
    - provisioning_service.py: Two-phase user creation with rollback
    - user_admin.py          : Edit, toggle, list and delete existing users
    - authorization.py       : Session check gating every operation
    - stats.py               : Dashboard totals and daily ride series
    - validators.py          : Input validation and the Role enum
    - errors.py              : Error taxonomy mapped to HTTP statuses

Usage Pattern:
    Import explicitly when needed:
        from ride_admin.core.provisioning_service import provision_user
        from ride_admin.core.authorization import authorize_caller
        from ride_admin.core.errors import DashboardError
"""
