"""Ride-hailing admin dashboard backend.

To use the Flask app:
    from ride_admin.flask_app import create_app

To use the provisioning workflow:
    from ride_admin.core.provisioning_service import provision_user
"""
# Note: flask_app is not imported here so the CLI and core modules load
# without building an application.
