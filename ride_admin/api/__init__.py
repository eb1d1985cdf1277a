"""HTTP layer: Flask blueprints, decorators and error handlers."""
