"""HTTP adapter for the autofill engine."""

from campus_autofill.api.main import app, create_app

__all__ = ["app", "create_app"]
