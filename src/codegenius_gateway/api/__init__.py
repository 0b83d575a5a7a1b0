"""HTTP layer over the gateway operations."""

from .app import create_app

__all__ = ["create_app"]
