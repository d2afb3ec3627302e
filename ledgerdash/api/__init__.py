"""REST API package."""

from ledgerdash.api.app import create_app

__all__ = ["create_app"]
