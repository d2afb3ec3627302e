"""FastAPI dependencies."""

from fastapi import Request

from ledgerdash.orchestrator import AppComponents


def get_components(request: Request) -> AppComponents:
    """The component graph built at startup."""
    return request.app.state.components
