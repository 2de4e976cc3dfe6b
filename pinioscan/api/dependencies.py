"""FastAPI dependency injection: shared scan services."""

from __future__ import annotations

from fastapi import Request

from pinioscan.services import Services


def get_services(request: Request) -> Services:
    """Return the services built by the app lifespan."""
    return request.app.state.services
