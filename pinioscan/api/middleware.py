"""Response headers shared by every API route."""

from __future__ import annotations

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Scan results and ledger reads change per request
NO_STORE_PREFIXES = (
    "/api/scan",
    "/api/pinion-skill",
    "/api/history",
    "/api/attestations",
    "/api/total-scans",
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        if request.url.path.startswith(NO_STORE_PREFIXES) and "cache-control" not in response.headers:
            response.headers["Cache-Control"] = "no-store"
        return response
