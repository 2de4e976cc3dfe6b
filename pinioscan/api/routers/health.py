"""Health check with scan pipeline counters."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from pinioscan.api.app import VERSION
from pinioscan.api.dependencies import get_services
from pinioscan.db.cache import RedisResultCache
from pinioscan.services import Services

router = APIRouter(prefix="/api", tags=["health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_sec: int
    cache_backend: str
    ledger_configured: bool
    metrics: dict


@router.get("/health", response_model=HealthResponse)
async def health_check(services: Services = Depends(get_services)) -> HealthResponse:
    summary = services.metrics.get_summary()
    return HealthResponse(
        status="ok",
        version=VERSION,
        uptime_sec=summary.get("uptime_sec", 0),
        cache_backend="redis" if isinstance(services.cache, RedisResultCache) else "memory",
        ledger_configured=services.ledger is not None,
        metrics=summary,
    )
