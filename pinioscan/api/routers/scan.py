"""Scan endpoints: SSE progress stream and one-shot JSON report."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, StreamingResponse

from config.settings import settings
from pinioscan.api.dependencies import get_services
from pinioscan.api.limiter import limiter
from pinioscan.chain.rpc import is_address, to_checksum
from pinioscan.parsers.scan_state import ScanEventType, format_sse
from pinioscan.services import Services
from pinioscan.utils.sanitize import sanitize_error

router = APIRouter(prefix="/api", tags=["scan"])

MAX_BODY_BYTES = 1024
INVALID_ADDRESS = {"error": "Invalid token address"}


async def read_address_body(
    request: Request, invalid: dict[str, str]
) -> tuple[str, None] | tuple[None, JSONResponse]:
    """Validate a small JSON body `{"address": ...}`; returns the checksum address or a rejection."""
    if "application/json" not in request.headers.get("content-type", ""):
        return None, JSONResponse({"error": "Content-Type must be application/json"}, status_code=415)

    body = await request.body()
    if len(body) > MAX_BODY_BYTES:
        return None, JSONResponse({"error": "Request too large"}, status_code=413)

    try:
        payload = json.loads(body or b"{}")
    except ValueError:
        return None, JSONResponse({"error": "Invalid JSON body"}, status_code=400)
    address = payload.get("address") if isinstance(payload, dict) else None
    if not isinstance(address, str) or not is_address(address):
        return None, JSONResponse(invalid, status_code=400)
    return to_checksum(address), None


@router.get("/scan-stream")
@limiter.limit(settings.scan_rate_limit)
async def scan_stream(
    request: Request,
    address: str = Query("", max_length=100),
    services: Services = Depends(get_services),
):
    """Stream scan progress as server-sent events, ending in complete or error."""
    if not address or not is_address(address):
        return JSONResponse(INVALID_ADDRESS, status_code=400)

    orchestrator = services.orchestrator
    checksum = to_checksum(address)

    async def _events() -> AsyncIterator[str]:
        async for event in orchestrator.scan(checksum):
            yield format_sse(event)

    return StreamingResponse(
        _events(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.post("/scan")
@limiter.limit(settings.scan_rate_limit)
async def scan_once(request: Request, services: Services = Depends(get_services)):
    """Run a full scan and return the report as JSON."""
    address, rejection = await read_address_body(request, INVALID_ADDRESS)
    if rejection is not None:
        return rejection

    terminal = None
    async for event in services.orchestrator.scan(address):
        if event.is_terminal:
            terminal = event

    if terminal is None or terminal.type is not ScanEventType.COMPLETE:
        error = terminal.error if terminal is not None else None
        return JSONResponse({"error": sanitize_error(error)}, status_code=500)
    return JSONResponse(terminal.data)
