"""Read-only views over the on-chain attestation ledger."""

from __future__ import annotations

import asyncio
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from loguru import logger

from pinioscan.api.dependencies import get_services
from pinioscan.db.cache import scan_cache_key
from pinioscan.services import Services

router = APIRouter(prefix="/api", tags=["ledger"])

RECENT_ATTESTATIONS = 20
HISTORY_SIZE = 50


@router.get("/attestations")
async def list_attestations(services: Services = Depends(get_services)) -> Any:
    """Total scans plus the latest attestation of each recently scanned token."""
    ledger = services.ledger
    if ledger is None:
        return {"totalScans": 0, "contractAddress": "", "tokens": []}

    async def _total() -> int:
        try:
            return await ledger.total_scans()
        except Exception as e:
            logger.warning(f"[API] totalScans failed: {e}")
            return 0

    async def _tokens() -> list[dict]:
        try:
            return await ledger.latest_per_token(RECENT_ATTESTATIONS)
        except Exception as e:
            logger.warning(f"[API] getRecentTokens failed: {e}")
            return []

    total, tokens = await asyncio.gather(_total(), _tokens())
    return {"totalScans": total, "contractAddress": ledger.address, "tokens": tokens}


@router.get("/history")
async def scan_history(services: Services = Depends(get_services)) -> Any:
    """Recently attested tokens, newest first, one row per token."""
    ledger = services.ledger
    if ledger is None:
        return {"tokens": []}

    try:
        tokens = await ledger.get_recent_tokens(HISTORY_SIZE)
    except Exception as e:
        logger.error(f"[API] History lookup failed: {e}")
        return JSONResponse({"error": "Failed to fetch history"}, status_code=500)

    async def _row(token: str) -> dict | None:
        try:
            latest = await ledger.get_latest_score(token)
        except Exception as e:
            logger.warning(f"[API] History item fetch failed for {token[:10]}: {e}")
            return None
        name = symbol = ""
        try:
            cached = await services.cache.get(scan_cache_key(token))
        except Exception:
            cached = None
        if cached and cached.get("token"):
            name = cached["token"].get("name") or ""
            symbol = cached["token"].get("symbol") or ""
        return {
            "address": token,
            "score": latest.score,
            "riskLevel": latest.risk_level,
            "timestamp": latest.timestamp,
            "name": name,
            "symbol": symbol,
        }

    newest: dict[str, dict] = {}
    for row in await asyncio.gather(*[_row(t) for t in tokens]):
        if row is None:
            continue
        existing = newest.get(row["address"])
        if existing is None or row["timestamp"] > existing["timestamp"]:
            newest[row["address"]] = row

    rows = sorted(newest.values(), key=lambda r: r["timestamp"], reverse=True)
    return {"tokens": rows}


@router.get("/total-scans")
async def total_scans(services: Services = Depends(get_services)) -> dict[str, Any]:
    if services.ledger is None:
        return {"totalScans": None}
    try:
        total = await services.ledger.total_scans()
    except Exception as e:
        logger.warning(f"[API] totalScans failed: {e}")
        return {"totalScans": None}
    return {"totalScans": str(total)}
