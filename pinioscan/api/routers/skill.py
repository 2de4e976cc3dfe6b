"""Pay-per-scan skill endpoint for agents calling through the Pinion facilitator.

x402 payment is enforced upstream (edge proxy or facilitator); a request that
reaches ``POST`` has already paid. Reports from here are neither cached nor
attested.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from loguru import logger

from config.settings import settings
from pinioscan.api.dependencies import get_services
from pinioscan.api.routers.scan import read_address_body
from pinioscan.chain.constants import USDC, ZERO_ADDRESS
from pinioscan.parsers.collector import CollectionError
from pinioscan.services import Services
from pinioscan.utils.sanitize import sanitize_error

router = APIRouter(prefix="/api", tags=["skill"])

INVALID_ADDRESS = {"error": "Invalid Base token address"}


def payment_manifest() -> dict[str, Any]:
    """x402 payment requirement returned with HTTP 402."""
    return {
        "x402Version": 1,
        "accepts": [
            {
                "scheme": "exact",
                "network": "base-mainnet",
                "maxAmountRequired": settings.skill_price_units,
                "resource": settings.skill_resource_url,
                "description": "Pinioscan token safety analysis: 0.10 USDC per scan",
                "mimeType": "application/json",
                "payTo": settings.skill_pay_to or ZERO_ADDRESS,
                "maxTimeoutSeconds": 300,
                "asset": USDC,
                "extra": {"name": "USD Coin", "version": "2"},
            }
        ],
        "error": "X-PAYMENT header required",
    }


@router.get("/pinion-skill")
async def skill_manifest() -> JSONResponse:
    return JSONResponse(payment_manifest(), status_code=402)


@router.post("/pinion-skill")
async def skill_scan(request: Request, services: Services = Depends(get_services)):
    """Collect and analyze one token, returning the report JSON."""
    address, rejection = await read_address_body(request, INVALID_ADDRESS)
    if rejection is not None:
        return rejection

    try:
        report = await services.orchestrator.analyze(address)
    except CollectionError as e:
        logger.warning(f"[SKILL] Collection failed for {address[:10]}: {e}")
        return JSONResponse({"error": sanitize_error(e)}, status_code=500)
    except Exception as e:
        logger.exception(f"[SKILL] Unhandled error for {address[:10]}: {e}")
        return JSONResponse({"error": sanitize_error(e)}, status_code=500)
    return JSONResponse(report.to_wire())
