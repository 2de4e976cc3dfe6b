"""Pinion skills client: token price, wallet USD balance, decoded transactions.

Paid per call and entirely optional: every method returns None on failure
so the scan continues without market data.
"""

from typing import Any

import httpx
from loguru import logger
from pydantic import ValidationError

from pinioscan.models import DeployerTransaction, PriceData
from pinioscan.parsers.pinion.models import WalletBalance
from pinioscan.parsers.rate_limiter import RateLimiter


class PinionClient:
    """Async client for Pinion price/balance/tx skills on Base."""

    def __init__(self, base_url: str, api_key: str = "", max_rps: float = 2.0) -> None:
        if not base_url:
            raise ValueError("Pinion base URL is empty")
        self._rate_limiter = RateLimiter(max_rps)
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=15.0,
            headers={**headers, "x-network": "base"},
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _get_data(self, path: str) -> dict[str, Any] | None:
        try:
            await self._rate_limiter.acquire()
            resp = await self._client.get(path)
            if resp.status_code != 200:
                logger.debug(f"[PINION] HTTP {resp.status_code} for {path}")
                return None
            body = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"[PINION] {type(e).__name__} for {path}: {e}")
            return None
        data = body.get("data") if isinstance(body, dict) else None
        return data if isinstance(data, dict) else None

    async def get_price(self, symbol: str) -> PriceData | None:
        """USD price, 24h change and market cap for a token symbol."""
        data = await self._get_data(f"/price/{symbol}")
        if data is None:
            return None
        try:
            return PriceData(
                price_usd=float(data.get("priceUsd") or 0),
                price_change_24h=float(data.get("priceChange24h") or 0),
                market_cap_usd=float(data.get("marketCapUsd") or 0),
            )
        except (ValueError, TypeError):
            return None

    async def get_balance(self, address: str) -> WalletBalance | None:
        """Total USD value held by ``address`` (used to value pool depth)."""
        data = await self._get_data(f"/balance/{address}")
        if data is None:
            return None
        try:
            return WalletBalance.model_validate(data)
        except ValidationError:
            return None

    async def get_transaction(self, tx_hash: str) -> DeployerTransaction | None:
        data = await self._get_data(f"/tx/{tx_hash}")
        if data is None:
            return None
        return DeployerTransaction(
            function_name=data.get("functionName"),
            args=data.get("args"),
            value=str(data["value"]) if data.get("value") is not None else None,
        )
