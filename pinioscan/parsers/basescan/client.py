"""BaseScan API client for contract source, creator, holders, transfers and tx history.

Every lookup is best-effort: a failed or empty response returns None or []
and the evidence collector applies the documented default.
"""

import asyncio
from typing import Any

import httpx
from loguru import logger
from pydantic import ValidationError

from pinioscan.models import TransferRecord
from pinioscan.parsers.basescan.models import AccountTx, ContractCreation, RawHolder, SourceInfo
from pinioscan.parsers.rate_limiter import RateLimiter

BASE_URL = "https://api.basescan.org/api"
MAX_RETRIES = 2
RETRY_DELAYS = [1.0, 3.0]


class BasescanApiError(Exception):
    pass


class BasescanClient:
    """Async client for the BaseScan REST API (free plan: 5 RPS)."""

    def __init__(
        self,
        api_key: str = "",
        *,
        base_url: str = BASE_URL,
        max_rps: float = 5.0,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._rate_limiter = RateLimiter(max_rps)
        self._client = httpx.AsyncClient(timeout=15.0)

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, **params: Any) -> Any:
        """GET with the API key, retrying 429 and transient network errors.

        Returns ``result`` when the API reports ``status == "1"``, else None.
        Raises BasescanApiError once retries are exhausted.
        """
        query = {**params, "apikey": self._api_key}
        label = f"{params.get('module')}/{params.get('action')}"

        for attempt in range(MAX_RETRIES + 1):
            try:
                await self._rate_limiter.acquire()
                resp = await self._client.get(self._base_url, params=query)

                if resp.status_code == 429:
                    delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                    logger.debug(f"[BASESCAN] Rate limited on {label}, waiting {delay}s")
                    await asyncio.sleep(delay)
                    continue

                if resp.status_code != 200:
                    raise BasescanApiError(f"HTTP {resp.status_code} for {label}")

                data = resp.json()
                if str(data.get("status")) != "1":
                    logger.debug(f"[BASESCAN] {label}: {data.get('message')}")
                    return None
                return data.get("result")

            except (httpx.TimeoutException, httpx.ConnectError) as e:
                if attempt < MAX_RETRIES:
                    delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                    logger.debug(f"[BASESCAN] {type(e).__name__} on {label}, retry in {delay}s")
                    await asyncio.sleep(delay)
                else:
                    raise BasescanApiError(f"{label} failed after {MAX_RETRIES + 1} attempts: {e}") from e

        raise BasescanApiError(f"{label} still rate limited after {MAX_RETRIES + 1} attempts")

    async def get_source_code(self, address: str) -> SourceInfo:
        """Verification status and source; unverified on any failure."""
        try:
            result = await self._request(module="contract", action="getsourcecode", address=address)
        except BasescanApiError as e:
            logger.warning(f"[BASESCAN] Source lookup failed for {address[:10]}: {e}")
            return SourceInfo()
        return _parse_source(result)

    async def get_contract_creator(self, address: str) -> ContractCreation | None:
        try:
            result = await self._request(
                module="contract", action="getcontractcreation", contractaddresses=address
            )
        except BasescanApiError as e:
            logger.warning(f"[BASESCAN] Creator lookup failed for {address[:10]}: {e}")
            return None
        if not result or not isinstance(result, list):
            return None
        row = result[0]
        creator = row.get("contractCreator")
        if not creator:
            return None
        return ContractCreation(creator=creator, tx_hash=row.get("txHash"))

    async def get_token_holders(self, token: str, count: int = 20) -> list[RawHolder]:
        """Top holders in rank order as returned by the explorer."""
        try:
            result = await self._request(
                module="token",
                action="tokenholderlist",
                contractaddress=token,
                page=1,
                offset=count,
            )
        except BasescanApiError as e:
            logger.warning(f"[BASESCAN] Holder lookup failed for {token[:10]}: {e}")
            return []
        if not isinstance(result, list):
            return []

        holders: list[RawHolder] = []
        for row in result[:count]:
            address = row.get("TokenHolderAddress")
            if not address:
                continue
            try:
                quantity = int(row.get("TokenHolderQuantity") or "0")
            except (ValueError, TypeError):
                quantity = 0
            holders.append(RawHolder(address=address, quantity=quantity))
        return holders

    async def get_token_transfers(self, token: str, limit: int = 50) -> list[TransferRecord]:
        """Most recent ERC-20 transfers of ``token``, newest first."""
        try:
            result = await self._request(
                module="account",
                action="tokentx",
                contractaddress=token,
                page=1,
                offset=limit,
                sort="desc",
            )
        except BasescanApiError as e:
            logger.warning(f"[BASESCAN] Transfer lookup failed for {token[:10]}: {e}")
            return []
        if not isinstance(result, list):
            return []

        transfers: list[TransferRecord] = []
        for row in result[:limit]:
            try:
                transfers.append(TransferRecord.model_validate(row))
            except ValidationError as e:
                logger.debug(f"[BASESCAN] Skipping malformed transfer row: {e}")
        return transfers

    async def get_first_transaction(self, address: str) -> AccountTx | None:
        """Oldest normal transaction involving ``address``."""
        try:
            result = await self._request(
                module="account",
                action="txlist",
                address=address,
                startblock=0,
                endblock=99999999,
                page=1,
                offset=1,
                sort="asc",
            )
        except BasescanApiError as e:
            logger.warning(f"[BASESCAN] txlist failed for {address[:10]}: {e}")
            return None
        if not result or not isinstance(result, list):
            return None
        row = result[0]
        try:
            return AccountTx(
                hash=row.get("hash", ""),
                timestamp=int(row.get("timeStamp") or 0),
                from_address=row.get("from", ""),
                to_address=row.get("to", ""),
            )
        except (ValueError, TypeError):
            return None


def _parse_source(result: Any) -> SourceInfo:
    if not result or not isinstance(result, list):
        return SourceInfo()
    row = result[0]
    source = row.get("SourceCode") or ""
    if not source:
        return SourceInfo(compiler=row.get("CompilerVersion") or None)
    return SourceInfo(
        is_verified=True,
        source_code=source,
        compiler=row.get("CompilerVersion") or None,
    )
