"""Evidence collector: fans out to RPC, explorer and price sources for one token.

Only the bytecode check is fatal. Every other source degrades to an empty
value (``[]``, ``None``, unverified, unlocked) so a flaky provider never
aborts the scan.

Batch 1 (parallel): ERC-20 metadata, source verification, creator
Batch 2 (parallel): holders, pools, transfers, age, price, deployer first tx
Then: LP lock of the primary pool
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

from loguru import logger

from pinioscan.chain.constants import CANONICAL_TOKENS, DEAD_ADDRESSES, KNOWN_ADDRESSES, POOL_MATRIX
from pinioscan.chain.rpc import ChainReadError, ChainReader, TokenMetadata, to_checksum
from pinioscan.models import (
    DeployerTransaction,
    EvidenceBundle,
    HolderInfo,
    LiquidityInfo,
    LPLockInfo,
    PriceData,
    TokenEvidence,
)
from pinioscan.parsers.basescan.client import BasescanClient
from pinioscan.parsers.basescan.models import ContractCreation, RawHolder, SourceInfo
from pinioscan.parsers.contract_patterns import analyze_contract_patterns
from pinioscan.parsers.pinion.client import PinionClient


class CollectionError(Exception):
    """Required on-chain data could not be read; the scan cannot proceed."""


class NotAContractError(CollectionError):
    """Address has no deployed bytecode (EOA or self-destructed)."""


def format_units(value: int, decimals: int) -> str:
    """Raw integer amount as a decimal string in token units (``"1.5"``, ``"100.0"``)."""
    sign = "-" if value < 0 else ""
    whole, frac = divmod(abs(value), 10**decimals)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0") if decimals > 0 else ""
    return f"{sign}{whole}.{frac_str or '0'}"


def holder_percentage(balance: int, total_supply: int) -> float:
    """Share of supply with two-decimal precision, integer math until the last step."""
    if total_supply <= 0:
        return 0.0
    return (balance * 10000 // total_supply) / 100


def holder_label(address: str) -> str | None:
    addr = address.lower()
    if addr in KNOWN_ADDRESSES:
        return KNOWN_ADDRESSES[addr]
    if addr in DEAD_ADDRESSES:
        return "Burn"
    return None


def format_contract_age(created_at: int, now: float | None = None) -> str:
    days = int(((now or time.time()) - created_at) // 86400)
    if days > 365:
        return f"{days // 365} years, {days % 365} days"
    if days > 30:
        return f"{days // 30} months, {days % 30} days"
    return f"{days} days"


def fee_tier_label(fee: int) -> str:
    return f"Uniswap V3 ({fee / 10000:g}% fee)"


class EvidenceCollector:
    """Builds an EvidenceBundle for one token from injected data sources."""

    def __init__(
        self,
        chain: ChainReader,
        explorer: BasescanClient,
        pinion: PinionClient | None = None,
        *,
        holder_limit: int = 20,
        transfer_limit: int = 50,
        max_concurrency: int = 8,
    ) -> None:
        self._chain = chain
        self._explorer = explorer
        self._pinion = pinion
        self._holder_limit = holder_limit
        self._transfer_limit = transfer_limit
        self._semaphore = asyncio.Semaphore(max_concurrency)

    async def collect(self, address: str) -> EvidenceBundle:
        """Gather all evidence for ``address`` (checksummed on entry).

        Raises NotAContractError for empty bytecode and CollectionError when
        the RPC endpoint cannot be read at all.
        """
        address = to_checksum(address)
        start = time.monotonic()

        try:
            code = await self._chain.get_code(address)
        except ChainReadError as e:
            raise CollectionError(f"Cannot read contract at {address[:10]}...: {e}") from e
        if not code:
            raise NotAContractError(
                f"Address {address[:10]}... is not a contract (EOA or empty)"
            )

        # Batch 1: identity
        metadata, source, creation = await asyncio.gather(
            self._chain.read_token_metadata(address),
            self._explorer.get_source_code(address),
            self._explorer.get_contract_creator(address),
            return_exceptions=True,
        )
        metadata = _or_default(metadata, TokenMetadata(), "metadata", address)
        source = _or_default(source, SourceInfo(), "source", address)
        creation = _or_default(creation, None, "creator", address)
        creator = creation.creator if isinstance(creation, ContractCreation) else None

        # Batch 2: market and distribution
        holders, liquidity, transfers, first_tx, price, deployer_tx = await asyncio.gather(
            self._fetch_holders(address, metadata),
            self._fetch_liquidity_pools(address),
            self._explorer.get_token_transfers(address, self._transfer_limit),
            self._explorer.get_first_transaction(address),
            self._fetch_price(metadata.symbol),
            self._fetch_deployer_tx(creator),
            return_exceptions=True,
        )
        holders = _or_default(holders, [], "holders", address)
        liquidity = _or_default(liquidity, [], "liquidity", address)
        transfers = _or_default(transfers, [], "transfers", address)
        first_tx = _or_default(first_tx, None, "contract age", address)
        price = _or_default(price, None, "price", address)
        deployer_tx = _or_default(deployer_tx, None, "deployer tx", address)

        lp_lock = LPLockInfo()
        if liquidity:
            try:
                lp_lock = await self._chain.read_lp_lock(liquidity[0].pair)
            except Exception as e:
                logger.warning(f"[COLLECT] LP lock check failed for {address[:10]}: {e}")
            if lp_lock.is_locked:
                liquidity[0] = liquidity[0].model_copy(
                    update={"is_locked": True, "lock_expiry": lp_lock.lock_expiry}
                )

        created_at = first_tx.timestamp if first_tx and first_tx.timestamp > 0 else None
        token = TokenEvidence(
            address=address,
            name=metadata.name,
            symbol=metadata.symbol,
            decimals=metadata.decimals,
            total_supply=str(metadata.total_supply),
            is_verified=source.is_verified,
            source_code=source.source_code,
            compiler=source.compiler,
            owner=metadata.owner,
            creator=creator,
            creation_timestamp=created_at,
            contract_age=format_contract_age(created_at) if created_at else None,
        )

        bundle = EvidenceBundle(
            token=token,
            holders=holders,
            liquidity=liquidity,
            transfers=transfers,
            patterns=analyze_contract_patterns(token.source_code),
            lp_lock=lp_lock,
            is_canonical=address.lower() in CANONICAL_TOKENS,
            price=price,
            deployer_tx=deployer_tx,
        )
        logger.info(
            f"[COLLECT] {token.symbol} {address[:10]} in {(time.monotonic() - start) * 1000:.0f}ms: "
            f"verified={token.is_verified} holders={len(holders)} pools={len(liquidity)} "
            f"transfers={len(transfers)} price={'yes' if price else 'no'}"
        )
        return bundle

    async def _fetch_holders(self, address: str, metadata: TokenMetadata) -> list[HolderInfo]:
        raw: list[RawHolder] = await self._explorer.get_token_holders(address, self._holder_limit)
        return [
            HolderInfo(
                address=h.address,
                balance=format_units(h.quantity, metadata.decimals),
                percentage=holder_percentage(h.quantity, metadata.total_supply),
                label=holder_label(h.address),
            )
            for h in raw
        ]

    async def _fetch_liquidity_pools(self, address: str) -> list[LiquidityInfo]:
        """Probe the quote x fee-tier matrix; missing pools are skipped silently."""

        async def _probe(quote: str, fee: int) -> LiquidityInfo | None:
            async with self._semaphore:
                try:
                    pool = await self._chain.get_pool(address, quote, fee)
                except Exception as e:
                    logger.debug(f"[COLLECT] getPool failed fee={fee}: {e}")
                    return None
            if pool is None:
                return None

            # Pool USD depth is the pool wallet's value, not reserve math
            liquidity_usd = 0.0
            if self._pinion is not None:
                balance = await self._pinion.get_balance(pool)
                if balance is not None:
                    liquidity_usd = balance.totalUsdValue

            token_first = address.lower() < quote.lower()
            return LiquidityInfo(
                pair=pool,
                dex=fee_tier_label(fee),
                token0=address if token_first else quote,
                token1=quote if token_first else address,
                liquidity_usd=liquidity_usd,
                is_locked=False,
            )

        results = await asyncio.gather(*[_probe(quote, fee) for quote, _, fee in POOL_MATRIX])
        return [pool for pool in results if pool is not None]

    async def _fetch_price(self, symbol: str) -> PriceData | None:
        if self._pinion is None:
            return None
        return await self._pinion.get_price(symbol)

    async def _fetch_deployer_tx(self, creator: str | None) -> DeployerTransaction | None:
        if self._pinion is None or not creator:
            return None
        first = await self._explorer.get_first_transaction(creator)
        if first is None or not first.hash:
            return None
        return await self._pinion.get_transaction(first.hash)


def _or_default(value: Any, default: Any, label: str, address: str) -> Any:
    """Replace an exception leaked from ``gather`` with the field default."""
    if isinstance(value, BaseException):
        logger.warning(f"[COLLECT] {label} failed for {address[:10]}: {value}")
        return default
    return value
