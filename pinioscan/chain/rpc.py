"""Read-only Base RPC access: bytecode, ERC-20 metadata, pool lookup, LP locks."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

from loguru import logger
from web3 import AsyncWeb3

from pinioscan.chain.constants import (
    DEAD_ADDRESSES,
    ERC20_ABI,
    KNOWN_LOCKERS,
    LP_ABI,
    UNISWAP_V3_FACTORY,
    UNISWAP_V3_FACTORY_ABI,
    ZERO_ADDRESS,
)
from pinioscan.models import LPLockInfo


class ChainReadError(Exception):
    """Required RPC read failed (endpoint unreachable or malformed reply)."""


@dataclass
class TokenMetadata:
    """ERC-20 getters, each already defaulted when its call reverted."""

    name: str = "Unknown"
    symbol: str = "???"
    decimals: int = 18
    total_supply: int = 0
    owner: str | None = None


def is_address(value: str) -> bool:
    """Hex address check that ignores checksum casing."""
    return isinstance(value, str) and AsyncWeb3.is_address(value.strip().lower())


def to_checksum(address: str) -> str:
    return AsyncWeb3.to_checksum_address(address.strip().lower())


def make_web3(rpc_url: str, *, timeout: float = 30.0) -> AsyncWeb3:
    return AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))


class ChainReader:
    """Thin async wrapper over web3 for the reads the evidence collector needs."""

    def __init__(self, rpc_url: str = "", *, w3: AsyncWeb3 | None = None) -> None:
        if w3 is None and not rpc_url:
            raise ValueError("RPC URL is empty")
        self._w3 = w3 or make_web3(rpc_url)

    @property
    def w3(self) -> AsyncWeb3:
        return self._w3

    async def close(self) -> None:
        disconnect = getattr(self._w3.provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()

    async def get_code(self, address: str) -> bytes:
        """Deployed bytecode at ``address`` (empty for EOAs)."""
        try:
            code = await self._w3.eth.get_code(to_checksum(address))
        except Exception as e:
            raise ChainReadError(f"get_code failed: {e}") from e
        return bytes(code)

    async def read_token_metadata(self, address: str) -> TokenMetadata:
        """Read name/symbol/decimals/totalSupply/owner concurrently.

        Each getter falls back independently; a token without ``owner()``
        reports no owner rather than failing the read.
        """
        token = self._w3.eth.contract(address=to_checksum(address), abi=ERC20_ABI)
        defaults = TokenMetadata()
        name, symbol, decimals, total_supply, owner = await asyncio.gather(
            _call_or_default(token.functions.name(), defaults.name, "name"),
            _call_or_default(token.functions.symbol(), defaults.symbol, "symbol"),
            _call_or_default(token.functions.decimals(), defaults.decimals, "decimals"),
            _call_or_default(token.functions.totalSupply(), defaults.total_supply, "totalSupply"),
            _call_or_default(token.functions.owner(), None, "owner"),
        )
        return TokenMetadata(
            name=str(name),
            symbol=str(symbol),
            decimals=int(decimals),
            total_supply=int(total_supply),
            owner=owner if owner and owner != ZERO_ADDRESS else None,
        )

    async def get_pool(self, token: str, quote: str, fee: int) -> str | None:
        """Uniswap V3 pool address for the pair and fee tier, None if absent."""
        factory = self._w3.eth.contract(
            address=to_checksum(UNISWAP_V3_FACTORY), abi=UNISWAP_V3_FACTORY_ABI
        )
        pool = await factory.functions.getPool(to_checksum(token), to_checksum(quote), fee).call()
        if not pool or pool == ZERO_ADDRESS:
            return None
        return pool

    async def read_lp_lock(self, pool_address: str | None) -> LPLockInfo:
        """Share of LP supply held by known lockers and burn addresses.

        V3 pools have no fungible LP token, so ``totalSupply`` reverts and the
        pool reports unlocked.
        """
        if not pool_address or pool_address == ZERO_ADDRESS:
            return LPLockInfo()

        lp = self._w3.eth.contract(address=to_checksum(pool_address), abi=LP_ABI)
        try:
            total_lp = int(await lp.functions.totalSupply().call())
        except Exception as e:
            logger.debug(f"[RPC] LP totalSupply unavailable for {pool_address[:10]}: {e}")
            return LPLockInfo()
        if total_lp == 0:
            return LPLockInfo()

        lockers = list(KNOWN_LOCKERS.items())
        holders = [addr for addr, _ in lockers] + DEAD_ADDRESSES
        balances = await asyncio.gather(
            *[_call_or_default(lp.functions.balanceOf(to_checksum(a)), 0, "balanceOf") for a in holders]
        )

        total_locked = 0
        platforms: list[str] = []
        for i, balance in enumerate(balances):
            if int(balance) <= 0:
                continue
            total_locked += int(balance)
            if i < len(lockers):
                platforms.append(lockers[i][1])
            elif "Burned" not in platforms:
                platforms.append("Burned")

        locked_percent = (total_locked * 10000 // total_lp) / 100
        return LPLockInfo(
            is_locked=locked_percent > 50,
            locked_percent=locked_percent,
            lock_platform=", ".join(platforms) if platforms else None,
        )


async def _call_or_default(fn: Any, default: Any, label: str) -> Any:
    try:
        return await fn.call()
    except Exception as e:
        logger.debug(f"[RPC] {label}() reverted or failed: {e}")
        return default
