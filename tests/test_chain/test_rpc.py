"""Tests for RPC reads: address helpers, ERC-20 metadata defaults, LP lock math."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from pinioscan.chain.rpc import ChainReadError, ChainReader, is_address, to_checksum

TOKEN = "0x1111111111111111111111111111111111111111"
POOL = "0x3333333333333333333333333333333333333333"
UNICRYPT = "0x71b5759d73262fbb223956913ecf4ecc51057641"
DEAD = "0x000000000000000000000000000000000000dead"


def _fn(value=None, error: Exception | None = None) -> MagicMock:
    """Contract function stub whose ``call()`` returns ``value`` or raises ``error``."""
    fn = MagicMock()
    fn.call = AsyncMock(side_effect=error) if error else AsyncMock(return_value=value)
    return fn


class TestAddressHelpers:
    def test_is_address(self) -> None:
        assert is_address(TOKEN) is True
        assert is_address("0x833589FCD6EDB6E08F4C7C32D4F71B54BDA02913") is True
        assert is_address("0x1234") is False
        assert is_address("not an address") is False

    def test_to_checksum(self) -> None:
        assert to_checksum("0x833589fcd6edb6e08f4c7c32d4f71b54bda02913") == (
            "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
        )

    def test_reader_requires_url_or_w3(self) -> None:
        with pytest.raises(ValueError):
            ChainReader("")


class TestChainReader:
    @pytest.mark.asyncio
    async def test_get_code_error_wrapped(self) -> None:
        w3 = MagicMock()
        w3.eth.get_code = AsyncMock(side_effect=OSError("connection refused"))
        with pytest.raises(ChainReadError):
            await ChainReader(w3=w3).get_code(TOKEN)

    @pytest.mark.asyncio
    async def test_metadata_defaults_per_getter(self) -> None:
        token = MagicMock()
        token.functions.name.return_value = _fn("Test Token")
        token.functions.symbol.return_value = _fn(error=ValueError("reverted"))
        token.functions.decimals.return_value = _fn(6)
        token.functions.totalSupply.return_value = _fn(10**12)
        token.functions.owner.return_value = _fn(error=ValueError("no owner()"))
        w3 = MagicMock()
        w3.eth.contract.return_value = token

        meta = await ChainReader(w3=w3).read_token_metadata(TOKEN)

        assert meta.name == "Test Token"
        assert meta.symbol == "???"
        assert meta.decimals == 6
        assert meta.total_supply == 10**12
        assert meta.owner is None

    @pytest.mark.asyncio
    async def test_zero_owner_is_renounced(self) -> None:
        token = MagicMock()
        for getter, value in (("name", "A"), ("symbol", "A"), ("decimals", 18), ("totalSupply", 1)):
            getattr(token.functions, getter).return_value = _fn(value)
        token.functions.owner.return_value = _fn("0x0000000000000000000000000000000000000000")
        w3 = MagicMock()
        w3.eth.contract.return_value = token

        meta = await ChainReader(w3=w3).read_token_metadata(TOKEN)

        assert meta.owner is None

    @pytest.mark.asyncio
    async def test_get_pool_zero_is_none(self) -> None:
        factory = MagicMock()
        factory.functions.getPool.return_value = _fn("0x0000000000000000000000000000000000000000")
        w3 = MagicMock()
        w3.eth.contract.return_value = factory

        assert await ChainReader(w3=w3).get_pool(TOKEN, POOL, 500) is None

    @pytest.mark.asyncio
    async def test_lp_lock_locked_and_burned(self) -> None:
        balances = {UNICRYPT: 300, DEAD: 400}
        lp = MagicMock()
        lp.functions.totalSupply.return_value = _fn(1000)
        lp.functions.balanceOf.side_effect = lambda addr: _fn(balances.get(addr.lower(), 0))
        w3 = MagicMock()
        w3.eth.contract.return_value = lp

        lock = await ChainReader(w3=w3).read_lp_lock(POOL)

        assert lock.locked_percent == 70.0
        assert lock.is_locked is True
        assert lock.lock_platform == "Unicrypt, Burned"

    @pytest.mark.asyncio
    async def test_lp_lock_partial(self) -> None:
        lp = MagicMock()
        lp.functions.totalSupply.return_value = _fn(1000)
        lp.functions.balanceOf.side_effect = lambda addr: _fn(500 if addr.lower() == DEAD else 0)
        w3 = MagicMock()
        w3.eth.contract.return_value = lp

        lock = await ChainReader(w3=w3).read_lp_lock(POOL)

        assert lock.locked_percent == 50.0
        assert lock.is_locked is False

    @pytest.mark.asyncio
    async def test_v3_pool_has_no_lp_supply(self) -> None:
        lp = MagicMock()
        lp.functions.totalSupply.return_value = _fn(error=ValueError("execution reverted"))
        w3 = MagicMock()
        w3.eth.contract.return_value = lp

        lock = await ChainReader(w3=w3).read_lp_lock(POOL)

        assert lock.is_locked is False
        assert lock.locked_percent == 0.0

    @pytest.mark.asyncio
    async def test_no_pool(self) -> None:
        lock = await ChainReader(w3=MagicMock()).read_lp_lock(None)
        assert lock.is_locked is False
