"""Shared test fixtures."""

from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from pinioscan.models import EvidenceBundle, HolderInfo, LiquidityInfo, TokenEvidence

TOKEN_ADDRESS = "0x1111111111111111111111111111111111111111"
OWNER_ADDRESS = "0x2222222222222222222222222222222222222222"
POOL_A = "0x3333333333333333333333333333333333333333"
POOL_B = "0x4444444444444444444444444444444444444444"


@pytest.fixture
def token_address() -> str:
    return TOKEN_ADDRESS


@pytest.fixture
def make_bundle() -> Callable[..., EvidenceBundle]:
    """Factory for evidence bundles: holder percentages and pool USD depths."""

    def _make(
        *,
        verified: bool = True,
        holder_pcts: list[float] | None = None,
        pool_usd: list[float] | None = None,
        name: str = "Test Token",
        symbol: str = "TST",
        owner: str | None = OWNER_ADDRESS,
        source_code: str | None = "contract Test { function transfer() public {} }",
        contract_age: str | None = "3 months, 2 days",
    ) -> EvidenceBundle:
        holders = [
            HolderInfo(
                address=f"0x{str(i + 5) * 40}"[:42],
                balance=str(pct * 10),
                percentage=pct,
            )
            for i, pct in enumerate(holder_pcts or [])
        ]
        pools = [POOL_A, POOL_B]
        liquidity = [
            LiquidityInfo(
                pair=pools[i % 2],
                dex="Uniswap V3 (0.3% fee)",
                token0=TOKEN_ADDRESS,
                token1="0x4200000000000000000000000000000000000006",
                liquidity_usd=usd,
            )
            for i, usd in enumerate(pool_usd or [])
        ]
        token = TokenEvidence(
            address=TOKEN_ADDRESS,
            name=name,
            symbol=symbol,
            decimals=18,
            total_supply=str(1000 * 10**18),
            is_verified=verified,
            source_code=source_code if verified else None,
            owner=owner,
            contract_age=contract_age,
        )
        return EvidenceBundle(token=token, holders=holders, liquidity=liquidity)

    return _make


@pytest.fixture
def mock_response() -> Callable[..., MagicMock]:
    """httpx-like response stub with ``status_code`` and ``json()``."""

    def _make(status_code: int = 200, payload: object = None) -> MagicMock:
        resp = MagicMock()
        resp.status_code = status_code
        resp.json.return_value = payload
        return resp

    return _make


@pytest.fixture
def fake_attester() -> MagicMock:
    """Configured attester whose submit() succeeds."""
    attester = MagicMock()
    attester.skip_reason = None
    attester.is_configured = True
    attester.submit = AsyncMock(return_value="0x" + "ab" * 32)
    return attester
