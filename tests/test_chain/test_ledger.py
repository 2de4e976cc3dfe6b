"""Tests for the ledger read wrapper."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from pinioscan.chain.ledger import LedgerReader

LEDGER = "0x9999999999999999999999999999999999999999"
TOKEN_A = "0x1111111111111111111111111111111111111111"
TOKEN_B = "0x5555555555555555555555555555555555555555"
ZERO = "0x0000000000000000000000000000000000000000"
SCANNER = "0x2222222222222222222222222222222222222222"


def _call(value=None, error: Exception | None = None) -> MagicMock:
    fn = MagicMock()
    fn.call = AsyncMock(side_effect=error) if error else AsyncMock(return_value=value)
    return fn


@pytest.fixture
def contract() -> MagicMock:
    return MagicMock()


@pytest.fixture
def ledger(contract) -> LedgerReader:
    w3 = MagicMock()
    w3.eth.contract.return_value = contract
    return LedgerReader(w3, LEDGER)


class TestLedgerReader:
    @pytest.mark.asyncio
    async def test_recent_tokens_skip_zero(self, ledger, contract) -> None:
        contract.functions.getRecentTokens.return_value = _call([TOKEN_A, ZERO, TOKEN_B])
        assert await ledger.get_recent_tokens(20) == [TOKEN_A, TOKEN_B]
        contract.functions.getRecentTokens.assert_called_once_with(20)

    @pytest.mark.asyncio
    async def test_latest_score(self, ledger, contract) -> None:
        contract.functions.getLatestScore.return_value = _call((72, "SAFE", 1_700_000_000))
        latest = await ledger.get_latest_score(TOKEN_A)
        assert (latest.score, latest.risk_level, latest.timestamp) == (72, "SAFE", 1_700_000_000)

    @pytest.mark.asyncio
    async def test_total_scans(self, ledger, contract) -> None:
        contract.functions.totalScans.return_value = _call(42)
        assert await ledger.total_scans() == 42

    @pytest.mark.asyncio
    async def test_latest_per_token(self, ledger, contract) -> None:
        contract.functions.getRecentTokens.return_value = _call([TOKEN_A, TOKEN_B])
        rows = {
            TOKEN_A: [
                (TOKEN_A, 40, "DANGER", "0xhash1", 100, SCANNER),
                (TOKEN_A, 55, "CAUTION", "0xhash2", 200, SCANNER),
            ],
        }

        def _attestations(token: str) -> MagicMock:
            if token in rows:
                return _call(rows[token])
            return _call(error=ValueError("execution reverted"))

        contract.functions.getAttestations.side_effect = _attestations

        result = await ledger.latest_per_token(20)

        assert result == [{
            "token": TOKEN_A,
            "score": 55,
            "riskLevel": "CAUTION",
            "timestamp": 200,
            "totalAttestations": 2,
        }]
