"""Tests for the BaseScan explorer client."""

from unittest.mock import AsyncMock

import httpx
import pytest

from pinioscan.parsers.basescan.client import BasescanApiError, BasescanClient, _parse_source

TOKEN = "0x1111111111111111111111111111111111111111"


def _client(*responses) -> BasescanClient:
    client = BasescanClient("key", max_rps=0)
    client._client = AsyncMock()
    client._client.get = AsyncMock(side_effect=list(responses))
    return client


class TestParseSource:
    def test_verified(self) -> None:
        info = _parse_source([{"SourceCode": "contract A {}", "CompilerVersion": "v0.8.20"}])
        assert info.is_verified is True
        assert info.source_code == "contract A {}"
        assert info.compiler == "v0.8.20"

    def test_empty_source_is_unverified(self) -> None:
        info = _parse_source([{"SourceCode": "", "CompilerVersion": ""}])
        assert info.is_verified is False
        assert info.source_code is None

    def test_garbage(self) -> None:
        assert _parse_source("Invalid API Key").is_verified is False


class TestBasescanClient:
    @pytest.mark.asyncio
    async def test_holders_parsed_in_rank_order(self, mock_response) -> None:
        client = _client(mock_response(200, {
            "status": "1",
            "result": [
                {"TokenHolderAddress": "0xaaa", "TokenHolderQuantity": "600"},
                {"TokenHolderAddress": "0xbbb", "TokenHolderQuantity": "200"},
                {"TokenHolderAddress": "", "TokenHolderQuantity": "5"},
            ],
        }))

        holders = await client.get_token_holders(TOKEN, 20)

        assert [h.address for h in holders] == ["0xaaa", "0xbbb"]
        assert holders[0].quantity == 600
        params = client._client.get.call_args.kwargs["params"]
        assert params["action"] == "tokenholderlist"
        assert params["apikey"] == "key"

    @pytest.mark.asyncio
    async def test_status_zero_means_empty(self, mock_response) -> None:
        client = _client(mock_response(200, {"status": "0", "message": "No data", "result": []}))
        assert await client.get_token_holders(TOKEN) == []

    @pytest.mark.asyncio
    async def test_http_error_degrades_to_unverified(self, mock_response) -> None:
        client = _client(mock_response(500, {}))
        info = await client.get_source_code(TOKEN)
        assert info.is_verified is False

    @pytest.mark.asyncio
    async def test_rate_limit_then_success(self, mock_response, monkeypatch) -> None:
        monkeypatch.setattr("pinioscan.parsers.basescan.client.RETRY_DELAYS", [0.0, 0.0])
        client = _client(
            mock_response(429, {}),
            mock_response(200, {
                "status": "1",
                "result": [{"contractCreator": "0xcreator", "txHash": "0xtx"}],
            }),
        )

        creation = await client.get_contract_creator(TOKEN)

        assert creation is not None
        assert creation.creator == "0xcreator"
        assert client._client.get.await_count == 2

    @pytest.mark.asyncio
    async def test_timeouts_exhaust_retries(self, monkeypatch) -> None:
        monkeypatch.setattr("pinioscan.parsers.basescan.client.RETRY_DELAYS", [0.0, 0.0])
        client = BasescanClient(max_rps=0)
        client._client = AsyncMock()
        client._client.get = AsyncMock(side_effect=httpx.ConnectTimeout("slow"))

        with pytest.raises(BasescanApiError):
            await client._request(module="account", action="txlist")
        assert await client.get_first_transaction(TOKEN) is None

    @pytest.mark.asyncio
    async def test_transfers_skip_malformed_rows(self, mock_response) -> None:
        client = _client(mock_response(200, {
            "status": "1",
            "result": [
                {
                    "hash": "0x1", "from": "0xa", "to": "0xb", "value": "1000",
                    "tokenDecimal": "18", "blockNumber": "123", "timeStamp": "1700000000",
                    "gasUsed": "21000",
                },
                {"hash": "0x2", "blockNumber": "not-a-number"},
            ],
        }))

        transfers = await client.get_token_transfers(TOKEN, 50)

        assert len(transfers) == 1
        assert transfers[0].from_address == "0xa"
        assert transfers[0].block_number == 123

    @pytest.mark.asyncio
    async def test_first_transaction(self, mock_response) -> None:
        client = _client(mock_response(200, {
            "status": "1",
            "result": [{"hash": "0xfirst", "timeStamp": "1700000000", "from": "0xa", "to": ""}],
        }))

        tx = await client.get_first_transaction(TOKEN)

        assert tx is not None
        assert tx.hash == "0xfirst"
        assert tx.timestamp == 1700000000
