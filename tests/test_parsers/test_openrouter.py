"""Tests for the OpenRouter inference client."""

from unittest.mock import AsyncMock

import httpx
import pytest

from pinioscan.parsers.openrouter.client import InferenceError, OpenRouterClient


def _client(**kwargs) -> OpenRouterClient:
    client = OpenRouterClient("sk-test", max_tokens=4096)
    client._client = AsyncMock()
    client._client.post = AsyncMock(**kwargs)
    return client


class TestOpenRouterClient:
    def test_empty_key_rejected(self) -> None:
        with pytest.raises(ValueError):
            OpenRouterClient("")

    @pytest.mark.asyncio
    async def test_single_user_message(self, mock_response) -> None:
        client = _client(return_value=mock_response(200, {
            "choices": [{"message": {"content": '{"overallScore": 70}'}}],
            "usage": {"prompt_tokens": 900, "completion_tokens": 300},
        }))

        text = await client.complete("evidence document")

        assert text == '{"overallScore": 70}'
        args, kwargs = client._client.post.call_args
        assert args == ("/chat/completions",)
        body = kwargs["json"]
        assert body["model"] == "google/gemini-3-flash-preview"
        assert body["max_tokens"] == 4096
        assert body["messages"] == [{"role": "user", "content": "evidence document"}]

    @pytest.mark.asyncio
    async def test_http_error_raises(self, mock_response) -> None:
        client = _client(return_value=mock_response(503, {}))
        with pytest.raises(InferenceError, match="503"):
            await client.complete("x")

    @pytest.mark.asyncio
    async def test_transport_error_raises(self) -> None:
        client = _client(side_effect=httpx.ReadTimeout("slow"))
        with pytest.raises(InferenceError):
            await client.complete("x")

    @pytest.mark.asyncio
    async def test_empty_content_raises(self, mock_response) -> None:
        client = _client(return_value=mock_response(200, {"choices": []}))
        with pytest.raises(InferenceError, match="No content"):
            await client.complete("x")
