"""LLM risk analysis via OpenRouter chat completions.

One POST per scan, no retries: the synthesizer bounds the call with its own
timeout and falls back to the deterministic report on any failure.
"""

import httpx
from loguru import logger

DEFAULT_MODEL = "google/gemini-3-flash-preview"


class InferenceError(Exception):
    """Inference call failed or returned no usable message content."""


class OpenRouterClient:
    """Chat-completion client for the analysis prompt."""

    BASE_URL = "https://openrouter.ai/api/v1"

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 4096,
        *,
        base_url: str = BASE_URL,
        timeout: float = 60.0,
    ) -> None:
        if not api_key:
            raise ValueError("OpenRouter API key is empty")
        self._model = model
        self._max_tokens = max_tokens
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,  # outer wait_for is the real deadline
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
        )

    @property
    def model(self) -> str:
        return self._model

    async def close(self) -> None:
        await self._client.aclose()

    async def complete(self, prompt: str) -> str:
        """Send ``prompt`` as a single user message and return the reply text."""
        try:
            resp = await self._client.post(
                "/chat/completions",
                json={
                    "model": self._model,
                    "messages": [{"role": "user", "content": prompt}],
                    "max_tokens": self._max_tokens,
                },
            )
        except httpx.HTTPError as e:
            raise InferenceError(f"{type(e).__name__}: {e}") from e

        if resp.status_code != 200:
            logger.warning(f"[LLM] OpenRouter HTTP {resp.status_code}")
            raise InferenceError(f"OpenRouter API error: {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise InferenceError("OpenRouter returned non-JSON body") from e

        choices = data.get("choices") or [{}]
        content = (choices[0].get("message") or {}).get("content")
        if not content or not isinstance(content, str):
            raise InferenceError("No content in AI response")

        usage = data.get("usage") or {}
        logger.debug(
            f"[LLM] {self._model} replied {len(content)} chars "
            f"(prompt_tokens={usage.get('prompt_tokens')}, "
            f"completion_tokens={usage.get('completion_tokens')})"
        )
        return content
