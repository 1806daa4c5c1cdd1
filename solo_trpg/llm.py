"""LLM client — HTTP connection to a text-completion backend.

The LLM narrator is given an LLM callable matching the protocol:

    async def __call__(self, stage: str, prompt: str) -> str: ...

`stage` identifies which narrator request is calling ("scenario" or
"turn"). Implementations may use it for logging or routing.

Two implementations are provided:

    HttpLLM   — real HTTP client, supports KoboldCpp and OpenAI-compatible
                 backends. Selected by provider_format. Connection errors,
                 timeouts and 5xx responses are retried with exponential
                 backoff before giving up with LLMError.
    EchoLLM   — returns the prompt back unchanged. Useful for checking
                 prompt rendering without a running model.

Tests use a stub callable returning canned completions instead.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Literal, Protocol

import httpx

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol — every LLM implementation must match this signature
# ---------------------------------------------------------------------------

class LLM(Protocol):
    async def __call__(self, stage: str, prompt: str) -> str: ...


# ---------------------------------------------------------------------------
# HttpLLM — connects to a real backend
# ---------------------------------------------------------------------------

ProviderFormat = Literal["koboldcpp", "openai"]


class HttpLLM:
    """Async HTTP client for text-completion backends.

    Supported formats:
      "koboldcpp"  — POST /api/v1/generate  {"prompt": ..., "max_length": ...}
                     Response: {"results": [{"text": "..."}]}
      "openai"     — POST /v1/completions   {"model": ..., "prompt": ..., "max_tokens": ...}
                     Response: {"choices": [{"text": "..."}]}

    Args:
        provider_url:    Base URL of the backend, e.g. "http://localhost:5001".
        api_key:         Bearer token, or empty string if not required.
        provider_format: Wire format to use. Defaults to "koboldcpp".
        model:           Model identifier, used only by the openai format.
        timeout:         HTTP timeout in seconds. Defaults to 120.
        max_tokens:      Completion length limit sent to the backend.
        max_retries:     Extra attempts after a transient failure.
        backoff:         Initial delay between attempts in seconds; doubles
                         after each retry.
    """

    def __init__(
        self,
        provider_url: str,
        api_key: str = "",
        provider_format: ProviderFormat = "koboldcpp",
        model: str = "",
        timeout: float = 120.0,
        max_tokens: int = 2000,
        max_retries: int = 2,
        backoff: float = 1.0,
    ) -> None:
        self._base_url = provider_url.rstrip("/")
        self._api_key = api_key
        self._format = provider_format
        self._model = model
        self._timeout = timeout
        self._max_tokens = max_tokens
        self._max_retries = max_retries
        self._backoff = backoff

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _build_request(self, prompt: str) -> tuple[str, dict]:
        """Return (url, body) for the configured format."""
        if self._format == "openai":
            url = f"{self._base_url}/v1/completions"
            body: dict = {"prompt": prompt, "max_tokens": self._max_tokens}
            if self._model:
                body["model"] = self._model
            return url, body

        # koboldcpp (default)
        url = f"{self._base_url}/api/v1/generate"
        return url, {"prompt": prompt, "max_length": self._max_tokens}

    def _parse_response(self, resp: httpx.Response) -> str:
        """Extract the completion text from the response body."""
        try:
            data = resp.json()
        except ValueError as e:
            raise LLMError("Invalid JSON body from LLM backend") from e
        if not isinstance(data, dict):
            raise LLMError("Invalid JSON body from LLM backend: expected an object")

        if self._format == "openai":
            key, backend = "choices", "OpenAI-compatible"
        else:
            key, backend = "results", "KoboldCpp"
        entries = data.get(key)
        first = entries[0] if isinstance(entries, list) and entries else None
        if not isinstance(first, dict) or not isinstance(first.get("text"), str):
            raise LLMError(f"Unexpected response format from {backend} backend")
        return first["text"]

    async def _post_once(self, url: str, body: dict) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise TransientLLMError(f"Cannot connect to LLM backend at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status >= 500:
                raise TransientLLMError(f"LLM backend returned HTTP {status}") from e
            raise LLMError(f"LLM backend returned HTTP {status}") from e
        except httpx.TimeoutException as e:
            raise TransientLLMError(f"LLM backend timed out after {self._timeout}s") from e
        return resp

    async def __call__(self, stage: str, prompt: str) -> str:
        url, body = self._build_request(prompt)
        logger.debug("llm call stage=%s url=%s prompt_len=%d", stage, url, len(prompt))

        delay = self._backoff
        attempt = 0
        while True:
            try:
                resp = await self._post_once(url, body)
                break
            except TransientLLMError as e:
                if attempt >= self._max_retries:
                    raise
                attempt += 1
                logger.warning(
                    "llm call stage=%s failed (%s), retry %d/%d in %.1fs",
                    stage, e, attempt, self._max_retries, delay,
                )
                await asyncio.sleep(delay)
                delay *= 2

        text = self._parse_response(resp)
        logger.debug("llm response stage=%s len=%d", stage, len(text))
        return text


# ---------------------------------------------------------------------------
# EchoLLM — returns the prompt unchanged; useful for prompt smoke tests
# ---------------------------------------------------------------------------

class EchoLLM:
    """Returns the prompt text as-is. No network calls.

    The output won't be valid narrator JSON, so an LLMNarrator wired to
    EchoLLM exercises the malformed-output fallback path.
    """

    async def __call__(self, stage: str, prompt: str) -> str:
        logger.debug("EchoLLM stage=%s prompt_len=%d", stage, len(prompt))
        return prompt


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class LLMError(RuntimeError):
    """Raised when the LLM backend cannot be reached or returns an error."""


class TransientLLMError(LLMError):
    """An LLMError worth retrying: connection refused, timeout, or 5xx."""
