"""LLM client: HTTP connection to a text-completion backend.

Callers receive an LLM callable matching the protocol:

    async def __call__(self, role: str, prompt: str) -> str: ...

`role` is the story role making the call ("narrator", "story_idea"). It is
used for logging only.

HttpLLM speaks two wire formats, selected per connection:

    "koboldcpp"  -> POST /api/v1/generate        {"prompt": ...}
                   Response: {"results": [{"text": "..."}]}
    "openai"     -> POST /v1/chat/completions    {"model": ..., "messages": [...]}
                   Response: {"choices": [{"message": {"content": "..."}}]}

Connections are the dicts stored in config.json under llm_connections:
{"name", "provider_url", "api_key", "provider_format", "model"}.
"""

from __future__ import annotations

import logging
from typing import Any, Literal, Protocol

import httpx

from companion_stories.storage import resolve_connection

logger = logging.getLogger(__name__)

ProviderFormat = Literal["koboldcpp", "openai"]


class LLM(Protocol):
    async def __call__(self, role: str, prompt: str) -> str: ...


class LLMError(RuntimeError):
    """Raised when the LLM backend cannot be reached or returns an error."""


class HttpLLM:
    """Async HTTP client for a single configured LLM connection."""

    def __init__(
        self,
        provider_url: str,
        api_key: str = "",
        provider_format: ProviderFormat = "koboldcpp",
        model: str = "",
        timeout: float = 120.0,
    ) -> None:
        self._base_url = provider_url.rstrip("/")
        self._api_key = api_key
        self._format = provider_format
        self._model = model
        self._timeout = timeout

    @classmethod
    def from_connection(cls, conn: dict[str, Any]) -> HttpLLM:
        return cls(
            provider_url=conn["provider_url"],
            api_key=conn.get("api_key", ""),
            provider_format=conn.get("provider_format", "koboldcpp"),
            model=conn.get("model", ""),
        )

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _build_request(self, prompt: str) -> tuple[str, dict]:
        if self._format == "openai":
            body: dict = {"messages": [{"role": "user", "content": prompt}]}
            if self._model:
                body["model"] = self._model
            return f"{self._base_url}/v1/chat/completions", body
        return f"{self._base_url}/api/v1/generate", {"prompt": prompt}

    def _parse_response(self, data: Any) -> str:
        if self._format == "openai":
            try:
                text = data["choices"][0]["message"]["content"]
            except (KeyError, IndexError, TypeError) as e:
                raise LLMError("Unexpected response format from OpenAI-compatible backend") from e
        else:
            try:
                text = data["results"][0]["text"]
            except (KeyError, IndexError, TypeError) as e:
                raise LLMError("Unexpected response format from KoboldCpp backend") from e
        # content is null when the provider filtered the reply
        if not isinstance(text, str):
            raise LLMError(f"LLM backend returned no text (got {type(text).__name__})")
        return text

    async def __call__(self, role: str, prompt: str) -> str:
        url, body = self._build_request(prompt)
        logger.debug("llm call role=%s url=%s prompt_len=%d", role, url, len(prompt))

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to LLM backend at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise LLMError(f"LLM backend returned HTTP {e.response.status_code}") from e
        except httpx.TimeoutException as e:
            raise LLMError(f"LLM backend timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise LLMError(f"LLM request failed: {type(e).__name__}: {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise LLMError("LLM backend returned a non-JSON body") from e
        text = self._parse_response(data)
        logger.debug("llm response role=%s len=%d", role, len(text))
        return text


def llm_for_role(config: dict[str, Any], role_name: str) -> HttpLLM | None:
    """Build an HttpLLM for the connection assigned to `role_name`, if any."""
    conn = resolve_connection(config, role_name)
    if conn is None:
        return None
    return HttpLLM.from_connection(conn)
