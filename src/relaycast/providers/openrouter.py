"""OpenRouter provider adapter (OpenAI-compatible API)."""

from __future__ import annotations

import contextlib
import time
from typing import TYPE_CHECKING, Any

import openai

from relaycast.core.errors import (
    ModelNotFoundError,
    ProviderAuthError,
    ProviderOverloadedError,
    ProviderRateLimitError,
    ProviderTimeoutError,
)
from relaycast.providers.base import CompletionResponse, TokenUsage

if TYPE_CHECKING:
    from relaycast.providers.base import PromptMessage

PROVIDER_ID = "openrouter"
DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "openai/gpt-oss-120b"

_DEFAULT_HEADERS = {
    "HTTP-Referer": "https://github.com/relaycast/relaycast",
    "X-Title": "relaycast",
}


def _map_error(e: openai.APIError) -> Exception:
    """Map OpenAI SDK errors to the relaycast error hierarchy."""
    if isinstance(e, openai.AuthenticationError):
        return ProviderAuthError(PROVIDER_ID, str(e))
    if isinstance(e, openai.RateLimitError):
        retry_after = None
        if hasattr(e, "response") and e.response is not None:
            raw = e.response.headers.get("retry-after")
            if raw is not None:
                with contextlib.suppress(ValueError):
                    retry_after = float(raw)
        return ProviderRateLimitError(PROVIDER_ID, retry_after=retry_after)
    if isinstance(e, openai.APITimeoutError):
        return ProviderTimeoutError(PROVIDER_ID, str(e))
    if isinstance(e, openai.InternalServerError):
        return ProviderOverloadedError(PROVIDER_ID, str(e))
    if isinstance(e, openai.NotFoundError):
        return ModelNotFoundError(PROVIDER_ID, str(e))
    return ProviderOverloadedError(PROVIDER_ID, str(e))


def _build_messages(messages: list[PromptMessage]) -> list[dict[str, str]]:
    """Convert PromptMessages to OpenAI chat message format."""
    return [{"role": msg.role, "content": msg.content} for msg in messages]


class OpenRouterProvider:
    """Provider adapter for OpenRouter's OpenAI-compatible API.

    Text-only; multimodal prompts are not supported.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        default_model: str = DEFAULT_MODEL,
        client: openai.AsyncOpenAI | None = None,
    ) -> None:
        self._default_model = default_model
        if client is not None:
            self._client = client
        else:
            kwargs: dict[str, Any] = {
                "base_url": base_url,
                "default_headers": _DEFAULT_HEADERS,
            }
            if api_key is not None:
                kwargs["api_key"] = api_key
            self._client = openai.AsyncOpenAI(**kwargs)

    @property
    def provider_id(self) -> str:
        return PROVIDER_ID

    @property
    def default_model(self) -> str:
        return self._default_model

    async def send(
        self,
        messages: list[PromptMessage],
        model_id: str | None = None,
        *,
        max_tokens: int = 1024,
        temperature: float = 0.7,
    ) -> CompletionResponse:
        model = model_id or self._default_model
        kwargs: dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "messages": _build_messages(messages),
            "temperature": temperature,
        }

        start = time.monotonic()
        try:
            response = await self._client.chat.completions.create(**kwargs)
        except openai.APIError as e:
            raise _map_error(e) from e

        latency_ms = (time.monotonic() - start) * 1000

        if response.choices:
            content = response.choices[0].message.content or ""
            finish_reason = response.choices[0].finish_reason or "stop"
        else:
            content = ""
            finish_reason = "stop"

        if response.usage:
            usage = TokenUsage(
                input_tokens=response.usage.prompt_tokens,
                output_tokens=response.usage.completion_tokens,
            )
        else:
            usage = TokenUsage(input_tokens=0, output_tokens=0)

        return CompletionResponse(
            content=content,
            model_id=model,
            usage=usage,
            finish_reason=finish_reason,
            latency_ms=latency_ms,
            raw_response=response,
        )
