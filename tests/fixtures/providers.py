"""Mock completion provider for deterministic testing."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from relaycast.providers.base import CompletionResponse, TokenUsage

if TYPE_CHECKING:
    from relaycast.providers.base import PromptMessage


class MockCompletionProvider:
    """Returns canned replies in order; records all calls.

    Entries in *replies* that are exceptions are raised instead.
    """

    def __init__(
        self,
        replies: list[str | Exception] | None = None,
        *,
        provider_id: str = "mock",
    ) -> None:
        self._provider_id = provider_id
        self._replies = list(replies or ["A witty reply."])
        self.call_log: list[dict[str, Any]] = []

    @property
    def provider_id(self) -> str:
        return self._provider_id

    async def send(
        self,
        messages: list[PromptMessage],
        model_id: str | None = None,
        *,
        max_tokens: int = 1024,
        temperature: float = 0.7,
    ) -> CompletionResponse:
        self.call_log.append(
            {"messages": messages, "model_id": model_id, "max_tokens": max_tokens}
        )
        reply = self._replies.pop(0) if len(self._replies) > 1 else self._replies[0]
        if isinstance(reply, Exception):
            raise reply
        return CompletionResponse(
            content=reply,
            model_id=model_id or "mock-model",
            usage=TokenUsage(input_tokens=10, output_tokens=20),
            finish_reason="stop",
            latency_ms=1.0,
        )
