"""Completion provider interface and data classes.

Providers are stateless adapters around a chat-completion API. Data
classes are immutable where possible (frozen dataclasses with slots).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class TokenUsage:
    """Token counts from a single model call."""

    input_tokens: int
    output_tokens: int

    @property
    def total_tokens(self) -> int:
        """Total tokens consumed (input + output)."""
        return self.input_tokens + self.output_tokens


@dataclass(frozen=True, slots=True)
class PromptMessage:
    """A single message in a prompt sequence."""

    role: str  # "system", "user", "assistant"
    content: str


@dataclass(slots=True)
class CompletionResponse:
    """Complete response from a model call."""

    content: str
    model_id: str
    usage: TokenUsage
    finish_reason: str
    latency_ms: float
    raw_response: object = field(default=None, repr=False)


@runtime_checkable
class CompletionProvider(Protocol):
    """Protocol that completion adapters must satisfy."""

    @property
    def provider_id(self) -> str:
        """Unique identifier for this provider (e.g. 'openrouter')."""
        ...

    async def send(
        self,
        messages: list[PromptMessage],
        model_id: str | None = None,
        *,
        max_tokens: int = 1024,
        temperature: float = 0.7,
    ) -> CompletionResponse:
        """Send a prompt and wait for the complete response.

        Raises ProviderError on failure.
        """
        ...
