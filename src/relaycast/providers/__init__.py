"""Completion providers used by tools that generate text."""

from relaycast.providers.base import (
    CompletionProvider,
    CompletionResponse,
    PromptMessage,
    TokenUsage,
)

__all__ = [
    "CompletionProvider",
    "CompletionResponse",
    "PromptMessage",
    "TokenUsage",
]
