"""System-prompt completions with backoff."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from relaycast.core.errors import ProviderError
from relaycast.core.retry import CompletionBackoff, with_backoff
from relaycast.providers.base import PromptMessage

if TYPE_CHECKING:
    from relaycast.providers.base import CompletionProvider

logger = logging.getLogger(__name__)


async def complete_text(
    provider: CompletionProvider,
    system_prompt: str,
    user_input: str,
    *,
    model_id: str | None = None,
    max_tokens: int = 1024,
    backoff: CompletionBackoff | None = None,
) -> str:
    """Send one system + user exchange and return the reply text.

    Raises:
        ProviderError: On provider failure after retries, or an empty reply.
    """
    messages = [
        PromptMessage(role="system", content=system_prompt),
        PromptMessage(role="user", content=user_input),
    ]
    response = await with_backoff(
        lambda: provider.send(messages, model_id, max_tokens=max_tokens),
        provider_id=provider.provider_id,
        backoff=backoff,
    )
    logger.debug(
        "Completion from %s: %d tokens in %.0fms",
        response.model_id,
        response.usage.total_tokens,
        response.latency_ms,
    )
    text = response.content.strip()
    if not text:
        raise ProviderError(provider.provider_id, "No content in completion response")
    return text
