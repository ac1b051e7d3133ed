"""funny_agent tool: a joking reply, nothing published."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from relaycast.providers.prompting import complete_text
from relaycast.tools.base import require_text

if TYPE_CHECKING:
    from relaycast.core.retry import CompletionBackoff
    from relaycast.providers.base import CompletionProvider

FUNNY_PROMPT = (
    "You are a witty assistant. Answer the question helpfully, "
    "but make the answer funny."
)


class FunnyAgentTool:
    """Implements the :class:`Tool` protocol."""

    def __init__(
        self,
        provider: CompletionProvider,
        *,
        model_id: str | None = None,
        max_tokens: int = 1024,
        backoff: CompletionBackoff | None = None,
    ) -> None:
        self._provider = provider
        self._model_id = model_id
        self._max_tokens = max_tokens
        self._backoff = backoff

    @property
    def name(self) -> str:
        return "funny_agent"

    @property
    def description(self) -> str:
        return "Answer a question with a funny response."

    @property
    def parameters_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "question": {
                    "type": "string",
                    "description": "The question or input.",
                },
            },
            "required": ["question"],
        }

    async def execute(self, **kwargs: Any) -> str:
        question = require_text(kwargs, "question")
        return await complete_text(
            self._provider,
            FUNNY_PROMPT,
            question,
            model_id=self._model_id,
            max_tokens=self._max_tokens,
            backoff=self._backoff,
        )
