"""summarise tool: humorous day summary, published as a note.

The summary is returned even when publishing fails; the failure is
appended to the text instead of replacing it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from relaycast.core.errors import MiningError
from relaycast.providers.prompting import complete_text
from relaycast.tools.base import require_text

if TYPE_CHECKING:
    from relaycast.core.retry import CompletionBackoff
    from relaycast.events.pipeline import RecordPublisher
    from relaycast.providers.base import CompletionProvider

logger = logging.getLogger(__name__)

SUMMARY_PROMPT = (
    "Please review the input and provide a humorous summary of what this "
    "person has been up to on this day"
)


def format_summary_note(summary: str, persona: str) -> tuple[str, list[list[str]]]:
    """Return (content, tags) for a published summary."""
    content = f"📅 Daily Summary by {persona}\n\n{summary}\n\n#summary #humor"
    tags = [["client", persona], ["t", "summary"], ["t", "humor"]]
    return content, tags


class SummariseTool:
    """Generate a day summary and post it.

    Implements the :class:`Tool` protocol.
    """

    def __init__(
        self,
        provider: CompletionProvider,
        publisher: RecordPublisher,
        *,
        persona: str = "relaycast",
        model_id: str | None = None,
        max_tokens: int = 1024,
        backoff: CompletionBackoff | None = None,
    ) -> None:
        self._provider = provider
        self._publisher = publisher
        self._persona = persona
        self._model_id = model_id
        self._max_tokens = max_tokens
        self._backoff = backoff

    @property
    def name(self) -> str:
        return "summarise"

    @property
    def description(self) -> str:
        return (
            "Create a humorous summary of someone's day and publish it "
            "as a signed text note."
        )

    @property
    def parameters_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "dayInput": {
                    "type": "string",
                    "description": "What the person has been up to today.",
                },
            },
            "required": ["dayInput"],
        }

    async def execute(self, **kwargs: Any) -> str:
        day_input = require_text(kwargs, "dayInput")
        summary = await complete_text(
            self._provider,
            SUMMARY_PROMPT,
            day_input,
            model_id=self._model_id,
            max_tokens=self._max_tokens,
            backoff=self._backoff,
        )
        content, tags = format_summary_note(summary, self._persona)

        try:
            report = await self._publisher.publish_note(content, tags=tags)
        except MiningError as e:
            logger.warning("Summary not published: %s", e)
            return f"{summary}\n\n⚠️ Summary generated but not published: {e}"

        if not report.published:
            return (
                f"{summary}\n\n⚠️ Summary generated but failed to publish: "
                f"{report.outcome.summary()}"
            )
        return f"{summary}\n\n🎵 Summary published!\n{report.message()}"
