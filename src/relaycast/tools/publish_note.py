"""publish_note tool: sign, optionally mine, and publish a text note."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from relaycast.events.pow import MAX_DIFFICULTY
from relaycast.tools.base import bounded_int, require_text

if TYPE_CHECKING:
    from relaycast.events.pipeline import RecordPublisher


def parse_tags(raw: Any) -> list[list[str]]:
    """Validate a tag list: a list of non-empty lists of strings.

    Raises:
        ValueError: On any other shape.
    """
    if raw is None:
        return []
    if not isinstance(raw, list):
        msg = "Parameter 'tags' must be a list of string lists."
        raise ValueError(msg)
    tags: list[list[str]] = []
    for entry in raw:
        if (
            not isinstance(entry, list)
            or not entry
            or not all(isinstance(v, str) for v in entry)
        ):
            msg = f"Invalid tag {entry!r}: expected a non-empty list of strings."
            raise ValueError(msg)
        tags.append(list(entry))
    return tags


class PublishNoteTool:
    """Publish caller-supplied content as a signed note.

    Implements the :class:`Tool` protocol.
    """

    def __init__(self, publisher: RecordPublisher, *, default_kind: int = 1) -> None:
        self._publisher = publisher
        self._default_kind = default_kind

    @property
    def name(self) -> str:
        return "publish_note"

    @property
    def description(self) -> str:
        return (
            "Sign a text note, optionally stamp it with proof of work, "
            "and publish it to the configured relays."
        )

    @property
    def parameters_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "content": {
                    "type": "string",
                    "description": "Text of the note.",
                },
                "tags": {
                    "type": "array",
                    "items": {"type": "array", "items": {"type": "string"}},
                    "description": 'Tags, e.g. [["t", "news"]].',
                },
                "kind": {
                    "type": "integer",
                    "minimum": 0,
                    "description": "Event kind (default: text note).",
                },
                "difficulty": {
                    "type": "integer",
                    "minimum": 0,
                    "maximum": MAX_DIFFICULTY,
                    "description": "Proof-of-work bits; 0 disables mining.",
                },
            },
            "required": ["content"],
        }

    async def execute(self, **kwargs: Any) -> str:
        """Publish the note.

        Raises:
            ValueError: Invalid arguments.
            AllEndpointsFailedError: No relay accepted the note.
            MiningTimeoutError: Mining timed out and the policy aborts.
        """
        content = require_text(kwargs, "content")
        tags = parse_tags(kwargs.get("tags"))
        kind = bounded_int(kwargs, "kind")
        difficulty = bounded_int(kwargs, "difficulty", maximum=MAX_DIFFICULTY)

        report = await self._publisher.publish_note(
            content,
            tags=tags,
            kind=self._default_kind if kind is None else kind,
            difficulty=difficulty,
        )
        report.outcome.raise_for_failure()
        return report.message()
