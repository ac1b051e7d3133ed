"""Record data types.

A ``RecordDraft`` is the mutable, pre-signing form of an event; only its
tag list may change after creation. A ``FinalizedRecord`` is frozen and
carries the identifier and signature computed for the exact tag set
present when it was signed.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

KIND_TEXT_NOTE = 1

_FIXED_FIELDS = frozenset({"issuer", "created_at", "kind", "content"})


def _copy_tags(tags: Iterable[Sequence[str]]) -> list[list[str]]:
    return [[str(v) for v in tag] for tag in tags]


@dataclass(slots=True)
class RecordDraft:
    """Unsigned event under construction.

    ``issuer``, ``created_at``, ``kind`` and ``content`` cannot be
    reassigned once set. ``tags`` stays mutable until the draft is signed.
    """

    issuer: str
    created_at: int
    kind: int
    tags: list[list[str]]
    content: str

    def __post_init__(self) -> None:
        # Both fields are JSON integers on the wire; 1.0 or True would
        # serialize differently.
        object.__setattr__(self, "created_at", int(self.created_at))
        object.__setattr__(self, "kind", int(self.kind))

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _FIXED_FIELDS and hasattr(self, name):
            msg = f"RecordDraft.{name} cannot be changed after creation"
            raise AttributeError(msg)
        object.__setattr__(self, name, value)

    @classmethod
    def create(
        cls,
        issuer: str,
        content: str,
        *,
        kind: int = KIND_TEXT_NOTE,
        tags: Iterable[Sequence[str]] = (),
        created_at: int | None = None,
    ) -> RecordDraft:
        """Build a draft, stamping ``created_at`` with the current time."""
        return cls(
            issuer=issuer,
            created_at=int(time.time()) if created_at is None else int(created_at),
            kind=int(kind),
            tags=_copy_tags(tags),
            content=content,
        )

    def copy(self) -> RecordDraft:
        """Return an independent copy (tags deep-copied)."""
        return RecordDraft(
            issuer=self.issuer,
            created_at=self.created_at,
            kind=self.kind,
            tags=_copy_tags(self.tags),
            content=self.content,
        )

    def tag_values(self, name: str) -> list[list[str]]:
        """Return the values of every tag called *name*, in order."""
        return [list(tag[1:]) for tag in self.tags if tag and tag[0] == name]


@dataclass(frozen=True, slots=True)
class FinalizedRecord:
    """Signed, immutable event."""

    identifier: str
    issuer: str
    created_at: int
    kind: int
    tags: tuple[tuple[str, ...], ...]
    content: str
    signature: str

    @property
    def nonce(self) -> tuple[str, ...] | None:
        """The ``nonce`` tag values, or None if the record was not mined."""
        for tag in self.tags:
            if tag and tag[0] == "nonce":
                return tag[1:]
        return None

    def to_draft(self) -> RecordDraft:
        """Return a fresh, unsigned draft with the same fields."""
        return RecordDraft(
            issuer=self.issuer,
            created_at=self.created_at,
            kind=self.kind,
            tags=_copy_tags(self.tags),
            content=self.content,
        )

    def to_event(self) -> dict[str, Any]:
        """Wire form, as sent to relays."""
        return {
            "id": self.identifier,
            "pubkey": self.issuer,
            "created_at": self.created_at,
            "kind": self.kind,
            "tags": [list(tag) for tag in self.tags],
            "content": self.content,
            "sig": self.signature,
        }
