"""Canonical encoding and content hashing.

The canonical form of a record is the compact JSON array::

    [0, <issuer>, <created_at>, <kind>, <tags>, <content>]

with no whitespace and non-ASCII characters emitted as-is, encoded as
UTF-8. Its SHA-256 digest, hex-encoded, is the record identifier.
"""

from __future__ import annotations

import hashlib
import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

    from relaycast.events.model import RecordDraft

_SEPARATORS = (",", ":")


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=_SEPARATORS, ensure_ascii=False)


def _header(issuer: str, created_at: int, kind: int) -> list[Any]:
    return [0, issuer, int(created_at), int(kind)]


def canonical_encode(
    issuer: str,
    created_at: int,
    kind: int,
    tags: Sequence[Sequence[str]],
    content: str,
) -> bytes:
    """Serialize the identity fields of a record."""
    payload = [*_header(issuer, created_at, kind), [list(t) for t in tags], content]
    return _dumps(payload).encode("utf-8")


def content_hash(data: bytes) -> str:
    """SHA-256 of *data*, lowercase hex."""
    return hashlib.sha256(data).hexdigest()


def compute_identifier(draft: RecordDraft) -> str:
    """Identifier of *draft* in its current state."""
    return content_hash(
        canonical_encode(
            draft.issuer, draft.created_at, draft.kind, draft.tags, draft.content
        )
    )


def split_for_trailing_tag(
    draft: RecordDraft,
    base_tags: Sequence[Sequence[str]],
) -> tuple[bytes, bytes]:
    """Return (prefix, suffix) around one tag appended after *base_tags*.

    ``prefix + _dumps(tag).encode() + suffix`` equals the canonical
    encoding of *draft* with ``base_tags + [tag]``. Compact JSON of an
    array is ``"[" + ",".join(items) + "]"``, so the pieces compose.
    """
    head = _dumps(_header(draft.issuer, draft.created_at, draft.kind))[:-1]
    tags_open = _dumps([list(t) for t in base_tags])[:-1]
    if base_tags:
        tags_open += ","
    prefix = f"{head},{tags_open}"
    suffix = f"],{_dumps(draft.content)}]"
    return prefix.encode("utf-8"), suffix.encode("utf-8")
