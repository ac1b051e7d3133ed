"""Tests for canonical encoding and identifiers."""

from __future__ import annotations

import hashlib
import json

import pytest

from relaycast.events.encoding import (
    canonical_encode,
    compute_identifier,
    content_hash,
    split_for_trailing_tag,
)
from relaycast.events.model import RecordDraft
from relaycast.events.pow import PowMiner, hash_matches_difficulty

# ─── canonical_encode ─────────────────────────────────────────


class TestCanonicalEncode:
    def test_compact_array_layout(self):
        data = canonical_encode("ab" * 32, 1700000000, 1, [["t", "x"]], "hi")
        assert data == (
            b'[0,"' + b"ab" * 32 + b'",1700000000,1,[["t","x"]],"hi"]'
        )

    def test_no_whitespace(self):
        data = canonical_encode("pk", 1, 1, [["a", "b", "c"]], "text")
        assert b" " not in data

    def test_non_ascii_kept_as_utf8(self):
        data = canonical_encode("pk", 1, 1, [], "héllo 📅")
        assert "héllo 📅".encode() in data
        assert b"\\u" not in data

    def test_control_characters_escaped(self):
        data = canonical_encode("pk", 1, 1, [], 'line\n"quoted"\\')
        assert data.endswith(b'"line\\n\\"quoted\\"\\\\"]')

    def test_empty_tags(self):
        assert canonical_encode("pk", 5, 7, [], "") == b'[0,"pk",5,7,[],""]'

    def test_parses_back_to_same_fields(self):
        data = canonical_encode("pk", 42, 1, [["t", "a"], ["p", "b"]], "c")
        assert json.loads(data) == [0, "pk", 42, 1, [["t", "a"], ["p", "b"]], "c"]

    def test_tag_order_matters(self):
        a = canonical_encode("pk", 1, 1, [["t", "a"], ["t", "b"]], "c")
        b = canonical_encode("pk", 1, 1, [["t", "b"], ["t", "a"]], "c")
        assert a != b


# ─── Identifiers ──────────────────────────────────────────────


class TestIdentifier:
    def test_content_hash_is_sha256_hex(self):
        assert content_hash(b"abc") == hashlib.sha256(b"abc").hexdigest()

    def test_identifier_is_64_lowercase_hex(self, make_draft):
        ident = compute_identifier(make_draft())
        assert len(ident) == 64
        assert ident == ident.lower()
        int(ident, 16)

    def test_deterministic(self, make_draft):
        assert compute_identifier(make_draft()) == compute_identifier(make_draft())

    def test_each_field_changes_identifier(self, make_draft):
        base = compute_identifier(make_draft())
        assert compute_identifier(make_draft(content="other")) != base
        assert compute_identifier(make_draft(kind=2)) != base
        assert compute_identifier(make_draft(created_at=1)) != base
        assert compute_identifier(make_draft(tags=[])) != base
        assert compute_identifier(make_draft(issuer="00" * 32)) != base

    def test_tag_mutation_changes_identifier(self, make_draft):
        draft = make_draft()
        before = compute_identifier(draft)
        draft.tags.append(["t", "more"])
        assert compute_identifier(draft) != before


# ─── split_for_trailing_tag ───────────────────────────────────


class TestSplitForTrailingTag:
    @pytest.mark.parametrize(
        "tags",
        [[], [["t", "one"]], [["t", "one"], ["client", "relaycast"]]],
    )
    def test_pieces_compose_to_canonical_form(self, make_draft, tags):
        draft = make_draft(tags=tags, content='multi\nline "note" ✓')
        tag = ["nonce", "17", "8"]
        prefix, suffix = split_for_trailing_tag(draft, draft.tags)
        middle = json.dumps(tag, separators=(",", ":")).encode()

        expected = canonical_encode(
            draft.issuer, draft.created_at, draft.kind, [*tags, tag], draft.content
        )
        assert prefix + middle + suffix == expected

    def test_does_not_touch_draft(self, make_draft):
        draft = make_draft()
        snapshot = draft.copy()
        split_for_trailing_tag(draft, draft.tags)
        assert draft == snapshot

    @pytest.mark.parametrize(
        "overrides",
        [
            {"created_at": 1_700_000_000.0},
            {"created_at": 1_700_000_000.9},
            {"kind": True},
        ],
    )
    def test_mined_on_the_signed_bytes(self, make_draft, overrides):
        draft = make_draft(**overrides)
        result = PowMiner().mine(draft, 8)

        assert result.identifier == compute_identifier(result.draft)
        assert hash_matches_difficulty(result.identifier, 8)


# ─── RecordDraft ──────────────────────────────────────────────


class TestRecordDraft:
    def test_create_stamps_time(self, signer):
        draft = RecordDraft.create(signer.public_identity, "hi")
        assert draft.created_at > 1_600_000_000
        assert draft.kind == 1
        assert draft.tags == []

    def test_create_copies_tags(self, signer):
        tags = [["t", "x"]]
        draft = RecordDraft.create(signer.public_identity, "hi", tags=tags)
        tags[0].append("y")
        assert draft.tags == [["t", "x"]]

    def test_fixed_fields_cannot_change(self, make_draft):
        draft = make_draft()
        for name, value in [
            ("content", "x"),
            ("kind", 2),
            ("issuer", "00"),
            ("created_at", 0),
        ]:
            with pytest.raises(AttributeError, match="cannot be changed"):
                setattr(draft, name, value)

    def test_header_fields_coerced_to_int(self, make_draft):
        draft = make_draft(created_at=1_700_000_000.0, kind=True)
        assert type(draft.created_at) is int
        assert type(draft.kind) is int
        assert b"1700000000,1," in canonical_encode(
            draft.issuer, draft.created_at, draft.kind, [], ""
        )

    def test_tags_can_change(self, make_draft):
        draft = make_draft()
        draft.tags = [["t", "new"]]
        assert draft.tags == [["t", "new"]]

    def test_copy_is_independent(self, make_draft):
        draft = make_draft()
        clone = draft.copy()
        clone.tags.append(["t", "extra"])
        assert ["t", "extra"] not in draft.tags

    def test_tag_values(self, make_draft):
        draft = make_draft(tags=[["t", "a"], ["p", "x"], ["t", "b", "c"]])
        assert draft.tag_values("t") == [["a"], ["b", "c"]]
        assert draft.tag_values("missing") == []
