"""Shared test fixtures for relaycast."""

from __future__ import annotations

from typing import Any

import pytest

from relaycast.events.model import RecordDraft
from relaycast.events.signing import KeySigner
from tests.fixtures.keys import OTHER_PRIVATE_KEY, TEST_CREATED_AT, TEST_PRIVATE_KEY


@pytest.fixture
def signer() -> KeySigner:
    return KeySigner.from_hex(TEST_PRIVATE_KEY)


@pytest.fixture
def other_signer() -> KeySigner:
    return KeySigner.from_hex(OTHER_PRIVATE_KEY)


@pytest.fixture
def make_draft(signer: KeySigner) -> Any:
    """Factory fixture for RecordDraft with sensible defaults."""

    def _make(**overrides: Any) -> RecordDraft:
        defaults: dict[str, Any] = {
            "issuer": signer.public_identity,
            "created_at": TEST_CREATED_AT,
            "kind": 1,
            "tags": [["t", "test"]],
            "content": "hello",
        }
        defaults.update(overrides)
        return RecordDraft(**defaults)

    return _make
