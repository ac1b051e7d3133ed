"""Tests for the proof-of-work miner."""

from __future__ import annotations

import asyncio
import threading

import pytest

from relaycast.core.errors import (
    MiningCancelledError,
    MiningError,
    MiningTimeoutError,
)
from relaycast.events.encoding import compute_identifier
from relaycast.events.pow import (
    MAX_DIFFICULTY,
    MINING_DEADLINE_SECONDS,
    MiningProgress,
    MiningResult,
    PowMiner,
    hash_matches_difficulty,
    leading_zero_bits,
    nonce_tag,
    strip_nonce_tags,
)

# ─── Helpers ──────────────────────────────────────────────────


class _StepClock:
    """Clock that advances a fixed step on every reading."""

    def __init__(self, step: float) -> None:
        self._now = 0.0
        self._step = step

    def __call__(self) -> float:
        self._now += self._step
        return self._now


# ─── Difficulty predicates ────────────────────────────────────


class TestHashMatchesDifficulty:
    @pytest.mark.parametrize(
        ("digest", "difficulty", "expected"),
        [
            ("00ff", 8, True),
            ("01ff", 8, False),
            ("003f", 10, True),
            ("004f", 10, False),
            ("0000", 16, True),
            ("1fff", 3, True),
            ("2fff", 3, False),
            ("ffff", 0, True),
            ("7fff", 1, True),
            ("8fff", 1, False),
        ],
    )
    def test_prefix_rule(self, digest, difficulty, expected):
        assert hash_matches_difficulty(digest, difficulty) is expected

    def test_full_length_zero(self):
        assert hash_matches_difficulty("0" * 64, 256)
        assert not hash_matches_difficulty("0" * 63 + "1", 256)


class TestLeadingZeroBits:
    @pytest.mark.parametrize(
        ("digest", "bits"),
        [("ff", 0), ("7f", 1), ("3f", 2), ("1f", 3), ("0f", 4), ("003a", 10)],
    )
    def test_counts(self, digest, bits):
        assert leading_zero_bits(digest) == bits

    def test_all_zero(self):
        assert leading_zero_bits("0" * 64) == 256

    def test_non_hex_raises(self):
        with pytest.raises(ValueError):
            leading_zero_bits("zz")


class TestNonceTags:
    def test_nonce_tag_shape(self):
        assert nonce_tag(42, 8) == ["nonce", "42", "8"]

    def test_strip_keeps_other_tags_in_order(self):
        tags = [["t", "a"], ["nonce", "1", "4"], ["p", "b"]]
        assert strip_nonce_tags(tags) == [["t", "a"], ["p", "b"]]


# ─── PowMiner.search ──────────────────────────────────────────


class TestSearch:
    def test_difficulty_8_two_zero_hex_digits(self, make_draft):
        result = PowMiner().search(make_draft(), 8)
        assert result.ok
        assert result.identifier.startswith("00")

    def test_difficulty_10_third_digit_at_most_3(self, make_draft):
        result = PowMiner().search(make_draft(), 10)
        assert result.identifier[:2] == "00"
        assert int(result.identifier[2], 16) <= 3

    def test_identifier_matches_mined_draft(self, make_draft):
        result = PowMiner().search(make_draft(), 6)
        assert compute_identifier(result.draft) == result.identifier

    def test_nonce_tag_appended_last(self, make_draft):
        draft = make_draft(tags=[["t", "a"], ["t", "b"]])
        result = PowMiner().search(draft, 4)
        tags = result.draft.tags
        assert tags[:2] == [["t", "a"], ["t", "b"]]
        assert tags[-1] == ["nonce", str(result.nonce), "4"]
        assert result.attempts == result.nonce + 1

    def test_input_draft_untouched(self, make_draft):
        draft = make_draft()
        snapshot = draft.copy()
        PowMiner().search(draft, 4)
        assert draft == snapshot

    def test_existing_nonce_tag_replaced(self, make_draft):
        draft = make_draft(tags=[["nonce", "999", "2"], ["t", "a"]])
        result = PowMiner().search(draft, 4)
        nonce_tags = [t for t in result.draft.tags if t[0] == "nonce"]
        assert len(nonce_tags) == 1
        assert nonce_tags[0][2] == "4"
        assert result.draft.tags[0] == ["t", "a"]

    def test_deterministic_for_same_draft(self, make_draft):
        a = PowMiner().search(make_draft(), 8)
        b = PowMiner().search(make_draft(), 8)
        assert a.nonce == b.nonce
        assert a.identifier == b.identifier

    @pytest.mark.parametrize("difficulty", [0, -1, MAX_DIFFICULTY + 1])
    def test_out_of_range_difficulty(self, make_draft, difficulty):
        with pytest.raises(ValueError, match="difficulty"):
            PowMiner().search(make_draft(), difficulty)

    def test_times_out_at_deadline(self, make_draft):
        miner = PowMiner(deadline=5.0, clock=_StepClock(1.0))
        result = miner.search(make_draft(), 256)
        assert result.timed_out
        assert not result.ok
        assert result.draft is None
        assert result.elapsed > 5.0

    def test_difficulty_256_times_out_with_short_deadline(self, make_draft):
        result = PowMiner(deadline=0.2).search(make_draft(), 256)
        assert result.timed_out
        assert result.attempts > 0

    def test_cancelled_before_start(self, make_draft):
        cancel = threading.Event()
        cancel.set()
        result = PowMiner().search(make_draft(), 256, cancel=cancel)
        assert result.cancelled
        assert not result.timed_out

    def test_progress_reported(self, make_draft):
        seen: list[MiningProgress] = []
        miner = PowMiner(deadline=1.0, progress_interval=100, clock=_StepClock(0.01))
        miner.search(make_draft(), 256, progress=seen.append)
        assert seen
        assert seen[0].attempts == 100
        assert all(p.difficulty == 256 for p in seen)

    def test_failing_observer_does_not_stop_search(self, make_draft, caplog):
        calls = []

        def observer(report: MiningProgress) -> None:
            calls.append(report)
            raise RuntimeError("display gone")

        miner = PowMiner(deadline=1.0, progress_interval=100, clock=_StepClock(0.01))
        result = miner.search(make_draft(), 256, progress=observer)

        assert result.timed_out
        assert result.attempts > 100
        assert len(calls) == 1
        assert "Progress observer failed" in caplog.text

    def test_default_deadline(self):
        assert PowMiner().deadline == MINING_DEADLINE_SECONDS == 120.0

    @pytest.mark.parametrize(
        "kwargs", [{"deadline": 0}, {"deadline": -1.0}, {"progress_interval": 0}]
    )
    def test_invalid_construction(self, kwargs):
        with pytest.raises(ValueError):
            PowMiner(**kwargs)


# ─── mine / mine_async ────────────────────────────────────────


class TestMine:
    def test_mine_raises_on_timeout(self, make_draft):
        miner = PowMiner(deadline=1.0, clock=_StepClock(1.0))
        with pytest.raises(MiningTimeoutError) as exc_info:
            miner.mine(make_draft(), 256)
        assert exc_info.value.difficulty == 256
        assert exc_info.value.fallback_record is None

    def test_mine_raises_on_cancel(self, make_draft):
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(MiningCancelledError):
            PowMiner().mine(make_draft(), 256, cancel=cancel)

    async def test_mine_async_success(self, make_draft):
        result = await PowMiner().mine_async(make_draft(), 4)
        assert result.ok
        assert hash_matches_difficulty(result.identifier, 4)

    async def test_mine_async_cancel_stops_worker(self, make_draft):
        cancel = threading.Event()
        task = asyncio.create_task(
            PowMiner().mine_async(make_draft(), 256, cancel=cancel)
        )
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert cancel.is_set()


class TestMiningProgress:
    def test_rate(self):
        assert MiningProgress(8, 1000, 2.0).rate == 500.0

    def test_rate_zero_elapsed(self):
        assert MiningProgress(8, 1000, 0.0).rate == 0.0


class TestMiningResult:
    def test_ok_result_returns_draft(self, make_draft):
        draft = make_draft()
        result = MiningResult(difficulty=4, attempts=1, elapsed=0.0, draft=draft)
        assert result.ok
        assert result.raise_for_failure() is draft

    def test_empty_result_raises(self):
        result = MiningResult(difficulty=4, attempts=3, elapsed=0.1)
        assert not result.ok
        with pytest.raises(MiningError, match="produced no draft"):
            result.raise_for_failure()

    def test_raise_for_timeout(self):
        result = MiningResult(difficulty=4, attempts=10, elapsed=3.0, timed_out=True)
        with pytest.raises(MiningTimeoutError, match="timed out"):
            result.raise_for_failure()
