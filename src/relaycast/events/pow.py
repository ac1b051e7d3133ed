"""Proof-of-work mining over record identifiers.

A record meets difficulty ``D`` when its identifier, read as a big-endian
bit string, starts with at least ``D`` zero bits. The miner appends a
``["nonce", "<n>", "<D>"]`` tag after the existing tags and increments
``n`` until the recomputed identifier qualifies or the deadline passes.

The search is brute force. Each attempt reuses a SHA-256 state primed
with the canonical bytes that precede the nonce tag, so only the tag and
the trailing content are hashed per attempt.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from relaycast.core.errors import (
    MiningCancelledError,
    MiningError,
    MiningTimeoutError,
)
from relaycast.events.encoding import split_for_trailing_tag

if TYPE_CHECKING:
    from collections.abc import Callable

    from relaycast.events.model import RecordDraft

logger = logging.getLogger(__name__)

MINING_DEADLINE_SECONDS = 120.0
DEFAULT_PROGRESS_INTERVAL = 50_000
MAX_DIFFICULTY = 256
NONCE_TAG = "nonce"

# Attempts between deadline/cancellation checks.
_CHECK_INTERVAL = 256


def hash_matches_difficulty(hex_digest: str, difficulty: int) -> bool:
    """Check whether *hex_digest* has at least *difficulty* leading zero bits."""
    full_zeros = difficulty // 4
    if not hex_digest.startswith("0" * full_zeros):
        return False
    remaining = difficulty % 4
    if remaining == 0:
        return True
    if len(hex_digest) <= full_zeros:
        return False
    nibble = int(hex_digest[full_zeros], 16)
    return (nibble >> (4 - remaining)) == 0


def leading_zero_bits(hex_digest: str) -> int:
    """Count the leading zero bits of a hex digest."""
    bits = 0
    for char in hex_digest:
        nibble = int(char, 16)
        if nibble == 0:
            bits += 4
            continue
        bits += 4 - nibble.bit_length()
        break
    return bits


def nonce_tag(nonce: int, difficulty: int) -> list[str]:
    return [NONCE_TAG, str(nonce), str(difficulty)]


def strip_nonce_tags(tags: list[list[str]]) -> list[list[str]]:
    """Return *tags* without any nonce tag, order preserved."""
    return [list(t) for t in tags if not (t and t[0] == NONCE_TAG)]


@dataclass(frozen=True, slots=True)
class MiningProgress:
    """Snapshot handed to progress observers."""

    difficulty: int
    attempts: int
    elapsed: float

    @property
    def rate(self) -> float:
        """Attempts per second so far."""
        if self.elapsed <= 0:
            return 0.0
        return self.attempts / self.elapsed


@dataclass(frozen=True, slots=True)
class MiningResult:
    """Outcome of one mining run.

    On success ``draft`` is a copy of the input carrying the winning
    nonce tag. On failure ``draft`` is None and exactly one of
    ``timed_out`` / ``cancelled`` is set.
    """

    difficulty: int
    attempts: int
    elapsed: float
    draft: RecordDraft | None = None
    identifier: str | None = None
    nonce: int | None = None
    timed_out: bool = False
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return self.draft is not None

    def raise_for_failure(self) -> RecordDraft:
        """Return the mined draft, or raise the matching MiningError."""
        if self.timed_out:
            raise MiningTimeoutError(self.difficulty, self.elapsed, self.attempts)
        if self.cancelled:
            raise MiningCancelledError(self.difficulty, self.attempts)
        if self.draft is None:
            msg = f"Mining at difficulty {self.difficulty} produced no draft"
            raise MiningError(self.difficulty, msg)
        return self.draft


class PowMiner:
    """Brute-force nonce search with a fixed deadline.

    The deadline is a property of the miner, not of a single call, so
    every search made through one instance has the same worst-case
    latency. Production code uses the 120 second default.
    """

    def __init__(
        self,
        *,
        deadline: float = MINING_DEADLINE_SECONDS,
        progress_interval: int = DEFAULT_PROGRESS_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if deadline <= 0:
            msg = f"deadline must be positive, got {deadline}"
            raise ValueError(msg)
        if progress_interval <= 0:
            msg = f"progress_interval must be positive, got {progress_interval}"
            raise ValueError(msg)
        self._deadline = deadline
        self._progress_interval = progress_interval
        self._clock = clock

    @property
    def deadline(self) -> float:
        return self._deadline

    def search(
        self,
        draft: RecordDraft,
        difficulty: int,
        *,
        cancel: threading.Event | None = None,
        progress: Callable[[MiningProgress], None] | None = None,
    ) -> MiningResult:
        """Search for a nonce meeting *difficulty*.

        Never mutates *draft*. Timeout and cancellation are reported in
        the returned result rather than raised.

        Raises:
            ValueError: If *difficulty* is outside 1..256.
        """
        if not 0 < difficulty <= MAX_DIFFICULTY:
            msg = f"difficulty must be in 1..{MAX_DIFFICULTY}, got {difficulty}"
            raise ValueError(msg)

        base_tags = strip_nonce_tags(draft.tags)
        prefix, suffix = split_for_trailing_tag(draft, base_tags)
        primed = hashlib.sha256(prefix)

        logger.info("Mining started at difficulty %d", difficulty)
        start = self._clock()
        nonce = 0
        while True:
            h = primed.copy()
            h.update(b'["nonce","%d","%d"]' % (nonce, difficulty))
            h.update(suffix)
            digest = h.hexdigest()
            if hash_matches_difficulty(digest, difficulty):
                elapsed = self._clock() - start
                mined = draft.copy()
                mined.tags = [*base_tags, nonce_tag(nonce, difficulty)]
                logger.info(
                    "Mining finished: nonce=%d id=%s attempts=%d elapsed=%.2fs",
                    nonce,
                    digest,
                    nonce + 1,
                    elapsed,
                )
                return MiningResult(
                    difficulty=difficulty,
                    attempts=nonce + 1,
                    elapsed=elapsed,
                    draft=mined,
                    identifier=digest,
                    nonce=nonce,
                )

            nonce += 1

            if progress is not None and nonce % self._progress_interval == 0:
                try:
                    progress(MiningProgress(difficulty, nonce, self._clock() - start))
                except Exception:
                    logger.exception("Progress observer failed; no further reports")
                    progress = None

            if nonce % _CHECK_INTERVAL == 0:
                if cancel is not None and cancel.is_set():
                    logger.info("Mining cancelled after %d attempts", nonce)
                    return MiningResult(
                        difficulty=difficulty,
                        attempts=nonce,
                        elapsed=self._clock() - start,
                        cancelled=True,
                    )
                elapsed = self._clock() - start
                if elapsed > self._deadline:
                    logger.warning(
                        "Mining timed out after %.1fs (%d attempts, difficulty %d)",
                        elapsed,
                        nonce,
                        difficulty,
                    )
                    return MiningResult(
                        difficulty=difficulty,
                        attempts=nonce,
                        elapsed=elapsed,
                        timed_out=True,
                    )

    def mine(
        self,
        draft: RecordDraft,
        difficulty: int,
        *,
        cancel: threading.Event | None = None,
        progress: Callable[[MiningProgress], None] | None = None,
    ) -> MiningResult:
        """Like :meth:`search`, but raise on timeout or cancellation.

        Raises:
            MiningTimeoutError: Deadline passed.
            MiningCancelledError: *cancel* was set.
        """
        result = self.search(draft, difficulty, cancel=cancel, progress=progress)
        result.raise_for_failure()
        return result

    async def mine_async(
        self,
        draft: RecordDraft,
        difficulty: int,
        *,
        cancel: threading.Event | None = None,
        progress: Callable[[MiningProgress], None] | None = None,
    ) -> MiningResult:
        """Run :meth:`mine` on a worker thread.

        Cancelling the awaiting task sets the cancellation event so the
        worker stops at its next check. *progress* is called from the
        worker thread.
        """
        event = cancel or threading.Event()
        try:
            return await asyncio.to_thread(
                self.mine, draft, difficulty, cancel=event, progress=progress
            )
        except asyncio.CancelledError:
            event.set()
            raise
