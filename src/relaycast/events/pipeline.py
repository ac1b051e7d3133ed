"""Finalization and publication pipeline.

One path for every feature that posts a record::

    draft -> sign -> [mine -> sign again] -> dispatch

Signing before mining yields an intermediate record that is only used
as a fallback when mining times out. When mining succeeds the nonce tag
changes the identifier, so the mined draft is signed from scratch.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from relaycast.core.errors import MiningTimeoutError
from relaycast.events.model import KIND_TEXT_NOTE, RecordDraft
from relaycast.events.pow import PowMiner, leading_zero_bits
from relaycast.events.signing import sign_draft

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from relaycast.events.model import FinalizedRecord
    from relaycast.events.pow import MiningProgress
    from relaycast.events.signing import Signer
    from relaycast.relays.base import PublishOutcome
    from relaycast.relays.dispatcher import PublicationDispatcher

logger = logging.getLogger(__name__)


class TimeoutPolicy(enum.StrEnum):
    """What a publisher does when mining times out."""

    PUBLISH_UNMINED = "publish_unmined"
    ABORT = "abort"


def finalize_record(
    draft: RecordDraft,
    signer: Signer,
    difficulty: int = 0,
    *,
    miner: PowMiner | None = None,
    cancel: threading.Event | None = None,
    progress: Callable[[MiningProgress], None] | None = None,
) -> FinalizedRecord:
    """Sign *draft*, mining a nonce first when *difficulty* > 0.

    *draft* itself is never modified; the mined tag set lives on a copy.

    Raises:
        ValueError: Negative difficulty.
        SigningError: Signer is not the draft's issuer.
        MiningTimeoutError: No nonce before the deadline. The error's
            ``fallback_record`` is the signed, unmined record.
        MiningCancelledError: *cancel* was set during mining.
    """
    if difficulty < 0:
        msg = f"difficulty must be >= 0, got {difficulty}"
        raise ValueError(msg)

    initial = sign_draft(draft, signer)
    if difficulty == 0:
        return initial

    result = (miner or PowMiner()).search(
        draft, difficulty, cancel=cancel, progress=progress
    )
    if result.timed_out:
        raise MiningTimeoutError(
            difficulty, result.elapsed, result.attempts, fallback_record=initial
        )
    return sign_draft(result.raise_for_failure(), signer)


@dataclass(frozen=True, slots=True)
class PublicationReport:
    """What happened to one published note."""

    record: FinalizedRecord
    outcome: PublishOutcome
    requested_difficulty: int
    mined: bool
    warnings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def published(self) -> bool:
        return self.outcome.published

    @property
    def achieved_difficulty(self) -> int:
        return leading_zero_bits(self.record.identifier)

    def message(self) -> str:
        """User-facing summary; partial success reads as success."""
        lines = [self.outcome.summary(), f"Event ID: {self.record.identifier}"]
        if self.mined:
            lines.append(f"Proof of work: {self.achieved_difficulty} bits")
        lines.extend(f"Warning: {w}" for w in self.warnings)
        return "\n".join(lines)


class RecordPublisher:
    """Builds, finalizes and dispatches notes for one issuer.

    Shared by every tool that posts to relays. Holds no per-call state,
    so concurrent ``publish_note`` calls are independent.
    """

    def __init__(
        self,
        signer: Signer,
        dispatcher: PublicationDispatcher,
        *,
        difficulty: int = 0,
        on_timeout: TimeoutPolicy | str = TimeoutPolicy.PUBLISH_UNMINED,
        miner: PowMiner | None = None,
        progress: Callable[[MiningProgress], None] | None = None,
    ) -> None:
        if difficulty < 0:
            msg = f"difficulty must be >= 0, got {difficulty}"
            raise ValueError(msg)
        self._signer = signer
        self._dispatcher = dispatcher
        self._difficulty = difficulty
        self._on_timeout = TimeoutPolicy(on_timeout)
        self._miner = miner or PowMiner()
        self._progress = progress

    @property
    def issuer(self) -> str:
        return self._signer.public_identity

    @property
    def difficulty(self) -> int:
        return self._difficulty

    def draft(
        self,
        content: str,
        *,
        tags: Iterable[Sequence[str]] = (),
        kind: int = KIND_TEXT_NOTE,
    ) -> RecordDraft:
        return RecordDraft.create(self.issuer, content, kind=kind, tags=tags)

    async def finalize(
        self, draft: RecordDraft, difficulty: int | None = None
    ) -> FinalizedRecord:
        """Run :func:`finalize_record` on a worker thread.

        Cancelling the awaiting task stops mining at its next check.
        """
        effective = self._difficulty if difficulty is None else difficulty
        cancel = threading.Event()
        try:
            return await asyncio.to_thread(
                finalize_record,
                draft,
                self._signer,
                effective,
                miner=self._miner,
                cancel=cancel,
                progress=self._progress,
            )
        except asyncio.CancelledError:
            cancel.set()
            raise

    async def publish_note(
        self,
        content: str,
        *,
        tags: Iterable[Sequence[str]] = (),
        kind: int = KIND_TEXT_NOTE,
        difficulty: int | None = None,
    ) -> PublicationReport:
        """Create, finalize and publish a note.

        Raises:
            MiningTimeoutError: Mining timed out and the policy is ``abort``.
            MiningCancelledError: Mining was cancelled.
        """
        effective = self._difficulty if difficulty is None else difficulty
        draft = self.draft(content, tags=tags, kind=kind)
        warnings: list[str] = []

        try:
            record = await self.finalize(draft, effective)
            mined = effective > 0
        except MiningTimeoutError as e:
            if self._on_timeout is TimeoutPolicy.ABORT or e.fallback_record is None:
                raise
            logger.warning("%s; publishing without proof of work", e)
            warnings.append(f"{e}; published without proof of work")
            record = e.fallback_record
            mined = False

        outcome = await self._dispatcher.publish(record)
        warnings.extend(outcome.warnings)
        return PublicationReport(
            record=record,
            outcome=outcome,
            requested_difficulty=effective,
            mined=mined,
            warnings=tuple(warnings),
        )
