"""Record model, canonical hashing, proof of work, signing."""

from relaycast.events.encoding import canonical_encode, compute_identifier, content_hash
from relaycast.events.model import KIND_TEXT_NOTE, FinalizedRecord, RecordDraft
from relaycast.events.pipeline import (
    PublicationReport,
    RecordPublisher,
    TimeoutPolicy,
    finalize_record,
)
from relaycast.events.pow import (
    MINING_DEADLINE_SECONDS,
    MiningProgress,
    MiningResult,
    PowMiner,
    hash_matches_difficulty,
    leading_zero_bits,
)
from relaycast.events.signing import (
    KeySigner,
    Signer,
    sign_draft,
    verify_record,
    verify_signature,
)

__all__ = [
    "KIND_TEXT_NOTE",
    "MINING_DEADLINE_SECONDS",
    "FinalizedRecord",
    "KeySigner",
    "MiningProgress",
    "MiningResult",
    "PowMiner",
    "PublicationReport",
    "RecordDraft",
    "RecordPublisher",
    "Signer",
    "TimeoutPolicy",
    "canonical_encode",
    "compute_identifier",
    "content_hash",
    "finalize_record",
    "hash_matches_difficulty",
    "leading_zero_bits",
    "sign_draft",
    "verify_record",
    "verify_signature",
]
