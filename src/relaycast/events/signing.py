"""Record signing and verification.

Records are signed with BIP-340 Schnorr over secp256k1, the scheme Nostr
relays check. The message is the 32 raw bytes of the identifier. A
private key is a 32-byte secp256k1 scalar given as 64 hex characters;
the public identity is the 32-byte x-only public key in hex.

Signing always recomputes the identifier from the draft's current
fields. There is no way to update the signature of an existing record:
a changed tag set means a new identifier and a new signature.
"""

from __future__ import annotations

import os
import re
from typing import Protocol, runtime_checkable

from coincurve import PrivateKey, PublicKeyXOnly

from relaycast.core.errors import SigningError, SigningKeyInvalidError
from relaycast.events.encoding import compute_identifier
from relaycast.events.model import FinalizedRecord, RecordDraft

_HEX_KEY = re.compile(r"^[0-9a-fA-F]{64}$")


@runtime_checkable
class Signer(Protocol):
    """Issuer identity and signing service."""

    @property
    def public_identity(self) -> str:
        """Hex public key that appears as a record's issuer."""
        ...

    def sign(self, identifier: str) -> str:
        """Return the hex signature of a hex identifier."""
        ...


class KeySigner:
    """Schnorr signer backed by an in-memory secp256k1 key.

    Construct through :meth:`from_hex` so malformed keys are rejected
    when configuration is loaded. Each signature uses fresh auxiliary
    randomness, so signing the same identifier twice gives two
    different, equally valid signatures.
    """

    def __init__(self, private_key: PrivateKey) -> None:
        self._key = private_key
        self._public_identity = private_key.public_key_xonly.format().hex()

    @classmethod
    def from_hex(cls, private_key_hex: str) -> KeySigner:
        """Load a signer from 64 hex characters.

        Raises:
            SigningKeyInvalidError: Wrong length, not hexadecimal, or not
                a valid secp256k1 scalar (zero or above the curve order).
        """
        cleaned = private_key_hex.strip()
        if not _HEX_KEY.match(cleaned):
            msg = (
                "Private key must be 64 hexadecimal characters "
                f"(got {len(cleaned)} characters)"
            )
            raise SigningKeyInvalidError(msg)
        try:
            key = PrivateKey(bytes.fromhex(cleaned))
        except ValueError as e:
            msg = f"Private key rejected: {e}"
            raise SigningKeyInvalidError(msg) from e
        return cls(key)

    @classmethod
    def generate(cls) -> KeySigner:
        return cls(PrivateKey())

    @property
    def public_identity(self) -> str:
        return self._public_identity

    @property
    def private_key_hex(self) -> str:
        return self._key.secret.hex()

    def sign(self, identifier: str) -> str:
        message = bytes.fromhex(identifier)
        return self._key.sign_schnorr(message, os.urandom(32)).hex()


def sign_draft(draft: RecordDraft, signer: Signer) -> FinalizedRecord:
    """Compute the identifier of *draft* as it is now and sign it.

    Raises:
        SigningError: If *signer* is not the draft's issuer.
    """
    if draft.issuer != signer.public_identity:
        msg = (
            f"Draft issuer {draft.issuer[:16]}... does not match "
            f"signer {signer.public_identity[:16]}..."
        )
        raise SigningError(msg)
    identifier = compute_identifier(draft)
    return FinalizedRecord(
        identifier=identifier,
        issuer=draft.issuer,
        created_at=draft.created_at,
        kind=draft.kind,
        tags=tuple(tuple(tag) for tag in draft.tags),
        content=draft.content,
        signature=signer.sign(identifier),
    )


def verify_signature(issuer: str, identifier: str, signature: str) -> bool:
    """Check a BIP-340 signature. Malformed input verifies as False."""
    try:
        public_key = PublicKeyXOnly(bytes.fromhex(issuer))
        return public_key.verify(bytes.fromhex(signature), bytes.fromhex(identifier))
    except ValueError:
        return False


def verify_record(record: FinalizedRecord) -> bool:
    """Check that *record*'s identifier matches its fields and is signed."""
    if compute_identifier(record.to_draft()) != record.identifier:
        return False
    return verify_signature(record.issuer, record.identifier, record.signature)
