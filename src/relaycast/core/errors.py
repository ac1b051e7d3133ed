"""Exception hierarchy for relaycast.

Every module imports from here. The hierarchy is:

    RelaycastError
    ├── ConfigError
    │   └── SigningKeyInvalidError
    ├── SigningError
    ├── MiningError(difficulty)
    │   ├── MiningTimeoutError(elapsed, attempts)
    │   └── MiningCancelledError
    ├── EndpointError(endpoint)
    │   ├── RelayRejectedError
    │   ├── RelayTimeoutError
    │   └── RelayConnectionError
    ├── PublishError
    │   └── AllEndpointsFailedError(outcome)
    └── ProviderError(provider_id)
        ├── ProviderAuthError
        ├── ProviderRateLimitError(retry_after)
        ├── ProviderTimeoutError
        ├── ProviderOverloadedError
        └── ModelNotFoundError
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from relaycast.events.model import FinalizedRecord
    from relaycast.relays.base import PublishOutcome


class RelaycastError(Exception):
    """Base exception for all relaycast errors."""


# ─── Configuration Errors ─────────────────────────────────────


class ConfigError(RelaycastError):
    """Invalid configuration."""


class SigningKeyInvalidError(ConfigError):
    """Private key material is malformed (wrong length or encoding)."""


# ─── Signing Errors ───────────────────────────────────────────


class SigningError(RelaycastError):
    """A record could not be signed."""


# ─── Mining Errors ────────────────────────────────────────────


class MiningError(RelaycastError):
    """Base for proof-of-work mining errors."""

    def __init__(self, difficulty: int, message: str) -> None:
        self.difficulty = difficulty
        super().__init__(message)


class MiningTimeoutError(MiningError):
    """Difficulty target not met before the mining deadline.

    ``fallback_record`` holds the record signed before mining started,
    when the caller produced one. Whether to publish it is the
    caller's decision.
    """

    def __init__(
        self,
        difficulty: int,
        elapsed: float,
        attempts: int,
        fallback_record: FinalizedRecord | None = None,
    ) -> None:
        self.elapsed = elapsed
        self.attempts = attempts
        self.fallback_record = fallback_record
        super().__init__(
            difficulty,
            f"Mining timed out after {elapsed:.1f}s "
            f"({attempts} attempts) at difficulty {difficulty}",
        )


class MiningCancelledError(MiningError):
    """Mining was cancelled by the caller before a nonce was found."""

    def __init__(self, difficulty: int, attempts: int = 0) -> None:
        self.attempts = attempts
        super().__init__(
            difficulty, f"Mining cancelled after {attempts} attempts"
        )


# ─── Endpoint Errors ──────────────────────────────────────────


class EndpointError(RelaycastError):
    """A single endpoint rejected the record or could not be reached."""

    def __init__(self, endpoint: str, message: str) -> None:
        self.endpoint = endpoint
        self.detail = message
        super().__init__(f"[{endpoint}] {message}")


class RelayRejectedError(EndpointError):
    """Relay answered with ``OK false``."""


class RelayTimeoutError(EndpointError):
    """Relay did not acknowledge the record in time."""


class RelayConnectionError(EndpointError):
    """Relay could not be reached or closed the connection."""


# ─── Publish Errors ───────────────────────────────────────────


class PublishError(RelaycastError):
    """Base for aggregate publication errors."""


class AllEndpointsFailedError(PublishError):
    """Every endpoint rejected the record or was unreachable."""

    def __init__(self, outcome: PublishOutcome) -> None:
        self.outcome = outcome
        details = "; ".join(
            f"{r.endpoint}: {r.error}" for r in outcome.failures
        )
        super().__init__(
            f"Record {outcome.record_id} was not accepted by any of "
            f"{len(outcome.results)} endpoints ({details or 'no endpoints'})"
        )


# ─── Provider Errors ──────────────────────────────────────────


class ProviderError(RelaycastError):
    """Base for completion-provider errors."""

    def __init__(self, provider_id: str, message: str) -> None:
        self.provider_id = provider_id
        super().__init__(f"[{provider_id}] {message}")


class ProviderAuthError(ProviderError):
    """Invalid or missing API key."""


class ProviderRateLimitError(ProviderError):
    """Rate limit exceeded. Includes retry_after if available."""

    def __init__(self, provider_id: str, retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        msg = "Rate limited"
        if retry_after is not None:
            msg += f" (retry after {retry_after}s)"
        super().__init__(provider_id, msg)


class ProviderTimeoutError(ProviderError):
    """Model call timed out."""


class ProviderOverloadedError(ProviderError):
    """Provider is overloaded (529, 503)."""


class ModelNotFoundError(ProviderError):
    """Requested model not available from this provider."""
