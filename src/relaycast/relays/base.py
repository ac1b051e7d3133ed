"""Endpoint interface and publication outcome types.

All relay clients implement the ``RelayEndpoint`` protocol. Outcome
classes are frozen dataclasses with slots.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from relaycast.core.errors import AllEndpointsFailedError

if TYPE_CHECKING:
    from relaycast.events.model import FinalizedRecord


@runtime_checkable
class RelayEndpoint(Protocol):
    """One independent node that accepts published records.

    Implementations append only: they never read back or delete.
    """

    @property
    def url(self) -> str:
        """Address of the endpoint, used in outcomes and logs."""
        ...

    async def publish(self, record: FinalizedRecord) -> str:
        """Send *record* once.

        Returns the endpoint's acknowledgement message (may be empty).
        Raises an ``EndpointError`` subclass on rejection, timeout or
        connection failure.
        """
        ...


@dataclass(frozen=True, slots=True)
class EndpointOutcome:
    """Result of publishing to a single endpoint."""

    endpoint: str
    accepted: bool
    message: str = ""
    error: str | None = None
    latency_ms: float = 0.0


@dataclass(frozen=True, slots=True)
class PublishOutcome:
    """Aggregate over every endpoint attempt for one record.

    ``published`` is True as soon as one endpoint accepted the record;
    the failures of the others are advisory warnings.
    """

    record_id: str
    results: tuple[EndpointOutcome, ...]

    @property
    def published(self) -> bool:
        return any(r.accepted for r in self.results)

    @property
    def accepted(self) -> tuple[EndpointOutcome, ...]:
        return tuple(r for r in self.results if r.accepted)

    @property
    def failures(self) -> tuple[EndpointOutcome, ...]:
        return tuple(r for r in self.results if not r.accepted)

    @property
    def warnings(self) -> list[str]:
        """Failure details, populated only when the record was published."""
        if not self.published:
            return []
        return [f"{r.endpoint}: {r.error}" for r in self.failures]

    def summary(self) -> str:
        """One-line, user-facing description of the outcome."""
        total = len(self.results)
        ok = len(self.accepted)
        if not self.published:
            return f"Publishing failed: no endpoint accepted the record (0/{total})"
        if ok == total:
            return f"Published to all {total} endpoints"
        return (
            f"Published to {ok}/{total} endpoints; "
            f"{total - ok} failed (the record is still discoverable)"
        )

    def raise_for_failure(self) -> None:
        """Raise AllEndpointsFailedError when no endpoint accepted."""
        if not self.published:
            raise AllEndpointsFailedError(self)
