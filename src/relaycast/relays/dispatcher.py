"""Fan-out publication with partial-failure tolerance."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from relaycast.core.errors import EndpointError
from relaycast.relays.base import EndpointOutcome, PublishOutcome

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from relaycast.events.model import FinalizedRecord
    from relaycast.relays.base import RelayEndpoint

logger = logging.getLogger(__name__)


class PublicationDispatcher:
    """Send a signed record to every endpoint and aggregate the results.

    Exactly one attempt is made per endpoint per call; retries, if any,
    belong to the endpoint client. All attempts are awaited before the
    outcome is returned, so callers always get the full list of
    failures, not just the first success.
    """

    def __init__(
        self,
        endpoints: Sequence[RelayEndpoint] = (),
        *,
        timeout: float = 10.0,
        on_result: Callable[[EndpointOutcome], None] | None = None,
    ) -> None:
        """Create a dispatcher.

        Args:
            endpoints: Default endpoints used when ``publish`` gets none.
            timeout: Upper bound in seconds for each endpoint attempt.
            on_result: Optional observer called as each endpoint finishes.
        """
        self._endpoints = list(endpoints)
        self._timeout = timeout
        self._on_result = on_result

    @property
    def endpoints(self) -> list[RelayEndpoint]:
        return list(self._endpoints)

    async def publish(
        self,
        record: FinalizedRecord,
        endpoints: Sequence[RelayEndpoint] | None = None,
    ) -> PublishOutcome:
        """Publish *record* to every endpoint concurrently.

        Never raises for endpoint failures; inspect the outcome or call
        :meth:`PublishOutcome.raise_for_failure`.
        """
        targets = list(endpoints) if endpoints is not None else self._endpoints
        logger.info("Publishing %s to %d endpoints", record.identifier, len(targets))

        results = await asyncio.gather(
            *(self._attempt(endpoint, record) for endpoint in targets)
        )
        outcome = PublishOutcome(record_id=record.identifier, results=tuple(results))

        if not outcome.published:
            logger.error("%s (%s)", outcome.summary(), record.identifier)
        elif outcome.failures:
            logger.warning("%s (%s)", outcome.summary(), record.identifier)
        else:
            logger.info("%s (%s)", outcome.summary(), record.identifier)
        return outcome

    async def _attempt(
        self, endpoint: RelayEndpoint, record: FinalizedRecord
    ) -> EndpointOutcome:
        start = time.monotonic()
        try:
            message = await asyncio.wait_for(
                endpoint.publish(record), timeout=self._timeout
            )
        except TimeoutError:
            result = self._failure(
                endpoint, f"no acknowledgement within {self._timeout}s", start
            )
        except EndpointError as e:
            result = self._failure(endpoint, e.detail, start)
        except Exception as e:
            result = self._failure(endpoint, f"{type(e).__name__}: {e}", start)
        else:
            result = EndpointOutcome(
                endpoint=endpoint.url,
                accepted=True,
                message=message or "",
                latency_ms=(time.monotonic() - start) * 1000,
            )
            logger.debug("Accepted by %s", endpoint.url)

        if self._on_result is not None:
            try:
                self._on_result(result)
            except Exception:
                logger.exception("Result observer failed for %s", endpoint.url)
        return result

    @staticmethod
    def _failure(endpoint: RelayEndpoint, error: str, start: float) -> EndpointOutcome:
        logger.warning("Endpoint %s failed: %s", endpoint.url, error)
        return EndpointOutcome(
            endpoint=endpoint.url,
            accepted=False,
            error=error,
            latency_ms=(time.monotonic() - start) * 1000,
        )
