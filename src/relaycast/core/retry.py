"""Backoff for completion requests.

``providers.prompting.complete_text`` is the only caller. The provider
adapter maps SDK failures onto our error tree, and three of those are
transient: rate limiting, timeouts and overload. They are retried on a
capped doubling schedule. Anything else (bad key, unknown model, empty
reply) surfaces on the first attempt.

Relay publication never comes through here; each endpoint gets exactly
one attempt.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from relaycast.core.errors import (
    ProviderError,
    ProviderOverloadedError,
    ProviderRateLimitError,
    ProviderTimeoutError,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from relaycast.config.schema import CompletionConfig

T = TypeVar("T")

logger = logging.getLogger(__name__)

TRANSIENT_PROVIDER_ERRORS: tuple[type[ProviderError], ...] = (
    ProviderRateLimitError,
    ProviderTimeoutError,
    ProviderOverloadedError,
)


@dataclass(frozen=True, slots=True)
class CompletionBackoff:
    """How often, and how patiently, a completion request is repeated.

    ``attempts`` counts the first request. ``jitter`` is the largest
    fraction shaved off a delay at random; 0 gives the bare schedule.
    """

    attempts: int = 4
    first_delay: float = 1.0
    delay_cap: float = 30.0
    jitter: float = 0.25

    def __post_init__(self) -> None:
        if self.attempts < 1:
            msg = f"attempts must be >= 1, got {self.attempts}"
            raise ValueError(msg)
        if not 0.0 <= self.jitter < 1.0:
            msg = f"jitter must be in [0, 1), got {self.jitter}"
            raise ValueError(msg)

    @classmethod
    def from_config(cls, config: CompletionConfig) -> CompletionBackoff:
        return cls(
            attempts=config.max_retries + 1,
            first_delay=config.retry_delay,
            delay_cap=config.retry_delay_cap,
        )

    def schedule(self) -> list[float]:
        """Nominal waits before each repeat, without jitter."""
        return [
            min(self.first_delay * 2**n, self.delay_cap)
            for n in range(self.attempts - 1)
        ]

    def wait_before(self, repeat: int, error: ProviderError) -> float:
        """Seconds to sleep before repeat number *repeat* (1-based).

        A rate limit that names its own wait is honoured, up to the cap.
        """
        if isinstance(error, ProviderRateLimitError) and error.retry_after is not None:
            return min(error.retry_after, self.delay_cap)
        delay = min(self.first_delay * 2 ** (repeat - 1), self.delay_cap)
        if self.jitter:
            delay -= delay * self.jitter * random.random()
        return delay


async def with_backoff(
    request: Callable[[], Awaitable[T]],
    *,
    provider_id: str,
    backoff: CompletionBackoff | None = None,
) -> T:
    """Await ``request()``, repeating it after transient provider errors.

    Raises:
        ProviderError: The last transient error once attempts run out,
            or any other provider error straight away.
    """
    policy = backoff or CompletionBackoff()
    attempt = 1
    while True:
        try:
            return await request()
        except TRANSIENT_PROVIDER_ERRORS as e:
            if attempt >= policy.attempts:
                logger.warning(
                    "%s: giving up after %d attempts: %s", provider_id, attempt, e
                )
                raise
            delay = policy.wait_before(attempt, e)
            logger.info(
                "%s: %s; repeat %d of %d in %.1fs",
                provider_id,
                e,
                attempt,
                policy.attempts - 1,
                delay,
            )
            await asyncio.sleep(delay)
            attempt += 1
