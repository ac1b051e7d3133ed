"""Tests for completion backoff."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from relaycast.config.schema import CompletionConfig
from relaycast.core.errors import (
    ModelNotFoundError,
    ProviderAuthError,
    ProviderError,
    ProviderOverloadedError,
    ProviderRateLimitError,
    ProviderTimeoutError,
)
from relaycast.core.retry import CompletionBackoff, with_backoff

# ─── CompletionBackoff ────────────────────────────────────────


class TestCompletionBackoff:
    def test_defaults(self):
        policy = CompletionBackoff()
        assert policy.attempts == 4
        assert policy.schedule() == [1.0, 2.0, 4.0]

    def test_from_config(self):
        config = CompletionConfig(max_retries=5, retry_delay=0.5, retry_delay_cap=3.0)
        policy = CompletionBackoff.from_config(config)
        assert policy.attempts == 6
        assert policy.schedule() == [0.5, 1.0, 2.0, 3.0, 3.0]

    def test_zero_retries_means_one_attempt(self):
        policy = CompletionBackoff.from_config(CompletionConfig(max_retries=0))
        assert policy.attempts == 1
        assert policy.schedule() == []

    @pytest.mark.parametrize(
        "kwargs", [{"attempts": 0}, {"jitter": 1.0}, {"jitter": -0.1}]
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            CompletionBackoff(**kwargs)

    def test_wait_doubles_until_cap(self):
        policy = CompletionBackoff(first_delay=10.0, delay_cap=15.0, jitter=0)
        err = ProviderTimeoutError("openrouter", "timeout")
        assert [policy.wait_before(n, err) for n in (1, 2, 3)] == [10.0, 15.0, 15.0]

    def test_retry_after_honoured_up_to_cap(self):
        policy = CompletionBackoff(delay_cap=20.0)
        assert policy.wait_before(1, ProviderRateLimitError("x", 7.0)) == 7.0
        assert policy.wait_before(1, ProviderRateLimitError("x", 90.0)) == 20.0

    def test_jitter_only_shortens(self):
        policy = CompletionBackoff(first_delay=4.0, jitter=0.25)
        err = ProviderOverloadedError("openrouter", "busy")
        with patch("relaycast.core.retry.random.random", return_value=0.5):
            assert policy.wait_before(1, err) == pytest.approx(3.5)
        with patch("relaycast.core.retry.random.random", return_value=0.0):
            assert policy.wait_before(1, err) == 4.0


# ─── with_backoff ─────────────────────────────────────────────


class TestWithBackoff:
    async def test_first_try(self):
        request = AsyncMock(return_value="ok")
        assert await with_backoff(request, provider_id="openrouter") == "ok"
        assert request.call_count == 1

    async def test_recovers_after_transient_errors(self):
        request = AsyncMock(
            side_effect=[
                ProviderOverloadedError("openrouter", "busy"),
                ProviderTimeoutError("openrouter", "t"),
                "ok",
            ],
        )
        with patch.object(asyncio, "sleep", new_callable=AsyncMock) as mock_sleep:
            result = await with_backoff(
                request, provider_id="openrouter", backoff=CompletionBackoff(jitter=0)
            )
        assert result == "ok"
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    @pytest.mark.parametrize(
        "err",
        [
            ProviderAuthError("openrouter", "bad key"),
            ModelNotFoundError("openrouter", "nope"),
            ProviderError("openrouter", "No content in completion response"),
        ],
    )
    async def test_permanent_errors_not_repeated(self, err):
        request = AsyncMock(side_effect=err)
        with pytest.raises(type(err)):
            await with_backoff(request, provider_id="openrouter")
        assert request.call_count == 1

    async def test_non_provider_errors_propagate(self):
        request = AsyncMock(side_effect=ValueError("oops"))
        with pytest.raises(ValueError):
            await with_backoff(request, provider_id="openrouter")
        assert request.call_count == 1

    async def test_gives_up_when_attempts_run_out(self, caplog):
        request = AsyncMock(side_effect=ProviderRateLimitError("openrouter"))
        with (
            patch.object(asyncio, "sleep", new_callable=AsyncMock) as mock_sleep,
            pytest.raises(ProviderRateLimitError),
        ):
            await with_backoff(
                request, provider_id="openrouter", backoff=CompletionBackoff(attempts=3)
            )
        assert request.call_count == 3
        assert mock_sleep.call_count == 2
        assert "giving up after 3 attempts" in caplog.text

    async def test_single_attempt(self):
        request = AsyncMock(side_effect=ProviderRateLimitError("openrouter"))
        with pytest.raises(ProviderRateLimitError):
            await with_backoff(
                request, provider_id="openrouter", backoff=CompletionBackoff(attempts=1)
            )
        assert request.call_count == 1

    async def test_sleeps_for_retry_after(self):
        request = AsyncMock(
            side_effect=[ProviderRateLimitError("openrouter", retry_after=3.0), "ok"]
        )
        with patch.object(asyncio, "sleep", new_callable=AsyncMock) as mock_sleep:
            await with_backoff(request, provider_id="openrouter")
        mock_sleep.assert_awaited_once_with(3.0)
