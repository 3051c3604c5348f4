"""Unit tests for the async retry decorator."""

import asyncio

import pytest

from feedhub.utils import async_retry


class TransientError(Exception):
    """Error that is worth retrying."""


def test_async_retry_returns_after_transient_failures() -> None:
    """Call should succeed once the error stops occurring."""
    calls = []

    @async_retry(max_retries=3, delay=0, exceptions=(TransientError,))
    async def flaky() -> str:
        calls.append(1)
        if len(calls) < 3:
            raise TransientError("boom")
        return "ok"

    assert asyncio.run(flaky()) == "ok"
    assert len(calls) == 3


def test_async_retry_raises_last_error_when_exhausted() -> None:
    """Last error should propagate after all attempts."""
    calls = []

    @async_retry(max_retries=2, delay=0, exceptions=(TransientError,))
    async def always_fails() -> None:
        calls.append(1)
        raise TransientError(f"attempt {len(calls)}")

    with pytest.raises(TransientError, match="attempt 2"):
        asyncio.run(always_fails())


def test_async_retry_does_not_catch_other_exceptions() -> None:
    """Exceptions outside the configured types should not be retried."""
    calls = []

    @async_retry(max_retries=3, delay=0, exceptions=(TransientError,))
    async def broken() -> None:
        calls.append(1)
        raise ValueError("bad")

    with pytest.raises(ValueError):
        asyncio.run(broken())
    assert len(calls) == 1


def test_async_retry_respects_should_retry_filter() -> None:
    """Filter returning False should stop retries immediately."""
    calls = []

    @async_retry(
        max_retries=3,
        delay=0,
        exceptions=(TransientError,),
        should_retry=lambda e: "retry" in str(e),
    )
    async def fails_permanently() -> None:
        calls.append(1)
        raise TransientError("fatal")

    with pytest.raises(TransientError):
        asyncio.run(fails_permanently())
    assert len(calls) == 1
