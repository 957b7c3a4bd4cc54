"""Retry helper behaviour."""

from __future__ import annotations

import pytest

from examprep.utils.retry import retry_async


@pytest.fixture
def no_sleep(monkeypatch):
    delays: list[float] = []

    async def _record(delay):
        delays.append(delay)

    monkeypatch.setattr("examprep.utils.retry.asyncio.sleep", _record)
    return delays


@pytest.mark.asyncio
async def test_retry_uses_linear_backoff(no_sleep):
    calls = {"count": 0}

    async def flaky():
        calls["count"] += 1
        if calls["count"] < 3:
            raise ConnectionError("down")
        return "ok"

    assert await retry_async(flaky, max_attempts=3, base_delay=1.0) == "ok"
    assert no_sleep == [1.0, 2.0]


@pytest.mark.asyncio
async def test_retry_reraises_last_error(no_sleep):
    async def broken():
        raise ConnectionError("still down")

    with pytest.raises(ConnectionError):
        await retry_async(broken, max_attempts=2, base_delay=0.1)
    assert len(no_sleep) == 1


@pytest.mark.asyncio
async def test_retry_only_catches_listed_errors(no_sleep):
    async def bad_input():
        raise KeyError("nope")

    with pytest.raises(KeyError):
        await retry_async(bad_input, retry_on=(ConnectionError,))
    assert no_sleep == []


@pytest.mark.asyncio
async def test_retry_rejects_zero_attempts():
    async def never():
        return None

    with pytest.raises(ValueError):
        await retry_async(never, max_attempts=0)
