"""Tests for the async retry helper."""

from __future__ import annotations

import pytest

from scriptfilter.utils import retry as retry_module
from scriptfilter.utils.retry import retry_async


class DummyLogger:
    def __init__(self) -> None:
        self.warnings: list[tuple[str, dict]] = []

    def warning(self, event: str, **kwargs) -> None:
        self.warnings.append((event, kwargs))


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    delays: list[float] = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr(retry_module.asyncio, "sleep", fake_sleep)
    return delays


@pytest.mark.asyncio
async def test_retry_succeeds_after_transient_failure(no_sleep):
    attempts = {"count": 0}
    logger = DummyLogger()

    async def operation():
        attempts["count"] += 1
        if attempts["count"] < 3:
            raise ConnectionError("flaky")
        return "ok"

    result = await retry_async(operation, max_attempts=3, base_delay=0.5, logger=logger, operation_name="wikipedia_search")

    assert result == "ok"
    assert no_sleep == [0.5, 1.0]
    assert [event for event, _ in logger.warnings] == ["retrying_operation", "retrying_operation"]


@pytest.mark.asyncio
async def test_non_matching_exception_is_not_retried(no_sleep):
    attempts = {"count": 0}

    async def operation():
        attempts["count"] += 1
        raise KeyError("fatal")

    with pytest.raises(KeyError):
        await retry_async(operation, retry_on=(ConnectionError,), max_attempts=3)

    assert attempts["count"] == 1
    assert no_sleep == []


@pytest.mark.asyncio
async def test_last_error_propagates(no_sleep):
    async def operation():
        raise ConnectionError("down")

    with pytest.raises(ConnectionError, match="down"):
        await retry_async(operation, max_attempts=2)
