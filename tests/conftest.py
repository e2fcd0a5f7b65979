"""Shared pytest fixtures: isolated workflow directories and a fake clock."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

from scriptfilter.config import CoalesceSettings, HostSettings
from scriptfilter.services.context import WorkflowContext, resolve_context


class FakeClock:
    """Manually driven clock; ``sleep`` advances time and fires scheduled callbacks."""

    def __init__(self, start: datetime | None = None) -> None:
        self.start = start or datetime(2026, 1, 1, tzinfo=timezone.utc)
        self.current = self.start
        self.sleeps: list[float] = []
        self._scheduled: list[tuple[float, Callable[[], None]]] = []

    def now(self) -> datetime:
        return self.current

    def elapsed(self) -> float:
        return (self.current - self.start).total_seconds()

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)
        due = [item for item in self._scheduled if item[0] <= self.elapsed()]
        self._scheduled = [item for item in self._scheduled if item[0] > self.elapsed()]
        for _, callback in due:
            callback()

    def call_at(self, seconds: float, callback: Callable[[], None]) -> None:
        self._scheduled.append((seconds, callback))

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)
        await asyncio.sleep(0)


def make_coalesce_settings(
    state_dir,
    *,
    ttl: int = 0,
    settle: float = 0.0,
    rerun: float = 0.4,
) -> CoalesceSettings:
    return CoalesceSettings(
        query_cache_ttl_seconds=ttl,
        query_coalesce_settle_seconds=settle,
        query_coalesce_rerun_seconds=rerun,
        query_state_dir=state_dir,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def host() -> HostSettings:
    return HostSettings(
        alfred_workflow_cache=None,
        alfred_workflow_data=None,
        alfred_workflow_query=None,
    )


@pytest.fixture
def coalesce_settings():
    return make_coalesce_settings


@pytest.fixture
def context(tmp_path, host) -> WorkflowContext:
    return resolve_context("test-workflow", override=tmp_path, host=host)
