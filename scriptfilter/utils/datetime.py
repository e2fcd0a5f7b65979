"""Time utilities with timezone-aware defaults."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Protocol


def utc_now() -> datetime:
    """Return current UTC time with tzinfo."""

    return datetime.now(timezone.utc)


class Clock(Protocol):
    def now(self) -> datetime: ...

    async def sleep(self, seconds: float) -> None: ...


class SystemClock:
    """Wall clock backed by ``utc_now`` and ``asyncio.sleep``."""

    def now(self) -> datetime:
        return utc_now()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


def seconds_between(earlier: datetime, later: datetime) -> float:
    return (later - earlier).total_seconds()


__all__ = ["Clock", "SystemClock", "seconds_between", "utc_now"]
