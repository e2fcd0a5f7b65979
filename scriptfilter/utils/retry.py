"""Async retry helper used by search backends."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")
AsyncFactory = Callable[[], Awaitable[T]]


async def retry_async(
    operation: AsyncFactory[T],
    *,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    max_attempts: int = 2,
    base_delay: float = 0.25,
    logger=None,
    operation_name: str = "operation",
) -> T:
    """Retry ``operation`` with linear backoff on the listed exception types.

    Anything outside ``retry_on`` propagates on the first attempt. Script
    Filters are latency bound, so the defaults are deliberately short.
    """

    attempts = max(1, max_attempts)
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except retry_on as exc:
            if attempt >= attempts:
                raise
            delay = base_delay * attempt
            if logger is not None:
                logger.warning(
                    "retrying_operation",
                    operation=operation_name,
                    attempt=attempt,
                    max_attempts=attempts,
                    delay=delay,
                    error=str(exc),
                )
            await asyncio.sleep(delay)

    raise RuntimeError(f"{operation_name} failed after {attempts} attempts")


__all__ = ["retry_async"]
