"""Settle-window debounce shared by overlapping Script Filter invocations.

Every keystroke starts a new process. Each process records its query in a
shared ``request.latest`` file and then watches that file for the settle
window. If another process records a different query meanwhile, this one is
superseded and must not call the backend; otherwise its query is final.

The file is the only coordination primitive. There is no lock: a lost update
at worst causes one extra backend call, never a wrong result.
"""

from __future__ import annotations

import enum
import math

from pydantic import ValidationError

from scriptfilter.domain.models import QueryState
from scriptfilter.logging import logger
from scriptfilter.services.context import WorkflowContext
from scriptfilter.services.exceptions import StorageError
from scriptfilter.utils.atomic import read_text, write_text_atomic
from scriptfilter.utils.datetime import Clock, SystemClock, seconds_between

DEFAULT_POLL_INTERVAL_SECONDS = 0.1


class Decision(str, enum.Enum):
    FINAL = "final"
    SUPERSEDED = "superseded"


class CoalesceCoordinator:
    def __init__(
        self,
        context: WorkflowContext,
        clock: Clock | None = None,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    ) -> None:
        self.context = context
        self.clock = clock or SystemClock()
        self.poll_interval = poll_interval if poll_interval > 0 else DEFAULT_POLL_INTERVAL_SECONDS

    def record(self, query: str) -> QueryState:
        state = QueryState(query_text=query, observed_at=self.clock.now())
        write_text_atomic(self.context.request_file, state.model_dump_json())
        return state

    def read_latest(self) -> QueryState | None:
        raw = read_text(self.context.request_file)
        if raw is None:
            return None
        try:
            return QueryState.model_validate_json(raw)
        except ValidationError:
            return None

    async def wait_for_final(self, query: str, settle_seconds: float) -> Decision:
        """Record ``query`` and report whether it is still the latest after the window."""

        try:
            self.record(query)
        except StorageError as exc:
            logger.warning("query_state_write_failed", workflow=self.context.workflow_key, error=str(exc))

        if settle_seconds <= 0:
            return Decision.FINAL

        started = self.clock.now()
        # Cap the number of polls so a clock stepping backwards cannot stretch the window.
        max_polls = math.ceil(settle_seconds / self.poll_interval) + 1
        for _ in range(max_polls):
            remaining = settle_seconds - seconds_between(started, self.clock.now())
            if remaining <= 0:
                break
            await self.clock.sleep(min(self.poll_interval, remaining))

            latest = self._read_latest_quietly()
            if latest is not None and latest.query_text != query:
                logger.debug(
                    "query_superseded",
                    workflow=self.context.workflow_key,
                    query=query,
                    latest=latest.query_text,
                )
                return Decision.SUPERSEDED
        return Decision.FINAL

    def _read_latest_quietly(self) -> QueryState | None:
        try:
            return self.read_latest()
        except StorageError as exc:
            logger.warning("query_state_read_failed", workflow=self.context.workflow_key, error=str(exc))
            return None


__all__ = ["CoalesceCoordinator", "Decision", "DEFAULT_POLL_INTERVAL_SECONDS"]
