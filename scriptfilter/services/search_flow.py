"""Cache, coalesce and pending orchestration shared by search Script Filters.

Each integration keeps its backend fetch and error mapping; this module only
decides whether to answer from cache, wait for the query to settle, or call
the backend.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Awaitable, Callable, Literal

from scriptfilter.config import CoalesceSettings, HostSettings
from scriptfilter.feedback import (
    DEFAULT_PENDING_SUBTITLE,
    DEFAULT_PENDING_TITLE,
    non_actionable,
    pending,
)
from scriptfilter.logging import logger
from scriptfilter.services.cache_store import CacheStore
from scriptfilter.services.coalesce import CoalesceCoordinator, Decision
from scriptfilter.services.context import DEFAULT_FALLBACK_ROOT, WorkflowContext, resolve_context
from scriptfilter.services.exceptions import BackendError, StorageError
from scriptfilter.services.query_policy import QueryGuard, trim_query
from scriptfilter.utils.datetime import Clock, SystemClock

FetchFn = Callable[[str], Awaitable[str]]
FormatErrorFn = Callable[[str], str]
OutcomeKind = Literal["success", "error", "pending", "guidance"]


@dataclass(slots=True)
class SearchFlowSpec:
    workflow_key: str
    env_prefix: str
    cache_fallback: str = DEFAULT_FALLBACK_ROOT
    # 0 keeps the same-query cache off unless the integration opts in.
    default_ttl_seconds: int = 0
    default_settle_seconds: float = 2.0
    default_rerun_seconds: float = 0.4
    pending_title: str = DEFAULT_PENDING_TITLE
    pending_subtitle: str = DEFAULT_PENDING_SUBTITLE
    guard: QueryGuard = field(default_factory=QueryGuard)


@dataclass(slots=True)
class FlowParameters:
    ttl_seconds: int
    settle_seconds: float
    rerun_seconds: float


@dataclass(slots=True)
class FlowOutcome:
    kind: OutcomeKind
    payload: str
    from_cache: bool = False


def resolve_flow_context(
    spec: SearchFlowSpec,
    settings: CoalesceSettings | None = None,
    host: HostSettings | None = None,
) -> WorkflowContext:
    settings = settings or CoalesceSettings(_env_prefix=spec.env_prefix)
    return resolve_context(
        spec.workflow_key,
        spec.cache_fallback,
        override=settings.query_state_dir,
        host=host,
    )


class SearchFlow:
    def __init__(
        self,
        spec: SearchFlowSpec,
        fetch: FetchFn,
        format_error: FormatErrorFn,
        *,
        settings: CoalesceSettings | None = None,
        host: HostSettings | None = None,
        clock: Clock | None = None,
        poll_interval: float | None = None,
    ) -> None:
        self.spec = spec
        self._fetch = fetch
        self._format_error = format_error
        self._settings = settings or CoalesceSettings(_env_prefix=spec.env_prefix)
        self._host = host
        self._clock = clock or SystemClock()
        self._poll_interval = poll_interval

    def parameters(self) -> FlowParameters:
        return FlowParameters(
            ttl_seconds=self._settings.ttl_seconds(self.spec.default_ttl_seconds),
            settle_seconds=self._settings.settle_seconds(self.spec.default_settle_seconds),
            rerun_seconds=self._settings.rerun_seconds(self.spec.default_rerun_seconds),
        )

    def context(self) -> WorkflowContext:
        return resolve_flow_context(self.spec, self._settings, self._host)

    async def run(self, query: str) -> FlowOutcome:
        """Produce exactly one success, error, pending or guidance payload."""

        query = trim_query(query)
        guidance = self.spec.guard.check(query)
        if guidance is not None:
            return FlowOutcome("guidance", guidance)

        context = self.context()
        params = self.parameters()
        cache = CacheStore(context, self._clock)

        cached = cache.get(query, params.ttl_seconds)
        if cached is not None:
            logger.debug("cache_hit", workflow=context.workflow_key, status=cached.status)
            if cached.status == "ok":
                return FlowOutcome("success", cached.payload, from_cache=True)
            return FlowOutcome("error", self._render_error(cached.payload), from_cache=True)

        if params.settle_seconds > 0:
            coordinator_kwargs = {}
            if self._poll_interval is not None:
                coordinator_kwargs["poll_interval"] = self._poll_interval
            coordinator = CoalesceCoordinator(context, self._clock, **coordinator_kwargs)
            decision = await coordinator.wait_for_final(query, params.settle_seconds)
            if decision is Decision.SUPERSEDED:
                payload = pending(self.spec.pending_title, self.spec.pending_subtitle, params.rerun_seconds)
                return FlowOutcome("pending", payload)

        return await self._fetch_and_store(query, cache, params.ttl_seconds)

    async def _fetch_and_store(self, query: str, cache: CacheStore, ttl_seconds: int) -> FlowOutcome:
        try:
            payload = await self._fetch(query)
            if not payload or not payload.strip():
                raise BackendError(f"{self.spec.workflow_key} returned empty response")
        except Exception as exc:
            message = str(exc).strip() or f"{self.spec.workflow_key} search failed"
            logger.warning(
                "search_fetch_failed",
                workflow=self.spec.workflow_key,
                exception_type=exc.__class__.__name__,
                error=message,
            )
            self._store(cache, query, "err", message, ttl_seconds)
            return FlowOutcome("error", self._render_error(message))

        self._store(cache, query, "ok", payload, ttl_seconds)
        return FlowOutcome("success", payload)

    def _render_error(self, message: str) -> str:
        try:
            return self._format_error(message)
        except Exception:
            logger.exception("format_error_failed", workflow=self.spec.workflow_key)
            return non_actionable("Workflow runtime error", message)

    def _store(self, cache: CacheStore, query: str, status: str, payload: str, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        try:
            cache.put(query, status, payload)
        except StorageError as exc:
            logger.warning("cache_write_failed", workflow=self.spec.workflow_key, error=str(exc))


__all__ = [
    "FetchFn",
    "FlowOutcome",
    "FlowParameters",
    "FormatErrorFn",
    "SearchFlow",
    "SearchFlowSpec",
    "resolve_flow_context",
]
