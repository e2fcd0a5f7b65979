"""Per-workflow storage directory resolution."""

from __future__ import annotations

import re
import tempfile
from dataclasses import dataclass
from pathlib import Path

from scriptfilter.config import HostSettings
from scriptfilter.logging import logger

STATE_NAMESPACE = "script-filter-async-coalesce"
DEFAULT_FALLBACK_ROOT = "nils-script-filter-workflow"
REQUEST_FILE_NAME = "request.latest"

_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9._-]")


def sanitize_component(raw: str | None) -> str:
    value = _UNSAFE_CHARS_RE.sub("_", raw or "").strip("_")
    return value or "workflow"


@dataclass(frozen=True, slots=True)
class WorkflowContext:
    workflow_key: str
    state_dir: Path

    @property
    def cache_dir(self) -> Path:
        return self.state_dir / "cache"

    @property
    def request_file(self) -> Path:
        return self.state_dir / REQUEST_FILE_NAME


def resolve_root(
    fallback_root: str = DEFAULT_FALLBACK_ROOT,
    *,
    override: Path | str | None = None,
    host: HostSettings | None = None,
) -> Path:
    if override:
        return Path(override)
    host_root = (host or HostSettings()).cache_root()
    if host_root:
        return host_root
    return Path(tempfile.gettempdir()) / sanitize_component(fallback_root)


def resolve_context(
    workflow_key: str,
    fallback_root: str = DEFAULT_FALLBACK_ROOT,
    *,
    override: Path | str | None = None,
    host: HostSettings | None = None,
) -> WorkflowContext:
    """Resolve and create the directory holding one workflow's query state and cache.

    Safe to call from overlapping invocations. A directory that cannot be
    created is logged and the context is returned anyway; later reads and
    writes degrade to cache misses.
    """

    key = sanitize_component(workflow_key)
    root = resolve_root(fallback_root, override=override, host=host)
    context = WorkflowContext(workflow_key=key, state_dir=root / STATE_NAMESPACE / key)
    try:
        context.cache_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.warning(
            "state_dir_unavailable",
            workflow=key,
            state_dir=str(context.state_dir),
            error=str(exc),
        )
    return context


__all__ = [
    "DEFAULT_FALLBACK_ROOT",
    "STATE_NAMESPACE",
    "WorkflowContext",
    "resolve_context",
    "resolve_root",
    "sanitize_component",
]
