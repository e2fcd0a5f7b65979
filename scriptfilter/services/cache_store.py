"""File-backed TTL cache keyed by exact query text."""

from __future__ import annotations

import hashlib
from pathlib import Path

from pydantic import ValidationError

from scriptfilter.domain.models import CacheEntry, CacheStatus
from scriptfilter.logging import logger
from scriptfilter.services.context import WorkflowContext
from scriptfilter.services.exceptions import StorageError
from scriptfilter.utils.atomic import read_text, write_text_atomic
from scriptfilter.utils.datetime import Clock, SystemClock, seconds_between

ENTRY_SUFFIX = ".json"


def entry_key(fingerprint: str) -> str:
    return hashlib.sha256(fingerprint.encode("utf-8")).hexdigest()


class CacheStore:
    """Advisory cache: every failure reads as a miss, never as an error."""

    def __init__(self, context: WorkflowContext, clock: Clock | None = None) -> None:
        self.context = context
        self.clock = clock or SystemClock()

    def entry_path(self, fingerprint: str) -> Path:
        return self.context.cache_dir / f"{entry_key(fingerprint)}{ENTRY_SUFFIX}"

    def get(self, fingerprint: str, ttl_seconds: float) -> CacheEntry | None:
        if ttl_seconds <= 0:
            return None

        path = self.entry_path(fingerprint)
        try:
            raw = read_text(path)
        except StorageError as exc:
            logger.warning("cache_read_failed", workflow=self.context.workflow_key, error=str(exc))
            return None
        if raw is None:
            return None

        try:
            entry = CacheEntry.model_validate_json(raw)
        except ValidationError:
            logger.warning("cache_entry_corrupt", workflow=self.context.workflow_key, path=str(path))
            return None

        if entry.fingerprint != fingerprint or not entry.payload:
            return None

        age = seconds_between(entry.stored_at, self.clock.now())
        # Negative age means the clock moved backwards; do not trust the entry.
        if age < 0 or age > ttl_seconds:
            return None
        return entry

    def put(self, fingerprint: str, status: CacheStatus | str, payload: str) -> CacheEntry:
        if status not in ("ok", "err"):
            status = "err"
        entry = CacheEntry(
            fingerprint=fingerprint,
            status=status,
            payload=payload,
            stored_at=self.clock.now(),
        )
        write_text_atomic(self.entry_path(fingerprint), entry.model_dump_json())
        return entry

    def clear(self) -> int:
        """Remove every entry for this workflow and return how many were deleted."""

        removed = 0
        try:
            paths = list(self.context.cache_dir.glob(f"*{ENTRY_SUFFIX}"))
        except OSError as exc:
            raise StorageError(f"cannot list {self.context.cache_dir}: {exc}") from exc
        for path in paths:
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                raise StorageError(f"cannot remove {path}: {exc}") from exc
            removed += 1
        return removed


__all__ = ["CacheStore", "entry_key"]
