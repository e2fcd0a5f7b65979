"""Query input resolution, trimming and minimum-length guard."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import TextIO

from scriptfilter.config import HostSettings
from scriptfilter.feedback import non_actionable

DEFAULT_MIN_CHARS = 2
NULL_ARGUMENT = "(null)"


def resolve_query_input(
    argument: str | None = None,
    host: HostSettings | None = None,
    stdin: TextIO | None = None,
    *,
    provided: bool = False,
) -> str:
    """Pick the raw query: argument, then host query variable, then piped stdin.

    With ``provided=True`` an explicitly passed argument (even an empty one)
    wins over the fallbacks. Alfred passes the literal ``(null)`` for a missing
    argument, which is never treated as provided.
    """

    query = argument or ""
    if query == NULL_ARGUMENT:
        query = ""
        provided = False
    elif argument is None:
        provided = False

    if query or provided:
        return query

    host = host or HostSettings()
    if host.alfred_workflow_query:
        return host.alfred_workflow_query

    stream = stdin if stdin is not None else sys.stdin
    if stream is not None and not _is_tty(stream):
        return stream.read()
    return ""


def _is_tty(stream: TextIO) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty()) if callable(isatty) else False


def trim_query(raw: str | None) -> str:
    return (raw or "").strip()


def is_short_query(query: str, min_chars: int = DEFAULT_MIN_CHARS) -> bool:
    if not isinstance(min_chars, int) or min_chars < 0:
        min_chars = DEFAULT_MIN_CHARS
    return len(trim_query(query)) < min_chars


@dataclass(slots=True)
class QueryGuard:
    min_chars: int = DEFAULT_MIN_CHARS
    empty_title: str = "Enter a search query"
    empty_subtitle: str = "Type keywords to start searching."
    short_title: str = "Keep typing"
    short_subtitle_template: str = "Type at least {min_chars} characters before continuing."

    def check(self, query: str) -> str | None:
        """Return a guidance payload when ``query`` must not reach the backend."""

        trimmed = trim_query(query)
        if not trimmed:
            return non_actionable(self.empty_title, self.empty_subtitle)

        min_chars = self.min_chars
        if not isinstance(min_chars, int) or min_chars < 0:
            min_chars = DEFAULT_MIN_CHARS
        if is_short_query(trimmed, min_chars):
            subtitle = self.short_subtitle_template.format(min_chars=min_chars)
            return non_actionable(self.short_title, subtitle)
        return None


__all__ = [
    "DEFAULT_MIN_CHARS",
    "QueryGuard",
    "is_short_query",
    "resolve_query_input",
    "trim_query",
]
