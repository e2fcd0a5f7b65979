"""Alfred Script Filter JSON payload helpers."""

from __future__ import annotations

import json
import re

from pydantic import BaseModel, Field

DEFAULT_RERUN_SECONDS = 0.4
DEFAULT_PENDING_TITLE = "Searching..."
DEFAULT_PENDING_SUBTITLE = "Waiting for query to stabilize."

_WHITESPACE_RE = re.compile(r"\s+")


class Item(BaseModel):
    title: str
    subtitle: str = ""
    arg: str | None = None
    uid: str | None = None
    autocomplete: str | None = None
    valid: bool = True
    quicklookurl: str | None = None
    variables: dict[str, str] | None = None


class Feedback(BaseModel):
    rerun: float | None = Field(default=None, ge=0)
    items: list[Item] = Field(default_factory=list)

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)


def non_actionable(title: str, subtitle: str = "") -> str:
    """Single informational row that Alfred will not let the user action."""

    return Feedback(items=[Item(title=title, subtitle=subtitle, valid=False)]).to_json()


def pending(
    title: str = DEFAULT_PENDING_TITLE,
    subtitle: str = DEFAULT_PENDING_SUBTITLE,
    rerun_seconds: float | None = DEFAULT_RERUN_SECONDS,
) -> str:
    rerun = rerun_seconds
    if rerun is None or isinstance(rerun, bool) or not isinstance(rerun, (int, float)) or rerun < 0:
        rerun = DEFAULT_RERUN_SECONDS
    feedback = Feedback(
        rerun=float(rerun),
        items=[Item(title=title or DEFAULT_PENDING_TITLE, subtitle=subtitle, valid=False)],
    )
    return feedback.to_json()


def normalize_error_message(raw: str | None) -> str:
    message = _WHITESPACE_RE.sub(" ", raw or "").strip()
    for prefix in ("error: ", "Error: "):
        if message.startswith(prefix):
            message = message[len(prefix):]
            break
    return message


def has_items_array(payload: str) -> bool:
    try:
        document = json.loads(payload)
    except (TypeError, ValueError):
        return False
    return isinstance(document, dict) and isinstance(document.get("items"), list)


__all__ = [
    "DEFAULT_PENDING_SUBTITLE",
    "DEFAULT_PENDING_TITLE",
    "DEFAULT_RERUN_SECONDS",
    "Feedback",
    "Item",
    "has_items_array",
    "non_actionable",
    "normalize_error_message",
    "pending",
]
