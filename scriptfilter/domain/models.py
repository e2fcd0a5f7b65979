"""Pydantic models shared by the coordination and cache layers."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

CacheStatus = Literal["ok", "err"]


class QueryState(BaseModel):
    query_text: str
    observed_at: datetime


class CacheEntry(BaseModel):
    fingerprint: str
    status: CacheStatus
    payload: str
    stored_at: datetime


__all__ = [
    "CacheEntry",
    "CacheStatus",
    "QueryState",
]
