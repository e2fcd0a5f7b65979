"""Runtime configuration based on environment variables."""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from urllib.parse import quote, urlsplit

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from scriptfilter.logging import logger

_NON_NEGATIVE_INT_RE = re.compile(r"^[0-9]+$")
_NON_NEGATIVE_NUMBER_RE = re.compile(r"^[0-9]+(\.[0-9]+)?$")
_LANGUAGE_RE = re.compile(r"^[a-z]{2,3}(-[a-z0-9]+)*$")


def _compact(value) -> str:
    return re.sub(r"\s+", "", str(value))


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class HostSettings(BaseSettings):
    """Variables exported by the host UI (Alfred uses lower- or upper-case names)."""

    model_config = SettingsConfigDict(extra="ignore")

    alfred_workflow_cache: Path | None = None
    alfred_workflow_data: Path | None = None
    alfred_workflow_query: str | None = None
    script_filter_log_level: str = "WARNING"

    @field_validator("alfred_workflow_cache", "alfred_workflow_data", "alfred_workflow_query", mode="before")
    @classmethod
    def _empty_str_to_none(cls, value):
        return _blank_to_none(value)

    def cache_root(self) -> Path | None:
        return self.alfred_workflow_cache or self.alfred_workflow_data


class CoalesceSettings(BaseSettings):
    """Per-integration cache/coalesce knobs.

    Instantiate with ``_env_prefix`` (for example ``CoalesceSettings(_env_prefix="WIKI_")``)
    so ``WIKI_QUERY_CACHE_TTL_SECONDS`` and friends are picked up. Malformed or
    negative values are dropped to ``None`` instead of failing; callers then
    fall back to the integration's defaults.
    """

    model_config = SettingsConfigDict(extra="ignore")

    query_cache_ttl_seconds: int | None = None
    query_coalesce_settle_seconds: float | None = None
    query_coalesce_rerun_seconds: float | None = None
    query_state_dir: Path | None = None

    @field_validator("query_cache_ttl_seconds", mode="before")
    @classmethod
    def _parse_ttl(cls, value, info):
        return _parse_non_negative(value, info.field_name, _NON_NEGATIVE_INT_RE, int)

    @field_validator("query_coalesce_settle_seconds", "query_coalesce_rerun_seconds", mode="before")
    @classmethod
    def _parse_seconds(cls, value, info):
        return _parse_non_negative(value, info.field_name, _NON_NEGATIVE_NUMBER_RE, float)

    @field_validator("query_state_dir", mode="before")
    @classmethod
    def _empty_dir_to_none(cls, value):
        return _blank_to_none(value)

    def ttl_seconds(self, default: int) -> int:
        return default if self.query_cache_ttl_seconds is None else self.query_cache_ttl_seconds

    def settle_seconds(self, default: float) -> float:
        if self.query_coalesce_settle_seconds is None:
            return default
        return self.query_coalesce_settle_seconds

    def rerun_seconds(self, default: float) -> float:
        if self.query_coalesce_rerun_seconds is None:
            return default
        return self.query_coalesce_rerun_seconds


def _parse_non_negative(value, field_name: str, pattern: re.Pattern[str], cast):
    if value is None:
        return None
    if isinstance(value, bool):
        raw = ""
    elif isinstance(value, (int, float)):
        if value >= 0:
            return cast(value)
        raw = str(value)
    else:
        raw = _compact(value)
        if not raw:
            return None
        if pattern.match(raw):
            return cast(raw)
    logger.warning("invalid_setting_ignored", setting=field_name, value=raw)
    return None


class WikiSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="WIKI_", extra="ignore")

    language: str = Field(default="en", description="Wikipedia language subdomain, e.g. en or zh.")
    max_results: int = Field(default=10, ge=1, le=20)
    request_timeout_seconds: float = Field(default=8.0, gt=0, le=60)
    api_base_url: AnyHttpUrl | None = Field(
        default=None,
        description="Override for the MediaWiki API endpoint; derived from language when unset.",
    )

    @field_validator("language", mode="before")
    @classmethod
    def _normalize_language(cls, value):
        normalized = str(value or "").strip().lower()
        if not _LANGUAGE_RE.match(normalized):
            raise ValueError(f"invalid wiki_language: {value!r}")
        return normalized

    @field_validator("api_base_url", mode="before")
    @classmethod
    def _empty_url_to_none(cls, value):
        return _blank_to_none(value)

    def endpoint(self) -> str:
        if self.api_base_url:
            return str(self.api_base_url)
        return f"https://{self.language}.wikipedia.org/w/api.php"

    def article_url(self, title: str) -> str:
        slug = quote(title.replace(" ", "_"), safe="()_,:'")
        if self.api_base_url:
            parts = urlsplit(str(self.api_base_url))
            return f"{parts.scheme}://{parts.netloc}/wiki/{slug}"
        return f"https://{self.language}.wikipedia.org/wiki/{slug}"


@lru_cache
def get_host_settings() -> HostSettings:
    """Return cached host settings instance."""

    return HostSettings()


__all__ = [
    "CoalesceSettings",
    "HostSettings",
    "WikiSettings",
    "get_host_settings",
]
