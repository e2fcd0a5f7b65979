"""Wikipedia search backend for the ``wk`` Script Filter."""

from __future__ import annotations

import html
import re
from typing import Any, Callable

import httpx
from pydantic import ValidationError

from scriptfilter.config import WikiSettings
from scriptfilter.feedback import Feedback, Item, non_actionable, normalize_error_message
from scriptfilter.logging import logger
from scriptfilter.services.exceptions import BackendError, ConfigurationError
from scriptfilter.services.query_policy import QueryGuard
from scriptfilter.services.search_flow import FetchFn, SearchFlowSpec
from scriptfilter.utils.retry import retry_async

_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")

_UNAVAILABLE_MARKERS = (
    "wikipedia api request failed",
    "wikipedia api unavailable",
    "invalid wikipedia api response",
    "timed out",
    "timeout",
    "connection",
    "dns",
    "tls",
    "status 500",
    "status 502",
    "status 503",
    "status 504",
    "api error (5",
)

WIKI_FLOW = SearchFlowSpec(
    workflow_key="wiki-search",
    env_prefix="WIKI_",
    cache_fallback="nils-wiki-search-workflow",
    default_ttl_seconds=10,
    default_settle_seconds=2.0,
    default_rerun_seconds=0.4,
    pending_title="Searching Wikipedia...",
    pending_subtitle="Waiting for final query before calling Wikipedia API.",
    guard=QueryGuard(
        min_chars=2,
        empty_title="Enter a search query",
        empty_subtitle="Type keywords after wk to search Wikipedia.",
        short_title="Keep typing (2+ chars)",
        short_subtitle_template="Type at least {min_chars} characters before searching Wikipedia.",
    ),
)


class _RetryableStatus(Exception):
    def __init__(self, response: httpx.Response) -> None:
        super().__init__(f"status {response.status_code}")
        self.response = response


def _strip_snippet(snippet: str) -> str:
    text = html.unescape(_TAG_RE.sub("", snippet or ""))
    return _WHITESPACE_RE.sub(" ", text).strip()


class WikiSearchClient:
    """Query the MediaWiki search API and render Alfred rows."""

    def __init__(self, http_client: httpx.AsyncClient, settings: WikiSettings | None = None) -> None:
        self._client = http_client
        self._settings = settings or WikiSettings()

    async def search(self, query: str) -> str:
        query = query.strip()
        if not query:
            raise BackendError("query must not be empty")

        results = await self._request(query)
        if not results:
            return non_actionable("No articles found", f'Try different keywords for "{query}".')

        items = []
        for result in results:
            title = str(result.get("title") or "").strip()
            if not title:
                continue
            url = self._settings.article_url(title)
            items.append(
                Item(
                    uid=str(result.get("pageid") or title),
                    title=title,
                    subtitle=_strip_snippet(str(result.get("snippet") or "")) or url,
                    arg=url,
                    autocomplete=title,
                    quicklookurl=url,
                )
            )
        if not items:
            raise BackendError("invalid Wikipedia API response: results without titles")
        return Feedback(items=items).to_json()

    async def _request(self, query: str) -> list[dict[str, Any]]:
        params = {
            "action": "query",
            "list": "search",
            "srsearch": query,
            "srlimit": self._settings.max_results,
            "format": "json",
            "formatversion": 2,
            "utf8": 1,
        }

        async def _get() -> httpx.Response:
            response = await self._client.get(
                self._settings.endpoint(),
                params=params,
                timeout=self._settings.request_timeout_seconds,
            )
            if response.status_code >= 500:
                raise _RetryableStatus(response)
            return response

        try:
            response = await retry_async(
                _get,
                retry_on=(httpx.TransportError, _RetryableStatus),
                logger=logger,
                operation_name="wikipedia_search",
            )
        except _RetryableStatus as exc:
            raise BackendError(f"Wikipedia API unavailable (status {exc.response.status_code})") from exc
        except httpx.TimeoutException as exc:
            raise BackendError("Wikipedia API request failed: request timed out") from exc
        except httpx.RequestError as exc:
            raise BackendError(f"Wikipedia API request failed: connection error ({exc.__class__.__name__})") from exc

        if response.status_code >= 400:
            raise BackendError(f"Wikipedia API request failed (status {response.status_code})")

        try:
            data = response.json()
        except ValueError as exc:
            raise BackendError("invalid Wikipedia API response: body is not JSON") from exc

        if not isinstance(data, dict):
            raise BackendError("invalid Wikipedia API response: unexpected document")
        if "error" in data:
            error = data.get("error") or {}
            code = error.get("code", "unknown") if isinstance(error, dict) else "unknown"
            raise BackendError(f"Wikipedia API error ({code})")

        results = (data.get("query") or {}).get("search")
        if not isinstance(results, list):
            raise BackendError("invalid Wikipedia API response: missing search results")
        return [result for result in results if isinstance(result, dict)]


def load_wiki_settings(factory: Callable[[], WikiSettings] = WikiSettings) -> WikiSettings:
    try:
        return factory()
    except ValidationError as exc:
        fields = sorted({str(error["loc"][0]) for error in exc.errors() if error.get("loc")})
        detail = ", ".join(f"invalid wiki_{name}" for name in fields) or "invalid wiki config"
        raise ConfigurationError(detail) from exc


def make_wiki_fetch(
    http_client: httpx.AsyncClient,
    settings_factory: Callable[[], WikiSettings] = WikiSettings,
) -> FetchFn:
    async def fetch(query: str) -> str:
        settings = load_wiki_settings(settings_factory)
        return await WikiSearchClient(http_client, settings).search(query)

    return fetch


def format_wiki_error(raw_message: str) -> str:
    """Map a backend failure to a fixed, secret-free guidance row."""

    message = normalize_error_message(raw_message) or "wiki search failed"
    lower = message.lower()

    if "query must not be empty" in lower or "empty query" in lower:
        return non_actionable("Enter a search query", "Type keywords after wk to search Wikipedia.")
    if "invalid wiki_" in lower:
        return non_actionable(
            "Invalid Wiki workflow config",
            "Check WIKI_LANGUAGE and WIKI_MAX_RESULTS, then retry.",
        )
    if any(marker in lower for marker in _UNAVAILABLE_MARKERS):
        return non_actionable(
            "Wikipedia API unavailable",
            "Cannot reach Wikipedia now. Check network and retry.",
        )
    return non_actionable("Wiki Search error", message)


__all__ = [
    "WIKI_FLOW",
    "WikiSearchClient",
    "format_wiki_error",
    "load_wiki_settings",
    "make_wiki_fetch",
]
