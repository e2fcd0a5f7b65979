"""Script Filter entrypoints for the Wikipedia search workflow."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Sequence, TextIO

import httpx

from scriptfilter.config import HostSettings, get_host_settings
from scriptfilter.feedback import non_actionable
from scriptfilter.integrations.wiki import WIKI_FLOW, format_wiki_error, make_wiki_fetch
from scriptfilter.logging import configure_logging, logger
from scriptfilter.services.cache_store import CacheStore
from scriptfilter.services.cli_flow import run_cli_flow
from scriptfilter.services.query_policy import resolve_query_input
from scriptfilter.services.search_flow import FlowOutcome, SearchFlow, resolve_flow_context


def _setup(host: HostSettings) -> None:
    level = logging.getLevelName(host.script_filter_log_level.upper())
    configure_logging(level if isinstance(level, int) else logging.WARNING)


def _emit(payload: str, stdout: TextIO | None) -> None:
    out = stdout or sys.stdout
    out.write(payload + "\n")
    out.flush()


async def run_wiki_search(query: str) -> FlowOutcome:
    async with httpx.AsyncClient(headers={"User-Agent": "scriptfilter-wiki-search/0.1"}) as client:
        flow = SearchFlow(
            WIKI_FLOW,
            make_wiki_fetch(client),
            format_wiki_error,
            host=get_host_settings(),
        )
        return await flow.run(query)


async def clear_wiki_cache() -> str:
    context = resolve_flow_context(WIKI_FLOW, host=get_host_settings())
    removed = CacheStore(context).clear()
    logger.info("cache_cleared", workflow=context.workflow_key, removed=removed)
    return non_actionable("Wiki Search cache cleared", f"Removed {removed} cached result(s).")


def format_clear_cache_error(message: str) -> str:
    return non_actionable("Cannot clear Wiki Search cache", message)


def main(argv: Sequence[str] | None = None, stdin: TextIO | None = None, stdout: TextIO | None = None) -> int:
    host = get_host_settings()
    _setup(host)

    args = list(sys.argv[1:] if argv is None else argv)
    query = resolve_query_input(args[0] if args else None, host, stdin)

    outcome = asyncio.run(run_wiki_search(query))
    logger.info("script_filter_completed", workflow=WIKI_FLOW.workflow_key, outcome=outcome.kind)

    _emit(outcome.payload, stdout)
    return 0


def clear_cache_main(stdout: TextIO | None = None) -> int:
    _setup(get_host_settings())
    payload = asyncio.run(run_cli_flow(clear_wiki_cache, format_clear_cache_error))
    _emit(payload, stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
