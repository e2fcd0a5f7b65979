"""Shared execution driver for non-search Script Filters.

``execute`` renders the workflow's Alfred JSON; ``map_error`` turns a failure
message into an error row. Whatever happens, exactly one payload with an
``items`` array comes back.
"""

from __future__ import annotations

from typing import Awaitable, Callable

from scriptfilter.feedback import has_items_array, non_actionable
from scriptfilter.logging import logger

ExecuteFn = Callable[[], Awaitable[str]]
MapErrorFn = Callable[[str], str]

DEFAULT_FAILURE_MESSAGE = "script-filter command failed"
DEFAULT_EMPTY_OUTPUT_MESSAGE = "script-filter command returned empty response"
DEFAULT_MALFORMED_MESSAGE = "script-filter command returned malformed Alfred JSON"


def fallback_error_row(message: str | None) -> str:
    return non_actionable("Workflow runtime error", message or DEFAULT_FAILURE_MESSAGE)


def emit_mapped_error(map_error: MapErrorFn | None, message: str | None) -> str:
    message = message or DEFAULT_FAILURE_MESSAGE
    if map_error is not None:
        try:
            mapped = map_error(message)
        except Exception:
            logger.exception("map_error_failed", error=message)
        else:
            if mapped and has_items_array(mapped):
                return mapped
    return fallback_error_row(message)


async def run_cli_flow(
    execute: ExecuteFn | None,
    map_error: MapErrorFn | None,
    *,
    empty_output_message: str = DEFAULT_EMPTY_OUTPUT_MESSAGE,
    malformed_json_message: str = DEFAULT_MALFORMED_MESSAGE,
) -> str:
    if execute is None:
        return emit_mapped_error(map_error, "script-filter execute callback is not defined")

    try:
        output = await execute()
    except Exception as exc:
        logger.warning("cli_flow_failed", exception_type=exc.__class__.__name__, error=str(exc))
        return emit_mapped_error(map_error, str(exc).strip())

    if not output or not output.strip():
        return emit_mapped_error(map_error, empty_output_message)
    if not has_items_array(output):
        return emit_mapped_error(map_error, malformed_json_message)
    return output


__all__ = [
    "emit_mapped_error",
    "fallback_error_row",
    "run_cli_flow",
]
