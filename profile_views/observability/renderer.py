from __future__ import annotations

from time import perf_counter
from typing import Awaitable, Callable, TypeVar

import structlog

from profile_views.observability.metrics import get_metrics


T = TypeVar("T")


async def instrument_renderer_call(*, message: str, fn: Callable[[], Awaitable[T]]) -> T:
    """Time a badge renderer call, update metrics, and emit a structured log event."""

    log = structlog.get_logger("renderer")
    start = perf_counter()
    try:
        result = await fn()
    except Exception:
        elapsed_ms = (perf_counter() - start) * 1000.0
        get_metrics().observe_renderer_call(elapsed_ms=elapsed_ms, failed=True)
        log.exception("renderer_call_failed", message=message, elapsed_ms=round(elapsed_ms, 2))
        raise

    elapsed_ms = (perf_counter() - start) * 1000.0
    get_metrics().observe_renderer_call(elapsed_ms=elapsed_ms)
    log.info("renderer_call", message=message, elapsed_ms=round(elapsed_ms, 2))
    return result
