from __future__ import annotations

import uuid
from time import perf_counter
from typing import Any, Callable

import structlog
from starlette.datastructures import MutableHeaders

from profile_views.observability.metrics import get_metrics


def _badge_context(scope: dict[str, Any]) -> dict[str, Any]:
    """Route template plus whatever the badge handlers left on request.state."""

    context: dict[str, Any] = {}
    route = getattr(scope.get("route"), "path", None)
    if route is not None:
        context["route"] = route

    state = scope.get("state") or {}
    for name in ("views", "badge_cache"):
        if name in state:
            context[name] = state[name]
    return context


class RequestContextMiddleware:
    """Request ids, per-badge access logs, and HTTP metrics.

    Badge responses also get an ``X-Badge-Cache: hit|miss`` header telling whether
    the SVG came from a cached template or a fresh renderer call.
    """

    def __init__(self, app: Callable[..., Any]) -> None:
        self.app = app
        # Health probes and the metrics endpoint itself would drown out badge traffic.
        self._excluded_metric_paths = {"/api/metrics", "/healthz", "/health"}

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        request_id = str(uuid.uuid4())
        path = scope.get("path")
        structlog.contextvars.bind_contextvars(request_id=request_id, path=path, method=scope.get("method"))

        start = perf_counter()
        status_code: int = 500

        async def send_wrapper(message: dict[str, Any]) -> None:
            nonlocal status_code

            if message.get("type") == "http.response.start":
                status_code = int(message.get("status", 500))
                headers = MutableHeaders(scope=message)
                headers["X-Request-ID"] = request_id
                outcome = (scope.get("state") or {}).get("badge_cache")
                if outcome is not None:
                    headers["X-Badge-Cache"] = outcome

            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            elapsed_ms = (perf_counter() - start) * 1000.0

            if path not in self._excluded_metric_paths:
                get_metrics().observe_http_request(elapsed_ms=elapsed_ms)

            structlog.get_logger("access").info(
                "badge_request" if "views" in (scope.get("state") or {}) else "http_request",
                status_code=status_code,
                elapsed_ms=round(elapsed_ms, 2),
                **_badge_context(scope),
            )

            structlog.contextvars.clear_contextvars()
