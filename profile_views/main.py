from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import Response

from profile_views.api.badges import router as badges_router
from profile_views.api.metrics import router as metrics_router
from profile_views.badge.cache import BadgeTemplateCache
from profile_views.config import get_settings
from profile_views.dependencies import get_badge_renderer, get_counter_store, get_keyed_store
from profile_views.models.schemas import HealthResponse
from profile_views.observability.logging import configure_logging
from profile_views.observability.middleware import RequestContextMiddleware
from profile_views.services.counter_state import ViewCounterState

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    configure_logging(settings.log_level.upper(), json_logs=settings.production)

    # InitializationFailure propagates so the server never starts with a wrong baseline.
    state = await ViewCounterState.initialize(get_counter_store())
    renderer = get_badge_renderer()
    keyed = get_keyed_store() if settings.service_user_map else None

    app.state.counter = state
    app.state.badge_cache = BadgeTemplateCache(renderer, max_entries=settings.badge_cache_max_entries)
    app.state.keyed_store = keyed

    stop = asyncio.Event()
    reconciler = asyncio.create_task(state.run_reconciliation(settings.reconcile_interval_seconds, stop))
    try:
        yield
    finally:
        logger.info("shutdown signal received")
        stop.set()
        await reconciler
        state.shutdown()
        await renderer.aclose()
        if keyed is not None:
            keyed.close()
        logger.info("cleanup complete")


app = FastAPI(title="Profile Views Counter", version="0.1.0", lifespan=lifespan)
app.add_middleware(RequestContextMiddleware)
app.include_router(badges_router)
app.include_router(metrics_router)


@app.head("/healthz")
async def healthz() -> Response:
    return Response(status_code=200)


@app.get("/health")
async def health() -> HealthResponse:
    return HealthResponse()
