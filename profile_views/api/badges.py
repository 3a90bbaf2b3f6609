from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool

from profile_views.badge.cache import BadgeTemplateCache
from profile_views.badge.renderer import NO_CACHE
from profile_views.config import get_settings
from profile_views.dependencies import badge_cache, counter_state, keyed_store
from profile_views.errors import RenderFailure, UnexpectedStoreError
from profile_views.models.schemas import BadgeParams
from profile_views.services.counter_state import ViewCounterState
from profile_views.services.keyed_counter import counter_key, increment_user_views
from profile_views.store.base import KeyedCounterStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["badges"])


def badge_params(
    label: str | None = Query(default=None),
    color: str | None = Query(default=None),
    style: str | None = Query(default=None),
) -> BadgeParams:
    settings = get_settings()
    return BadgeParams(
        label=label or settings.badge_label,
        color=color or settings.badge_color,
        style=style or settings.badge_style,
    )


async def _render_badge(request: Request, cache: BadgeTemplateCache, params: BadgeParams, views: int) -> Response:
    # Picked up by RequestContextMiddleware for the access log.
    request.state.views = views
    try:
        svg, hit = await cache.render_with_outcome(params, views)
    except RenderFailure as exc:
        logger.error("failed to fetch badge, reason: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to render badge") from exc

    request.state.badge_cache = "hit" if hit else "miss"
    return Response(content=svg, media_type="image/svg+xml", headers={"Cache-Control": NO_CACHE})


@router.get("/count.svg")
async def profile_views_badge(
    request: Request,
    params: BadgeParams = Depends(badge_params),
    state: ViewCounterState = Depends(counter_state),
    cache: BadgeTemplateCache = Depends(badge_cache),
) -> Response:
    # The view is counted even if rendering fails afterwards.
    views = state.increment()
    return await _render_badge(request, cache, params, views)


@router.get("/stats/{service}/{user}/count.svg")
async def user_views_badge(
    request: Request,
    service: str,
    user: str,
    params: BadgeParams = Depends(badge_params),
    store: KeyedCounterStore | None = Depends(keyed_store),
    cache: BadgeTemplateCache = Depends(badge_cache),
) -> Response:
    settings = get_settings()
    if store is None or settings.service_user_map.get(service) != user:
        raise HTTPException(status_code=404, detail="Not found")

    try:
        views = await run_in_threadpool(increment_user_views, store, counter_key(service, user))
    except UnexpectedStoreError as exc:
        logger.error("failed to count view for %s/%s, reason: %s", service, user, exc)
        raise HTTPException(status_code=500, detail="Failed to count view") from exc

    return await _render_badge(request, cache, params, views)
