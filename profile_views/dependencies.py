from __future__ import annotations

from fastapi import Request

from profile_views.badge.cache import BadgeTemplateCache
from profile_views.badge.renderer import BadgeRenderer, ShieldsRenderer
from profile_views.config import get_settings
from profile_views.services.counter_state import ViewCounterState
from profile_views.store import build_counter_store, build_keyed_store
from profile_views.store.base import CounterStore, KeyedCounterStore

_counter_store: CounterStore | None = None
_keyed_store: KeyedCounterStore | None = None
_renderer: BadgeRenderer | None = None


def set_counter_store(store: CounterStore | None) -> None:
    global _counter_store
    _counter_store = store


def get_counter_store() -> CounterStore:
    global _counter_store
    if _counter_store is None:
        _counter_store = build_counter_store(get_settings())
    return _counter_store


def set_keyed_store(store: KeyedCounterStore | None) -> None:
    global _keyed_store
    _keyed_store = store


def get_keyed_store() -> KeyedCounterStore:
    global _keyed_store
    if _keyed_store is None:
        _keyed_store = build_keyed_store(get_settings())
    return _keyed_store


def set_badge_renderer(renderer: BadgeRenderer | None) -> None:
    global _renderer
    _renderer = renderer


def get_badge_renderer() -> BadgeRenderer:
    global _renderer
    if _renderer is None:
        settings = get_settings()
        _renderer = ShieldsRenderer(base_url=settings.badge_service_url, timeout=settings.render_timeout_seconds)
    return _renderer


# Request-scoped accessors for the objects built once in the app lifespan.


def counter_state(request: Request) -> ViewCounterState:
    return request.app.state.counter


def badge_cache(request: Request) -> BadgeTemplateCache:
    return request.app.state.badge_cache


def keyed_store(request: Request) -> KeyedCounterStore | None:
    return request.app.state.keyed_store
