from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from threading import Lock

import pytest
from httpx import ASGITransport, AsyncClient

from profile_views.config import get_settings
from profile_views.dependencies import set_badge_renderer, set_counter_store, set_keyed_store
from profile_views.errors import CounterAlreadyExists, RenderFailure, UnexpectedStoreError, UserNotFound
from profile_views.main import app, lifespan
from profile_views.observability.metrics import reset_metrics


class InMemoryCounterStore:
    def __init__(self, count: int = 0) -> None:
        self.count = count
        self.writes: list[int] = []
        self.fail_reads = False
        self.fail_writes = False
        self.closed = False

    def read_count(self) -> int:
        if self.fail_reads:
            raise UnexpectedStoreError("connection refused")
        return self.count

    def write_count(self, count: int) -> None:
        if self.fail_writes:
            raise UnexpectedStoreError("connection reset by peer")
        self.writes.append(count)
        self.count = count

    def close(self) -> None:
        self.closed = True


class InMemoryKeyedStore:
    def __init__(self) -> None:
        self.counts: dict[str, int] = {}
        self._lock = Lock()
        self.closed = False

    def increment_and_fetch(self, key: str) -> int:
        with self._lock:
            if key not in self.counts:
                raise UserNotFound(key)
            self.counts[key] += 1
            return self.counts[key]

    def create_counter_for(self, key: str) -> int:
        with self._lock:
            if key in self.counts:
                raise CounterAlreadyExists(key)
            self.counts[key] = 1
            return 1

    def close(self) -> None:
        self.closed = True


class FakeRenderer:
    """Mimics shields.io: the message shows up in the aria-label and twice as text."""

    def __init__(self, delay: float = 0.0) -> None:
        self.calls: list[dict[str, str]] = []
        self.fail = False
        self.delay = delay
        self.closed = False

    async def render(self, label: str, color: str, style: str, message: str) -> str:
        self.calls.append({"label": label, "color": color, "style": style, "message": message})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RenderFailure("badge service timed out")
        return (
            f'<svg aria-label="{label}: {message}" data-style="{style}">'
            f'<rect fill="{color}"/><text>{label}</text><text>{message}</text><text>{message}</text></svg>'
        )

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def counter_store() -> InMemoryCounterStore:
    return InMemoryCounterStore(count=41)


@pytest.fixture
def keyed_counter_store() -> InMemoryKeyedStore:
    return InMemoryKeyedStore()


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture(autouse=True)
def test_environment(
    monkeypatch: pytest.MonkeyPatch,
    counter_store: InMemoryCounterStore,
    keyed_counter_store: InMemoryKeyedStore,
    renderer: FakeRenderer,
) -> None:
    # Keep the background flush out of the way; tests drive reconcile() directly.
    monkeypatch.setenv("RECONCILE_INTERVAL_SECONDS", "3600")
    monkeypatch.setenv("SERVICE_USER_MAP", '{"github": "octocat"}')
    get_settings.cache_clear()
    reset_metrics()

    set_counter_store(counter_store)
    set_keyed_store(keyed_counter_store)
    set_badge_renderer(renderer)

    yield

    set_counter_store(None)
    set_keyed_store(None)
    set_badge_renderer(None)
    get_settings.cache_clear()


@pytest.fixture
async def api_client() -> AsyncIterator[AsyncClient]:
    # ASGITransport does not run the lifespan, so enter it here.
    async with lifespan(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
