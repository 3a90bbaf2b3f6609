from __future__ import annotations

from profile_views.config import Settings
from profile_views.db.session import get_engine
from profile_views.store.base import CounterStore, KeyedCounterStore
from profile_views.store.sql import SqlCounterStore, SqlKeyedCounterStore
from profile_views.store.xata import XataCounterStore

__all__ = [
    "CounterStore",
    "KeyedCounterStore",
    "SqlCounterStore",
    "SqlKeyedCounterStore",
    "XataCounterStore",
    "build_counter_store",
    "build_keyed_store",
]


def build_counter_store(settings: Settings) -> CounterStore:
    # Only touched at startup and by the background flush, so it gets the longer timeout.
    if settings.store_backend == "xata":
        return XataCounterStore(
            table_endpoint=settings.xata_table_endpoint,
            record_id=settings.xata_record_id,
            auth_token=settings.xata_auth_token,
            timeout=settings.flush_timeout_seconds,
        )
    engine = get_engine(settings.database_url, timeout_seconds=settings.flush_timeout_seconds)
    return SqlCounterStore(engine, row_id=settings.counter_row_id)


def build_keyed_store(settings: Settings) -> KeyedCounterStore:
    # Per-key counters rely on UPDATE ... RETURNING; the Xata record store has no equivalent.
    if settings.store_backend != "postgres":
        raise ValueError("SERVICE_USER_MAP requires STORE_BACKEND=postgres")
    engine = get_engine(settings.database_url, timeout_seconds=settings.store_timeout_seconds)
    return SqlKeyedCounterStore(engine)
