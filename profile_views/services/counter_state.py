from __future__ import annotations

import asyncio
import logging
from threading import Lock

from profile_views.errors import CounterPersistFailure, InitializationFailure
from profile_views.models.schemas import CounterSnapshot
from profile_views.observability.metrics import get_metrics
from profile_views.store.base import CounterStore

logger = logging.getLogger(__name__)


class ViewCounterState:
    """Authoritative in-process view count, flushed to the store on a fixed interval.

    The count and the reconciliation mark (last value handed to the store) live
    under separate locks so a slow store write never blocks increments.
    Invariant: ``persisted_mark <= count``.
    """

    def __init__(self, store: CounterStore, initial_count: int) -> None:
        if initial_count < 0:
            raise ValueError("initial view count cannot be negative")
        self._store = store
        self._count = initial_count
        self._count_lock = Lock()
        self._mark = initial_count
        self._mark_lock = Lock()

    @classmethod
    async def initialize(cls, store: CounterStore) -> "ViewCounterState":
        """Read the baseline count. Raises InitializationFailure; there is no safe default."""

        try:
            count = await asyncio.to_thread(store.read_count)
        except Exception as exc:
            logger.error("failed to initialize state: %s", exc)
            raise InitializationFailure(f"failed to read initial view count: {exc}") from exc

        if count < 0:
            raise InitializationFailure(f"store returned a negative view count: {count}")

        logger.info("state initialized, current views: %d", count)
        return cls(store, count)

    def increment(self) -> int:
        with self._count_lock:
            self._count += 1
            return self._count

    def snapshot(self) -> int:
        with self._count_lock:
            return self._count

    @property
    def persisted_mark(self) -> int:
        with self._mark_lock:
            return self._mark

    def describe(self) -> CounterSnapshot:
        return CounterSnapshot(count=self.snapshot(), persisted_mark=self.persisted_mark)

    async def reconcile(self) -> bool:
        """Run one reconciliation tick. Returns True when a write reached the store."""

        with self._mark_lock:
            current = self.snapshot()
            if current == self._mark:
                logger.info("no new updates, views: %d", current)
                return False
            previous = self._mark
            self._mark = current

        try:
            await asyncio.to_thread(self._store.write_count, current)
        except Exception as exc:
            failure = CounterPersistFailure(f"failed to persist views {current}: {exc}")
            logger.error("%s, retrying next tick", failure)
            get_metrics().observe_flush(failed=True)
            with self._mark_lock:
                # Only roll back if no later tick has already moved the mark.
                if self._mark == current:
                    self._mark = previous
            return False

        get_metrics().observe_flush()
        logger.info("persisted views: %d", current)
        return True

    async def run_reconciliation(self, interval: float, stop: asyncio.Event) -> None:
        """Reconcile every `interval` seconds until `stop` is set."""

        logger.info("reconciliation loop started, interval: %ss", interval)
        while not stop.is_set():
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
            except asyncio.TimeoutError:
                await self.reconcile()
        logger.info("reconciliation loop stopped")

    def shutdown(self) -> None:
        # No final flush: at most one interval of views can be lost.
        self._store.close()
        logger.info("counter store closed, unpersisted views: %d", self.snapshot() - self.persisted_mark)
