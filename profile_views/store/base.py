from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class CounterStore(Protocol):
    """Durable home of the single global view count.

    Implementations are synchronous and must bound every call with a timeout;
    callers on the event loop run them in a worker thread.
    """

    def read_count(self) -> int: ...

    def write_count(self, count: int) -> None: ...

    def close(self) -> None: ...


@runtime_checkable
class KeyedCounterStore(Protocol):
    """Per-key counters incremented atomically on the store side.

    `increment_and_fetch` raises `UserNotFound` when the key has no counter yet and
    `UnexpectedStoreError` for anything else. `create_counter_for` starts a counter
    at 1 and raises `CounterAlreadyExists` if another writer created it first.
    """

    def increment_and_fetch(self, key: str) -> int: ...

    def create_counter_for(self, key: str) -> int: ...

    def close(self) -> None: ...
