from __future__ import annotations

from dataclasses import asdict, dataclass
from threading import Lock
from typing import Any


@dataclass
class _LatencyAgg:
    count: int = 0
    sum_ms: float = 0.0
    max_ms: float = 0.0

    def observe(self, elapsed_ms: float) -> None:
        self.count += 1
        self.sum_ms += float(elapsed_ms)
        if elapsed_ms > self.max_ms:
            self.max_ms = float(elapsed_ms)


class InMemoryMetrics:
    """Thread-safe, process-local metrics (resets on restart)."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._reset_unlocked()

    def _reset_unlocked(self) -> None:
        self.http_requests_total: int = 0
        self.renderer_calls_total: int = 0
        self.renderer_failures_total: int = 0
        self.badge_cache_hits_total: int = 0
        self.badge_cache_misses_total: int = 0
        self.store_flushes_total: int = 0
        self.store_flush_failures_total: int = 0
        self.http_request_ms = _LatencyAgg()
        self.renderer_call_ms = _LatencyAgg()

    def observe_http_request(self, elapsed_ms: float) -> None:
        with self._lock:
            self.http_requests_total += 1
            self.http_request_ms.observe(elapsed_ms)

    def observe_renderer_call(self, elapsed_ms: float, failed: bool = False) -> None:
        with self._lock:
            self.renderer_calls_total += 1
            self.renderer_call_ms.observe(elapsed_ms)
            if failed:
                self.renderer_failures_total += 1

    def observe_cache_lookup(self, hit: bool) -> None:
        with self._lock:
            if hit:
                self.badge_cache_hits_total += 1
            else:
                self.badge_cache_misses_total += 1

    def observe_flush(self, failed: bool = False) -> None:
        with self._lock:
            if failed:
                self.store_flush_failures_total += 1
            else:
                self.store_flushes_total += 1

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "counters": {
                    "http_requests_total": self.http_requests_total,
                    "renderer_calls_total": self.renderer_calls_total,
                    "renderer_failures_total": self.renderer_failures_total,
                    "badge_cache_hits_total": self.badge_cache_hits_total,
                    "badge_cache_misses_total": self.badge_cache_misses_total,
                    "store_flushes_total": self.store_flushes_total,
                    "store_flush_failures_total": self.store_flush_failures_total,
                },
                "latency_ms": {
                    "http_request_ms": asdict(self.http_request_ms),
                    "renderer_call_ms": asdict(self.renderer_call_ms),
                },
            }

    def reset(self) -> None:
        with self._lock:
            self._reset_unlocked()


_METRICS: InMemoryMetrics | None = None


def get_metrics() -> InMemoryMetrics:
    global _METRICS
    if _METRICS is None:
        _METRICS = InMemoryMetrics()
    return _METRICS


def reset_metrics() -> None:
    """Reset metrics counters/aggregates (used by tests)."""

    get_metrics().reset()
