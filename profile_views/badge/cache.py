"""Badge template cache.

A badge's layout depends only on how many characters its message has, so one
rendered template per digit width can serve every count of that width: the
renderer is asked for a badge whose message is ``'*' * width`` and the
asterisks are later replaced with the real count.

Known limitation: the substitution is a plain string replace over the whole
SVG, so a label, color or style containing the same run of asterisks is
rewritten too.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from threading import Lock
from urllib.parse import urlencode

from profile_views.badge.renderer import BadgeRenderer
from profile_views.models.schemas import BadgeParams
from profile_views.observability.metrics import get_metrics

logger = logging.getLogger(__name__)

PLACEHOLDER_CHAR = "*"


def digit_width(count: int) -> int:
    if count < 0:
        raise ValueError("view count cannot be negative")
    return len(str(count))


def placeholder(width: int) -> str:
    return PLACEHOLDER_CHAR * width


def cache_key(params: BadgeParams, width: int) -> str:
    return urlencode(
        {
            "label": params.label,
            "color": params.color,
            "style": params.style,
            "message": placeholder(width),
        },
        safe="*",
    )


@dataclass(frozen=True)
class CacheEntry:
    key: str
    params: BadgeParams
    width: int
    template: str

    def substitute(self, count: int) -> str:
        return self.template.replace(placeholder(self.width), str(count))


class BadgeTemplateCache:
    """Caches one SVG template per (BadgeParams, digit width) and fills in counts locally.

    Lookups and insert+evict run under a short lock that never spans I/O; the
    renderer call on a miss happens outside it. Two concurrent misses for the
    same key both hit the renderer and the last insert wins. A template that
    finishes after the next wider one for the same params is served but not
    stored.

    ``max_entries`` bounds the number of templates across all BadgeParams with
    LRU eviction; ``None`` or ``0`` leaves it unbounded.
    """

    def __init__(self, renderer: BadgeRenderer, max_entries: int | None = None) -> None:
        self._renderer = renderer
        self._max_entries = max_entries or None
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def entries(self) -> list[CacheEntry]:
        with self._lock:
            return list(self._entries.values())

    def get(self, params: BadgeParams, width: int) -> CacheEntry | None:
        key = cache_key(params, width)
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                self._entries.move_to_end(key)
            return entry

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _store(self, entry: CacheEntry) -> bool:
        stale_key = cache_key(entry.params, entry.width - 1) if entry.width > 1 else None
        newer_key = cache_key(entry.params, entry.width + 1)
        with self._lock:
            # A miss that raced across a width transition finished after the wider
            # template landed; storing it would leave an entry nothing evicts.
            if newer_key in self._entries:
                return False
            if stale_key is not None and self._entries.pop(stale_key, None) is not None:
                logger.info("evicted badge template for width %d", entry.width - 1)
            self._entries[entry.key] = entry
            self._entries.move_to_end(entry.key)
            if self._max_entries is not None:
                while len(self._entries) > self._max_entries:
                    self._entries.popitem(last=False)
        return True

    async def render(self, params: BadgeParams, count: int) -> str:
        svg, _ = await self.render_with_outcome(params, count)
        return svg

    async def render_with_outcome(self, params: BadgeParams, count: int) -> tuple[str, bool]:
        """Like `render`, also reporting whether the template came from the cache."""

        width = digit_width(count)
        entry = self.get(params, width)
        get_metrics().observe_cache_lookup(hit=entry is not None)
        if entry is not None:
            return entry.substitute(count), True

        # RenderFailure propagates; nothing is cached on failure.
        template = await self._renderer.render(
            label=params.label,
            color=params.color,
            style=params.style,
            message=placeholder(width),
        )
        entry = CacheEntry(key=cache_key(params, width), params=params, width=width, template=template)
        if self._store(entry):
            logger.info("cached badge template for width %d", width)
        return entry.substitute(count), False
