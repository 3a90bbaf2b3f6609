from profile_views.badge.cache import BadgeTemplateCache, CacheEntry, cache_key, digit_width
from profile_views.badge.renderer import BadgeRenderer, ShieldsRenderer

__all__ = [
    "BadgeRenderer",
    "BadgeTemplateCache",
    "CacheEntry",
    "ShieldsRenderer",
    "cache_key",
    "digit_width",
]
