from __future__ import annotations

import logging

from profile_views.errors import CounterAlreadyExists, UserNotFound
from profile_views.store.base import KeyedCounterStore

logger = logging.getLogger(__name__)


def counter_key(service: str, user: str) -> str:
    return f"{service}:{user}"


def increment_user_views(store: KeyedCounterStore, key: str) -> int:
    """Count one view for `key`, onboarding the key on first sight.

    A missing counter is created (starting at 1, which counts this view). If a
    concurrent request created it first, the increment is retried once.
    UnexpectedStoreError is never retried.
    """

    try:
        return store.increment_and_fetch(key)
    except UserNotFound:
        logger.info("no counter for %s, onboarding", key)

    try:
        return store.create_counter_for(key)
    except CounterAlreadyExists:
        logger.info("counter for %s created concurrently, retrying increment", key)
        return store.increment_and_fetch(key)
