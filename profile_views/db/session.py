from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from profile_views.config import get_settings


def get_engine(database_url: str | None = None, timeout_seconds: float | None = None) -> Engine:
    settings = get_settings()
    url = database_url or settings.database_url
    timeout = timeout_seconds if timeout_seconds is not None else settings.store_timeout_seconds

    kwargs: dict[str, Any] = {"pool_pre_ping": True}
    if url.startswith("postgresql"):
        # psycopg3 driver uses `postgresql+psycopg://...`; bound connect, checkout and statement time.
        kwargs["pool_timeout"] = timeout
        kwargs["connect_args"] = {
            "connect_timeout": max(1, int(timeout)),
            "options": f"-c statement_timeout={int(timeout * 1000)}",
        }
    elif url.startswith("sqlite"):
        kwargs["connect_args"] = {"timeout": timeout, "check_same_thread": False}

    return create_engine(url, **kwargs)
