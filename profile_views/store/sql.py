from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from profile_views.db.models import ProfileViews, UserViews
from profile_views.errors import CounterAlreadyExists, UnexpectedStoreError, UserNotFound

logger = logging.getLogger(__name__)


class SqlCounterStore:
    """Row-based store: one `profile_views` row holds the global count."""

    def __init__(self, engine: Engine, row_id: int = 1) -> None:
        self._engine = engine
        self._row_id = row_id
        self._sessions = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def read_count(self) -> int:
        stmt = select(ProfileViews.count).where(ProfileViews.id == self._row_id)
        try:
            with self._sessions() as db:
                count = db.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise UnexpectedStoreError(f"failed to read profile views: {exc}") from exc

        if count is None:
            raise UnexpectedStoreError(f"profile_views row {self._row_id} does not exist")
        return int(count)

    def write_count(self, count: int) -> None:
        stmt = (
            update(ProfileViews)
            .where(ProfileViews.id == self._row_id)
            .values(count=count)
            .execution_options(synchronize_session=False)
        )
        try:
            with self._sessions.begin() as db:
                result = db.execute(stmt)
        except SQLAlchemyError as exc:
            raise UnexpectedStoreError(f"failed to update profile views: {exc}") from exc

        if result.rowcount == 0:
            raise UnexpectedStoreError(f"profile_views row {self._row_id} does not exist")

    def close(self) -> None:
        self._engine.dispose()
        logger.info("database connection closed")


class SqlKeyedCounterStore:
    """Transactional per-key store: the increment happens in a single UPDATE ... RETURNING."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._sessions = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def increment_and_fetch(self, key: str) -> int:
        stmt = (
            update(UserViews)
            .where(UserViews.user_key == key)
            .values(count=UserViews.count + 1)
            .returning(UserViews.count)
            .execution_options(synchronize_session=False)
        )
        try:
            with self._sessions.begin() as db:
                count = db.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise UnexpectedStoreError(f"failed to increment views for {key!r}: {exc}") from exc

        if count is None:
            raise UserNotFound(key)
        return int(count)

    def create_counter_for(self, key: str) -> int:
        try:
            with self._sessions.begin() as db:
                db.add(UserViews(user_key=key, count=1))
        except IntegrityError as exc:
            raise CounterAlreadyExists(key) from exc
        except SQLAlchemyError as exc:
            raise UnexpectedStoreError(f"failed to create counter for {key!r}: {exc}") from exc

        logger.info("created counter for %s", key)
        return 1

    def close(self) -> None:
        self._engine.dispose()
