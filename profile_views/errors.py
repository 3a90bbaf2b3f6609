from __future__ import annotations


class ProfileViewsError(Exception):
    """Base class for every failure raised by the counter and badge core."""


class InitializationFailure(ProfileViewsError):
    """The initial counter read failed; the service must not start serving."""


class CounterPersistFailure(ProfileViewsError):
    """A reconciliation write failed. Logged and retried on the next tick."""


class RenderFailure(ProfileViewsError):
    """The remote badge renderer failed or answered with a non-success status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StoreError(ProfileViewsError):
    pass


class UserNotFound(StoreError):
    """No counter exists yet for the requested key."""

    def __init__(self, key: str) -> None:
        super().__init__(f"no counter found for key {key!r}")
        self.key = key


class UnexpectedStoreError(StoreError):
    pass


class CounterAlreadyExists(StoreError):
    """A concurrent request created the counter for this key first."""

    def __init__(self, key: str) -> None:
        super().__init__(f"counter already exists for key {key!r}")
        self.key = key
