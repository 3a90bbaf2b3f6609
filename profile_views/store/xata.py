from __future__ import annotations

import logging
from typing import Any

import httpx

from profile_views.errors import UnexpectedStoreError

logger = logging.getLogger(__name__)


class XataCounterStore:
    """Row-based store kept in a single Xata record (`{"count": n}`) behind a REST API."""

    def __init__(
        self,
        table_endpoint: str,
        record_id: str,
        auth_token: str,
        timeout: float = 5.0,
        client: httpx.Client | None = None,
    ) -> None:
        if not table_endpoint or not record_id or not auth_token:
            raise ValueError("XATA_TABLE_ENDPOINT, XATA_RECORD_ID and XATA_AUTH_TOKEN are required")

        self._record_url = f"{table_endpoint.rstrip('/')}/data/{record_id}"
        self._client = client or httpx.Client(
            headers={"Authorization": f"Bearer {auth_token}"},
            timeout=timeout,
            limits=httpx.Limits(max_keepalive_connections=5, keepalive_expiry=120.0),
        )

    @staticmethod
    def _error(response: httpx.Response) -> UnexpectedStoreError:
        body = response.text or "none"
        return UnexpectedStoreError(
            f"status code -> {response.status_code}, server error message -> {body}"
        )

    def read_count(self) -> int:
        try:
            response = self._client.get(self._record_url)
        except httpx.HTTPError as exc:
            raise UnexpectedStoreError(f"failed to read profile views: {exc}") from exc

        if not response.is_success:
            raise self._error(response)

        try:
            payload: Any = response.json()
        except ValueError as exc:
            raise UnexpectedStoreError(f"record body is not JSON: {exc}") from exc

        count = payload.get("count") if isinstance(payload, dict) else None
        if not isinstance(count, int):
            raise UnexpectedStoreError(f"unexpected record shape: {payload!r}")
        return count

    def write_count(self, count: int) -> None:
        try:
            response = self._client.patch(self._record_url, json={"count": count})
        except httpx.HTTPError as exc:
            raise UnexpectedStoreError(f"failed to update profile views: {exc}") from exc

        if not response.is_success:
            raise self._error(response)

    def close(self) -> None:
        self._client.close()
