from __future__ import annotations

from typing import Protocol

import httpx

from profile_views.errors import RenderFailure
from profile_views.observability.renderer import instrument_renderer_call

NO_CACHE = "max-age=0, no-cache, no-store, must-revalidate"


class BadgeRenderer(Protocol):
    async def render(self, label: str, color: str, style: str, message: str) -> str: ...

    async def aclose(self) -> None: ...


class ShieldsRenderer:
    """Fetches static badges from shields.io (or any service with the same query API)."""

    def __init__(
        self,
        base_url: str = "https://img.shields.io/static/v1",
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url
        self._client = client or httpx.AsyncClient(
            headers={"Cache-Control": NO_CACHE},
            timeout=timeout,
            limits=httpx.Limits(max_keepalive_connections=5, keepalive_expiry=120.0),
        )

    async def _fetch(self, params: dict[str, str]) -> str:
        try:
            response = await self._client.get(self.base_url, params=params)
        except httpx.TimeoutException as exc:
            raise RenderFailure(f"badge service timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise RenderFailure(f"badge service request failed: {exc}") from exc

        if not response.is_success:
            raise RenderFailure(
                f"badge service returned status {response.status_code}",
                status_code=response.status_code,
            )
        return response.text

    async def render(self, label: str, color: str, style: str, message: str) -> str:
        params = {"label": label, "message": message, "color": color, "style": style}
        return await instrument_renderer_call(message=message, fn=lambda: self._fetch(params))

    async def aclose(self) -> None:
        await self._client.aclose()
