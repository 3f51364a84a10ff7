"""
Async JSON access to the upstream operations services.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import httpx

from opsboard.config import BoardSettings
from opsboard.data.models import SourceCategory

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """A transport failure, non-success status or unparsable body."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class ApiClient:
    """Thin wrapper over `httpx.AsyncClient` that returns parsed JSON or raises FetchError."""

    def __init__(self, settings: BoardSettings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._settings = settings
        self._http = httpx.AsyncClient(
            timeout=settings.http_timeout,
            follow_redirects=True,
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def get_json(self, url: str, params: Optional[dict] = None) -> Any:
        try:
            response = await self._http.get(url, params=params)
        except httpx.HTTPError as exc:
            raise FetchError(url, f"transport error: {exc}") from exc
        if not response.is_success:
            raise FetchError(url, f"HTTP {response.status_code}")
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise FetchError(url, f"malformed body: {exc}") from exc

    def _api(self, path: str) -> str:
        return f"{self._settings.api_base}/{path}"

    async def time(self) -> Any:
        return await self.get_json(self._settings.time_url)

    async def teams(self) -> Any:
        return await self.get_json(self._api("Team"))

    async def locations(self) -> Any:
        return await self.get_json(self._api("Location"))

    async def feed(self, category: SourceCategory) -> Any:
        return await self.get_json(self._settings.feed_url(category))

    async def report(self, report_id: Any) -> Any:
        return await self.get_json(self._api(f"Report/{report_id}"))

    async def task_state(self, task_state_id: Any) -> Any:
        return await self.get_json(self._api(f"TaskState/id/{task_state_id}"))

    async def users(self, user_id: Any) -> Any:
        return await self.get_json(self._api("User/id"), params={"ids": user_id})

    async def measurement_items(self, report_id: Any) -> Any:
        return await self.get_json(self._api(f"Report/{report_id}/measurement-items"))
