"""HTTP client for talking to a running Pomotune daemon."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

logger = logging.getLogger(__name__)


class DaemonUnavailable(Exception):
    """The daemon could not be reached."""


class DaemonClient:
    """Sends commands to the daemon's API."""

    def __init__(self, api_url: str, timeout: float = 5.0):
        self.api_url = api_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> tuple[int, Any]:
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.request(method, f"{self.api_url}{path}", json=payload) as resp:
                    return resp.status, await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DaemonUnavailable(f"Cannot reach daemon at {self.api_url}: {e}") from e

    async def command(self, name: str) -> tuple[int, dict[str, Any]]:
        """POST a timer command (start, pause, resume, reset)."""
        return await self._request("POST", f"/{name}")

    async def set_day_start(self, enabled: bool, time_of_day: str) -> tuple[int, dict[str, Any]]:
        return await self._request(
            "POST", "/day-start", {"enabled": enabled, "time_of_day": time_of_day}
        )

    async def update_settings(self, changes: dict[str, Any]) -> tuple[int, dict[str, Any]]:
        return await self._request("PUT", "/settings", changes)

    async def is_alive(self) -> bool:
        try:
            status, _ = await self._request("GET", "/health")
        except DaemonUnavailable:
            return False
        return status == 200
