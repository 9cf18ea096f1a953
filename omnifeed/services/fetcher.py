from __future__ import annotations

from typing import Any, Optional
import httpx

class Fetcher:
    def __init__(self, user_agent: str, timeout_s: float, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._headers = {"User-Agent": user_agent}
        self._timeout = httpx.Timeout(timeout_s)
        self._transport = transport

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers=self._headers,
            timeout=self._timeout,
            follow_redirects=True,
            transport=self._transport,
        )

    async def fetch_bytes(self, url: str) -> bytes:
        """GET ``url`` and return the body. Non-2xx raises ``httpx.HTTPStatusError``."""
        async with self.client() as client:
            resp = await client.get(url)
            resp.raise_for_status()
            return resp.content

    async def fetch_json(self, url: str, params: Optional[dict] = None) -> Any:
        async with self.client() as client:
            resp = await client.get(url, params=params)
            resp.raise_for_status()
            return resp.json()
