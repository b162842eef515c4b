"""
HTTP fetcher shared by the TMDB client, the subtitle fetcher and provider
scrapers. Wraps aiohttp with common defaults, headers, timeout, and optional
proxy support. Transport problems surface as ``UpstreamTransportFailure``.
"""
from __future__ import annotations
import aiohttp
import asyncio
from typing import Optional
from urllib.parse import urljoin

from ..errors import UpstreamTransportFailure

DEFAULT_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

_TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, ValueError)


class Fetcher:
    def __init__(self, *, timeout: int = 10, proxy: str | None = None):
        self.timeout = aiohttp.ClientTimeout(total=timeout, connect=4)
        self.proxy = proxy
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={"User-Agent": DEFAULT_UA},
            )
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    # ── convenience methods ──────────────────

    async def get(
        self,
        url: str,
        *,
        base_url: str | None = None,
        headers: dict | None = None,
        params: dict | None = None,
        follow_redirects: bool = True,
    ) -> str:
        full = urljoin(base_url, url) if base_url else url
        session = await self._get_session()
        try:
            async with session.get(
                full,
                headers=headers or {},
                params=params,
                allow_redirects=follow_redirects,
                proxy=self.proxy,
            ) as resp:
                return await resp.text()
        except _TRANSPORT_ERRORS as e:
            raise UpstreamTransportFailure(f"GET {full} failed: {e}") from e

    async def get_json(
        self,
        url: str,
        *,
        base_url: str | None = None,
        headers: dict | None = None,
        params: dict | None = None,
    ) -> dict | list:
        """GET and decode JSON. Raises on >= 400."""
        full = urljoin(base_url, url) if base_url else url
        session = await self._get_session()
        try:
            async with session.get(
                full,
                headers=headers or {},
                params=params,
                proxy=self.proxy,
            ) as resp:
                if resp.status >= 400:
                    raise UpstreamTransportFailure(
                        f"{full} returned {resp.status}", status=resp.status)
                return await resp.json(content_type=None)
        except _TRANSPORT_ERRORS as e:
            raise UpstreamTransportFailure(f"GET {full} failed: {e}") from e
