"""Thin TMDB v3 client on top of the shared fetcher."""
from __future__ import annotations
from typing import Optional

from ..errors import UpstreamTransportFailure
from ..providers.fetcher import Fetcher


class TMDBClient:
    def __init__(self, fetcher: Fetcher, api_key: Optional[str], base_url: str = "https://api.themoviedb.org/3"):
        self.fetcher = fetcher
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    async def get(self, path: str) -> dict:
        if not self.api_key:
            raise UpstreamTransportFailure("Missing TMDB_API_KEY")
        try:
            return await self.fetcher.get_json(
                f"{self.base_url}{path}", params={"api_key": self.api_key})
        except UpstreamTransportFailure as e:
            if e.status is not None:
                raise UpstreamTransportFailure(f"TMDB error {e.status}", status=e.status) from e
            raise
