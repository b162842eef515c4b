"""Shared fakes for the aggregation pipeline. Nothing here touches the network."""
from __future__ import annotations

import pytest

from streamrelay.errors import UpstreamTransportFailure
from streamrelay.providers import runner
from streamrelay.providers.base import EpisodeInfo, MediaDescriptor, SeasonInfo


class FakeTMDB:
    """Maps request paths to payloads; an Exception value is raised instead."""

    def __init__(self, responses: dict):
        self.responses = responses
        self.calls: list[str] = []

    async def get(self, path: str):
        self.calls.append(path)
        if path not in self.responses:
            raise UpstreamTransportFailure("TMDB error 404", status=404)
        value = self.responses[path]
        if isinstance(value, Exception):
            raise value
        return value


class FakeFetcher:
    """Stands in for Fetcher.get_json; records every URL it was asked for."""

    def __init__(self, payload=None, error: Exception | None = None):
        self.payload = payload
        self.error = error
        self.calls: list[dict] = []

    async def get_json(self, url, *, headers=None, params=None, **kwargs):
        self.calls.append({"url": url, "headers": headers, "params": params})
        if self.error:
            raise self.error
        return self.payload

    async def close(self):
        pass


class FakeSubtitles:
    def __init__(self, records=None):
        self.records = records or []
        self.calls: list[tuple] = []

    async def fetch_captions(self, imdb_id, season=None, episode=None):
        self.calls.append((imdb_id, season, episode))
        return list(self.records) if imdb_id else []


def movie_media(imdb_id="tt0133093") -> MediaDescriptor:
    return MediaDescriptor(media_type="movie", title="The Matrix", release_year=1999,
                           tmdb_id="603", imdb_id=imdb_id)


def show_media(imdb_id="tt0959621") -> MediaDescriptor:
    return MediaDescriptor(
        media_type="show", title="Breaking Bad", release_year=2008, tmdb_id="1396",
        imdb_id=imdb_id,
        season=SeasonInfo(number=1, tmdb_id="3572", title="Season 1"),
        episode=EpisodeInfo(number=2, tmdb_id="62086", title="Cat's in the Bag..."),
    )


@pytest.fixture
def registry():
    """Empty scraper registries, restored afterwards."""
    saved_sources = list(runner._SOURCES)
    saved_embeds = dict(runner._EMBEDS)
    runner.clear_registry()
    yield runner
    runner.clear_registry()
    runner._SOURCES.extend(saved_sources)
    runner._EMBEDS.update(saved_embeds)
