"""
Collaborators for the FastAPI routes, created lazily and shared per process.

Tests swap them via app.dependency_overrides[get_aggregator] = lambda: fake.
"""
from __future__ import annotations

from functools import lru_cache

from .. import config
from ..providers.fetcher import Fetcher
from ..providers.runner import ProviderEngine, load_scrapers
from ..services.aggregator import Aggregator
from ..services.media import MediaResolver
from ..services.subtitles import SubtitleFetcher
from ..services.tmdb import TMDBClient


@lru_cache(maxsize=1)
def get_fetcher() -> Fetcher:
    return Fetcher(timeout=config.FETCH_TIMEOUT, proxy=config.HTTP_PROXY_URL)


@lru_cache(maxsize=1)
def get_aggregator() -> Aggregator:
    fetcher = get_fetcher()
    load_scrapers(config.PROVIDER_MODULES)
    return Aggregator(
        engine=ProviderEngine(fetcher=fetcher),
        resolver=MediaResolver(TMDBClient(fetcher, config.TMDB_API_KEY, config.TMDB_BASE_URL)),
        subtitles=SubtitleFetcher(
            fetcher,
            base_url=config.OPENSUBTITLES_BASE_URL,
            user_agent=config.OPENSUBTITLES_USER_AGENT,
        ),
        excluded_sources=config.EXCLUDED_SOURCES,
    )


async def close_all():
    if get_fetcher.cache_info().currsize:
        await get_fetcher().close()
