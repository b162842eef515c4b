"""
Provider engine — hosts registered source/embed scrapers and runs them.

Scrapers live in plugin modules (see ``PROVIDER_MODULES``) and register
themselves with ``@register_source`` / ``@register_embed`` on import.

Usage:
    engine = ProviderEngine()
    tree = await engine.run_all(media)
    await engine.close()
"""
from __future__ import annotations
import asyncio
import importlib
import logging
from typing import Iterable, Optional

from .base import MediaDescriptor, Stream, SourceResult, EmbedResult
from .fetcher import Fetcher

log = logging.getLogger("streamrelay.providers")


class NotFoundError(Exception):
    """Raised by a scraper (or the engine) when the media does not exist upstream."""


# ──────────────────────────────
#  Scraper registries
# ──────────────────────────────
class _SourceScraper:
    id: str
    name: str
    rank: int
    media_types: list[str]          # ["movie"] or ["movie", "show"]

    async def scrape(self, media: MediaDescriptor, fetcher: Fetcher) -> SourceResult:
        raise NotImplementedError


class _EmbedScraper:
    id: str
    name: str
    rank: int

    async def scrape(self, url: str, fetcher: Fetcher) -> EmbedResult:
        raise NotImplementedError


# Populated when plugin modules are imported
_SOURCES: list[_SourceScraper] = []
_EMBEDS: dict[str, _EmbedScraper] = {}


def register_source(scraper):
    """Decorator to register a source scraper class."""
    global _SOURCES
    _SOURCES = [s for s in _SOURCES if s.id != scraper.id]
    inst = scraper()
    if not getattr(inst, 'disabled', False):
        _SOURCES.append(inst)
        _SOURCES.sort(key=lambda s: s.rank, reverse=True)
    return scraper


def register_embed(scraper):
    """Decorator to register an embed scraper class."""
    inst = scraper()
    if getattr(inst, 'disabled', False):
        _EMBEDS.pop(inst.id, None)
    else:
        _EMBEDS[inst.id] = inst
    return scraper


def clear_registry():
    global _SOURCES
    _SOURCES = []
    _EMBEDS.clear()


def load_scrapers(modules: Iterable[str]):
    """Import plugin modules so their decorators fill the registries."""
    for name in modules:
        importlib.import_module(name)
        log.info(f"Loaded provider module {name}")


# ──────────────────────────────
#  Engine
# ──────────────────────────────
class ProviderEngine:
    SOURCE_TIMEOUT = 8
    EMBED_TIMEOUT = 6

    def __init__(self, *, fetcher: Optional[Fetcher] = None, timeout: int = 12):
        self.fetcher = fetcher or Fetcher(timeout=timeout)

    async def close(self):
        await self.fetcher.close()

    def list_sources(self) -> list[dict]:
        return [{'id': s.id, 'name': s.name, 'rank': s.rank, 'mediaTypes': list(s.media_types)}
                for s in _SOURCES]

    def list_embeds(self) -> list[dict]:
        embeds = sorted(_EMBEDS.values(), key=lambda e: e.rank, reverse=True)
        return [{'id': e.id, 'name': e.name, 'rank': e.rank} for e in embeds]

    async def run_source_scraper(self, source_id: str, media: MediaDescriptor) -> SourceResult:
        source = next((s for s in _SOURCES if s.id == source_id), None)
        if not source:
            raise NotFoundError(f"Unknown source '{source_id}'")
        return await asyncio.wait_for(
            source.scrape(media, self.fetcher), timeout=self.SOURCE_TIMEOUT)

    async def run_embed_scraper(self, embed_id: str, url: str) -> EmbedResult:
        scraper = _EMBEDS.get(embed_id)
        if not scraper:
            raise NotFoundError(f"Unknown embed '{embed_id}'")
        return await asyncio.wait_for(
            scraper.scrape(url, self.fetcher), timeout=self.EMBED_TIMEOUT)

    async def run_all(self, media: MediaDescriptor) -> Optional[dict]:
        """Try ALL compatible sources/embeds and collect every playable stream.

        Returns ``{"results": [...]}`` ordered by source rank, or None when
        nothing played. Raises NotFoundError when every source said so.
        """
        applicable = [s for s in _SOURCES if media.media_type in s.media_types]
        not_found = 0

        async def _try_source(source) -> list[dict]:
            nonlocal not_found
            found = []
            try:
                log.info(f"[{source.id}] Trying source scraper...")
                result = await self.run_source_scraper(source.id, media)
                embeds = list(result.embeds)
                for stream in result.streams:
                    if self.is_playable(stream):
                        found.append(_output(source.id, None, stream))
            except NotFoundError:
                not_found += 1
                log.info(f"[{source.id}] Media not found")
                return found
            except Exception as e:
                log.warning(f"[{source.id}] Source failed: {e}")
                return found

            for ref in embeds:
                try:
                    out = await self.run_embed_scraper(ref.embed_id, ref.url)
                    playable = [s for s in out.streams if self.is_playable(s)]
                except Exception as e:
                    log.warning(f"  [{source.id} → {ref.embed_id}] Embed failed: {e}")
                    continue
                found.extend(_output(source.id, ref.embed_id, s) for s in playable)
            return found

        # gather keeps the rank order of `applicable`
        task_results = await asyncio.gather(
            *[_try_source(s) for s in applicable], return_exceptions=True)
        results = [r for found in task_results if isinstance(found, list) for r in found]

        if results:
            return {"results": results}
        if applicable and not_found == len(applicable):
            raise NotFoundError("Media not found on any source")
        log.warning("All providers exhausted, no stream found")
        return None

    @staticmethod
    def is_playable(stream: Stream) -> bool:
        if stream.stream_type == "hls":
            return bool(stream.playlist)
        if stream.stream_type == "file":
            return len(stream.qualities) > 0 and any(q.url for q in stream.qualities)
        return False


def _output(source_id: str, embed_id: Optional[str], stream: Stream) -> dict:
    return {"sourceId": source_id, "embedId": embed_id, "stream": stream.to_dict()}
