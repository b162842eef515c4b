"""
Aggregation pipeline: resolve media → run providers → find the playlist →
fetch OpenSubtitles captions → inject them into the provider output.

Two modes:
  - run_all:       the engine's exhaustive run, whole result tree returned
  - first_success: walk sources in listing order, stop at the first stream
"""
from __future__ import annotations
import logging
from typing import Iterable, Optional

from ..errors import NoOutput, NotFoundUpstream
from ..providers.base import EmbedRef, MediaDescriptor, SourceSelection, Stream
from ..providers.runner import NotFoundError, ProviderEngine
from .injector import inject_by_host, inject_into_stream
from .media import MediaResolver
from .subtitles import SubtitleFetcher
from .walker import find_first_playlist, host_of

log = logging.getLogger("streamrelay.aggregator")

# Unstable sources first-success search never tries
ALWAYS_EXCLUDED = frozenset({"showbox"})

MODES = ("all", "first")


class Aggregator:
    def __init__(
        self,
        engine: ProviderEngine,
        resolver: MediaResolver,
        subtitles: SubtitleFetcher,
        *,
        excluded_sources: Iterable[str] = (),
    ):
        self.engine = engine
        self.resolver = resolver
        self.subtitles = subtitles
        self.excluded_sources = ALWAYS_EXCLUDED | set(excluded_sources)
        self._catalog: Optional[tuple[list[dict], list[dict]]] = None

    # ── entry points ─────────────────────

    async def movie(self, tmdb_id, mode: str = "all") -> dict:
        media = await self.resolver.resolve_movie(tmdb_id)
        return await self.aggregate(media, mode)

    async def show(self, tmdb_id, season, episode, mode: str = "all") -> dict:
        media = await self.resolver.resolve_show(tmdb_id, season, episode)
        return await self.aggregate(media, mode)

    async def aggregate(self, media: MediaDescriptor, mode: str = "all") -> dict:
        if mode == "first":
            return await self.first_success(media)
        return await self.run_all(media)

    # ── full aggregation ─────────────────

    async def run_all(self, media: MediaDescriptor) -> dict:
        try:
            tree = await self.engine.run_all(media)
        except NotFoundError as e:
            raise NotFoundUpstream(str(e)) from e
        if not tree:
            raise NoOutput()

        playlist = find_first_playlist(tree)
        if not media.imdb_id:
            log.info("No imdbId available - skipping external subtitles")
            return tree
        if not playlist:
            log.info("No playlist found in provider result - skipping injection")
            return tree
        host = host_of(playlist)
        if not host:
            log.info("Couldn't determine playlist host to inject captions")
            return tree

        captions = await self.captions_for(media)
        if captions:
            touched = inject_by_host(tree, host, captions)
            log.info(f"Injected {len(captions)} captions into {touched} stream(s) for host {host}")
        else:
            log.info("OpenSubtitles returned no captions")
        return tree

    # ── first success ────────────────────

    async def first_success(self, media: MediaDescriptor) -> dict:
        selection = await self.find_stream(media)
        if selection is None:
            raise NoOutput()

        result = selection.to_dict()
        if media.imdb_id:
            captions = await self.captions_for(media)
            if captions and inject_into_stream(result["stream"], captions):
                log.info(f"Injected {len(captions)} captions into {selection.source_id}")
        return result

    async def find_stream(self, media: MediaDescriptor) -> Optional[SourceSelection]:
        sources, embeds = self.catalog()
        embed_order = [e["id"] for e in embeds]
        compatible = [
            s for s in sources
            if media.media_type in s.get("mediaTypes", [])
            and s["id"] not in self.excluded_sources
        ]

        for source in compatible:
            source_id = source["id"]
            try:
                output = await self.engine.run_source_scraper(source_id, media)
                stream = first_playable(output.streams)
                candidates = order_embeds(list(output.embeds), embed_order)
            except Exception as e:
                log.warning(f"[{source_id}] Source failed: {e}")
                continue

            if stream:
                log.info(f"[{source_id}] Direct stream found")
                return SourceSelection(source_id=source_id, stream=stream)

            for ref in candidates:
                try:
                    embed_output = await self.engine.run_embed_scraper(ref.embed_id, ref.url)
                    stream = first_playable(embed_output.streams)
                except Exception as e:
                    log.warning(f"  [{source_id} → {ref.embed_id}] Embed failed: {e}")
                    continue
                if stream:
                    log.info(f"  [{ref.embed_id}] Stream resolved")
                    return SourceSelection(source_id=source_id, embed_id=ref.embed_id,
                                           stream=stream)

        log.warning("All providers exhausted, no stream found")
        return None

    def catalog(self) -> tuple[list[dict], list[dict]]:
        """Source and embed listings, fetched on first use and reused afterwards."""
        if self._catalog is None:
            self._catalog = (self.engine.list_sources(), self.engine.list_embeds())
        return self._catalog

    # ── shared ───────────────────────────

    async def captions_for(self, media: MediaDescriptor) -> list[dict]:
        if media.is_show:
            records = await self.subtitles.fetch_captions(
                media.imdb_id, media.season.number, media.episode.number)
        else:
            records = await self.subtitles.fetch_captions(media.imdb_id)
        return [r.to_dict() for r in records]

    async def search_captions(self, imdb_id: str, season=None, episode=None) -> list[dict]:
        records = await self.subtitles.fetch_captions(imdb_id, season, episode)
        return [r.to_dict() for r in records]


def first_playable(streams: Iterable[Stream]) -> Optional[Stream]:
    return next((s for s in streams if ProviderEngine.is_playable(s)), None)


def order_embeds(embeds: list[EmbedRef], embed_order: list[str]) -> list[EmbedRef]:
    """Sort by position in the embed listing; unlisted last, ties keep source order."""
    position: dict[str, int] = {}
    for i, embed_id in enumerate(embed_order):
        position.setdefault(embed_id, i)
    return sorted(embeds, key=lambda ref: position.get(ref.embed_id, len(embed_order)))
