"""
Media resolver: turns a TMDB id (plus season/episode for shows) into a
MediaDescriptor the provider engine and the subtitle fetcher understand.
"""
from __future__ import annotations
import asyncio
import logging
import math
from typing import Optional

from ..errors import EpisodeNotFound, InvalidParameter, MetadataIncomplete
from ..providers.base import EpisodeInfo, MediaDescriptor, SeasonInfo
from .tmdb import TMDBClient

log = logging.getLogger("streamrelay.media")


def parse_year(date: Optional[str]) -> int:
    """First four characters of a TMDB date, 0 when missing or unparsable."""
    try:
        return int((date or "")[:4] or "0")
    except ValueError:
        return 0


def positive_number(value, name: str) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidParameter(f"Invalid {name}") from None
    if not math.isfinite(number) or number <= 0 or number != int(number):
        raise InvalidParameter(f"Invalid {name}")
    return int(number)


class MediaResolver:
    def __init__(self, tmdb: TMDBClient):
        self.tmdb = tmdb

    async def resolve_movie(self, tmdb_id) -> MediaDescriptor:
        data = await self.tmdb.get(f"/movie/{tmdb_id}")
        title = data.get("title") or data.get("original_title") or ""
        year = parse_year(data.get("release_date"))
        if not title or not year:
            raise MetadataIncomplete("TMDB movie metadata incomplete")
        return MediaDescriptor(
            media_type="movie",
            title=title,
            release_year=year,
            tmdb_id=str(tmdb_id),
            imdb_id=data.get("imdb_id") or None,
        )

    async def resolve_show(self, tmdb_id, season, episode) -> MediaDescriptor:
        season_number = positive_number(season, "season")
        episode_number = positive_number(episode, "episode")

        tv = await self.tmdb.get(f"/tv/{tmdb_id}")
        title = tv.get("name") or tv.get("original_name") or ""
        year = parse_year(tv.get("first_air_date"))
        if not title or not year:
            raise MetadataIncomplete("TMDB show metadata incomplete")

        s = await self.tmdb.get(f"/tv/{tmdb_id}/season/{season_number}")
        e = next((x for x in s.get("episodes") or []
                  if x.get("episode_number") == episode_number), None)
        if e is None:
            raise EpisodeNotFound(f"Episode {episode_number} not found in season {season_number}")

        show_ids, episode_ids = await asyncio.gather(
            self._external_ids(f"/tv/{tmdb_id}/external_ids", "show"),
            self._external_ids(
                f"/tv/{tmdb_id}/season/{season_number}/episode/{episode_number}/external_ids",
                "episode"),
        )
        # Episode-level id first, then show-level, then ids embedded in the records
        imdb_id = (
            episode_ids.get("imdb_id")
            or show_ids.get("imdb_id")
            or e.get("imdb_id")
            or tv.get("imdb_id")
            or None
        )

        return MediaDescriptor(
            media_type="show",
            title=title,
            release_year=year,
            tmdb_id=str(tmdb_id),
            imdb_id=imdb_id,
            season=SeasonInfo(number=season_number, tmdb_id=str(s.get("id", "")),
                              title=s.get("name") or ""),
            episode=EpisodeInfo(number=episode_number, tmdb_id=str(e.get("id", "")),
                                title=e.get("name") or ""),
        )

    async def _external_ids(self, path: str, scope: str) -> dict:
        """Best-effort external id lookup; any failure yields an empty record."""
        try:
            data = await self.tmdb.get(path)
        except Exception as err:
            log.warning(f"Failed to fetch {scope} external_ids: {err}")
            return {}
        return data if isinstance(data, dict) else {}
