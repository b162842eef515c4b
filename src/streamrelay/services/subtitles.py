"""
OpenSubtitles lookup: searches the REST index by IMDb id and normalizes the
raw records into CaptionRecords. Never raises: every failure is logged and
turned into an empty list.
"""
from __future__ import annotations
import hashlib
import logging
from typing import Optional

from ..errors import UpstreamTransportFailure
from ..providers.base import CaptionRecord
from ..providers.fetcher import Fetcher

log = logging.getLogger("streamrelay.subtitles")

ORIGIN_TAG = "opensubs"


def bare_imdb_id(imdb_id: str) -> str:
    """'tt0133093' -> '0133093'; the index wants the numeric part only."""
    if len(imdb_id) > 2 and imdb_id[:2].isalpha():
        return imdb_id[2:]
    return imdb_id


def search_path(imdb_id: str, season=None, episode=None) -> str:
    numeric = bare_imdb_id(imdb_id)
    if season and episode:
        return f"episode-{episode}/imdbid-{numeric}/season-{season}"
    return f"imdbid-{numeric}"


def utf8_download_url(raw: str) -> str:
    return raw.replace(".gz", "", 1).replace("download/", "download/subencoding-utf8/", 1)


def fallback_caption_id(imdb_id: str, item: dict) -> str:
    key = "|".join(str(item.get(k) or "") for k in
                   ("ISO639", "LanguageName", "SubFormat", "SubFileName", "SubDownloadLink"))
    return f"{imdb_id}-{hashlib.sha1(key.encode('utf-8')).hexdigest()[:12]}"


def caption_id(url: str, item: dict, imdb_id: str) -> str:
    """Download URL, else the upstream file id, else a content hash."""
    if url:
        return url
    upstream_id = item.get("IDSubtitleFile") or item.get("ID") or item.get("SubFileId")
    if upstream_id:
        return str(upstream_id)
    return fallback_caption_id(imdb_id, item)


def normalize_record(item: dict, imdb_id: str) -> Optional[CaptionRecord]:
    """Map one raw OpenSubtitles record; None when it has no download URL."""
    raw_url = item.get("SubDownloadLink") or item.get("SubDownload_Link") or ""
    url = utf8_download_url(raw_url) if raw_url else ""
    if not url:
        return None

    language = (
        (item.get("ISO639") and str(item["ISO639"]).lower())
        or (item.get("LanguageName") and str(item["LanguageName"]).lower())
        or ""
    )
    # URL-less records were dropped above, so kept records are keyed by URL
    return CaptionRecord(
        id=caption_id(url, item, imdb_id),
        url=url,
        language=language,
        format=item.get("SubFormat") or "srt",
        needs_external_proxy=False,
        origin_tag=ORIGIN_TAG,
    )


class SubtitleFetcher:
    def __init__(
        self,
        fetcher: Fetcher,
        *,
        base_url: str = "https://rest.opensubtitles.org/search",
        user_agent: str = "VLSub 0.10.2",
    ):
        self.fetcher = fetcher
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent

    async def fetch_captions(self, imdb_id: Optional[str], season=None, episode=None) -> list[CaptionRecord]:
        if not imdb_id:
            return []

        url = f"{self.base_url}/{search_path(imdb_id, season, episode)}"
        headers = {"X-User-Agent": self.user_agent, "Accept": "application/json"}
        try:
            data = await self.fetcher.get_json(url, headers=headers)
        except UpstreamTransportFailure as e:
            if e.status is not None:
                log.warning(f"OpenSubtitles returned {e.status} for {url}")
            else:
                log.error(f"OpenSubtitles request failed: {e}")
            return []

        if not isinstance(data, list):
            return []

        captions = []
        for item in data:
            if not isinstance(item, dict):
                continue
            record = normalize_record(item, imdb_id)
            if record:
                captions.append(record)
        return captions
