"""
Core types shared by the provider engine and the aggregation pipeline.

Two stream types:
  - HLS: m3u8 playlist URL
  - File: direct mp4 URL(s) with quality labels

Media and caption records are plain value objects; everything that leaves
the service is turned into JSON-ready dicts via ``to_dict``.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional

from ..errors import InvalidParameter, MetadataIncomplete

# ──────────────────────────────
#  Media descriptor
# ──────────────────────────────
@dataclass(frozen=True)
class SeasonInfo:
    number: int
    tmdb_id: str
    title: str = ""

    def to_dict(self):
        return {"number": self.number, "tmdbId": self.tmdb_id, "title": self.title}


@dataclass(frozen=True)
class EpisodeInfo:
    number: int
    tmdb_id: str
    title: str = ""

    def to_dict(self):
        return {"number": self.number, "tmdbId": self.tmdb_id, "title": self.title}


@dataclass(frozen=True)
class MediaDescriptor:
    media_type: str                   # "movie" | "show"
    title: str
    release_year: int
    tmdb_id: str
    imdb_id: Optional[str] = None     # cross-reference id used for subtitles
    season: Optional[SeasonInfo] = None
    episode: Optional[EpisodeInfo] = None

    def __post_init__(self):
        if not self.title or self.release_year <= 0:
            raise MetadataIncomplete(f"TMDB {self.media_type} metadata incomplete")
        if self.media_type == "show":
            if self.season is None or self.season.number <= 0:
                raise InvalidParameter("Invalid season")
            if self.episode is None or self.episode.number <= 0:
                raise InvalidParameter("Invalid episode")

    @property
    def is_show(self) -> bool:
        return self.media_type == "show"

    def to_dict(self):
        d = {
            "type": self.media_type,
            "title": self.title,
            "releaseYear": self.release_year,
            "tmdbId": self.tmdb_id,
            "imdbId": self.imdb_id,
        }
        if self.season:
            d["season"] = self.season.to_dict()
        if self.episode:
            d["episode"] = self.episode.to_dict()
        return d

# ──────────────────────────────
#  Caption / Subtitle
# ──────────────────────────────
@dataclass(frozen=True)
class CaptionRecord:
    id: str                           # dedup key
    url: str
    language: str = ""                # lowercase ISO code or language name
    format: str = "srt"               # "srt" | "vtt" | ...
    needs_external_proxy: bool = False
    origin_tag: str = "opensubs"

    def to_dict(self):
        return {
            "id": self.id,
            "language": self.language,
            "url": self.url,
            "type": self.format,
            "needsProxy": self.needs_external_proxy,
            "opensubtitles": self.origin_tag == "opensubs",
            "source": self.origin_tag,
        }

# ──────────────────────────────
#  Stream definitions
# ──────────────────────────────
@dataclass
class StreamFile:
    url: str
    quality: str = "unknown"          # "360" | "480" | "720" | "1080" | "4k" | "unknown"

    def to_dict(self):
        return {"url": self.url, "quality": self.quality}


@dataclass
class Stream:
    stream_type: str                  # "hls" | "file"
    playlist: Optional[str] = None    # m3u8 URL (for type=hls)
    qualities: list[StreamFile] = field(default_factory=list)  # (for type=file)
    captions: list[dict] = field(default_factory=list)
    headers: dict[str, str] = field(default_factory=dict)

    def to_dict(self):
        d = {"type": self.stream_type, "captions": list(self.captions)}
        if self.headers:
            d["headers"] = self.headers
        if self.stream_type == "hls":
            d["playlist"] = self.playlist
        else:
            d["qualities"] = [q.to_dict() for q in self.qualities]
        return d

# ──────────────────────────────
#  Embed reference (returned by source scrapers)
# ──────────────────────────────
@dataclass
class EmbedRef:
    embed_id: str                     # must match an embed scraper id
    url: str

# ──────────────────────────────
#  Scraper outputs
# ──────────────────────────────
@dataclass
class SourceResult:
    embeds: list[EmbedRef] = field(default_factory=list)
    streams: list[Stream] = field(default_factory=list)  # direct streams (skip embed step)


@dataclass
class EmbedResult:
    streams: list[Stream] = field(default_factory=list)

# ──────────────────────────────
#  First-success output
# ──────────────────────────────
@dataclass
class SourceSelection:
    source_id: str
    stream: Stream
    embed_id: Optional[str] = None

    def to_dict(self):
        d = {"sourceId": self.source_id}
        if self.embed_id:
            d["embedId"] = self.embed_id
        d["stream"] = self.stream.to_dict()
        return d
