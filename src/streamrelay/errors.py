"""Error kinds raised by the resolve / aggregate pipeline."""
from __future__ import annotations
from typing import Optional


class StreamRelayError(Exception):
    pass


class MetadataIncomplete(StreamRelayError):
    """TMDB returned no usable title or release year."""


class InvalidParameter(StreamRelayError):
    """Season or episode is not a positive number."""


class EpisodeNotFound(StreamRelayError):
    pass


class NoOutput(StreamRelayError):
    """The provider engine produced nothing playable."""

    def __init__(self, message: str = "no_output"):
        super().__init__(message)


class NotFoundUpstream(StreamRelayError):
    """The provider engine reported the media as not found."""


class UpstreamTransportFailure(StreamRelayError):
    def __init__(self, message: str, *, status: Optional[int] = None):
        super().__init__(message)
        self.status = status
