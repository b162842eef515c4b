"""
Schema-agnostic helpers over provider result trees.

A tree is any mix of dicts, lists and scalars. The only fields these helpers
care about are a string ``playlist`` and a ``captions`` list.
"""
from __future__ import annotations
from typing import Any, Iterator, Optional
from urllib.parse import urlsplit

DEFAULT_PORTS = {"http": 80, "https": 443}


def children(node: Any) -> Iterator[Any]:
    """Nested containers of a node, in encounter order."""
    values = node.values() if isinstance(node, dict) else node
    for value in values:
        if isinstance(value, (dict, list)):
            yield value


def find_first_playlist(tree: Any) -> Optional[str]:
    """Depth-first pre-order search for the first non-empty ``playlist`` string."""
    if not isinstance(tree, (dict, list)):
        return None
    if isinstance(tree, dict):
        playlist = tree.get("playlist")
        if isinstance(playlist, str) and playlist:
            return playlist
    for child in children(tree):
        found = find_first_playlist(child)
        if found:
            return found
    return None


def host_of(url: Any) -> Optional[str]:
    """Network host of an absolute URL; None if it can't be parsed.

    A port is kept only when it isn't the scheme's default, so
    ``https://cdn/x`` and ``https://cdn:443/y`` share a host.
    """
    if not isinstance(url, str):
        return None
    try:
        parts = urlsplit(url.strip())
        port = parts.port  # raises on a malformed port
    except ValueError:
        return None
    if not parts.scheme or not parts.hostname:
        return None
    host = parts.netloc.rpartition("@")[2].lower()
    if port is None or port == DEFAULT_PORTS.get(parts.scheme.lower()):
        if not host.endswith("]"):
            host = host.rsplit(":", 1)[0]
    return host or None
