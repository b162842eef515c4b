"""Caption injection into provider result trees and single streams."""
from __future__ import annotations
from typing import Any, Sequence

from .walker import children, find_first_playlist, host_of


def merge_captions(node: dict, captions: Sequence[dict]):
    """Append captions whose id the node doesn't carry yet, keeping existing order."""
    existing = node.get("captions")
    existing = list(existing) if isinstance(existing, list) else []
    seen = {c.get("id") for c in existing if isinstance(c, dict)}
    for caption in captions:
        if caption.get("id") not in seen:
            existing.append(caption)
            seen.add(caption.get("id"))
    node["captions"] = existing


def inject_by_host(tree: Any, host: str, captions: Sequence[dict]) -> int:
    """Merge captions into every node whose playlist is served by ``host``.

    Walks the whole tree, so several variants on the same host all get the
    captions. Returns the number of nodes touched.
    """
    if not isinstance(tree, (dict, list)):
        return 0
    touched = 0
    if isinstance(tree, dict) and isinstance(tree.get("playlist"), str):
        item_host = host_of(tree["playlist"])
        if item_host and item_host == host:
            merge_captions(tree, captions)
            touched += 1
    for child in list(children(tree)):
        touched += inject_by_host(child, host, captions)
    return touched


def inject_into_stream(stream: dict, captions: Sequence[dict]) -> bool:
    """Merge captions into a single stream record. No-op without a playlist."""
    playlist = find_first_playlist(stream)
    if not playlist or not host_of(playlist):
        return False
    merge_captions(stream, captions)
    return True
