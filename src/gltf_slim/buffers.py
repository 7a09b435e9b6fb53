"""Merge every buffer of a document into one contiguous buffer."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from gltf_slim.extras import get_source, set_source
from gltf_slim.model import ElementId, Gltf, is_indexed_gltf, iter_elements
from gltf_slim.utils.constants import DEFAULT_BUFFER_NAME
from gltf_slim.utils.logging import log_debug, log_warn

MESHOPT_EXTENSION = "EXT_meshopt_compression"


def iter_buffer_view_likes(gltf: Gltf) -> Iterator[dict[str, Any]]:
    """bufferViews, plus meshopt extension objects that address a buffer the same way."""
    for _, buffer_view in iter_elements(gltf, "bufferViews"):
        yield buffer_view
        extensions = buffer_view.get("extensions")
        if isinstance(extensions, dict) and isinstance(extensions.get(MESHOPT_EXTENSION), dict):
            yield extensions[MESHOPT_EXTENSION]


def merge_buffers(gltf: Gltf, buffer_name: str = DEFAULT_BUFFER_NAME) -> Gltf:
    """
    Concatenate all buffer payloads, in collection order, into a single buffer.

    Every bufferView is repointed at the merged buffer (``buffer_name`` for
    named documents, index 0 for indexed ones) and its ``byteOffset`` shifted
    by the total length of the buffers that preceded its own. Buffers without
    a loaded source contribute no bytes.

    Merging an already merged document again is not supported.
    """
    indexed = is_indexed_gltf(gltf)
    new_id: ElementId = 0 if indexed else buffer_name

    offsets: dict[ElementId, int] = {}
    sources: list[bytes] = []
    total = 0
    for buffer_id, buffer in iter_elements(gltf, "buffers"):
        offsets[buffer_id] = total
        source = get_source(buffer)
        if source is None:
            log_warn(f"Buffer {buffer_id!r} has no loaded data, merging it as empty")
            continue
        sources.append(source)
        total += len(source)

    for buffer_view in iter_buffer_view_likes(gltf):
        buffer_id = buffer_view.get("buffer")
        if buffer_id not in offsets:
            log_debug(f"bufferView points at missing buffer {buffer_id!r}, left as is")
            continue
        buffer_view["byteOffset"] = buffer_view.get("byteOffset", 0) + offsets[buffer_id]
        buffer_view["buffer"] = new_id

    merged: dict[str, Any] = {"byteLength": total}
    if indexed:
        merged["name"] = buffer_name
        gltf["buffers"] = [merged]
    else:
        merged["type"] = "arraybuffer"
        gltf["buffers"] = {buffer_name: merged}
    set_source(merged, b"".join(sources), ".bin")
    return gltf
