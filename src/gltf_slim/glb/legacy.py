"""
Version 1 binary glTF: embed shaders and images with ``KHR_binary_glTF``.

The body of a version 1 container is a single buffer, ``binary_glTF``. All
existing buffers are merged into it and cut down to the ranges their
bufferViews cover, then each shader and image payload is appended at a 4-byte
aligned offset behind a new bufferView. Payloads that were already embedded
give up their old views first, so packing a parsed container again does not
grow it.
"""

from __future__ import annotations

import itertools
import struct
from collections.abc import Iterator
from typing import Any, NamedTuple

from gltf_slim.analyzers.references import collect_ids, iter_references
from gltf_slim.buffers import iter_buffer_view_likes, merge_buffers
from gltf_slim.errors import FormatError
from gltf_slim.extras import get_pipeline_extras, get_source, remove_pipeline_extras
from gltf_slim.glb.constants import (
    BINARY_BUFFER_ID,
    BINARY_BUFFER_VIEW_PREFIX,
    BINARY_EXTENSION,
    GLB_MAGIC,
    LEGACY_HEADER_LENGTH,
    SCENE_FORMAT_JSON,
    ContainerVersion,
)
from gltf_slim.glb.padding import get_buffer_padded, get_json_buffer_padded, get_padded_length
from gltf_slim.model import ElementId, Gltf, is_indexed_gltf, iter_elements
from gltf_slim.utils.constants import COMPRESSED_IMAGE_EXTENSIONS
from gltf_slim.utils.images import get_image_dimensions, get_image_extension, get_mime_type
from gltf_slim.utils.logging import log_detail, log_warn


class BinaryGltf(NamedTuple):
    """A version 1 container and its three sections."""

    glb: bytes
    header: bytes
    scene: bytes
    body: bytes


def _buffer_view_ids(buffer_views: dict[str, Any]) -> Iterator[str]:
    """Fresh ``binary_bufferView<N>`` ids that do not collide with existing ones."""
    for n in itertools.count():
        view_id = f"{BINARY_BUFFER_VIEW_PREFIX}{n}"
        if view_id not in buffer_views:
            yield view_id


def _release_embedded_views(gltf: Gltf, categories: tuple[str, ...]) -> None:
    """
    Detach loaded elements of ``categories`` from their current bufferViews.

    They are embedded again behind fresh views, so an old view is deleted
    unless something else still references it.
    """
    released: set[ElementId] = set()
    for category in categories:
        for _, element in iter_elements(gltf, category):
            extensions = element.get("extensions")
            binary = extensions.get(BINARY_EXTENSION) if isinstance(extensions, dict) else None
            if not isinstance(binary, dict) or get_source(element) is None:
                continue
            view_id = binary.pop("bufferView", None)
            if view_id is not None:
                released.add(view_id)

    still_used = collect_ids(iter_references(gltf, "bufferViews"))
    for view_id in released - still_used:
        gltf["bufferViews"].pop(view_id, None)


def _compact_body(gltf: Gltf, body: bytes) -> bytearray:
    """Copy only the byte ranges that bufferViews of ``binary_glTF`` cover."""
    compacted = bytearray()
    for buffer_view in iter_buffer_view_likes(gltf):
        if buffer_view.get("buffer") != BINARY_BUFFER_ID:
            continue
        start = buffer_view.get("byteOffset", 0)
        end = start + buffer_view.get("byteLength", len(body) - start)
        compacted.extend(b"\0" * (get_padded_length(len(compacted)) - len(compacted)))
        buffer_view["byteOffset"] = len(compacted)
        compacted.extend(body[start:end])
    return compacted


def _describe_image(binary: dict[str, Any], image: dict[str, Any], source: bytes) -> None:
    """Add mimeType and, unless the image is a compressed container, its size."""
    extension = get_pipeline_extras(image).get("extension") or get_image_extension(source)
    if extension is None:
        log_warn("Embedded image has an unknown format")
        return
    mime_type = get_mime_type(extension)
    if mime_type is not None:
        binary["mimeType"] = mime_type
    if extension in COMPRESSED_IMAGE_EXTENSIONS:
        return
    try:
        binary["width"], binary["height"] = get_image_dimensions(source)
    except OSError as e:
        log_warn(f"Cannot read image dimensions: {e}")


def _embed(gltf: Gltf, category: str, body: bytearray, view_ids: Iterator[str]) -> int:
    buffer_views = gltf["bufferViews"]
    embedded = 0
    for element_id, element in iter_elements(gltf, category):
        source = get_source(element)
        if source is None:
            log_warn(f"{category}[{element_id!r}] has no loaded data and is not embedded")
            continue

        body.extend(b"\0" * (get_padded_length(len(body)) - len(body)))
        view_id = next(view_ids)
        buffer_views[view_id] = {
            "buffer": BINARY_BUFFER_ID,
            "byteOffset": len(body),
            "byteLength": len(source),
        }
        body.extend(source)

        element["uri"] = "data:,"
        extensions = element.setdefault("extensions", {})
        binary = extensions.setdefault(BINARY_EXTENSION, {})
        binary["bufferView"] = view_id
        if category == "images":
            _describe_image(binary, element, source)
        embedded += 1
    return embedded


def _add_extension_used(gltf: Gltf, extension: str) -> None:
    extensions_used = gltf.setdefault("extensionsUsed", [])
    if extension not in extensions_used:
        extensions_used.append(extension)


def get_binary_gltf(gltf: Gltf, embed: bool = True, embed_image: bool = True) -> BinaryGltf:
    """
    Pack a named (version 1) document into a version 1 container.

    The document is modified in place: buffers are merged into
    ``binary_glTF``, embedded shaders and images point at new bufferViews,
    and pipeline extras are stripped.

    Args:
        gltf: Document with pipeline extras and loaded sources
        embed: Embed shaders into the body
        embed_image: Embed images into the body

    Raises:
        FormatError: the document uses indexed (version 2) collections.
    """
    if is_indexed_gltf(gltf):
        raise FormatError("Version 1 containers need named collections")

    gltf.setdefault("bufferViews", {})
    gltf.setdefault("buffers", {})
    categories = ("shaders",) * embed + ("images",) * embed_image
    _release_embedded_views(gltf, categories)
    merge_buffers(gltf, BINARY_BUFFER_ID)
    buffer = gltf["buffers"][BINARY_BUFFER_ID]
    body = _compact_body(gltf, get_source(buffer) or b"")

    view_ids = _buffer_view_ids(gltf["bufferViews"])
    if embed:
        count = _embed(gltf, "shaders", body, view_ids)
        log_detail(f"Embedded {count} shaders")
    if embed_image:
        count = _embed(gltf, "images", body, view_ids)
        log_detail(f"Embedded {count} images")

    buffer["byteLength"] = len(body)
    _add_extension_used(gltf, BINARY_EXTENSION)
    remove_pipeline_extras(gltf)

    scene = get_json_buffer_padded(gltf, LEGACY_HEADER_LENGTH)
    padded_body = get_buffer_padded(bytes(body))
    length = LEGACY_HEADER_LENGTH + len(scene) + len(padded_body)
    header = struct.pack(
        "<IIIII", GLB_MAGIC, ContainerVersion.V1, length, len(scene), SCENE_FORMAT_JSON
    )
    return BinaryGltf(b"".join([header, scene, padded_body]), header, scene, padded_body)
