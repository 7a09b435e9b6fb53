"""Encode a document as a version 2 binary glTF container."""

from __future__ import annotations

import copy
import struct

from gltf_slim.errors import FormatError
from gltf_slim.extras import get_source, remove_pipeline_extras
from gltf_slim.glb.constants import (
    CHUNK_HEADER_LENGTH,
    CHUNK_TYPE_BIN,
    CHUNK_TYPE_JSON,
    GLB_MAGIC,
    HEADER_LENGTH,
    ContainerVersion,
)
from gltf_slim.glb.padding import get_buffer_padded, get_json_buffer_padded
from gltf_slim.model import Gltf, is_indexed_gltf


def _embedded_buffer_source(gltf: Gltf) -> bytes | None:
    """Source of ``buffers[0]`` when it has no external uri."""
    buffers = gltf.get("buffers")
    if not isinstance(buffers, list) or not buffers or "uri" in buffers[0]:
        return None
    return get_source(buffers[0])


def _chunk(chunk_type: int, payload: bytes) -> bytes:
    return struct.pack("<II", len(payload), chunk_type) + payload


def write_glb(gltf: Gltf, binary: bytes | None = None) -> bytes:
    """
    Serialize an indexed document into a version 2 container.

    ``binary`` becomes the BIN chunk; when omitted, the source of an
    embedded ``buffers[0]`` is used. The document itself is not modified:
    the JSON chunk is written from a copy with pipeline extras stripped.

    Raises:
        FormatError: the document uses named (version 1) ids.
    """
    if not is_indexed_gltf(gltf):
        raise FormatError("Version 2 containers need indexed collections")

    from_buffer = binary is None
    if from_buffer:
        binary = _embedded_buffer_source(gltf)

    document = remove_pipeline_extras(copy.deepcopy(gltf))
    if from_buffer and binary is not None:
        document["buffers"][0]["byteLength"] = len(binary)

    json_chunk = get_json_buffer_padded(document, HEADER_LENGTH + CHUNK_HEADER_LENGTH)
    chunks = [_chunk(CHUNK_TYPE_JSON, json_chunk)]
    if binary:
        chunks.append(_chunk(CHUNK_TYPE_BIN, get_buffer_padded(binary)))

    length = HEADER_LENGTH + sum(len(chunk) for chunk in chunks)
    header = struct.pack("<III", GLB_MAGIC, ContainerVersion.V2, length)
    return b"".join([header, *chunks])
