"""Decode binary glTF containers (version 1 and 2) into an in-memory document."""

from __future__ import annotations

import json
import struct
from dataclasses import dataclass
from typing import Any

from gltf_slim.errors import FormatError, ReferenceInconsistency
from gltf_slim.extras import add_pipeline_extras, get_source, set_source
from gltf_slim.glb.constants import (
    BINARY_BUFFER_ID,
    BINARY_EXTENSION,
    CHUNK_HEADER_LENGTH,
    CHUNK_TYPE_BIN,
    CHUNK_TYPE_JSON,
    GLB_MAGIC,
    HEADER_LENGTH,
    LEGACY_HEADER_LENGTH,
    SCENE_FORMAT_JSON,
    ContainerVersion,
)
from gltf_slim.model import Gltf, get_element, iter_elements
from gltf_slim.utils.constants import SHADER_EXTENSIONS
from gltf_slim.utils.images import get_extension_for_mime_type
from gltf_slim.utils.logging import log_debug, log_warn


@dataclass(frozen=True)
class GlbHeader:
    """The 12-byte header shared by both container versions."""

    magic: int
    version: ContainerVersion
    length: int


def is_glb(data: bytes) -> bool:
    """True if ``data`` starts with the binary glTF magic."""
    return len(data) >= 4 and struct.unpack_from("<I", data, 0)[0] == GLB_MAGIC


def read_glb_header(data: bytes) -> GlbHeader:
    """
    Read and validate the container header.

    Raises:
        FormatError: input shorter than a header, wrong magic, a version other
            than 1 or 2, or a declared length that differs from ``len(data)``.
    """
    if len(data) < HEADER_LENGTH:
        raise FormatError(f"Binary glTF is too short: {len(data)} bytes")

    magic, version, length = struct.unpack_from("<III", data, 0)
    if magic != GLB_MAGIC:
        raise FormatError("File is not valid binary glTF")
    try:
        container_version = ContainerVersion(version)
    except ValueError:
        raise FormatError(f"Binary glTF version is not 1 or 2: {version}") from None
    if length != len(data):
        raise FormatError(
            f"Binary glTF declares {length} bytes but {len(data)} were given"
        )
    return GlbHeader(magic, container_version, length)


def _load_json(chunk: bytes) -> Gltf:
    try:
        document = json.loads(chunk.rstrip(b"\x00").decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise FormatError(f"Binary glTF JSON is invalid: {e}") from e
    if not isinstance(document, dict):
        raise FormatError("Binary glTF JSON is not an object")
    return document


# =============================================================================
# Version 1
# =============================================================================


def _embedded_extension(category: str, element: dict[str, Any], binary: dict[str, Any]) -> str | None:
    if category == "images":
        mime_type = binary.get("mimeType") or element.get("mimeType")
        return get_extension_for_mime_type(mime_type) if mime_type else None
    return SHADER_EXTENSIONS.get(element.get("type", 0), ".glsl")


def resolve_embedded_sources(gltf: Gltf) -> Gltf:
    """
    Load images and shaders embedded with ``KHR_binary_glTF`` into their sources.

    The bytes are sliced out of the buffer behind the referenced bufferView.
    Elements whose bufferView or buffer cannot be found are left untouched.
    """
    for category in ("images", "shaders"):
        for element_id, element in iter_elements(gltf, category):
            binary = (element.get("extensions") or {}).get(BINARY_EXTENSION)
            if not isinstance(binary, dict) or "bufferView" not in binary:
                continue
            try:
                buffer_view = get_element(gltf, "bufferViews", binary["bufferView"])
                buffer = get_element(gltf, "buffers", buffer_view.get("buffer"))
            except ReferenceInconsistency as e:
                log_warn(f"Cannot resolve embedded {category}[{element_id!r}]: {e}")
                continue
            source = get_source(buffer)
            if source is None:
                log_debug(f"Buffer behind {category}[{element_id!r}] has no data")
                continue
            start = buffer_view.get("byteOffset", 0)
            end = start + buffer_view.get("byteLength", len(source) - start)
            set_source(element, source[start:end], _embedded_extension(category, element, binary))
    return gltf


def _parse_v1(data: bytes) -> Gltf:
    if len(data) < LEGACY_HEADER_LENGTH:
        raise FormatError(f"Binary glTF version 1 header is truncated: {len(data)} bytes")

    scene_length, scene_format = struct.unpack_from("<II", data, HEADER_LENGTH)
    if scene_format != SCENE_FORMAT_JSON:
        raise FormatError(f"Binary glTF scene format is not JSON: {scene_format}")
    scene_end = LEGACY_HEADER_LENGTH + scene_length
    if scene_end > len(data):
        raise FormatError(
            f"Binary glTF scene of {scene_length} bytes exceeds the container"
        )

    gltf = _load_json(data[LEGACY_HEADER_LENGTH:scene_end])
    body = data[scene_end:]
    add_pipeline_extras(gltf)

    buffers = gltf.setdefault("buffers", {})
    if not isinstance(buffers, dict):
        raise FormatError("Binary glTF version 1 buffers must be an object")
    # Some older files name the body buffer after the extension
    buffer = buffers.get(BINARY_BUFFER_ID, buffers.get(BINARY_EXTENSION))
    if buffer is None:
        buffer = buffers[BINARY_BUFFER_ID] = {"byteLength": len(body)}
    set_source(buffer, body, ".bin")
    return resolve_embedded_sources(gltf)


# =============================================================================
# Version 2
# =============================================================================


def _parse_v2(data: bytes) -> Gltf:
    gltf: Gltf | None = None
    binary: bytes | None = None

    offset = HEADER_LENGTH
    while offset < len(data):
        if offset + CHUNK_HEADER_LENGTH > len(data):
            raise FormatError(f"Truncated chunk header at byte {offset}")
        chunk_length, chunk_type = struct.unpack_from("<II", data, offset)
        offset += CHUNK_HEADER_LENGTH
        end = offset + chunk_length
        if end > len(data):
            raise FormatError(
                f"Chunk at byte {offset - CHUNK_HEADER_LENGTH} declares {chunk_length} bytes, "
                f"only {len(data) - offset} remain"
            )
        chunk = data[offset:end]
        offset = end

        if chunk_type == CHUNK_TYPE_JSON:
            if gltf is None:
                gltf = _load_json(chunk)
            else:
                log_warn("Ignoring additional JSON chunk")
        elif chunk_type == CHUNK_TYPE_BIN:
            if binary is None:
                binary = chunk
            else:
                log_warn("Ignoring additional BIN chunk")
        else:
            log_debug(f"Skipping unknown chunk type 0x{chunk_type:08X}")

    if gltf is None:
        raise FormatError("Binary glTF has no JSON chunk")

    add_pipeline_extras(gltf)
    if binary is not None:
        buffers = gltf.get("buffers")
        if not buffers:
            buffers = gltf["buffers"] = [{"byteLength": len(binary)}]
        if not isinstance(buffers, list):
            raise FormatError("Binary glTF version 2 buffers must be an array")
        buffer = buffers[0]
        declared = buffer.get("byteLength")
        # BIN chunks carry up to 3 bytes of alignment padding
        if isinstance(declared, int) and 0 <= declared <= len(binary):
            binary = binary[:declared]
        set_source(buffer, binary, ".bin")
    return gltf


def parse_glb(data: bytes) -> Gltf:
    """
    Parse a binary glTF container into a document with pipeline extras.

    Version 1 attaches its body to the ``binary_glTF`` buffer; version 2
    attaches its BIN chunk to ``buffers[0]``. The document keeps the id scheme
    it was written with.

    Raises:
        FormatError: the container is malformed.
    """
    data = bytes(data)
    header = read_glb_header(data)
    if header.version is ContainerVersion.V1:
        return _parse_v1(data)
    return _parse_v2(data)
