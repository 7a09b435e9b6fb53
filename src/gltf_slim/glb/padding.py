"""4-byte padding for blobs concatenated into a binary container."""

from __future__ import annotations

import json
from typing import Any

from gltf_slim.glb.constants import ALIGNMENT


def get_padded_length(length: int, boundary: int = ALIGNMENT) -> int:
    """Smallest multiple of ``boundary`` that is >= ``length``."""
    remainder = length % boundary
    return length if remainder == 0 else length + boundary - remainder


def get_buffer_padded(data: bytes, boundary: int = ALIGNMENT, fill: bytes = b"\0") -> bytes:
    """Pad ``data`` with ``fill`` bytes up to the next ``boundary``."""
    if len(fill) != 1:
        raise ValueError(f"fill must be a single byte, got {fill!r}")
    padding = get_padded_length(len(data), boundary) - len(data)
    return bytes(data) + fill * padding


def get_json_buffer_padded(
    document: Any, byte_offset: int = 0, boundary: int = ALIGNMENT
) -> bytes:
    """
    Serialize a JSON document to UTF-8 padded with trailing spaces.

    ``byte_offset`` is where the JSON lands in the container; the padding is
    chosen so that ``byte_offset + len(result)`` is a multiple of ``boundary``.
    """
    encoded = json.dumps(document, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    end = get_padded_length(byte_offset + len(encoded), boundary)
    return encoded + b" " * (end - byte_offset - len(encoded))
