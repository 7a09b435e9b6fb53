"""Fixtures for binary container tests."""

from __future__ import annotations

import io
import struct
from collections.abc import Callable

import pytest
from PIL import Image

GLB_MAGIC = 0x46546C67


def build_glb(chunks: list[tuple[int, bytes]], version: int = 2) -> bytes:
    """Assemble a container from raw ``(type, payload)`` chunks."""
    body = b"".join(struct.pack("<II", len(payload), kind) + payload for kind, payload in chunks)
    return struct.pack("<III", GLB_MAGIC, version, 12 + len(body)) + body


def build_glb_v1(scene: bytes, body: bytes, scene_format: int = 0) -> bytes:
    """Assemble a version 1 container with a 20-byte header."""
    length = 20 + len(scene) + len(body)
    return struct.pack("<IIIII", GLB_MAGIC, 1, length, len(scene), scene_format) + scene + body


@pytest.fixture
def png_bytes() -> bytes:
    """A 3x2 PNG image."""
    buffer = io.BytesIO()
    Image.new("RGB", (3, 2), (255, 0, 0)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def glb_builder() -> Callable[..., bytes]:
    return build_glb


@pytest.fixture
def glb_v1_builder() -> Callable[..., bytes]:
    return build_glb_v1
