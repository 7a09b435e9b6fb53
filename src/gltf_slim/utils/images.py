"""Image sniffing helpers: extension, MIME type and dimensions from raw bytes."""

from __future__ import annotations

import io
import mimetypes

from PIL import Image

from gltf_slim.utils.constants import EXTRA_MIME_TYPES

# (magic prefix, extension) pairs checked in order
_IMAGE_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", ".png"),
    (b"\xff\xd8\xff", ".jpg"),
    (b"GIF87a", ".gif"),
    (b"GIF89a", ".gif"),
    (b"BM", ".bmp"),
    (b"\xabKTX 11\xbb\r\n\x1a\n", ".ktx"),
    (b"\xabKTX 20\xbb\r\n\x1a\n", ".ktx2"),
    (b"Hx", ".crn"),
)


def get_image_extension(data: bytes) -> str | None:
    """Guess an image file extension from its magic bytes."""
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return ".webp"
    for signature, extension in _IMAGE_SIGNATURES:
        if data.startswith(signature):
            return extension
    return None


def get_mime_type(extension: str) -> str | None:
    """Look up the MIME type for a file extension such as ``.png``."""
    extension = extension.lower()
    if not extension.startswith("."):
        extension = "." + extension
    if extension in EXTRA_MIME_TYPES:
        return EXTRA_MIME_TYPES[extension]
    mime_type, _ = mimetypes.guess_type(f"file{extension}")
    return mime_type


def get_extension_for_mime_type(mime_type: str) -> str | None:
    """Reverse lookup used when a data URI or KHR_binary_glTF names a MIME type."""
    for extension, known in EXTRA_MIME_TYPES.items():
        if known == mime_type and known.startswith("image/"):
            return extension
    if mime_type == "image/jpeg":
        return ".jpg"
    return mimetypes.guess_extension(mime_type)


def get_image_dimensions(data: bytes) -> tuple[int, int]:
    """
    Read width and height from encoded image bytes without decoding pixels.

    Raises:
        OSError: Pillow cannot identify the image format.
    """
    with Image.open(io.BytesIO(data)) as img:
        width, height = img.size
    return width, height
