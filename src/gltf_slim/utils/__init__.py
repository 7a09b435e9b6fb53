"""Shared helpers: logging, constants, statistics and image sniffing."""

from gltf_slim.utils.images import get_image_dimensions, get_image_extension, get_mime_type
from gltf_slim.utils.stats import RemovalStats

__all__ = [
    "RemovalStats",
    "get_image_dimensions",
    "get_image_extension",
    "get_mime_type",
]
