"""Constants and defaults for glTF processing."""

from typing import TypedDict

# Default name of the single buffer produced by merge_buffers
DEFAULT_BUFFER_NAME: str = "buffer"

# Image containers that are never read for width/height
COMPRESSED_IMAGE_EXTENSIONS: frozenset[str] = frozenset({".ktx", ".ktx2", ".crn"})

# Extensions mimetypes does not know about
EXTRA_MIME_TYPES: dict[str, str] = {
    ".ktx": "image/ktx",
    ".ktx2": "image/ktx2",
    ".crn": "image/crn",
    ".webp": "image/webp",
    ".glsl": "text/plain",
    ".vert": "text/plain",
    ".frag": "text/plain",
    ".bin": "application/octet-stream",
}

# Shader stage constants (WebGL) -> file extension for embedded shaders
SHADER_EXTENSIONS: dict[int, str] = {
    35632: ".frag",  # FRAGMENT_SHADER
    35633: ".vert",  # VERTEX_SHADER
}


class ProcessingDefaults(TypedDict):
    """Default switches for processing one asset."""

    output_format: str
    container_version: int | None
    buffer_name: str
    remove_unused: bool
    sanitize_attributes: bool
    quiet: bool


DEFAULT_CONFIG: ProcessingDefaults = {
    "output_format": "glb",  # glb | gltf
    "container_version": None,  # None = pick from the id scheme of the input
    "buffer_name": DEFAULT_BUFFER_NAME,
    "remove_unused": True,  # Prune unreferenced elements
    "sanitize_attributes": True,  # Drop attributes no technique consumes
    "quiet": False,
}
