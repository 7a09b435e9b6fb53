"""Binary container (GLB) layout constants."""

from enum import IntEnum

# GLB magic number (ASCII "glTF")
GLB_MAGIC: int = 0x46546C67

# GLB chunk types
CHUNK_TYPE_JSON: int = 0x4E4F534A  # ASCII "JSON"
CHUNK_TYPE_BIN: int = 0x004E4942  # ASCII "BIN\0"

# Header sizes in bytes
HEADER_LENGTH: int = 12
LEGACY_HEADER_LENGTH: int = 20  # + sceneLength, sceneFormat
CHUNK_HEADER_LENGTH: int = 8

# Version 1 sceneFormat value meaning JSON
SCENE_FORMAT_JSON: int = 0

# Alignment of every chunk and embedded payload
ALIGNMENT: int = 4

# Version 1 binary body buffer and its extension
BINARY_EXTENSION: str = "KHR_binary_glTF"
BINARY_BUFFER_ID: str = "binary_glTF"
BINARY_BUFFER_VIEW_PREFIX: str = "binary_bufferView"


class ContainerVersion(IntEnum):
    """Binary container format generation."""

    V1 = 1
    V2 = 2
