"""Binary glTF container codec (versions 1 and 2)."""

from gltf_slim.glb.constants import ContainerVersion
from gltf_slim.glb.convert import embed_images, glb_to_gltf, gltf_to_glb
from gltf_slim.glb.legacy import BinaryGltf, get_binary_gltf
from gltf_slim.glb.padding import get_buffer_padded, get_json_buffer_padded, get_padded_length
from gltf_slim.glb.reader import GlbHeader, is_glb, parse_glb, read_glb_header
from gltf_slim.glb.writer import write_glb

__all__ = [
    "BinaryGltf",
    "ContainerVersion",
    "GlbHeader",
    "embed_images",
    "get_binary_gltf",
    "get_buffer_padded",
    "get_json_buffer_padded",
    "get_padded_length",
    "glb_to_gltf",
    "gltf_to_glb",
    "is_glb",
    "parse_glb",
    "read_glb_header",
    "write_glb",
]
