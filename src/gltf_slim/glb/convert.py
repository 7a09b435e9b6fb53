"""Convenience conversions between documents and binary containers."""

from __future__ import annotations

from gltf_slim.buffers import merge_buffers
from gltf_slim.extras import get_pipeline_extras, get_source, set_source
from gltf_slim.glb.constants import ContainerVersion
from gltf_slim.glb.legacy import get_binary_gltf
from gltf_slim.glb.padding import get_buffer_padded
from gltf_slim.glb.reader import parse_glb
from gltf_slim.glb.writer import write_glb
from gltf_slim.model import Gltf, add_to_collection, is_indexed_gltf, iter_elements
from gltf_slim.utils.constants import DEFAULT_BUFFER_NAME
from gltf_slim.utils.images import get_image_extension, get_mime_type


def glb_to_gltf(data: bytes) -> Gltf:
    """Decode a container of either version; sources stay in pipeline extras."""
    return parse_glb(data)


def embed_images(gltf: Gltf) -> Gltf:
    """
    Move loaded image payloads into buffers of an indexed document.

    Each image gets its own buffer and bufferView; ``merge_buffers`` later
    folds them into the single container buffer.
    """
    for image_id, image in list(iter_elements(gltf, "images")):
        source = get_source(image)
        if source is None or "bufferView" in image:
            continue
        buffer = {"byteLength": len(source)}
        set_source(buffer, get_buffer_padded(source), ".bin")
        buffer_id = add_to_collection(gltf, "buffers", buffer, f"image_{image_id}")
        view = {"buffer": buffer_id, "byteOffset": 0, "byteLength": len(source)}
        image["bufferView"] = add_to_collection(gltf, "bufferViews", view, f"image_{image_id}")
        image.pop("uri", None)
        extension = get_pipeline_extras(image).get("extension") or get_image_extension(source)
        mime_type = get_mime_type(extension) if extension else None
        if mime_type is not None:
            image["mimeType"] = mime_type
    return gltf


def gltf_to_glb(
    gltf: Gltf,
    version: ContainerVersion | int | None = None,
    buffer_name: str = DEFAULT_BUFFER_NAME,
) -> bytes:
    """
    Pack a document with loaded sources into a binary container.

    ``version=None`` picks version 1 for named documents and version 2 for
    indexed ones. The document is modified in place (buffers merged, images
    embedded).
    """
    if version is None:
        version = ContainerVersion.V2 if is_indexed_gltf(gltf) else ContainerVersion.V1
    version = ContainerVersion(version)

    if version is ContainerVersion.V1:
        return get_binary_gltf(gltf).glb

    embed_images(gltf)
    if gltf.get("buffers"):
        merge_buffers(gltf, buffer_name)
    return write_glb(gltf)
