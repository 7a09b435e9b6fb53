"""
Reading and writing assets on disk.

``.glb`` files (optionally gzip-wrapped) go through the container codec.
``.gltf`` files are JSON whose buffers, images and shaders are loaded from
data URIs or files next to the asset into pipeline sources.
"""

from __future__ import annotations

import base64
import binascii
import copy
import gzip
import json
from pathlib import Path
from typing import Any
from urllib.parse import unquote, unquote_to_bytes

from gltf_slim.errors import FormatError
from gltf_slim.extras import (
    add_pipeline_extras,
    get_pipeline_extras,
    get_source,
    remove_pipeline_extras,
    set_source,
)
from gltf_slim.glb.constants import BINARY_EXTENSION, ContainerVersion
from gltf_slim.glb.convert import gltf_to_glb
from gltf_slim.glb.reader import is_glb, parse_glb
from gltf_slim.model import Gltf, iter_elements
from gltf_slim.utils.constants import DEFAULT_BUFFER_NAME, SHADER_EXTENSIONS
from gltf_slim.utils.images import get_extension_for_mime_type, get_mime_type
from gltf_slim.utils.logging import log_debug

GZIP_MAGIC = b"\x1f\x8b"

# Collections whose elements may point at external data
_URI_CATEGORIES: tuple[str, ...] = ("buffers", "images", "shaders")

_DEFAULT_MIME_TYPES: dict[str, str] = {
    "buffers": "application/octet-stream",
    "images": "application/octet-stream",
    "shaders": "text/plain",
}


def decode_data_uri(uri: str) -> tuple[bytes, str]:
    """
    Decode a ``data:`` URI into its bytes and MIME type.

    Raises:
        FormatError: not a data URI, or invalid base64.
    """
    if not uri.startswith("data:"):
        raise FormatError(f"Not a data URI: {uri[:32]}")
    header, separator, payload = uri.partition(",")
    if not separator:
        raise FormatError("Data URI has no payload separator")
    meta = header[len("data:") :]
    mime_type = meta.split(";")[0] or "text/plain"
    if meta.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=True), mime_type
        except binascii.Error as e:
            raise FormatError(f"Invalid base64 data URI: {e}") from e
    return unquote_to_bytes(payload), mime_type


def encode_data_uri(data: bytes, mime_type: str) -> str:
    """Encode bytes as a base64 ``data:`` URI."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def _extension_for(category: str, element: dict[str, Any], mime_type: str) -> str:
    if category == "buffers":
        return ".bin"
    if category == "shaders":
        return SHADER_EXTENSIONS.get(element.get("type", 0), ".glsl")
    return get_extension_for_mime_type(mime_type) or ""


def load_uris(gltf: Gltf, base_dir: Path) -> Gltf:
    """
    Load the data behind every ``uri`` into pipeline sources.

    Elements that already carry a source (embedded in a container) are left
    alone. Relative file URIs resolve against ``base_dir``.

    Raises:
        FormatError: a data URI cannot be decoded.
        OSError: a referenced file cannot be read.
    """
    for category in _URI_CATEGORIES:
        for element_id, element in iter_elements(gltf, category):
            uri = element.get("uri")
            if not uri or get_source(element) is not None:
                continue
            if uri.startswith("data:"):
                source, mime_type = decode_data_uri(uri)
                set_source(element, source, _extension_for(category, element, mime_type))
            else:
                file_path = base_dir / unquote(uri)
                log_debug(f"Loading {category}[{element_id!r}] from {file_path}")
                set_source(element, file_path.read_bytes(), file_path.suffix.lower())
    return gltf


def read_asset(path: str | Path) -> Gltf:
    """
    Read a ``.glb`` or ``.gltf`` file into a document with pipeline extras.

    Gzip-wrapped input is detected by its magic bytes, whatever the suffix.

    Raises:
        FormatError: malformed container or JSON.
        OSError: the file (or a file it references) cannot be read.
    """
    path = Path(path)
    data = path.read_bytes()
    if data[:2] == GZIP_MAGIC:
        data = gzip.decompress(data)

    if is_glb(data):
        gltf = parse_glb(data)
    else:
        try:
            gltf = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise FormatError(f"{path.name} is neither binary glTF nor JSON: {e}") from e
        if not isinstance(gltf, dict):
            raise FormatError(f"{path.name} does not hold a glTF object")
        add_pipeline_extras(gltf)
    return load_uris(gltf, path.parent)


def _embed_as_data_uri(category: str, element: dict[str, Any]) -> None:
    source = get_source(element)
    if source is None:
        return
    mime_type = _DEFAULT_MIME_TYPES[category]
    extension = get_pipeline_extras(element).get("extension")
    if category != "buffers" and extension:
        mime_type = get_mime_type(extension) or mime_type
    element["uri"] = encode_data_uri(source, mime_type)
    element.pop("bufferView", None)
    extensions = element.get("extensions")
    if isinstance(extensions, dict):
        extensions.pop(BINARY_EXTENSION, None)
        if not extensions:
            del element["extensions"]


def get_gltf_json(gltf: Gltf) -> Gltf:
    """
    Self-contained JSON copy of a document: sources become data URIs.

    Images that live in a bufferView of an indexed document stay there.
    """
    document = copy.deepcopy(gltf)
    for category in _URI_CATEGORIES:
        for _, element in iter_elements(document, category):
            if category == "images" and "bufferView" in element and "uri" not in element:
                continue
            _embed_as_data_uri(category, element)

    extensions_used = document.get("extensionsUsed")
    if isinstance(extensions_used, list) and BINARY_EXTENSION in extensions_used:
        extensions_used.remove(BINARY_EXTENSION)
        if not extensions_used:
            del document["extensionsUsed"]

    return remove_pipeline_extras(document)


def write_asset(
    path: str | Path,
    gltf: Gltf,
    output_format: str = "glb",
    container_version: ContainerVersion | int | None = None,
    buffer_name: str = DEFAULT_BUFFER_NAME,
) -> int:
    """
    Write a document as ``glb`` or self-contained ``gltf``.

    Returns the number of bytes written. Writing a ``glb`` modifies the
    document (buffers merged, payloads embedded).
    """
    path = Path(path)
    if output_format == "glb":
        data = gltf_to_glb(gltf, container_version, buffer_name)
    elif output_format == "gltf":
        data = json.dumps(get_gltf_json(gltf), indent=2).encode("utf-8")
    else:
        raise ValueError(f"Unknown output format: {output_format}")

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return len(data)
