"""
Asset graph types and element access helpers.

A glTF document is kept as the parsed JSON mapping and mutated in place.
Top-level collections come in two shapes depending on the format generation:

- generation 1 (glTF 1.0): ``dict`` keyed by stable string ids
- generation 2 (glTF 2.0): ``list`` addressed by dense integer indices

The helpers below hide that difference so pruning and remapping are written
once for both.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any, TypeAlias, TypedDict

from gltf_slim.errors import ReferenceInconsistency

ElementId: TypeAlias = int | str
Element: TypeAlias = dict[str, Any]
Collection: TypeAlias = list[Any] | dict[str, Any]
Gltf: TypeAlias = dict[str, Any]


class PipelineExtras(TypedDict, total=False):
    """Transient per-element side channel, never serialized."""

    source: bytes
    extension: str
    delete_extras: bool
    replaced_extras: Any


class Scene(TypedDict, total=False):
    nodes: list[ElementId]


class Node(TypedDict, total=False):
    children: list[ElementId]
    skeletons: list[ElementId]
    skin: ElementId
    camera: ElementId
    mesh: ElementId
    meshes: list[ElementId]
    jointName: str


class Primitive(TypedDict, total=False):
    attributes: dict[str, ElementId]
    indices: ElementId
    material: ElementId
    targets: list[dict[str, ElementId]]
    extensions: dict[str, Any]


class Mesh(TypedDict, total=False):
    primitives: list[Primitive]


class Skin(TypedDict, total=False):
    inverseBindMatrices: ElementId
    joints: list[ElementId]
    skeleton: ElementId


class Accessor(TypedDict, total=False):
    bufferView: ElementId
    byteOffset: int
    sparse: dict[str, Any]


class BufferView(TypedDict, total=False):
    buffer: ElementId
    byteOffset: int
    byteLength: int


class Buffer(TypedDict, total=False):
    byteLength: int
    uri: str
    name: str
    type: str
    extras: dict[str, Any]


class Material(TypedDict, total=False):
    technique: ElementId
    values: dict[str, Any]


class TechniqueParameter(TypedDict, total=False):
    semantic: str
    value: Any
    node: ElementId
    type: int


class Technique(TypedDict, total=False):
    parameters: dict[str, TechniqueParameter]
    program: ElementId


class Program(TypedDict, total=False):
    fragmentShader: ElementId
    vertexShader: ElementId


class Texture(TypedDict, total=False):
    source: ElementId
    sampler: ElementId


class Image(TypedDict, total=False):
    uri: str
    bufferView: ElementId
    mimeType: str
    extensions: dict[str, Any]
    extras: dict[str, Any]


class Shader(TypedDict, total=False):
    uri: str
    type: int
    bufferView: ElementId
    extensions: dict[str, Any]
    extras: dict[str, Any]


class AnimationChannel(TypedDict, total=False):
    sampler: ElementId
    target: dict[str, Any]


class AnimationSampler(TypedDict, total=False):
    input: ElementId
    output: ElementId
    interpolation: str


class Animation(TypedDict, total=False):
    channels: list[AnimationChannel]
    samplers: list[AnimationSampler] | dict[str, AnimationSampler]
    parameters: dict[str, ElementId]


# Top-level collections that hold elements addressable by id
CATEGORIES: tuple[str, ...] = (
    "nodes",
    "scenes",
    "skins",
    "cameras",
    "meshes",
    "accessors",
    "materials",
    "bufferViews",
    "techniques",
    "textures",
    "buffers",
    "programs",
    "images",
    "samplers",
    "shaders",
    "animations",
)


def is_indexed(collection: object) -> bool:
    """True when a collection is addressed by dense integer indices."""
    return isinstance(collection, list)


def is_indexed_gltf(gltf: Gltf) -> bool:
    """Guess the id scheme of a whole document from its first collection."""
    for category in CATEGORIES:
        collection = gltf.get(category)
        if collection is not None and len(collection) > 0:
            return is_indexed(collection)
    version = str(gltf.get("asset", {}).get("version", "2.0"))
    return not version.startswith("1")


def iter_collection(collection: Collection | None) -> Iterator[tuple[ElementId, Any]]:
    """Yield ``(id, element)`` pairs for either collection shape."""
    if collection is None:
        return
    if isinstance(collection, list):
        yield from enumerate(collection)
    else:
        yield from collection.items()


def iter_elements(gltf: Gltf, category: str) -> Iterator[tuple[ElementId, Any]]:
    """Yield ``(id, element)`` pairs of a top-level collection."""
    yield from iter_collection(gltf.get(category))


def get_element(gltf: Gltf, category: str, element_id: ElementId | None) -> Any:
    """Look up one element, raising ReferenceInconsistency if it is missing."""
    collection = gltf.get(category)
    if collection is None or element_id is None:
        raise ReferenceInconsistency(category, element_id)
    if isinstance(collection, list):
        if (
            not isinstance(element_id, int)
            or isinstance(element_id, bool)
            or not 0 <= element_id < len(collection)
        ):
            raise ReferenceInconsistency(category, element_id)
        return collection[element_id]
    try:
        return collection[element_id]
    except (KeyError, TypeError):
        raise ReferenceInconsistency(category, element_id) from None


def iter_primitives(gltf: Gltf) -> Iterator[Primitive]:
    """Yield every primitive of every mesh."""
    for _, mesh in iter_elements(gltf, "meshes"):
        yield from mesh.get("primitives") or []


def add_to_collection(gltf: Gltf, category: str, element: Any, name: str) -> ElementId:
    """Append an element, returning its new id (``name`` for named collections)."""
    collection = gltf.get(category)
    if collection is None:
        collection = [] if is_indexed_gltf(gltf) else {}
        gltf[category] = collection
    if isinstance(collection, list):
        collection.append(element)
        return len(collection) - 1
    collection[name] = element
    return name
