"""
Reference index: which elements of a category are referenced, and from where.

Every "what references what" edge lives in one table (``_REFERENCE_FINDERS``).
Each finder yields ``ReferenceSite`` objects pointing at the exact container
slot that holds a reference. The same sites are used to compute used-id sets
and, after an indexed collection is compacted, to rewrite the references.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from gltf_slim.errors import ReferenceInconsistency
from gltf_slim.model import ElementId, Gltf, get_element, iter_collection, iter_elements
from gltf_slim.utils.logging import log_debug


def is_element_id(value: object) -> bool:
    """True for values usable as an element id (int index or string key)."""
    return isinstance(value, (int, str)) and not isinstance(value, bool)


@dataclass(frozen=True)
class ReferenceSite:
    """
    One place in the document that holds reference(s) to a target category.

    ``container[key]`` is the reference when ``key`` is set; with ``key=None``
    every value (dict) or item (list) of ``container`` is a reference.

    Weak sites are rewritten when the target collection is compacted but do
    not keep their target alive (e.g. inputs of an animation sampler that no
    channel uses).
    """

    container: Any
    key: str | None = None
    weak: bool = False

    def ids(self) -> list[ElementId]:
        """Element ids referenced from this site."""
        if self.key is None:
            if isinstance(self.container, dict):
                values: Iterable[Any] = self.container.values()
            else:
                values = self.container
            return [value for value in values if is_element_id(value)]
        value = self.container.get(self.key)
        return [value] if is_element_id(value) else []

    def rewrite(self, remap: Mapping[ElementId, ElementId]) -> None:
        """Point references at their new ids; drop references to removed ids."""
        if self.key is None:
            if isinstance(self.container, dict):
                for name, value in list(self.container.items()):
                    if not is_element_id(value):
                        continue
                    if value in remap:
                        self.container[name] = remap[value]
                    else:
                        del self.container[name]
            else:
                self.container[:] = [
                    remap[value]
                    for value in self.container
                    if is_element_id(value) and value in remap
                ]
            return
        value = self.container.get(self.key)
        if not is_element_id(value):
            return
        if value in remap:
            self.container[self.key] = remap[value]
        else:
            del self.container[self.key]


def _field_site(element: Any, field: str) -> Iterator[ReferenceSite]:
    """Yield a site for ``element[field]`` whatever its shape."""
    if not isinstance(element, dict) or field not in element:
        return
    value = element[field]
    if isinstance(value, (dict, list)):
        yield ReferenceSite(value)
    elif is_element_id(value):
        yield ReferenceSite(element, field)


def iter_field_references(gltf: Gltf, category: str, field: str) -> Iterator[ReferenceSite]:
    """Sites for ``field`` on every element of ``category``."""
    for _, element in iter_elements(gltf, category):
        yield from _field_site(element, field)


def collect_ids(sites: Iterable[ReferenceSite]) -> set[ElementId]:
    """Union of the ids referenced from strong sites."""
    used: set[ElementId] = set()
    for site in sites:
        if not site.weak:
            used.update(site.ids())
    return used


def find_used_ids(gltf: Gltf, category: str, field: str) -> set[ElementId]:
    """
    Collect the ids referenced by ``field`` across every element of ``category``.

    The field may hold a single reference, a mapping of sub-fields (every
    value counts) or a list. Returns an empty set if ``category`` is absent.
    """
    return collect_ids(iter_field_references(gltf, category, field))


# =============================================================================
# Edge table
# =============================================================================


def channel_target_node(channel: dict[str, Any]) -> ReferenceSite | None:
    target = channel.get("target")
    if not isinstance(target, dict):
        return None
    if "node" in target:
        return ReferenceSite(target, "node")
    if "id" in target:
        return ReferenceSite(target, "id")
    return None


def technique_parameters(gltf: Gltf) -> Iterator[dict[str, Any]]:
    for _, technique in iter_elements(gltf, "techniques"):
        for _, parameter in iter_collection(technique.get("parameters")):
            if isinstance(parameter, dict):
                yield parameter


def _node_references(gltf: Gltf) -> Iterator[ReferenceSite]:
    yield from iter_field_references(gltf, "scenes", "nodes")
    yield from iter_field_references(gltf, "nodes", "children")
    yield from iter_field_references(gltf, "nodes", "skeletons")
    yield from iter_field_references(gltf, "skins", "joints")
    yield from iter_field_references(gltf, "skins", "skeleton")
    for _, animation in iter_elements(gltf, "animations"):
        for channel in animation.get("channels") or []:
            site = channel_target_node(channel)
            if site is not None:
                yield site
    for parameter in technique_parameters(gltf):
        yield from _field_site(parameter, "node")


def _mesh_references(gltf: Gltf) -> Iterator[ReferenceSite]:
    yield from iter_field_references(gltf, "nodes", "mesh")
    yield from iter_field_references(gltf, "nodes", "meshes")


def _used_animation_samplers(animation: dict[str, Any]) -> set[ElementId]:
    return {
        channel["sampler"]
        for channel in animation.get("channels") or []
        if is_element_id(channel.get("sampler"))
    }


def _accessor_references(gltf: Gltf) -> Iterator[ReferenceSite]:
    for _, mesh in iter_elements(gltf, "meshes"):
        for primitive in mesh.get("primitives") or []:
            yield from _field_site(primitive, "attributes")
            yield from _field_site(primitive, "indices")
            for target in primitive.get("targets") or []:
                yield ReferenceSite(target)
    yield from iter_field_references(gltf, "skins", "inverseBindMatrices")
    for _, animation in iter_elements(gltf, "animations"):
        yield from _field_site(animation, "parameters")
        if isinstance(animation.get("parameters"), dict):
            # generation 1 samplers name parameters, not accessors
            continue
        used_samplers = _used_animation_samplers(animation)
        for sampler_id, sampler in iter_collection(animation.get("samplers")):
            weak = sampler_id not in used_samplers
            for field in ("input", "output"):
                if is_element_id(sampler.get(field)):
                    yield ReferenceSite(sampler, field, weak=weak)


def _material_references(gltf: Gltf) -> Iterator[ReferenceSite]:
    for _, mesh in iter_elements(gltf, "meshes"):
        for primitive in mesh.get("primitives") or []:
            yield from _field_site(primitive, "material")


def _extension_sites(element: Any, extension: str, field: str) -> Iterator[ReferenceSite]:
    extensions = element.get("extensions") if isinstance(element, dict) else None
    if isinstance(extensions, dict) and isinstance(extensions.get(extension), dict):
        yield from _field_site(extensions[extension], field)


def _buffer_view_references(gltf: Gltf) -> Iterator[ReferenceSite]:
    for _, accessor in iter_elements(gltf, "accessors"):
        yield from _field_site(accessor, "bufferView")
        sparse = accessor.get("sparse")
        if isinstance(sparse, dict):
            for part in ("indices", "values"):
                if isinstance(sparse.get(part), dict):
                    yield from _field_site(sparse[part], "bufferView")
    for category in ("images", "shaders"):
        for _, element in iter_elements(gltf, category):
            yield from _field_site(element, "bufferView")
            yield from _extension_sites(element, "KHR_binary_glTF", "bufferView")
    for _, mesh in iter_elements(gltf, "meshes"):
        for primitive in mesh.get("primitives") or []:
            yield from _extension_sites(primitive, "KHR_draco_mesh_compression", "bufferView")


def _texture_info_sites(value: Any) -> Iterator[ReferenceSite]:
    """Find ``{"index": ...}`` texture infos under ``*Texture`` keys, recursively."""
    if isinstance(value, dict):
        for key, item in value.items():
            if key.endswith("Texture") and isinstance(item, dict) and "index" in item:
                yield ReferenceSite(item, "index")
            yield from _texture_info_sites(item)
    elif isinstance(value, list):
        for item in value:
            yield from _texture_info_sites(item)


def _texture_references(gltf: Gltf) -> Iterator[ReferenceSite]:
    for _, material in iter_elements(gltf, "materials"):
        values = material.get("values")
        if isinstance(values, dict):
            for name, value in values.items():
                if isinstance(value, str):
                    yield ReferenceSite(values, name)
        yield from _texture_info_sites({k: v for k, v in material.items() if k != "values"})
    for parameter in technique_parameters(gltf):
        if isinstance(parameter.get("value"), str):
            yield ReferenceSite(parameter, "value")


def _image_references(gltf: Gltf) -> Iterator[ReferenceSite]:
    for _, texture in iter_elements(gltf, "textures"):
        yield from _field_site(texture, "source")
        extensions = texture.get("extensions")
        if isinstance(extensions, dict):
            for extension in extensions.values():
                yield from _field_site(extension, "source")


def _buffer_references(gltf: Gltf) -> Iterator[ReferenceSite]:
    for _, buffer_view in iter_elements(gltf, "bufferViews"):
        yield from _field_site(buffer_view, "buffer")
        yield from _extension_sites(buffer_view, "EXT_meshopt_compression", "buffer")


def _shader_references(gltf: Gltf) -> Iterator[ReferenceSite]:
    yield from iter_field_references(gltf, "programs", "fragmentShader")
    yield from iter_field_references(gltf, "programs", "vertexShader")


def _simple(category: str, field: str) -> Callable[[Gltf], Iterator[ReferenceSite]]:
    def finder(gltf: Gltf) -> Iterator[ReferenceSite]:
        return iter_field_references(gltf, category, field)

    return finder


_REFERENCE_FINDERS: dict[str, Callable[[Gltf], Iterator[ReferenceSite]]] = {
    "nodes": _node_references,
    "skins": _simple("nodes", "skin"),
    "cameras": _simple("nodes", "camera"),
    "meshes": _mesh_references,
    "accessors": _accessor_references,
    "materials": _material_references,
    "bufferViews": _buffer_view_references,
    "techniques": _simple("materials", "technique"),
    "textures": _texture_references,
    "buffers": _buffer_references,
    "programs": _simple("techniques", "program"),
    "images": _image_references,
    "samplers": _simple("textures", "sampler"),
    "shaders": _shader_references,
}

REFERENCED_CATEGORIES: tuple[str, ...] = tuple(_REFERENCE_FINDERS)


def iter_references(gltf: Gltf, category: str) -> Iterator[ReferenceSite]:
    """Every site in the document that references an element of ``category``."""
    try:
        finder = _REFERENCE_FINDERS[category]
    except KeyError:
        raise ValueError(f"No reference edges known for category: {category}") from None
    return finder(gltf)


def iter_animation_sampler_references(animation: dict[str, Any]) -> Iterator[ReferenceSite]:
    """Channel sites referencing the samplers of one animation."""
    for channel in animation.get("channels") or []:
        yield from _field_site(channel, "sampler")


# =============================================================================
# Used-id sets
# =============================================================================


def find_used_nodes(gltf: Gltf) -> set[ElementId]:
    """
    Nodes reachable from any scene root.

    Walks ``children`` (and generation-1 ``skeletons``) with an explicit stack
    and a visited set, so cycles terminate. Joints and skeleton roots of a
    skin attached to a reached node are reached too. Animation channels and
    technique parameters do not keep a node alive.
    """
    stack: list[Any] = []
    for _, scene in iter_elements(gltf, "scenes"):
        stack.extend(scene.get("nodes") or [])

    visited: set[ElementId] = set()
    while stack:
        node_id = stack.pop()
        if not is_element_id(node_id) or node_id in visited:
            continue
        try:
            node = get_element(gltf, "nodes", node_id)
        except ReferenceInconsistency as e:
            log_debug(f"Skipping dangling node reference: {e}")
            continue
        visited.add(node_id)
        stack.extend(node.get("children") or [])
        stack.extend(node.get("skeletons") or [])
        if is_element_id(node.get("skin")):
            try:
                skin = get_element(gltf, "skins", node["skin"])
            except ReferenceInconsistency as e:
                log_debug(f"Skipping dangling skin reference: {e}")
                continue
            stack.extend(skin.get("joints") or [])
            if is_element_id(skin.get("skeleton")):
                stack.append(skin["skeleton"])
    return visited


def find_used(gltf: Gltf, category: str) -> set[ElementId]:
    """Ids of ``category`` that something in the document still needs."""
    if category == "nodes":
        return find_used_nodes(gltf)
    return collect_ids(iter_references(gltf, category))
