"""Remove primitive attributes the material's technique never reads."""

from __future__ import annotations

from gltf_slim.errors import ReferenceInconsistency
from gltf_slim.model import Gltf, Primitive, get_element, iter_primitives
from gltf_slim.utils.logging import log_debug, log_detail
from gltf_slim.utils.stats import RemovalStats


def _technique_semantics(gltf: Gltf, primitive: Primitive) -> set[str] | None:
    """Semantics declared by the primitive's technique, or None when unknown."""
    if "material" not in primitive:
        return None
    material = get_element(gltf, "materials", primitive["material"])
    if "technique" not in material:
        return None
    technique = get_element(gltf, "techniques", material["technique"])
    return {
        parameter["semantic"]
        for parameter in (technique.get("parameters") or {}).values()
        if isinstance(parameter, dict) and "semantic" in parameter
    }


def remove_unused_primitive_attributes(gltf: Gltf, stats: RemovalStats | None = None) -> Gltf:
    """
    Drop attributes no technique parameter claims by semantic.

    A primitive whose material or technique cannot be resolved keeps all of
    its attributes, and so does one whose technique declares no semantics.
    """
    removed = 0
    for primitive in iter_primitives(gltf):
        attributes = primitive.get("attributes")
        if not attributes:
            continue
        try:
            semantics = _technique_semantics(gltf, primitive)
        except ReferenceInconsistency as e:
            log_debug(f"Keeping attributes of primitive: {e}")
            continue
        if not semantics:
            continue
        for name in [name for name in attributes if name not in semantics]:
            del attributes[name]
            removed += 1

    if removed:
        log_detail(f"Removed {removed} unused primitive attributes")
        if stats is not None:
            stats.record("attributes", removed)
    return gltf
