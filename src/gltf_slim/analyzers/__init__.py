"""Reference analysis over the asset graph."""

from gltf_slim.analyzers.references import (
    REFERENCED_CATEGORIES,
    ReferenceSite,
    find_used,
    find_used_ids,
    find_used_nodes,
    iter_animation_sampler_references,
    iter_references,
)

__all__ = [
    "REFERENCED_CATEGORIES",
    "ReferenceSite",
    "find_used",
    "find_used_ids",
    "find_used_nodes",
    "iter_animation_sampler_references",
    "iter_references",
]
