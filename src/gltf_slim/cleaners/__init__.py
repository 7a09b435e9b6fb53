"""Cleaners for unused elements and primitive attributes."""

from gltf_slim.cleaners.attributes import remove_unused_primitive_attributes
from gltf_slim.cleaners.prune import prune_collection, prune_elements, remap_references
from gltf_slim.cleaners.unused import (
    SWEEP_ORDER,
    remove_all_unused,
    remove_unused_accessors,
    remove_unused_animation_samplers,
    remove_unused_buffer_views,
    remove_unused_buffers,
    remove_unused_cameras,
    remove_unused_images,
    remove_unused_materials,
    remove_unused_meshes,
    remove_unused_nodes,
    remove_unused_programs,
    remove_unused_samplers,
    remove_unused_shaders,
    remove_unused_skins,
    remove_unused_techniques,
    remove_unused_textures,
)

__all__ = [
    "SWEEP_ORDER",
    "prune_collection",
    "prune_elements",
    "remap_references",
    "remove_all_unused",
    "remove_unused_accessors",
    "remove_unused_animation_samplers",
    "remove_unused_buffer_views",
    "remove_unused_buffers",
    "remove_unused_cameras",
    "remove_unused_images",
    "remove_unused_materials",
    "remove_unused_meshes",
    "remove_unused_nodes",
    "remove_unused_primitive_attributes",
    "remove_unused_programs",
    "remove_unused_samplers",
    "remove_unused_shaders",
    "remove_unused_skins",
    "remove_unused_techniques",
    "remove_unused_textures",
]
