"""
Unused element collection.

Each ``remove_unused_*`` function prunes one category against the references
that the rest of the document still holds. ``remove_all_unused`` runs them in
dependency order (parents before the children they reference) so a removal
cascades within the same sweep, and repeats the sweep until nothing changes.
"""

from __future__ import annotations

from collections.abc import Callable

from gltf_slim.analyzers.references import (
    channel_target_node,
    find_used,
    find_used_nodes,
    is_element_id,
    iter_animation_sampler_references,
    technique_parameters,
)
from gltf_slim.cleaners.attributes import remove_unused_primitive_attributes
from gltf_slim.cleaners.prune import prune_collection, prune_elements
from gltf_slim.model import ElementId, Gltf, iter_elements
from gltf_slim.utils.logging import log_debug, log_detail
from gltf_slim.utils.stats import RemovalStats

ANIMATION_SAMPLERS = "animationSamplers"


def _remove_unused(gltf: Gltf, category: str, stats: RemovalStats | None) -> Gltf:
    prune_elements(gltf, category, find_used(gltf, category), stats)
    return gltf


def _drop_node_targets(gltf: Gltf, used: set[ElementId], stats: RemovalStats | None) -> None:
    """
    Drop animation channels and technique node parameters aimed at unused nodes.

    An animation left without channels is removed with them, so its samplers
    and accessors are released too.
    """
    for parameter in technique_parameters(gltf):
        if is_element_id(parameter.get("node")) and parameter["node"] not in used:
            del parameter["node"]

    animations = gltf.get("animations")
    if not animations:
        return
    emptied: set[ElementId] = set()
    for animation_id, animation in iter_elements(gltf, "animations"):
        channels = animation.get("channels")
        if not channels:
            continue
        kept = []
        for channel in channels:
            site = channel_target_node(channel)
            if site is not None and not set(site.ids()) <= used:
                continue
            kept.append(channel)
        if len(kept) == len(channels):
            continue
        animation["channels"] = kept
        log_debug(
            f"Dropped {len(channels) - len(kept)} channels of animation {animation_id!r}"
        )
        if not kept:
            emptied.add(animation_id)

    if emptied:
        keep = {animation_id for animation_id, _ in iter_elements(gltf, "animations")} - emptied
        gltf["animations"], _, removed = prune_collection(animations, keep)
        log_detail(f"Removed {removed} animations without channels")
        if stats is not None:
            stats.record("animations", removed)


def remove_unused_nodes(gltf: Gltf, stats: RemovalStats | None = None) -> Gltf:
    """
    Remove nodes not reachable from any scene.

    Animation channels and technique parameters that point at a removed node
    are dropped first, in both id schemes.
    """
    used = find_used_nodes(gltf)
    _drop_node_targets(gltf, used, stats)
    prune_elements(gltf, "nodes", used, stats)
    return gltf


def remove_unused_skins(gltf: Gltf, stats: RemovalStats | None = None) -> Gltf:
    return _remove_unused(gltf, "skins", stats)


def remove_unused_cameras(gltf: Gltf, stats: RemovalStats | None = None) -> Gltf:
    return _remove_unused(gltf, "cameras", stats)


def remove_unused_meshes(gltf: Gltf, stats: RemovalStats | None = None) -> Gltf:
    return _remove_unused(gltf, "meshes", stats)


def remove_unused_accessors(gltf: Gltf, stats: RemovalStats | None = None) -> Gltf:
    """Remove accessors no primitive, skin or animation reads."""
    return _remove_unused(gltf, "accessors", stats)


def remove_unused_materials(gltf: Gltf, stats: RemovalStats | None = None) -> Gltf:
    return _remove_unused(gltf, "materials", stats)


def remove_unused_buffer_views(gltf: Gltf, stats: RemovalStats | None = None) -> Gltf:
    """Remove bufferViews not read by accessors, images or shaders."""
    return _remove_unused(gltf, "bufferViews", stats)


def remove_unused_techniques(gltf: Gltf, stats: RemovalStats | None = None) -> Gltf:
    return _remove_unused(gltf, "techniques", stats)


def remove_unused_textures(gltf: Gltf, stats: RemovalStats | None = None) -> Gltf:
    return _remove_unused(gltf, "textures", stats)


def remove_unused_buffers(gltf: Gltf, stats: RemovalStats | None = None) -> Gltf:
    return _remove_unused(gltf, "buffers", stats)


def remove_unused_programs(gltf: Gltf, stats: RemovalStats | None = None) -> Gltf:
    return _remove_unused(gltf, "programs", stats)


def remove_unused_images(gltf: Gltf, stats: RemovalStats | None = None) -> Gltf:
    return _remove_unused(gltf, "images", stats)


def remove_unused_samplers(gltf: Gltf, stats: RemovalStats | None = None) -> Gltf:
    return _remove_unused(gltf, "samplers", stats)


def remove_unused_shaders(gltf: Gltf, stats: RemovalStats | None = None) -> Gltf:
    return _remove_unused(gltf, "shaders", stats)


def remove_unused_animation_samplers(gltf: Gltf, stats: RemovalStats | None = None) -> Gltf:
    """
    Remove animation samplers that no channel of their animation uses.

    Samplers are scoped to one animation, so each animation is pruned on its
    own and its channels are remapped when the samplers are a list.
    """
    for animation_id, animation in iter_elements(gltf, "animations"):
        samplers = animation.get("samplers")
        if not samplers:
            continue
        used = set()
        for site in iter_animation_sampler_references(animation):
            used.update(site.ids())
        pruned, remap, removed = prune_collection(samplers, used)
        if not removed:
            continue
        animation["samplers"] = pruned
        if isinstance(samplers, list):
            for site in list(iter_animation_sampler_references(animation)):
                site.rewrite(remap)
        log_detail(f"Removed {removed} unused samplers from animation {animation_id!r}")
        if stats is not None:
            stats.record(ANIMATION_SAMPLERS, removed)
    return gltf


# Sweep order: parents before the children they reference
SWEEP_ORDER: tuple[Callable[[Gltf, RemovalStats | None], Gltf], ...] = (
    remove_unused_nodes,
    remove_unused_skins,
    remove_unused_cameras,
    remove_unused_meshes,
    remove_unused_accessors,
    remove_unused_materials,
    remove_unused_buffer_views,
    remove_unused_techniques,
    remove_unused_textures,
    remove_unused_buffers,
    remove_unused_programs,
    remove_unused_images,
    remove_unused_samplers,
    remove_unused_shaders,
    remove_unused_animation_samplers,
    remove_unused_primitive_attributes,
)


def remove_all_unused(gltf: Gltf, stats: RemovalStats | None = None) -> Gltf:
    """
    Remove every element nothing in the document references anymore.

    Sweeps all categories in ``SWEEP_ORDER``. Some edges point back up the
    order (images and shaders holding bufferViews, sanitized attributes
    releasing accessors), so a sweep that removed anything is followed by
    another one. Returns once a sweep removes nothing; calling it again is a
    no-op.
    """
    sweeps = 0
    while True:
        sweep = RemovalStats()
        for step in SWEEP_ORDER:
            step(gltf, sweep)
        sweeps += 1
        if stats is not None:
            stats.update(sweep)
        if not sweep:
            break
    log_debug(f"Unused elements settled after {sweeps} sweep(s)")
    return gltf
