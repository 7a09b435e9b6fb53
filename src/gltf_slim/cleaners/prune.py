"""Element pruning: drop unused entries of one collection and fix references."""

from __future__ import annotations

from collections.abc import Mapping, Set
from typing import Any

from gltf_slim.analyzers.references import iter_references
from gltf_slim.model import Collection, ElementId, Gltf, is_indexed
from gltf_slim.utils.logging import log_detail
from gltf_slim.utils.stats import RemovalStats


def prune_collection(
    collection: Collection, used_ids: Set[ElementId]
) -> tuple[Collection, dict[ElementId, ElementId], int]:
    """
    Keep only the entries of ``collection`` whose id is in ``used_ids``.

    Order is preserved. Returns the filtered collection, a map from old id to
    new id for every survivor, and the number of removed entries. For an
    indexed (list) collection the new id is the survivor's new position; for a
    named (dict) collection ids are unchanged.
    """
    remap: dict[ElementId, ElementId] = {}
    if isinstance(collection, list):
        kept: list[Any] = []
        for index, element in enumerate(collection):
            if index in used_ids:
                remap[index] = len(kept)
                kept.append(element)
        return kept, remap, len(collection) - len(kept)

    named: dict[str, Any] = {}
    for key, element in collection.items():
        if key in used_ids:
            remap[key] = key
            named[key] = element
    return named, remap, len(collection) - len(named)


def remap_references(gltf: Gltf, category: str, remap: Mapping[ElementId, ElementId]) -> None:
    """
    Rewrite every reference to ``category`` after it was compacted.

    References to ids missing from ``remap`` are dropped: list items are
    removed and scalar fields deleted, so nothing is left dangling.
    """
    for site in list(iter_references(gltf, category)):
        site.rewrite(remap)


def prune_elements(
    gltf: Gltf,
    category: str,
    used_ids: Set[ElementId],
    stats: RemovalStats | None = None,
) -> dict[ElementId, ElementId]:
    """
    Replace ``gltf[category]`` with only its used entries.

    Indexed collections also get every referencing field rewritten to the new
    positions. Returns the old-id to new-id map (empty when the category is
    absent).
    """
    collection = gltf.get(category)
    if collection is None:
        return {}

    pruned, remap, removed = prune_collection(collection, used_ids)
    if not removed:
        return remap

    gltf[category] = pruned
    if is_indexed(collection):
        remap_references(gltf, category, remap)
    log_detail(f"Removed {removed} unused {category}")
    if stats is not None:
        stats.record(category, removed)
    return remap
