"""Tests for the reference index."""

from __future__ import annotations

from typing import Any

import pytest


def _cascade_gltf(roots: list[str]) -> dict[str, Any]:
    """Named node tree A -> [B, C], C -> [D]."""
    return {
        "scenes": {"scene": {"nodes": roots}},
        "nodes": {
            "A": {"children": ["B", "C"]},
            "B": {},
            "C": {"children": ["D"]},
            "D": {},
        },
    }


class TestFindUsedIds:
    """Tests for find_used_ids."""

    def test_collects_scalar_list_and_mapping_fields(self) -> None:
        """A field may hold one id, a list of ids or a mapping of ids."""
        from gltf_slim.analyzers import find_used_ids

        gltf = {
            "things": [
                {"ref": 1},
                {"ref": [2, 3]},
                {"ref": {"a": 4, "b": 5}},
                {"other": 6},
            ]
        }

        assert find_used_ids(gltf, "things", "ref") == {1, 2, 3, 4, 5}

    def test_absent_category_is_empty(self) -> None:
        """Absent categories should yield an empty set."""
        from gltf_slim.analyzers import find_used_ids

        assert find_used_ids({}, "meshes", "primitives") == set()

    def test_booleans_are_not_ids(self) -> None:
        """Booleans should not be mistaken for indices."""
        from gltf_slim.analyzers import find_used_ids

        assert find_used_ids({"things": [{"ref": True}]}, "things", "ref") == set()


class TestFindUsedNodes:
    """Tests for scene reachability."""

    def test_whole_tree_reachable_from_root(self) -> None:
        """Every node under the root should be reached."""
        from gltf_slim.analyzers import find_used_nodes

        assert find_used_nodes(_cascade_gltf(["A"])) == {"A", "B", "C", "D"}

    def test_no_roots_reaches_nothing(self) -> None:
        """A scene without roots should reach no node."""
        from gltf_slim.analyzers import find_used_nodes

        assert find_used_nodes(_cascade_gltf([])) == set()

    def test_subtree_root(self) -> None:
        """Only the subtree under a root should be reached."""
        from gltf_slim.analyzers import find_used_nodes

        assert find_used_nodes(_cascade_gltf(["C"])) == {"C", "D"}

    def test_cycles_terminate(self) -> None:
        """A child pointing back at its ancestor does not loop forever."""
        from gltf_slim.analyzers import find_used_nodes

        gltf = _cascade_gltf(["A"])
        gltf["nodes"]["D"]["children"] = ["A"]

        assert find_used_nodes(gltf) == {"A", "B", "C", "D"}

    def test_skin_joints_are_reached(self, indexed_gltf: dict[str, Any]) -> None:
        """Joints of a skin attached to a reached node are reached too."""
        from gltf_slim.analyzers import find_used_nodes

        indexed_gltf["nodes"][0]["skin"] = 0

        assert find_used_nodes(indexed_gltf) == {0, 1, 2}

    def test_generation_one_skeletons_are_reached(self) -> None:
        """glTF 1.0 skeleton roots should be reached."""
        from gltf_slim.analyzers import find_used_nodes

        gltf = _cascade_gltf(["B"])
        gltf["nodes"]["B"]["skeletons"] = ["D"]

        assert find_used_nodes(gltf) == {"B", "D"}

    def test_animation_targets_do_not_keep_nodes(self, indexed_gltf: dict[str, Any]) -> None:
        """A node only an animation channel targets is not reached."""
        from gltf_slim.analyzers import find_used_nodes

        indexed_gltf["animations"][0]["channels"][0]["target"]["node"] = 2

        assert find_used_nodes(indexed_gltf) == {0, 1}

    def test_technique_parameters_do_not_keep_nodes(self) -> None:
        """A technique parameter naming a node does not reach it."""
        from gltf_slim.analyzers import find_used_nodes

        gltf = _cascade_gltf(["C"])
        gltf["techniques"] = {"tech": {"parameters": {"mv": {"node": "B"}}}}

        assert find_used_nodes(gltf) == {"C", "D"}

    def test_dangling_children_are_skipped(self) -> None:
        """Children that do not exist should be skipped."""
        from gltf_slim.analyzers import find_used_nodes

        gltf = _cascade_gltf(["A"])
        gltf["nodes"]["B"]["children"] = ["ghost"]

        assert find_used_nodes(gltf) == {"A", "B", "C", "D"}


class TestFindUsed:
    """Tests for per-category used sets."""

    def test_texture_infos_found_in_nested_material_fields(
        self, indexed_gltf: dict[str, Any]
    ) -> None:
        """Texture infos nested in materials and extensions should count."""
        from gltf_slim.analyzers import find_used

        indexed_gltf["materials"][1] = {"name": "plain"}
        indexed_gltf["materials"][0]["extensions"] = {
            "KHR_materials_clearcoat": {"clearcoatTexture": {"index": 1}}
        }

        assert find_used(indexed_gltf, "textures") == {0, 1}

    def test_generation_one_material_values(self, named_gltf: dict[str, Any]) -> None:
        """glTF 1.0 material values naming textures should count."""
        from gltf_slim.analyzers import find_used

        assert find_used(named_gltf, "textures") == {"tex_used", "tex_orphan"}

    def test_unused_animation_sampler_does_not_keep_accessors(
        self, indexed_gltf: dict[str, Any]
    ) -> None:
        """Accessors of a sampler no channel uses are not kept alive."""
        from gltf_slim.analyzers import find_used

        used = find_used(indexed_gltf, "accessors")

        assert {7, 8} <= used
        assert not {5, 6} & used

    def test_image_buffer_views_are_used(self, indexed_gltf: dict[str, Any]) -> None:
        """bufferViews of embedded images should be used."""
        from gltf_slim.analyzers import find_used

        assert find_used(indexed_gltf, "bufferViews") == {0, 1, 2, 3}

    def test_sparse_accessor_views_are_used(self, indexed_gltf: dict[str, Any]) -> None:
        """Sparse accessor bufferViews should be used."""
        from gltf_slim.analyzers import find_used

        del indexed_gltf["images"][0]["bufferView"]
        indexed_gltf["accessors"][0]["sparse"] = {
            "count": 1,
            "indices": {"bufferView": 3},
            "values": {"bufferView": 1},
        }

        assert 3 in find_used(indexed_gltf, "bufferViews")

    def test_shaders_used_by_programs(self, named_gltf: dict[str, Any]) -> None:
        """Shaders should be used through program fields."""
        from gltf_slim.analyzers import find_used

        assert find_used(named_gltf, "shaders") == {"vs", "fs", "vs_orphan"}

    def test_unknown_category_raises(self, indexed_gltf: dict[str, Any]) -> None:
        """Categories without edges should raise ValueError."""
        from gltf_slim.analyzers import iter_references

        with pytest.raises(ValueError, match="scenes"):
            list(iter_references(indexed_gltf, "scenes"))


class TestReferenceSite:
    """Tests for rewriting references after compaction."""

    def test_rewrites_scalar_and_drops_removed(self) -> None:
        """Scalar references should be rewritten or deleted."""
        from gltf_slim.analyzers import ReferenceSite

        kept = {"mesh": 2}
        removed = {"mesh": 1}

        ReferenceSite(kept, "mesh").rewrite({0: 0, 2: 1})
        ReferenceSite(removed, "mesh").rewrite({0: 0, 2: 1})

        assert kept == {"mesh": 1}
        assert removed == {}

    def test_rewrites_list_in_place(self) -> None:
        """List references should be rewritten in place."""
        from gltf_slim.analyzers import ReferenceSite

        children = [0, 1, 2]
        node = {"children": children}

        ReferenceSite(children).rewrite({0: 0, 2: 1})

        assert node["children"] == [0, 1]
        assert node["children"] is children

    def test_rewrites_mapping_values(self) -> None:
        """Mapping values should be rewritten."""
        from gltf_slim.analyzers import ReferenceSite

        attributes = {"POSITION": 0, "NORMAL": 3, "_FLAG": None}

        ReferenceSite(attributes).rewrite({0: 1})

        assert attributes == {"POSITION": 1, "_FLAG": None}

    def test_ids_skip_non_id_values(self) -> None:
        """Non-id values should not be reported as ids."""
        from gltf_slim.analyzers import ReferenceSite

        assert ReferenceSite([0, None, 1.5, "a", False]).ids() == [0, "a"]
