"""Tests for buffer merging."""

from __future__ import annotations

from typing import Any

import pytest


def _indexed_document() -> dict[str, Any]:
    from gltf_slim.extras import set_source

    first = {"byteLength": 2}
    second = {"byteLength": 3}
    set_source(first, b"\x01\x02")
    set_source(second, b"\x03\x04\x05")
    return {
        "asset": {"version": "2.0"},
        "buffers": [first, second],
        "bufferViews": [
            {"buffer": 0, "byteOffset": 0, "byteLength": 2},
            {"buffer": 1, "byteLength": 3},
        ],
    }


class TestMergeBuffers:
    """Tests for merge_buffers."""

    def test_concatenates_sources_in_order(self) -> None:
        """Sources should be concatenated in collection order."""
        from gltf_slim.buffers import merge_buffers
        from gltf_slim.extras import get_source

        gltf = merge_buffers(_indexed_document())

        assert len(gltf["buffers"]) == 1
        assert get_source(gltf["buffers"][0]) == b"\x01\x02\x03\x04\x05"
        assert gltf["buffers"][0]["byteLength"] == 5

    def test_shifts_buffer_view_offsets(self) -> None:
        """Each view moves by the length of the buffers before its own."""
        from gltf_slim.buffers import merge_buffers

        gltf = merge_buffers(_indexed_document())

        assert gltf["bufferViews"] == [
            {"buffer": 0, "byteOffset": 0, "byteLength": 2},
            {"buffer": 0, "byteOffset": 2, "byteLength": 3},
        ]

    def test_views_address_the_same_bytes(self) -> None:
        """Views should address the same bytes after merging."""
        from gltf_slim.buffers import merge_buffers
        from gltf_slim.extras import get_source

        gltf = merge_buffers(_indexed_document())
        source = get_source(gltf["buffers"][0])
        view = gltf["bufferViews"][1]

        assert source[view["byteOffset"] : view["byteOffset"] + view["byteLength"]] == b"\x03\x04\x05"

    def test_indexed_buffer_gets_name(self) -> None:
        """The merged indexed buffer should be named."""
        from gltf_slim.buffers import merge_buffers

        gltf = merge_buffers(_indexed_document(), "merged")

        assert gltf["buffers"][0]["name"] == "merged"

    def test_named_document(self, named_gltf: dict[str, Any]) -> None:
        """Named buffers collapse into one buffer keyed by the given name."""
        from gltf_slim.buffers import merge_buffers
        from gltf_slim.extras import get_source, set_source

        set_source(named_gltf["buffers"]["buf_main"], b"m" * 114)
        set_source(named_gltf["buffers"]["buf_orphan"], b"o" * 36)

        merge_buffers(named_gltf, "all")

        assert list(named_gltf["buffers"]) == ["all"]
        merged = named_gltf["buffers"]["all"]
        assert merged["byteLength"] == 150
        assert merged["type"] == "arraybuffer"
        assert get_source(merged) == b"m" * 114 + b"o" * 36
        views = named_gltf["bufferViews"]
        assert views["bv_indices"] == {"buffer": "all", "byteOffset": 108, "byteLength": 6}
        assert views["bv_orphan"]["byteOffset"] == 114
        assert all(view["buffer"] == "all" for view in views.values())

    def test_buffer_without_source_contributes_nothing(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """A buffer without a source should add no bytes."""
        from gltf_slim.buffers import merge_buffers
        from gltf_slim.extras import get_source

        gltf = _indexed_document()
        del gltf["buffers"][0]["extras"]

        merge_buffers(gltf)

        assert get_source(gltf["buffers"][0]) == b"\x03\x04\x05"
        assert gltf["bufferViews"][1]["byteOffset"] == 0
        assert "no loaded data" in capsys.readouterr().out

    def test_rewrites_meshopt_buffer_references(self) -> None:
        """Meshopt extension buffers should be rewritten too."""
        from gltf_slim.buffers import merge_buffers

        gltf = _indexed_document()
        gltf["bufferViews"][1]["extensions"] = {
            "EXT_meshopt_compression": {"buffer": 1, "byteOffset": 1, "byteLength": 2}
        }

        merge_buffers(gltf)

        meshopt = gltf["bufferViews"][1]["extensions"]["EXT_meshopt_compression"]
        assert meshopt["buffer"] == 0
        assert meshopt["byteOffset"] == 3

    def test_empty_document_gets_empty_buffer(self) -> None:
        """A document without buffers should get an empty one."""
        from gltf_slim.buffers import merge_buffers
        from gltf_slim.extras import get_source

        gltf = merge_buffers({"asset": {"version": "2.0"}})

        assert gltf["buffers"][0]["byteLength"] == 0
        assert get_source(gltf["buffers"][0]) == b""
