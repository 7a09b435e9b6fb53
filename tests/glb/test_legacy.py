"""Tests for version 1 containers with KHR_binary_glTF."""

from __future__ import annotations

import json
import struct
from typing import Any

import pytest

KTX_BYTES = b"\xabKTX 11\xbb\r\n\x1a\n" + b"\0" * 8


@pytest.fixture
def loaded_named_gltf(named_gltf: dict[str, Any], png_bytes: bytes) -> dict[str, Any]:
    """Named document with every payload loaded."""
    from gltf_slim.extras import add_pipeline_extras, set_source

    add_pipeline_extras(named_gltf)
    set_source(named_gltf["buffers"]["buf_main"], bytes(range(114)), ".bin")
    set_source(named_gltf["buffers"]["buf_orphan"], b"\xee" * 36, ".bin")
    set_source(named_gltf["shaders"]["vs"], b"attribute vec3 a_position;", ".vert")
    set_source(named_gltf["shaders"]["fs"], b"void main(){}", ".frag")
    set_source(named_gltf["shaders"]["vs_orphan"], b"x", ".vert")
    set_source(named_gltf["images"]["img_used"], png_bytes, ".png")
    set_source(named_gltf["images"]["img_orphan"], KTX_BYTES)
    return named_gltf


class TestGetBinaryGltf:
    """Tests for get_binary_gltf."""

    def test_header_layout(self, loaded_named_gltf: dict[str, Any]) -> None:
        """Header fields should describe the container."""
        from gltf_slim.glb import get_binary_gltf
        from gltf_slim.glb.constants import GLB_MAGIC

        result = get_binary_gltf(loaded_named_gltf)

        magic, version, length, scene_length, scene_format = struct.unpack_from(
            "<IIIII", result.header
        )
        assert (magic, version, scene_format) == (GLB_MAGIC, 1, 0)
        assert length == len(result.glb)
        assert scene_length == len(result.scene)
        assert (20 + scene_length) % 4 == 0
        assert len(result.body) % 4 == 0
        assert result.glb == result.header + result.scene + result.body

    def test_embeds_payloads_at_aligned_offsets(self, loaded_named_gltf: dict[str, Any]) -> None:
        """Payloads should be embedded at 4-byte aligned offsets."""
        from gltf_slim.glb import get_binary_gltf

        result = get_binary_gltf(loaded_named_gltf)
        scene = json.loads(result.scene)

        embedded = {
            name: view
            for name, view in scene["bufferViews"].items()
            if name.startswith("binary_bufferView")
        }
        assert len(embedded) == 5
        for view in embedded.values():
            assert view["buffer"] == "binary_glTF"
            assert view["byteOffset"] % 4 == 0

        vs = scene["shaders"]["vs"]
        assert vs["uri"] == "data:,"
        view = scene["bufferViews"][vs["extensions"]["KHR_binary_glTF"]["bufferView"]]
        start = view["byteOffset"]
        assert result.body[start : start + view["byteLength"]] == b"attribute vec3 a_position;"

    def test_merges_existing_buffers_first(self, loaded_named_gltf: dict[str, Any]) -> None:
        """Existing buffers should be merged ahead of embedded payloads."""
        from gltf_slim.glb import get_binary_gltf

        result = get_binary_gltf(loaded_named_gltf)
        scene = json.loads(result.scene)

        assert list(scene["buffers"]) == ["binary_glTF"]
        assert scene["bufferViews"]["bv_orphan"]["byteOffset"] == 116
        assert result.body[:114] == bytes(range(114))
        assert result.body[116:152] == b"\xee" * 36
        assert scene["buffers"]["binary_glTF"]["byteLength"] <= len(result.body)

    def test_bytes_outside_buffer_views_are_dropped(
        self, loaded_named_gltf: dict[str, Any]
    ) -> None:
        """Only the ranges bufferViews cover make it into the body."""
        from gltf_slim.glb import get_binary_gltf

        del loaded_named_gltf["bufferViews"]["bv_orphan"]
        del loaded_named_gltf["accessors"]["acc_orphan"]
        del loaded_named_gltf["meshes"]["mesh_orphan"]
        loaded_named_gltf["nodes"]["orphan"] = {}

        result = get_binary_gltf(loaded_named_gltf, embed=False, embed_image=False)

        assert result.body == bytes(range(114)) + b"\0\0"

    def test_repacking_is_stable(self, loaded_named_gltf: dict[str, Any]) -> None:
        """Packing a parsed container again reuses the space of its embedded payloads."""
        from gltf_slim.analyzers import find_used
        from gltf_slim.exporters import process_glb
        from gltf_slim.glb import get_binary_gltf, parse_glb

        first = process_glb(get_binary_gltf(loaded_named_gltf).glb)
        second = process_glb(first)
        third = process_glb(second)

        assert len(second) == len(first)
        assert third == second
        gltf = parse_glb(third)
        assert set(gltf["bufferViews"]) == find_used(gltf, "bufferViews")
        assert len(gltf["bufferViews"]) == 5

    def test_image_metadata(self, loaded_named_gltf: dict[str, Any]) -> None:
        """PNGs get their size; compressed containers only their MIME type."""
        from gltf_slim.glb import get_binary_gltf

        scene = json.loads(get_binary_gltf(loaded_named_gltf).scene)

        png = scene["images"]["img_used"]["extensions"]["KHR_binary_glTF"]
        assert png["mimeType"] == "image/png"
        assert (png["width"], png["height"]) == (3, 2)
        ktx = scene["images"]["img_orphan"]["extensions"]["KHR_binary_glTF"]
        assert ktx["mimeType"] == "image/ktx"
        assert "width" not in ktx

    def test_extension_declared_and_extras_stripped(
        self, loaded_named_gltf: dict[str, Any]
    ) -> None:
        """Should declare KHR_binary_glTF and strip pipeline extras."""
        from gltf_slim.glb import get_binary_gltf

        scene = json.loads(get_binary_gltf(loaded_named_gltf).scene)

        assert scene["extensionsUsed"] == ["KHR_binary_glTF"]
        assert "extras" not in scene
        assert "_pipeline" not in json.dumps(scene)

    def test_skip_shader_embedding(self, loaded_named_gltf: dict[str, Any]) -> None:
        """Shaders should keep their uri when not embedded."""
        from gltf_slim.glb import get_binary_gltf

        scene = json.loads(get_binary_gltf(loaded_named_gltf, embed=False).scene)

        assert scene["shaders"]["vs"]["uri"] == "vs.glsl"
        assert "extensions" not in scene["shaders"]["vs"]
        assert "extensions" in scene["images"]["img_used"]

    def test_round_trip_restores_sources(
        self, loaded_named_gltf: dict[str, Any], png_bytes: bytes
    ) -> None:
        """Parsing the container should restore every source."""
        from gltf_slim.extras import get_source
        from gltf_slim.glb import get_binary_gltf, parse_glb

        gltf = parse_glb(get_binary_gltf(loaded_named_gltf).glb)

        assert get_source(gltf["shaders"]["fs"]) == b"void main(){}"
        assert get_source(gltf["images"]["img_used"]) == png_bytes
        assert set(gltf["nodes"]) == {"root", "child", "orphan"}

    def test_rejects_indexed_documents(self, indexed_gltf: dict[str, Any]) -> None:
        """Indexed documents should raise FormatError."""
        from gltf_slim.errors import FormatError
        from gltf_slim.glb import get_binary_gltf

        with pytest.raises(FormatError, match="named"):
            get_binary_gltf(indexed_gltf)
