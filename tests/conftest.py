"""
Pytest fixtures for gltf-slim tests.

Documents are plain dicts, so every fixture builds a fresh copy.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from gltf_slim.utils.logging import set_debug, set_quiet


def _accessor(name: str, buffer_view: int | str) -> dict[str, Any]:
    return {
        "name": name,
        "bufferView": buffer_view,
        "componentType": 5126,
        "count": 3,
        "type": "VEC3",
    }


def make_indexed_gltf() -> dict[str, Any]:
    """
    glTF 2.0 document with one reachable subtree and one orphan node.

    Everything named ``*orphan*`` is only reachable through the orphan node or
    through the unused animation sampler.
    """
    return {
        "asset": {"version": "2.0"},
        "scene": 0,
        "scenes": [{"name": "scene", "nodes": [0]}],
        "nodes": [
            {"name": "root", "children": [1], "mesh": 0},
            {"name": "child", "camera": 0},
            {"name": "orphan", "mesh": 1, "skin": 0},
        ],
        "cameras": [{"name": "camera", "type": "perspective"}],
        "skins": [{"name": "orphan_skin", "joints": [2], "inverseBindMatrices": 4}],
        "meshes": [
            {
                "name": "mesh",
                "primitives": [
                    {"attributes": {"POSITION": 0, "NORMAL": 1}, "indices": 2, "material": 0}
                ],
            },
            {
                "name": "orphan_mesh",
                "primitives": [{"attributes": {"POSITION": 3}, "material": 1}],
            },
        ],
        "accessors": [
            _accessor("position", 0),
            _accessor("normal", 0),
            _accessor("indices", 1),
            _accessor("orphan_position", 2),
            _accessor("orphan_ibm", 2),
            _accessor("orphan_time", 0),
            _accessor("orphan_rotation", 0),
            _accessor("time", 0),
            _accessor("rotation", 0),
        ],
        "bufferViews": [
            {"name": "vertices", "buffer": 0, "byteOffset": 0, "byteLength": 72},
            {"name": "indices", "buffer": 0, "byteOffset": 72, "byteLength": 6},
            {"name": "orphan_view", "buffer": 1, "byteOffset": 0, "byteLength": 16},
            {"name": "image_view", "buffer": 0, "byteOffset": 80, "byteLength": 8},
        ],
        "buffers": [
            {"name": "main", "byteLength": 88},
            {"name": "orphan_buffer", "byteLength": 16},
        ],
        "materials": [
            {"name": "material", "pbrMetallicRoughness": {"baseColorTexture": {"index": 0}}},
            {"name": "orphan_material", "normalTexture": {"index": 1}},
        ],
        "textures": [
            {"name": "texture", "source": 0, "sampler": 0},
            {"name": "orphan_texture", "source": 1, "sampler": 1},
        ],
        "images": [
            {"name": "image", "bufferView": 3, "mimeType": "image/png"},
            {"name": "orphan_image", "uri": "orphan.png"},
        ],
        "samplers": [{"name": "sampler"}, {"name": "orphan_sampler"}],
        "animations": [
            {
                "name": "spin",
                "channels": [{"sampler": 1, "target": {"node": 0, "path": "rotation"}}],
                "samplers": [
                    {"name": "orphan_anim_sampler", "input": 5, "output": 6},
                    {"name": "anim_sampler", "input": 7, "output": 8},
                ],
            }
        ],
    }


def make_named_gltf() -> dict[str, Any]:
    """
    glTF 1.0 document with techniques, programs and shaders.

    The used technique declares POSITION and NORMAL only, so the primitive's
    TEXCOORD_0 attribute (and its accessor) are unused.
    """
    return {
        "asset": {"version": "1.0"},
        "scene": "defaultScene",
        "scenes": {"defaultScene": {"nodes": ["root"]}},
        "nodes": {
            "root": {"children": ["child"], "meshes": ["mesh_used"]},
            "child": {},
            "orphan": {"meshes": ["mesh_orphan"]},
        },
        "meshes": {
            "mesh_used": {
                "primitives": [
                    {
                        "attributes": {
                            "POSITION": "acc_position",
                            "NORMAL": "acc_normal",
                            "TEXCOORD_0": "acc_uv",
                        },
                        "indices": "acc_indices",
                        "material": "mat_used",
                    }
                ]
            },
            "mesh_orphan": {
                "primitives": [
                    {"attributes": {"POSITION": "acc_orphan"}, "material": "mat_orphan"}
                ]
            },
        },
        "accessors": {
            "acc_position": _accessor("acc_position", "bv_vertices"),
            "acc_normal": _accessor("acc_normal", "bv_vertices"),
            "acc_uv": _accessor("acc_uv", "bv_vertices"),
            "acc_indices": _accessor("acc_indices", "bv_indices"),
            "acc_orphan": _accessor("acc_orphan", "bv_orphan"),
        },
        "bufferViews": {
            "bv_vertices": {"buffer": "buf_main", "byteOffset": 0, "byteLength": 108},
            "bv_indices": {"buffer": "buf_main", "byteOffset": 108, "byteLength": 6},
            "bv_orphan": {"buffer": "buf_orphan", "byteOffset": 0, "byteLength": 36},
        },
        "buffers": {
            "buf_main": {"byteLength": 114, "uri": "main.bin"},
            "buf_orphan": {"byteLength": 36, "uri": "orphan.bin"},
        },
        "materials": {
            "mat_used": {"technique": "tech_used", "values": {"diffuse": "tex_used"}},
            "mat_orphan": {"technique": "tech_orphan", "values": {"diffuse": "tex_orphan"}},
        },
        "techniques": {
            "tech_used": {
                "program": "prog_used",
                "parameters": {
                    "position": {"semantic": "POSITION", "type": 35665},
                    "normal": {"semantic": "NORMAL", "type": 35665},
                    "diffuse": {"type": 35678},
                },
            },
            "tech_orphan": {
                "program": "prog_orphan",
                "parameters": {"position": {"semantic": "POSITION", "type": 35665}},
            },
        },
        "programs": {
            "prog_used": {"vertexShader": "vs", "fragmentShader": "fs"},
            "prog_orphan": {"vertexShader": "vs_orphan", "fragmentShader": "fs"},
        },
        "shaders": {
            "vs": {"type": 35633, "uri": "vs.glsl"},
            "fs": {"type": 35632, "uri": "fs.glsl"},
            "vs_orphan": {"type": 35633, "uri": "orphan.glsl"},
        },
        "textures": {
            "tex_used": {"source": "img_used", "sampler": "smp_used"},
            "tex_orphan": {"source": "img_orphan", "sampler": "smp_orphan"},
        },
        "images": {
            "img_used": {"uri": "used.png"},
            "img_orphan": {"uri": "orphan.png"},
        },
        "samplers": {"smp_used": {}, "smp_orphan": {}},
    }


def assert_no_dangling_references(gltf: dict[str, Any]) -> None:
    """Every reference in the document resolves to an existing element."""
    from gltf_slim.analyzers import (
        REFERENCED_CATEGORIES,
        iter_animation_sampler_references,
        iter_references,
    )
    from gltf_slim.model import get_element, iter_collection, iter_elements

    for category in REFERENCED_CATEGORIES:
        for site in iter_references(gltf, category):
            for element_id in site.ids():
                get_element(gltf, category, element_id)

    for _, animation in iter_elements(gltf, "animations"):
        sampler_ids = {sampler_id for sampler_id, _ in iter_collection(animation.get("samplers"))}
        for site in iter_animation_sampler_references(animation):
            for sampler_id in site.ids():
                assert sampler_id in sampler_ids


@pytest.fixture(autouse=True)
def reset_logging() -> None:
    """Every test starts with default (non-quiet, non-debug) output."""
    set_quiet(False)
    set_debug(False)


@pytest.fixture
def indexed_gltf() -> dict[str, Any]:
    return make_indexed_gltf()


@pytest.fixture
def named_gltf() -> dict[str, Any]:
    return make_named_gltf()


@pytest.fixture
def check_references() -> Callable[[dict[str, Any]], None]:
    return assert_no_dangling_references
