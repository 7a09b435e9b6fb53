"""
glTF Slim
=========
Prunes unused elements from glTF assets and packs them into binary glTF.

Features:
- Removes nodes unreachable from any scene, and everything only they used
  (meshes, accessors, materials, techniques, textures, images, buffers, ...)
- Compacts indexed (glTF 2.0) collections and rewrites every reference
- Drops primitive attributes no technique consumes (glTF 1.0)
- Merges all buffers into one
- Reads and writes binary glTF version 1 (KHR_binary_glTF) and version 2
- Runs processing stages in dependency order

Usage:
    CLI:
        gltf-slim model.glb -o output.glb
        gltf-slim model.gltf --format gltf
        gltf-slim models/ --keep-attributes

    Python:
        from gltf_slim import optimize_file
        optimize_file("model.glb")
"""

from importlib.metadata import PackageNotFoundError, version

from gltf_slim.cli import main
from gltf_slim.cleaners import remove_all_unused
from gltf_slim.exporters import ProcessConfig, optimize_file, process_glb, process_gltf
from gltf_slim.glb import glb_to_gltf, gltf_to_glb, parse_glb, write_glb

try:
    __version__ = version("gltf-slim")
except PackageNotFoundError:
    __version__ = "unknown"

__all__ = [
    "ProcessConfig",
    "glb_to_gltf",
    "gltf_to_glb",
    "main",
    "optimize_file",
    "parse_glb",
    "process_glb",
    "process_gltf",
    "remove_all_unused",
    "write_glb",
]
