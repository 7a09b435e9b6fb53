"""GLB/glTF processing and export functions."""

from gltf_slim.exporters.gltf import (
    ProcessConfig,
    optimize_file,
    process_glb,
    process_gltf,
)

__all__ = [
    "ProcessConfig",
    "optimize_file",
    "process_glb",
    "process_gltf",
]
