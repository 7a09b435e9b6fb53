"""Dependency-ordered stage scheduling."""

from gltf_slim.pipeline.dependency_graph import DependencyGraph, DependencyGraphNode
from gltf_slim.pipeline.stages import (
    DEFAULT_STAGE_CONFIG,
    DEFAULT_STAGE_CONFIGS,
    STAGE_FUNCTIONS,
    Stage,
    StageConfig,
    StageContext,
    StageRunner,
    load_stage_configs,
)

__all__ = [
    "DEFAULT_STAGE_CONFIG",
    "DEFAULT_STAGE_CONFIGS",
    "DependencyGraph",
    "DependencyGraphNode",
    "STAGE_FUNCTIONS",
    "Stage",
    "StageConfig",
    "StageContext",
    "StageRunner",
    "load_stage_configs",
]
