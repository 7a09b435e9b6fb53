"""
Named processing stages and the runner that sequences them.

Stage names are a closed enum mapped to functions in ``STAGE_FUNCTIONS``.
Relations between stages come from stage configs,
``{"before": [...], "after": [...]}``, which map onto a ``DependencyGraph``:
``before`` becomes ``run_before`` and ``after`` becomes ``run_after``.
"""

from __future__ import annotations

import functools
import json
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, TypedDict

from gltf_slim.buffers import merge_buffers
from gltf_slim.cleaners.attributes import remove_unused_primitive_attributes
from gltf_slim.cleaners.unused import remove_all_unused
from gltf_slim.errors import ConfigurationError
from gltf_slim.extras import add_pipeline_extras, remove_pipeline_extras
from gltf_slim.model import Gltf
from gltf_slim.pipeline.dependency_graph import DependencyGraph
from gltf_slim.utils.constants import DEFAULT_BUFFER_NAME
from gltf_slim.utils.stats import RemovalStats


class Stage(str, Enum):
    ADD_PIPELINE_EXTRAS = "add_pipeline_extras"
    REMOVE_UNUSED_PRIMITIVE_ATTRIBUTES = "remove_unused_primitive_attributes"
    REMOVE_ALL_UNUSED = "remove_all_unused"
    MERGE_BUFFERS = "merge_buffers"
    REMOVE_PIPELINE_EXTRAS = "remove_pipeline_extras"


@dataclass
class StageContext:
    """Per-run values handed to every stage function."""

    stats: RemovalStats = field(default_factory=RemovalStats)
    buffer_name: str = DEFAULT_BUFFER_NAME


StageFunction = Callable[[Gltf, StageContext], Any]


def _add_pipeline_extras(gltf: Gltf, context: StageContext) -> Gltf:
    return add_pipeline_extras(gltf)


def _remove_unused_primitive_attributes(gltf: Gltf, context: StageContext) -> Gltf:
    return remove_unused_primitive_attributes(gltf, context.stats)


def _remove_all_unused(gltf: Gltf, context: StageContext) -> Gltf:
    return remove_all_unused(gltf, context.stats)


def _merge_buffers(gltf: Gltf, context: StageContext) -> Gltf:
    if not gltf.get("buffers"):
        return gltf
    return merge_buffers(gltf, context.buffer_name)


def _remove_pipeline_extras(gltf: Gltf, context: StageContext) -> Gltf:
    return remove_pipeline_extras(gltf)


STAGE_FUNCTIONS: dict[Stage, StageFunction] = {
    Stage.ADD_PIPELINE_EXTRAS: _add_pipeline_extras,
    Stage.REMOVE_UNUSED_PRIMITIVE_ATTRIBUTES: _remove_unused_primitive_attributes,
    Stage.REMOVE_ALL_UNUSED: _remove_all_unused,
    Stage.MERGE_BUFFERS: _merge_buffers,
    Stage.REMOVE_PIPELINE_EXTRAS: _remove_pipeline_extras,
}


class StageConfig(TypedDict, total=False):
    before: list[str]
    after: list[str]
    immediatelyBefore: list[str]
    immediatelyAfter: list[str]


_CONFIG_KEYS = ("before", "after", "immediatelyBefore", "immediatelyAfter")

DEFAULT_STAGE_CONFIG: StageConfig = {"before": [], "after": []}

# Relations of the built-in stages
DEFAULT_STAGE_CONFIGS: dict[str, StageConfig] = {
    stage.value: {"before": [Stage.ADD_PIPELINE_EXTRAS.value], "after": []}
    for stage in (
        Stage.REMOVE_UNUSED_PRIMITIVE_ATTRIBUTES,
        Stage.REMOVE_ALL_UNUSED,
        Stage.MERGE_BUFFERS,
    )
}


def stage_name(stage: Stage | str) -> str:
    return stage.value if isinstance(stage, Stage) else stage


def validate_stage_config(name: str, config: Any) -> StageConfig:
    """Check a raw config record and return it as a StageConfig."""
    if not isinstance(config, dict):
        raise ConfigurationError(f"Config for stage {name!r} must be an object")
    validated: StageConfig = {}
    for key, value in config.items():
        if key not in _CONFIG_KEYS:
            raise ConfigurationError(f"Unknown key {key!r} in config for stage {name!r}")
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise ConfigurationError(f"{name}.{key} must be a list of stage names")
        validated[key] = list(value)  # type: ignore[literal-required]
    return validated


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid stage config {path}: {e}") from e


def load_stage_configs(path: str | Path) -> dict[str, StageConfig]:
    """
    Load stage configs from a JSON file or a directory of ``<stage>.json`` files.

    A file holds one object mapping stage names to configs. In a directory,
    each file holds the config of the stage it is named after.

    Raises:
        ConfigurationError: invalid JSON or an invalid config record.
        OSError: the path cannot be read.
    """
    path = Path(path)
    if path.is_dir():
        return {
            config_path.stem: validate_stage_config(config_path.stem, _read_json(config_path))
            for config_path in sorted(path.glob("*.json"))
        }

    raw = _read_json(path)
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Stage config file {path} must hold an object")
    return {name: validate_stage_config(name, config) for name, config in raw.items()}


def _call_stage(function: StageFunction, context: StageContext, gltf: Gltf) -> Any:
    return function(gltf, context)


class StageRunner:
    """
    Runs a list of stages, resolving their before/after relations.

    Functions and configs are fixed per instance, so independent runners never
    share state. Each ``run`` builds a fresh ``DependencyGraph``.
    """

    def __init__(
        self,
        stage_functions: Mapping[str, StageFunction] | None = None,
        stage_configs: Mapping[str, StageConfig] | None = None,
    ) -> None:
        if stage_functions is None:
            stage_functions = {stage.value: function for stage, function in STAGE_FUNCTIONS.items()}
        if stage_configs is None:
            stage_configs = DEFAULT_STAGE_CONFIGS
        self.stage_functions: dict[str, StageFunction] = {
            stage_name(name): function for name, function in stage_functions.items()
        }
        self.stage_configs: dict[str, StageConfig] = {
            stage_name(name): config for name, config in stage_configs.items()
        }

    def get_config(self, name: str) -> StageConfig:
        return self.stage_configs.get(name, DEFAULT_STAGE_CONFIG)

    def build_graph(self, context: StageContext) -> DependencyGraph:
        """Graph with one node per known stage, functions bound to ``context``."""
        graph = DependencyGraph(
            {
                name: functools.partial(_call_stage, function, context)
                for name, function in self.stage_functions.items()
            }
        )
        for name in dict.fromkeys([*self.stage_functions, *self.stage_configs]):
            config = self.get_config(name)
            graph.add_node(
                name,
                run_before=config.get("before", []),
                run_immediately_before=config.get("immediatelyBefore", []),
                run_immediately_after=config.get("immediatelyAfter", []),
                run_after=config.get("after", []),
            )
        return graph

    def run(
        self,
        gltf: Gltf,
        stages: Iterable[Stage | str],
        context: StageContext | None = None,
        *,
        dry_run: bool = False,
    ) -> list[str]:
        """
        Run ``stages`` in order, each at most once unless a relation re-runs it.

        Returns the history of executed stage names.

        Raises:
            ConfigurationError: a stage (or a stage named in a relation) has
                no implementation.
        """
        graph = self.build_graph(context or StageContext())
        for stage in stages:
            name = stage_name(stage)
            if name not in graph.nodes:
                raise ConfigurationError(f"Unknown stage: {name!r}")
            node = graph.nodes[name]
            if not node.has_run or node.needs_to_run:
                graph.run_stage(name, gltf, dry_run=dry_run)
        graph.finish(gltf, dry_run=dry_run)
        return list(graph.pipeline)
