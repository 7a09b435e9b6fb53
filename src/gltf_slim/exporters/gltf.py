"""glTF/GLB processing: read, run the stage pipeline, write."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from gltf_slim.glb.convert import gltf_to_glb
from gltf_slim.glb.reader import parse_glb
from gltf_slim.model import CATEGORIES, Gltf, is_indexed_gltf
from gltf_slim.pipeline.stages import (
    DEFAULT_STAGE_CONFIGS,
    Stage,
    StageConfig,
    StageContext,
    StageRunner,
)
from gltf_slim.utils.constants import DEFAULT_BUFFER_NAME, DEFAULT_CONFIG
from gltf_slim.utils.logging import (
    StepTimer,
    bold,
    bright_cyan,
    bright_green,
    cyan,
    dim,
    format_bytes,
    format_count,
    format_delta,
    format_duration,
    log_detail,
    log_ok,
    print_header,
    timed,
)
from gltf_slim.utils.resources import read_asset, write_asset
from gltf_slim.utils.stats import RemovalStats


@dataclass
class ProcessConfig:
    """Configuration for processing one asset."""

    output_path: Path | None = None
    output_format: str = DEFAULT_CONFIG["output_format"]
    container_version: int | None = DEFAULT_CONFIG["container_version"]
    buffer_name: str = DEFAULT_BUFFER_NAME
    remove_unused: bool = DEFAULT_CONFIG["remove_unused"]
    sanitize_attributes: bool = DEFAULT_CONFIG["sanitize_attributes"]
    stages: list[str] | None = None
    stage_configs: dict[str, StageConfig] | None = None
    quiet: bool = DEFAULT_CONFIG["quiet"]

    def resolve_stages(self) -> list[str]:
        """Explicit stage list, or the one implied by the switches."""
        if self.stages is not None:
            return list(self.stages)
        stages = [Stage.ADD_PIPELINE_EXTRAS.value]
        if self.sanitize_attributes:
            stages.append(Stage.REMOVE_UNUSED_PRIMITIVE_ATTRIBUTES.value)
        if self.remove_unused:
            stages.append(Stage.REMOVE_ALL_UNUSED.value)
        # GLB output merges buffers while packing
        if self.output_format == "gltf":
            stages.append(Stage.MERGE_BUFFERS.value)
        return stages


def count_elements(gltf: Gltf) -> int:
    """Total number of elements across all top-level collections."""
    return sum(len(gltf.get(category) or ()) for category in CATEGORIES)


def process_gltf(
    gltf: Gltf, config: ProcessConfig | None = None, stats: RemovalStats | None = None
) -> list[str]:
    """
    Run the configured stages over a document in place.

    Returns the history of executed stages.
    """
    config = config or ProcessConfig()
    stage_configs = config.stage_configs
    if stage_configs is None:
        stage_configs = DEFAULT_STAGE_CONFIGS
    runner = StageRunner(stage_configs=stage_configs)
    context = StageContext(
        stats=stats if stats is not None else RemovalStats(),
        buffer_name=config.buffer_name,
    )
    return runner.run(gltf, config.resolve_stages(), context)


def process_glb(data: bytes, config: ProcessConfig | None = None) -> bytes:
    """Decode a container, process it and encode it again."""
    config = config or ProcessConfig()
    gltf = parse_glb(data)
    process_gltf(gltf, config)
    return gltf_to_glb(gltf, config.container_version, config.buffer_name)


def default_output_path(input_path: Path, output_format: str) -> Path:
    return input_path.with_name(f"{input_path.stem}_optimized.{output_format}")


def optimize_file(input_path: str | Path, config: ProcessConfig | None = None) -> Path:
    """
    Read an asset, prune and pack it, and write the result.

    Args:
        input_path: ``.glb`` or ``.gltf`` file
        config: Processing options (default: prune, sanitize, write GLB)

    Returns:
        Path of the written file.

    Raises:
        GltfSlimError: malformed input or stage configuration.
        OSError: the input cannot be read or the output written.
    """
    config = config or ProcessConfig()
    input_path = Path(input_path)
    output_path = config.output_path or default_output_path(input_path, config.output_format)

    step = StepTimer(total_steps=3)
    print_header("GLTF SLIM")

    step.step("Reading asset...")
    log_detail(dim(str(input_path)))
    with timed("Read", print_on_exit=False) as t:
        gltf = read_asset(input_path)
    before = count_elements(gltf)
    scheme = "indexed" if is_indexed_gltf(gltf) else "named"
    log_detail(
        f"{cyan(format_count(before, 'element'))} ({scheme} ids) "
        f"{dim(f'({format_duration(t.elapsed)})')}"
    )

    step.step("Running stages...")
    stats = RemovalStats()
    with timed("Stages", print_on_exit=False) as t:
        history = process_gltf(gltf, config, stats)
    log_detail(f"Ran {' -> '.join(history) or dim('nothing')}")
    log_detail(
        f"Elements: {format_delta(before, count_elements(gltf))} "
        f"{dim(f'({format_duration(t.elapsed)})')}"
    )

    step.step(f"Writing {config.output_format.upper()}...")
    log_detail(dim(str(output_path)))
    with timed("Write", print_on_exit=False) as t:
        size = write_asset(
            output_path,
            gltf,
            config.output_format,
            config.container_version,
            config.buffer_name,
        )
    log_ok(f"Written {dim(f'({format_duration(t.elapsed)})')}")

    step.finish()
    if not config.quiet:
        print(f"\n{cyan('=' * 60)}")
        print(f"  {bold('OUTPUT')}: {bright_green(os.path.basename(output_path))}")
        print(f"  {bold('SIZE')}:   {bright_cyan(format_bytes(size))} ({size:,} bytes)")
        print(f"  {bold('TIME')}:   {bright_cyan(format_duration(step.total_elapsed()))}")
        print(f"{cyan('=' * 60)}")
        stats.print_summary()
        step.print_summary()
    return output_path
