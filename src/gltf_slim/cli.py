"""Command-line interface for gltf-slim."""

from enum import Enum
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from gltf_slim.errors import GltfSlimError
from gltf_slim.utils.constants import DEFAULT_CONFIG
from gltf_slim.utils.logging import format_count, log_info, set_debug, set_quiet

try:
    __version__ = version("gltf-slim")
except PackageNotFoundError:
    __version__ = "unknown"

SUPPORTED_SUFFIXES = (".glb", ".gltf")

app = typer.Typer(
    name="gltf-slim",
    help="Prune unused glTF elements and pack assets into binary glTF",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool) -> None:
    if value:
        print(f"gltf-slim {__version__}")
        raise typer.Exit()


class OutputFormat(str, Enum):
    glb = "glb"
    gltf = "gltf"


class ContainerVersionChoice(str, Enum):
    auto = "auto"
    v1 = "1"
    v2 = "2"


def _error(message: str) -> None:
    console.print(f"[bold red][ERROR][/] {escape(message)}")


def _collect_inputs(input_path: Path) -> list[Path]:
    if input_path.is_dir():
        return sorted(
            p for p in input_path.iterdir() if p.is_file() and p.suffix.lower() in SUPPORTED_SUFFIXES
        )
    return [input_path]


def _output_for(path: Path, output: Path | None, batch: bool, output_format: str) -> Path | None:
    if output is None:
        return None
    if batch:
        return output / f"{path.stem}.{output_format}"
    return output


@app.command()
def optimize(
    input_path: Annotated[
        Path,
        typer.Argument(
            help="Input file ([bold green].glb[/] or [bold green].gltf[/]) or a directory of them",
            metavar="INPUT",
        ),
    ],
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output path, or output directory for a directory INPUT (default: [italic]input_optimized.\\[glb|gltf][/])",
            rich_help_panel="Core Options",
        ),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format",
            rich_help_panel="Core Options",
        ),
    ] = OutputFormat(DEFAULT_CONFIG["output_format"]),
    container_version: Annotated[
        ContainerVersionChoice,
        typer.Option(
            "--container-version",
            help="Binary glTF version (auto: 1 for named ids, 2 for indexed)",
            rich_help_panel="Core Options",
        ),
    ] = ContainerVersionChoice.auto,
    prune: Annotated[
        bool,
        typer.Option(
            "--prune/--keep-unused",
            help="Remove elements nothing references",
            rich_help_panel="Processing",
        ),
    ] = DEFAULT_CONFIG["remove_unused"],
    sanitize: Annotated[
        bool,
        typer.Option(
            "--sanitize-attributes/--keep-attributes",
            help="Remove primitive attributes no technique consumes",
            rich_help_panel="Processing",
        ),
    ] = DEFAULT_CONFIG["sanitize_attributes"],
    buffer_name: Annotated[
        str,
        typer.Option(
            "--buffer-name",
            help="Name of the merged buffer",
            rich_help_panel="Processing",
        ),
    ] = DEFAULT_CONFIG["buffer_name"],
    stages: Annotated[
        list[str] | None,
        typer.Option(
            "--stage",
            help="Run this stage (repeatable); replaces the default stage list",
            rich_help_panel="Stages",
        ),
    ] = None,
    stage_config: Annotated[
        Path | None,
        typer.Option(
            "--stage-config",
            help="JSON file or directory of [italic]<stage>.json[/] files with before/after relations",
            rich_help_panel="Stages",
        ),
    ] = None,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Only print warnings and errors",
        ),
    ] = DEFAULT_CONFIG["quiet"],
    debug: Annotated[
        bool,
        typer.Option(
            "--debug",
            help="Print debug output (skipped references, stage order)",
        ),
    ] = False,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            callback=version_callback,
            is_eager=True,
            help="Show the version and exit.",
        ),
    ] = None,
) -> None:
    """
    Prune unused elements and write optimized glTF/GLB.
    """
    set_quiet(quiet)
    set_debug(debug)

    input_path = input_path.absolute()
    if not input_path.exists():
        _error(f"File not found: {input_path}")
        raise typer.Exit(code=1)

    batch = input_path.is_dir()
    if not batch and input_path.suffix.lower() not in SUPPORTED_SUFFIXES:
        _error(f"Unsupported format: {input_path.suffix}")
        console.print("        Supported: .glb, .gltf")
        raise typer.Exit(code=1)

    inputs = _collect_inputs(input_path)
    if not inputs:
        _error(f"No .glb or .gltf files in {input_path}")
        raise typer.Exit(code=1)
    if batch:
        log_info(f"Found {format_count(len(inputs), 'asset')} in {input_path}")

    # Lazy import to keep CLI help snappy
    from gltf_slim.exporters import ProcessConfig, optimize_file
    from gltf_slim.pipeline import load_stage_configs

    try:
        stage_configs = load_stage_configs(stage_config) if stage_config else None
    except (GltfSlimError, OSError) as e:
        _error(f"Cannot load stage config: {e}")
        raise typer.Exit(code=1) from e

    failed = 0
    for path in inputs:
        config = ProcessConfig(
            output_path=_output_for(path, output, batch, output_format.value),
            output_format=output_format.value,
            container_version=(
                None
                if container_version is ContainerVersionChoice.auto
                else int(container_version.value)
            ),
            buffer_name=buffer_name,
            remove_unused=prune,
            sanitize_attributes=sanitize,
            stages=stages or None,
            stage_configs=stage_configs,
            quiet=quiet,
        )
        try:
            optimize_file(path, config)
        except (GltfSlimError, OSError) as e:
            _error(f"{path.name}: {e}")
            failed += 1

    if failed:
        if batch:
            _error(f"{failed} of {len(inputs)} assets failed")
        raise typer.Exit(code=1)


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
