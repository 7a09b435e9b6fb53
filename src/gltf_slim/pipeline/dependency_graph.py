"""
Dependency graph of named pipeline stages.

Each node knows four relations to other stages:

- ``run_before``: must have run at least once before this stage; re-run only
  when it never ran or was flagged as needing a run.
- ``run_immediately_before``: always run right before this stage.
- ``run_immediately_after``: always run right after this stage.
- ``run_after``: must run at some point after this stage. Normally this only
  flags the target; ``finish()`` (or a run with ``finishing=True``) executes it.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from gltf_slim.errors import ConfigurationError
from gltf_slim.model import Gltf
from gltf_slim.utils.logging import log_debug

StageCallable = Callable[[Gltf], Any]


@dataclass
class DependencyGraphNode:
    """One stage and its relations. ``has_run`` never goes back to False."""

    name: str
    run_before: list[str] = field(default_factory=list)
    run_immediately_before: list[str] = field(default_factory=list)
    run_immediately_after: list[str] = field(default_factory=list)
    run_after: list[str] = field(default_factory=list)
    has_run: bool = False
    needs_to_run: bool = False


class DependencyGraph:
    """
    Runs stages in an order that satisfies their relations.

    ``pipeline`` records every stage execution in order, including repeats.
    """

    def __init__(self, stage_functions: Mapping[str, StageCallable] | None = None) -> None:
        self.nodes: dict[str, DependencyGraphNode] = {}
        self.pipeline: list[str] = []
        self.stage_functions: dict[str, StageCallable] = dict(stage_functions or {})
        self._active: list[str] = []

    def add_node(
        self,
        name: str,
        run_before: Iterable[str] = (),
        run_immediately_before: Iterable[str] = (),
        run_immediately_after: Iterable[str] = (),
        run_after: Iterable[str] = (),
    ) -> DependencyGraphNode:
        """Add (or replace) a stage node; it can then be run by name."""
        node = DependencyGraphNode(
            name=name,
            run_before=list(run_before),
            run_immediately_before=list(run_immediately_before),
            run_immediately_after=list(run_immediately_after),
            run_after=list(run_after),
        )
        self.nodes[name] = node
        return node

    def get_node(self, name: str) -> DependencyGraphNode:
        try:
            return self.nodes[name]
        except KeyError:
            raise ConfigurationError(f"Stage {name!r} has not been added to the graph") from None

    def _execute(self, name: str, gltf: Gltf) -> None:
        try:
            stage_function = self.stage_functions[name]
        except KeyError:
            raise ConfigurationError(f"Stage {name!r} has no implementation") from None
        log_debug(f"Running stage {name}")
        stage_function(gltf)

    def run_stage(
        self, name: str, gltf: Gltf, *, dry_run: bool = False, finishing: bool = False
    ) -> None:
        """
        Run one stage with its dependencies.

        Args:
            name: Stage to run
            gltf: Document passed to every stage function
            dry_run: Record the order without calling stage functions
            finishing: Execute ``run_after`` targets now instead of flagging them

        Raises:
            ConfigurationError: unknown stage, missing implementation, or a
                stage that depends on itself.
        """
        node = self.get_node(name)
        if name in self._active:
            cycle = " -> ".join([*self._active[self._active.index(name) :], name])
            raise ConfigurationError(f"Stage dependency cycle: {cycle}")

        self._active.append(name)
        try:
            for dependency in node.run_before:
                before = self.get_node(dependency)
                if not before.has_run or before.needs_to_run:
                    self.run_stage(dependency, gltf, dry_run=dry_run, finishing=finishing)

            for dependency in node.run_immediately_before:
                self.run_stage(dependency, gltf, dry_run=dry_run, finishing=finishing)

            if not dry_run:
                self._execute(name, gltf)
            self.pipeline.append(name)
            node.needs_to_run = False
            node.has_run = True

            for dependency in node.run_immediately_after:
                self.run_stage(dependency, gltf, dry_run=dry_run, finishing=finishing)

            for dependency in node.run_after:
                if finishing:
                    self.run_stage(dependency, gltf, dry_run=dry_run, finishing=True)
                else:
                    self.get_node(dependency).needs_to_run = True
        finally:
            self._active.pop()

    def finish(self, gltf: Gltf, *, dry_run: bool = False) -> None:
        """Run every stage still flagged as needing a run, in insertion order."""
        for node in list(self.nodes.values()):
            if node.needs_to_run:
                self.run_stage(node.name, gltf, dry_run=dry_run, finishing=True)
