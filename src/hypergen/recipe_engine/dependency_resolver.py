"""Step dependency resolution.

Builds a dependency graph from `depends_on` declarations, rejects cycles,
and groups steps into execution phases: each phase holds every step whose
dependencies were all placed in earlier phases.
"""

import logging

from hypergen.recipe_engine.models import (
    CircularDependencyError,
    DependencyNode,
    ExecutionPhase,
    ExecutionPlan,
    StepExecutionError,
)
from hypergen.recipe_parser import RecipeStep

logger = logging.getLogger(__name__)

# Rough per-tool duration estimates in milliseconds.
ESTIMATED_DURATIONS = {
    "template": 5000,
    "action": 3000,
    "recipe": 15000,
    "shell": 5000,
    "install": 20000,
    "query": 100,
    "prompt": 0,
}
DEFAULT_ESTIMATED_DURATION = 2000


class DependencyResolver:
    """Plan recipe step execution order."""

    def __init__(self, allow_parallel: bool = True):
        self.allow_parallel = allow_parallel

    def build_graph(self, steps: list[RecipeStep]) -> dict[str, DependencyNode]:
        """Build the dependency graph.

        Raises:
            StepExecutionError: If a step depends on an unknown step
            CircularDependencyError: If dependencies form a cycle
        """
        graph = {
            step.name: DependencyNode(
                step_name=step.name,
                dependencies=list(step.depends_on),
                parallelizable=step.parallel is not False,
            )
            for step in steps
        }

        for name, node in graph.items():
            for dependency in node.dependencies:
                if dependency not in graph:
                    raise StepExecutionError(
                        f"Step '{name}' depends on unknown step: {dependency}", name
                    )
                graph[dependency].dependents.append(name)

        self.detect_cycles(graph)
        self._calculate_priorities(graph)
        return graph

    def detect_cycles(self, graph: dict[str, DependencyNode]) -> None:
        visited: set[str] = set()
        visiting: set[str] = set()

        def visit(name: str, path: list[str]) -> None:
            if name in visiting:
                cycle = path[path.index(name) :] + [name]
                raise CircularDependencyError(
                    f"Circular dependency detected: {' -> '.join(cycle)}", cycle
                )
            if name in visited:
                return

            visiting.add(name)
            for dependency in graph[name].dependencies:
                visit(dependency, path + [name])
            visiting.discard(name)
            visited.add(name)

        for name in graph:
            visit(name, [])

    def _calculate_priorities(self, graph: dict[str, DependencyNode]) -> None:
        resolved: set[str] = set()

        def priority(name: str) -> int:
            node = graph[name]
            if name in resolved:
                return node.priority
            node.priority = (
                max(priority(dep) for dep in node.dependencies) + 1 if node.dependencies else 0
            )
            resolved.add(name)
            return node.priority

        for name in graph:
            priority(name)

    def create_plan(self, steps: list[RecipeStep]) -> ExecutionPlan:
        """Group steps into ordered execution phases."""
        graph = self.build_graph(steps)
        assigned: set[str] = set()
        phases: list[ExecutionPhase] = []

        while len(assigned) < len(steps):
            ready = [
                step.name
                for step in steps
                if step.name not in assigned
                and all(dep in assigned for dep in graph[step.name].dependencies)
            ]
            if not ready:
                # Unreachable once cycles are rejected.
                raise StepExecutionError("Unable to resolve step execution order")

            parallel = (
                self.allow_parallel
                and len(ready) > 1
                and all(graph[name].parallelizable for name in ready)
            )
            phases.append(ExecutionPhase(index=len(phases), steps=ready, parallel=parallel))
            assigned.update(ready)

        estimated = sum(
            ESTIMATED_DURATIONS.get(step.tool, DEFAULT_ESTIMATED_DURATION) for step in steps
        )
        logger.debug(f"Planned {len(steps)} steps in {len(phases)} phases")
        return ExecutionPlan(phases=phases, graph=graph, estimated_duration=estimated)


__all__ = ["CircularDependencyError", "DependencyResolver"]
