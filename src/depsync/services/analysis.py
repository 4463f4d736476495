"""Graph analysis — cycles, diamonds, usage and dependency statistics.

All functions are read-only over resolved projects. Cycle discovery is an
explicit-stack depth-first search; diamond discovery and the degree
statistics run on the NetworkX view from
:class:`~depsync.infrastructure.graph.engine.GraphEngine`.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterator, Mapping
from typing import Any

from depsync.config.models import LayeringConfig
from depsync.domain.models import (
    Cycle,
    DiamondOccurrence,
    ProjectInventory,
    ProjectUsage,
    ResolvedProject,
)
from depsync.domain.types import DiamondKind, WorkspaceCategory
from depsync.infrastructure.graph.engine import GraphEngine

# ---------------------------------------------------------------------------
# Cycles
# ---------------------------------------------------------------------------


def detect_cycles(projects: Mapping[str, ResolvedProject]) -> list[Cycle]:
    """Find dependency cycles.

    Traversal starts from every project in sorted id order; nodes finished
    by an earlier traversal are not entered again. Reaching a node that is
    on the current path records the path from that node back to itself.
    Cycles with the same member set are reported once.
    """
    visited: set[str] = set()
    seen: set[frozenset[str]] = set()
    cycles: list[Cycle] = []

    def edges(node_id: str) -> Iterator[str]:
        project = projects.get(node_id)
        return iter(sorted(project.dependencies) if project else ())

    for start in sorted(projects):
        if start in visited:
            continue
        visited.add(start)
        path = [start]
        position = {start: 0}
        stack = [edges(start)]

        while stack:
            dep_id = next(stack[-1], None)
            if dep_id is None:
                stack.pop()
                del position[path.pop()]
                continue

            if dep_id in position:
                cycle_path = (*path[position[dep_id] :], dep_id)
                members = frozenset(cycle_path)
                if members not in seen:
                    seen.add(members)
                    cycles.append(
                        Cycle(
                            path=cycle_path,
                            projects=tuple(
                                projects[i].project for i in cycle_path if i in projects
                            ),
                        )
                    )
                continue

            if dep_id in visited:
                continue
            visited.add(dep_id)
            position[dep_id] = len(path)
            path.append(dep_id)
            stack.append(edges(dep_id))

    return cycles


# ---------------------------------------------------------------------------
# Diamonds
# ---------------------------------------------------------------------------


def _transitive_through(engine: GraphEngine, direct: set[str], target: str) -> set[str]:
    """Intermediates on any path from a direct dependency to *target*."""
    ancestors = engine.ancestors(target)
    through = direct & ancestors
    for dep_id in sorted(through):
        through |= engine.descendants(dep_id) & ancestors
    return through


def _classify(
    consumer_id: str,
    dependency_id: str,
    through: list[str],
    universal_utilities: frozenset[str],
    layering: LayeringConfig,
) -> tuple[DiamondKind, str]:
    if dependency_id in universal_utilities:
        return (
            DiamondKind.EXPECTED_SHARED_UTILITY,
            f"{dependency_id} is designed to be used everywhere. No action needed.",
        )

    is_ui_layer = any(marker in consumer_id for marker in layering.ui_markers)
    is_data_layer = any(marker in dependency_id for marker in layering.data_markers)
    if is_ui_layer and is_data_layer:
        return (
            DiamondKind.LAYERING_VIOLATION_CANDIDATE,
            f"UI layer reaches into the data layer while also using abstraction layers. "
            f"Consider whether {consumer_id} should only use the abstraction layer.",
        )

    listed = ", ".join(through[:2])
    return (
        DiamondKind.INCOMPLETE_ABSTRACTION,
        f"{listed} uses {dependency_id} internally but does not expose everything "
        f"{consumer_id} needs. Consider whether {listed} should provide a more "
        "complete abstraction.",
    )


def detect_diamonds(
    projects: Mapping[str, ResolvedProject],
    *,
    universal_utilities: frozenset[str] | set[str] = frozenset(),
    layering: LayeringConfig | None = None,
    engine: GraphEngine | None = None,
) -> list[DiamondOccurrence]:
    """Find dependencies a package imports both directly and transitively."""
    engine = engine or GraphEngine(projects)
    layering = layering or LayeringConfig()
    universal = frozenset(universal_utilities)
    diamonds: list[DiamondOccurrence] = []

    for consumer_id in sorted(projects):
        direct = set(projects[consumer_id].dependencies)
        for dependency_id in sorted(direct):
            through = _transitive_through(engine, direct, dependency_id)
            through -= {dependency_id, consumer_id}
            if not through:
                continue
            ordered = sorted(through)
            kind, explanation = _classify(
                consumer_id, dependency_id, ordered, universal, layering
            )
            diamonds.append(
                DiamondOccurrence(
                    consumer_id=consumer_id,
                    direct_dependency_id=dependency_id,
                    transitive_through_ids=tuple(ordered),
                    pattern_kind=kind,
                    explanation=explanation,
                )
            )
    return diamonds


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


def usage_summary(
    inventory: ProjectInventory, usage: ProjectUsage, *, top: int = 10
) -> dict[str, Any]:
    """Import usage counts across the workspace.

    ``potentially_unused`` lists shared packages no other package imports.
    """
    dependents: Counter[str] = Counter()
    runtime_edges = 0
    type_only_edges = 0
    for record in usage.usage.values():
        runtime_edges += len(record.dependencies)
        type_only_edges += len(record.type_only_dependencies)
        dependents.update(record.all_dependencies)

    most_used = sorted(dependents.items(), key=lambda item: (-item[1], item[0]))[:top]
    unused = [
        package_id
        for package_id, package in inventory.projects.items()
        if package.category is WorkspaceCategory.SHARED_PACKAGE and not dependents[package_id]
    ]
    return {
        "packages": len(inventory),
        "runtime_edges": runtime_edges,
        "type_only_edges": type_only_edges,
        "most_used": [{"id": pid, "dependents": count} for pid, count in most_used],
        "potentially_unused": sorted(unused),
    }


def dependency_summary(
    projects: Mapping[str, ResolvedProject], *, top: int = 10, engine: GraphEngine | None = None
) -> dict[str, Any]:
    """Packages ranked by outgoing and incoming dependency edges."""
    engine = engine or GraphEngine(projects)
    g = engine.graph

    def ranked(degrees: Any) -> list[dict[str, Any]]:
        rows = sorted(
            ((node, int(count)) for node, count in degrees if count),
            key=lambda item: (-item[1], item[0]),
        )
        return [{"id": node, "count": count} for node, count in rows[:top]]

    return {
        "packages": len(projects),
        "edges": g.number_of_edges(),
        "most_dependencies": ranked(g.out_degree()),
        "most_depended_upon": ranked(g.in_degree()),
    }
