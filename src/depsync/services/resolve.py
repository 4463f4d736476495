"""GraphResolver — inventory and usage into the resolved dependency graph.

Each non-ignored package gets one ResolvedDependency per workspace package
it imports (runtime or type-only) plus the configured default dependencies.
Unknown ids, missing entry points and dependencies on apps are reported as
warnings; nothing here raises for bad input.
"""

from __future__ import annotations

import structlog

from depsync.config.logging import get_logger
from depsync.config.models import SyncConfig
from depsync.domain.models import (
    Package,
    ProjectInventory,
    ProjectUsage,
    ResolvedDependency,
    ResolvedGraph,
    ResolvedProject,
    UsageRecord,
)
from depsync.domain.types import DependencyReason
from depsync.infrastructure.graph.engine import GraphEngine
from depsync.infrastructure.storage import Storage
from depsync.services.analysis import detect_cycles, detect_diamonds
from depsync.services.entrypoints import EntryPointResolver


class GraphResolver:
    """Build a :class:`ResolvedGraph` and run cycle and diamond detection."""

    def __init__(
        self,
        config: SyncConfig,
        *,
        storage: Storage | None = None,
        entry_points: EntryPointResolver | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._config = config
        self._entry_points = entry_points or EntryPointResolver(storage)
        self._log = logger or get_logger("resolve")

    def resolve(self, inventory: ProjectInventory, usage: ProjectUsage) -> ResolvedGraph:
        ignored = set(self._config.ignore_projects)
        warnings: list[str] = []
        projects: dict[str, ResolvedProject] = {}

        for package_id, package in inventory.projects.items():
            if package_id in ignored:
                continue
            record = usage.usage.get(package_id, UsageRecord())
            projects[package_id] = self._resolve_project(package, record, inventory, warnings)

        engine = GraphEngine(projects)
        cycles = detect_cycles(projects)
        diamonds = detect_diamonds(
            projects,
            universal_utilities=frozenset(self._config.universal_utilities),
            layering=self._config.layering,
            engine=engine,
        )

        if cycles:
            self._log.warning(
                "graph.cycles_found",
                count=len(cycles),
                cycles=[" -> ".join(c.path) for c in cycles],
            )
        self._log.info(
            "graph.resolved",
            projects=len(projects),
            edges=engine.graph.number_of_edges(),
            diamonds=len(diamonds),
            warnings=len(warnings),
        )
        return ResolvedGraph(
            projects=projects,
            cycles=tuple(cycles),
            diamonds=tuple(diamonds),
            warnings=tuple(warnings),
        )

    def _resolve_project(
        self,
        package: Package,
        record: UsageRecord,
        inventory: ProjectInventory,
        warnings: list[str],
    ) -> ResolvedProject:
        candidates = set(record.all_dependencies)
        candidates.update(self._config.default_dependencies)
        candidates.discard(package.id)

        dependencies: dict[str, ResolvedDependency] = {}
        for dep_id in sorted(candidates):
            dependency = inventory.get(dep_id)
            if dependency is None:
                warnings.append(
                    f"Project {package.id} depends on {dep_id}, "
                    "but it was not found in the workspace"
                )
                continue

            entry_point = self._entry_points.resolve(dependency)
            if not entry_point.exists:
                warnings.append(
                    f"Dependency {dep_id} has no entry point on disk. "
                    f"Using convention: {entry_point.path}"
                )
            if dependency.is_app:
                warnings.append(
                    f"Architectural violation: {package.id} ({package.category}) "
                    f"depends on app {dep_id}"
                )

            # Defaults merged in by the scanner carry no source files.
            source_files = record.source_files_for(dep_id)
            reason = DependencyReason.IMPORT if source_files else DependencyReason.DEFAULT
            dependencies[dep_id] = ResolvedDependency(
                dependency=dependency,
                entry_point=entry_point,
                reason=reason,
                source_files=source_files,
            )

        return ResolvedProject(project=package, dependencies=dependencies)
