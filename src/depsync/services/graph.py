"""GraphService — read-only analyses of the workspace dependency graph.

Four operations, each running discover, scan and resolve but never
reconciling:

- ``cycles``: dependency cycles
- ``diamonds``: dependencies imported directly and through intermediates
- ``usage``: import counts, most-used and potentially unused packages
- ``deps``: packages ranked by outgoing and incoming edges
"""

from __future__ import annotations

from depsync.domain.models import DuplicatePackageError
from depsync.domain.types import DiamondKind
from depsync.infrastructure.graph.engine import GraphEngine
from depsync.services.analysis import dependency_summary, usage_summary
from depsync.services.base import BaseService
from depsync.services.discovery import WorkspaceError
from depsync.services.result import ServiceResult
from depsync.services.telemetry import traced


class GraphService(BaseService):
    """Handles graph queries and analysis."""

    @traced
    def cycles(self) -> ServiceResult:
        op = "graph_cycles"
        try:
            inventory = self._discover()
        except (WorkspaceError, DuplicatePackageError) as exc:
            return self._workspace_failure(op, exc)

        graph = self._resolve(inventory, self._scan(inventory))
        items = [cycle.to_dict() for cycle in graph.cycles]
        return ServiceResult(
            ok=True,
            op=op,
            data={"count": len(items), "items": items},
            warnings=list(graph.warnings),
        )

    @traced
    def diamonds(self, *, kind: DiamondKind | None = None) -> ServiceResult:
        """Diamond occurrences, optionally filtered to one *kind*."""
        op = "graph_diamonds"
        try:
            inventory = self._discover()
        except (WorkspaceError, DuplicatePackageError) as exc:
            return self._workspace_failure(op, exc)

        graph = self._resolve(inventory, self._scan(inventory))
        found = [d for d in graph.diamonds if kind is None or d.pattern_kind is kind]
        by_kind = {str(k): sum(1 for d in found if d.pattern_kind is k) for k in DiamondKind}
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "count": len(found),
                "by_kind": by_kind,
                "items": [d.to_dict() for d in found],
            },
            warnings=list(graph.warnings),
        )

    @traced
    def usage(self, *, top: int = 10) -> ServiceResult:
        op = "graph_usage"
        try:
            inventory = self._discover()
        except (WorkspaceError, DuplicatePackageError) as exc:
            return self._workspace_failure(op, exc)

        usage = self._scan(inventory)
        return ServiceResult(
            ok=True,
            op=op,
            data=usage_summary(inventory, usage, top=top),
            warnings=[*inventory.warnings, *usage.warnings],
        )

    @traced
    def deps(self, *, top: int = 10) -> ServiceResult:
        op = "graph_deps"
        try:
            inventory = self._discover()
        except (WorkspaceError, DuplicatePackageError) as exc:
            return self._workspace_failure(op, exc)

        graph = self._resolve(inventory, self._scan(inventory))
        engine = GraphEngine(graph.projects)
        return ServiceResult(
            ok=True,
            op=op,
            data=dependency_summary(graph.projects, top=top, engine=engine),
            warnings=list(graph.warnings),
        )
