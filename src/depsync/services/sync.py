"""SyncService — the full discover, scan, resolve, reconcile pipeline.

Fatal policy lives here rather than in the stages: cycles stop the run
before anything is written unless forced, and stale dependencies fail the
run after reconciliation when requested.
"""

from __future__ import annotations

from typing import Any

from depsync.domain.models import DuplicatePackageError, ReconciliationResult, ResolvedGraph
from depsync.services.base import BaseService
from depsync.services.discovery import WorkspaceError
from depsync.services.reconcile import Reconciler
from depsync.services.result import ServiceError, ServiceResult
from depsync.services.telemetry import trace_span, traced

EXIT_STALE = 1
EXIT_CYCLES = 2


def _graph_payload(graph: ResolvedGraph) -> dict[str, Any]:
    return {
        "cycles": [cycle.to_dict() for cycle in graph.cycles],
        "diamonds": [diamond.to_dict() for diamond in graph.diamonds],
    }


class SyncService(BaseService):
    """Synchronize manifests and reference configs with observed imports."""

    @traced
    def sync(
        self,
        *,
        dry_run: bool = False,
        force: bool = False,
        fail_on_stale: bool = False,
    ) -> ServiceResult:
        """Run the pipeline once.

        Args:
            dry_run: Record diffs instead of writing files.
            force: Reconcile even when dependency cycles exist.
            fail_on_stale: Fail (exit 1) when stale dependencies are found.
        """
        op = "sync"
        try:
            inventory = self._discover()
        except (WorkspaceError, DuplicatePackageError) as exc:
            return self._workspace_failure(op, exc)

        usage = self._scan(inventory)
        graph = self._resolve(inventory, usage)
        warnings = [*inventory.warnings, *usage.warnings, *graph.warnings]

        if graph.cycles and not force:
            payload = _graph_payload(graph)
            return ServiceResult(
                ok=False,
                op=op,
                data=payload,
                warnings=warnings,
                error=ServiceError(
                    code="CYCLES_DETECTED",
                    message=(
                        f"Found {len(graph.cycles)} dependency cycle(s); "
                        "break them or rerun with --force"
                    ),
                    detail={"cycles": payload["cycles"]},
                ),
                exit_code=EXIT_CYCLES,
            )

        with trace_span("reconcile") as span:
            result = Reconciler(self._config, storage=self._storage).reconcile(
                graph,
                inventory,
                preview=dry_run,
                workspace_root=self._root,
            )
            if span:
                span.annotate("files_touched", result.files_touched)
        warnings.extend(result.warnings)

        data = self._payload(inventory_size=len(inventory), graph=graph, result=result)
        data["dry_run"] = dry_run

        if fail_on_stale and result.has_stale:
            return ServiceResult(
                ok=False,
                op=op,
                data=data,
                warnings=warnings,
                error=ServiceError(
                    code="STALE_DEPENDENCIES",
                    message=(
                        f"Stale dependencies in {len(result.stale_dependencies)} package(s)"
                    ),
                    detail={"packages": sorted(result.stale_dependencies)},
                ),
                exit_code=EXIT_STALE,
            )

        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    @staticmethod
    def _payload(
        *, inventory_size: int, graph: ResolvedGraph, result: ReconciliationResult
    ) -> dict[str, Any]:
        reconciliation = result.to_dict()
        # Warnings travel on the ServiceResult itself.
        reconciliation.pop("warnings")
        return {
            "packages": inventory_size,
            "resolved": len(graph.projects),
            **reconciliation,
            **_graph_payload(graph),
        }
