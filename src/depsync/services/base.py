"""BaseService — shared pipeline plumbing for the depsync services.

Every service receives the workspace root and the validated
:class:`~depsync.config.models.SyncConfig` at construction time, plus an
optional storage adapter. The pipeline stages (discover, scan, resolve) are
exposed as helpers so each service composes only what it needs.
"""

from __future__ import annotations

from pathlib import Path

from depsync.config.logging import get_logger
from depsync.config.models import SyncConfig
from depsync.domain.models import (
    DuplicatePackageError,
    ProjectInventory,
    ProjectUsage,
    ResolvedGraph,
)
from depsync.infrastructure.storage import LocalStorage, Storage
from depsync.services.discovery import WorkspaceDiscovery, WorkspaceError
from depsync.services.entrypoints import EntryPointResolver
from depsync.services.resolve import GraphResolver
from depsync.services.result import ServiceError, ServiceResult
from depsync.services.scan import ImportScanner
from depsync.services.telemetry import trace_span


class BaseService:
    """Abstract base for all service-layer classes.

    Usage::

        class SyncService(BaseService):
            def sync(self, ...) -> ServiceResult:
                inventory = self._discover()
                ...
    """

    def __init__(
        self,
        root: Path,
        config: SyncConfig,
        *,
        storage: Storage | None = None,
    ) -> None:
        self._root = root
        self._config = config
        self._storage = storage or LocalStorage()
        self._log = get_logger(type(self).__name__)

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------

    def _discover(self) -> ProjectInventory:
        """Build the inventory.

        Raises:
            WorkspaceError: If the workspace cannot be read.
            DuplicatePackageError: If two packages share a name.
        """
        with trace_span("discover") as span:
            inventory = WorkspaceDiscovery(
                self._root, self._config, storage=self._storage
            ).discover()
            if span:
                span.annotate("packages", len(inventory))
        return inventory

    def _scan(self, inventory: ProjectInventory) -> ProjectUsage:
        with trace_span("scan") as span:
            usage = ImportScanner(self._config, storage=self._storage).scan(inventory)
            if span:
                span.annotate("warnings", len(usage.warnings))
        return usage

    def _resolve(self, inventory: ProjectInventory, usage: ProjectUsage) -> ResolvedGraph:
        with trace_span("resolve") as span:
            resolver = GraphResolver(
                self._config,
                entry_points=EntryPointResolver(self._storage),
            )
            graph = resolver.resolve(inventory, usage)
            if span:
                span.annotate("cycles", len(graph.cycles))
                span.annotate("diamonds", len(graph.diamonds))
        return graph

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def _workspace_failure(
        self, op: str, exc: WorkspaceError | DuplicatePackageError
    ) -> ServiceResult:
        """Turn a fatal discovery error into a failed result."""
        self._log.debug("workspace.failed", op=op, root=str(self._root), error=str(exc))
        if isinstance(exc, DuplicatePackageError):
            error = ServiceError(
                code="DUPLICATE_PACKAGE",
                message=str(exc),
                detail={"id": exc.package_id, "paths": list(exc.paths)},
            )
        else:
            error = ServiceError(code="WORKSPACE_ERROR", message=str(exc))
        return ServiceResult(ok=False, op=op, error=error, exit_code=1)
