"""ImportScanner — per-package usage records from source imports.

Walks every source file of every package, extracts module specifiers and
maps them onto workspace package ids. External packages, relative imports,
ignored specifiers and self-imports are dropped. Configured default
dependencies are merged in afterwards as runtime dependencies.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import structlog

from depsync.config.logging import get_logger
from depsync.config.models import SyncConfig
from depsync.domain.models import (
    Package,
    ProjectInventory,
    ProjectUsage,
    UsageDetail,
    UsageRecord,
)
from depsync.domain.patterns import (
    ExcludeMatcher,
    is_ignored,
    is_package_reference,
    resolve_package_id,
)
from depsync.domain.specifiers import extract_specifiers
from depsync.infrastructure.storage import LocalStorage, Storage
from depsync.infrastructure.walker import walk_source_files

type FileWalker = Callable[
    [Path, ExcludeMatcher, Callable[[OSError], None]], Iterable[Path]
]

# (details, warning) for one file; exactly one side is populated.
type _FileScan = tuple[list[UsageDetail], str | None]


class ImportScanner:
    """Aggregate import usage across the inventory."""

    def __init__(
        self,
        config: SyncConfig,
        *,
        storage: Storage | None = None,
        walker: FileWalker = walk_source_files,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._config = config
        self._storage = storage or LocalStorage()
        self._walker = walker
        self._log = logger or get_logger("scan")
        self._excludes = ExcludeMatcher.with_defaults(config.exclude_patterns)

    def scan(self, inventory: ProjectInventory) -> ProjectUsage:
        """Build a usage record for every package in *inventory*."""
        known_ids = inventory.ids
        usage: dict[str, UsageRecord] = {}
        warnings: list[str] = []

        for package_id, package in inventory.projects.items():
            details = self._scan_package(package, known_ids, warnings)
            usage[package_id] = self._build_record(package_id, details)

        self._log.info(
            "scan.complete",
            packages=len(usage),
            imports=sum(len(record.usage_details) for record in usage.values()),
            warnings=len(warnings),
        )
        return ProjectUsage(usage=usage, warnings=tuple(warnings))

    # ------------------------------------------------------------------
    # Per package
    # ------------------------------------------------------------------

    def _scan_package(
        self, package: Package, known_ids: frozenset[str], warnings: list[str]
    ) -> list[UsageDetail]:
        def unreadable(exc: OSError) -> None:
            warnings.append(f"Failed to read directory {exc.filename}: {exc.strerror or exc}")

        try:
            files = list(self._walker(package.root_path, self._excludes, unreadable))
        except OSError as exc:
            warnings.append(f"Failed to walk {package.relative_path}: {exc}")
            return []

        def scan_one(path: Path) -> _FileScan:
            return self._scan_file(package, path, known_ids)

        details: list[UsageDetail] = []
        for file_details, warning in self._map(scan_one, files):
            if warning is not None:
                warnings.append(warning)
            details.extend(file_details)
        return details

    def _map(self, fn: Callable[[Path], _FileScan], files: list[Path]) -> Iterator[_FileScan]:
        """Apply *fn* to every file, preserving walk order."""
        workers = self._config.scan.max_workers
        if workers <= 1 or len(files) <= 1:
            yield from map(fn, files)
            return
        with ThreadPoolExecutor(max_workers=workers) as pool:
            yield from pool.map(fn, files)

    def _scan_file(self, package: Package, path: Path, known_ids: frozenset[str]) -> _FileScan:
        try:
            source = self._storage.read_text(path)
        except (OSError, ValueError) as exc:
            return [], f"Failed to read {path}: {exc}"

        try:
            relative = path.relative_to(package.root_path).as_posix()
        except ValueError:
            relative = path.as_posix()

        details: list[UsageDetail] = []
        for found in extract_specifiers(source):
            specifier = found.specifier
            if not is_package_reference(specifier):
                continue
            if is_ignored(specifier, self._config.ignore_imports):
                continue
            dependency_id = resolve_package_id(specifier, known_ids)
            if dependency_id is None or dependency_id == package.id:
                continue
            details.append(
                UsageDetail(
                    dependency_id=dependency_id,
                    specifier=specifier,
                    source_file=relative,
                    is_type_only=found.is_type_only,
                )
            )
        return details, None

    def _build_record(self, package_id: str, details: list[UsageDetail]) -> UsageRecord:
        runtime = {d.dependency_id for d in details if not d.is_type_only}
        type_only = {d.dependency_id for d in details if d.is_type_only} - runtime

        for default_id in self._config.default_dependencies:
            if default_id == package_id or default_id in runtime or default_id in type_only:
                continue
            runtime.add(default_id)

        return UsageRecord(
            dependencies=frozenset(runtime),
            type_only_dependencies=frozenset(type_only),
            usage_details=tuple(details),
        )
