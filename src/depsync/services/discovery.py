"""Workspace discovery — root manifest globs into a ProjectInventory.

The workspace root's ``package.json`` lists package globs under
``workspaces`` (array form or ``{packages: [...]}``). Every matched
directory holding a ``package.json`` is a candidate package; candidates are
classified by the first ``workspace_types`` pattern matching their relative
path.
"""

from __future__ import annotations

import re
from pathlib import Path

import structlog

from depsync.config.logging import get_logger
from depsync.config.models import SyncConfig, WorkspaceTypeConfig
from depsync.domain.models import Package, ProjectInventory
from depsync.domain.types import WorkspaceCategory
from depsync.infrastructure.storage import LocalStorage, Storage


class WorkspaceError(Exception):
    """The workspace root cannot be used (missing manifest, no configuration)."""


def _type_pattern(pattern: str) -> re.Pattern[str]:
    """Workspace-type glob to regex; ``*`` matches one path segment."""
    pattern = pattern.strip("/").removeprefix("./")
    parts = (re.escape(piece) for piece in pattern.split("*"))
    return re.compile("[^/]+".join(parts))


class WorkspaceDiscovery:
    """Build the package inventory of a workspace root."""

    def __init__(
        self,
        root: Path,
        config: SyncConfig,
        *,
        storage: Storage | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._root = root
        self._config = config
        self._storage = storage or LocalStorage()
        self._log = logger or get_logger("discovery")
        self._types = [
            (pattern, _type_pattern(pattern), type_config)
            for pattern, type_config in config.workspace_types.items()
        ]

    def discover(self) -> ProjectInventory:
        """Scan the workspace and return its inventory.

        Raises:
            WorkspaceError: If the root manifest is missing or unreadable, or
                no workspace types are configured.
            DuplicatePackageError: If two packages share a name.
        """
        if not self._types:
            msg = "No workspace types configured; add a [workspace_types] table to depsync.toml"
            raise WorkspaceError(msg)

        root_manifest_path = self._root / "package.json"
        if not self._storage.file_exists(root_manifest_path):
            msg = f"No package.json found at workspace root {self._root}"
            raise WorkspaceError(msg)
        try:
            root_manifest = self._storage.read_manifest(root_manifest_path)
        except (OSError, ValueError) as exc:
            msg = f"Cannot read {root_manifest_path}: {exc}"
            raise WorkspaceError(msg) from exc

        patterns = [p for p in root_manifest.workspaces if not p.startswith("!")]
        if not patterns:
            self._log.warning("discovery.no_workspaces", root=str(self._root))
            return ProjectInventory.from_packages([])

        warnings: list[str] = []
        packages: list[Package] = []
        for package_dir in self._candidate_dirs(patterns):
            package = self._load_package(package_dir, warnings)
            if package is not None:
                packages.append(package)

        inventory = ProjectInventory.from_packages(packages, warnings)
        self._log.info(
            "discovery.complete",
            packages=len(inventory),
            warnings=len(warnings),
        )
        return inventory

    def _candidate_dirs(self, patterns: list[str]) -> list[Path]:
        seen: set[Path] = set()
        ordered: list[Path] = []
        for pattern in patterns:
            pattern = pattern.strip("/").removeprefix("./")
            search = pattern if "*" in pattern else f"{pattern}/*"
            for manifest in sorted(self._root.glob(f"{search}/package.json")):
                package_dir = manifest.parent
                if "node_modules" in package_dir.relative_to(self._root).parts:
                    continue
                if manifest.is_file() and package_dir not in seen:
                    seen.add(package_dir)
                    ordered.append(package_dir)
        return ordered

    def _match_type(self, relative_path: str) -> tuple[str, WorkspaceTypeConfig] | None:
        for pattern, regex, type_config in self._types:
            if regex.fullmatch(relative_path):
                return pattern, type_config
        return None

    def _load_package(self, package_dir: Path, warnings: list[str]) -> Package | None:
        relative_path = package_dir.relative_to(self._root).as_posix()
        manifest_path = package_dir / "package.json"
        try:
            manifest = self._storage.read_manifest(manifest_path)
        except (OSError, ValueError) as exc:
            warnings.append(
                f"Skipping project at {relative_path}: cannot read package.json ({exc})"
            )
            return None

        name = manifest.name
        if not name:
            warnings.append(f"Skipping project at {relative_path} with missing package name")
            return None

        tsconfig_path = package_dir / "tsconfig.json"
        has_tsconfig = self._storage.file_exists(tsconfig_path)
        if not has_tsconfig:
            warnings.append(f"Project {name} at {relative_path} is missing tsconfig.json")

        matched = self._match_type(relative_path)
        if matched is None:
            warnings.append(
                f"Project {name} at {relative_path} does not match any "
                "configured workspace type patterns"
            )
            return None
        pattern, type_config = matched

        prefix = type_config.enforce_name_prefix
        if prefix and not name.startswith(prefix):
            warnings.append(
                f'Package {name} at {relative_path} should start with "{prefix}" '
                "based on workspace configuration"
            )

        return Package(
            id=name,
            root_path=package_dir,
            relative_path=relative_path,
            manifest=manifest,
            reference_config_path=tsconfig_path if has_tsconfig else None,
            category=WorkspaceCategory(type_config.type),
            sub_type=type_config.sub_type,
            is_private=manifest.is_private,
            workspace_pattern=pattern,
            manifest_template=type_config.package_json_template,
            reference_template=type_config.tsconfig_template,
        )
