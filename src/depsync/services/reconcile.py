"""Reconciler — bring manifests and reference configs in line with the graph.

For every resolved package the reconciler reads ``package.json`` and, when
the package has one, ``tsconfig.json``; detects stale workspace entries;
synthesizes the target documents (workspace-type template merged in,
workspace dependencies, path mappings and project references rebuilt) and
either writes them or records a unified diff.

A file counts as changed when its serialized target differs from its
serialized current content, so a second run over the first run's output
touches nothing.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from depsync.config.logging import get_logger
from depsync.config.models import SyncConfig
from depsync.domain.jsonlike import (
    JsonObject,
    JsonValue,
    clone_json,
    dump_json,
    merge_json_like,
    render_diff,
    substitute_placeholders,
)
from depsync.domain.manifests import (
    WORKSPACE_LINK,
    WORKSPACE_PROTOCOL,
    PackageManifest,
    ReferenceConfig,
)
from depsync.domain.models import (
    Package,
    ProjectInventory,
    ReconciliationResult,
    ResolvedDependency,
    ResolvedGraph,
    ResolvedProject,
    StaleDependencySet,
)
from depsync.infrastructure.storage import LocalStorage, Storage

ROOT_REFERENCE_FILES = ("tsconfig.json", "tsconfig.jsonc")


def _posix_relpath(target: Path, start: Path) -> str:
    return Path(os.path.relpath(target, start)).as_posix()


def _path_base(key: str) -> str:
    return key.removesuffix("/*")


def _apply_template(
    document: JsonObject, template: JsonObject | None, package: Package
) -> JsonObject:
    if not template:
        return clone_json(document)  # type: ignore[return-value]
    substituted = substitute_placeholders(template, {"projectDir": package.directory_name})
    return merge_json_like(document, substituted)  # type: ignore[return-value]


# ---------------------------------------------------------------------------
# Stale detection
# ---------------------------------------------------------------------------


def _reference_dir(project: ResolvedProject) -> Path:
    config_path = project.project.reference_config_path
    if config_path is not None:
        return config_path.parent
    return project.project.root_path


def detect_stale(
    project: ResolvedProject,
    manifest: PackageManifest,
    reference_config: ReferenceConfig | None,
    known_ids: frozenset[str],
) -> StaleDependencySet:
    """Workspace entries present on disk but not backed by a resolved edge."""
    resolved = set(project.dependencies)

    declared = {**manifest.dependencies, **manifest.dev_dependencies}
    stale_deps = sorted(
        dep_id
        for dep_id, version in declared.items()
        if (WORKSPACE_PROTOCOL in version or dep_id in known_ids) and dep_id not in resolved
    )

    stale_paths: list[str] = []
    stale_refs: list[str] = []
    if reference_config is not None:
        for key in reference_config.paths:
            base = _path_base(key)
            if (base in known_ids or base.startswith("@")) and base not in resolved:
                stale_paths.append(key)

        if "references" in reference_config:
            start = _reference_dir(project)
            expected: set[str] = set()
            for dep in project.dependencies.values():
                relative = _posix_relpath(dep.dependency.root_path, start)
                expected.update((relative, f"./{relative}"))
            stale_refs = [ref for ref in reference_config.reference_paths if ref not in expected]

    return StaleDependencySet(
        package_json_deps=tuple(stale_deps),
        tsconfig_paths=tuple(stale_paths),
        tsconfig_references=tuple(stale_refs),
    )


# ---------------------------------------------------------------------------
# Synthesis
# ---------------------------------------------------------------------------


def build_manifest(project: ResolvedProject, manifest: PackageManifest) -> JsonObject:
    """Target ``package.json``: template merged, workspace deps rebuilt."""
    current = manifest.data
    updated = _apply_template(current, project.project.manifest_template, project.project)

    existing = updated.get("dependencies")
    dependencies: dict[str, JsonValue] = {}
    if isinstance(existing, dict):
        dependencies = {
            name: version
            for name, version in existing.items()
            if not (isinstance(version, str) and WORKSPACE_PROTOCOL in version)
        }
    for dep_id in project.dependencies:
        dependencies[dep_id] = WORKSPACE_LINK

    if dependencies:
        updated["dependencies"] = {key: dependencies[key] for key in sorted(dependencies)}
    elif current.get("dependencies") == {}:
        updated["dependencies"] = {}
    else:
        updated.pop("dependencies", None)
    return updated


def _dependency_paths(start: Path, dep: ResolvedDependency) -> tuple[list[str], list[str]]:
    relative = _posix_relpath(dep.dependency.root_path, start)
    entry = dep.entry_point.path
    wildcard = f"{relative}/src/*" if entry.startswith("src/") else f"{relative}/*"
    return [f"{relative}/{entry}"], [wildcard]


def _sort_paths(paths: Mapping[str, JsonValue]) -> JsonObject:
    """Group keys by base, groups alphabetical, base key before its wildcard."""
    groups: dict[str, list[str]] = {}
    for key in paths:
        groups.setdefault(_path_base(key), []).append(key)

    ordered: JsonObject = {}
    for base in sorted(groups):
        for key in sorted(groups[base], key=lambda k: (k != base, k)):
            ordered[key] = paths[key]
    return ordered


def build_reference_config(
    project: ResolvedProject,
    reference_config: ReferenceConfig,
    known_ids: frozenset[str],
) -> JsonObject:
    """Target ``tsconfig.json``: template merged, paths and references rebuilt."""
    current = reference_config.data
    updated = _apply_template(current, project.project.reference_template, project.project)
    start = _reference_dir(project)

    paths: dict[str, JsonValue] = {}
    for key, targets in reference_config.paths.items():
        base = _path_base(key)
        if base not in known_ids:
            paths[key] = list(targets)

    for dep_id, dep in project.dependencies.items():
        base_targets, wildcard_targets = _dependency_paths(start, dep)
        paths[dep_id] = base_targets  # type: ignore[assignment]
        paths[f"{dep_id}/*"] = wildcard_targets  # type: ignore[assignment]

    options = updated.get("compilerOptions")
    if paths:
        if not isinstance(options, dict):
            options = {}
        options["paths"] = _sort_paths(paths)
        updated["compilerOptions"] = options
    elif isinstance(options, dict):
        options.pop("paths", None)

    references = sorted(
        _posix_relpath(dep.dependency.root_path, start) for dep in project.dependencies.values()
    )
    updated["references"] = [{"path": path} for path in references]
    return updated


def build_root_reference_config(current: JsonObject, inventory: ProjectInventory) -> JsonObject:
    """Target workspace-root ``tsconfig.json`` for incremental builds."""
    updated: JsonObject = dict(current)
    options = updated.get("compilerOptions")
    options = dict(options) if isinstance(options, dict) else {}
    options["composite"] = True
    options["incremental"] = True
    updated["compilerOptions"] = options

    references = sorted(
        package.relative_path
        for package in inventory.projects.values()
        if package.reference_config_path is not None
    )
    updated["references"] = [{"path": path} for path in references]
    if "files" not in updated:
        updated["files"] = []
    return updated


# ---------------------------------------------------------------------------
# Reconciler
# ---------------------------------------------------------------------------


@dataclass
class _Tally:
    files_touched: int = 0
    packages_updated: list[str] = field(default_factory=list)


class Reconciler:
    """Compare resolved edges with on-disk files and emit updates.

    ``preview=True`` records diffs instead of writing.
    """

    def __init__(
        self,
        config: SyncConfig,
        *,
        storage: Storage | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._config = config
        self._storage = storage or LocalStorage()
        self._log = logger or get_logger("reconcile")

    def reconcile(
        self,
        graph: ResolvedGraph,
        inventory: ProjectInventory,
        *,
        preview: bool = False,
        workspace_root: Path | None = None,
    ) -> ReconciliationResult:
        """Reconcile every resolved package, sorted by id.

        When *workspace_root* is given and incremental references are
        enabled, the root ``tsconfig.json`` is reconciled as well.
        """
        known_ids = inventory.ids
        tally = _Tally()
        stale: dict[str, StaleDependencySet] = {}
        diffs: dict[str, str] = {}
        warnings: list[str] = []

        for package_id in sorted(graph.projects):
            project = graph.projects[package_id]
            touched = self._reconcile_project(
                project, known_ids, stale, diffs, warnings, preview=preview
            )
            if touched:
                tally.files_touched += touched
                tally.packages_updated.append(package_id)

        if workspace_root is not None and self._config.references.incremental:
            if self._reconcile_root(workspace_root, inventory, diffs, warnings, preview=preview):
                tally.files_touched += 1

        if stale:
            self._log.warning("reconcile.stale", packages=sorted(stale))
        self._log.info(
            "reconcile.complete",
            files_touched=tally.files_touched,
            packages_updated=len(tally.packages_updated),
            preview=preview,
        )
        return ReconciliationResult(
            files_touched=tally.files_touched,
            packages_updated=tuple(tally.packages_updated),
            stale_dependencies=stale,
            diffs=diffs if preview else None,
            warnings=tuple(warnings),
        )

    def _reconcile_project(
        self,
        project: ResolvedProject,
        known_ids: frozenset[str],
        stale: dict[str, StaleDependencySet],
        diffs: dict[str, str],
        warnings: list[str],
        *,
        preview: bool,
    ) -> int:
        """Return the number of files changed for *project*."""
        package = project.project
        manifest_path = package.manifest_path
        try:
            manifest = self._storage.read_manifest(manifest_path)
        except (OSError, ValueError) as exc:
            warnings.append(f"Failed to read package.json for {package.id}: {exc}")
            return 0

        reference_config: ReferenceConfig | None = None
        config_path = package.reference_config_path
        if config_path is not None:
            try:
                reference_config = self._storage.read_reference_config(config_path)
            except (OSError, ValueError) as exc:
                warnings.append(f"Failed to read tsconfig.json for {package.id}: {exc}")

        found = detect_stale(project, manifest, reference_config, known_ids)
        if not found.is_empty():
            stale[package.id] = found

        self._log_differences(project, manifest)

        touched = 0
        target_manifest = build_manifest(project, manifest)
        if self._emit(
            manifest_path, manifest.data, target_manifest, diffs, warnings, preview=preview
        ):
            touched += 1

        if reference_config is not None and config_path is not None:
            target_config = build_reference_config(project, reference_config, known_ids)
            if self._emit(
                config_path, reference_config.data, target_config, diffs, warnings, preview=preview
            ):
                touched += 1
        return touched

    def _reconcile_root(
        self,
        root: Path,
        inventory: ProjectInventory,
        diffs: dict[str, str],
        warnings: list[str],
        *,
        preview: bool,
    ) -> bool:
        path = root / ROOT_REFERENCE_FILES[0]
        for name in ROOT_REFERENCE_FILES:
            if self._storage.file_exists(root / name):
                path = root / name
                break

        current: JsonObject = {}
        if self._storage.file_exists(path):
            try:
                current = self._storage.read_reference_config(path).data
            except (OSError, ValueError) as exc:
                warnings.append(f"Failed to read root {path.name}: {exc}")
                return False

        target = build_root_reference_config(current, inventory)
        return self._emit(path, current, target, diffs, warnings, preview=preview)

    def _emit(
        self,
        path: Path,
        current: JsonObject,
        target: JsonObject,
        diffs: dict[str, str],
        warnings: list[str],
        *,
        preview: bool,
    ) -> bool:
        """Write or diff *target* when it differs from *current*."""
        original = dump_json(current)
        updated = dump_json(target)
        if original == updated:
            return False

        if preview:
            diffs[str(path)] = render_diff(original, updated, str(path))
            return True
        try:
            self._storage.write_text(path, f"{updated}\n")
        except OSError as exc:
            warnings.append(f"Failed to write {path}: {exc}")
            return False
        return True

    def _log_differences(self, project: ResolvedProject, manifest: PackageManifest) -> None:
        imported = sorted(project.dependencies)
        declared = sorted(
            name
            for name, version in manifest.dependencies.items()
            if name in project.dependencies or WORKSPACE_PROTOCOL in version
        )
        to_add = [dep for dep in imported if dep not in declared]
        to_remove = [dep for dep in declared if dep not in imported]
        if to_add or to_remove:
            self._log.debug(
                "reconcile.package_diff",
                package=project.id,
                add=to_add,
                remove=to_remove,
            )
