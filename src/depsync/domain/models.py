"""Workspace domain models — packages, usage, resolved graph, reconciliation.

Everything here is built fresh on each run and discarded afterwards. The
dataclasses are frozen; collections that must stay read-only after
construction are exposed as tuples, frozensets, or ``MappingProxyType``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from depsync.domain.jsonlike import JsonObject
from depsync.domain.manifests import PackageManifest
from depsync.domain.types import DependencyReason, DiamondKind, WorkspaceCategory


class DuplicatePackageError(ValueError):
    """Two workspace packages declare the same manifest name."""

    def __init__(self, package_id: str, first: str, second: str) -> None:
        self.package_id = package_id
        self.paths = (first, second)
        super().__init__(f"Duplicate package id '{package_id}' at '{first}' and '{second}'")


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Package:
    """A single workspace package.

    ``root_path`` is absolute; ``relative_path`` is POSIX, relative to the
    workspace root. The workspace-type fields are None for packages built
    outside of discovery (tests, ad-hoc inventories).
    """

    id: str
    root_path: Path
    relative_path: str
    manifest: PackageManifest = field(default_factory=PackageManifest, compare=False)
    reference_config_path: Path | None = None
    category: WorkspaceCategory = WorkspaceCategory.UNKNOWN
    sub_type: str | None = None
    is_private: bool = False
    workspace_pattern: str | None = None
    manifest_template: JsonObject | None = field(default=None, compare=False, hash=False)
    reference_template: JsonObject | None = field(default=None, compare=False, hash=False)

    @property
    def directory_name(self) -> str:
        """Final segment of the relative path (``{{projectDir}}``)."""
        return self.relative_path.rstrip("/").rsplit("/", 1)[-1]

    @property
    def manifest_path(self) -> Path:
        return self.root_path / "package.json"

    @property
    def is_app(self) -> bool:
        return self.category is WorkspaceCategory.APP

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "relative_path": self.relative_path,
            "category": str(self.category),
            "sub_type": self.sub_type,
            "private": self.is_private,
            "has_reference_config": self.reference_config_path is not None,
        }


@dataclass(frozen=True)
class ProjectInventory:
    """All packages of the workspace, keyed by id."""

    projects: Mapping[str, Package]
    warnings: tuple[str, ...] = ()

    @classmethod
    def from_packages(
        cls, packages: Iterable[Package], warnings: Iterable[str] = ()
    ) -> ProjectInventory:
        """Build an inventory, rejecting duplicate ids.

        Raises:
            DuplicatePackageError: If two packages share an id.
        """
        projects: dict[str, Package] = {}
        for package in packages:
            existing = projects.get(package.id)
            if existing is not None:
                raise DuplicatePackageError(
                    package.id, existing.relative_path, package.relative_path
                )
            projects[package.id] = package
        ordered = {key: projects[key] for key in sorted(projects)}
        return cls(projects=MappingProxyType(ordered), warnings=tuple(warnings))

    def get(self, package_id: str) -> Package | None:
        return self.projects.get(package_id)

    def __contains__(self, package_id: object) -> bool:
        return package_id in self.projects

    def __len__(self) -> int:
        return len(self.projects)

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(self.projects)


# ---------------------------------------------------------------------------
# Usage
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UsageDetail:
    """One import of a workspace package from one source file."""

    dependency_id: str
    specifier: str
    source_file: str
    is_type_only: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "dependency_id": self.dependency_id,
            "specifier": self.specifier,
            "source_file": self.source_file,
            "type_only": self.is_type_only,
        }


@dataclass(frozen=True)
class UsageRecord:
    """Observed imports of one package.

    ``dependencies`` and ``type_only_dependencies`` are disjoint: an id seen
    at runtime anywhere is never reported as type-only.
    """

    dependencies: frozenset[str] = frozenset()
    type_only_dependencies: frozenset[str] = frozenset()
    usage_details: tuple[UsageDetail, ...] = ()

    @property
    def all_dependencies(self) -> frozenset[str]:
        return self.dependencies | self.type_only_dependencies

    def source_files_for(self, dependency_id: str) -> tuple[str, ...]:
        """Files importing *dependency_id*, runtime imports first."""
        runtime: list[str] = []
        type_only: list[str] = []
        for detail in self.usage_details:
            if detail.dependency_id != dependency_id:
                continue
            bucket = type_only if detail.is_type_only else runtime
            if detail.source_file not in bucket:
                bucket.append(detail.source_file)
        if runtime:
            return tuple(runtime)
        return tuple(type_only)

    def to_dict(self) -> dict[str, Any]:
        return {
            "dependencies": sorted(self.dependencies),
            "type_only_dependencies": sorted(self.type_only_dependencies),
            "usage_details": [detail.to_dict() for detail in self.usage_details],
        }


@dataclass(frozen=True)
class ProjectUsage:
    usage: Mapping[str, UsageRecord]
    warnings: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Resolved graph
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EntryPoint:
    """File that imports of a package resolve to.

    ``exists`` is False when no candidate was found on disk and the
    conventional ``src/index.ts`` was assumed.
    """

    path: str
    exists: bool
    is_type_definition: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "exists": self.exists,
            "type_definition": self.is_type_definition,
        }


@dataclass(frozen=True)
class ResolvedDependency:
    dependency: Package
    entry_point: EntryPoint
    reason: DependencyReason
    source_files: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.dependency.id,
            "reason": str(self.reason),
            "entry_point": self.entry_point.to_dict(),
            "source_files": list(self.source_files),
        }


@dataclass(frozen=True)
class ResolvedProject:
    """A package and its resolved dependency edges, keyed by dependency id."""

    project: Package
    dependencies: Mapping[str, ResolvedDependency]

    def __post_init__(self) -> None:
        if not isinstance(self.dependencies, MappingProxyType):
            frozen = MappingProxyType(dict(self.dependencies))
            object.__setattr__(self, "dependencies", frozen)

    @property
    def id(self) -> str:
        return self.project.id

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.project.to_dict(),
            "dependencies": [dep.to_dict() for dep in self.dependencies.values()],
        }


@dataclass(frozen=True)
class Cycle:
    """A closed dependency path; ``path[-1] == path[0]``."""

    path: tuple[str, ...]
    projects: tuple[Package, ...] = ()

    @property
    def members(self) -> frozenset[str]:
        return frozenset(self.path)

    def to_dict(self) -> dict[str, Any]:
        return {"path": list(self.path), "members": sorted(self.members)}


@dataclass(frozen=True)
class DiamondOccurrence:
    consumer_id: str
    direct_dependency_id: str
    transitive_through_ids: tuple[str, ...]
    pattern_kind: DiamondKind
    explanation: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "consumer": self.consumer_id,
            "dependency": self.direct_dependency_id,
            "through": list(self.transitive_through_ids),
            "kind": str(self.pattern_kind),
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class ResolvedGraph:
    projects: Mapping[str, ResolvedProject]
    cycles: tuple[Cycle, ...] = ()
    diamonds: tuple[DiamondOccurrence, ...] = ()
    warnings: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StaleDependencySet:
    package_json_deps: tuple[str, ...] = ()
    tsconfig_paths: tuple[str, ...] = ()
    tsconfig_references: tuple[str, ...] = ()

    def is_empty(self) -> bool:
        return not (self.package_json_deps or self.tsconfig_paths or self.tsconfig_references)

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "package_json_deps": list(self.package_json_deps),
            "tsconfig_paths": list(self.tsconfig_paths),
            "tsconfig_references": list(self.tsconfig_references),
        }


@dataclass(frozen=True)
class ReconciliationResult:
    """Outcome of one reconciliation pass.

    ``packages_updated`` lists the ids of packages with at least one changed
    file, sorted. ``diffs`` is populated only in preview mode and is None
    otherwise.
    """

    files_touched: int = 0
    packages_updated: tuple[str, ...] = ()
    stale_dependencies: Mapping[str, StaleDependencySet] = field(default_factory=dict)
    diffs: Mapping[str, str] | None = None
    warnings: tuple[str, ...] = ()

    @property
    def has_stale(self) -> bool:
        return bool(self.stale_dependencies)

    def to_dict(self) -> dict[str, Any]:
        return {
            "files_touched": self.files_touched,
            "packages_updated": list(self.packages_updated),
            "stale_dependencies": {
                key: value.to_dict() for key, value in self.stale_dependencies.items()
            },
            "diffs": dict(self.diffs) if self.diffs is not None else None,
            "warnings": list(self.warnings),
        }
