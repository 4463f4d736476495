"""Shared pytest fixtures and test helpers for depsync tests."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
import structlog
from click.testing import CliRunner

from depsync.config.models import SyncConfig
from depsync.domain.models import EntryPoint, Package, ResolvedDependency, ResolvedProject
from depsync.domain.types import DependencyReason, WorkspaceCategory
from depsync.services.telemetry import disable_telemetry


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _no_config_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep a developer's DEPSYNC_* environment out of the tests."""
    monkeypatch.delenv("DEPSYNC_CONFIG", raising=False)
    monkeypatch.delenv("DEPSYNC_WORKSPACE_ROOT", raising=False)
    yield
    disable_telemetry()
    # CLI invocations bind the root handler to CliRunner streams.
    logging.getLogger().handlers.clear()
    structlog.reset_defaults()


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    """Temporary workspace root with an ``apps/*`` + ``packages/*`` manifest.

    This is the single source of truth for the workspace layout used by
    service and command tests.
    """
    write_json(
        tmp_path / "package.json",
        {"name": "root", "private": True, "workspaces": ["apps/*", "packages/*"]},
    )
    return tmp_path


@pytest.fixture
def configured_workspace(workspace_root: Path) -> Path:
    """Workspace root with the standard depsync.toml next to its manifest."""
    (workspace_root / "depsync.toml").write_text(CONFIG_TOML, encoding="utf-8")
    return workspace_root


@pytest.fixture
def sync_config() -> SyncConfig:
    """Config classifying ``apps/*`` as apps and ``packages/*`` as shared."""
    return make_config()


# ---------------------------------------------------------------------------
# Shared test helpers (used across service and command test modules)
# ---------------------------------------------------------------------------

CONFIG_TOML = """\
[workspace_types."apps/*"]
type = "app"

[workspace_types."packages/*"]
type = "shared-package"
"""


def make_config(**overrides: Any) -> SyncConfig:
    """SyncConfig with the standard two workspace types plus *overrides*."""
    data: dict[str, Any] = {
        "workspace_types": {
            "apps/*": {"type": "app"},
            "packages/*": {"type": "shared-package"},
        },
    }
    data.update(overrides)
    return SyncConfig.model_validate(data)


def write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    return path


def read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def add_package(
    root: Path,
    relative_path: str,
    name: str,
    *,
    files: dict[str, str] | None = None,
    manifest: dict[str, Any] | None = None,
    tsconfig: dict[str, Any] | None = None,
    with_tsconfig: bool = True,
    entry: str | None = "src/index.ts",
) -> Path:
    """Create a package directory with manifest, tsconfig and sources.

    *entry* is created empty unless *files* already provides it; pass None
    to leave the package without an entry point.
    """
    package_dir = root / relative_path
    write_json(package_dir / "package.json", {"name": name, **(manifest or {})})
    if with_tsconfig:
        write_json(package_dir / "tsconfig.json", tsconfig if tsconfig is not None else {})

    sources = dict(files or {})
    if entry is not None:
        sources.setdefault(entry, "")
    for relative, content in sources.items():
        target = package_dir / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return package_dir


def resolved_projects(
    edges: dict[str, list[str]],
    *,
    apps: frozenset[str] = frozenset(),
) -> dict[str, ResolvedProject]:
    """In-memory resolved graph from an adjacency map.

    Every id named anywhere in *edges* becomes a package under
    ``/ws/packages/<id>`` (``/ws/apps/<id>`` for *apps*).
    """
    ids = sorted({*edges, *(dep for deps in edges.values() for dep in deps)})
    packages: dict[str, Package] = {}
    for package_id in ids:
        folder = "apps" if package_id in apps else "packages"
        category = (
            WorkspaceCategory.APP if package_id in apps else WorkspaceCategory.SHARED_PACKAGE
        )
        packages[package_id] = Package(
            id=package_id,
            root_path=Path("/ws") / folder / package_id,
            relative_path=f"{folder}/{package_id}",
            category=category,
        )

    entry = EntryPoint(path="src/index.ts", exists=True)
    return {
        package_id: ResolvedProject(
            project=packages[package_id],
            dependencies={
                dep: ResolvedDependency(
                    dependency=packages[dep],
                    entry_point=entry,
                    reason=DependencyReason.IMPORT,
                    source_files=("src/index.ts",),
                )
                for dep in edges.get(package_id, [])
            },
        )
        for package_id in ids
    }
