"""Tests for EntryPointResolver — the entry-point candidate cascade."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from depsync.domain.manifests import PackageManifest
from depsync.domain.models import Package
from depsync.infrastructure.storage import LocalStorage
from depsync.services.entrypoints import (
    EntryPointResolver,
    candidate_paths,
    is_type_definition,
)


def _package(root: Path, manifest: dict[str, Any] | None = None) -> Package:
    return Package(
        id="@acme/lib",
        root_path=root,
        relative_path="packages/lib",
        manifest=PackageManifest({"name": "@acme/lib", **(manifest or {})}),
    )


def _touch(root: Path, *paths: str) -> None:
    for relative in paths:
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text("", encoding="utf-8")


class _CountingStorage(LocalStorage):
    def __init__(self) -> None:
        self.checks = 0

    def file_exists(self, path: Path) -> bool:
        self.checks += 1
        return super().file_exists(path)


class TestCandidatePaths:
    def test_order(self, tmp_path: Path) -> None:
        package = _package(
            tmp_path,
            {
                "types": "./dist/index.d.ts",
                "exports": {".": {"import": "./dist/index.mjs"}},
                "module": "dist/index.mjs",
                "main": "dist/index.cjs",
            },
        )
        paths = candidate_paths(package)
        assert paths[:5] == [
            "src/index.ts",
            "src/index.tsx",
            "dist/index.d.ts",
            "dist/index.mjs",
            "dist/index.cjs",
        ]
        # Fallbacks follow, without repeating earlier candidates.
        assert paths[5] == "src/index.js"
        assert paths.count("dist/index.d.ts") == 1

    def test_exports_string(self, tmp_path: Path) -> None:
        paths = candidate_paths(_package(tmp_path, {"exports": "./lib/main.js"}))
        assert paths[2] == "lib/main.js"

    def test_exports_key_order(self, tmp_path: Path) -> None:
        exports = {
            "require": "./r.js",
            "import": "./i.js",
            ".": "./dot.js",
            "default": "./d.js",
            "types": "./t.d.ts",
        }
        paths = candidate_paths(_package(tmp_path, {"exports": exports}))
        assert paths[2:7] == ["t.d.ts", "d.js", "dot.js", "i.js", "r.js"]


class TestResolve:
    def test_typescript_source_wins(self, tmp_path: Path) -> None:
        _touch(tmp_path, "src/index.ts", "dist/index.d.ts")
        entry = EntryPointResolver().resolve(_package(tmp_path, {"types": "dist/index.d.ts"}))
        assert entry.path == "src/index.ts"
        assert entry.exists is True
        assert entry.is_type_definition is False

    def test_tsx_source(self, tmp_path: Path) -> None:
        _touch(tmp_path, "src/index.tsx")
        assert EntryPointResolver().resolve(_package(tmp_path)).path == "src/index.tsx"

    def test_declared_types(self, tmp_path: Path) -> None:
        _touch(tmp_path, "dist/index.d.ts", "dist/index.js")
        entry = EntryPointResolver().resolve(
            _package(tmp_path, {"types": "./dist/index.d.ts", "main": "dist/index.js"})
        )
        assert entry.path == "dist/index.d.ts"
        assert entry.is_type_definition is True

    def test_nested_export_conditions(self, tmp_path: Path) -> None:
        _touch(tmp_path, "build/esm/index.js")
        manifest = {"exports": {".": {"types": "./missing.d.ts", "import": "./build/esm/index.js"}}}
        assert EntryPointResolver().resolve(_package(tmp_path, manifest)).path == (
            "build/esm/index.js"
        )

    def test_main_when_nothing_else(self, tmp_path: Path) -> None:
        _touch(tmp_path, "server.js")
        assert EntryPointResolver().resolve(_package(tmp_path, {"main": "server.js"})).path == (
            "server.js"
        )

    def test_fallback(self, tmp_path: Path) -> None:
        _touch(tmp_path, "lib/index.js")
        assert EntryPointResolver().resolve(_package(tmp_path)).path == "lib/index.js"

    def test_nothing_exists(self, tmp_path: Path) -> None:
        entry = EntryPointResolver().resolve(_package(tmp_path, {"main": "gone.js"}))
        assert entry.path == "src/index.ts"
        assert entry.exists is False
        assert entry.is_type_definition is False

    def test_memoized(self, tmp_path: Path) -> None:
        _touch(tmp_path, "index.js")
        storage = _CountingStorage()
        resolver = EntryPointResolver(storage)
        package = _package(tmp_path)
        first = resolver.resolve(package)
        checks = storage.checks
        assert resolver.resolve(package) is first
        assert storage.checks == checks


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("dist/index.d.ts", True),
        ("dist/index.d.mts", True),
        ("dist/index.d.cts", True),
        ("src/index.ts", False),
        ("dist/index.js", False),
    ],
)
def test_is_type_definition(path: str, expected: bool) -> None:
    assert is_type_definition(path) is expected
