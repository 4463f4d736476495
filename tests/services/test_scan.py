"""Tests for ImportScanner — per-package usage records."""

from __future__ import annotations

import errno
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from depsync.config.models import SyncConfig
from depsync.domain.models import ProjectUsage
from depsync.domain.patterns import ExcludeMatcher
from depsync.infrastructure.walker import walk_source_files
from depsync.services.discovery import WorkspaceDiscovery
from depsync.services.scan import ImportScanner
from tests.conftest import add_package, make_config


def _scan(root: Path, config: SyncConfig | None = None) -> ProjectUsage:
    config = config or make_config()
    inventory = WorkspaceDiscovery(root, config).discover()
    return ImportScanner(config).scan(inventory)


@pytest.fixture
def scoped(workspace_root: Path) -> Path:
    """``@scope/app`` plus three shared packages it may import."""
    add_package(workspace_root, "packages/lib", "@scope/lib")
    add_package(workspace_root, "packages/types", "@scope/types")
    add_package(workspace_root, "packages/util", "@scope/util")
    return workspace_root


class TestScan:
    def test_runtime_and_type_only(self, scoped: Path) -> None:
        add_package(
            scoped,
            "apps/app",
            "@scope/app",
            files={
                "src/index.ts": (
                    'import { run } from "@scope/lib";\n'
                    'import type { Model } from "@scope/types";\n'
                    'import React from "react";\n'
                )
            },
        )
        record = _scan(scoped).usage["@scope/app"]
        assert record.dependencies == frozenset({"@scope/lib"})
        assert record.type_only_dependencies == frozenset({"@scope/types"})

    def test_runtime_anywhere_wins_over_type_only(self, scoped: Path) -> None:
        add_package(
            scoped,
            "apps/app",
            "@scope/app",
            files={
                "src/a.ts": 'import type { T } from "@scope/lib";\n',
                "src/b.ts": 'import { t } from "@scope/lib";\n',
            },
        )
        record = _scan(scoped).usage["@scope/app"]
        assert record.dependencies == frozenset({"@scope/lib"})
        assert record.type_only_dependencies == frozenset()
        assert record.source_files_for("@scope/lib") == ("src/b.ts",)

    def test_subpath_and_dynamic(self, scoped: Path) -> None:
        add_package(
            scoped,
            "apps/app",
            "@scope/app",
            files={
                "src/index.ts": (
                    'import { x } from "@scope/lib/deep/thing";\n'
                    'const u = await import("@scope/util");\n'
                )
            },
        )
        record = _scan(scoped).usage["@scope/app"]
        assert record.dependencies == frozenset({"@scope/lib", "@scope/util"})

    def test_details(self, scoped: Path) -> None:
        add_package(
            scoped,
            "apps/app",
            "@scope/app",
            files={"src/feature/view.tsx": 'import { x } from "@scope/lib/x";\n'},
        )
        details = _scan(scoped).usage["@scope/app"].usage_details
        assert len(details) == 1
        assert details[0].dependency_id == "@scope/lib"
        assert details[0].specifier == "@scope/lib/x"
        assert details[0].source_file == "src/feature/view.tsx"
        assert details[0].is_type_only is False

    def test_relative_external_and_self_dropped(self, scoped: Path) -> None:
        add_package(
            scoped,
            "packages/core",
            "@scope/core",
            files={
                "src/index.ts": (
                    'import { a } from "./a";\n'
                    'import { b } from "../b";\n'
                    'import lodash from "lodash";\n'
                    'import { self } from "@scope/core/internal";\n'
                )
            },
        )
        record = _scan(scoped).usage["@scope/core"]
        assert record.all_dependencies == frozenset()
        assert record.usage_details == ()

    def test_ignore_imports(self, scoped: Path) -> None:
        add_package(
            scoped,
            "apps/app",
            "@scope/app",
            files={"src/index.ts": 'import "x";\nimport { a } from "@scope/lib";\n'},
        )
        record = _scan(scoped, make_config(ignore_imports=["@scope/lib"])).usage["@scope/app"]
        assert record.all_dependencies == frozenset()

    def test_excluded_files(self, scoped: Path) -> None:
        add_package(
            scoped,
            "apps/app",
            "@scope/app",
            files={
                "src/index.test.ts": 'import { a } from "@scope/lib";\n',
                "dist/index.js": 'require("@scope/util");\n',
                "src/stories/a.tsx": 'import { t } from "@scope/types";\n',
            },
        )
        config = make_config(exclude_patterns=["**/stories/**"])
        assert _scan(scoped, config).usage["@scope/app"].all_dependencies == frozenset()

    def test_commented_imports_ignored(self, scoped: Path) -> None:
        add_package(
            scoped,
            "apps/app",
            "@scope/app",
            files={"src/index.ts": '// import { a } from "@scope/lib";\n'},
        )
        assert _scan(scoped).usage["@scope/app"].all_dependencies == frozenset()

    def test_every_package_gets_a_record(self, scoped: Path) -> None:
        usage = _scan(scoped)
        assert set(usage.usage) == {"@scope/lib", "@scope/types", "@scope/util"}


class TestDefaultDependencies:
    def test_defaults_merged_as_runtime(self, scoped: Path) -> None:
        add_package(scoped, "apps/app", "@scope/app")
        config = make_config(default_dependencies=["@scope/util"])
        usage = _scan(scoped, config)
        assert usage.usage["@scope/app"].dependencies == frozenset({"@scope/util"})
        assert usage.usage["@scope/app"].usage_details == ()
        # A package never defaults onto itself.
        assert "@scope/util" not in usage.usage["@scope/util"].dependencies

    def test_type_only_default_stays_type_only(self, scoped: Path) -> None:
        add_package(
            scoped,
            "apps/app",
            "@scope/app",
            files={"src/index.ts": 'import type { T } from "@scope/util";\n'},
        )
        config = make_config(default_dependencies=["@scope/util"])
        record = _scan(scoped, config).usage["@scope/app"]
        assert record.type_only_dependencies == frozenset({"@scope/util"})
        assert record.dependencies == frozenset()


class TestConcurrency:
    @pytest.mark.parametrize("workers", [1, 4])
    def test_same_result_any_worker_count(self, scoped: Path, workers: int) -> None:
        files = {f"src/m{i:02d}.ts": f'import {{ a }} from "@scope/lib/{i}";\n' for i in range(20)}
        add_package(scoped, "apps/app", "@scope/app", files=files)
        config = make_config(scan={"max_workers": workers})
        details = _scan(scoped, config).usage["@scope/app"].usage_details
        assert [d.source_file for d in details] == sorted(files)


class TestWarnings:
    def test_unreadable_file(self, scoped: Path) -> None:
        add_package(scoped, "apps/app", "@scope/app")
        config = make_config()
        inventory = WorkspaceDiscovery(scoped, config).discover()
        broken = scoped / "apps" / "app" / "src" / "broken.ts"

        def walker(root: Path, excludes: ExcludeMatcher, on_error: object) -> list[Path]:
            return [broken] if root.name == "app" else []

        usage = ImportScanner(config, walker=walker).scan(inventory)
        assert len(usage.warnings) == 1
        assert usage.warnings[0].startswith(f"Failed to read {broken}")
        assert usage.usage["@scope/app"].all_dependencies == frozenset()

    def test_unreadable_directory(self, scoped: Path) -> None:
        source = 'import { lib } from "@scope/lib";\n'
        add_package(scoped, "apps/app", "@scope/app", files={"src/index.ts": source})
        config = make_config()
        inventory = WorkspaceDiscovery(scoped, config).discover()
        locked = scoped / "apps" / "app" / "src" / "locked"

        def walker(
            root: Path, excludes: ExcludeMatcher, on_error: Callable[[OSError], None]
        ) -> Iterator[Path]:
            if root.name == "app":
                on_error(PermissionError(errno.EACCES, "Permission denied", str(locked)))
            yield from walk_source_files(root, excludes, on_error)

        usage = ImportScanner(config, walker=walker).scan(inventory)
        assert usage.warnings == (f"Failed to read directory {locked}: Permission denied",)
        # The rest of the package is still scanned.
        assert usage.usage["@scope/app"].all_dependencies == frozenset({"@scope/lib"})
