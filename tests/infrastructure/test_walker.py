"""Tests for source file walking with exclude pruning."""

from __future__ import annotations

import os
import shutil
import stat
from pathlib import Path

import pytest

from depsync.domain.patterns import ExcludeMatcher
from depsync.infrastructure.walker import walk_source_files


def _touch(root: Path, *paths: str) -> None:
    for relative in paths:
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text("", encoding="utf-8")


def _walk(root: Path, extra: list[str] | None = None) -> list[str]:
    matcher = ExcludeMatcher.with_defaults(extra or [])
    return [p.relative_to(root).as_posix() for p in walk_source_files(root, matcher)]


class TestWalkSourceFiles:
    def test_sorted_depth_first(self, tmp_path: Path) -> None:
        _touch(tmp_path, "src/b.ts", "src/a.ts", "src/lib/c.tsx", "index.js")
        assert _walk(tmp_path) == ["index.js", "src/a.ts", "src/b.ts", "src/lib/c.tsx"]

    def test_non_source_skipped(self, tmp_path: Path) -> None:
        _touch(tmp_path, "src/a.ts", "src/data.json", "README.md")
        assert _walk(tmp_path) == ["src/a.ts"]

    def test_default_excludes(self, tmp_path: Path) -> None:
        _touch(
            tmp_path,
            "src/a.ts",
            "src/a.test.ts",
            "src/__tests__/b.ts",
            "node_modules/dep/index.js",
            "dist/index.js",
            "src/generated/api.ts",
        )
        assert _walk(tmp_path) == ["src/a.ts"]

    def test_configured_excludes(self, tmp_path: Path) -> None:
        _touch(tmp_path, "src/a.ts", "src/stories/Button.stories.tsx", "scripts/x.mjs")
        assert _walk(tmp_path, ["**/stories/**", "scripts/*.mjs"]) == ["src/a.ts"]

    def test_empty_directory(self, tmp_path: Path) -> None:
        assert _walk(tmp_path) == []


class TestWalkErrors:
    def test_vanished_directory_reported(self, tmp_path: Path) -> None:
        _touch(tmp_path, "index.ts", "src/a.ts")
        errors: list[OSError] = []
        walk = walk_source_files(tmp_path, ExcludeMatcher.with_defaults([]), errors.append)

        assert next(walk) == tmp_path / "index.ts"
        shutil.rmtree(tmp_path / "src")
        assert list(walk) == []
        assert len(errors) == 1
        assert isinstance(errors[0], FileNotFoundError)
        assert errors[0].filename == str(tmp_path / "src")

    def test_errors_ignored_without_handler(self, tmp_path: Path) -> None:
        _touch(tmp_path, "index.ts", "src/a.ts")
        walk = walk_source_files(tmp_path, ExcludeMatcher.with_defaults([]))
        assert next(walk) == tmp_path / "index.ts"
        shutil.rmtree(tmp_path / "src")
        assert list(walk) == []

    @pytest.mark.skipif(
        not hasattr(os, "geteuid") or os.geteuid() == 0,
        reason="root ignores directory permissions",
    )
    def test_unreadable_directory_skipped(self, tmp_path: Path) -> None:
        _touch(tmp_path, "src/a.ts", "locked/b.ts")
        locked = tmp_path / "locked"
        locked.chmod(0)
        errors: list[OSError] = []
        try:
            matcher = ExcludeMatcher.with_defaults([])
            found = list(walk_source_files(tmp_path, matcher, errors.append))
        finally:
            locked.chmod(stat.S_IRWXU)
        assert found == [tmp_path / "src" / "a.ts"]
        assert [e.filename for e in errors] == [str(locked)]
