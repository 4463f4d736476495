"""EntryPointResolver — which file imports of a package should point at.

Candidates are tried in order and the first one present on disk wins:

1. TypeScript sources: ``src/index.ts``, ``src/index.tsx``
2. ``types`` / ``typings`` from the manifest
3. ``exports`` (string, or the root condition object)
4. ``module`` / ``main``
5. Conventional fallbacks (``src/index.js`` ... ``dist/index.d.ts``)

When nothing exists the resolver assumes ``src/index.ts`` and reports
``exists=False``.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from depsync.domain.models import EntryPoint, Package
from depsync.infrastructure.storage import LocalStorage, Storage

SOURCE_CANDIDATES = ("src/index.ts", "src/index.tsx")

FALLBACK_CANDIDATES = (
    "src/index.js",
    "src/index.jsx",
    "index.ts",
    "index.tsx",
    "index.js",
    "index.jsx",
    "lib/index.js",
    "lib/index.ts",
    "dist/index.js",
    "dist/index.d.ts",
)

CONVENTIONAL_ENTRY = "src/index.ts"

_EXPORT_KEYS = ("types", "default", ".", "import", "require")
_CONDITION_KEYS = ("types", "default", "import", "require")
_TYPE_DEFINITION_SUFFIXES = (".d.ts", ".d.mts", ".d.cts")


def is_type_definition(path: str) -> bool:
    return path.endswith(_TYPE_DEFINITION_SUFFIXES)


def _normalize(path: str) -> str:
    return path.removeprefix("./")


def _export_candidates(exports: Any) -> Iterator[str]:
    """Flatten the ``exports`` field into candidate paths, in priority order."""
    if isinstance(exports, str):
        yield exports
        return
    if not isinstance(exports, dict):
        return
    for key in _EXPORT_KEYS:
        value = exports.get(key)
        if isinstance(value, str):
            yield value
        elif isinstance(value, dict):
            for condition in _CONDITION_KEYS:
                nested = value.get(condition)
                if isinstance(nested, str):
                    yield nested


def candidate_paths(package: Package) -> list[str]:
    """All entry-point candidates for *package*, deduplicated, in order."""
    manifest = package.manifest
    declared: list[str | None] = [manifest.types, manifest.typings]
    declared.extend(_export_candidates(manifest.exports))
    declared.extend([manifest.module, manifest.main])

    ordered = [
        *SOURCE_CANDIDATES,
        *(_normalize(path) for path in declared if path),
        *FALLBACK_CANDIDATES,
    ]
    return list(dict.fromkeys(ordered))


class EntryPointResolver:
    """Resolve and memoize entry points, one lookup per package per run."""

    def __init__(self, storage: Storage | None = None) -> None:
        self._storage = storage or LocalStorage()
        self._cache: dict[str, EntryPoint] = {}

    def resolve(self, package: Package) -> EntryPoint:
        cached = self._cache.get(package.id)
        if cached is not None:
            return cached

        entry = self._lookup(package)
        self._cache[package.id] = entry
        return entry

    def _lookup(self, package: Package) -> EntryPoint:
        for candidate in candidate_paths(package):
            if self._storage.file_exists(package.root_path / candidate):
                return EntryPoint(
                    path=candidate,
                    exists=True,
                    is_type_definition=is_type_definition(candidate),
                )
        return EntryPoint(path=CONVENTIONAL_ENTRY, exists=False, is_type_definition=False)
