"""Storage port and its local-filesystem adapter.

The sync services never touch the filesystem directly; they read and write
manifests through a :class:`Storage`. Every method may raise ``OSError``
(missing or unreadable file) or ``ValueError`` (malformed JSON), and callers
turn those into per-package warnings.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Protocol, runtime_checkable

from depsync.domain.jsonlike import parse_jsonc
from depsync.domain.manifests import PackageManifest, ReferenceConfig


@runtime_checkable
class Storage(Protocol):
    """File access used by the sync pipeline."""

    def read_manifest(self, path: Path) -> PackageManifest: ...

    def read_reference_config(self, path: Path) -> ReferenceConfig: ...

    def file_exists(self, path: Path) -> bool: ...

    def read_text(self, path: Path) -> str: ...

    def write_text(self, path: Path, contents: str) -> None: ...


class LocalStorage:
    """:class:`Storage` backed by the local filesystem (UTF-8)."""

    def read_manifest(self, path: Path) -> PackageManifest:
        """Parse a ``package.json``; strict JSON."""
        return PackageManifest(json.loads(self.read_text(path)))

    def read_reference_config(self, path: Path) -> ReferenceConfig:
        """Parse a ``tsconfig.json``; ``//`` and ``/* */`` comments allowed."""
        return ReferenceConfig(parse_jsonc(self.read_text(path)))  # type: ignore[arg-type]

    def file_exists(self, path: Path) -> bool:
        return path.is_file()

    def read_text(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")

    def write_text(self, path: Path, contents: str) -> None:
        """Write *contents*, creating parent directories if needed."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(contents, encoding="utf-8")
