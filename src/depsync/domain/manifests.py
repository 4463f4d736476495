"""Typed views over package manifests and compiler reference configs.

Both views wrap the parsed JSON object without reshaping it. Unknown keys and
key order survive a read/write cycle untouched; the properties only expose
the fields the sync engine reasons about.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from depsync.domain.jsonlike import JsonObject, JsonValue, clone_json

WORKSPACE_LINK = "workspace:*"
WORKSPACE_PROTOCOL = "workspace:"


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _str_mapping(value: Any) -> dict[str, str]:
    if not isinstance(value, Mapping):
        return {}
    return {key: item for key, item in value.items() if isinstance(item, str)}


class _JsonDocument:
    """Read-only access to a JSON object bag."""

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, JsonValue] | None = None) -> None:
        if data is not None and not isinstance(data, Mapping):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        self._data: JsonObject = clone_json(dict(data or {}))  # type: ignore[assignment]

    @property
    def data(self) -> JsonObject:
        """A fresh copy of the underlying object."""
        return clone_json(self._data)  # type: ignore[return-value]

    def get(self, key: str, default: JsonValue = None) -> JsonValue:
        return self._data.get(key, default)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._data == other._data  # type: ignore[attr-defined]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._data!r})"


class PackageManifest(_JsonDocument):
    """A ``package.json`` document."""

    __slots__ = ()

    @property
    def name(self) -> str | None:
        return _str_or_none(self._data.get("name"))

    @property
    def is_private(self) -> bool:
        return self._data.get("private") is True

    @property
    def types(self) -> str | None:
        return _str_or_none(self._data.get("types"))

    @property
    def typings(self) -> str | None:
        return _str_or_none(self._data.get("typings"))

    @property
    def module(self) -> str | None:
        return _str_or_none(self._data.get("module"))

    @property
    def main(self) -> str | None:
        return _str_or_none(self._data.get("main"))

    @property
    def exports(self) -> JsonValue:
        return self._data.get("exports")

    @property
    def dependencies(self) -> dict[str, str]:
        return _str_mapping(self._data.get("dependencies"))

    @property
    def dev_dependencies(self) -> dict[str, str]:
        return _str_mapping(self._data.get("devDependencies"))

    @property
    def workspaces(self) -> list[str]:
        """Workspace globs, from either the array or ``{packages: [...]}`` form."""
        value = self._data.get("workspaces")
        if isinstance(value, Mapping):
            value = value.get("packages")
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, str)]


class ReferenceConfig(_JsonDocument):
    """A ``tsconfig.json`` document."""

    __slots__ = ()

    @property
    def compiler_options(self) -> JsonObject:
        value = self._data.get("compilerOptions")
        return clone_json(value) if isinstance(value, dict) else {}  # type: ignore[return-value]

    @property
    def paths(self) -> dict[str, list[str]]:
        value = self.compiler_options.get("paths")
        if not isinstance(value, dict):
            return {}
        return {
            key: [item for item in targets if isinstance(item, str)]
            for key, targets in value.items()
            if isinstance(targets, list)
        }

    @property
    def reference_paths(self) -> list[str]:
        value = self._data.get("references")
        if not isinstance(value, list):
            return []
        return [
            entry["path"]
            for entry in value
            if isinstance(entry, dict) and isinstance(entry.get("path"), str)
        ]
