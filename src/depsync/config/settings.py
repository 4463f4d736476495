"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``DEPSYNC_*`` prefix
  3. TOML file    — ``depsync.toml`` discovered via walk-up
  4. Code defaults — baked into :class:`~depsync.config.models.SyncConfig`

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource` that
reuses the walk-up discovery from :mod:`depsync.config.discovery`. The
whole TOML document is the ``sync`` section.
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any, ClassVar

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from depsync.config.discovery import find_config
from depsync.config.models import SyncConfig


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read the ``sync`` field from a ``depsync.toml`` discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                import click

                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        if field_name == "sync" and self._data:
            return self._data, field_name, True
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        """Return the TOML document nested under ``sync`` for Pydantic to merge."""
        return {"sync": self._data} if self._data else {}


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class DepsyncSettings(BaseSettings):
    """Unified settings for the depsync CLI.

    Merges CLI flags, environment variables, the TOML config and
    code-baked defaults into a single frozen object. Stored on the
    :class:`~depsync.commands._context.AppContext` at the CLI root level.

    Attributes:
        workspace_root: Resolved workspace directory (``--root``, else the
            parent of ``depsync.toml``, else CWD).
        config_path: The config file in use, or None when running on defaults.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "DEPSYNC_",
        "env_nested_delimiter": "__",
    }

    # --- Resolved paths (not in TOML) ---
    workspace_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML document ---
    sync: SyncConfig = Field(default_factory=SyncConfig)

    # Retained for type-checker visibility; not used at runtime.
    _toml_path: ClassVar[Path | None] = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        workspace_root: Path | None = None,
        **cli_flags: Any,
    ) -> DepsyncSettings:
        """Construct settings from CLI invocation.

        Discovers ``depsync.toml`` via walk-up from *workspace_root* (or uses
        an explicit *config_path*), resolves the workspace root from the
        config file's parent directory when not given, and merges CLI flags
        as highest-priority overrides.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(workspace_root)

        resolved_root = workspace_root
        if resolved_root is None:
            resolved_root = toml_path.parent if toml_path else Path.cwd()

        _tls.toml_path = toml_path
        try:
            return cls(
                workspace_root=resolved_root.resolve(),
                config_path=toml_path,
                **cli_flags,
            )
        finally:
            _tls.toml_path = None
