"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, depsync.toml only contains
overrides. A workspace needs at least one ``[workspace_types."<glob>"]``
table before discovery can classify any package.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

# --- depsync.toml sections ---


class WorkspaceTypeConfig(BaseModel):
    """[workspace_types."<glob>"] section."""

    model_config = {"frozen": True}

    type: Literal["app", "shared-package"]
    sub_type: str | None = None
    # A required name prefix, or False to disable the check explicitly.
    enforce_name_prefix: str | Literal[False] | None = None
    package_json_template: dict[str, Any] | None = None
    tsconfig_template: dict[str, Any] | None = None

    @field_validator("enforce_name_prefix", mode="before")
    @classmethod
    def _reject_true(cls, value: Any) -> Any:
        if value is True:
            msg = "enforce_name_prefix must be a string or false"
            raise ValueError(msg)
        return value


class LayeringConfig(BaseModel):
    """[layering] section — markers for the diamond layering heuristic."""

    model_config = {"frozen": True}

    ui_markers: list[str] = Field(default_factory=lambda: ["ui", "components"])
    data_markers: list[str] = Field(default_factory=lambda: ["db", "data-sync"])


class ReferencesConfig(BaseModel):
    """[references] section."""

    model_config = {"frozen": True}

    # Maintain project references in the workspace-root tsconfig.json.
    incremental: bool = True


class ScanConfig(BaseModel):
    """[scan] section."""

    model_config = {"frozen": True}

    max_workers: int = Field(default=8, ge=1)


class SyncConfig(BaseModel):
    """Top level of depsync.toml."""

    model_config = {"frozen": True}

    workspace_types: dict[str, WorkspaceTypeConfig] = Field(default_factory=dict)
    default_dependencies: list[str] = Field(default_factory=list)
    ignore_projects: list[str] = Field(default_factory=list)
    ignore_imports: list[str] = Field(default_factory=list)
    exclude_patterns: list[str] = Field(default_factory=list)
    universal_utilities: list[str] = Field(default_factory=list)
    layering: LayeringConfig = Field(default_factory=LayeringConfig)
    references: ReferencesConfig = Field(default_factory=ReferencesConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
