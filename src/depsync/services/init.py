"""Starter configuration for a workspace."""

from __future__ import annotations

from pathlib import Path

from depsync.config.discovery import CONFIG_FILENAME, write_config_template
from depsync.services.result import ServiceError, ServiceResult


def init_config(directory: Path) -> ServiceResult:
    """Write a commented ``depsync.toml`` into *directory*.

    Never overwrites: an existing file is reported as ``CONFIG_EXISTS``.
    """
    op = "init"
    try:
        path = write_config_template(directory)
    except FileExistsError:
        return ServiceResult(
            ok=False,
            op=op,
            error=ServiceError(
                code="CONFIG_EXISTS",
                message=f"{CONFIG_FILENAME} already exists in {directory}",
                detail={"path": str(directory / CONFIG_FILENAME)},
            ),
        )
    except OSError as exc:
        return ServiceResult(
            ok=False,
            op=op,
            error=ServiceError(code="WRITE_FAILED", message=str(exc)),
        )

    has_manifest = (directory / "package.json").is_file()
    warnings = [] if has_manifest else [f"No package.json found in {directory}"]
    return ServiceResult(ok=True, op=op, data={"path": str(path)}, warnings=warnings)
