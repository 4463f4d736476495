"""Config file discovery and loading.

Walk-up finder locates depsync.toml, similar to how git finds .git/.
Supports DEPSYNC_CONFIG env var and --config CLI flag overrides.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from depsync.config.models import SyncConfig

CONFIG_FILENAME = "depsync.toml"
CONFIG_ENV_VAR = "DEPSYNC_CONFIG"

CONFIG_TEMPLATE = """\
# depsync configuration
# Keeps package.json dependencies and tsconfig.json references in line
# with what the code in each workspace package actually imports.

# Workspace types: one table per glob, relative to the workspace root.
# "*" matches a single path segment.
[workspace_types."apps/*"]
type = "app"                  # "app" or "shared-package"
# sub_type = "website"
# enforce_name_prefix = "@mycompany/"

[workspace_types."packages/*"]
type = "shared-package"
# enforce_name_prefix = "@mycompany/"

# Fields merged into every matching package.json / tsconfig.json.
# "{{projectDir}}" is replaced by the package directory name.
# [workspace_types."packages/*".package_json_template]
# private = true
# [workspace_types."packages/*".tsconfig_template]
# extends = "../../tsconfig.base.json"

# Dependencies every package gets, whether imported or not.
default_dependencies = []

# Packages left out of the resolved graph.
ignore_projects = []

# Import specifiers to ignore: exact names or "*" globs, e.g. "node:*".
ignore_imports = []

# Extra globs excluded from scanning, on top of the built-in ones
# (node_modules, dist, build, tests, ...).
exclude_patterns = []

# Packages expected to be imported everywhere; diamonds through them are fine.
universal_utilities = []

[layering]
ui_markers = ["ui", "components"]
data_markers = ["db", "data-sync"]

[references]
# Keep project references in the root tsconfig.json for incremental builds.
incremental = true

[scan]
max_workers = 8
"""


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for depsync.toml.

    Returns the path to the config file, or None if not found.
    Checks DEPSYNC_CONFIG env var first.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        if p.is_file():
            return p
        return None

    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def load_config(path: Path | None = None, cwd: Path | None = None) -> SyncConfig:
    """Load and validate config from a TOML file.

    If *path* is None, uses find_config(*cwd*) to discover the file.
    Returns default SyncConfig if no file is found.
    """
    if path is None:
        path = find_config(cwd)

    if path is None:
        return SyncConfig()

    raw = path.read_text(encoding="utf-8")
    data: dict[str, Any] = tomllib.loads(raw)
    return SyncConfig.model_validate(data)


def write_config_template(directory: Path) -> Path:
    """Write the starter depsync.toml into *directory*.

    Raises:
        FileExistsError: If a config file is already present.
    """
    target = directory / CONFIG_FILENAME
    if target.exists():
        msg = f"{target} already exists"
        raise FileExistsError(msg)
    directory.mkdir(parents=True, exist_ok=True)
    target.write_text(CONFIG_TEMPLATE, encoding="utf-8")
    return target
