"""Command: starter config (named init_cmd to avoid shadowing builtins)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from depsync.commands._base import DepsyncCommand

if TYPE_CHECKING:
    from depsync.commands._context import AppContext

_INIT_EXAMPLES = """\
  depsync init
  depsync -C path/to/workspace init"""


@click.command("init", cls=DepsyncCommand, examples=_INIT_EXAMPLES)
@click.pass_obj
def init_cmd(app: AppContext) -> None:
    """Write a commented depsync.toml to the workspace root."""
    from depsync.services.init import init_config

    app.emit(init_config(app.settings.workspace_root))
