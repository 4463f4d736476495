"""Subcommand modules for depsync.

Provides register_commands() which uses deferred imports to keep
``depsync --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the graph group and the standalone commands on the root group."""
    from depsync.commands.graph import graph
    from depsync.commands.init_cmd import init_cmd
    from depsync.commands.sync import sync

    cli.add_command(sync)
    cli.add_command(graph)
    cli.add_command(init_cmd)
