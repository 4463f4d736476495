"""Command: synchronize package.json and tsconfig.json with actual imports."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from depsync.commands._base import DepsyncCommand

if TYPE_CHECKING:
    from depsync.commands._context import AppContext


@click.command(
    cls=DepsyncCommand,
    examples="""\
  depsync sync
  depsync sync --dry-run
  depsync sync --fail-on-stale
  depsync sync --force
  depsync sync -d
  depsync -C path/to/workspace --json sync --dry-run""",
)
@click.option("-d", "--dry-run", is_flag=True, help="Show diffs without writing any file.")
@click.option(
    "--fail-on-stale",
    is_flag=True,
    help="Exit 1 when manifests declare workspace dependencies nothing imports.",
)
@click.option("-f", "--force", is_flag=True, help="Reconcile even when dependency cycles exist.")
@click.pass_obj
def sync(app: AppContext, dry_run: bool, fail_on_stale: bool, force: bool) -> None:
    """Reconcile manifests and project references with observed imports.

    Exits 2 without writing when dependency cycles are found (unless
    --force), and 1 on stale dependencies with --fail-on-stale.
    """
    app.emit(
        app.sync_service().sync(dry_run=dry_run, force=force, fail_on_stale=fail_on_stale)
    )
