"""Command group: read-only dependency graph analysis."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from depsync.commands._base import DepsyncGroup
from depsync.domain.types import DiamondKind

if TYPE_CHECKING:
    from depsync.commands._context import AppContext

_GRAPH_EXAMPLES = """\
  depsync graph cycles
  depsync graph diamonds
  depsync graph diamonds --kind layering-violation-candidate
  depsync graph usage --top 5
  depsync graph deps
  depsync --json graph cycles"""


@click.group(cls=DepsyncGroup, examples=_GRAPH_EXAMPLES)
@click.pass_obj
def graph(app: AppContext) -> None:
    """Analyze the workspace dependency graph without changing files."""


@graph.command(
    examples="""\
  depsync graph cycles
  depsync --json graph cycles"""
)
@click.pass_obj
def cycles(app: AppContext) -> None:
    """List circular dependencies between packages."""
    app.emit(app.graph_service().cycles())


@graph.command(
    examples="""\
  depsync graph diamonds
  depsync -v graph diamonds
  depsync graph diamonds --kind incomplete-abstraction"""
)
@click.option(
    "--kind",
    type=click.Choice([str(k) for k in DiamondKind]),
    default=None,
    help="Only show one pattern kind.",
)
@click.pass_obj
def diamonds(app: AppContext, kind: str | None) -> None:
    """List dependencies imported both directly and through another package."""
    app.emit(app.graph_service().diamonds(kind=DiamondKind(kind) if kind else None))


@graph.command(
    examples="""\
  depsync graph usage
  depsync graph usage --top 5"""
)
@click.option("--top", default=10, type=int, help="Max packages per ranking.")
@click.pass_obj
def usage(app: AppContext, top: int) -> None:
    """Summarize import usage and spot unused shared packages."""
    app.emit(app.graph_service().usage(top=top))


@graph.command(
    examples="""\
  depsync graph deps
  depsync --json graph deps --top 3"""
)
@click.option("--top", default=10, type=int, help="Max packages per ranking.")
@click.pass_obj
def deps(app: AppContext, top: int) -> None:
    """Rank packages by dependencies and dependents."""
    app.emit(app.graph_service().deps(top=top))
