"""AppContext: shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Builds services from the resolved settings and
centralizes result emission (stdout/stderr routing and exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from depsync.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from depsync.config.settings import DepsyncSettings
    from depsync.services.graph import GraphService
    from depsync.services.result import ServiceResult
    from depsync.services.sync import SyncService


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    Services are created on demand so ``--help`` and ``--version`` never
    touch the workspace.
    """

    def __init__(self, settings: DepsyncSettings) -> None:
        self.settings = settings

        from depsync.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from depsync.services.telemetry import enable_telemetry

            enable_telemetry()

    def sync_service(self) -> SyncService:
        from depsync.services.sync import SyncService

        return SyncService(self.settings.workspace_root, self.settings.sync)

    def graph_service(self) -> GraphService:
        from depsync.services.graph import GraphService

        return GraphService(self.settings.workspace_root, self.settings.sync)

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr and exits with ``result.exit_code``
          (1 when the result does not set one).
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        # In JSON mode, warnings are already in the serialized payload.
        if not settings.json_output and not settings.quiet:
            for warning in result.warnings:
                click.echo(f"WARNING: {warning}", err=True)
        if result.ok:
            click.echo(output)
        else:
            click.echo(output, err=True)
            raise SystemExit(result.exit_code or 1)
