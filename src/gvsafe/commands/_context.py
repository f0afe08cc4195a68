"""AppContext — shared Click context for all commands.

Created once by the root CLI group and passed to subcommands via
``@click.pass_obj``. Owns logging setup, result emission (stdout/stderr
routing + exit codes), and a lazily built RenderService.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from gvsafe.config.logging import configure_logging
from gvsafe.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from gvsafe.config.settings import GvSettings
    from gvsafe.services.render import RenderService
    from gvsafe.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The render service (and with it the native library) is created on
    first use so ``--help`` and ``--version`` never load Graphviz.
    """

    def __init__(self, settings: GvSettings) -> None:
        self.settings = settings
        self._service: RenderService | None = None
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def service(self) -> RenderService:
        if self._service is None:
            from gvsafe.services.render import RenderService

            self._service = RenderService(self.settings)
        return self._service

    def close(self) -> None:
        if self._service is not None:
            self._service.close()
            self._service = None

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: writes to stdout; warnings go to stderr.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
