"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. The client is built lazily so ``--help`` and
``--version`` never touch storage or the network.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from faultline.output.formatters import format_result

if TYPE_CHECKING:
    from faultline.client import FaultlineClient
    from faultline.config.settings import FaultlineSettings
    from faultline.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: FaultlineSettings) -> None:
        self.settings = settings
        self._client: FaultlineClient | None = None

        from faultline.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def client(self) -> FaultlineClient:
        """The SDK client (created lazily on first access)."""
        if self._client is None:
            from faultline.client import FaultlineClient

            self._client = FaultlineClient.from_settings(self.settings)
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.shutdown()
            self._client = None

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
        * Failure: writes to stderr, exits with code 1.
        """
        output = format_result(result, json_output=self.settings.json_output)
        if result.ok:
            click.echo(output)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
