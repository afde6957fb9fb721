"""Root CLI group for faultline with global flags and command registration."""

from __future__ import annotations

import click

from faultline import __version__
from faultline.commands import register_commands
from faultline.commands._context import AppContext
from faultline.config.settings import FaultlineSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="faultline")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option(
    "--sync/--no-sync",
    default=True,
    help="Run server requests on the calling thread (default for the CLI).",
)
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    verbose: bool,
    log_json: bool,
    sync: bool,
    config_path: str | None,
) -> None:
    """faultline — inspect and synchronize error-reporting settings."""
    settings = FaultlineSettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        verbose=verbose,
        log_json=log_json,
        sync=sync,
    )
    ctx.obj = AppContext(settings)
    ctx.call_on_close(ctx.obj.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
