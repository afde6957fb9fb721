"""Command group: inspect and synchronize server-managed settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from faultline.services.result import INVALID_CONFIG, ServiceResult

if TYPE_CHECKING:
    from faultline.commands._context import AppContext

_SETTINGS_EXAMPLES = """\b
Examples:
  faultline settings show
  faultline settings version
  faultline settings sync
  faultline settings sync --from-version 0
  faultline --json settings check 12"""


def _flush(app: AppContext) -> None:
    """Wait for background requests so their callbacks have run."""
    client = app.client.config.submission_client
    if client is not None and not app.settings.sync:
        client.close()


@click.group(epilog=_SETTINGS_EXAMPLES)
def settings() -> None:
    """Inspect and synchronize server-managed settings."""


@settings.command()
@click.pass_obj
def show(app: AppContext) -> None:
    """Show effective settings after applying the cached snapshot."""
    client = app.client
    client.settings_manager.apply_saved_settings(client.config)
    app.emit(
        ServiceResult(
            ok=True,
            op="show_settings",
            data={
                "valid": client.config.is_valid,
                "version": client.get_settings_version(),
                "settings": dict(client.config.settings),
            },
        )
    )


@settings.command()
@click.pass_obj
def version(app: AppContext) -> None:
    """Print the version of the cached settings snapshot."""
    app.emit(
        ServiceResult(
            ok=True,
            op="settings_version",
            data={"version": app.client.get_settings_version()},
        )
    )


@settings.command()
@click.option(
    "--from-version",
    type=int,
    default=None,
    help="Request settings newer than this version (default: cached version).",
)
@click.pass_obj
def sync(app: AppContext, from_version: int | None) -> None:
    """Fetch settings from the server and apply them."""
    client = app.client
    client.settings_manager.apply_saved_settings(client.config)

    results: list[ServiceResult] = []
    client.update_settings(from_version, on_complete=results.append)
    _flush(app)

    if not results:
        app.emit(
            ServiceResult.failure("update_settings", "NO_RESPONSE", "No response from server")
        )
        return
    app.emit(results[-1])


@settings.command()
@click.argument("server_version", type=int)
@click.pass_obj
def check(app: AppContext, server_version: int) -> None:
    """Fetch settings only if SERVER_VERSION is newer than the cached one."""
    client = app.client
    if not client.config.is_valid:
        app.emit(ServiceResult.failure("check_version", INVALID_CONFIG, "API key is not set."))
        return

    previous = client.get_settings_version()
    client.check_version(server_version)
    _flush(app)
    current = client.get_settings_version()

    app.emit(
        ServiceResult(
            ok=True,
            op="check_version",
            data={
                "announced": server_version,
                "previous_version": previous,
                "version": current,
                "updated": current != previous,
            },
        )
    )
