"""Subcommand modules for faultline."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups on the root CLI group."""
    from faultline.commands.settings import settings

    cli.add_command(settings)
