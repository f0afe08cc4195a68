"""Subcommand modules for gvsafe.

Provides register_commands() which uses deferred imports to keep
``gvsafe --help`` fast and free of native library loading.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from gvsafe.commands.render import render

    cli.add_command(render)
