"""Graphpack CLI - Command-line interface for inspecting packets."""

from __future__ import annotations

import logging

import click

from graphpack import __version__
from graphpack.cli.cmds import identity
from graphpack.cli.cmds import inspect_packet

__all__ = ["cli"]


@click.group(context_settings={"help_option_names": ["-h", "--help"], "max_content_width": 120})
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Graphpack - Typed snapshots of live Python object graphs."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)


cli.add_command(identity)
cli.add_command(inspect_packet)


if __name__ == "__main__":
    cli()
