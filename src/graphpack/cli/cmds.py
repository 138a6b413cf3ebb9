"""CLI commands for looking at packets without unpacking them."""

from __future__ import annotations

import click
import fsspec

from graphpack.codecs import get_codec
from graphpack.codecs import sniff_format
from graphpack.exceptions import PackError
from graphpack.identity import ExecutableIdentity
from graphpack.identity import module_files
from graphpack.identity import program_files
from graphpack.primitive import WORD_SIZE
from graphpack.settings import get_global_settings


@click.command("identity")
@click.option("--files", is_flag=True, help="Also list the files that were hashed.")
def identity(files: bool) -> None:
    """Print the executable identity of the running program."""
    click.echo(str(ExecutableIdentity.current()))
    if files:
        for path in program_files():
            click.echo(f"  {path}")
        if get_global_settings().hash_loaded_modules:
            for name, _ in module_files():
                click.echo(f"  module {name}")


@click.command("inspect")
@click.argument("path", metavar="FILE")
@click.option(
    "--format",
    "format_",
    type=click.Choice(["auto", "text", "binary"]),
    default="auto",
    show_default=True,
    help="Encoding of the packet file.",
)
def inspect_packet(path: str, format_: str) -> None:
    r"""
    Show the identity header of a packet file.

    FILE may be a local path or any fsspec URL. The packet is never unpacked, so files written
    by other programs can be inspected safely.

    Examples:
    \b
    graphpack inspect checkpoint.pkt
    graphpack inspect --format text dump.txt
    """
    try:
        with fsspec.open(path, "rb") as f:
            data = f.read()
    except FileNotFoundError as e:
        raise click.ClickException(f"No such file: {path}") from e

    if format_ == "auto":
        format_ = sniff_format(data)

    try:
        header = get_codec(format_).read_header(data)
    except PackError as e:
        raise click.ClickException(f"Cannot read packet header: {e}") from e

    match = "matches the running program" if header.matches_program else "DIFFERENT program"
    click.echo(f"format:  {format_}")
    click.echo(f"size:    {header.size} words ({header.size * WORD_SIZE} bytes)")
    click.echo(f"program: {header.program} ({match})")
    click.echo(f"type:    {header.type}")
