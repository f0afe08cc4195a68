"""Command: render a DOT graph through the native Graphviz engine."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, TextIO

import click

from gvsafe.commands._base import GvCommand
from gvsafe.domain.types import Engine, OutputFormat

if TYPE_CHECKING:
    from gvsafe.commands._context import AppContext

_RENDER_EXAMPLES = """\
  gvsafe render graph.dot --format png --output graph.png
  gvsafe render graph.dot --engine neato --format svg > graph.svg
  cat graph.dot | gvsafe --json render - --format pdf --output graph.pdf"""


@click.command(cls=GvCommand, examples=_RENDER_EXAMPLES)
@click.argument("source", type=click.File("r", encoding="utf-8"), default="-")
@click.option(
    "-e",
    "--engine",
    type=click.Choice([e.value for e in Engine], case_sensitive=False),
    default=None,
    help="Layout engine (default from config: dot).",
)
@click.option(
    "-f",
    "--format",
    "output_format",
    type=click.Choice([f.value for f in OutputFormat] + ["jpg"], case_sensitive=False),
    default=None,
    help="Output format (default from config: png).",
)
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write rendered bytes to a file instead of stdout.",
)
@click.pass_obj
def render(
    app: AppContext,
    source: TextIO,
    engine: str | None,
    output_format: str | None,
    output: Path | None,
) -> None:
    """Lay out and render a DOT graph.

    Reads SOURCE (a file, or ``-`` for stdin). Without --output the
    rendered bytes go to stdout; with it a summary is printed instead.
    """
    text = source.read()
    name = getattr(source, "name", "<stdin>")
    result = app.service.render(
        text,
        engine=engine,
        output_format=output_format,
        output=output,
        source=str(name),
    )
    if result.ok and output is None:
        stdout = click.get_binary_stream("stdout")
        stdout.write(result.payload or b"")
        stdout.flush()
        return
    app.emit(result)
