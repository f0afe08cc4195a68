"""Format ServiceResult for the terminal.

Three modes: JSON (``--json``), quiet (``-q``, one status line), and
human output rendered through Rich.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel
from rich.table import Table
from rich.text import Text

from gvsafe.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from gvsafe.services.result import ServiceResult


class OutputSettings(BaseModel):
    """Output mode flags, frozen after construction."""

    model_config = {"frozen": True}

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def _value_text(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return _json.dumps(value, separators=(",", ":"))
    return str(value)


def _render_ok(result: ServiceResult, console: Console, *, verbose: bool) -> None:
    console.print(Text("OK", style="gv.ok"), Text(f"  {result.op}", style="gv.op"))
    if not result.data and not (verbose and result.meta):
        return
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="gv.key")
    table.add_column()
    for key, value in result.data.items():
        table.add_row(key, _value_text(value))
    if verbose and result.meta:
        for key, value in result.meta.items():
            table.add_row(key, _value_text(value))
    console.print(table)


def _render_error(result: ServiceResult, console: Console, *, verbose: bool) -> None:
    error = result.error
    message = error.message if error else "Unknown error"
    line = Text.assemble(
        ("ERROR", "gv.error"),
        (f"  {result.op}", "gv.op"),
        "  ",
        message,
    )
    console.print(line)
    if error and verbose:
        console.print(Text(f"  code: {error.code}", style="gv.code"))
        for key, value in error.detail.items():
            console.print(Text(f"  {key}: {_value_text(value)}", style="gv.key"))


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    """Format a ServiceResult for display according to *settings*."""
    settings = settings or OutputSettings()
    if settings.json_output:
        return result.model_dump_json(indent=2)
    if settings.quiet:
        if result.ok:
            return f"OK: {result.op}"
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"

    console = create_console()
    if result.ok:
        _render_ok(result, console, verbose=settings.verbose)
    else:
        _render_error(result, console, verbose=settings.verbose)
    return get_output(console).rstrip("\n")
