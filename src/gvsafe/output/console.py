"""Rich Console factory and theme for gvsafe output.

Consoles render to a StringIO buffer so formatters keep a
``format_result() -> str`` contract. In non-TTY environments (tests,
pipes) Rich disables color codes automatically.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

GV_THEME = Theme(
    {
        "gv.ok": "bold green",
        "gv.error": "bold red",
        "gv.op": "bold cyan",
        "gv.key": "dim",
        "gv.code": "bold magenta",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=GV_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()
