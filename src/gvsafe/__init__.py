"""gvsafe — safe bindings to the Graphviz layout and rendering engine."""

from __future__ import annotations

__version__ = "0.1.0"

from gvsafe.domain.errors import (
    CStringError,
    GraphvizError,
    LayoutError,
    ParseError,
    PipeError,
    RenderError,
)
from gvsafe.domain.types import Engine, OutputFormat, OutputLocation
from gvsafe.infrastructure.graphviz.context import GraphvizContext

__all__ = [
    "CStringError",
    "Engine",
    "GraphvizContext",
    "GraphvizError",
    "LayoutError",
    "OutputFormat",
    "OutputLocation",
    "ParseError",
    "PipeError",
    "RenderError",
    "__version__",
]
