"""Error hierarchy for the Graphviz wrapper.

Every failure carries a human-readable ``message`` and a stable ``code``.
The service layer copies both into a ServiceError; callers of the
library distinguish causes by exception class or by message text.
"""

from __future__ import annotations

PARSE_HINT = "try adding a newline after the closing } of the graph"


class GraphvizError(Exception):
    """Base exception for all gvsafe errors."""

    code = "GRAPHVIZ_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class CStringError(GraphvizError):
    """A string could not be converted to a NUL-terminated C string."""

    code = "CSTRING"

    @classmethod
    def from_value(cls, value: str, reason: str) -> CStringError:
        preview = value if len(value) <= 40 else value[:37] + "..."
        return cls(f"cannot pass {preview!r} to the native engine: {reason}")


class ParseError(GraphvizError):
    """The native engine could not build a graph from the supplied text."""

    code = "PARSE_FAILED"

    def __init__(self, message: str = "agmemread failed") -> None:
        super().__init__(f"{message}. {PARSE_HINT}")


class LayoutError(GraphvizError):
    """The native layout step returned an error code."""

    code = "LAYOUT_FAILED"


class RenderError(GraphvizError):
    """The native render step returned an error code."""

    code = "RENDER_FAILED"


class PipeError(GraphvizError):
    """The OS could not provide the output channel pair."""

    code = "PIPE_FAILED"


class ContextError(GraphvizError):
    """The native context is unavailable (not acquired, or already released)."""

    code = "CONTEXT_FAILED"


class LibraryNotFoundError(GraphvizError):
    """A native shared library could not be located or loaded."""

    code = "LIBRARY_NOT_FOUND"


class UnsupportedEngineError(GraphvizError):
    code = "UNSUPPORTED_ENGINE"

    def __init__(self, value: str) -> None:
        super().__init__(f"unsupported layout engine: {value!r}")


class UnsupportedFormatError(GraphvizError):
    code = "UNSUPPORTED_FORMAT"

    def __init__(self, value: str) -> None:
        super().__init__(f"unsupported output format: {value!r}")


class OutputWriteError(GraphvizError):
    """Rendered bytes could not be written to the configured file location."""

    code = "OUTPUT_WRITE_FAILED"
