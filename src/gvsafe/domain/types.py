"""Layout engines, output formats, and output locations.

Each engine and format maps to exactly one lowercase token consumed by
the native engine. The mapping tables are explicit so that a value
outside the closed set fails fast instead of falling through to a default.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from gvsafe.domain.errors import UnsupportedEngineError, UnsupportedFormatError


class Engine(StrEnum):
    """Layout algorithm families understood by the native engine."""

    DOT = "dot"
    NEATO = "neato"
    FDP = "fdp"
    SFDP = "sfdp"
    CIRCO = "circo"
    TWOPI = "twopi"
    OSAGE = "osage"
    PATCHWORK = "patchwork"

    @classmethod
    def parse(cls, value: str) -> Engine:
        """Case-insensitive lookup; raises UnsupportedEngineError."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise UnsupportedEngineError(value) from None


class OutputFormat(StrEnum):
    """Target encodings for rendered output."""

    PNG = "png"
    SVG = "svg"
    GIF = "gif"
    JPEG = "jpeg"
    PDF = "pdf"
    PS = "ps"
    JSON = "json"
    PLAIN = "plain"
    XDOT = "xdot"
    DOT = "dot"

    @classmethod
    def parse(cls, value: str) -> OutputFormat:
        """Case-insensitive lookup accepting the ``jpg`` alias."""
        key = value.strip().lower()
        if key == "jpg":
            return cls.JPEG
        try:
            return cls(key)
        except ValueError:
            raise UnsupportedFormatError(value) from None


_ENGINE_TOKENS: dict[Engine, str] = {
    Engine.DOT: "dot",
    Engine.NEATO: "neato",
    Engine.FDP: "fdp",
    Engine.SFDP: "sfdp",
    Engine.CIRCO: "circo",
    Engine.TWOPI: "twopi",
    Engine.OSAGE: "osage",
    Engine.PATCHWORK: "patchwork",
}

_FORMAT_TOKENS: dict[OutputFormat, str] = {
    OutputFormat.PNG: "png",
    OutputFormat.SVG: "svg",
    OutputFormat.GIF: "gif",
    OutputFormat.JPEG: "jpg",
    OutputFormat.PDF: "pdf",
    OutputFormat.PS: "ps",
    OutputFormat.JSON: "json",
    OutputFormat.PLAIN: "plain",
    OutputFormat.XDOT: "xdot",
    OutputFormat.DOT: "dot",
}

DEFAULT_FORMAT_TOKEN = "dot"


def engine_token(engine: Engine) -> str:
    """Return the native token for *engine*."""
    try:
        return _ENGINE_TOKENS[engine]
    except KeyError:
        raise UnsupportedEngineError(str(engine)) from None


def format_token(output_format: OutputFormat | None) -> str:
    """Return the native token for *output_format*.

    ``None`` (no format selected) resolves to the ``dot`` passthrough.
    Anything else outside the table raises UnsupportedFormatError.
    """
    if output_format is None:
        return DEFAULT_FORMAT_TOKEN
    try:
        return _FORMAT_TOKENS[output_format]
    except KeyError:
        raise UnsupportedFormatError(str(output_format)) from None


class LocationKind(StrEnum):
    """Where rendered bytes are delivered."""

    MEMORY = "memory"
    FILE = "file"


@dataclass(frozen=True)
class OutputLocation:
    """Delivery target for a render.

    ``MEMORY`` returns bytes to the caller only. ``FILE`` returns them and
    also writes them to ``path``.
    """

    kind: LocationKind = LocationKind.MEMORY
    path: Path | None = None

    def __post_init__(self) -> None:
        if self.kind is LocationKind.FILE and self.path is None:
            raise ValueError("file output location requires a path")

    @classmethod
    def memory(cls) -> OutputLocation:
        return cls()

    @classmethod
    def file(cls, path: str | Path) -> OutputLocation:
        return cls(kind=LocationKind.FILE, path=Path(path))
