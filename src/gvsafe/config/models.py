"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, gvsafe.toml only contains overrides.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from gvsafe.domain.errors import GraphvizError
from gvsafe.domain.types import Engine, OutputFormat


class RenderConfig(BaseModel):
    """[render] section."""

    model_config = {"frozen": True}

    engine: str = "dot"
    format: str = "png"
    require_trailing_newline: bool = True

    @field_validator("engine")
    @classmethod
    def _known_engine(cls, value: str) -> str:
        try:
            return Engine.parse(value).value
        except GraphvizError as exc:
            raise ValueError(exc.message) from exc

    @field_validator("format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        try:
            return OutputFormat.parse(value).value
        except GraphvizError as exc:
            raise ValueError(exc.message) from exc


class NativeConfig(BaseModel):
    """[native] section: explicit shared library names or paths."""

    model_config = {"frozen": True}

    gvc_library: str | None = None
    cgraph_library: str | None = None
    libc_library: str | None = None


class PipeConfig(BaseModel):
    """[pipe] section."""

    model_config = {"frozen": True}

    capacity: int = Field(default=1024 * 1024, ge=0)


class GvConfig(BaseModel):
    """Root of gvsafe.toml."""

    model_config = {"frozen": True}

    render: RenderConfig = Field(default_factory=RenderConfig)
    native: NativeConfig = Field(default_factory=NativeConfig)
    pipe: PipeConfig = Field(default_factory=PipeConfig)
