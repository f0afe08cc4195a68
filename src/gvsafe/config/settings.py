"""GvSettings — CLI flags, env vars, and TOML config in one frozen object.

Priority chain (highest to lowest):
  1. Init kwargs: CLI flags passed by Click
  2. Env vars: ``GVSAFE_*`` prefix, ``__`` for nested sections
  3. TOML file: ``gvsafe.toml`` discovered via walk-up
  4. Code defaults: baked into :mod:`gvsafe.config.models`
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from gvsafe.config.discovery import find_config
from gvsafe.config.models import NativeConfig, PipeConfig, RenderConfig


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a gvsafe.toml file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path is None or not toml_path.is_file():
            return
        try:
            self._data = tomllib.loads(toml_path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as exc:
            raise click.ClickException(f"Invalid TOML in {toml_path}: {exc}") from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# The TOML path is chosen per construction, but pydantic-settings builds
# sources from a classmethod; hand it over through thread-local state.
_tls = threading.local()


class GvSettings(BaseSettings):
    """Unified settings for the gvsafe CLI and library defaults.

    Attributes:
        config_path: The TOML file that was applied, or None.
        render: Default engine/format and input checks.
        native: Explicit shared library locations.
        pipe: Output pipe buffer sizing.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "GVSAFE_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    render: RenderConfig = Field(default_factory=RenderConfig)
    native: NativeConfig = Field(default_factory=NativeConfig)
    pipe: PipeConfig = Field(default_factory=PipeConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert the TOML source between env vars and defaults."""
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, getattr(_tls, "toml_path", None)),
        )

    @classmethod
    def load(
        cls,
        *,
        config_path: str | Path | None = None,
        start: Path | None = None,
        **overrides: Any,
    ) -> GvSettings:
        """Construct settings, discovering gvsafe.toml unless *config_path* is given.

        An explicit *config_path* that does not exist is ignored, matching
        how a missing discovered file is treated.
        """
        if config_path is not None:
            path = Path(config_path)
            toml_path = path if path.is_file() else None
        else:
            toml_path = find_config(start)

        _tls.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **overrides)
        finally:
            _tls.toml_path = None
