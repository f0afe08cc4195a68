"""Locate gvsafe.toml.

Resolution order: the ``GVSAFE_CONFIG`` env var (must name an existing
file, otherwise no config is used), then a walk up the directory tree
from the starting directory, the way git finds ``.git/``.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "gvsafe.toml"
CONFIG_ENV_VAR = "GVSAFE_CONFIG"


def _env_config() -> Path | None:
    value = os.environ.get(CONFIG_ENV_VAR)
    if not value:
        return None
    path = Path(value)
    return path if path.is_file() else None


def _walk_up(start: Path) -> Path | None:
    for directory in (start, *start.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file that applies to *start* (default: cwd), if any."""
    if os.environ.get(CONFIG_ENV_VAR):
        return _env_config()
    return _walk_up((start or Path.cwd()).resolve())
