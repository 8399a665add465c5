"""Locating and reading kvinput.toml.

The finder walks up from the working directory (like git looking for
``.git/``) and accepts either ``kvinput.toml`` or a hidden
``.kvinput.toml``; the visible name wins when both sit in one directory.
``KVINPUT_CONFIG`` pins an exact file and disables the walk.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

import click
from pydantic import ValidationError

from kvinput.config.models import KvConfig

CONFIG_FILENAME = "kvinput.toml"
CONFIG_FILENAMES = (CONFIG_FILENAME, ".kvinput.toml")
CONFIG_ENV_VAR = "KVINPUT_CONFIG"


class ConfigError(click.ClickException):
    """A config file exists but cannot be used."""


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file governing *start* (default: cwd), or None.

    A ``KVINPUT_CONFIG`` that names a missing file yields None rather than
    falling back to the walk.
    """
    pinned = os.environ.get(CONFIG_ENV_VAR)
    if pinned:
        path = Path(pinned)
        return path if path.is_file() else None

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        for name in CONFIG_FILENAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None


def read_config_data(path: Path) -> dict[str, Any]:
    """Parse *path* as TOML. Raises ConfigError on malformed input."""
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc


def load_config(path: Path | None = None, cwd: Path | None = None) -> KvConfig:
    """Load *path* (or the discovered file) into a validated KvConfig.

    No file at all is not an error: the code defaults apply.
    """
    path = path or find_config(cwd)
    if path is None:
        return KvConfig()
    try:
        return KvConfig.model_validate(read_config_data(path))
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ConfigError(f"Invalid config in {path}: {problems}") from exc
