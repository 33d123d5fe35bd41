"""Server settings from ``sprintboard.toml`` files and the environment.

Layers, lowest first: model defaults, the XDG user file, the project
file, ``$SPRINTBOARD_CONFIG``, an explicit ``--config`` path,
``$SPRINTBOARD_DATABASE_URL`` and finally CLI overrides.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from sprintboard.core.errors import ConfigError

from .schema import SprintboardConfig


def _user_config_path() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME", "")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "sprintboard" / "config.toml"


def _project_config_path() -> Path:
    return Path.cwd() / "sprintboard.toml"


def _discover_config_files() -> list[Path]:
    paths: list[Path] = []

    user = _user_config_path()
    if user.is_file():
        paths.append(user)

    project = _project_config_path()
    if project.is_file():
        paths.append(project)

    env_path = os.environ.get("SPRINTBOARD_CONFIG")
    if env_path:
        p = Path(env_path)
        if not p.is_file():
            msg = f"SPRINTBOARD_CONFIG points to non-existent file: {env_path}"
            raise ConfigError(msg)
        paths.append(p)

    return paths


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {path}: {e}"
        raise ConfigError(msg) from e
    except OSError as e:
        msg = f"Cannot read config file {path}: {e}"
        raise ConfigError(msg) from e


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Nested tables merge key by key; anything else in *override* replaces."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _apply_env_overrides(merged: dict[str, Any]) -> dict[str, Any]:
    """Fold supported environment variables into the merged dict."""
    db_url = os.environ.get("SPRINTBOARD_DATABASE_URL")
    if db_url:
        merged = _deep_merge(merged, {"database": {"url": db_url}})
    return merged


def load_config(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> SprintboardConfig:
    """Merge every config layer and validate it into a ``SprintboardConfig``."""
    merged: dict[str, Any] = {}

    files = _discover_config_files()

    if path is not None:
        p = Path(path)
        if not p.is_file():
            msg = f"Config file not found: {path}"
            raise ConfigError(msg)
        files.append(p)

    for config_file in files:
        data = _read_toml(config_file)
        merged = _deep_merge(merged, data)

    merged = _apply_env_overrides(merged)

    if overrides:
        merged = _deep_merge(merged, overrides)

    try:
        return SprintboardConfig.model_validate(merged)
    except ValidationError as e:
        msg = f"Configuration validation failed: {e}"
        raise ConfigError(msg) from e
