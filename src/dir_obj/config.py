"""Configuration management for Dir Obj."""

import json
import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from . import CONFIG_FILE

# How leaf files are written during dump: "truncate" overwrites anything
# already at the target, "exclusive" refuses to.
FileWriteMode = Literal["truncate", "exclusive"]

FILE_WRITE_MODES: tuple[str, ...] = ("truncate", "exclusive")


class DirObjConfig(BaseModel):
    """Load and dump policy for directory trees."""

    file_write_mode: FileWriteMode = "truncate"
    exclude_patterns: list[str] = Field(default_factory=list)


def get_config_path(root: Path) -> Path:
    """Get the config file path for a working directory."""
    return root / CONFIG_FILE


def load_config(config_path: Path | None = None) -> DirObjConfig:
    """Load configuration from a JSON config file.

    Falls back to defaults if no path is given or the file doesn't exist.
    Environment variables can override config values.
    """
    if config_path is not None and config_path.exists():
        with open(config_path) as f:
            data = json.load(f)
        config = DirObjConfig.model_validate(data)
    else:
        config = DirObjConfig()

    # Apply environment variable overrides
    config = _apply_env_overrides(config)

    return config


def save_config(config: DirObjConfig, config_path: Path) -> None:
    """Save configuration to a JSON config file."""
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        json.dump(config.model_dump(), f, indent=2)


def _apply_env_overrides(config: DirObjConfig) -> DirObjConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    # DIROBJ_FILE_WRITE_MODE
    if mode := os.environ.get("DIROBJ_FILE_WRITE_MODE"):
        if mode in FILE_WRITE_MODES:
            data["file_write_mode"] = mode

    # DIROBJ_EXCLUDE (comma-separated fnmatch patterns)
    if exclude := os.environ.get("DIROBJ_EXCLUDE"):
        data["exclude_patterns"] = [p.strip() for p in exclude.split(",") if p.strip()]

    return DirObjConfig.model_validate(data)
