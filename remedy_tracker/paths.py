"""
Path resolution shared by config, DB and log files.

Policy:
    - Relative paths are resolved against the app root (the directory that holds `config/`).
    - The config file location can be overridden with `REMEDY_TRACKER_CONFIG`.
"""

from __future__ import annotations

import os
from pathlib import Path


CONFIG_ENV_VAR = "REMEDY_TRACKER_CONFIG"


def get_app_root_dir() -> Path:
    """Return the app root directory (one level above the package)."""

    return Path(__file__).resolve().parent.parent


def get_default_config_file_path() -> Path:
    """Return the config file path (env override first, then config/setting.toml)."""

    override = str(os.environ.get(CONFIG_ENV_VAR) or "").strip()
    if override:
        return Path(override)
    return get_app_root_dir() / "config" / "setting.toml"


def get_logs_dir() -> Path:
    """Return the default log directory."""

    return get_app_root_dir() / "logs"


def get_data_dir() -> Path:
    """Return the default data directory (SQLite file lives here)."""

    return get_app_root_dir() / "data"


def resolve_path_under_app_root(path: str | Path) -> Path:
    """Resolve a relative path against the app root; absolute paths pass through."""

    p = Path(path)
    if p.is_absolute():
        return p
    return (get_app_root_dir() / p).resolve()
