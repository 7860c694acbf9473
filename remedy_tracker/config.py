"""
Config loading and the runtime config store.

Reads the TOML config file and keeps the resolved settings for the whole process.
The config is loaded once at startup and referenced by every module through ConfigStore.
"""

from __future__ import annotations

import pathlib
import threading
from dataclasses import dataclass
from typing import Any

import tomli

from remedy_tracker import paths


DEFAULT_MESSAGING_BASE_URL = "https://waba-v2.360dialog.io/v1/messages"
DEFAULT_TEMPLATE_NAME = "med_reminder"


@dataclass
class Config:
    """
    TOML startup config (fixed for the process lifetime).
    """
    port: int                 # HTTP listen port
    log_level: str            # DEBUG, INFO, WARNING, ERROR
    db_path: str              # SQLite file path (resolved)
    log_file_enabled: bool
    log_file_path: str
    log_file_max_bytes: int
    messaging_api_key: str    # gateway API key (empty disables sending)
    messaging_namespace: str  # template namespace registered at the gateway
    messaging_base_url: str
    messaging_template_name: str
    messaging_timeout_seconds: float
    reminder_sweep_enabled: bool
    reminder_sweep_interval_seconds: int
    session_ttl_seconds: int
    session_cookie_secure: bool  # Secure flag on the session cookie (enable behind TLS)
    bootstrap_admin_email: str
    bootstrap_admin_password: str
    bootstrap_admin_name: str


class ConfigStore:
    """
    Holds the active Config.
    Safe to read from any thread.
    """

    def __init__(self, config: Config) -> None:
        self._config = config
        self._lock = threading.Lock()

    @property
    def config(self) -> Config:
        """Return the active Config."""
        with self._lock:
            return self._config

    @property
    def messaging_enabled(self) -> bool:
        """True when a gateway API key is configured."""
        return bool(self.config.messaging_api_key)


_ALLOWED_KEYS = {
    "port",
    "log_level",
    "db_path",
    "log_file_enabled",
    "log_file_path",
    "log_file_max_bytes",
    "messaging_api_key",
    "messaging_namespace",
    "messaging_base_url",
    "messaging_template_name",
    "messaging_timeout_seconds",
    "reminder_sweep_enabled",
    "reminder_sweep_interval_seconds",
    "session_ttl_seconds",
    "session_cookie_secure",
    "bootstrap_admin_email",
    "bootstrap_admin_password",
    "bootstrap_admin_name",
}


def _require(config_dict: dict, key: str) -> Any:
    """
    Return a required key from the config dict.
    Raises ValueError when the key is missing or empty.
    """
    if key not in config_dict or config_dict[key] in (None, ""):
        raise ValueError(f"config key '{key}' is required")
    return config_dict[key]


def load_config(path: str | pathlib.Path | None = None) -> Config:
    """
    Read the TOML config file.
    Unknown keys are rejected.
    """
    # --- default is config/setting.toml under the app root ---
    config_path = pathlib.Path(paths.get_default_config_file_path() if path is None else path)
    config_path = paths.resolve_path_under_app_root(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"config file not found: {config_path}")

    with config_path.open("rb") as f:
        data = tomli.load(f)

    return config_from_dict(data)


def config_from_dict(data: dict[str, Any]) -> Config:
    """
    Build a Config from an already-parsed dict.
    Used by load_config and by tests that do not want a file on disk.
    """
    unknown_keys = sorted(set(data.keys()) - _ALLOWED_KEYS)
    if unknown_keys:
        keys = ", ".join(repr(k) for k in unknown_keys)
        raise ValueError(f"unknown config key(s): {keys}")

    # --- relative file paths resolve under the app root ---
    raw_db_path = str(data.get("db_path", str(paths.get_data_dir() / "remedy_tracker.db")))
    resolved_db_path = str(paths.resolve_path_under_app_root(raw_db_path))
    raw_log_file_path = str(data.get("log_file_path", str(paths.get_logs_dir() / "remedy_tracker.log")))
    resolved_log_file_path = str(paths.resolve_path_under_app_root(raw_log_file_path))

    # --- messaging timeout (positive) ---
    # NOTE: a hung gateway would otherwise block the sweep thread indefinitely.
    messaging_timeout_seconds = float(data.get("messaging_timeout_seconds", 10))
    if messaging_timeout_seconds <= 0:
        raise ValueError("messaging_timeout_seconds must be positive")

    # --- reminder sweep interval (positive) ---
    reminder_sweep_interval_seconds = int(data.get("reminder_sweep_interval_seconds", 3600))
    if reminder_sweep_interval_seconds <= 0:
        raise ValueError("reminder_sweep_interval_seconds must be a positive integer")

    session_ttl_seconds = int(data.get("session_ttl_seconds", 24 * 60 * 60))
    if session_ttl_seconds <= 0:
        raise ValueError("session_ttl_seconds must be a positive integer")

    log_level = str(_require(data, "log_level")).strip().upper()
    if log_level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        raise ValueError(f"log_level must be DEBUG/INFO/WARNING/ERROR (got {log_level!r})")

    return Config(
        port=int(_require(data, "port")),
        log_level=log_level,
        db_path=resolved_db_path,
        log_file_enabled=bool(data.get("log_file_enabled", False)),
        log_file_path=resolved_log_file_path,
        log_file_max_bytes=int(data.get("log_file_max_bytes", 200_000)),
        messaging_api_key=str(data.get("messaging_api_key", "") or "").strip(),
        messaging_namespace=str(data.get("messaging_namespace", "") or "").strip(),
        messaging_base_url=str(data.get("messaging_base_url", DEFAULT_MESSAGING_BASE_URL) or DEFAULT_MESSAGING_BASE_URL),
        messaging_template_name=str(data.get("messaging_template_name", DEFAULT_TEMPLATE_NAME) or DEFAULT_TEMPLATE_NAME),
        messaging_timeout_seconds=float(messaging_timeout_seconds),
        reminder_sweep_enabled=bool(data.get("reminder_sweep_enabled", True)),
        reminder_sweep_interval_seconds=int(reminder_sweep_interval_seconds),
        session_ttl_seconds=int(session_ttl_seconds),
        session_cookie_secure=bool(data.get("session_cookie_secure", False)),
        bootstrap_admin_email=str(data.get("bootstrap_admin_email", "") or "").strip().lower(),
        bootstrap_admin_password=str(data.get("bootstrap_admin_password", "") or ""),
        bootstrap_admin_name=str(data.get("bootstrap_admin_name", "") or "").strip() or "Admin",
    )
