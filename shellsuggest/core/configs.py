"""Configuration management for shellsuggest.

Loads user settings from ~/.config/shellsuggest/config.cfg
Falls back to ~/.config/shellsuggest/.env when no config.cfg exists.
Environment variables (SHELLSUGGEST_*) override both.
"""

import configparser
from dataclasses import dataclass, field
import os
from pathlib import Path
import tempfile
from typing import Dict, Optional

from dotenv import dotenv_values

CONFIG_DIR = Path.home() / ".config" / "shellsuggest"
CONFIG_PATH = CONFIG_DIR / "config.cfg"
ENV_PATH = CONFIG_DIR / ".env"

ENV_PREFIX = "SHELLSUGGEST_"
ENV_OVERRIDES = ("socket", "log_level", "provider")


def default_socket_path() -> Path:
    """Per-user socket path, preferring XDG_RUNTIME_DIR."""
    runtime_dir = os.environ.get("XDG_RUNTIME_DIR", "").strip()
    if runtime_dir:
        return Path(runtime_dir) / "shellsuggest.sock"
    return Path(tempfile.gettempdir()) / f"shellsuggest-{os.getuid()}.sock"


@dataclass
class DaemonSettings:
    socket_path: Path = field(default_factory=default_socket_path)
    session_timeout: float = 5.0
    max_sessions: int = 64
    drain_timeout: float = 2.0
    idle_timeout: float = 0.0
    watch_interval: float = 1.0
    client_timeout: Optional[float] = None
    log_level: str = "INFO"
    log_path: Path = CONFIG_DIR / "daemon.log"
    provider: str = ""


def load_raw_config(
    path: Path = CONFIG_PATH,
    env_path: Path = ENV_PATH,
) -> Dict[str, str]:
    """
    Load configuration values from the standard config path.
    Values are returned with lowercase keys for convenience.
    """
    data: Dict[str, str] = {}

    if path.exists():
        cfg = configparser.ConfigParser()
        cfg.read(path)
        if "DEFAULT" in cfg:
            data.update({k.lower(): v for k, v in cfg["DEFAULT"].items()})
        if "DAEMON" in cfg:
            data.update({k.lower(): v for k, v in cfg["DAEMON"].items()})
    elif env_path.exists():
        for key, value in dotenv_values(env_path).items():
            if value is None:
                continue
            key = key.lower()
            if key.startswith(ENV_PREFIX.lower()):
                key = key[len(ENV_PREFIX):]
            data[key] = value

    for key in ENV_OVERRIDES:
        value = os.environ.get(f"{ENV_PREFIX}{key.upper()}")
        if value is not None and value.strip() != "":
            data[key] = value.strip()

    return data


def _get_float(raw: Dict[str, str], key: str, default: float) -> float:
    value = raw.get(key, "")
    if value is None or str(value).strip() == "":
        return default
    try:
        number = float(value)
    except ValueError:
        raise ValueError(f"Invalid value for '{key}': {value!r} (expected a number)")
    if number < 0:
        raise ValueError(f"Invalid value for '{key}': {value!r} (must be >= 0)")
    return number


def _get_int(raw: Dict[str, str], key: str, default: int) -> int:
    value = raw.get(key, "")
    if value is None or str(value).strip() == "":
        return default
    try:
        number = int(str(value).strip())
    except ValueError:
        raise ValueError(f"Invalid value for '{key}': {value!r} (expected an integer)")
    if number < 1:
        raise ValueError(f"Invalid value for '{key}': {value!r} (must be >= 1)")
    return number


def get_daemon_settings(
    raw: Optional[Dict[str, str]] = None,
    socket_path: Optional[Path] = None,
) -> DaemonSettings:
    """
    Build DaemonSettings from raw configuration values.

    An explicit socket_path (the CLI --socket option) wins over everything.
    Raises ValueError if a numeric field is malformed.
    """
    raw = load_raw_config() if raw is None else raw

    if socket_path is None:
        configured = raw.get("socket", "").strip()
        socket_path = Path(configured).expanduser() if configured else default_socket_path()

    client_timeout = _get_float(raw, "client_timeout", 0.0)
    log_path = raw.get("log_path", "").strip()

    return DaemonSettings(
        socket_path=Path(socket_path),
        session_timeout=_get_float(raw, "session_timeout", 5.0),
        max_sessions=_get_int(raw, "max_sessions", 64),
        drain_timeout=_get_float(raw, "drain_timeout", 2.0),
        idle_timeout=_get_float(raw, "idle_timeout", 0.0),
        watch_interval=_get_float(raw, "watch_interval", 1.0) or 1.0,
        client_timeout=client_timeout or None,
        log_level=raw.get("log_level", "INFO").strip().upper() or "INFO",
        log_path=Path(log_path).expanduser() if log_path else CONFIG_DIR / "daemon.log",
        provider=raw.get("provider", "").strip(),
    )
