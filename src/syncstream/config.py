"""syncstream configuration management.

Loads configuration from .syncstream/config.yaml with sensible defaults.
All settings can be overridden via environment variables (SYNCSTREAM_*).

Config locations (in priority order):
1. Explicit path passed to load_config()
2. .syncstream/config.yaml (project-local)
3. ~/.syncstream/config.yaml (user-global)
4. Built-in defaults

The plain HOST and PORT variables are honoured too, for the listener used
when no sockets are handed over by socket activation.
"""

from __future__ import annotations

import copy
import os
import shlex
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from syncstream.core.errors import ErrorCode, config_error
from syncstream.runner.coordinator import DEFAULT_LINE_LIMIT

DEFAULT_COMMAND: tuple[str, ...] = (
    "/usr/bin/rsync",
    "-rlptv",
    "--info=progress",
    "--delete",
    "rsync://racnoss.kde.org/applicationdata/neon",
    "/mnt/volume-do-cacher-storage/files.kde.org/",
)

LOG_LEVELS = ("critical", "error", "warning", "info", "debug", "trace")


@dataclass
class ServerConfig:
    """Listener settings."""

    host: str = "localhost"
    """Host for the fallback TCP listener."""

    port: int = 8080
    """Port for the fallback TCP listener."""

    socket_activation: bool = True
    """Use sockets passed by systemd (LISTEN_FDS) when present."""

    log_level: str = "info"
    """uvicorn log level."""


@dataclass
class SyncStreamConfig:
    """Root configuration for syncstream."""

    command: list[str] = field(default_factory=lambda: list(DEFAULT_COMMAND))
    """Sync command and its arguments, run without a shell."""

    cwd: str | None = None
    """Working directory for the sync command."""

    line_limit: int = DEFAULT_LINE_LIMIT
    """Longest accepted output line, in bytes."""

    server: ServerConfig = field(default_factory=ServerConfig)
    """Listener configuration."""

    verbose: bool = False
    """Enable debug logging by default."""


_DEFAULTS: dict[str, Any] = {
    "command": list(DEFAULT_COMMAND),
    "cwd": None,
    "line_limit": DEFAULT_LINE_LIMIT,
    "server": {
        "host": "localhost",
        "port": 8080,
        "socket_activation": True,
        "log_level": "info",
    },
    "verbose": False,
}

# Global config instance (lazy-loaded, thread-safe)
_config: SyncStreamConfig | None = None
_config_lock = threading.Lock()


def _deep_update(base: dict, updates: dict) -> dict:
    """Recursively update a dict with another dict."""
    for key, value in updates.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_update(base[key], value)
        else:
            base[key] = value
    return base


def _coerce(value: str) -> Any:
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    if value.isdigit() or (value.startswith("-") and value[1:].isdigit()):
        return int(value)
    return value


def _apply_env_overrides(config_dict: dict, environ: dict[str, str] | None = None) -> dict:
    """Apply environment variable overrides.

    Examples:
        HOST=0.0.0.0 PORT=9000
        SYNCSTREAM_SERVER_PORT=9000
        SYNCSTREAM_COMMAND="rsync -av src/ dst/"
        SYNCSTREAM_LINE_LIMIT=65536

    SYNCSTREAM_SERVER_* wins over HOST/PORT.
    """
    env = os.environ if environ is None else environ
    server = config_dict.setdefault("server", {})

    if env.get("HOST"):
        server["host"] = env["HOST"]
    if env.get("PORT"):
        server["port"] = _coerce(env["PORT"])

    prefix = "SYNCSTREAM_"
    server_prefix = prefix + "SERVER_"
    top_level = {"command", "cwd", "line_limit", "verbose"}

    for key, value in env.items():
        if key.startswith(server_prefix):
            name = key[len(server_prefix):].lower()
            if name in _DEFAULTS["server"]:
                server[name] = value if name == "host" else _coerce(value)
        elif key.startswith(prefix):
            name = key[len(prefix):].lower()
            if name not in top_level:
                continue
            if name == "command":
                config_dict[name] = shlex.split(value)
            elif name == "cwd":
                config_dict[name] = value or None
            else:
                config_dict[name] = _coerce(value)

    return config_dict


def _dict_to_config(data: dict) -> SyncStreamConfig:
    """Convert a dict to SyncStreamConfig, validating as it goes."""
    command = data.get("command")
    if isinstance(command, str):
        command = shlex.split(command)
    if not isinstance(command, list) or not command or not all(isinstance(a, str) for a in command):
        raise config_error(
            ErrorCode.CONFIG_INVALID, key="command", detail="expected a non-empty list of strings"
        )

    line_limit = data.get("line_limit", DEFAULT_LINE_LIMIT)
    if not isinstance(line_limit, int) or isinstance(line_limit, bool) or line_limit <= 0:
        raise config_error(ErrorCode.CONFIG_INVALID, key="line_limit", detail=f"{line_limit!r} is not a positive integer")

    server_data = {**_DEFAULTS["server"], **(data.get("server") or {})}
    unknown = set(server_data) - set(_DEFAULTS["server"])
    if unknown:
        raise config_error(ErrorCode.CONFIG_INVALID, key="server", detail=f"unknown keys {sorted(unknown)}")

    port = server_data["port"]
    if not isinstance(port, int) or isinstance(port, bool) or not 0 < port < 65536:
        raise config_error(ErrorCode.CONFIG_INVALID, key="server.port", detail=f"{port!r} is not a TCP port")

    log_level = str(server_data["log_level"]).lower()
    if log_level not in LOG_LEVELS:
        raise config_error(ErrorCode.CONFIG_INVALID, key="server.log_level", detail=f"{log_level!r} is not a log level")

    cwd = data.get("cwd")
    return SyncStreamConfig(
        command=list(command),
        cwd=str(cwd) if cwd else None,
        line_limit=line_limit,
        server=ServerConfig(
            host=str(server_data["host"]),
            port=port,
            socket_activation=bool(server_data["socket_activation"]),
            log_level=log_level,
        ),
        verbose=bool(data.get("verbose", False)),
    )


def load_config(path: str | Path | None = None, environ: dict[str, str] | None = None) -> SyncStreamConfig:
    """Load configuration from file with defaults and env overrides.

    Priority (highest to lowest):
    1. Environment variables (SYNCSTREAM_*, then HOST/PORT)
    2. Explicit path if provided
    3. .syncstream/config.yaml (project-local)
    4. ~/.syncstream/config.yaml (user-global)
    5. Built-in defaults

    Args:
        path: Optional explicit config file path.
        environ: Environment to read overrides from. Defaults to os.environ.

    Returns:
        Merged SyncStreamConfig instance.

    Raises:
        SyncStreamError: A config file is unreadable or a value is invalid.
    """
    global _config

    config_dict = copy.deepcopy(_DEFAULTS)

    config_paths = []
    if path:
        explicit = Path(path)
        if not explicit.exists():
            raise config_error(ErrorCode.CONFIG_MISSING, key=str(explicit))
        config_paths.append(explicit)
    config_paths.extend([
        Path(".syncstream/config.yaml"),
        Path.home() / ".syncstream" / "config.yaml",
    ])

    for config_path in config_paths:
        if config_path.exists():
            try:
                with open(config_path) as f:
                    file_config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise config_error(ErrorCode.CONFIG_INVALID, key=str(config_path), detail=str(e), cause=e) from e
            if not isinstance(file_config, dict):
                raise config_error(ErrorCode.CONFIG_INVALID, key=str(config_path), detail="expected a mapping")
            _deep_update(config_dict, file_config)
            break  # Use first found config

    config_dict = _apply_env_overrides(config_dict, environ)

    _config = _dict_to_config(config_dict)
    return _config


def get_config() -> SyncStreamConfig:
    """Get the current configuration, loading if needed.

    Thread-safe with double-check locking.
    """
    global _config

    if _config is not None:
        return _config

    with _config_lock:
        if _config is None:
            _config = load_config()
        return _config


def reset_config() -> None:
    """Reset the global config (useful for testing)."""
    global _config
    with _config_lock:
        _config = None
