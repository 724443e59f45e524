"""Runtime configuration.

Values are resolved in three layers: dataclass defaults, an optional YAML
file named by FILEBRIDGE_CONFIG, then individual environment variables.
The CLI communicates with the uvicorn app factories through the same
environment variables.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_ENV = "FILEBRIDGE_CONFIG"

# Environment variable -> config attribute
ENV_OVERRIDES: dict[str, str] = {
    "FILEBRIDGE_ROOT": "root",
    "FILEBRIDGE_HOST": "host",
    "PORT": "rest_port",
    "MCP_PORT": "mcp_port",
    "FILEBRIDGE_URL": "backend_url",
    "FILEBRIDGE_HEARTBEAT": "heartbeat_interval",
    "FILEBRIDGE_CORS_ORIGINS": "cors_origins",
    "FILEBRIDGE_LOG_LEVEL": "log_level",
}

# Attributes that must be plain strings
_STRING_FIELDS = ("host", "log_level")


@dataclass
class BridgeConfig:
    """FileBridge configuration."""

    # Sandbox
    root: Path = field(default_factory=Path.cwd)

    # Listeners
    host: str = "127.0.0.1"
    rest_port: int = 3100
    mcp_port: int = 3101

    # When set, the MCP bridge fronts a remote REST bridge instead of the local root
    backend_url: str | None = None

    # Session streams
    heartbeat_interval: float | None = 30.0

    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.root = Path(self.root).expanduser().resolve()
        if self.backend_url:
            self.backend_url = self.backend_url.rstrip("/")
        self.log_level = self.log_level.upper()

    @classmethod
    def from_mapping(cls, values: dict[str, Any]) -> BridgeConfig:
        """Build a config from a mapping, coercing string values."""
        known = {f.name: f for f in fields(cls)}
        unknown = set(values) - set(known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        kwargs = {name: _coerce(name, value) for name, value in values.items()}
        return cls(**kwargs)

    @classmethod
    def load(cls, environ: dict[str, str] | None = None) -> BridgeConfig:
        """Load configuration from defaults, config file and environment."""
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        config_file = env.get(CONFIG_FILE_ENV)
        if config_file:
            logger.debug(f"Loading configuration from {config_file}")
            values.update(read_config_file(config_file))

        for var, attr in ENV_OVERRIDES.items():
            if env.get(var):
                values[attr] = env[var]

        return cls.from_mapping(values)


def read_config_file(path: str | Path) -> dict[str, Any]:
    """Read raw configuration values from a YAML file."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file {path} must contain a mapping")
    return data


def _coerce(name: str, value: Any) -> Any:
    """Convert raw config values (often strings) to attribute types."""
    try:
        if name in ("rest_port", "mcp_port"):
            return int(value)
        if name == "heartbeat_interval":
            if value is None or value == "":
                return None
            return float(value)
        if name == "cors_origins" and isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value for {name}: {value!r}") from e

    if name in _STRING_FIELDS and not isinstance(value, str):
        raise ConfigError(f"{name} must be a string, got {value!r}")
    if name == "backend_url" and value is not None and not isinstance(value, str):
        raise ConfigError(f"backend_url must be a string, got {value!r}")
    if name == "root" and not isinstance(value, (str, Path)):
        raise ConfigError(f"root must be a path, got {value!r}")
    if name == "cors_origins" and not (
        isinstance(value, list) and all(isinstance(origin, str) for origin in value)
    ):
        raise ConfigError(f"cors_origins must be a list of strings, got {value!r}")
    return value
