"""
Configuration management and loading.

Handles store settings from a YAML file and environment variables.
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from session_logger.core.query import DEFAULT_QUERY_LIMIT
from session_logger.core.sessions import DEFAULT_SESSIONS_LIMIT
from session_logger.storage.partitions import DEFAULT_MAX_FILE_BYTES

ENV_LOG_DIR = "SESSION_LOGGER_LOG_DIR"
ENV_MAX_FILE_BYTES = "SESSION_LOGGER_MAX_FILE_BYTES"
ENV_LOG_LEVEL = "SESSION_LOGGER_LOG_LEVEL"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def default_log_dir() -> Path:
    """Fixed per-user directory used when nothing else is configured."""
    return Path.home() / ".session-logger-mcp" / "logs"


@dataclass(frozen=True)
class StoreConfig:
    """Complete store configuration."""
    log_dir: Path = field(default_factory=default_log_dir)
    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES
    query_limit: int = DEFAULT_QUERY_LIMIT
    sessions_limit: int = DEFAULT_SESSIONS_LIMIT
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate sizes, limits and log level."""
        if self.max_file_bytes <= 0:
            raise ValueError("max_file_bytes must be > 0")
        if self.query_limit <= 0:
            raise ValueError("query_limit must be > 0")
        if self.sessions_limit <= 0:
            raise ValueError("sessions_limit must be > 0")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of: {list(LOG_LEVELS)}")


_INT_KEYS = ("max_file_bytes", "query_limit", "sessions_limit")


def load_store_config(path: str) -> StoreConfig:
    """Load and validate store configuration from YAML file.

    Unknown keys and wrong types are rejected rather than ignored. An empty
    file yields the defaults.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated StoreConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Store config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if raw_config is None:
        return StoreConfig()
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a mapping")

    return StoreConfig(**_parse_config(raw_config, "config"))


def _parse_config(data: Dict, path: str) -> Dict:
    """Validate raw configuration values and convert them to field values.

    Raises:
        ValueError: If configuration is invalid
    """
    allowed_keys = {'log_dir', 'max_file_bytes', 'query_limit', 'sessions_limit', 'log_level'}
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")

    values = {}
    if 'log_dir' in data:
        log_dir = data['log_dir']
        if not isinstance(log_dir, str) or not log_dir.strip():
            raise ValueError(f"'log_dir' in {path} must be a non-empty string")
        values['log_dir'] = Path(log_dir).expanduser()

    for key in _INT_KEYS:
        if key in data:
            value = data[key]
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"'{key}' in {path} must be a positive integer")
            values[key] = value

    if 'log_level' in data:
        level = data['log_level']
        if not isinstance(level, str):
            raise ValueError(f"'log_level' in {path} must be a string")
        values['log_level'] = level.upper()

    return values


def config_from_env(
    base: Optional[StoreConfig] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> StoreConfig:
    """Apply SESSION_LOGGER_* environment overrides on top of `base`.

    Raises:
        ValueError: If an override cannot be parsed
    """
    base = base or StoreConfig()
    environ = os.environ if environ is None else environ

    overrides = {}
    if environ.get(ENV_LOG_DIR):
        overrides['log_dir'] = Path(environ[ENV_LOG_DIR]).expanduser()
    if environ.get(ENV_MAX_FILE_BYTES):
        try:
            overrides['max_file_bytes'] = int(environ[ENV_MAX_FILE_BYTES])
        except ValueError:
            raise ValueError(f"{ENV_MAX_FILE_BYTES} must be an integer")
    if environ.get(ENV_LOG_LEVEL):
        overrides['log_level'] = environ[ENV_LOG_LEVEL].upper()

    return replace(base, **overrides) if overrides else base


def load_config(path: Optional[str] = None) -> StoreConfig:
    """Load YAML configuration (when given) and apply environment overrides."""
    base = load_store_config(path) if path else StoreConfig()
    return config_from_env(base)