"""
Unit tests for configuration loading and validation.

Tests strict YAML validation and environment overrides.
"""

import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from session_logger.config.loader import (
    ENV_LOG_DIR,
    ENV_LOG_LEVEL,
    ENV_MAX_FILE_BYTES,
    StoreConfig,
    config_from_env,
    default_log_dir,
    load_config,
    load_store_config,
)


class TestStoreConfig:
    """Test defaults and value validation."""

    def test_defaults(self):
        config = StoreConfig()

        assert config.log_dir == Path.home() / ".session-logger-mcp" / "logs"
        assert config.log_dir == default_log_dir()
        assert config.max_file_bytes == 10 * 1024 * 1024
        assert config.query_limit == 50
        assert config.sessions_limit == 20
        assert config.log_level == "INFO"

    @pytest.mark.parametrize("field,value", [
        ("max_file_bytes", 0),
        ("query_limit", -1),
        ("sessions_limit", 0),
        ("log_level", "LOUD"),
    ])
    def test_invalid_values_rejected(self, field, value):
        with pytest.raises(ValueError, match=field):
            StoreConfig(**{field: value})


class TestConfigLoading:
    """Test configuration loading and validation."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        """Clean up test environment."""
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_config(self, config_data, filename: str = "config.yaml") -> str:
        """Write configuration data to temporary file."""
        config_path = os.path.join(self.temp_dir, filename)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config_data, f)
        return config_path

    def test_valid_config_loads_correctly(self):
        config_path = self._write_config({
            "log_dir": "/var/log/sessions",
            "max_file_bytes": 1048576,
            "query_limit": 100,
            "sessions_limit": 10,
            "log_level": "debug",
        })

        config = load_store_config(config_path)

        assert config.log_dir == Path("/var/log/sessions")
        assert config.max_file_bytes == 1048576
        assert config.query_limit == 100
        assert config.sessions_limit == 10
        assert config.log_level == "DEBUG"

    def test_partial_config_keeps_defaults(self):
        config = load_store_config(self._write_config({"query_limit": 5}))

        assert config.query_limit == 5
        assert config.sessions_limit == 20
        assert config.log_dir == default_log_dir()

    def test_log_dir_expands_user(self):
        config = load_store_config(self._write_config({"log_dir": "~/session-logs"}))
        assert config.log_dir == Path.home() / "session-logs"

    def test_empty_file_gives_defaults(self):
        config_path = os.path.join(self.temp_dir, "empty.yaml")
        Path(config_path).write_text("")

        assert load_store_config(config_path) == StoreConfig()

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError, match="Store config file not found"):
            load_store_config(os.path.join(self.temp_dir, "absent.yaml"))

    def test_invalid_yaml(self):
        config_path = os.path.join(self.temp_dir, "bad.yaml")
        Path(config_path).write_text("log_dir: [unclosed\n")

        with pytest.raises(yaml.YAMLError):
            load_store_config(config_path)

    def test_unknown_keys_rejected(self):
        with pytest.raises(ValueError, match="Unknown keys"):
            load_store_config(self._write_config({"log_dir": "/tmp/x", "compress": True}))

    def test_top_level_must_be_mapping(self):
        with pytest.raises(ValueError, match="mapping"):
            load_store_config(self._write_config(["log_dir"]))

    @pytest.mark.parametrize("key,value", [
        ("max_file_bytes", "10MB"),
        ("max_file_bytes", 0),
        ("query_limit", True),
        ("sessions_limit", 2.5),
    ])
    def test_integer_fields_validated(self, key, value):
        with pytest.raises(ValueError, match=key):
            load_store_config(self._write_config({key: value}))

    @pytest.mark.parametrize("value", ["", 42])
    def test_log_dir_validated(self, value):
        with pytest.raises(ValueError, match="log_dir"):
            load_store_config(self._write_config({"log_dir": value}))

    def test_invalid_log_level(self):
        with pytest.raises(ValueError, match="log_level"):
            load_store_config(self._write_config({"log_level": "chatty"}))


class TestEnvironmentOverrides:
    """Test SESSION_LOGGER_* environment variables."""

    def test_no_overrides_returns_base(self):
        base = StoreConfig(query_limit=7)
        assert config_from_env(base, environ={}) is base

    def test_overrides_applied(self):
        config = config_from_env(StoreConfig(query_limit=7), environ={
            ENV_LOG_DIR: "/data/logs",
            ENV_MAX_FILE_BYTES: "2048",
            ENV_LOG_LEVEL: "warning",
        })

        assert config.log_dir == Path("/data/logs")
        assert config.max_file_bytes == 2048
        assert config.log_level == "WARNING"
        assert config.query_limit == 7

    def test_bad_integer_override(self):
        with pytest.raises(ValueError, match=ENV_MAX_FILE_BYTES):
            config_from_env(environ={ENV_MAX_FILE_BYTES: "big"})

    def test_non_positive_override_rejected(self):
        with pytest.raises(ValueError, match="max_file_bytes"):
            config_from_env(environ={ENV_MAX_FILE_BYTES: "-5"})

    def test_load_config_combines_file_and_environment(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = os.path.join(temp_dir, "config.yaml")
            with open(config_path, 'w', encoding='utf-8') as f:
                yaml.dump({"log_dir": "/from/file", "query_limit": 11}, f)

            with patch.dict(os.environ, {ENV_LOG_DIR: "/from/env"}):
                config = load_config(config_path)

        assert config.log_dir == Path("/from/env")
        assert config.query_limit == 11

    def test_load_config_without_file(self):
        with patch.dict(os.environ, {ENV_LOG_LEVEL: "ERROR"}):
            config = load_config()

        assert config.log_level == "ERROR"
