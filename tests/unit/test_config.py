"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from filebridge.backend import LocalBackend, RemoteBackend, create_backend
from filebridge.config import CONFIG_FILE_ENV, BridgeConfig, read_config_file
from filebridge.errors import ConfigError


class TestBridgeConfig:
    """Tests for BridgeConfig."""

    def test_defaults(self) -> None:
        config = BridgeConfig.load(environ={})

        assert config.root == Path.cwd().resolve()
        assert config.rest_port == 3100
        assert config.mcp_port == 3101
        assert config.backend_url is None
        assert config.heartbeat_interval == 30.0
        assert config.cors_origins == ["*"]

    def test_environment_overrides(self, tmp_path: Path) -> None:
        config = BridgeConfig.load(
            environ={
                "FILEBRIDGE_ROOT": str(tmp_path),
                "PORT": "8000",
                "MCP_PORT": "8001",
                "FILEBRIDGE_URL": "http://remote:3100/",
                "FILEBRIDGE_HEARTBEAT": "5",
                "FILEBRIDGE_CORS_ORIGINS": "http://a.test, http://b.test",
                "FILEBRIDGE_LOG_LEVEL": "debug",
            }
        )

        assert config.root == tmp_path.resolve()
        assert config.rest_port == 8000
        assert config.mcp_port == 8001
        assert config.backend_url == "http://remote:3100"
        assert config.heartbeat_interval == 5.0
        assert config.cors_origins == ["http://a.test", "http://b.test"]
        assert config.log_level == "DEBUG"

    def test_yaml_file_then_environment(self, tmp_path: Path) -> None:
        config_file = tmp_path / "filebridge.yaml"
        config_file.write_text("rest_port: 4000\nmcp_port: 4001\nheartbeat_interval: null\n")

        config = BridgeConfig.load(environ={CONFIG_FILE_ENV: str(config_file), "PORT": "5000"})

        assert config.rest_port == 5000
        assert config.mcp_port == 4001
        assert config.heartbeat_interval is None

    def test_unknown_key(self) -> None:
        with pytest.raises(ConfigError, match="bogus"):
            BridgeConfig.from_mapping({"bogus": 1})

    def test_invalid_port(self) -> None:
        with pytest.raises(ConfigError, match="rest_port"):
            BridgeConfig.load(environ={"PORT": "not-a-port"})

    def test_non_string_yaml_values(self, tmp_path: Path) -> None:
        config_file = tmp_path / "filebridge.yaml"
        config_file.write_text("log_level: 10\n")

        with pytest.raises(ConfigError, match="log_level"):
            BridgeConfig.load(environ={CONFIG_FILE_ENV: str(config_file)})

    @pytest.mark.parametrize(
        "values",
        [
            {"host": 127},
            {"backend_url": 5},
            {"root": ["a", "b"]},
            {"cors_origins": [1]},
            {"cors_origins": {"origin": "http://a.test"}},
        ],
    )
    def test_wrong_value_types(self, values: dict) -> None:
        with pytest.raises(ConfigError, match=next(iter(values))):
            BridgeConfig.from_mapping(values)

    def test_config_file_must_be_mapping(self, tmp_path: Path) -> None:
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("- just\n- a list\n")
        with pytest.raises(ConfigError):
            read_config_file(config_file)


class TestCreateBackend:
    """Tests for create_backend()."""

    def test_local_by_default(self, tmp_path: Path) -> None:
        backend = create_backend(BridgeConfig(root=tmp_path))
        assert isinstance(backend, LocalBackend)
        assert backend.describe() == str(tmp_path.resolve())

    def test_remote_when_url_set(self) -> None:
        backend = create_backend(BridgeConfig(backend_url="http://remote:3100"))
        assert isinstance(backend, RemoteBackend)
        assert backend.describe() == "http://remote:3100"
