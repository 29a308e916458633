"""
Unit tests for server configuration.
"""

from pathlib import Path

import pytest

from originserver.config import ServerConfig, ConfigError


class TestServerConfig:

    def test_create_resolves_root(self, site_root: Path):
        config = ServerConfig.create(8080, str(site_root / "docs" / ".."))

        assert config.root_folder == site_root.resolve()
        assert config.root_folder.is_absolute()
        assert config.scripts_folder == site_root.resolve() / "scripts"

    def test_defaults(self, site_root: Path):
        config = ServerConfig.create(8080, site_root)

        assert config.host == "0.0.0.0"
        assert config.port == 8080
        assert config.server_name == "originserver/1.0"

    def test_missing_root(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="does not exist"):
            ServerConfig.create(8080, tmp_path / "nope")

    def test_root_is_a_file(self, site_root: Path):
        with pytest.raises(ConfigError, match="not a directory"):
            ServerConfig.create(8080, site_root / "index.html")

    @pytest.mark.parametrize("port", [-1, 65536, 100000])
    def test_invalid_port(self, site_root: Path, port: int):
        with pytest.raises(ConfigError, match="Invalid port"):
            ServerConfig.create(port, site_root)

    def test_port_zero_allowed(self, site_root: Path):
        assert ServerConfig.create(0, site_root).port == 0

    def test_buffer_limits(self, site_root: Path):
        with pytest.raises(ConfigError):
            ServerConfig.create(8080, site_root, buffer_size=10)
        with pytest.raises(ConfigError):
            ServerConfig.create(8080, site_root, buffer_size=4096, max_request_size=2048)

    def test_frozen(self, site_root: Path):
        config = ServerConfig.create(8080, site_root)
        with pytest.raises(AttributeError):
            config.port = 9090

    def test_config_error_is_value_error(self):
        assert issubclass(ConfigError, ValueError)
