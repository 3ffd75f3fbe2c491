"""
Unit tests for server configuration and the command line.
"""

import pytest

from minihttp import ServerConfig, __version__
from minihttp.__main__ import build_parser, config_from_args, main


class TestServerConfig:
    """Tests for ServerConfig class."""

    def test_defaults(self):
        config = ServerConfig()

        assert config.host == "127.0.0.1"
        assert config.port == 4221
        assert config.directory == ""
        assert config.timeout == 30.0
        assert config.max_request_size == 1024 * 1024
        config.validate()

    def test_port_zero_is_valid(self):
        """Port 0 lets the OS choose."""
        ServerConfig(port=0).validate()

    def test_no_timeout_is_valid(self):
        ServerConfig(timeout=None).validate()

    @pytest.mark.parametrize("overrides", [
        {"port": -1},
        {"port": 65536},
        {"backlog": 0},
        {"buffer_size": 0},
        {"buffer_size": 4096, "max_request_size": 1024},
        {"timeout": 0},
        {"timeout": -1.5},
    ])
    def test_invalid_values(self, overrides):
        """Test validate() rejects bad values."""
        with pytest.raises(ValueError):
            ServerConfig(**overrides).validate()


class TestCommandLine:
    """Tests for argument parsing in __main__."""

    def test_defaults(self):
        config = config_from_args([])

        assert config.host == "127.0.0.1"
        assert config.port == 4221
        assert config.directory == ""
        assert config.log_level == "INFO"

    def test_directory(self):
        """Test the common 'minihttp --directory /tmp/' invocation."""
        config = config_from_args(["--directory", "/tmp/"])

        assert config.directory == "/tmp/"

    def test_all_options(self):
        config = config_from_args([
            "-d", "/srv/", "-H", "0.0.0.0", "-p", "8080", "-t", "5", "-l", "DEBUG",
        ])

        assert config.directory == "/srv/"
        assert config.host == "0.0.0.0"
        assert config.port == 8080
        assert config.timeout == 5.0
        assert config.log_level == "DEBUG"

    def test_invalid_port(self):
        with pytest.raises(ValueError):
            config_from_args(["--port", "70000"])

    def test_main_reports_errors(self, capsys):
        """Test startup errors print to stderr and exit 1."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--port", "70000"])

        assert exc_info.value.code == 1
        assert "Invalid port" in capsys.readouterr().err

    def test_version(self, capsys):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--version"])

        assert __version__ in capsys.readouterr().out
