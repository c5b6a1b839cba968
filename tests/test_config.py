"""
Tests for the decorator host configuration.
"""

from unittest.mock import patch

import pytest

from decoration.config import DecorationConfig


ENV_VARS = (
    "DECORATION_CONFIG_PATH",
    "DECORATION_EMBEDDED_CONFIG_PATH",
    "DECORATION_LOG_LEVEL",
    "DECORATION_LOG_FORMAT",
    "DECORATION_JOIN_TIMEOUT_SECONDS",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    with patch("decoration.config.load_dotenv") as load_dotenv:
        yield monkeypatch, load_dotenv


class TestFromEnv:

    def test_defaults(self, clean_env):
        _, load_dotenv = clean_env

        config = DecorationConfig.from_env()

        load_dotenv.assert_called_once()
        assert config == DecorationConfig()
        assert config.validate() == []

    def test_values_from_environment(self, clean_env):
        monkeypatch, _ = clean_env
        monkeypatch.setenv("DECORATION_CONFIG_PATH", "/etc/decorators.yaml")
        monkeypatch.setenv("DECORATION_EMBEDDED_CONFIG_PATH", "/data/embedded.properties")
        monkeypatch.setenv("DECORATION_LOG_LEVEL", "debug")
        monkeypatch.setenv("DECORATION_LOG_FORMAT", "JSON")
        monkeypatch.setenv("DECORATION_JOIN_TIMEOUT_SECONDS", "2.5")

        config = DecorationConfig.from_env()

        assert config.config_path == "/etc/decorators.yaml"
        assert config.embedded_config_path == "/data/embedded.properties"
        assert config.log_level == "DEBUG"
        assert config.log_format == "json"
        assert config.join_timeout_seconds == 2.5

    def test_empty_paths_are_none(self, clean_env):
        monkeypatch, _ = clean_env
        monkeypatch.setenv("DECORATION_CONFIG_PATH", "")

        assert DecorationConfig.from_env().config_path is None


class TestValidate:

    def test_invalid_values_are_reported(self):
        config = DecorationConfig(log_level="LOUD", log_format="xml", join_timeout_seconds=-1)

        errors = config.validate()

        assert len(errors) == 3
        assert errors[0].startswith("log_level must be one of")

    def test_unparseable_join_timeout_is_reported(self, clean_env):
        monkeypatch, _ = clean_env
        monkeypatch.setenv("DECORATION_JOIN_TIMEOUT_SECONDS", "soon")

        config = DecorationConfig.from_env()

        assert config.join_timeout_seconds == 0.0
        assert config.validate() == [
            "DECORATION_JOIN_TIMEOUT_SECONDS must be a number, got 'soon'"
        ]
