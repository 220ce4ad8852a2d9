"""Tests for config module."""
from pathlib import Path

from src.config import Config, NetworkConfig


class TestConfig:
    def test_default_values(self, monkeypatch):
        for name in ("OPENSEARCH_ICON_TIMEOUT", "OPENSEARCH_SUGGEST_TIMEOUT"):
            monkeypatch.delenv(name, raising=False)
        config = Config()
        assert config.network.icon_fetch_timeout == 10.0
        assert config.network.suggest_timeout == 10.0
        assert config.network.user_agent == "OpenSearchMCP/1.0"
        assert config.search_plugins_dir is None
        assert config.default_engine == "Google"
        assert config.plugin_mode is True
        assert config.suggestions_limit == 3
        assert config.log_level == "INFO"

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("OPENSEARCH_ICON_TIMEOUT", "2.5")
        monkeypatch.setenv("OPENSEARCH_SUGGEST_TIMEOUT", "4")
        monkeypatch.setenv("OPENSEARCH_PLUGINS_DIR", "/tmp/searchplugins")
        monkeypatch.setenv("OPENSEARCH_SUGGEST_LIMIT", "5")

        config = Config.from_env()
        assert config.network.icon_fetch_timeout == 2.5
        assert config.network.suggest_timeout == 4.0
        assert config.search_plugins_dir == Path("/tmp/searchplugins")
        assert config.suggestions_limit == 5

    def test_default_engine_from_env(self, monkeypatch):
        monkeypatch.setenv("OPENSEARCH_DEFAULT_ENGINE", "DuckDuckGo")
        config = Config.from_env()
        assert config.default_engine == "DuckDuckGo"

    def test_plugin_mode_from_env(self, monkeypatch):
        monkeypatch.setenv("OPENSEARCH_PLUGIN_MODE", "false")
        assert Config.from_env().plugin_mode is False
        monkeypatch.setenv("OPENSEARCH_PLUGIN_MODE", "Yes")
        assert Config.from_env().plugin_mode is True

    def test_log_level_from_env(self, monkeypatch):
        monkeypatch.setenv("OPENSEARCH_LOG_LEVEL", "debug")
        assert Config.from_env().log_level == "DEBUG"

    def test_network_from_env(self, monkeypatch):
        monkeypatch.setenv("OPENSEARCH_SUGGEST_TIMEOUT", "1.5")
        assert NetworkConfig.from_env().suggest_timeout == 1.5
