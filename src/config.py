"""Configuration for the OpenSearch MCP server."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class NetworkConfig:
    """Configuration for icon fetching and suggestion queries."""
    icon_fetch_timeout: float = 10.0  # Seconds
    suggest_timeout: float = 10.0  # Seconds
    user_agent: str = "OpenSearchMCP/1.0"

    @classmethod
    def from_env(cls) -> "NetworkConfig":
        """Create config from environment variables."""
        return cls(
            icon_fetch_timeout=float(os.environ.get("OPENSEARCH_ICON_TIMEOUT", "10.0")),
            suggest_timeout=float(os.environ.get("OPENSEARCH_SUGGEST_TIMEOUT", "10.0")),
        )


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    """Main configuration for the OpenSearch MCP server."""
    network: NetworkConfig = field(default_factory=NetworkConfig.from_env)
    search_plugins_dir: Optional[Path] = None  # None = use default
    default_engine: str = "Google"
    plugin_mode: bool = True  # Descriptors on disk are SearchPlugin documents
    suggestions_limit: int = 3
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Create config from environment variables."""
        plugins_dir_str = os.environ.get("OPENSEARCH_PLUGINS_DIR")
        plugins_dir = Path(plugins_dir_str) if plugins_dir_str else None

        return cls(
            network=NetworkConfig.from_env(),
            search_plugins_dir=plugins_dir,
            default_engine=os.environ.get("OPENSEARCH_DEFAULT_ENGINE", "Google"),
            plugin_mode=_parse_bool(os.environ.get("OPENSEARCH_PLUGIN_MODE", "true")),
            suggestions_limit=int(os.environ.get("OPENSEARCH_SUGGEST_LIMIT", "3")),
            log_level=os.environ.get("OPENSEARCH_LOG_LEVEL", "INFO").upper(),
        )


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global config instance.

    Returns:
        Config loaded from environment
    """
    global _config

    if _config is None:
        _config = Config.from_env()

    return _config
