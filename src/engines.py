"""Collection of configured search engines."""
from pathlib import Path
from typing import Iterator, List, Optional

from loguru import logger

from src.config import get_config
from src.engine import SearchEngine
from src.parser import DescriptorParseError, DescriptorParser, ParseMode
from src.resources import ResourceLoader

# Default descriptor location
DEFAULT_PLUGINS_PATH = Path.home() / ".opensearch-mcp" / "searchplugins"


def get_search_plugins_path() -> Path:
    """Get the directory holding search engine descriptors.

    Returns:
        Configured directory, or ~/.opensearch-mcp/searchplugins
    """
    return get_config().search_plugins_dir or DEFAULT_PLUGINS_PATH


def load_engines(
    plugins_path: Path,
    mode: ParseMode = ParseMode.PLUGIN,
    resource_loader: Optional[ResourceLoader] = None,
) -> List[SearchEngine]:
    """Parse every *.xml descriptor in a directory.

    Descriptors that fail to parse are logged and left out.

    Raises:
        FileNotFoundError: If the directory doesn't exist
    """
    if not plugins_path.is_dir():
        raise FileNotFoundError(f"Search plugins directory not found at {plugins_path}")

    parser = DescriptorParser(mode, resource_loader)
    engines = []
    for path in sorted(plugins_path.glob("*.xml")):
        try:
            engines.append(parser.parse_file(path))
        except DescriptorParseError as e:
            logger.warning("Skipping search plugin {} ({}): {}", path.name, e.kind.value, e)
        except OSError as e:
            logger.warning("Could not read search plugin {}: {}", path.name, e)

    return engines


class SearchEngines:
    """Engines sorted by name, with one marked as the default."""

    def __init__(self, engines: List[SearchEngine], default_name: Optional[str] = None):
        self._engines = sorted(engines, key=lambda engine: engine.short_name.lower())
        if default_name is None:
            default_name = get_config().default_engine
        self.default_name = default_name

    @classmethod
    def from_directory(
        cls,
        plugins_path: Optional[Path] = None,
        mode: ParseMode = ParseMode.PLUGIN,
        resource_loader: Optional[ResourceLoader] = None,
        default_name: Optional[str] = None,
    ) -> "SearchEngines":
        if plugins_path is None:
            plugins_path = get_search_plugins_path()
        return cls(load_engines(plugins_path, mode, resource_loader), default_name)

    @property
    def engines(self) -> List[SearchEngine]:
        return list(self._engines)

    @property
    def default_engine(self) -> Optional[SearchEngine]:
        """The configured default engine, falling back to the first one."""
        if not self._engines:
            return None
        return self.get(self.default_name) or self._engines[0]

    def get(self, short_name: str) -> Optional[SearchEngine]:
        for engine in self._engines:
            if engine.short_name == short_name:
                return engine
        return None

    def ordered(self) -> List[SearchEngine]:
        """Engines with the default engine first."""
        default = self.default_engine
        if default is None:
            return []
        return [default] + [engine for engine in self._engines if engine is not default]

    def __len__(self) -> int:
        return len(self._engines)

    def __iter__(self) -> Iterator[SearchEngine]:
        return iter(self._engines)
