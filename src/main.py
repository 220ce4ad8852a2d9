"""Main entry point for the OpenSearch MCP server."""
import sys
from pathlib import Path

# Add project root to Python path for absolute imports
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import asyncio

from loguru import logger

from src.config import get_config
from src.server import main


def configure_logging() -> None:
    """Send diagnostics to stderr; stdout carries the MCP protocol."""
    logger.remove()
    logger.add(sys.stderr, level=get_config().log_level)


if __name__ == "__main__":
    configure_logging()
    asyncio.run(main())
