"""MCP server exposing OpenSearch engines."""
import json
import sys
from pathlib import Path
from typing import Any, Optional

# Add project root to Python path for absolute imports
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from loguru import logger
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from src.config import get_config
from src.engine import SearchEngine
from src.engines import SearchEngines
from src.parser import DescriptorParseError, ParseMode, parse_descriptor
from src.resources import InlineResourceLoader
from src.suggest import SearchSuggestClient, fetch_suggestions


# Global state
_engines_cache: Optional[SearchEngines] = None


def load_engines(plugins_path: Optional[Path] = None) -> SearchEngines:
    """Load search engines, using cache if available.

    Args:
        plugins_path: Optional directory of descriptor files

    Returns:
        Loaded engines (empty if the directory is missing)
    """
    global _engines_cache

    if _engines_cache is None:
        mode = ParseMode.PLUGIN if get_config().plugin_mode else ParseMode.STANDARD
        try:
            _engines_cache = SearchEngines.from_directory(plugins_path, mode=mode)
        except FileNotFoundError as e:
            logger.warning("Could not find search plugins: {}", e)
            _engines_cache = SearchEngines([])

    return _engines_cache


def _resolve_engine(engines: SearchEngines, name: Optional[str]) -> Optional[SearchEngine]:
    if name:
        return engines.get(name)
    return engines.default_engine


def _engine_summary(engine: SearchEngine, is_default: bool = False) -> dict:
    return {
        "name": engine.short_name,
        "description": engine.description,
        "default": is_default,
        "supports_suggestions": engine.supports_suggestions,
        "has_icon": engine.icon is not None,
        "search_template": engine.search_template.template,
    }


async def list_search_engines_tool() -> list[TextContent]:
    """Tool handler for list_search_engines."""
    engines = load_engines()

    if not engines:
        return [TextContent(
            type="text",
            text="No search engines available. Please check the search plugins directory."
        )]

    default = engines.default_engine
    results = [_engine_summary(engine, engine is default) for engine in engines.ordered()]
    return [TextContent(type="text", text=json.dumps(results, indent=2))]


async def build_search_url_tool(query: str, engine_name: Optional[str] = None) -> list[TextContent]:
    """Tool handler for build_search_url.

    Args:
        query: Text to search for
        engine_name: Engine short name; the default engine when omitted

    Returns:
        List of TextContent with the search URL
    """
    engine = _resolve_engine(load_engines(), engine_name)
    if engine is None:
        return [TextContent(type="text", text=f"Error: unknown search engine: {engine_name or '(default)'}")]

    url = engine.build_query_url(query)
    if url is None:
        return [TextContent(type="text", text=f"Error: could not build a search URL for query: {query}")]

    return [TextContent(type="text", text=str(url))]


async def get_search_suggestions_tool(query: str, engine_name: Optional[str] = None) -> list[TextContent]:
    """Tool handler for get_search_suggestions."""
    engine = _resolve_engine(load_engines(), engine_name)
    if engine is None:
        return [TextContent(type="text", text=f"Error: unknown search engine: {engine_name or '(default)'}")]

    suggestions = await fetch_suggestions(SearchSuggestClient(engine), query)
    return [TextContent(type="text", text=json.dumps(suggestions, indent=2))]


async def parse_descriptor_tool(xml: str, plugin_mode: bool = False) -> list[TextContent]:
    """Tool handler for parse_descriptor.

    Args:
        xml: Descriptor document text
        plugin_mode: Parse as a SearchPlugin document

    Icons are only taken from inline data: URIs; remote Image locations
    in caller-supplied XML are not fetched.

    Returns:
        List of TextContent with the engine summary or the error kind
    """
    mode = ParseMode.PLUGIN if plugin_mode else ParseMode.STANDARD
    try:
        engine = parse_descriptor(xml, mode, InlineResourceLoader())
    except DescriptorParseError as e:
        return [TextContent(type="text", text=json.dumps({"error": e.kind.value, "message": str(e)}, indent=2))]

    summary = _engine_summary(engine)
    summary.pop("default")
    if engine.suggest_template is not None:
        summary["suggest_template"] = engine.suggest_template.template
    return [TextContent(type="text", text=json.dumps(summary, indent=2))]


_ENGINE_PROPERTY = {
    "type": "string",
    "description": "Search engine short name (defaults to the default engine)"
}


def create_server() -> Server:
    """Create and configure the MCP server.

    Returns:
        Configured Server instance
    """
    server = Server("opensearch-mcp")

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List available tools."""
        return [
            Tool(
                name="list_search_engines",
                description="List the configured search engines, default engine first.",
                inputSchema={"type": "object", "properties": {}}
            ),
            Tool(
                name="build_search_url",
                description="Build the search results URL for a query using a search engine's template.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "query": {
                            "type": "string",
                            "description": "Text to search for"
                        },
                        "engine": _ENGINE_PROPERTY,
                    },
                    "required": ["query"]
                }
            ),
            Tool(
                name="get_search_suggestions",
                description="Fetch search suggestions for a query from an engine that supports them.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "query": {
                            "type": "string",
                            "description": "Partial query to complete"
                        },
                        "engine": _ENGINE_PROPERTY,
                    },
                    "required": ["query"]
                }
            ),
            Tool(
                name="parse_descriptor",
                description="Validate an OpenSearch descriptor document and summarize the engine it describes.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "xml": {
                            "type": "string",
                            "description": "Descriptor XML"
                        },
                        "plugin_mode": {
                            "type": "boolean",
                            "description": "Parse as a SearchPlugin document instead of OpenSearchDescription"
                        }
                    },
                    "required": ["xml"]
                }
            ),
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: Any) -> list[TextContent]:
        """Handle tool calls."""
        arguments = arguments or {}
        if name == "list_search_engines":
            return await list_search_engines_tool()
        elif name == "build_search_url":
            return await build_search_url_tool(arguments.get("query", ""), arguments.get("engine"))
        elif name == "get_search_suggestions":
            query = arguments.get("query", "")
            if not query:
                return [TextContent(
                    type="text",
                    text="Error: 'query' parameter is required"
                )]
            return await get_search_suggestions_tool(query, arguments.get("engine"))
        elif name == "parse_descriptor":
            xml = arguments.get("xml", "")
            if not xml:
                return [TextContent(
                    type="text",
                    text="Error: 'xml' parameter is required"
                )]
            return await parse_descriptor_tool(xml, bool(arguments.get("plugin_mode", False)))
        else:
            raise ValueError(f"Unknown tool: {name}")

    return server


async def main():
    """Main entry point for the MCP server."""
    server = create_server()

    async with stdio_server() as (read_stream, write_stream):
        initialization_options = server.create_initialization_options()
        await server.run(read_stream, write_stream, initialization_options)
