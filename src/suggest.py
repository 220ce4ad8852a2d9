"""Search suggestion client.

Queries an engine's suggestion template and decodes the OpenSearch
suggestions format:

    ["<query>", ["suggestion 1", "suggestion 2", ...], ...]
"""
import json
from enum import Enum
from typing import Any, List, Optional

import httpx
from loguru import logger

from src.config import get_config
from src.engine import SearchEngine


class SuggestErrorKind(Enum):
    INVALID_ENGINE = "invalid_engine"  # Engine has no suggestion template
    INVALID_RESPONSE = "invalid_response"
    TRANSPORT = "transport"


class SuggestClientError(Exception):
    """Raised when suggestions cannot be retrieved."""

    def __init__(self, kind: SuggestErrorKind, message: str):
        super().__init__(message)
        self.kind = kind


def parse_suggestions(payload: Any) -> List[str]:
    """Extract the suggestion list from a decoded suggestions response.

    Raises:
        SuggestClientError: If the payload is not in the suggestions format
    """
    if not isinstance(payload, list) or len(payload) < 2:
        raise SuggestClientError(SuggestErrorKind.INVALID_RESPONSE, "Invalid search suggestion data")

    suggestions = payload[1]
    if not isinstance(suggestions, list) or not all(isinstance(s, str) for s in suggestions):
        raise SuggestClientError(SuggestErrorKind.INVALID_RESPONSE, "Invalid search suggestion data")

    return suggestions


class SearchSuggestClient:
    """Fetches search suggestions for an engine."""

    def __init__(self, engine: SearchEngine, timeout: Optional[float] = None):
        self.engine = engine
        if timeout is None:
            timeout = get_config().network.suggest_timeout
        self.timeout = timeout

    async def query(self, text: str) -> List[str]:
        """Return suggestions for the query text.

        Raises:
            SuggestClientError: INVALID_ENGINE, INVALID_RESPONSE or TRANSPORT
        """
        url = self.engine.build_suggest_query_url(text)
        if url is None:
            raise SuggestClientError(
                SuggestErrorKind.INVALID_ENGINE,
                f"{self.engine.short_name} does not support search suggestions",
            )

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": get_config().network.user_agent},
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise SuggestClientError(SuggestErrorKind.TRANSPORT, str(e)) from e

        try:
            payload = json.loads(response.text)
        except json.JSONDecodeError as e:
            raise SuggestClientError(SuggestErrorKind.INVALID_RESPONSE, "Invalid search suggestion data") from e

        return parse_suggestions(payload)


async def fetch_suggestions(client: SearchSuggestClient, query: str, limit: Optional[int] = None) -> List[str]:
    """Query suggestions, reporting failures to the log instead of raising.

    Args:
        client: Suggestion client for the engine
        query: Query text
        limit: Maximum number of suggestions (defaults to config)

    Returns:
        Up to limit suggestions, or an empty list on any failure
    """
    if limit is None:
        limit = get_config().suggestions_limit

    try:
        suggestions = await client.query(query)
    except SuggestClientError as e:
        if e.kind is SuggestErrorKind.INVALID_ENGINE:
            # Engine does not support search suggestions
            pass
        elif e.kind is SuggestErrorKind.INVALID_RESPONSE:
            logger.warning("Invalid search suggestion data from {}", client.engine.short_name)
        else:
            logger.error("Suggestion query to {} failed: {}", client.engine.short_name, e)
        return []

    return suggestions[:limit]
