"""Resource loading for descriptor icons.

Descriptor <Image> elements reference their icon either inline, as a
data: URI, or by an http(s) location. The parser asks a ResourceLoader
to turn that reference into bytes so that network access stays
injectable.
"""
import base64
import binascii
from typing import Optional, Protocol
from urllib.parse import unquote_to_bytes

import httpx
from loguru import logger

from src.config import get_config


class ResourceLoader(Protocol):
    """Protocol for collaborators that resolve a location to bytes."""

    def fetch(self, location: str) -> Optional[bytes]:
        """Fetch the resource at location.

        Args:
            location: data: URI or http(s) URL

        Returns:
            Raw bytes, or None if the resource could not be loaded
        """
        ...


def decode_data_uri(uri: str) -> Optional[bytes]:
    """Decode a data: URI into its payload bytes.

    Args:
        uri: URI of the form data:[<mediatype>][;base64],<data>

    Returns:
        Payload bytes or None if the URI is malformed
    """
    if not uri.startswith("data:"):
        return None

    header, sep, payload = uri[len("data:"):].partition(",")
    if not sep:
        return None

    if header.endswith(";base64"):
        # Embedded icons are often wrapped across lines
        payload = "".join(payload.split())
        try:
            return base64.b64decode(unquote_to_bytes(payload), validate=True)
        except (binascii.Error, ValueError):
            return None

    return unquote_to_bytes(payload)


class DefaultResourceLoader:
    """Resolves data: URIs inline and http(s) URLs with httpx."""

    def __init__(self, timeout: Optional[float] = None, client: Optional[httpx.Client] = None):
        if timeout is None:
            timeout = get_config().network.icon_fetch_timeout
        self.timeout = timeout
        self._client = client

    def fetch(self, location: str) -> Optional[bytes]:
        if location.startswith("data:"):
            data = decode_data_uri(location)
            if data is None:
                logger.warning("Malformed data URI for search icon")
            return data

        scheme = location.split(":", 1)[0].lower() if ":" in location else ""
        if scheme not in ("http", "https"):
            logger.warning("Unsupported icon location: {}", location[:80])
            return None

        try:
            if self._client is not None:
                return self._get(self._client, location)
            with httpx.Client(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": get_config().network.user_agent},
            ) as client:
                return self._get(client, location)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("HTTP error fetching icon {}: {}", location, e)
            return None

    @staticmethod
    def _get(client: httpx.Client, location: str) -> bytes:
        response = client.get(location)
        response.raise_for_status()
        return response.content


class InlineResourceLoader:
    """Resolves data: URIs only; never touches the network.

    Used for descriptors supplied by untrusted callers.
    """

    def fetch(self, location: str) -> Optional[bytes]:
        if not location.startswith("data:"):
            logger.warning("Ignoring non-inline icon location: {}", location[:80])
            return None

        data = decode_data_uri(location)
        if data is None:
            logger.warning("Malformed data URI for search icon")
        return data
