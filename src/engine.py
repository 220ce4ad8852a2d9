"""Search engine values and query URL construction."""
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import quote

import httpx

TYPE_SEARCH = "text/html"
TYPE_SUGGEST = "application/x-suggestions+json"

SEARCH_TERMS_MARKER = "{searchTerms}"

# Characters that keep their meaning inside a query component. Anything
# outside this set (and the unreserved letters, digits, "-._~") is escaped,
# which covers "&", "=", "?", "#", "+", "%" and space.
QUERY_SAFE_CHARS = "!$'()*,;:@/"


def escape_query(query: str) -> Optional[str]:
    """Percent-encode query text for substitution into a query string.

    Args:
        query: Free text entered by the user

    Returns:
        UTF-8 percent-encoded text, or None if the text cannot be encoded
    """
    try:
        return quote(query, safe=QUERY_SAFE_CHARS, encoding="utf-8", errors="strict")
    except UnicodeEncodeError:
        return None


@dataclass(frozen=True)
class TemplateURL:
    """A URL template containing the {searchTerms} marker."""
    template: str
    type: str = TYPE_SEARCH

    def url_for_query(self, query: str) -> Optional[httpx.URL]:
        """Substitute the escaped query into the template.

        Every marker occurrence is replaced. A template without the marker
        yields the template itself.

        The result must carry both a scheme and a host, which is stricter
        than a general URL parse: relative templates and host-less absolute
        URLs such as file:///path are rejected.

        Returns:
            Absolute URL, or None if encoding fails or the result is not a valid URL
        """
        escaped = escape_query(query)
        if escaped is None:
            return None

        url_string = self.template.replace(SEARCH_TERMS_MARKER, escaped)
        try:
            url = httpx.URL(url_string)
        except httpx.InvalidURL:
            return None

        if not url.scheme or not url.host:
            return None
        return url


@dataclass(frozen=True)
class SearchEngine:
    """A search engine parsed from an OpenSearch descriptor."""
    short_name: str
    search_template: TemplateURL
    description: Optional[str] = None
    icon: Optional[bytes] = field(default=None, repr=False)
    suggest_template: Optional[TemplateURL] = None

    @property
    def supports_suggestions(self) -> bool:
        return self.suggest_template is not None

    def build_query_url(self, query: str) -> Optional[httpx.URL]:
        """Return the search results URL for the given query."""
        return self.search_template.url_for_query(query)

    def build_suggest_query_url(self, query: str) -> Optional[httpx.URL]:
        """Return the suggestions URL for the given query.

        Returns None when the engine does not support suggestions.
        """
        if self.suggest_template is None:
            return None
        return self.suggest_template.url_for_query(query)
