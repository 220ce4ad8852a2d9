"""Shared fixtures for tests."""
import base64
import io

import pytest
from loguru import logger
from PIL import Image


def make_png(size: int = 16, color: str = "red") -> bytes:
    """Render a solid square PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", (size, size), color).save(buffer, format="PNG")
    return buffer.getvalue()


def data_uri(data: bytes, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


GOOGLE_PLUGIN = """<?xml version="1.0" encoding="UTF-8"?>
<SearchPlugin xmlns="http://www.mozilla.org/2006/browser/search/">
<ShortName>Google</ShortName>
<InputEncoding>UTF-8</InputEncoding>
<Image width="16" height="16">{icon}</Image>
<Url type="application/x-suggestions+json" method="GET" template="https://www.google.com/complete/search?client=firefox&amp;q={{searchTerms}}"/>
<Url type="text/html" method="GET" template="https://www.google.com/search">
  <Param name="q" value="{{searchTerms}}"/>
  <Param name="ie" value="utf-8"/>
  <Param name="oe" value="utf-8"/>
</Url>
<SearchForm>https://www.google.com/</SearchForm>
</SearchPlugin>
"""

DUCKDUCKGO_PLUGIN = """<?xml version="1.0" encoding="UTF-8"?>
<SearchPlugin xmlns="http://www.mozilla.org/2006/browser/search/">
<ShortName>DuckDuckGo</ShortName>
<Description>Search DuckDuckGo</Description>
<Url type="text/html" method="GET" template="https://duckduckgo.com/?q={searchTerms}"/>
</SearchPlugin>
"""

WIKIPEDIA_PLUGIN = """<?xml version="1.0" encoding="UTF-8"?>
<SearchPlugin xmlns="http://www.mozilla.org/2006/browser/search/">
<ShortName>Wikipedia</ShortName>
<Description>Wikipedia, the Free Encyclopedia</Description>
<Url type="application/x-suggestions+json" template="https://en.wikipedia.org/w/api.php">
  <Param name="action" value="opensearch"/>
  <Param name="search" value="{searchTerms}"/>
</Url>
<Url type="text/html" template="https://en.wikipedia.org/wiki/Special:Search">
  <Param name="search" value="{searchTerms}"/>
</Url>
</SearchPlugin>
"""

OPENSEARCH_DESCRIPTION = """<?xml version="1.0" encoding="UTF-8"?>
<OpenSearchDescription xmlns="http://a9.com/-/spec/opensearch/1.1/">
  <ShortName>Web Search</ShortName>
  <Description>Use Example.com to search the Web.</Description>
  <Tags>example web</Tags>
  <Url type="application/rss+xml" template="http://example.com/?q={searchTerms}&amp;format=rss"/>
  <Url type="text/html" template="http://example.com/?q={searchTerms}&amp;pw={startPage?}"/>
  <Image height="64" width="64" type="image/png">http://example.com/websearch.png</Image>
</OpenSearchDescription>
"""


@pytest.fixture
def png_icon():
    """A valid 16x16 PNG image."""
    return make_png(16)


@pytest.fixture
def icon_data_uri():
    """Factory for data: URIs holding a PNG icon of the given size."""
    def build(size: int = 16, color: str = "red") -> str:
        return data_uri(make_png(size, color))
    return build


@pytest.fixture
def google_plugin(png_icon):
    """Firefox-style Google search plugin with an inline icon."""
    return GOOGLE_PLUGIN.format(icon=data_uri(png_icon)).encode("utf-8")


@pytest.fixture
def opensearch_description():
    """A standard OpenSearch 1.1 description document."""
    return OPENSEARCH_DESCRIPTION.encode("utf-8")


@pytest.fixture
def plugins_dir(tmp_path, google_plugin):
    """Create a temporary search plugins directory."""
    directory = tmp_path / "searchplugins"
    directory.mkdir()
    (directory / "google.xml").write_bytes(google_plugin)
    (directory / "duckduckgo.xml").write_text(DUCKDUCKGO_PLUGIN, encoding="utf-8")
    (directory / "wikipedia.xml").write_text(WIKIPEDIA_PLUGIN, encoding="utf-8")
    (directory / "broken.xml").write_text("<SearchPlugin><ShortName>Broken", encoding="utf-8")
    (directory / "README.txt").write_text("not a descriptor", encoding="utf-8")
    return directory


class StubResourceLoader:
    """ResourceLoader returning canned bytes per location."""

    def __init__(self, resources=None):
        self.resources = resources or {}
        self.requested = []

    def fetch(self, location):
        self.requested.append(location)
        return self.resources.get(location)


@pytest.fixture
def stub_loader():
    return StubResourceLoader()


@pytest.fixture
def log_records():
    """Capture loguru records emitted during the test."""
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG", format="{message}")
    yield records
    logger.remove(handler_id)
