"""OpenSearch descriptor parser.

Accepts standards-compliant OpenSearch 1.1 documents (root element
OpenSearchDescription) as well as the search plugin variant (root element
SearchPlugin), whose Description is optional and whose Url elements may
carry Param children that are folded into the template's query string.

OpenSearch 1.1: https://github.com/dewitt/opensearch

Validation is fail-fast: the first structural or schema violation raises
DescriptorParseError and no engine is returned. Unsupported Url types and
unusable Image elements are skipped and only reported through the logger.
"""
import io
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional, Union

from loguru import logger
from lxml import etree
from PIL import Image

from src.engine import TYPE_SEARCH, TYPE_SUGGEST, SearchEngine, TemplateURL
from src.resources import DefaultResourceLoader, ResourceLoader

ICON_SIZE = 16


class ParseMode(Enum):
    """Descriptor flavour, selecting the root element and Description rules."""
    STANDARD = "OpenSearchDescription"
    PLUGIN = "SearchPlugin"

    @property
    def root_name(self) -> str:
        return self.value


class ParseErrorKind(Enum):
    MALFORMED_XML = "malformed_xml"
    INVALID_ROOT = "invalid_root"
    MISSING_SHORT_NAME = "missing_short_name"
    INVALID_DESCRIPTION_COUNT = "invalid_description_count"
    MISSING_URL_ELEMENT = "missing_url_element"
    MISSING_URL_TYPE = "missing_url_type"
    MISSING_TEMPLATE = "missing_template"
    MISSING_PARAM_ATTRIBUTE = "missing_param_attribute"
    MISSING_SEARCH_TEMPLATE = "missing_search_template"


class DescriptorParseError(ValueError):
    """Raised when a descriptor fails validation."""

    def __init__(self, kind: ParseErrorKind, message: str):
        super().__init__(message)
        self.kind = kind


def _children(element: etree._Element, name: str) -> List[etree._Element]:
    """Return child elements whose local name is name, in document order.

    Namespaces are ignored so that both the OpenSearch and the plugin
    namespaces (or none at all) are accepted.
    """
    return [
        child for child in element
        if isinstance(child.tag, str) and etree.QName(child).localname == name
    ]


def _parse_int(value: Optional[str]) -> Optional[int]:
    # Plain ASCII digits only; int() would also take "1_6", " 16 " or non-ASCII digits
    if value is None or not (value.isascii() and value.isdigit()):
        return None
    return int(value)


class DescriptorParser:
    """Validates descriptor XML and builds a SearchEngine from it."""

    def __init__(self, mode: ParseMode = ParseMode.STANDARD, resource_loader: Optional[ResourceLoader] = None):
        """Initialize the parser.

        Args:
            mode: STANDARD for OpenSearch 1.1, PLUGIN for SearchPlugin documents
            resource_loader: Resolves Image locations to bytes. Defaults to
                DefaultResourceLoader, created on first use.
        """
        self.mode = mode
        self._resource_loader = resource_loader

    @property
    def plugin_mode(self) -> bool:
        return self.mode is ParseMode.PLUGIN

    @property
    def resource_loader(self) -> ResourceLoader:
        if self._resource_loader is None:
            self._resource_loader = DefaultResourceLoader()
        return self._resource_loader

    def parse_file(self, path: Path) -> SearchEngine:
        """Parse the descriptor stored at path.

        Raises:
            OSError: If the file cannot be read
            DescriptorParseError: If the descriptor is invalid
        """
        return self.parse(Path(path).read_bytes())

    def parse(self, data: Union[bytes, str]) -> SearchEngine:
        """Parse descriptor bytes into a SearchEngine.

        Args:
            data: Raw XML document

        Returns:
            The parsed engine

        Raises:
            DescriptorParseError: On the first validation failure
        """
        root = self._parse_xml(data)

        if etree.QName(root).localname != self.mode.root_name:
            raise DescriptorParseError(
                ParseErrorKind.INVALID_ROOT,
                f"Expected root element {self.mode.root_name}",
            )

        short_name = self._extract_short_name(root)
        description = self._extract_description(root)
        search_template, suggest_template = self._extract_templates(root)
        icon = self._extract_icon(root)

        return SearchEngine(
            short_name=short_name,
            description=description,
            icon=icon,
            search_template=search_template,
            suggest_template=suggest_template,
        )

    # ------------------------------------------------------------------
    # Validation steps
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_xml(data: Union[bytes, str]) -> etree._Element:
        encoding = None
        if isinstance(data, str):
            # Text is already decoded; any encoding declaration no longer applies
            data = data.encode("utf-8")
            encoding = "utf-8"

        parser = etree.XMLParser(resolve_entities=False, no_network=True, encoding=encoding)
        try:
            return etree.fromstring(data, parser)
        except etree.XMLSyntaxError as e:
            raise DescriptorParseError(ParseErrorKind.MALFORMED_XML, f"Invalid XML document: {e}") from e

    @staticmethod
    def _extract_short_name(root: etree._Element) -> str:
        elements = _children(root, "ShortName")
        if len(elements) != 1:
            raise DescriptorParseError(
                ParseErrorKind.MISSING_SHORT_NAME,
                "ShortName must appear exactly once",
            )

        text = elements[0].text
        if not text or not text.strip():
            raise DescriptorParseError(
                ParseErrorKind.MISSING_SHORT_NAME,
                "ShortName must contain text",
            )
        return text

    def _extract_description(self, root: etree._Element) -> Optional[str]:
        elements = _children(root, "Description")
        allowed = (0, 1) if self.plugin_mode else (1,)
        if len(elements) not in allowed:
            raise DescriptorParseError(
                ParseErrorKind.INVALID_DESCRIPTION_COUNT,
                "Description must appear exactly once" if not self.plugin_mode
                else "Description may appear at most once",
            )

        if not elements:
            return None
        return elements[0].text or None

    def _extract_templates(self, root: etree._Element):
        urls = _children(root, "Url")
        if not urls:
            raise DescriptorParseError(
                ParseErrorKind.MISSING_URL_ELEMENT,
                "Url must appear at least once",
            )

        search_template: Optional[TemplateURL] = None
        suggest_template: Optional[TemplateURL] = None

        for url in urls:
            url_type = url.get("type")
            if url_type is None:
                raise DescriptorParseError(
                    ParseErrorKind.MISSING_URL_TYPE,
                    "Url element requires a type attribute",
                )

            if url_type not in (TYPE_SEARCH, TYPE_SUGGEST):
                # Vendor extensions (rss, opensearch self links, ...)
                logger.debug("Skipping unsupported Url type: {}", url_type)
                continue

            template = url.get("template")
            if template is None:
                raise DescriptorParseError(
                    ParseErrorKind.MISSING_TEMPLATE,
                    "Url element requires a template attribute",
                )

            if self.plugin_mode:
                template += self._build_param_query(url)

            # Later entries of the same type replace earlier ones
            if url_type == TYPE_SEARCH:
                search_template = TemplateURL(template=template, type=url_type)
            else:
                suggest_template = TemplateURL(template=template, type=url_type)

        if search_template is None:
            raise DescriptorParseError(
                ParseErrorKind.MISSING_SEARCH_TEMPLATE,
                f"Search engine must have a {TYPE_SEARCH} type",
            )
        return search_template, suggest_template

    @staticmethod
    def _build_param_query(url: etree._Element) -> str:
        """Render Param children as "?name=value&name=value", taken verbatim."""
        pairs = []
        for param in _children(url, "Param"):
            name = param.get("name")
            value = param.get("value")
            if name is None or value is None:
                raise DescriptorParseError(
                    ParseErrorKind.MISSING_PARAM_ATTRIBUTE,
                    "Param element must have name and value attributes",
                )
            pairs.append(f"{name}={value}")

        if not pairs:
            return ""
        return "?" + "&".join(pairs)

    def _icon_candidates(self, root: etree._Element) -> Iterator[str]:
        for image in _children(root, "Image"):
            # Only 16x16 icons are used for now
            width = _parse_int(image.get("width"))
            height = _parse_int(image.get("height"))
            if width != ICON_SIZE or height != ICON_SIZE:
                continue

            location = (image.text or "").strip()
            if not location:
                continue
            yield location

    def _extract_icon(self, root: etree._Element) -> Optional[bytes]:
        icon = None
        for location in self._icon_candidates(root):
            data = self.resource_loader.fetch(location)
            if data is None or not _is_image(data):
                logger.warning("Invalid search image data: {}", location[:80])
                continue
            icon = data
        return icon


def _is_image(data: bytes) -> bool:
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.verify()
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError):
        return False
    return True


def parse_descriptor(
    data: Union[bytes, str],
    mode: ParseMode = ParseMode.STANDARD,
    resource_loader: Optional[ResourceLoader] = None,
) -> SearchEngine:
    """Parse descriptor bytes with a one-off DescriptorParser."""
    return DescriptorParser(mode, resource_loader).parse(data)
