"""Read-only host document capability.

The extractor never touches BeautifulSoup directly for anything the host
environment would normally supply (child enumeration across shadow roots,
computed style, address resolution, frame access).  Those primitives live on
:class:`HostDocument` so extraction stays a pure function of the document
snapshot and can be exercised against inline HTML fixtures.
"""

import logging
import re
from typing import Callable, Dict, Iterator, List, Optional
from urllib.parse import unquote, urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

# Declarative shadow DOM: <template shadowrootmode="open"> (current HTML standard) and
# the older <template shadowroot="open"> spelling still emitted by some SSR
# frameworks.
_SHADOW_ATTRS = ("shadowrootmode", "shadowroot")

_STYLE_DECL_RE = re.compile(r"\s*([a-z-]+)\s*:\s*([^;]+)", re.IGNORECASE)
_ZERO_LENGTH_RE = re.compile(r"^0*(?:\.0+)?(?:px|em|rem|%|vw|vh)?$")


class FrameAccessError(Exception):
    """Raised when an embedded frame's document cannot be inspected."""


def computed_style(el: Tag) -> Dict[str, str]:
    """Return the style subset the extractor relies on.

    Only inline declarations and the legacy ``width`` / ``height`` attributes
    are visible to a static snapshot, so that is what is reported.
    """
    style: Dict[str, str] = {}
    width = el.get("width")
    height = el.get("height")
    if width is not None:
        style["width"] = str(width).strip()
    if height is not None:
        style["height"] = str(height).strip()

    inline = el.get("style")
    if inline:
        for match in _STYLE_DECL_RE.finditer(str(inline)):
            prop = match.group(1).lower()
            value = match.group(2).replace("!important", "").strip().lower()
            style[prop] = value
    return style


def is_zero_length(value: Optional[str]) -> bool:
    return value is not None and bool(_ZERO_LENGTH_RE.match(value.strip()))


def shadow_root(el: Tag) -> Optional[Tag]:
    """Return the open declarative shadow root template attached to *el*."""
    for child in el.find_all("template", recursive=False):
        for attr in _SHADOW_ATTRS:
            if str(child.get(attr, "")).lower() == "open":
                return child
    return None


def is_shadow_template(el: Tag) -> bool:
    return el.name == "template" and any(el.get(attr) is not None for attr in _SHADOW_ATTRS)


def attr_text(el: Tag, name: str) -> str:
    """Return attribute *name* as a stripped string (class lists are joined)."""
    value = el.get(name)
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value).strip()
    return str(value).strip()


def origin_of(url: str) -> str:
    try:
        parts = urlsplit(url)
    except ValueError:
        return ""
    if not parts.scheme or not parts.netloc:
        return ""
    return f"{parts.scheme.lower()}://{parts.netloc.lower()}"


class HostDocument:
    """A parsed document snapshot plus the host primitives around it."""

    def __init__(
        self,
        soup: BeautifulSoup,
        url: str,
        frames: Optional[Dict[str, str]] = None,
    ) -> None:
        self.soup = soup
        self.url = url
        self.frames = frames or {}
        self.origin = origin_of(url)

        base = soup.find("base", href=True)
        self.base_url = urljoin(url, str(base["href"])) if base else url

    @classmethod
    def from_html(
        cls,
        html: str,
        url: str,
        frames: Optional[Dict[str, str]] = None,
    ) -> "HostDocument":
        return cls(BeautifulSoup(html, "lxml"), url, frames)

    # ------------------------------------------------------------------
    # Document-level properties
    # ------------------------------------------------------------------

    @property
    def root(self) -> Tag:
        return self.soup.find("html") or self.soup

    @property
    def body(self) -> Tag:
        return self.soup.find("body") or self.root

    @property
    def title(self) -> str:
        tag = self.soup.find("title")
        return " ".join(tag.get_text().split()) if tag else ""

    @property
    def lang(self) -> str:
        root = self.soup.find("html")
        return attr_text(root, "lang") if root else ""

    # ------------------------------------------------------------------
    # Tree primitives
    # ------------------------------------------------------------------

    def children(self, el: Tag) -> List[Tag]:
        """Element children of *el*, shadow content first, in document order."""
        result: List[Tag] = []
        shadow = shadow_root(el)
        if shadow is not None:
            result.extend(child for child in shadow.children if isinstance(child, Tag))
        result.extend(
            child
            for child in el.children
            if isinstance(child, Tag) and child is not shadow
        )
        return result

    def style(self, el: Tag) -> Dict[str, str]:
        return computed_style(el)

    def select(self, selector: str) -> List[Tag]:
        """Deep query: matches inside shadow templates are included."""
        return self.soup.select(selector)

    def get_element_by_id(self, element_id: str) -> Optional[Tag]:
        return self.soup.find(id=element_id)

    @staticmethod
    def closest(el: Tag, predicate: Callable[[Tag], bool]) -> Optional[Tag]:
        node: Optional[Tag] = el
        while isinstance(node, Tag) and not isinstance(node, BeautifulSoup):
            if predicate(node):
                return node
            node = node.parent
        return None

    @staticmethod
    def ancestors(el: Tag) -> Iterator[Tag]:
        for parent in el.parents:
            if isinstance(parent, BeautifulSoup):
                return
            yield parent

    # ------------------------------------------------------------------
    # Addresses
    # ------------------------------------------------------------------

    def resolve(self, href: str) -> str:
        """Return *href* as an absolute URL with a percent-decoded path.

        Unparsable addresses are returned unchanged.
        """
        raw = href.strip()
        try:
            absolute = urljoin(self.base_url, raw)
            parts = urlsplit(absolute)
        except ValueError:
            logger.debug("Unparsable address kept verbatim: %r", raw)
            return raw
        if parts.scheme not in ("http", "https"):
            return absolute
        return urlunsplit(
            (parts.scheme, parts.netloc, unquote(parts.path), parts.query, parts.fragment)
        )

    def is_same_origin(self, url: str) -> bool:
        return bool(self.origin) and origin_of(url) == self.origin

    # ------------------------------------------------------------------
    # Embedded frames
    # ------------------------------------------------------------------

    def frame_document(self, frame: Tag) -> "HostDocument":
        """Return the document inside a same-origin ``<iframe>``.

        Raises:
            FrameAccessError: for cross-origin frames, or frames whose markup
                was not supplied with the snapshot.
        """
        srcdoc = frame.get("srcdoc")
        if srcdoc is not None:
            return HostDocument.from_html(str(srcdoc), self.url, self.frames)

        src = attr_text(frame, "src")
        if not src or src == "about:blank":
            return HostDocument.from_html("", self.url, self.frames)

        frame_url = self.resolve(src)
        if not self.is_same_origin(frame_url):
            raise FrameAccessError(f"Cross-origin frame: {frame_url}")

        markup = self.frames.get(frame_url)
        if markup is None:
            markup = self.frames.get(urljoin(self.base_url, src))
        if markup is None:
            raise FrameAccessError(f"Frame content unavailable: {frame_url}")
        return HostDocument.from_html(markup, frame_url, self.frames)
