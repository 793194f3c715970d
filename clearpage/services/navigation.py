"""Navigation and link harvesting."""

import logging
import re
from typing import Callable, Iterable, List, Optional, Set
from urllib.parse import urldefrag

from bs4 import Tag

from clearpage.models.snapshot import LinkSnapshot, NavLink
from clearpage.services.dom import HostDocument, attr_text
from clearpage.services.forms import labelled_by_text
from clearpage.services.lexicon import DEFAULT_LEXICON, Lexicon
from clearpage.services.sanitizer import is_rendered, role_of
from clearpage.services.text import extract_text, is_content_text, truncate_text, word_count

logger = logging.getLogger(__name__)

LINK_TEXT_LIMIT = 120

# Schemes that never lead to another readable page
_UNFOLLOWABLE_SCHEMES = ("javascript:", "data:", "blob:", "tel:", "mailto:")

_DOUBLE_ENCODED_RE = re.compile(r"%25[0-9a-f]{2}", re.IGNORECASE)

_NAV_SELECTOR = 'nav, [role="navigation"]'

_FALLBACK_SELECTOR = (
    '[role="menu"] a[href], [role="menubar"] a[href], '
    ".nav a[href], .navbar a[href], .navigation a[href], .menu a[href], "
    '.main-menu a[href], .main-nav a[href], header a[href], [role="banner"] a[href]'
)

_ECHO_MIN_WORDS = 3


def _label_words(doc: HostDocument, el: Tag) -> Set[str]:
    label = attr_text(el, "aria-label") or labelled_by_text(doc, el) or attr_text(el, "id")
    return set(re.split(r"[^a-z0-9]+", label.lower())) - {""}


def _inside(el: Tag, tag: str, role: str) -> bool:
    return (
        HostDocument.closest(el, lambda node: node.name == tag or role_of(node) == role)
        is not None
    )


def _in_footer(el: Tag) -> bool:
    return _inside(el, "footer", "contentinfo")


def _in_banner(el: Tag) -> bool:
    return _inside(el, "header", "banner")


def is_unfollowable(href: str) -> bool:
    """Fragment-only and non-navigating targets."""
    lowered = href.strip().lower()
    return not lowered or lowered.startswith("#") or lowered.startswith(_UNFOLLOWABLE_SCHEMES)


def _text_is_url(text: str, href: str, resolved: str) -> bool:
    normalized = text.strip().lower().rstrip("/")
    return normalized in (href.strip().lower().rstrip("/"), resolved.lower().rstrip("/"))


def _link_text(a: Tag) -> str:
    return extract_text(a) or attr_text(a, "aria-label") or attr_text(a, "title")


# ─── Navigation links ────────────────────────────────────────────────────────


def _nav_link(doc: HostDocument, a: Tag) -> Optional[NavLink]:
    if not is_rendered(a):
        return None
    href = attr_text(a, "href")
    if is_unfollowable(href) or _DOUBLE_ENCODED_RE.search(href):
        return None
    resolved = doc.resolve(href)
    if not doc.is_same_origin(resolved):
        return None
    text = _link_text(a)
    if not text or _text_is_url(text, href, resolved):
        return None
    current = attr_text(a, "aria-current").lower() in ("page", "true")
    return NavLink(text=truncate_text(text, LINK_TEXT_LIMIT), href=resolved, is_current=current)


def _collect_nav_links(doc: HostDocument, anchors: Iterable[Tag]) -> List[NavLink]:
    links: List[NavLink] = []
    seen: Set[str] = set()
    for a in anchors:
        link = _nav_link(doc, a)
        if link is None or link.href in seen:
            continue
        seen.add(link.href)
        links.append(link)
    return links


def _anchors(regions: Iterable[Tag]) -> List[Tag]:
    return [a for region in regions for a in region.find_all("a", href=True)]


def extract_nav_links(doc: HostDocument, lexicon: Lexicon = DEFAULT_LEXICON) -> List[NavLink]:
    """Harvest primary navigation links using the first tier that yields any.

    1. navigation regions labelled primary / main / site / global / top
    2. navigation regions inside the banner, unless labelled secondary
    3. any other navigation region outside the footer, unless labelled secondary
    4. menu widgets, conventional ``.nav`` classes and banner links
    """
    regions = [el for el in doc.select(_NAV_SELECTOR) if is_rendered(el)]
    primary = set(lexicon.primary_nav_labels)
    secondary = set(lexicon.secondary_nav_labels)

    def is_primary(el: Tag) -> bool:
        return bool(_label_words(doc, el) & primary)

    def is_secondary(el: Tag) -> bool:
        return bool(_label_words(doc, el) & secondary)

    tiers: List[Callable[[Tag], bool]] = [
        is_primary,
        lambda el: _in_banner(el) and not is_secondary(el),
        lambda el: not _in_footer(el) and not is_secondary(el),
    ]
    for tier, predicate in enumerate(tiers, start=1):
        links = _collect_nav_links(doc, _anchors(el for el in regions if predicate(el)))
        if links:
            logger.debug("Navigation resolved at tier %d with %d links", tier, len(links))
            return links

    return _collect_nav_links(doc, doc.select(_FALLBACK_SELECTOR))


# ─── Content links ───────────────────────────────────────────────────────────


def _strip_fragment(url: str) -> str:
    return urldefrag(url)[0]


def _contains_words(haystack: str, needle: str) -> bool:
    return re.search(rf"(?<!\w){re.escape(needle)}(?!\w)", haystack, re.IGNORECASE) is not None


def _echoes_content(text: str, paragraphs: List[str]) -> bool:
    for paragraph in paragraphs:
        if _contains_words(paragraph, text) or _contains_words(text, paragraph):
            return True
    return False


def extract_links(
    doc: HostDocument,
    nav_links: List[NavLink],
    paragraphs: List[str],
    lexicon: Lexicon = DEFAULT_LEXICON,
) -> List[LinkSnapshot]:
    """Harvest every remaining link that leads somewhere new.

    *paragraphs* are the retained paragraph texts; a link whose label is
    contained in, or contains, one of them duplicates inline prose and is
    dropped.
    """
    nav_hrefs = {link.href for link in nav_links}
    page = _strip_fragment(doc.resolve(doc.url))
    echo_sources = [p for p in paragraphs if word_count(p) >= _ECHO_MIN_WORDS]

    links: List[LinkSnapshot] = []
    seen_hrefs: Set[str] = set()
    seen_texts: Set[str] = set()

    for a in doc.select("a[href]"):
        href = attr_text(a, "href")
        if is_unfollowable(href) or not is_rendered(a):
            continue
        resolved = doc.resolve(href)
        if resolved in nav_hrefs or resolved in seen_hrefs:
            continue
        if _strip_fragment(resolved) == page:
            continue

        text = _link_text(a)
        if not text or not is_content_text(text, lexicon):
            continue
        text = truncate_text(text, LINK_TEXT_LIMIT)
        if text.lower() in seen_texts or _echoes_content(text, echo_sources):
            continue

        seen_hrefs.add(resolved)
        seen_texts.add(text.lower())
        links.append(LinkSnapshot(text=text, href=resolved, is_footer=_in_footer(a)))
    return links
