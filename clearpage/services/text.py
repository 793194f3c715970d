"""Lexical text classification and subtree text accumulation.

Two independent gates decide whether prose survives:

``is_noise_text``
    Price tags, measurements, counters, ratings and interface micro-copy.

``is_promotional_text``
    Grammatically valid marketing copy: short imperatives ("Shop the range"),
    category-label echoes ("Beverages"), keyword-dense blurbs and short
    sentences closing on a call to action ("... today").

Both only apply to prose-like text (paragraphs, link and button labels);
structural labels such as table headers are never run through them.
"""

import re
from typing import List

from bs4 import NavigableString, Tag
from bs4.element import PreformattedString

from clearpage.services.dom import is_shadow_template
from clearpage.services.lexicon import DEFAULT_LEXICON, Lexicon
from clearpage.services.sanitizer import is_hidden

# ---------------------------------------------------------------------------
# Noise patterns
# ---------------------------------------------------------------------------

_CURRENCY = r"[$£€¥₹]"
_UNITS = r"(?:mg|g|kg|ml|cl|l|ltr|oz|lb|lbs|mm|cm|m|in|ft|pk|pack|ct)"

_NOISE_PATTERNS = [
    # $9.99, 42, 5,99 €, 99p, 2.50 ea
    re.compile(
        rf"^{_CURRENCY}?\s?\d+(?:[.,]\d+)?\s?(?:{_CURRENCY}|p|c|ea|each)?$",
        re.IGNORECASE,
    ),
    # 500g, 1.5kg, 250 ml
    re.compile(rf"^\d+(?:[.,]\d+)?\s?{_UNITS}$", re.IGNORECASE),
    # 2 x 500ml, 6×330ml
    re.compile(rf"^\d+\s?[x×]\s?\d+(?:[.,]\d+)?\s?{_UNITS}?$", re.IGNORECASE),
    # Limit 2 per customer
    re.compile(r"^limit\s+\d+\b", re.IGNORECASE),
    # 4.5 out of 5 stars, Rated 4/5, 4 stars, (123 reviews)
    re.compile(
        r"^(?:rated\s+)?\d(?:\.\d+)?\s*(?:out\s+of\s+5|/\s*5)(?:\s+stars?)?$"
        r"|^\d(?:\.\d+)?\s+stars?$"
        r"|^\(?\d+\s+(?:reviews?|ratings?)\)?$",
        re.IGNORECASE,
    ),
    # 1/5, 3 / 12
    re.compile(r"^\d+\s*/\s*\d+$"),
    # £1.20 per kg, $0.50/100g, 25p/each
    re.compile(
        rf"^{_CURRENCY}?\d+(?:[.,]\d+)?p?\s*(?:/|per)\s*\d*(?:[.,]\d+)?\s*[a-z]+$",
        re.IGNORECASE,
    ),
]

_MIN_TEXT_LEN = 3

# ---------------------------------------------------------------------------
# Promotional thresholds
# ---------------------------------------------------------------------------

_PROMO_VERB_MAX_WORDS = 10
_PROMO_DENSITY_MAX_WORDS = 30
_PROMO_KEYWORD_HITS = 2
_CATEGORY_LABEL_RE = re.compile(r"^[A-Z][a-z]+$")
_TRAILING_PUNCT = ".!?,;:…"

# ---------------------------------------------------------------------------
# Text accumulation
# ---------------------------------------------------------------------------

BLOCK_TAGS = frozenset(
    {
        "address",
        "article",
        "aside",
        "blockquote",
        "dd",
        "details",
        "dialog",
        "div",
        "dl",
        "dt",
        "fieldset",
        "figcaption",
        "figure",
        "footer",
        "form",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "header",
        "hgroup",
        "hr",
        "li",
        "main",
        "nav",
        "ol",
        "p",
        "pre",
        "section",
        "summary",
        "table",
        "tbody",
        "td",
        "tfoot",
        "th",
        "thead",
        "tr",
        "ul",
    }
)

# Nesting ceiling shared by the block walk and text accumulation
MAX_DEPTH = 50

_SKIP_TEXT_TAGS = frozenset({"script", "style", "noscript", "head"})

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_space(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def word_count(text: str) -> int:
    return len(text.split())


def is_noise_text(text: str, lexicon: Lexicon = DEFAULT_LEXICON) -> bool:
    """Return True for text that carries no reading value on its own."""
    stripped = normalize_space(text)
    if len(stripped) < _MIN_TEXT_LEN:
        return True
    if stripped.lower() in lexicon.chrome_phrases:
        return True
    return any(pattern.search(stripped) for pattern in _NOISE_PATTERNS)


def _keyword_hits(lowered: str, keywords) -> int:
    return sum(
        1 for kw in keywords if re.search(rf"(?<![a-z0-9]){re.escape(kw)}(?![a-z0-9])", lowered)
    )


def is_promotional_text(text: str, lexicon: Lexicon = DEFAULT_LEXICON) -> bool:
    """Return True for marketing copy and calls to action."""
    stripped = normalize_space(text)
    if not stripped:
        return False
    words = stripped.split()
    count = len(words)
    first = words[0].lower().strip(_TRAILING_PUNCT)
    last = words[-1].lower().strip(_TRAILING_PUNCT)

    if count <= _PROMO_VERB_MAX_WORDS and first in lexicon.promo_verbs:
        return True
    if count == 1 and _CATEGORY_LABEL_RE.match(stripped):
        return True
    if count <= _PROMO_DENSITY_MAX_WORDS:
        if _keyword_hits(stripped.lower(), lexicon.marketing_keywords) >= _PROMO_KEYWORD_HITS:
            return True
        if last in lexicon.cta_adverbs:
            return True
    return False


def is_content_text(text: str, lexicon: Lexicon = DEFAULT_LEXICON) -> bool:
    """Both gates passed: text may be kept as prose."""
    return not is_noise_text(text, lexicon) and not is_promotional_text(text, lexicon)


def _collect(el: Tag, parts: List[str], depth: int = 0) -> None:
    if depth > MAX_DEPTH:
        return
    for child in el.children:
        if isinstance(child, NavigableString):
            if not isinstance(child, PreformattedString):
                parts.append(str(child))
            continue
        if not isinstance(child, Tag):
            continue
        if child.name in _SKIP_TEXT_TAGS or is_hidden(child):
            continue
        if child.name == "br":
            parts.append(" ")
        elif is_shadow_template(child):
            parts.append(" ")
            _collect(child, parts, depth + 1)
            parts.append(" ")
        elif child.name in BLOCK_TAGS:
            parts.append(" ")
            _collect(child, parts, depth + 1)
            parts.append(" ")
        else:
            _collect(child, parts, depth + 1)


def extract_text(el: Tag) -> str:
    """Return the visible text of *el* with whitespace collapsed.

    Text nested more than ``MAX_DEPTH`` levels below *el* is dropped.
    """
    parts: List[str] = []
    _collect(el, parts)
    return normalize_space("".join(parts))


def truncate_text(text: str, limit: int) -> str:
    """Cut *text* at the last sentence end within *limit*, else hard-truncate."""
    if len(text) <= limit:
        return text
    window = text[:limit]
    cut = max(window.rfind(mark) for mark in ".!?")
    if cut > 0:
        return window[: cut + 1]
    return window.rstrip() + "…"
