"""Visibility gate: decides which elements may contribute content at all."""

import re
from functools import lru_cache
from typing import Tuple

from bs4 import Tag

from clearpage.services.dom import (
    HostDocument,
    attr_text,
    computed_style,
    is_shadow_template,
    is_zero_length,
)
from clearpage.services.lexicon import DEFAULT_LEXICON, Lexicon

# Attributes inspected for noise keywords
_NOISE_ATTRS = ("id", "class", "data-component", "data-testid", "data-type")

_PRESENTATIONAL_ROLES = {"presentation", "none"}

# Transient announcements, never page content
_LIVE_REGION_ROLES = {"alert", "status", "log", "marquee", "timer"}

# Subtrees that are never rendered as content
_NON_RENDERED_TAGS = {"script", "style", "noscript", "template", "head"}


@lru_cache(maxsize=8)
def _noise_pattern(keywords: Tuple[str, ...]) -> "re.Pattern[str]":
    alternatives = "|".join(re.escape(kw) for kw in sorted(keywords, key=len, reverse=True))
    return re.compile(rf"(?:^|[^a-z0-9])(?:{alternatives})(?:$|[^a-z0-9])")


def role_of(el: Tag) -> str:
    return attr_text(el, "role").lower()


def is_hidden(el: Tag) -> bool:
    """Return True when *el* itself is marked hidden or inert."""
    if el.name == "template" and not is_shadow_template(el):
        return True
    if el.get("hidden") is not None or el.get("inert") is not None:
        return True
    if attr_text(el, "aria-hidden").lower() == "true":
        return True

    style = computed_style(el)
    if style.get("display") == "none" or style.get("visibility") in ("hidden", "collapse"):
        return True
    if (
        is_zero_length(style.get("width"))
        and is_zero_length(style.get("height"))
        and style.get("overflow", "") in ("hidden", "clip")
    ):
        return True
    return False


def is_visible(el: Tag) -> bool:
    return not is_hidden(el)


def is_rendered(el: Tag) -> bool:
    """Return True when neither *el* nor any ancestor hides it."""
    if el.name in _NON_RENDERED_TAGS or is_hidden(el):
        return False
    for parent in HostDocument.ancestors(el):
        if parent.name in _NON_RENDERED_TAGS and not is_shadow_template(parent):
            return False
        if is_hidden(parent):
            return False
    return True


def is_noisy_element(el: Tag, lexicon: Lexicon = DEFAULT_LEXICON) -> bool:
    """Return True when an element's id / class / data-* names page chrome."""
    pattern = _noise_pattern(lexicon.noise_element_keywords)
    for name in _NOISE_ATTRS:
        value = attr_text(el, name).lower()
        if value and any(pattern.search(token) for token in value.split()):
            return True
    return False


def is_presentational(el: Tag) -> bool:
    return role_of(el) in _PRESENTATIONAL_ROLES


def is_live_region(el: Tag) -> bool:
    return role_of(el) in _LIVE_REGION_ROLES


def is_excluded(el: Tag, lexicon: Lexicon = DEFAULT_LEXICON) -> bool:
    """Full gate applied before an element is classified into content."""
    return (
        is_hidden(el)
        or is_presentational(el)
        or is_live_region(el)
        or is_noisy_element(el, lexicon)
    )
