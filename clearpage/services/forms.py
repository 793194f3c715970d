"""Interactive affordances: accessible names, forms, buttons and search entry."""

import logging
import re
from typing import List, Optional, Set

from bs4 import Tag

from clearpage.models.snapshot import (
    ButtonSnapshot,
    FormField,
    FormSnapshot,
    SearchDescriptor,
    SelectOption,
)
from clearpage.services.dom import HostDocument, attr_text
from clearpage.services.lexicon import DEFAULT_LEXICON, Lexicon
from clearpage.services.sanitizer import is_rendered
from clearpage.services.text import extract_text, is_noise_text, is_promotional_text

logger = logging.getLogger(__name__)

_BUTTON_SELECTOR = (
    'button, input[type="submit"], input[type="button"], '
    'input[type="reset"], [role="button"]'
)
_BUTTON_TYPES = ("submit", "button", "reset")

# Default labels browsers render for value-less input buttons
_INPUT_BUTTON_LABELS = {"submit": "Submit", "reset": "Reset", "button": ""}

_SLIDE_CONTROL_RE = re.compile(r"^(?:go to )?(?:slide|page|item)\s*\d+(?:\s*of\s*\d+)?$", re.IGNORECASE)

_TEXT_INPUT_TYPES = {"", "text", "search"}


def labelled_by_text(doc: HostDocument, el: Tag) -> str:
    """Return the text of the elements referenced by ``aria-labelledby``."""
    ids = attr_text(el, "aria-labelledby").split()
    parts = []
    for element_id in ids:
        target = doc.get_element_by_id(element_id)
        if target is not None:
            text = extract_text(target)
            if text:
                parts.append(text)
    return " ".join(parts)


def _associated_label(doc: HostDocument, el: Tag) -> str:
    element_id = attr_text(el, "id")
    if not element_id:
        return ""
    texts = [
        extract_text(label)
        for label in doc.soup.find_all("label")
        if attr_text(label, "for") == element_id
    ]
    return " ".join(text for text in texts if text)


def accessible_name(doc: HostDocument, el: Tag) -> str:
    """Resolve the accessible name of a form, field or button.

    Priority: ``aria-labelledby`` text, ``aria-label``, an associated
    ``<label for>``, the nearest ancestor ``<label>``, ``title``, a
    placeholder (inputs and textareas only), then the element's own text.
    """
    name = labelled_by_text(doc, el)
    if name:
        return name

    name = attr_text(el, "aria-label")
    if name:
        return name

    name = _associated_label(doc, el)
    if name:
        return name

    parent_label = HostDocument.closest(el, lambda node: node.name == "label")
    if parent_label is not None:
        name = extract_text(parent_label)
        if name:
            return name

    name = attr_text(el, "title")
    if name:
        return name

    if el.name in ("input", "textarea"):
        name = attr_text(el, "placeholder")
        if name:
            return name

    return extract_text(el)


def _is_in_form(el: Tag) -> bool:
    return any(parent.name == "form" for parent in HostDocument.ancestors(el))


def _removed_from_tab_order(el: Tag) -> bool:
    tabindex = attr_text(el, "tabindex")
    try:
        return int(tabindex) < 0
    except ValueError:
        return False


def _form_action(doc: HostDocument, form: Tag) -> str:
    action = attr_text(form, "action")
    return doc.resolve(action) if action else doc.url


# ---------------------------------------------------------------------------
# Forms
# ---------------------------------------------------------------------------


def _field_type(el: Tag) -> str:
    if el.name in ("textarea", "select"):
        return el.name
    return attr_text(el, "type").lower() or "text"


def _select_options(el: Tag) -> List[SelectOption]:
    options = []
    for option in el.find_all("option"):
        label = extract_text(option)
        value = option.get("value")
        options.append(SelectOption(value=label if value is None else str(value), label=label))
    return options


def _extract_field(doc: HostDocument, el: Tag) -> Optional[FormField]:
    field_type = _field_type(el)
    # Hidden and untabbable fields are anti-automation traps, not user input
    if field_type == "hidden" or _removed_from_tab_order(el):
        return None

    if el.name == "textarea":
        value = el.get_text().strip()
    else:
        value = attr_text(el, "value")

    return FormField(
        type=field_type,
        name=attr_text(el, "name"),
        label=accessible_name(doc, el),
        required=el.get("required") is not None or attr_text(el, "aria-required") == "true",
        value=value or None,
        options=_select_options(el) if el.name == "select" else None,
    )


def extract_forms(doc: HostDocument) -> List[FormSnapshot]:
    forms: List[FormSnapshot] = []
    seen_actions: Set[str] = set()

    for form in doc.select("form"):
        if not is_rendered(form):
            continue
        action = _form_action(doc, form)
        if action in seen_actions:
            logger.debug("Skipping duplicate form for action %s", action)
            continue
        seen_actions.add(action)

        fields = []
        for el in form.find_all(("input", "select", "textarea")):
            if not is_rendered(el):
                continue
            field = _extract_field(doc, el)
            if field is not None:
                fields.append(field)

        forms.append(
            FormSnapshot(
                action=action,
                method=(attr_text(form, "method") or "get").upper(),
                label=accessible_name(doc, form) or None,
                fields=fields,
            )
        )
    return forms


# ---------------------------------------------------------------------------
# Buttons
# ---------------------------------------------------------------------------


def _button_type(el: Tag) -> str:
    if el.name == "button":
        declared = attr_text(el, "type").lower()
        return declared if declared in _BUTTON_TYPES else "submit"
    if el.name == "input":
        declared = attr_text(el, "type").lower()
        return declared if declared in _BUTTON_TYPES else "button"
    return "button"


def _button_text(doc: HostDocument, el: Tag) -> str:
    if el.name == "input":
        value = attr_text(el, "value")
        if value:
            return value
        return attr_text(el, "aria-label") or _INPUT_BUTTON_LABELS.get(_button_type(el), "")
    return accessible_name(doc, el)


def _is_carousel_control(text: str, lexicon: Lexicon) -> bool:
    lowered = text.lower()
    return lowered in lexicon.carousel_phrases or bool(_SLIDE_CONTROL_RE.match(lowered))


def extract_buttons(doc: HostDocument, lexicon: Lexicon = DEFAULT_LEXICON) -> List[ButtonSnapshot]:
    """Standalone buttons; buttons inside forms belong to their form."""
    buttons: List[ButtonSnapshot] = []
    seen_texts: Set[str] = set()

    for el in doc.select(_BUTTON_SELECTOR):
        if not is_rendered(el) or _is_in_form(el):
            continue
        text = _button_text(doc, el)
        if not text:
            continue
        if _is_carousel_control(text, lexicon):
            continue
        if is_noise_text(text, lexicon) or is_promotional_text(text, lexicon):
            continue
        key = text.lower()
        if key in seen_texts:
            continue
        seen_texts.add(key)
        buttons.append(ButtonSnapshot(text=text, type=_button_type(el)))
    return buttons


# ---------------------------------------------------------------------------
# Search entry
# ---------------------------------------------------------------------------


def _text_inputs(doc: HostDocument) -> List[Tag]:
    return [
        el
        for el in doc.select("input")
        if attr_text(el, "type").lower() in _TEXT_INPUT_TYPES and is_rendered(el)
    ]


def _mentions_search(doc: HostDocument, el: Tag) -> bool:
    haystack = " ".join(
        (
            attr_text(el, "aria-label"),
            _associated_label(doc, el),
            attr_text(el, "placeholder"),
            attr_text(el, "id"),
        )
    ).lower()
    return "search" in haystack


def _find_search_input(doc: HostDocument, lexicon: Lexicon) -> Optional[Tag]:
    inputs = _text_inputs(doc)

    for el in inputs:
        if attr_text(el, "type").lower() == "search":
            return el
    for el in inputs:
        if attr_text(el, "name") in lexicon.search_param_names:
            return el
    for el in inputs:
        if _mentions_search(doc, el):
            return el
    for landmark in doc.select('[role="search"], search'):
        if not is_rendered(landmark):
            continue
        for el in landmark.find_all("input"):
            if any(el is candidate for candidate in inputs):
                return el
    return None


def detect_search(doc: HostDocument, lexicon: Lexicon = DEFAULT_LEXICON) -> Optional[SearchDescriptor]:
    el = _find_search_input(doc, lexicon)
    if el is None:
        return None

    form = HostDocument.closest(el, lambda node: node.name == "form")
    if form is not None:
        action = _form_action(doc, form)
    elif doc.origin:
        action = f"{doc.origin}/search"
    else:
        action = doc.url

    return SearchDescriptor(action=action, param_name=attr_text(el, "name") or "q")

