"""Block extractor: walks the main content region into typed content blocks.

Classification is a dispatch table keyed by tag name.  Each handler has the
signature ``(el, ctx) -> List[ContentBlock]``; the first matching rule in
:func:`classify` wins and everything unrecognised recurses through
:meth:`HostDocument.children`, so open shadow roots are read as inline
content.
"""

import logging
import re
from typing import Callable, Dict, List, NamedTuple, Optional, Set

from bs4 import Tag

from clearpage.models.snapshot import (
    BlockquoteBlock,
    ButtonSnapshot,
    ContentBlock,
    Definition,
    DefinitionListBlock,
    FormSnapshot,
    Heading,
    HeadingBlock,
    ImageBlock,
    Landmark,
    LinkSnapshot,
    ListBlock,
    NavLink,
    ParagraphBlock,
    PreformattedBlock,
    SearchDescriptor,
    SourceContext,
    TableBlock,
)
from clearpage.services.dom import FrameAccessError, HostDocument, attr_text
from clearpage.services.forms import detect_search, extract_buttons, extract_forms, labelled_by_text
from clearpage.services.lexicon import DEFAULT_LEXICON, Lexicon
from clearpage.services.navigation import extract_links, extract_nav_links
from clearpage.services.sanitizer import is_excluded, is_hidden, is_rendered, role_of
from clearpage.services.text import (
    BLOCK_TAGS,
    MAX_DEPTH,
    extract_text,
    is_content_text,
    is_noise_text,
)

logger = logging.getLogger(__name__)

# Regions with their own extraction path, or no readable content at all
SKIP_TAGS = frozenset(
    {
        "nav",
        "form",
        "script",
        "style",
        "noscript",
        "link",
        "meta",
        "aside",
        "header",
        "footer",
        "button",
        "video",
        "audio",
        "canvas",
        "svg",
        "template",
        "object",
        "embed",
        "select",
        "textarea",
        "input",
    }
)

# ARIA equivalents of the skipped landmark tags
_SKIP_ROLES = frozenset({"navigation", "banner", "contentinfo", "complementary", "search", "form"})

_HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
_DETAILS_HEADING_LEVEL = 4

_PLACEHOLDER_RE = re.compile(
    r"^data:|(?:^|[/_.-])(?:placeholder|blank|spacer|pixel|transparent|1x1)[^/]*$",
    re.IGNORECASE,
)

# Children that end a paragraph; inline media and controls do not
_BLOCK_LEVEL_TAGS = BLOCK_TAGS | {"menu", "iframe"}

_LANDMARK_TAGS = {
    "header": "banner",
    "nav": "navigation",
    "main": "main",
    "footer": "contentinfo",
    "aside": "complementary",
    "search": "search",
    "form": "form",
}
_LANDMARK_ROLES = frozenset(_LANDMARK_TAGS.values())


class WalkContext(NamedTuple):
    doc: HostDocument
    source_context: SourceContext
    depth: int
    lexicon: Lexicon
    seen_headings: Set[str]

    def deeper(self) -> "WalkContext":
        return self._replace(depth=self.depth + 1)


class ExtractionResult(NamedTuple):
    blocks: List[ContentBlock]
    landmarks: List[Landmark]
    headings: List[Heading]
    nav_links: List[NavLink]
    forms: List[FormSnapshot]
    buttons: List[ButtonSnapshot]
    links: List[LinkSnapshot]
    search: Optional[SearchDescriptor]


Handler = Callable[[Tag, WalkContext], List[ContentBlock]]


# ─── Helpers ─────────────────────────────────────────────────────────────────


def _child_elements(el: Tag, ctx: WalkContext, *names: str) -> List[Tag]:
    return [child for child in ctx.doc.children(el) if child.name in names and not is_hidden(child)]


def _recurse(el: Tag, ctx: WalkContext) -> List[ContentBlock]:
    blocks: List[ContentBlock] = []
    child_ctx = ctx.deeper()
    for child in ctx.doc.children(el):
        blocks.extend(classify(child, child_ctx))
    return blocks


def _is_block_level(el: Tag) -> bool:
    return el.name in _BLOCK_LEVEL_TAGS or role_of(el) == "heading"


def _heading_block(text: str, level: int, ctx: WalkContext) -> List[ContentBlock]:
    if not text or text in ctx.seen_headings:
        return []
    ctx.seen_headings.add(text)
    return [HeadingBlock(text=text, level=level, source_context=ctx.source_context)]


def _paragraph(text: str, ctx: WalkContext) -> List[ContentBlock]:
    if not is_content_text(text, ctx.lexicon):
        return []
    return [ParagraphBlock(text=text, source_context=ctx.source_context)]


def _is_placeholder(src: str) -> bool:
    return bool(_PLACEHOLDER_RE.search(src))


def _first_srcset_entry(srcset: str) -> str:
    first = srcset.split(",")[0].strip()
    return first.split()[0] if first else ""


def _image_src(img: Tag, ctx: WalkContext, picture: Optional[Tag] = None) -> Optional[str]:
    """Resolve the address a lazily-loaded image will eventually display."""
    raw = attr_text(img, "src")
    if raw and not _is_placeholder(raw):
        return ctx.doc.resolve(raw)

    for name in ctx.lexicon.lazy_src_attrs:
        candidate = attr_text(img, name)
        if candidate and not _is_placeholder(candidate):
            return ctx.doc.resolve(candidate)

    srcsets = [attr_text(img, "srcset"), attr_text(img, "data-srcset")]
    if picture is not None:
        srcsets.extend(attr_text(source, "srcset") for source in picture.find_all("source"))
    for srcset in srcsets:
        candidate = _first_srcset_entry(srcset)
        if candidate:
            return ctx.doc.resolve(candidate)

    return ctx.doc.resolve(raw) if raw else None


def _find_image(el: Tag, ctx: WalkContext, depth: int = 0) -> Optional[Tag]:
    if depth > MAX_DEPTH:
        return None
    for child in ctx.doc.children(el):
        if is_hidden(child):
            continue
        if child.name == "img":
            return child
        found = _find_image(child, ctx, depth + 1)
        if found is not None:
            return found
    return None


def _image_block(img: Tag, ctx: WalkContext, alt: str, picture: Optional[Tag] = None) -> List[ContentBlock]:
    if not alt:
        return []
    return [
        ImageBlock(
            text=alt,
            alt=alt,
            src=_image_src(img, ctx, picture),
            source_context=ctx.source_context,
        )
    ]


# ─── Handlers ────────────────────────────────────────────────────────────────


def _handle_heading(el: Tag, ctx: WalkContext) -> List[ContentBlock]:
    return _heading_block(extract_text(el), int(el.name[1]), ctx)


def _handle_list(el: Tag, ctx: WalkContext) -> List[ContentBlock]:
    items = []
    for li in _child_elements(el, ctx, "li"):
        if is_excluded(li, ctx.lexicon):
            continue
        text = extract_text(li)
        if text and not is_noise_text(text, ctx.lexicon):
            items.append(text)
    if not items:
        return []
    return [ListBlock(text=", ".join(items), items=items, source_context=ctx.source_context)]


def _definition_items(el: Tag, ctx: WalkContext, depth: int = 0) -> List[Tag]:
    # <div> wrappers around dt/dd groups are permitted inside <dl>
    items: List[Tag] = []
    if depth > MAX_DEPTH:
        return items
    for child in ctx.doc.children(el):
        if is_hidden(child):
            continue
        if child.name == "div":
            items.extend(_definition_items(child, ctx, depth + 1))
        elif child.name in ("dt", "dd"):
            items.append(child)
    return items


def _handle_definition_list(el: Tag, ctx: WalkContext) -> List[ContentBlock]:
    pairs = []
    term: Optional[str] = None
    descriptions: List[str] = []

    def close() -> None:
        if term and descriptions and not is_noise_text(term, ctx.lexicon):
            pairs.append(Definition(term=term, description=" ".join(descriptions)))

    for item in _definition_items(el, ctx):
        if item.name == "dt":
            close()
            term = extract_text(item)
            descriptions = []
        elif term is not None:
            text = extract_text(item)
            if text:
                descriptions.append(text)
    close()

    if not pairs:
        return []
    return [
        DefinitionListBlock(
            text=", ".join(pair.term for pair in pairs),
            definitions=pairs,
            source_context=ctx.source_context,
        )
    ]


def _handle_blockquote(el: Tag, ctx: WalkContext) -> List[ContentBlock]:
    text = extract_text(el)
    if not text:
        return []
    return [BlockquoteBlock(text=text, source_context=ctx.source_context)]


def _handle_preformatted(el: Tag, ctx: WalkContext) -> List[ContentBlock]:
    text = extract_text(el)
    if not text:
        return []
    return [PreformattedBlock(text=text, source_context=ctx.source_context)]


def _cells(row: Tag, ctx: WalkContext) -> List[str]:
    return [extract_text(cell) for cell in _child_elements(row, ctx, "th", "td")]


def _rows(section: Tag, ctx: WalkContext) -> List[Tag]:
    return _child_elements(section, ctx, "tr")


def _handle_table(el: Tag, ctx: WalkContext) -> List[ContentBlock]:
    thead = next(iter(_child_elements(el, ctx, "thead")), None)
    bodies = _child_elements(el, ctx, "tbody", "tfoot")
    loose_rows = _rows(el, ctx)

    headers: Optional[List[str]] = None
    if thead is not None:
        header_rows = _rows(thead, ctx)
        if header_rows:
            headers = _cells(header_rows[0], ctx)
        data_rows = [row for body in bodies for row in _rows(body, ctx)] + loose_rows
    else:
        all_rows = [row for body in bodies for row in _rows(body, ctx)] + loose_rows
        if all_rows:
            first = all_rows[0]
            if _child_elements(first, ctx, "th") and not _child_elements(first, ctx, "td"):
                headers = _cells(first, ctx)
                all_rows = all_rows[1:]
        data_rows = all_rows

    rows = []
    for row in data_rows:
        cells = _cells(row, ctx)
        if any(cell and not is_noise_text(cell, ctx.lexicon) for cell in cells):
            rows.append(cells)
    if not rows:
        return []

    # Blank cells (often the top-left corner) keep their column position
    if headers is not None and not any(headers):
        headers = None
    caption = next(iter(_child_elements(el, ctx, "caption")), None)
    caption_text = extract_text(caption) if caption is not None else ""
    if caption_text:
        text = caption_text
    elif headers:
        text = "Table: " + ", ".join(header for header in headers if header)
    else:
        text = f"Table with {len(rows)} rows"

    return [TableBlock(text=text, headers=headers, rows=rows, source_context=ctx.source_context)]


def _handle_figure(el: Tag, ctx: WalkContext) -> List[ContentBlock]:
    img = _find_image(el, ctx)
    if img is None:
        return _recurse(el, ctx)

    caption = next(iter(_child_elements(el, ctx, "figcaption")), None)
    alt = extract_text(caption) if caption is not None else ""
    picture = HostDocument.closest(img, lambda node: node.name == "picture")
    return _image_block(img, ctx, alt or attr_text(img, "alt"), picture)


def _handle_picture(el: Tag, ctx: WalkContext) -> List[ContentBlock]:
    img = _find_image(el, ctx)
    if img is None:
        return []
    return _image_block(img, ctx, attr_text(img, "alt"), el)


def _handle_image(el: Tag, ctx: WalkContext) -> List[ContentBlock]:
    return _image_block(el, ctx, attr_text(el, "alt"))


def _handle_frame(el: Tag, ctx: WalkContext) -> List[ContentBlock]:
    try:
        frame_doc = ctx.doc.frame_document(el)
    except FrameAccessError as exc:
        logger.debug("Skipping frame: %s", exc)
        return []
    frame_ctx = ctx._replace(doc=frame_doc, depth=ctx.depth + 1)
    return _recurse(frame_doc.body, frame_ctx)


def _handle_details(el: Tag, ctx: WalkContext) -> List[ContentBlock]:
    blocks: List[ContentBlock] = []
    child_ctx = ctx.deeper()
    summary_seen = False
    for child in ctx.doc.children(el):
        if child.name == "summary" and not summary_seen:
            summary_seen = True
            if not is_excluded(child, ctx.lexicon):
                blocks.extend(_heading_block(extract_text(child), _DETAILS_HEADING_LEVEL, ctx))
            continue
        blocks.extend(classify(child, child_ctx))
    return blocks


def _handle_role_image(el: Tag, ctx: WalkContext) -> List[ContentBlock]:
    label = attr_text(el, "aria-label") or labelled_by_text(ctx.doc, el)
    if not label:
        return []
    return [ImageBlock(text=label, alt=label, src=None, source_context=ctx.source_context)]


def _handle_role_heading(el: Tag, ctx: WalkContext) -> List[ContentBlock]:
    try:
        level = int(attr_text(el, "aria-level"))
    except ValueError:
        level = 2
    return _heading_block(extract_text(el), min(max(level, 1), 6), ctx)


_HANDLERS: Dict[str, Handler] = {
    **{tag: _handle_heading for tag in _HEADING_TAGS},
    "ul": _handle_list,
    "ol": _handle_list,
    "menu": _handle_list,
    "dl": _handle_definition_list,
    "blockquote": _handle_blockquote,
    "pre": _handle_preformatted,
    "table": _handle_table,
    "figure": _handle_figure,
    "picture": _handle_picture,
    "img": _handle_image,
    "iframe": _handle_frame,
    "details": _handle_details,
}

_ROLE_HANDLERS: Dict[str, Handler] = {
    "img": _handle_role_image,
    "heading": _handle_role_heading,
}


# ─── Classification ──────────────────────────────────────────────────────────


def classify(el: Tag, ctx: WalkContext) -> List[ContentBlock]:
    """Classify one element (and its subtree) into content blocks."""
    if ctx.depth > MAX_DEPTH:
        logger.debug("Depth limit reached at <%s>; truncating branch", el.name)
        return []
    if is_excluded(el, ctx.lexicon):
        return []

    role = role_of(el)
    # Labelled graphics such as <svg role="img"> outrank the skip list
    if role == "img" and el.name not in _HANDLERS:
        return _handle_role_image(el, ctx)
    if el.name in SKIP_TAGS or role in _SKIP_ROLES:
        return []

    if el.name == "article" or role == "article":
        ctx = ctx._replace(source_context="article")

    handler = _HANDLERS.get(el.name) or _ROLE_HANDLERS.get(role)
    if handler is not None:
        return handler(el, ctx)

    if not any(_is_block_level(child) for child in ctx.doc.children(el)):
        text = extract_text(el)
        if text:
            return _paragraph(text, ctx)
        # Only inline media left, e.g. a linked image or a labelled svg
    return _recurse(el, ctx)


def find_main_content(doc: HostDocument) -> Tag:
    """Return the first rendered ``main`` region, else the body."""
    for node in doc.select('main, [role="main"]'):
        if is_rendered(node):
            return node
    return doc.body


def extract_blocks(doc: HostDocument, lexicon: Lexicon = DEFAULT_LEXICON) -> List[ContentBlock]:
    root = find_main_content(doc)
    context: SourceContext = "body" if root is doc.body else "main"
    ctx = WalkContext(
        doc=doc,
        source_context=context,
        depth=0,
        lexicon=lexicon,
        seen_headings=set(),
    )
    if root is not doc.body and (root.name == "article" or role_of(root) == "article"):
        ctx = ctx._replace(source_context="article")
    return _recurse(root, ctx)


# ─── Side collections ────────────────────────────────────────────────────────


def _landmark_role(el: Tag) -> Optional[str]:
    role = role_of(el)
    if role in _LANDMARK_ROLES:
        return role
    if not role:
        return _LANDMARK_TAGS.get(el.name)
    return None


def extract_landmarks(doc: HostDocument) -> List[Landmark]:
    landmarks: List[Landmark] = []
    selector = ", ".join(list(_LANDMARK_TAGS) + [f'[role="{role}"]' for role in sorted(_LANDMARK_ROLES)])
    for el in doc.select(selector):
        role = _landmark_role(el)
        if role is None or not is_rendered(el):
            continue
        label = attr_text(el, "aria-label") or labelled_by_text(doc, el)
        landmarks.append(Landmark(role=role, label=label or None))
    return landmarks


def extract_headings(doc: HostDocument) -> List[Heading]:
    headings: List[Heading] = []
    for el in doc.select(", ".join(_HEADING_TAGS)):
        if not is_rendered(el):
            continue
        text = extract_text(el)
        if text:
            headings.append(Heading(level=int(el.name[1]), text=text, id=attr_text(el, "id") or None))
    return headings


def extract(doc: HostDocument, lexicon: Lexicon = DEFAULT_LEXICON) -> ExtractionResult:
    """Run the block walk and every side-collection harvester over *doc*."""
    blocks = extract_blocks(doc, lexicon)
    nav_links = extract_nav_links(doc, lexicon)
    paragraphs = [block.text for block in blocks if block.type == "paragraph"]
    return ExtractionResult(
        blocks=blocks,
        landmarks=extract_landmarks(doc),
        headings=extract_headings(doc),
        nav_links=nav_links,
        forms=extract_forms(doc),
        buttons=extract_buttons(doc, lexicon),
        links=extract_links(doc, nav_links, paragraphs, lexicon),
        search=detect_search(doc, lexicon),
    )
