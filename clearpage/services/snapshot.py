import logging
from typing import Dict, Optional

from clearpage.models.snapshot import PageSnapshot
from clearpage.services.dom import HostDocument
from clearpage.services.extractor import extract
from clearpage.services.grouper import group_and_score
from clearpage.services.lexicon import DEFAULT_LEXICON, Lexicon

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled"
DEFAULT_LANG = "en"


def snapshot_document(doc: HostDocument, lexicon: Lexicon = DEFAULT_LEXICON) -> PageSnapshot:
    """Extract, group and score *doc* into an immutable :class:`PageSnapshot`."""
    result = extract(doc, lexicon)
    groups = group_and_score(result.blocks)

    logger.info(
        "Snapshot of %s: %d blocks in %d sections (%d collapsed)",
        doc.url,
        len(result.blocks),
        len(groups),
        sum(1 for group in groups if group.collapsed),
    )

    return PageSnapshot(
        url=doc.url,
        title=doc.title or DEFAULT_TITLE,
        lang=doc.lang or DEFAULT_LANG,
        landmarks=result.landmarks,
        headings=result.headings,
        nav_links=result.nav_links,
        content_groups=groups,
        forms=result.forms,
        buttons=result.buttons,
        links=result.links,
        search=result.search,
    )


def build_snapshot(
    html: str,
    url: str,
    frames: Optional[Dict[str, str]] = None,
    lexicon: Lexicon = DEFAULT_LEXICON,
) -> PageSnapshot:
    return snapshot_document(HostDocument.from_html(html, url, frames), lexicon)
