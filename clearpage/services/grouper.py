"""Section grouper and significance scorer.

Blocks are partitioned into sections at heading boundaries, every section is
scored with a weighted rubric and sections below an adaptive threshold
(``max(COLLAPSE_FLOOR, median score)``) start out collapsed.
"""

import logging
from collections import Counter
from typing import List, Set

from clearpage.models.snapshot import ContentBlock, ContentGroup, GroupHeading

logger = logging.getLogger(__name__)

REPEAT_MIN = 3
COLLAPSE_FLOOR = 5.0
NOISE_RATIO = 0.6
SPLIT_MIN_BLOCKS = 10
PRODUCT_RUN = 3

# Paragraph scoring
_MIN_PARAGRAPH_WORDS = 5
_PARAGRAPH_CAP = 5.0
_PRODUCT_MAX_WORDS = 10

_CONTEXT_BONUS = {"main": 2.0, "article": 1.5, "body": 0.0}
_CONTEXT_PREFERENCE = ("main", "article", "body")

_HEADING_BONUS = 2.0
_HEADING_MIN_WORDS = 3
_HEADING_MAX_WORDS = 10


# ─── Partitioning ────────────────────────────────────────────────────────────


def is_product_like(block: ContentBlock) -> bool:
    """Short, unpunctuated paragraphs read as listing labels rather than prose."""
    if block.type != "paragraph":
        return False
    text = block.text.strip()
    return len(text.split()) < _PRODUCT_MAX_WORDS and not text.endswith((".", "!", "?"))


def _split_headingless(group: ContentGroup) -> List[ContentGroup]:
    blocks = group.blocks
    product_like = sum(1 for block in blocks if is_product_like(block))
    if product_like / len(blocks) > NOISE_RATIO:
        return [group.model_copy(update={"collapsed": True})]

    result: List[ContentGroup] = []
    current: List[ContentBlock] = []
    run = 0
    for block in blocks:
        run = run + 1 if is_product_like(block) else 0
        current.append(block)
        if run >= PRODUCT_RUN:
            result.append(ContentGroup(blocks=current, collapsed=True))
            current = []
            run = 0
    if current:
        result.append(ContentGroup(blocks=current))
    return result


def group_blocks(blocks: List[ContentBlock]) -> List[ContentGroup]:
    """Partition *blocks* into sections, one per heading."""
    groups: List[ContentGroup] = []
    current = ContentGroup()

    for block in blocks:
        if block.type == "heading":
            if current.blocks or current.heading is not None:
                groups.append(current)
            current = ContentGroup(heading=GroupHeading(text=block.text, level=block.level))
        else:
            current.blocks.append(block)

    if current.blocks or current.heading is not None:
        groups.append(current)

    if len(groups) == 1 and groups[0].heading is None and len(groups[0].blocks) > SPLIT_MIN_BLOCKS:
        return _split_headingless(groups[0])
    return groups


# ─── Scoring ─────────────────────────────────────────────────────────────────


def build_repetition_set(groups: List[ContentGroup]) -> Set[str]:
    """Block texts occurring ``REPEAT_MIN`` or more times across all sections."""
    counts = Counter(block.text for group in groups for block in group.blocks if block.text)
    return {text for text, count in counts.items() if count >= REPEAT_MIN}


def score_block(block: ContentBlock, repeated: Set[str]) -> float:
    if block.text in repeated:
        return -1.0

    if block.type == "paragraph":
        words = len(block.text.split())
        return min(words / 10, _PARAGRAPH_CAP) if words >= _MIN_PARAGRAPH_WORDS else 0.0
    if block.type == "list":
        return 0.5 * len(block.items)
    if block.type == "image":
        return 3.0
    if block.type in ("blockquote", "preformatted"):
        return 4.0
    if block.type == "table":
        return min(3 + 0.3 * len(block.rows), 10.0)
    if block.type == "definition-list":
        return min(1.0 * len(block.definitions), 8.0)
    return 0.0


def dominant_context(blocks: List[ContentBlock]) -> str:
    """Most frequent source context; ties resolve main > article > body."""
    counts = Counter(block.source_context for block in blocks)
    return max(_CONTEXT_PREFERENCE, key=lambda ctx: (counts[ctx], -_CONTEXT_PREFERENCE.index(ctx)))


def score_group(group: ContentGroup, repeated: Set[str]) -> float:
    score = 0.0
    weak = 0
    for block in group.blocks:
        block_score = score_block(block, repeated)
        if block_score <= 0:
            weak += 1
        score += block_score

    score += _CONTEXT_BONUS[dominant_context(group.blocks)]

    if group.heading is not None:
        heading_words = len(group.heading.text.split())
        if _HEADING_MIN_WORDS <= heading_words <= _HEADING_MAX_WORDS:
            score += _HEADING_BONUS

    if group.blocks and weak / len(group.blocks) > NOISE_RATIO:
        score *= 0.5
    return score


def median(values: List[float]) -> float:
    if not values:
        return 0.0
    ordered = sorted(values)
    middle = len(ordered) // 2
    if len(ordered) % 2:
        return ordered[middle]
    return (ordered[middle - 1] + ordered[middle]) / 2


def collapse_threshold(groups: List[ContentGroup]) -> float:
    return max(COLLAPSE_FLOOR, median([group.score for group in groups]))


def group_and_score(blocks: List[ContentBlock]) -> List[ContentGroup]:
    """Group *blocks* into sections, score them and flag low-value ones collapsed.

    The collapsed flag is decided by the threshold alone; any flag set while
    splitting a headingless page is replaced.
    """
    groups = group_blocks(blocks)
    repeated = build_repetition_set(groups)
    scored = [group.model_copy(update={"score": score_group(group, repeated)}) for group in groups]

    threshold = collapse_threshold(scored)
    logger.debug("Scored %d sections, collapse threshold %.2f", len(scored), threshold)
    return [group.model_copy(update={"collapsed": group.score < threshold}) for group in scored]
