"""
Content condenser: turns prose into bounded bullet points.

No paragraph survives condensation.  Each paragraph becomes one or more
single-item List blocks, lists are capped, tables and headings pass
through.  ``limit`` then caps the number of non-heading blocks per
section while keeping every heading.

Sentence selection for long paragraphs
--------------------------------------
score = len(sentence)
        + SCORE_DIGIT_BONUS      if it contains a digit
        + SCORE_MAGNITUDE_BONUS  if it mentions percent / % / million / ...
        + SCORE_EMPHASIS_BONUS   if it contains important / key / main / ...

The top POINTS_PER_PARAGRAPH sentences by score are kept and emitted in
their original order.
"""
from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence

from app.config import settings
from app.models.content import (
    ContentBlock,
    DocumentSection,
    HeadingBlock,
    ListBlock,
    ParagraphBlock,
    match_block,
)
from app.utils.helpers import truncate_text

logger = logging.getLogger(__name__)

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_DIGIT_RE = re.compile(r"\d")
_MAGNITUDE_RE = re.compile(r"percent|%|million|billion|thousand", re.IGNORECASE)
_EMPHASIS_RE = re.compile(r"important|key|main|primary|critical|essential", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Sentence handling
# ---------------------------------------------------------------------------

def split_sentences(text: str, min_length: Optional[int] = None) -> List[str]:
    """Split on . ! ? and drop fragments of *min_length* chars or fewer."""
    min_length = settings.SENTENCE_MIN_LENGTH if min_length is None else min_length
    parts = (p.strip() for p in _SENTENCE_SPLIT_RE.split(text))
    return [p for p in parts if len(p) > min_length]


def score_sentence(sentence: str) -> int:
    score = len(sentence)
    if _DIGIT_RE.search(sentence):
        score += settings.SCORE_DIGIT_BONUS
    if _MAGNITUDE_RE.search(sentence):
        score += settings.SCORE_MAGNITUDE_BONUS
    if _EMPHASIS_RE.search(sentence):
        score += settings.SCORE_EMPHASIS_BONUS
    return score


def select_top_sentences(sentences: Sequence[str], k: int) -> List[str]:
    """Keep the *k* best-scoring sentences, returned in document order.

    Ties go to the earlier sentence.
    """
    ranked = sorted(
        range(len(sentences)),
        key=lambda i: (-score_sentence(sentences[i]), i),
    )
    keep = sorted(ranked[:k])
    return [sentences[i] for i in keep]


def summarize_paragraph(text: str, max_points: Optional[int] = None) -> List[str]:
    """
    Reduce a paragraph to at most *max_points* bullet strings.

    Short paragraphs (under SHORT_PARAGRAPH_LENGTH chars) become a single
    bullet.  Every returned bullet is at most BULLET_MAX_LENGTH chars.
    """
    max_points = settings.POINTS_PER_PARAGRAPH if max_points is None else max_points
    text = text.strip()
    if not text:
        return []

    if len(text) < settings.SHORT_PARAGRAPH_LENGTH:
        return [text[: settings.SHORT_PARAGRAPH_LENGTH]]

    sentences = split_sentences(text)
    if not sentences:
        return [truncate_text(text, settings.BULLET_MAX_LENGTH)]

    if len(sentences) > max_points:
        sentences = select_top_sentences(sentences, max_points)

    return [s[: settings.BULLET_MAX_LENGTH].strip() for s in sentences]


# ---------------------------------------------------------------------------
# Block-level operations
# ---------------------------------------------------------------------------

def _condense_paragraph(block: ParagraphBlock) -> List[ContentBlock]:
    return [ListBlock((point,)) for point in summarize_paragraph(block.text)]


def _condense_list(block: ListBlock) -> List[ContentBlock]:
    return [ListBlock(block.items[: settings.MAX_LIST_ITEMS])]


def condense(blocks: Sequence[ContentBlock]) -> List[ContentBlock]:
    """Convert every paragraph to bullets and cap list length."""
    condensed: List[ContentBlock] = []
    for block in blocks:
        condensed.extend(
            match_block(
                block,
                on_heading=lambda b: [b],
                on_paragraph=_condense_paragraph,
                on_list=_condense_list,
                on_table=lambda b: [b],
            )
        )
    return condensed


def limit(blocks: Sequence[ContentBlock], max_blocks: Optional[int] = None) -> List[ContentBlock]:
    """Keep all headings and the first *max_blocks* non-heading blocks, in order."""
    max_blocks = settings.MAX_BLOCKS_PER_SECTION if max_blocks is None else max_blocks
    result: List[ContentBlock] = []
    kept = 0
    for block in blocks:
        if isinstance(block, HeadingBlock):
            result.append(block)
        elif kept < max_blocks:
            result.append(block)
            kept += 1
    return result


def condense_sections(sections: Sequence[DocumentSection]) -> List[DocumentSection]:
    """Apply ``limit(condense(...))`` to every section, returning new sections."""
    out = [s.with_blocks(limit(condense(s.blocks))) for s in sections]
    logger.debug(
        "condense_sections: %d → %d blocks",
        sum(len(s.blocks) for s in sections),
        sum(len(s.blocks) for s in out),
    )
    return out

