"""
Knowledge extractor: sorts condensed document text into categories.

Categories: topics, facts, definitions, steps, summaries, plus the
per-section ``related_content`` groups used for "grouped by topic" views.

Classification is a rule table (CLASSIFICATION_RULES) evaluated top to
bottom, first match wins:

    definition  "X is / are / means / refers to ..." or "Term: rest"
    step        "1. ..." / "2) ..." or first / then / next / finally ...
    fact        digits, %, million, year, ...

Unmatched list items default to facts; unmatched paragraph text becomes a
short summary.

Two fallback tiers keep the result from being empty:
  1. re-scan paragraph/list text without classification
  2. synthesise from document metadata (title, subtitle)
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Pattern, Sequence, Tuple

from app.config import settings
from app.models.content import (
    DocumentContent,
    DocumentSection,
    ExtractedKnowledge,
    HeadingBlock,
    ListBlock,
    ParagraphBlock,
    RelatedContent,
    TableBlock,
    match_block,
)
from app.utils.helpers import dedupe, first_sentence, truncate_text

logger = logging.getLogger(__name__)

DEFINITION = "definitions"
STEP = "steps"
FACT = "facts"
SUMMARY = "summaries"


# ---------------------------------------------------------------------------
# Classification rules
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ClassificationRule:
    """Text matching any of *patterns* belongs to *category*."""

    category: str
    patterns: Tuple[Pattern, ...]

    def matches(self, text: str) -> bool:
        return any(p.search(text) for p in self.patterns)


CLASSIFICATION_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule(
        DEFINITION,
        (
            re.compile(r"\b(is|are|means|refers to|defined as|can be defined)\b", re.IGNORECASE),
            re.compile(r"^[A-Z][^.]*:\s"),
        ),
    ),
    ClassificationRule(
        STEP,
        (
            re.compile(r"^\d+[.)]\s"),
            re.compile(r"\b(first|second|third|then|next|finally|step|process)\b", re.IGNORECASE),
        ),
    ),
    ClassificationRule(
        FACT,
        (
            re.compile(r"\d"),
            re.compile(r"%"),
            re.compile(r"\b(percent|million|billion|thousand|year|date)\b", re.IGNORECASE),
        ),
    ),
)


def classify(text: str, rules: Sequence[ClassificationRule] = CLASSIFICATION_RULES) -> Optional[str]:
    """Return the category of the first matching rule, or None."""
    for rule in rules:
        if rule.matches(text):
            return rule.category
    return None


def summarize_text(text: str, max_length: int) -> str:
    """Shorten *text* to *max_length*, preferring its first sentence."""
    text = text.strip()
    if len(text) <= max_length:
        return text
    sentence = first_sentence(text)
    if sentence is not None:
        return truncate_text(sentence, max_length)
    return truncate_text(text, max_length)


# ---------------------------------------------------------------------------
# Per-section extraction
# ---------------------------------------------------------------------------

def _add_classified(knowledge: ExtractedKnowledge, text: str, default: str) -> None:
    category = classify(text) or default
    if category == SUMMARY:
        text = summarize_text(text, settings.SUMMARY_MAX_LENGTH)
    getattr(knowledge, category).append(text)


def _extract_from_table(knowledge: ExtractedKnowledge, table: TableBlock) -> None:
    knowledge.topics.extend(h for h in table.headers if h)
    lo, hi = settings.TABLE_FACT_MIN_LENGTH, settings.TABLE_FACT_MAX_LENGTH
    for row in table.rows:
        knowledge.facts.extend(cell for cell in row if lo <= len(cell) <= hi)


def _section_text(section: DocumentSection) -> List[str]:
    """List items and paragraph texts of a section, in order."""
    texts: List[str] = []
    for block in section.blocks:
        texts.extend(
            match_block(
                block,
                on_heading=lambda b: [],
                on_paragraph=lambda b: [b.text],
                on_list=lambda b: list(b.items),
                on_table=lambda b: [],
            )
        )
    return texts


def _extract_from_section(knowledge: ExtractedKnowledge, section: DocumentSection) -> None:
    # placeholder headings were invented by the extractor, not written by the author
    if not section.synthetic:
        knowledge.topics.append(section.heading)

    def on_heading(block: HeadingBlock) -> None:
        knowledge.topics.append(block.text)

    def on_paragraph(block: ParagraphBlock) -> None:
        _add_classified(knowledge, block.text, default=SUMMARY)

    def on_list(block: ListBlock) -> None:
        for item in block.items:
            _add_classified(knowledge, item, default=FACT)

    def on_table(block: TableBlock) -> None:
        _extract_from_table(knowledge, block)

    for block in section.blocks:
        match_block(
            block,
            on_heading=on_heading,
            on_paragraph=on_paragraph,
            on_list=on_list,
            on_table=on_table,
        )

    texts = _section_text(section)
    if texts:
        knowledge.related_content.append(RelatedContent(topic=section.heading, content=texts))


def _classified_knowledge(doc: DocumentContent) -> ExtractedKnowledge:
    knowledge = ExtractedKnowledge()
    for section in doc.content:
        _extract_from_section(knowledge, section)
    knowledge.topics = dedupe(knowledge.topics)
    return knowledge


# ---------------------------------------------------------------------------
# Fallback tiers
# ---------------------------------------------------------------------------

def _rescan_tier(doc: DocumentContent, knowledge: ExtractedKnowledge) -> ExtractedKnowledge:
    """Tier 1: take section text as summaries / facts without classifying it."""
    summaries = list(knowledge.summaries)
    facts = list(knowledge.facts)
    for section in doc.content:
        for block in section.blocks:
            if isinstance(block, ParagraphBlock):
                summaries.append(summarize_text(block.text, settings.FALLBACK_SUMMARY_MAX_LENGTH))
            elif isinstance(block, ListBlock):
                facts.extend(block.items[: settings.FALLBACK_LIST_ITEMS])
    return replace(knowledge, summaries=summaries, facts=facts)


def _metadata_tier(doc: DocumentContent, knowledge: ExtractedKnowledge) -> ExtractedKnowledge:
    """Tier 2: fall back to the title and subtitle the user entered."""
    topics = list(knowledge.topics)
    summaries = list(knowledge.summaries)
    meta = doc.document
    if meta.title and meta.title.strip():
        topics.append(meta.title.strip())
        summaries.append(f"Document: {meta.title.strip()}")
    if meta.subtitle and meta.subtitle.strip():
        summaries.append(meta.subtitle.strip())
    for section in doc.content:
        for text in _section_text(section):
            if len(text) > 10:
                summaries.append(truncate_text(text, settings.FALLBACK_SUMMARY_MAX_LENGTH))
    return replace(knowledge, topics=dedupe(topics), summaries=summaries)


FALLBACK_TIERS: Tuple[Callable[[DocumentContent, ExtractedKnowledge], ExtractedKnowledge], ...] = (
    _rescan_tier,
    _metadata_tier,
)


def extract_knowledge(doc: DocumentContent) -> ExtractedKnowledge:
    """
    Build the knowledge aggregate for one document.

    Never returns an aggregate without topics, facts and summaries when the
    document has a title.
    """
    knowledge = _classified_knowledge(doc)
    for tier in FALLBACK_TIERS:
        if knowledge.has_primary():
            break
        logger.warning(
            "extract_knowledge: no topics/facts/summaries for %r, applying %s",
            doc.document.title,
            tier.__name__.strip("_"),
        )
        knowledge = tier(doc, knowledge)

    logger.info("extract_knowledge: %s", knowledge.counts())
    return knowledge


def build_document_context(
    doc: DocumentContent,
    knowledge: ExtractedKnowledge,
    max_chars: Optional[int] = None,
) -> str:
    """Short grounding excerpt (title, subtitle, summaries, facts) for the enricher."""
    max_chars = settings.ENHANCEMENT_CONTEXT_CHARS if max_chars is None else max_chars
    parts: List[str] = [doc.document.title]
    if doc.document.subtitle:
        parts.append(doc.document.subtitle)
    parts.extend(knowledge.summaries)
    parts.extend(knowledge.facts)
    return "\n".join(p for p in parts if p)[:max_chars]
