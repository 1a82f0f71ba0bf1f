"""
Section mapper: fills each enabled UI section from the knowledge aggregate.

Every section draws from a fixed, ordered list of knowledge categories
(SECTION_PREFERENCES).  If that yields nothing usable, a fallback cascade
independent of the preference list is tried, so a titled document never
produces an empty enabled section.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from app.config import settings
from app.models.content import (
    EnabledSections,
    ExtractedKnowledge,
    MappedSectionContent,
    SectionKey,
)
from app.services.errors import EmptyKnowledgeError
from app.utils.helpers import dedupe, truncate_text

logger = logging.getLogger(__name__)

RELATED_CONTENT = "related_content"


@dataclass(frozen=True)
class SectionPreference:
    key: SectionKey
    title: str
    categories: Tuple[str, ...]


# Output order follows this table, not the order sections were enabled in.
SECTION_PREFERENCES: Tuple[SectionPreference, ...] = (
    SectionPreference(SectionKey.ABOUT, "Overview", ("summaries", "topics", "facts")),
    SectionPreference(SectionKey.EXECUTIVE_SUMMARY, "Executive Summary", ("summaries", "facts")),
    SectionPreference(SectionKey.ADDITIONAL_RESOURCES, "Key Resources", (RELATED_CONTENT, "facts")),
    SectionPreference(SectionKey.RELATED_REPORTS, "Related Articles", ("topics", "summaries")),
    SectionPreference(SectionKey.ASK_THE_AUTHOR, "Frequently Asked Questions", ("definitions", "facts")),
    SectionPreference(SectionKey.AV_LEARNING_ZONE, "Learning Zone", ("steps", "definitions")),
    SectionPreference(SectionKey.CASE_STUDY_EXPLORER, "Case Studies", ("facts", RELATED_CONTENT)),
    SectionPreference(SectionKey.WEBINARS_AND_EVENTS, "Webinars and Events", ("topics", "summaries")),
)

SECTION_TITLES = {p.key: p.title for p in SECTION_PREFERENCES}


def _category_items(knowledge: ExtractedKnowledge, category: str) -> List[str]:
    if category == RELATED_CONTENT:
        items: List[str] = []
        for group in knowledge.related_content:
            items.extend(group.content[: settings.ITEMS_PER_RELATED_GROUP])
        return items
    return list(getattr(knowledge, category))[: settings.ITEMS_PER_CATEGORY]


def finalize_items(items: List[str], min_length: Optional[int] = None) -> List[str]:
    """Drop short fragments, truncate, then dedupe and cap.

    Truncation runs before de-duplication so no two emitted items are equal.
    """
    min_length = settings.MAPPED_ITEM_MIN_LENGTH if min_length is None else min_length
    kept = [
        truncate_text(i.strip(), settings.MAPPED_ITEM_MAX_LENGTH)
        for i in items
        if len(i.strip()) > min_length
    ]
    return dedupe(kept)[: settings.MAPPED_ITEMS_PER_SECTION]


# ---------------------------------------------------------------------------
# Fallback cascade
# ---------------------------------------------------------------------------

FALLBACK_CASCADE: Tuple[Callable[[ExtractedKnowledge, int], List[str]], ...] = (
    lambda k, n: k.summaries[:n],
    lambda k, n: k.facts[:n],
    lambda k, n: [f"Key topic: {t}" for t in k.topics[:n]],
    lambda k, n: k.definitions[:n],
)


def fallback_content(knowledge: ExtractedKnowledge) -> List[str]:
    """First non-empty tier of the cascade, bounded like regular content."""
    for tier in FALLBACK_CASCADE:
        items = finalize_items(tier(knowledge, settings.FALLBACK_ITEMS), min_length=0)
        if items:
            return items
    return []


def map_section(knowledge: ExtractedKnowledge, preference: SectionPreference) -> MappedSectionContent:
    """
    Build the content for one section.

    Raises:
        EmptyKnowledgeError: neither the preferences nor the fallback
            cascade produced anything.
    """
    gathered: List[str] = []
    for category in preference.categories:
        gathered.extend(_category_items(knowledge, category))
    content = finalize_items(gathered)

    if not content:
        logger.warning(
            "map_section: %s has no preferred content, using fallback", preference.key.value
        )
        content = fallback_content(knowledge)
    if not content:
        raise EmptyKnowledgeError(
            f"No content available for section '{preference.key.value}'"
        )
    return MappedSectionContent(section_key=preference.key, title=preference.title, content=content)


def map_content_to_sections(
    knowledge: ExtractedKnowledge,
    enabled_sections: EnabledSections,
) -> List[MappedSectionContent]:
    """Map knowledge onto every enabled section, in preference-table order."""
    mapped = [
        map_section(knowledge, pref)
        for pref in SECTION_PREFERENCES
        if enabled_sections.is_enabled(pref.key)
    ]
    logger.info("map_content_to_sections: %d sections mapped", len(mapped))
    return mapped
