"""
Optional enrichment of mapped section content.

Without a provider every call is the identity.  With one, each section's
items are sent in a single request and the rewritten items are accepted
only if they come back as a non-empty list of strings; they are then
bounded exactly like mapped content (length floor, truncation, dedupe,
per-section cap).  Anything else (timeout, transport error, unparseable
or malformed output) silently keeps the original items; enrichment can
never fail a request.

Prompts are module-level constants so they can be tuned without touching
logic code.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any, List, Optional, Sequence

from app.config import settings
from app.models.content import MappedSectionContent
from app.services.llm_provider import (
    EnhancementOptions,
    EnhancementProvider,
    parse_json_lenient,
)
from app.services.section_mapper import finalize_items

logger = logging.getLogger(__name__)


ENRICH_SYSTEM_PROMPT = (
    "You are a content enrichment assistant. "
    "Return only valid JSON of the form {\"content\": [\"...\", ...]}."
)

ENRICH_USER_PROMPT = """\
Make these content points, extracted from a Word document, more informative \
and concise while strictly preserving their meaning.

Document context:
{context}

Content points:
{points}

Rules:
1. Keep every domain term, number and fact.
2. Do not add claims that are not in the points or the context.
3. At most {max_chars} characters per point.
4. No generic filler text.
5. If a point is already good, change it only slightly.
6. Return the same number of points, in the same order.

Return JSON: {{"content": ["point 1", "point 2", ...]}}"""


def build_prompt(items: Sequence[str], context: str) -> str:
    return ENRICH_USER_PROMPT.format(
        context=context[: settings.ENHANCEMENT_CONTEXT_CHARS],
        points="\n".join(f"{i}. {item}" for i, item in enumerate(items, start=1)),
        max_chars=settings.MAPPED_ITEM_MAX_LENGTH,
    )


def _accept(parsed: Any) -> Optional[List[str]]:
    """Validated, bounded items from a parsed response; None to reject it."""
    if isinstance(parsed, dict):
        parsed = parsed.get("content", parsed.get("points"))
    if not isinstance(parsed, list) or not parsed:
        return None
    if not all(isinstance(item, str) for item in parsed):
        return None
    return finalize_items(parsed) or None


async def _try_enrich(
    items: List[str],
    context: str,
    provider: EnhancementProvider,
    options: EnhancementOptions,
) -> Optional[List[str]]:
    try:
        raw = await asyncio.wait_for(
            provider.enhance(ENRICH_SYSTEM_PROMPT, build_prompt(items, context), options),
            timeout=settings.ENHANCEMENT_TIMEOUT,
        )
    except asyncio.TimeoutError:
        logger.warning("enrich: provider timed out after %.1f s", settings.ENHANCEMENT_TIMEOUT)
        return None
    except Exception as exc:
        logger.warning("enrich: provider failed: %s", exc)
        return None

    if not isinstance(raw, str):
        logger.warning("enrich: provider returned %s, expected text", type(raw).__name__)
        return None
    ok, parsed = parse_json_lenient(raw)
    if not ok:
        return None
    accepted = _accept(parsed)
    if accepted is None:
        logger.warning("enrich: response had no usable content list")
    return accepted


async def enrich(
    items: Sequence[str],
    context: str,
    provider: Optional[EnhancementProvider] = None,
    options: Optional[EnhancementOptions] = None,
) -> List[str]:
    """
    Rewrite *items* through *provider*, or return them unchanged.

    Never raises.
    """
    items = list(items)
    if provider is None or not items:
        return items
    enriched = await _try_enrich(items, context, provider, options or EnhancementOptions.from_settings())
    return items if enriched is None else enriched


async def enrich_sections(
    mapped: Sequence[MappedSectionContent],
    context: str,
    provider: Optional[EnhancementProvider] = None,
) -> List[MappedSectionContent]:
    """Enrich every section concurrently; order is preserved."""
    if provider is None:
        return list(mapped)

    options = EnhancementOptions.from_settings()

    async def one(section: MappedSectionContent) -> MappedSectionContent:
        if not section.content:
            return section
        result = await _try_enrich(list(section.content), context, provider, options)
        if result is None:
            return section
        return replace(section, content=result, enriched=True)

    results = await asyncio.gather(*(one(s) for s in mapped))
    logger.info(
        "enrich_sections: %d/%d sections enriched",
        sum(1 for s in results if s.enriched),
        len(results),
    )
    return list(results)
