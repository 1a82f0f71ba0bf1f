"""
Template projector: shapes document content for a template's navigation depth.

Projection never drops a section and never reorders anything; it only
removes nested heading blocks whose level the template does not navigate.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Sequence, Tuple

from app.models.content import DocumentContent, DocumentSection, HeadingBlock
from app.templates.registry import TemplateConfig, get_template_config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NavigationItem:
    id: str
    title: str
    level: int

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title, "level": self.level}


def project(
    sections: Sequence[DocumentSection],
    navigation_levels: Sequence[int],
) -> List[DocumentSection]:
    """Filter nested headings by level.

    Sections whose own level is not navigable are passed through untouched.
    """
    levels = set(navigation_levels)
    projected: List[DocumentSection] = []
    for section in sections:
        if section.level not in levels:
            projected.append(section)
            continue
        blocks = [
            b for b in section.blocks
            if not isinstance(b, HeadingBlock) or b.level in levels
        ]
        projected.append(section.with_blocks(blocks))
    return projected


def generate_navigation(
    sections: Sequence[DocumentSection],
    navigation_levels: Sequence[int],
) -> List[NavigationItem]:
    return [
        NavigationItem(id=s.id, title=s.heading, level=s.level)
        for s in sections
        if s.level in navigation_levels
    ]


def validate_content_for_template(doc: DocumentContent, template_id: str) -> Tuple[bool, List[str]]:
    """
    Check *doc* against a template's requirements.

    Returns ``(valid, errors)``.  Sections at a non-navigable level are
    only logged; they still render.
    """
    try:
        template = get_template_config(template_id)
    except KeyError as exc:
        return False, [str(exc)]

    errors: List[str] = []
    if not doc.document.title or not doc.document.title.strip():
        errors.append("Document title is required")
    if not doc.content:
        errors.append("Document must have at least one section")

    levels = template.layout.navigation_levels
    for section in doc.content:
        if section.level not in levels:
            logger.warning(
                "Section %r has level %d, template %s navigates %s",
                section.heading, section.level, template_id, list(levels),
            )
    return not errors, errors


def map_content_to_template(
    doc: DocumentContent, template_id: str
) -> Tuple[DocumentContent, TemplateConfig]:
    """
    Project *doc* for the template's navigation levels.

    Raises:
        TemplateNotFoundError: unknown *template_id*.
    """
    template = get_template_config(template_id)
    sections = project(doc.content, template.layout.navigation_levels)
    return replace(doc, content=tuple(sections)), template
