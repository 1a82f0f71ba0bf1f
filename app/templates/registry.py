"""
Registry of page templates.

Templates are static configuration: layout (sidebar style, header,
navigable heading levels), typography classes and where document metadata
is placed.  The registry is built once at import time and never mutated.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from app.services.errors import TemplateNotFoundError


@dataclass(frozen=True)
class TemplateLayout:
    sidebar: str                      # "single" | "double"
    header: bool
    navigation_levels: Tuple[int, ...]


@dataclass(frozen=True)
class TemplateTypography:
    heading_hierarchy: Tuple[str, ...]
    body_font: str


@dataclass(frozen=True)
class MetadataPlacement:
    authors: str                      # "header" | "sidebar"
    date: str
    collections: str


@dataclass(frozen=True)
class TemplateConfig:
    id: str
    name: str
    description: str
    layout: TemplateLayout
    typography: TemplateTypography
    metadata_placement: MetadataPlacement

    def to_dict(self) -> Dict[str, Any]:
        """camelCase shape consumed by the frontend."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "layout": {
                "sidebar": self.layout.sidebar,
                "header": self.layout.header,
                "navigationLevels": list(self.layout.navigation_levels),
            },
            "typography": {
                "headingHierarchy": list(self.typography.heading_hierarchy),
                "bodyFont": self.typography.body_font,
            },
            "metadataPlacement": {
                "authors": self.metadata_placement.authors,
                "date": self.metadata_placement.date,
                "collections": self.metadata_placement.collections,
            },
        }


_TEMPLATES = (
    TemplateConfig(
        id="knowledge-hub",
        name="Knowledge Hub",
        description="Our organizational standard template. Recommended for reports 20-80 pages long.",
        layout=TemplateLayout(sidebar="single", header=True, navigation_levels=(1, 2)),
        typography=TemplateTypography(("text-4xl", "text-3xl", "text-2xl"), "font-sans"),
        metadata_placement=MetadataPlacement(authors="header", date="header", collections="sidebar"),
    ),
    TemplateConfig(
        id="global-economic-prospects",
        name="Global Economic Prospects",
        description="Template optimized for reports in the Global Economic Prospects series",
        layout=TemplateLayout(sidebar="single", header=True, navigation_levels=(1,)),
        typography=TemplateTypography(("text-5xl", "text-3xl", "text-2xl"), "font-serif"),
        metadata_placement=MetadataPlacement(authors="header", date="header", collections="header"),
    ),
    TemplateConfig(
        id="academic-papers",
        name="Academic Papers",
        description="Optimized for academic publications and papers",
        layout=TemplateLayout(sidebar="single", header=True, navigation_levels=(1, 2)),
        typography=TemplateTypography(("text-3xl", "text-2xl", "text-xl"), "font-serif"),
        metadata_placement=MetadataPlacement(authors="header", date="header", collections="sidebar"),
    ),
    TemplateConfig(
        id="in-depth-report",
        name="In-depth Report",
        description="Optimized for lengthy (80+ page) reports",
        layout=TemplateLayout(sidebar="double", header=True, navigation_levels=(1, 2, 3)),
        typography=TemplateTypography(("text-4xl", "text-3xl", "text-2xl", "text-xl"), "font-sans"),
        metadata_placement=MetadataPlacement(authors="sidebar", date="sidebar", collections="sidebar"),
    ),
)

TEMPLATE_REGISTRY: Mapping[str, TemplateConfig] = MappingProxyType({t.id: t for t in _TEMPLATES})


def get_template_config(template_id: str) -> TemplateConfig:
    """Raises TemplateNotFoundError for unknown ids."""
    try:
        return TEMPLATE_REGISTRY[template_id]
    except KeyError:
        raise TemplateNotFoundError(template_id) from None


def get_template_id_from_name(template_name: str) -> Optional[str]:
    """Reverse lookup by display name, e.g. "Knowledge Hub" -> "knowledge-hub"."""
    for template in _TEMPLATES:
        if template.name == template_name:
            return template.id
    return None


def list_templates() -> List[TemplateConfig]:
    return list(_TEMPLATES)
