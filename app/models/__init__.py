"""Content, database and schema models for Pagecraft."""
from app.models.content import (
    ContentBlock,
    DocumentContent,
    DocumentFeatures,
    DocumentMetadata,
    DocumentSection,
    EnabledSections,
    ExtractedKnowledge,
    HeadingBlock,
    ListBlock,
    MappedSectionContent,
    ParagraphBlock,
    SectionKey,
    TableBlock,
)
from app.models.database_models import Page
from app.models.schemas import (
    HealthCheckResponse,
    PageResponse,
    PreviewResponse,
    TemplateResponse,
)

__all__ = [
    # Pipeline data
    "ContentBlock",
    "DocumentContent",
    "DocumentFeatures",
    "DocumentMetadata",
    "DocumentSection",
    "EnabledSections",
    "ExtractedKnowledge",
    "HeadingBlock",
    "ListBlock",
    "MappedSectionContent",
    "ParagraphBlock",
    "SectionKey",
    "TableBlock",
    # Database models
    "Page",
    # Pydantic schemas
    "HealthCheckResponse",
    "PageResponse",
    "PreviewResponse",
    "TemplateResponse",
]
