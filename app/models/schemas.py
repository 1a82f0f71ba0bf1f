"""
Pydantic schemas for request/response validation.

Field names are snake_case in Python and camelCase on the wire.
"""
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Any
from datetime import datetime


class CamelModel(BaseModel):
    """Base schema serialised with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Form payloads (sent as JSON strings inside multipart forms)
class AuthorSchema(BaseModel):
    id: int
    name: str = Field(..., min_length=1)
    image: Optional[str] = None


class CollectionSchema(BaseModel):
    id: int
    name: str = Field(..., min_length=1)


# Template Schemas
class TemplateLayoutSchema(CamelModel):
    sidebar: str
    header: bool
    navigation_levels: List[int]


class TemplateTypographySchema(CamelModel):
    heading_hierarchy: List[str]
    body_font: str


class MetadataPlacementSchema(CamelModel):
    authors: str
    date: str
    collections: str


class TemplateResponse(CamelModel):
    """Schema for a registered template."""

    id: str
    name: str
    description: str
    layout: TemplateLayoutSchema
    typography: TemplateTypographySchema
    metadata_placement: MetadataPlacementSchema


class TemplateListResponse(BaseModel):
    templates: List[TemplateResponse]
    total: int


# Pipeline output Schemas
class NavigationItemSchema(BaseModel):
    id: str
    title: str
    level: int


class MappedSectionSchema(CamelModel):
    section_key: str
    title: str
    content: List[str]
    enriched: bool = False


class PreviewResponse(CamelModel):
    """Result of running the pipeline without storing anything."""

    success: bool = True
    preview: Dict[str, Any]  # {document, content}
    template_id: str
    template_config: TemplateResponse
    navigation: List[NavigationItemSchema]
    sections: Dict[str, MappedSectionSchema]
    features: Dict[str, bool]
    warnings: List[str] = []
    processing_time_seconds: float


# Page Schemas
class PageSummaryResponse(CamelModel):
    """List entry for a stored page."""

    id: str
    title: str
    template_id: str
    deployed: bool
    deployed_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class PageResponse(PageSummaryResponse):
    """Full stored page."""

    document_content: Dict[str, Any]
    template_config: Dict[str, Any]
    features: Dict[str, bool]
    enabled_sections: Dict[str, bool]
    sections: Dict[str, Any]
    navigation: List[NavigationItemSchema]


class PageListResponse(BaseModel):
    pages: List[PageSummaryResponse]
    total: int


class DeployResponse(CamelModel):
    success: bool = True
    page_id: str
    url: str


# Health Check Schema
class HealthCheckResponse(BaseModel):
    """Schema for health check response."""

    status: str
    storage: str
    enhancement: str  # disabled | ok | unreachable
    timestamp: datetime
