"""
Preview endpoint.

POST / — run the content pipeline on the create-document form and return
the rendered content without storing it.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from app.dependencies.document_form import run_pipeline
from app.models.schemas import (
    MappedSectionSchema,
    NavigationItemSchema,
    PreviewResponse,
    TemplateResponse,
)
from app.services.pipeline import PipelineResult

logger = logging.getLogger(__name__)

router = APIRouter()


def build_preview_response(result: PipelineResult) -> PreviewResponse:
    return PreviewResponse(
        success=True,
        preview=result.document_content.to_dict(),
        template_id=result.template_id,
        template_config=TemplateResponse.model_validate(result.template_config.to_dict()),
        navigation=[NavigationItemSchema(**n.to_dict()) for n in result.navigation],
        sections={
            key: MappedSectionSchema.model_validate(value)
            for key, value in result.sections_dict().items()
        },
        features=result.features.to_dict(),
        warnings=result.warnings,
        processing_time_seconds=result.processing_time_seconds,
    )


@router.post("/", response_model=PreviewResponse)
async def create_preview(result: PipelineResult = Depends(run_pipeline)) -> PreviewResponse:
    """
    Multipart form: ``title`` (required), ``subtitle``, ``publicationDate``,
    ``templateId`` or ``templateName``, JSON strings ``authors``,
    ``collections``, ``features``, ``sections`` and an optional ``file``
    (.docx).
    """
    if result.warnings:
        logger.info("Preview for %r produced %d warnings", result.document_content.document.title, len(result.warnings))
    return build_preview_response(result)
