"""
Template registry endpoints.

GET /        — every registered template.
GET /{id}    — one template's configuration.
"""
from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from app.models.schemas import TemplateListResponse, TemplateResponse
from app.services.errors import TemplateNotFoundError
from app.templates.registry import get_template_config, list_templates

router = APIRouter()


@router.get("/", response_model=TemplateListResponse)
async def get_templates() -> TemplateListResponse:
    templates = [TemplateResponse.model_validate(t.to_dict()) for t in list_templates()]
    return TemplateListResponse(templates=templates, total=len(templates))


@router.get("/{template_id}", response_model=TemplateResponse)
async def get_template(template_id: str) -> TemplateResponse:
    try:
        template = get_template_config(template_id)
    except TemplateNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return TemplateResponse.model_validate(template.to_dict())
