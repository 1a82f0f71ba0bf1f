"""
Multipart "create document" form shared by the preview and pages routes.

Parses the form fields, reads the optional upload under the size limit
and runs the content pipeline, translating pipeline errors to HTTP
responses:

    missing title / bad JSON field / unknown template / bad file type → 400
    upload larger than MAX_FILE_SIZE                                  → 413
    unreadable Word document                                          → 422
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Type

from fastapi import Depends, File, Form, HTTPException, UploadFile, status
from pydantic import BaseModel, TypeAdapter, ValidationError

from app.config import settings
from app.models.content import (
    Author,
    Collection,
    DocumentFeatures,
    DocumentMetadata,
    EnabledSections,
)
from app.models.schemas import AuthorSchema, CollectionSchema
from app.services.document_parser import HEADING_MARKER
from app.services.errors import (
    DocumentFormatError,
    EmptyKnowledgeError,
    TemplateNotFoundError,
    UnsupportedUploadError,
    UploadTooLargeError,
)
from app.services.llm_provider import build_provider
from app.services.pipeline import ContentPipeline, PipelineResult
from app.templates.registry import TEMPLATE_REGISTRY, get_template_id_from_name

logger = logging.getLogger(__name__)

PLACEHOLDER_TEXT = "Document content will appear here after uploading a Word document."
PLACEHOLDER_RAW_TEXT = f"{HEADING_MARKER.format(level=1)} Introduction\n{PLACEHOLDER_TEXT}"

_READ_SLICE = 1024 * 1024


@dataclass
class DocumentForm:
    metadata: DocumentMetadata
    template_id: str
    features: DocumentFeatures
    enabled_sections: EnabledSections
    file: Optional[UploadFile]


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _json_field(name: str, raw: Optional[str], default: Any) -> Any:
    if raw is None or not raw.strip():
        return default
    try:
        return json.loads(raw)
    except ValueError:
        raise _bad_request(f"Field '{name}' must be valid JSON.") from None


def _json_list(name: str, raw: Optional[str], schema: Type[BaseModel]) -> List[Any]:
    try:
        return TypeAdapter(List[schema]).validate_python(_json_field(name, raw, []))
    except ValidationError as exc:
        raise _bad_request(f"Field '{name}' is invalid: {exc.errors()[0]['msg']}") from None


def _json_object(name: str, raw: Optional[str]) -> dict:
    value = _json_field(name, raw, {})
    if not isinstance(value, dict):
        raise _bad_request(f"Field '{name}' must be a JSON object.")
    return value


def resolve_template_id(template_id: Optional[str], template_name: Optional[str]) -> str:
    """An explicit id must exist; an unknown display name falls back to the default."""
    if template_id:
        if template_id not in TEMPLATE_REGISTRY:
            raise _bad_request(f"Invalid template ID: {template_id}")
        return template_id
    if template_name:
        return get_template_id_from_name(template_name) or settings.DEFAULT_TEMPLATE_ID
    return settings.DEFAULT_TEMPLATE_ID


async def parse_document_form(
    title: str = Form(""),
    subtitle: Optional[str] = Form(None),
    publicationDate: Optional[str] = Form(None),
    templateName: Optional[str] = Form(None),
    templateId: Optional[str] = Form(None),
    authors: Optional[str] = Form(None),
    collections: Optional[str] = Form(None),
    features: Optional[str] = Form(None),
    sections: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
) -> DocumentForm:
    """FastAPI dependency: validate the create-document form."""
    if not title or not title.strip():
        raise _bad_request("Title is required")

    metadata = DocumentMetadata(
        title=title.strip(),
        subtitle=(subtitle or "").strip() or None,
        publication_date=(publicationDate or "").strip() or None,
        authors=tuple(
            Author(id=a.id, name=a.name, image=a.image)
            for a in _json_list("authors", authors, AuthorSchema)
        ),
        collections=tuple(
            Collection(id=c.id, name=c.name)
            for c in _json_list("collections", collections, CollectionSchema)
        ),
    )
    return DocumentForm(
        metadata=metadata,
        template_id=resolve_template_id(templateId, templateName),
        features=DocumentFeatures.from_dict(_json_object("features", features)),
        enabled_sections=EnabledSections.from_dict(_json_object("sections", sections)),
        file=file if file is not None and file.filename else None,
    )


async def read_upload(file: UploadFile) -> bytes:
    """Read an upload in slices, enforcing MAX_FILE_SIZE."""
    data = bytearray()
    while True:
        chunk = await file.read(_READ_SLICE)
        if not chunk:
            break
        data.extend(chunk)
        if len(data) > settings.MAX_FILE_SIZE:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File exceeds the {settings.MAX_FILE_SIZE // (1024 * 1024)} MB size limit.",
            )
    return bytes(data)


_pipeline: Optional[ContentPipeline] = None


def get_pipeline() -> ContentPipeline:
    """FastAPI dependency returning the process-wide pipeline."""
    global _pipeline
    if _pipeline is None:
        _pipeline = ContentPipeline(provider=build_provider())
    return _pipeline


async def run_pipeline(
    form: DocumentForm = Depends(parse_document_form),
    pipeline: ContentPipeline = Depends(get_pipeline),
) -> PipelineResult:
    """FastAPI dependency: run the pipeline for a parsed form."""
    try:
        if form.file is None:
            return await pipeline.run(
                PLACEHOLDER_RAW_TEXT,
                form.metadata,
                form.template_id,
                form.enabled_sections,
                form.features,
            )
        file_bytes = await read_upload(form.file)
        return await pipeline.run_file(
            file_bytes,
            form.file.filename,
            form.metadata,
            form.template_id,
            form.enabled_sections,
            form.features,
        )
    except UploadTooLargeError as exc:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(exc)
        ) from exc
    except UnsupportedUploadError as exc:
        raise _bad_request(str(exc)) from exc
    except TemplateNotFoundError as exc:
        raise _bad_request(str(exc)) from exc
    except DocumentFormatError as exc:
        logger.warning("Rejected upload %r: %s", form.file.filename if form.file else None, exc)
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    except EmptyKnowledgeError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
