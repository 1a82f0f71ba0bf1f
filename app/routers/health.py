"""
Health check endpoint.
"""
from fastapi import APIRouter, Depends
from datetime import datetime, timezone
import logging

from app.dependencies.document_form import get_pipeline
from app.models.schemas import HealthCheckResponse
from app.services.llm_provider import OllamaEnhancementProvider
from app.services.pipeline import ContentPipeline
from app.services.storage import PageStore, get_page_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=HealthCheckResponse)
async def health_check(
    store: PageStore = Depends(get_page_store),
    pipeline: ContentPipeline = Depends(get_pipeline),
):
    """
    Report storage backend and enhancement provider status.

    The service is "degraded" only when enhancement is enabled but its
    provider is unreachable; the pipeline still works without it.
    """
    provider = pipeline.provider
    if provider is None:
        enhancement = "disabled"
    elif isinstance(provider, OllamaEnhancementProvider):
        enhancement = "ok" if await provider.is_available() else "unreachable"
    else:
        enhancement = "ok"

    if enhancement == "unreachable":
        logger.warning("Enhancement provider unreachable; serving unenriched content")

    return HealthCheckResponse(
        status="degraded" if enhancement == "unreachable" else "healthy",
        storage=store.name,
        enhancement=enhancement,
        timestamp=datetime.now(timezone.utc),
    )
