"""
Stored page endpoints (scoped to the X-User-Id caller).

POST   /              — run the pipeline on the create-document form and store the page.
GET    /              — list the caller's pages, newest first.
GET    /{id}          — one stored page.
DELETE /{id}          — delete a page.
POST   /{id}/deploy   — mark a page deployed and return its preview URL.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies.auth import get_current_user_id, get_owned_page
from app.dependencies.document_form import run_pipeline
from app.models.schemas import (
    DeployResponse,
    PageListResponse,
    PageResponse,
    PageSummaryResponse,
)
from app.services.pipeline import PipelineResult
from app.services.storage import PageStore, StoredPage, get_page_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", response_model=PageResponse, status_code=status.HTTP_201_CREATED)
async def create_page(
    result: PipelineResult = Depends(run_pipeline),
    user_id: str = Depends(get_current_user_id),
    store: PageStore = Depends(get_page_store),
) -> PageResponse:
    page = await store.save(StoredPage.from_result(result, user_id))
    logger.info("Stored page %s (%r) for user %s", page.id, page.title, user_id)
    return PageResponse.model_validate(page)


@router.get("/", response_model=PageListResponse)
async def list_pages(
    user_id: str = Depends(get_current_user_id),
    store: PageStore = Depends(get_page_store),
) -> PageListResponse:
    pages = await store.list_for_user(user_id)
    return PageListResponse(
        pages=[PageSummaryResponse.model_validate(p) for p in pages],
        total=len(pages),
    )


@router.get("/{page_id}", response_model=PageResponse)
async def get_page(page: StoredPage = Depends(get_owned_page)) -> PageResponse:
    return PageResponse.model_validate(page)


@router.delete("/{page_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_page(
    page: StoredPage = Depends(get_owned_page),
    store: PageStore = Depends(get_page_store),
) -> None:
    if not await store.delete(page.id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Page {page.id} not found.",
        )
    logger.info("Deleted page %s", page.id)


@router.post("/{page_id}/deploy", response_model=DeployResponse)
async def deploy_page(
    page: StoredPage = Depends(get_owned_page),
    store: PageStore = Depends(get_page_store),
) -> DeployResponse:
    page.mark_deployed()
    page = await store.save(page)
    logger.info("Deployed page %s at %s", page.id, page.deployed_url)
    return DeployResponse(success=True, page_id=page.id, url=page.deployed_url)
