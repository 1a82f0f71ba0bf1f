"""
Caller identity for FastAPI routes.

Identity comes from the X-User-Id header set by the frontend.  There is no
real authentication; requests without the header act as DEFAULT_USER_ID.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from app.config import settings
from app.services.storage import PageStore, StoredPage, get_page_store

logger = logging.getLogger(__name__)


async def get_current_user_id(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> str:
    """The caller's user id, or the default user when the header is absent."""
    user_id = (x_user_id or "").strip()
    return user_id or settings.DEFAULT_USER_ID


async def get_owned_page(
    page_id: str,
    user_id: str = Depends(get_current_user_id),
    store: PageStore = Depends(get_page_store),
) -> StoredPage:
    """
    Load a stored page and verify the caller owns it.
    Raises 404 when missing and 403 when owned by someone else.
    """
    page = await store.get(page_id)
    if page is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Page {page_id} not found.",
        )
    if page.user_id != user_id:
        logger.warning("User %s denied access to page %s", user_id, page_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this page.",
        )
    return page
