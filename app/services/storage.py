"""
Page storage port.

Routers depend on the abstract ``PageStore``; the concrete store is chosen
once at start-up from STORAGE_BACKEND:

    memory    InMemoryPageStore   (process-local dict; development, tests)
    database  DatabasePageStore   (SQLAlchemy async, ``pages`` table)

The content pipeline itself never sees a store.
"""
from __future__ import annotations

import abc
import asyncio
import dataclasses
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import settings
from app.models.database_models import Page
from app.services.pipeline import PipelineResult

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclasses.dataclass
class StoredPage:
    id: str
    user_id: str
    title: str
    template_id: str
    document_content: Dict[str, Any]
    template_config: Dict[str, Any]
    features: Dict[str, bool]
    enabled_sections: Dict[str, bool]
    sections: Dict[str, Any]
    navigation: List[Dict[str, Any]]
    deployed: bool = False
    deployed_url: Optional[str] = None
    created_at: datetime = dataclasses.field(default_factory=_now)
    updated_at: datetime = dataclasses.field(default_factory=_now)

    @classmethod
    def from_result(
        cls, result: PipelineResult, user_id: str, page_id: Optional[str] = None
    ) -> "StoredPage":
        return cls(
            id=page_id or uuid.uuid4().hex,
            user_id=user_id,
            title=result.document_content.document.title,
            template_id=result.template_id,
            document_content=result.document_content.to_dict(),
            template_config=result.template_config.to_dict(),
            features=result.features.to_dict(),
            enabled_sections=result.enabled_sections.to_dict(),
            sections=result.sections_dict(),
            navigation=[n.to_dict() for n in result.navigation],
        )

    def mark_deployed(self) -> None:
        self.deployed = True
        self.deployed_url = f"/preview/{self.id}"
        self.updated_at = _now()


class PageStore(abc.ABC):
    """Persistence port for processed pages."""

    name: str = "abstract"

    @abc.abstractmethod
    async def save(self, page: StoredPage) -> StoredPage:
        """Insert or replace *page*."""

    @abc.abstractmethod
    async def get(self, page_id: str) -> Optional[StoredPage]:
        ...

    @abc.abstractmethod
    async def list_for_user(self, user_id: str) -> List[StoredPage]:
        """Pages owned by *user_id*, newest first."""

    @abc.abstractmethod
    async def delete(self, page_id: str) -> bool:
        """Remove a page; False when it did not exist."""


class InMemoryPageStore(PageStore):
    name = "memory"

    def __init__(self) -> None:
        self._pages: Dict[str, StoredPage] = {}
        self._lock = asyncio.Lock()

    async def save(self, page: StoredPage) -> StoredPage:
        async with self._lock:
            self._pages[page.id] = dataclasses.replace(page)
        return page

    async def get(self, page_id: str) -> Optional[StoredPage]:
        page = self._pages.get(page_id)
        return dataclasses.replace(page) if page is not None else None

    async def list_for_user(self, user_id: str) -> List[StoredPage]:
        pages = [dataclasses.replace(p) for p in self._pages.values() if p.user_id == user_id]
        return sorted(pages, key=lambda p: p.created_at, reverse=True)

    async def delete(self, page_id: str) -> bool:
        async with self._lock:
            return self._pages.pop(page_id, None) is not None


class DatabasePageStore(PageStore):
    name = "database"

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _to_page(row: Page) -> StoredPage:
        return StoredPage(
            id=row.id,
            user_id=row.user_id,
            title=row.title,
            template_id=row.template_id,
            document_content=row.document_content,
            template_config=row.template_config,
            features=row.features or {},
            enabled_sections=row.enabled_sections or {},
            sections=row.sections or {},
            navigation=row.navigation or [],
            deployed=bool(row.deployed),
            deployed_url=row.deployed_url,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    @staticmethod
    def _apply(row: Page, page: StoredPage) -> None:
        for f in dataclasses.fields(StoredPage):
            if f.name in ("id", "created_at", "updated_at"):
                continue
            setattr(row, f.name, getattr(page, f.name))

    async def save(self, page: StoredPage) -> StoredPage:
        session: AsyncSession
        async with self._session_factory() as session:
            async with session.begin():
                row = await session.get(Page, page.id)
                if row is None:
                    row = Page(id=page.id)
                    session.add(row)
                self._apply(row, page)
            await session.refresh(row)
            return self._to_page(row)

    async def get(self, page_id: str) -> Optional[StoredPage]:
        async with self._session_factory() as session:
            row = await session.get(Page, page_id)
            return self._to_page(row) if row is not None else None

    async def list_for_user(self, user_id: str) -> List[StoredPage]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Page).where(Page.user_id == user_id).order_by(Page.created_at.desc())
            )
            return [self._to_page(row) for row in result.scalars().all()]

    async def delete(self, page_id: str) -> bool:
        async with self._session_factory() as session:
            async with session.begin():
                row = await session.get(Page, page_id)
                if row is None:
                    return False
                await session.delete(row)
            return True


_store: Optional[PageStore] = None


def create_page_store(backend: Optional[str] = None) -> PageStore:
    backend = (backend or settings.STORAGE_BACKEND).lower()
    if backend == "memory":
        return InMemoryPageStore()
    if backend == "database":
        from app.database import AsyncSessionLocal

        return DatabasePageStore(AsyncSessionLocal)
    raise ValueError(f"Unknown STORAGE_BACKEND {backend!r}; expected 'memory' or 'database'")


def get_page_store() -> PageStore:
    """FastAPI dependency returning the process-wide store."""
    global _store
    if _store is None:
        _store = create_page_store()
        logger.info("Page store: %s", _store.name)
    return _store
