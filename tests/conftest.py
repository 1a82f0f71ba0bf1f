"""
Shared fixtures for Pagecraft backend tests.

Every test runs against the in-memory page store and a pipeline without
an enhancement provider, so nothing touches PostgreSQL or Ollama.  Word
documents are built in memory with python-docx.
"""
from __future__ import annotations

import io
import os
from typing import AsyncGenerator, Callable, List, Optional, Sequence, Tuple

# Override settings *before* any app module is imported.
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["ENHANCEMENT_ENABLED"] = "false"

import pytest
import pytest_asyncio
from docx import Document as DocxDocument
from httpx import ASGITransport, AsyncClient

from app.dependencies.document_form import get_pipeline  # noqa: E402
from app.main import app  # noqa: E402
from app.services.pipeline import ContentPipeline  # noqa: E402
from app.services.storage import InMemoryPageStore, get_page_store  # noqa: E402


# ---------------------------------------------------------------------------
# DOCX builder
# ---------------------------------------------------------------------------

Item = Tuple[str, object]


def build_docx(items: Sequence[Item]) -> bytes:
    """
    Build a .docx from ``(kind, value)`` pairs:

        ("h1" | "h2" | "h3", text)  heading
        ("p", text)                 body paragraph
        ("bold", text)              paragraph with a single bold run
        ("li", text)                "List Bullet" paragraph
        ("table", [[cell, ...], ...])
    """
    doc = DocxDocument()
    for kind, value in items:
        if kind in ("h1", "h2", "h3"):
            doc.add_heading(str(value), level=int(kind[1]))
        elif kind == "p":
            doc.add_paragraph(str(value))
        elif kind == "bold":
            doc.add_paragraph().add_run(str(value)).bold = True
        elif kind == "li":
            doc.add_paragraph(str(value), style="List Bullet")
        elif kind == "table":
            rows: List[List[str]] = value  # type: ignore[assignment]
            table = doc.add_table(rows=len(rows), cols=len(rows[0]))
            for r, row in enumerate(rows):
                for c, cell in enumerate(row):
                    table.cell(r, c).text = cell
        else:
            raise ValueError(f"unknown item kind {kind!r}")
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


@pytest.fixture
def make_docx() -> Callable[[Sequence[Item]], bytes]:
    return build_docx


# ---------------------------------------------------------------------------
# Fake enhancement providers
# ---------------------------------------------------------------------------

class StaticProvider:
    """Returns the same raw text for every call and records the prompts."""

    def __init__(self, response: object) -> None:
        self.response = response
        self.calls: List[Tuple[str, str]] = []

    async def enhance(self, system_prompt, user_prompt, options):
        self.calls.append((system_prompt, user_prompt))
        return self.response


class FailingProvider:
    def __init__(self, exc: Optional[BaseException] = None) -> None:
        self.exc = exc or RuntimeError("provider down")

    async def enhance(self, system_prompt, user_prompt, options):
        raise self.exc


# ---------------------------------------------------------------------------
# App fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def page_store() -> InMemoryPageStore:
    return InMemoryPageStore()


@pytest.fixture
def pipeline() -> ContentPipeline:
    return ContentPipeline(provider=None)


@pytest_asyncio.fixture
async def client(
    page_store: InMemoryPageStore, pipeline: ContentPipeline
) -> AsyncGenerator[AsyncClient, None]:
    """
    httpx AsyncClient wired to the FastAPI app with a fresh page store and
    a provider-less pipeline per test.
    """
    app.dependency_overrides[get_page_store] = lambda: page_store
    app.dependency_overrides[get_pipeline] = lambda: pipeline

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


AUTH_HEADERS = {"X-User-Id": "test-user-1"}
AUTH_HEADERS_USER2 = {"X-User-Id": "test-user-2"}


@pytest.fixture
def auth_headers() -> dict:
    return dict(AUTH_HEADERS)


@pytest.fixture
def other_user_headers() -> dict:
    return dict(AUTH_HEADERS_USER2)
