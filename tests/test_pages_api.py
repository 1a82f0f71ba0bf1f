"""Tests for stored pages: create, list, get, delete, deploy."""
import json

import pytest
from httpx import AsyncClient

from tests.conftest import AUTH_HEADERS, AUTH_HEADERS_USER2


async def _create_page(client: AsyncClient, title: str = "My Page", headers=None) -> dict:
    resp = await client.post(
        "/api/pages/",
        data={"title": title, "templateId": "academic-papers", "sections": json.dumps({"about": True})},
        headers=headers or AUTH_HEADERS,
    )
    assert resp.status_code == 201
    return resp.json()


@pytest.mark.asyncio
async def test_create_page(client: AsyncClient):
    page = await _create_page(client)
    assert page["title"] == "My Page"
    assert page["templateId"] == "academic-papers"
    assert page["deployed"] is False
    assert page["enabledSections"]["about"] is True
    assert page["sections"]["about"]["content"]
    assert page["documentContent"]["document"]["title"] == "My Page"


@pytest.mark.asyncio
async def test_list_pages_is_scoped_to_user(client: AsyncClient):
    await _create_page(client, "First")
    await _create_page(client, "Second")
    await _create_page(client, "Other", headers=AUTH_HEADERS_USER2)

    resp = await client.get("/api/pages/", headers=AUTH_HEADERS)
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 2
    assert {p["title"] for p in data["pages"]} == {"First", "Second"}


@pytest.mark.asyncio
async def test_get_page(client: AsyncClient):
    page = await _create_page(client)
    resp = await client.get(f"/api/pages/{page['id']}", headers=AUTH_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["id"] == page["id"]


@pytest.mark.asyncio
async def test_get_missing_page(client: AsyncClient):
    resp = await client.get("/api/pages/does-not-exist", headers=AUTH_HEADERS)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_other_user_cannot_access_page(client: AsyncClient):
    page = await _create_page(client)
    resp = await client.get(f"/api/pages/{page['id']}", headers=AUTH_HEADERS_USER2)
    assert resp.status_code == 403
    resp = await client.delete(f"/api/pages/{page['id']}", headers=AUTH_HEADERS_USER2)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_delete_page(client: AsyncClient):
    page = await _create_page(client)
    resp = await client.delete(f"/api/pages/{page['id']}", headers=AUTH_HEADERS)
    assert resp.status_code == 204
    resp = await client.get(f"/api/pages/{page['id']}", headers=AUTH_HEADERS)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_deploy_page(client: AsyncClient):
    page = await _create_page(client)
    resp = await client.post(f"/api/pages/{page['id']}/deploy", headers=AUTH_HEADERS)
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["url"] == f"/preview/{page['id']}"

    stored = (await client.get(f"/api/pages/{page['id']}", headers=AUTH_HEADERS)).json()
    assert stored["deployed"] is True
    assert stored["deployedUrl"] == data["url"]


@pytest.mark.asyncio
async def test_requests_without_header_use_default_user(client: AsyncClient):
    resp = await client.post("/api/pages/", data={"title": "Anonymous"})
    assert resp.status_code == 201
    listed = (await client.get("/api/pages/")).json()
    assert [p["title"] for p in listed["pages"]] == ["Anonymous"]
