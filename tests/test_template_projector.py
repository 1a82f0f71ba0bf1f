"""Tests for the template registry and projection."""
import pytest

from app.models.content import (
    DocumentContent,
    DocumentMetadata,
    DocumentSection,
    HeadingBlock,
    ListBlock,
)
from app.services.errors import TemplateNotFoundError
from app.services.template_projector import (
    generate_navigation,
    map_content_to_template,
    project,
    validate_content_for_template,
)
from app.templates.registry import (
    get_template_config,
    get_template_id_from_name,
    list_templates,
)


def _sections():
    return (
        DocumentSection(
            "overview",
            "Overview",
            blocks=(
                HeadingBlock("Scope", 2),
                ListBlock(("First point",)),
                HeadingBlock("Sampling", 3),
                ListBlock(("Second point",)),
            ),
        ),
        DocumentSection("results", "Results", blocks=(ListBlock(("Third point",)),)),
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

def test_registry_navigation_levels():
    levels = {t.id: t.layout.navigation_levels for t in list_templates()}
    assert levels == {
        "knowledge-hub": (1, 2),
        "global-economic-prospects": (1,),
        "academic-papers": (1, 2),
        "in-depth-report": (1, 2, 3),
    }


def test_template_lookup():
    assert get_template_config("in-depth-report").layout.sidebar == "double"
    assert get_template_id_from_name("Academic Papers") == "academic-papers"
    assert get_template_id_from_name("Unknown") is None
    with pytest.raises(TemplateNotFoundError, match="Invalid template ID"):
        get_template_config("missing")


def test_template_to_dict_is_camel_case():
    data = get_template_config("knowledge-hub").to_dict()
    assert data["layout"]["navigationLevels"] == [1, 2]
    assert data["typography"]["bodyFont"] == "font-sans"
    assert data["metadataPlacement"]["collections"] == "sidebar"


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------

def test_project_filters_nested_headings():
    projected = project(_sections(), (1, 2))
    assert [s.id for s in projected] == ["overview", "results"]
    assert projected[0].blocks == (
        HeadingBlock("Scope", 2),
        ListBlock(("First point",)),
        ListBlock(("Second point",)),
    )


def test_project_level_one_only():
    projected = project(_sections(), (1,))
    assert not any(isinstance(b, HeadingBlock) for s in projected for b in s.blocks)
    assert len(projected[0].blocks) == 2


def test_project_never_drops_sections():
    projected = project(_sections(), (2, 3))
    assert projected == list(_sections())


def test_generate_navigation():
    nav = generate_navigation(_sections(), (1, 2))
    assert [n.to_dict() for n in nav] == [
        {"id": "overview", "title": "Overview", "level": 1},
        {"id": "results", "title": "Results", "level": 1},
    ]
    assert generate_navigation(_sections(), (2,)) == []


def test_validate_content_for_template():
    doc = DocumentContent(DocumentMetadata(title="Report"), _sections())
    assert validate_content_for_template(doc, "knowledge-hub") == (True, [])

    empty = DocumentContent(DocumentMetadata(title=" "), ())
    valid, errors = validate_content_for_template(empty, "knowledge-hub")
    assert not valid
    assert errors == ["Document title is required", "Document must have at least one section"]

    valid, errors = validate_content_for_template(doc, "nope")
    assert not valid and "nope" in errors[0]


def test_map_content_to_template():
    doc = DocumentContent(DocumentMetadata(title="Report"), _sections())
    projected, template = map_content_to_template(doc, "global-economic-prospects")
    assert template.id == "global-economic-prospects"
    assert projected.document == doc.document
    assert len(projected.content[0].blocks) == 2

    with pytest.raises(TemplateNotFoundError):
        map_content_to_template(doc, "unknown-template")
