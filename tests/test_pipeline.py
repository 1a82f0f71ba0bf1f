"""End-to-end tests for ContentPipeline (no HTTP)."""
import json

import pytest

from app.models.content import (
    DocumentMetadata,
    EnabledSections,
    HeadingBlock,
    ListBlock,
    ParagraphBlock,
    SectionKey,
)
from app.services.errors import DocumentFormatError, TemplateNotFoundError
from app.services.pipeline import ContentPipeline
from tests.conftest import FailingProvider, StaticProvider

ALL_SECTIONS = EnabledSections.from_dict({k.value: True for k in SectionKey})


def test_build_document_condenses_every_section():
    text = "#HEADING1# Findings\n" + "\n".join(f"Paragraph number {i} of the findings." for i in range(9))
    doc = ContentPipeline().build_document(text, DocumentMetadata(title="Report"))
    (section,) = doc.content
    assert len(section.blocks) == 6
    assert not any(isinstance(b, ParagraphBlock) for b in section.blocks)


@pytest.mark.asyncio
async def test_single_fact_reaches_overview():
    result = await ContentPipeline().run(
        "Revenue grew 12% in Q3 2024.",
        DocumentMetadata(title="Quarterly Update"),
        "knowledge-hub",
        EnabledSections(about=True),
    )
    (section,) = result.document_content.content
    assert section.heading == "Document Content"
    assert section.blocks == (ListBlock(("Revenue grew 12% in Q3 2024.",)),)

    (about,) = result.sections
    assert about.section_key is SectionKey.ABOUT
    assert "Revenue grew 12% in Q3 2024." in about.content
    assert result.knowledge_counts["facts"] == 1


@pytest.mark.asyncio
async def test_title_only_document_fills_sections():
    result = await ContentPipeline().run(
        "",
        DocumentMetadata(title="Q3 Report"),
        "knowledge-hub",
        EnabledSections(about=True, executiveSummary=True),
    )
    assert [s.content for s in result.sections] == [["Document: Q3 Report"], ["Document: Q3 Report"]]


@pytest.mark.asyncio
async def test_all_sections_non_empty_and_bounded(make_docx):
    long_para = " ".join(f"Sentence number {i} describes regional trade in detail." for i in range(12))
    items = [("h1", "Overview"), ("p", long_para)]
    items += [("li", f"Exports reached {i} billion dollars") for i in range(8)]
    items += [("h2", "Definitions"), ("p", "Inflation is the rate at which prices rise.")]
    items += [("h1", "Method"), ("li", "Then collect the survey forms"), ("table", [["Region", "Growth"]] + [["East Asia", f"{i}.5 percent"] for i in range(9)])]

    result = await ContentPipeline().run_file(
        make_docx(items), "report.docx", DocumentMetadata(title="Annual Report"),
        "in-depth-report", ALL_SECTIONS,
    )
    assert len(result.sections) == 8
    for section in result.sections:
        assert 1 <= len(section.content) <= 8
        assert all(len(item) <= 120 for item in section.content)
    for section in result.document_content.content:
        assert sum(not isinstance(b, HeadingBlock) for b in section.blocks) <= 6
        for block in section.blocks:
            assert not isinstance(block, ParagraphBlock)
            if isinstance(block, ListBlock):
                assert all(len(i) <= 150 for i in block.items)
            if hasattr(block, "rows"):
                assert len(block.rows) <= 5
    assert [s.id for s in result.document_content.content] == ["overview", "method"]
    assert [n.title for n in result.navigation] == ["Overview", "Method"]


@pytest.mark.asyncio
async def test_projection_uses_template_levels():
    text = "#HEADING1# Scope\n#HEADING2# Detail\nBody text here."
    gep = await ContentPipeline().run(text, DocumentMetadata(title="R"), "global-economic-prospects", EnabledSections())
    hub = await ContentPipeline().run(text, DocumentMetadata(title="R"), "knowledge-hub", EnabledSections())
    assert not any(isinstance(b, HeadingBlock) for b in gep.document_content.content[0].blocks)
    assert HeadingBlock("Detail", 2) in hub.document_content.content[0].blocks
    assert gep.template_config.id == "global-economic-prospects"


@pytest.mark.asyncio
async def test_pipeline_is_deterministic_without_provider():
    args = ("#HEADING1# A\nSome text about 5 regions.", DocumentMetadata(title="T"), "knowledge-hub", ALL_SECTIONS)
    first = await ContentPipeline().run(*args)
    second = await ContentPipeline().run(*args)
    assert first.sections_dict() == second.sections_dict()
    assert first.document_content == second.document_content


@pytest.mark.asyncio
async def test_provider_enriches_mapped_sections():
    provider = StaticProvider(json.dumps({"content": ["Revenue up 12% in Q3 2024"]}))
    result = await ContentPipeline(provider=provider).run(
        "Revenue grew 12% in Q3 2024.", DocumentMetadata(title="Update"), "knowledge-hub",
        EnabledSections(about=True),
    )
    (about,) = result.sections
    assert about.enriched and about.content == ["Revenue up 12% in Q3 2024"]
    assert "Update" in provider.calls[0][1]


@pytest.mark.asyncio
async def test_failing_provider_does_not_fail_pipeline():
    result = await ContentPipeline(provider=FailingProvider()).run(
        "Revenue grew 12% in Q3 2024.", DocumentMetadata(title="Update"), "knowledge-hub",
        EnabledSections(about=True),
    )
    assert result.sections[0].content == ["Revenue grew 12% in Q3 2024."]
    assert not result.sections[0].enriched


@pytest.mark.asyncio
async def test_unknown_template_rejected():
    with pytest.raises(TemplateNotFoundError):
        await ContentPipeline().run("x", DocumentMetadata(title="T"), "nope", EnabledSections())


@pytest.mark.asyncio
async def test_unreadable_file_raises_format_error():
    with pytest.raises(DocumentFormatError):
        await ContentPipeline().run_file(
            b"garbage bytes", "broken.docx", DocumentMetadata(title="T"), "knowledge-hub", EnabledSections()
        )


@pytest.mark.asyncio
async def test_reader_warnings_are_reported(make_docx):
    result = await ContentPipeline().run_file(
        make_docx([]), "empty.docx", DocumentMetadata(title="Empty"), "knowledge-hub", EnabledSections(about=True)
    )
    assert "Document contains no extractable text." in result.warnings
    assert result.sections[0].content == ["Document: Empty"]
