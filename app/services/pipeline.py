"""
Content pipeline orchestrator.

Public API
----------
ContentPipeline.build_document(raw_text, metadata)
    → DocumentContent
    Structure extraction + condensation only.

ContentPipeline.run(raw_text, metadata, template_id, enabled_sections, features)
    → PipelineResult
    extract → condense → knowledge → section mapping → enrichment → projection.

ContentPipeline.run_file(file_bytes, filename, metadata, ...)
    → PipelineResult
    Reads a Word document first, then ``run``.

The pipeline holds no per-document state and never touches storage, so a
single instance can serve concurrent requests.
"""
from __future__ import annotations

import dataclasses
import logging
import time
from typing import Any, Dict, List, Optional, Sequence, Union

from app.models.content import (
    DocumentContent,
    DocumentFeatures,
    DocumentMetadata,
    EnabledSections,
    MappedSectionContent,
    RawExtraction,
)
from app.services.condenser import condense_sections
from app.services.document_parser import DocumentParser
from app.services.enricher import enrich_sections
from app.services.knowledge_extractor import build_document_context, extract_knowledge
from app.services.llm_provider import EnhancementProvider
from app.services.section_mapper import map_content_to_sections
from app.services.structure_extractor import extract
from app.services.template_projector import (
    NavigationItem,
    generate_navigation,
    map_content_to_template,
    validate_content_for_template,
)
from app.templates.registry import TemplateConfig, get_template_config

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class PipelineResult:
    """Everything a router needs to render or store one processed document."""

    document_content: DocumentContent
    template_config: TemplateConfig
    navigation: List[NavigationItem]
    sections: List[MappedSectionContent]
    features: DocumentFeatures
    enabled_sections: EnabledSections
    knowledge_counts: Dict[str, int]
    warnings: List[str]
    processing_time_seconds: float

    @property
    def template_id(self) -> str:
        return self.template_config.id

    def sections_dict(self) -> Dict[str, Any]:
        """Mapped sections keyed by section key, as the frontend reads them."""
        return {s.section_key.value: s.to_dict() for s in self.sections}


class ContentPipeline:
    """
    Orchestrates the document → page content stages.

    *provider* is the optional enhancement provider; with None the output
    is fully deterministic.
    """

    def __init__(
        self,
        provider: Optional[EnhancementProvider] = None,
        parser: Optional[DocumentParser] = None,
    ) -> None:
        self.provider = provider
        self.parser = parser or DocumentParser()

    def build_document(
        self,
        raw_text: Union[str, RawExtraction],
        metadata: DocumentMetadata,
    ) -> DocumentContent:
        sections = condense_sections(extract(raw_text))
        return DocumentContent(document=metadata, content=tuple(sections))

    async def run(
        self,
        raw_text: Union[str, RawExtraction],
        metadata: DocumentMetadata,
        template_id: str,
        enabled_sections: EnabledSections,
        features: Optional[DocumentFeatures] = None,
        warnings: Sequence[str] = (),
    ) -> PipelineResult:
        """
        Run every stage after the structure source.

        Raises:
            TemplateNotFoundError: unknown *template_id* (checked before any work).
            EmptyKnowledgeError:   an enabled section has nothing to show; only
                                   possible for an untitled, empty document.
        """
        t_start = time.perf_counter()
        get_template_config(template_id)

        all_warnings = list(warnings)
        if isinstance(raw_text, RawExtraction):
            all_warnings.extend(raw_text.warnings)

        doc = self.build_document(raw_text, metadata)
        knowledge = extract_knowledge(doc)
        mapped = map_content_to_sections(knowledge, enabled_sections)
        if self.provider is not None:
            context = build_document_context(doc, knowledge)
            mapped = await enrich_sections(mapped, context, self.provider)

        valid, errors = validate_content_for_template(doc, template_id)
        if not valid:
            all_warnings.extend(errors)
        projected, template = map_content_to_template(doc, template_id)
        navigation = generate_navigation(projected.content, template.layout.navigation_levels)

        elapsed = round(time.perf_counter() - t_start, 3)
        logger.info(
            "Pipeline run for %r: %d sections, %d mapped, template=%s (%.3f s)",
            metadata.title, len(projected.content), len(mapped), template_id, elapsed,
        )
        return PipelineResult(
            document_content=projected,
            template_config=template,
            navigation=navigation,
            sections=mapped,
            features=features or DocumentFeatures(),
            enabled_sections=enabled_sections,
            knowledge_counts=knowledge.counts(),
            warnings=all_warnings,
            processing_time_seconds=elapsed,
        )

    async def run_file(
        self,
        file_bytes: bytes,
        filename: str,
        metadata: DocumentMetadata,
        template_id: str,
        enabled_sections: EnabledSections,
        features: Optional[DocumentFeatures] = None,
    ) -> PipelineResult:
        """
        Read a Word document and run the pipeline on it.

        Raises:
            UnsupportedUploadError / UploadTooLargeError: upload rejected.
            DocumentFormatError: unreadable document.
        """
        raw = await self.parser.parse_document(file_bytes, filename)
        return await self.run(raw, metadata, template_id, enabled_sections, features)
