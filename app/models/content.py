"""
Plain data types passed between the content pipeline stages.

Every stage reads these immutably and returns new values, so the block and
section types are frozen dataclasses holding tuples.  The dict helpers give
the JSON shape used by the API and the page store.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field, fields, replace
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar, Union

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Raw structure-source output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RawExtraction:
    """Text with level markers produced by the structure source."""

    text: str
    warnings: Tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Content blocks (tagged union)
# ---------------------------------------------------------------------------

def _clean(text: Any) -> str:
    return " ".join(str(text).split()) if text is not None else ""


@dataclass(frozen=True)
class HeadingBlock:
    text: str
    level: int = 2
    kind: str = field(default="heading", init=False)

    def __post_init__(self) -> None:
        text = _clean(self.text)
        if not text:
            raise ValueError("Heading text must not be empty")
        if self.level not in (1, 2, 3):
            raise ValueError(f"Heading level must be 1, 2 or 3, got {self.level!r}")
        object.__setattr__(self, "text", text)


@dataclass(frozen=True)
class ParagraphBlock:
    text: str
    kind: str = field(default="paragraph", init=False)

    def __post_init__(self) -> None:
        text = _clean(self.text)
        if not text:
            raise ValueError("Paragraph text must not be empty")
        object.__setattr__(self, "text", text)


@dataclass(frozen=True)
class ListBlock:
    items: Tuple[str, ...]
    kind: str = field(default="list", init=False)

    def __post_init__(self) -> None:
        items = tuple(c for c in (_clean(i) for i in self.items) if c)
        if not items:
            raise ValueError("List block needs at least one non-empty item")
        object.__setattr__(self, "items", items)


@dataclass(frozen=True)
class TableBlock:
    headers: Tuple[str, ...]
    rows: Tuple[Tuple[str, ...], ...] = ()
    kind: str = field(default="table", init=False)

    def __post_init__(self) -> None:
        # blank header cells keep their column so rows stay aligned
        headers = tuple(_clean(h) for h in self.headers)
        if not any(headers):
            raise ValueError("Table block needs at least one header")
        rows = tuple(tuple(_clean(cell) for cell in row) for row in self.rows)
        object.__setattr__(self, "headers", headers)
        object.__setattr__(self, "rows", tuple(r for r in rows if any(r)))


ContentBlock = Union[HeadingBlock, ParagraphBlock, ListBlock, TableBlock]

BLOCK_TYPES: Tuple[type, ...] = (HeadingBlock, ParagraphBlock, ListBlock, TableBlock)


def match_block(
    block: ContentBlock,
    *,
    on_heading: Callable[[HeadingBlock], T],
    on_paragraph: Callable[[ParagraphBlock], T],
    on_list: Callable[[ListBlock], T],
    on_table: Callable[[TableBlock], T],
) -> T:
    """Dispatch *block* to the handler for its variant.

    Every consumer of blocks goes through here so that an unknown variant
    fails loudly instead of being skipped.
    """
    if isinstance(block, HeadingBlock):
        return on_heading(block)
    if isinstance(block, ParagraphBlock):
        return on_paragraph(block)
    if isinstance(block, ListBlock):
        return on_list(block)
    if isinstance(block, TableBlock):
        return on_table(block)
    raise TypeError(f"Unhandled content block type: {type(block).__name__}")


def block_to_dict(block: ContentBlock) -> Dict[str, Any]:
    return match_block(
        block,
        on_heading=lambda b: {"type": "heading", "text": b.text, "level": b.level},
        on_paragraph=lambda b: {"type": "paragraph", "text": b.text},
        on_list=lambda b: {"type": "list", "items": list(b.items)},
        on_table=lambda b: {
            "type": "table",
            "headers": list(b.headers),
            "rows": [list(r) for r in b.rows],
        },
    )


# ---------------------------------------------------------------------------
# Document structure
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DocumentSection:
    """A level-1-heading-rooted group of blocks."""

    id: str
    heading: str
    level: int = 1
    blocks: Tuple[ContentBlock, ...] = ()
    # True for the "Introduction" / "Document Content" placeholders
    synthetic: bool = False

    def with_blocks(self, blocks: List[ContentBlock]) -> "DocumentSection":
        return replace(self, blocks=tuple(blocks))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "heading": self.heading,
            "level": self.level,
            "blocks": [block_to_dict(b) for b in self.blocks],
        }


@dataclass(frozen=True)
class Author:
    id: int
    name: str
    image: Optional[str] = None


@dataclass(frozen=True)
class Collection:
    id: int
    name: str


@dataclass(frozen=True)
class DocumentMetadata:
    title: str
    subtitle: Optional[str] = None
    publication_date: Optional[str] = None
    authors: Tuple[Author, ...] = ()
    collections: Tuple[Collection, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "subtitle": self.subtitle,
            "publicationDate": self.publication_date,
            "authors": [
                {"id": a.id, "name": a.name, "image": a.image} for a in self.authors
            ],
            "collections": [{"id": c.id, "name": c.name} for c in self.collections],
        }


@dataclass(frozen=True)
class DocumentContent:
    document: DocumentMetadata
    content: Tuple[DocumentSection, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "document": self.document.to_dict(),
            "content": [s.to_dict() for s in self.content],
        }


# ---------------------------------------------------------------------------
# Knowledge
# ---------------------------------------------------------------------------

@dataclass
class RelatedContent:
    topic: str
    content: List[str] = field(default_factory=list)


@dataclass
class ExtractedKnowledge:
    """Categorised text fragments for one document; built once, read once."""

    topics: List[str] = field(default_factory=list)
    facts: List[str] = field(default_factory=list)
    definitions: List[str] = field(default_factory=list)
    steps: List[str] = field(default_factory=list)
    summaries: List[str] = field(default_factory=list)
    related_content: List[RelatedContent] = field(default_factory=list)

    def has_primary(self) -> bool:
        """True when any of topics, facts or summaries is populated."""
        return bool(self.topics or self.facts or self.summaries)

    def counts(self) -> Dict[str, int]:
        return {
            "topics": len(self.topics),
            "facts": len(self.facts),
            "definitions": len(self.definitions),
            "steps": len(self.steps),
            "summaries": len(self.summaries),
            "related_content": len(self.related_content),
        }


# ---------------------------------------------------------------------------
# UI sections
# ---------------------------------------------------------------------------

class SectionKey(str, enum.Enum):
    """The eight user-toggleable presentation slots."""

    ABOUT = "about"
    EXECUTIVE_SUMMARY = "executiveSummary"
    AV_LEARNING_ZONE = "avlearningzone"
    CASE_STUDY_EXPLORER = "casestudyexplorer"
    WEBINARS_AND_EVENTS = "webinarsandevents"
    ASK_THE_AUTHOR = "asktheauthor"
    ADDITIONAL_RESOURCES = "additionalresources"
    RELATED_REPORTS = "relatedreports"


@dataclass(frozen=True)
class EnabledSections:
    about: bool = False
    executiveSummary: bool = False
    avlearningzone: bool = False
    casestudyexplorer: bool = False
    webinarsandevents: bool = False
    asktheauthor: bool = False
    additionalresources: bool = False
    relatedreports: bool = False

    def is_enabled(self, key: SectionKey) -> bool:
        return bool(getattr(self, key.value))

    def to_dict(self) -> Dict[str, bool]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "EnabledSections":
        known = {f.name for f in fields(cls)}
        return cls(**{k: bool(v) for k, v in (data or {}).items() if k in known})


@dataclass(frozen=True)
class DocumentFeatures:
    languageSwitcher: bool = False
    aiChatbot: bool = False
    audioNarration: bool = False
    complexitySlider: bool = False
    downloadPDF: bool = False

    def to_dict(self) -> Dict[str, bool]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "DocumentFeatures":
        known = {f.name for f in fields(cls)}
        return cls(**{k: bool(v) for k, v in (data or {}).items() if k in known})


@dataclass
class MappedSectionContent:
    section_key: SectionKey
    title: str
    content: List[str] = field(default_factory=list)
    enriched: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sectionKey": self.section_key.value,
            "title": self.title,
            "content": list(self.content),
            "enriched": self.enriched,
        }
