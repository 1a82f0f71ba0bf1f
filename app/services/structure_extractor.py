"""
Structure extractor: raw marker-annotated text → ordered DocumentSections.

Two modes:
  * marker mode — the text carries #HEADINGn# markers (as produced by the
    DOCX reader); every marker opens a heading at its declared level.
  * heuristic mode — plain lines; heading levels are inferred from an
    ordered rule table (HEADING_RULES, first match wins).

Only level-1 headings open a new DocumentSection.  Level-2/3 headings are
kept as nested HeadingBlocks inside the current section.  #LIST# and
#TABLE# lines are grouped into List/Table blocks in both modes.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Set, Tuple, Union

from app.config import settings
from app.models.content import (
    ContentBlock,
    DocumentSection,
    HeadingBlock,
    ListBlock,
    ParagraphBlock,
    RawExtraction,
    TableBlock,
)
from app.services.document_parser import CELL_SEPARATOR
from app.utils.helpers import truncate_text, unique_slug

logger = logging.getLogger(__name__)

INTRODUCTION_HEADING = "Introduction"
UNTITLED_HEADING = "Document Content"

_HEADING_MARKER_RE = re.compile(r"#HEADING([123])#")
# a marker preceded by text on the same line
_INLINE_MARKER_RE = re.compile(r"(?<=\S)[ \t]*(#(?:HEADING[123]|LIST|TABLE)#)")
_LINE_MARKER_RE = re.compile(r"^#(HEADING([123])|LIST|TABLE)#\s*(.*)$")
_BULLET_RE = re.compile(r"^[•\-\*–]\s+(.+)$")

_SENTENCE_END = (".", "!", "?", ";", ",", ":")

_DOTTED_3_RE = re.compile(r"^\d+\.\d+\.\d+\s")
_DOTTED_2_RE = re.compile(r"^\d+\.\d+\s")
_CHAPTER_RE = re.compile(r"^(Chapter|Part|Section)\s+\d+", re.IGNORECASE)
_NUMBERED_RE = re.compile(r"^\d+\.?\s+[A-Z]")
_TITLE_CASE_RE = re.compile(r"^[A-Z][a-z]+(\s+[A-Z][a-z]+)*$")


# ---------------------------------------------------------------------------
# Heading rule table
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HeadingRule:
    """One heading heuristic: lines matching *test* become level-*level* headings."""

    name: str
    level: int
    test: Callable[[str], bool]


def _is_upper_case(line: str) -> bool:
    return any(ch.isalpha() for ch in line) and line == line.upper()


# Dotted-numeric patterns come first: they are more specific than the
# stylistic ones and must win ties.
HEADING_RULES: Tuple[HeadingRule, ...] = (
    HeadingRule("dotted-three-level", 3, lambda s: bool(_DOTTED_3_RE.match(s))),
    HeadingRule("dotted-two-level", 2, lambda s: bool(_DOTTED_2_RE.match(s))),
    HeadingRule("chapter-part-section", 1, lambda s: bool(_CHAPTER_RE.match(s))),
    HeadingRule("numbered", 1, lambda s: bool(_NUMBERED_RE.match(s))),
    HeadingRule("upper-case", 1, _is_upper_case),
    HeadingRule("title-case", 2, lambda s: bool(_TITLE_CASE_RE.match(s))),
)


def is_heading_candidate(line: str) -> bool:
    """Short line without trailing sentence punctuation."""
    return len(line) < settings.HEADING_MAX_LENGTH and not line.endswith(_SENTENCE_END)


def classify_line(line: str, rules: Sequence[HeadingRule] = HEADING_RULES) -> Optional[int]:
    """Return the heading level for *line*, or None for body text."""
    line = line.strip()
    if not line or not is_heading_candidate(line):
        return None
    for rule in rules:
        if rule.test(line):
            return rule.level
    return None


# ---------------------------------------------------------------------------
# Tokenisation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class _Token:
    kind: str                      # heading | paragraph | list | table | break
    text: str = ""
    level: int = 0
    cells: Tuple[str, ...] = ()


def _isolate_markers(text: str) -> str:
    """Move every marker to the start of its own line."""
    return _INLINE_MARKER_RE.sub(r"\n\1", text)


def _tokenize(text: str) -> List[_Token]:
    marker_mode = bool(_HEADING_MARKER_RE.search(text))
    tokens: List[_Token] = []

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            tokens.append(_Token("break"))
            continue

        marked = _LINE_MARKER_RE.match(line)
        if marked:
            body = marked.group(3).strip()
            if not body:
                continue
            if marked.group(2):
                tokens.append(_Token("heading", body, level=int(marked.group(2))))
            elif marked.group(1) == "LIST":
                tokens.append(_Token("list", body))
            else:
                cells = tuple(c.strip() for c in body.split(CELL_SEPARATOR.strip()))
                tokens.append(_Token("table", cells=cells))
            continue

        if marker_mode:
            tokens.append(_Token("paragraph", line))
            continue

        bullet = _BULLET_RE.match(line)
        if bullet:
            tokens.append(_Token("list", bullet.group(1).strip()))
            continue

        level = classify_line(line)
        if level is not None:
            tokens.append(_Token("heading", line, level=level))
        else:
            tokens.append(_Token("paragraph", line))

    return tokens


# ---------------------------------------------------------------------------
# Section assembly
# ---------------------------------------------------------------------------

@dataclass
class _Draft:
    heading: str
    synthetic: bool = False
    blocks: List[ContentBlock] = field(default_factory=list)


class _SectionBuilder:
    """Accumulates tokens into DocumentSections in document order."""

    def __init__(self, placeholder_heading: str) -> None:
        self.placeholder_heading = placeholder_heading
        self.sections: List[DocumentSection] = []
        self._slugs: Set[str] = set()
        self._current: Optional[_Draft] = None
        self._list_items: List[str] = []
        self._table_rows: List[Tuple[str, ...]] = []

    def feed(self, token: _Token) -> None:
        if token.kind == "list":
            self._flush_table()
            self._list_items.append(truncate_text(token.text, settings.LIST_ITEM_MAX_LENGTH))
            return
        if token.kind == "table":
            self._flush_list()
            self._table_rows.append(token.cells)
            return

        self._flush_pending()
        if token.kind == "heading" and token.level == 1:
            self._close()
            self._current = _Draft(heading=token.text)
        elif token.kind == "heading":
            self._draft().blocks.append(HeadingBlock(token.text, token.level))
        elif token.kind == "paragraph":
            self._draft().blocks.append(ParagraphBlock(token.text))

    def finish(self) -> List[DocumentSection]:
        self._flush_pending()
        self._close()
        if not self.sections:
            self._current = _Draft(heading=UNTITLED_HEADING, synthetic=True)
            self._close()
        return self.sections

    def _draft(self) -> _Draft:
        if self._current is None:
            self._current = _Draft(heading=self.placeholder_heading, synthetic=True)
        return self._current

    def _close(self) -> None:
        draft = self._current
        if draft is None:
            return
        self.sections.append(
            DocumentSection(
                id=unique_slug(draft.heading, self._slugs),
                heading=draft.heading,
                level=1,
                blocks=tuple(draft.blocks),
                synthetic=draft.synthetic,
            )
        )
        self._current = None

    def _flush_pending(self) -> None:
        self._flush_list()
        self._flush_table()

    def _flush_list(self) -> None:
        if self._list_items:
            self._draft().blocks.append(ListBlock(tuple(self._list_items)))
            self._list_items = []

    def _flush_table(self) -> None:
        if not self._table_rows:
            return
        rows, self._table_rows = self._table_rows, []
        # first row carrying any text is the header row
        while rows and not any(rows[0]):
            rows = rows[1:]
        if rows:
            body = rows[1:1 + settings.TABLE_MAX_ROWS]
            self._draft().blocks.append(TableBlock(rows[0], tuple(body)))


def extract(raw_text: Union[str, RawExtraction]) -> List[DocumentSection]:
    """
    Split a raw text stream into level-1 sections.

    Content before the first level-1 heading lands in a synthetic
    "Introduction" section, or "Document Content" when the document has
    no level-1 heading at all.  An empty document yields one empty
    "Document Content" section.
    """
    if isinstance(raw_text, RawExtraction):
        raw_text = raw_text.text
    if not isinstance(raw_text, str):
        raise TypeError(f"extract() expects text, got {type(raw_text).__name__}")

    tokens = _tokenize(_isolate_markers(raw_text))
    has_level_one = any(t.kind == "heading" and t.level == 1 for t in tokens)

    builder = _SectionBuilder(INTRODUCTION_HEADING if has_level_one else UNTITLED_HEADING)
    for token in tokens:
        builder.feed(token)
    sections = builder.finish()

    logger.info(
        "extract: %d sections, %d blocks",
        len(sections),
        sum(len(s.blocks) for s in sections),
    )
    return sections
