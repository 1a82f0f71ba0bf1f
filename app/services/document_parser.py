"""
Word document reader: the structure source of the content pipeline.

Turns DOCX bytes into a marker-annotated text stream (RawExtraction) that
the structure extractor understands:

    #HEADING1# Title text      heading at the declared level (1-3)
    #LIST# item text           one list item
    #TABLE# cell | cell | cell one table row, header row first
    plain line                 body paragraph

The reader is best-effort: problems with individual tables or paragraphs
are recorded as warnings and extraction continues.  Only a container that
python-docx cannot open at all raises DocumentFormatError.
"""
from __future__ import annotations

import asyncio
import io
import logging
from pathlib import Path
from typing import Dict, List, Optional

from docx import Document as DocxDocument
from docx.oxml.ns import qn
from docx.table import Table
from docx.text.paragraph import Paragraph

from app.config import settings
from app.models.content import RawExtraction
from app.services.errors import (
    DocumentFormatError,
    UnsupportedUploadError,
    UploadTooLargeError,
)
from app.utils.helpers import normalize_text

logger = logging.getLogger(__name__)

HEADING_STYLES: Dict[str, int] = {
    "title": 1,
    "heading 1": 1,
    "subtitle": 2,
    "heading 2": 2,
    "heading 3": 3,
    "heading 4": 3,
    "heading 5": 3,
    "heading 6": 3,
}

HEADING_MARKER = "#HEADING{level}#"
LIST_MARKER = "#LIST#"
TABLE_MARKER = "#TABLE#"
CELL_SEPARATOR = " | "

_P_TAG = qn("w:p")
_TBL_TAG = qn("w:tbl")


# ---------------------------------------------------------------------------
# Upload validation
# ---------------------------------------------------------------------------

def validate_upload(filename: Optional[str], size: int) -> str:
    """
    Check an uploaded file's name and size before reading it.

    Returns:
        The lower-cased file extension (e.g. ".docx").

    Raises:
        UnsupportedUploadError: missing filename or unsupported extension.
        UploadTooLargeError: file larger than MAX_FILE_SIZE.
    """
    if not filename:
        raise UnsupportedUploadError("Upload must include a filename.")
    ext = Path(filename).suffix.lower()
    if ext not in settings.SUPPORTED_FILE_TYPES:
        raise UnsupportedUploadError(
            f"Unsupported file type '{ext}'. "
            f"Accepted: {', '.join(settings.SUPPORTED_FILE_TYPES)}"
        )
    if size > settings.MAX_FILE_SIZE:
        raise UploadTooLargeError(
            f"File exceeds the {settings.MAX_FILE_SIZE // (1024 * 1024)} MB size limit."
        )
    return ext


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def extract_raw_structured_text(file_bytes: bytes) -> RawExtraction:
    """
    Read DOCX bytes and return text interleaved with level markers.

    Raises:
        DocumentFormatError: empty input or an unreadable container.
    """
    if not file_bytes:
        raise DocumentFormatError("Invalid file: empty or corrupted")

    try:
        doc = DocxDocument(io.BytesIO(file_bytes))
    except Exception as exc:
        raise DocumentFormatError(f"Cannot open DOCX file: {exc}") from exc

    lines: List[str] = []
    warnings: List[str] = []

    for index, child in enumerate(doc.element.body.iterchildren()):
        if child.tag == _P_TAG:
            try:
                line = _paragraph_line(Paragraph(child, doc))
            except Exception as exc:
                warnings.append(f"Skipped paragraph {index}: {exc}")
                logger.warning("Skipped unreadable paragraph %d: %s", index, exc)
                continue
            if line:
                lines.append(line)
        elif child.tag == _TBL_TAG:
            try:
                rows = _table_lines(Table(child, doc))
            except Exception as exc:
                warnings.append(f"Skipped table {index}: {exc}")
                logger.warning("Skipped unreadable table %d: %s", index, exc)
                continue
            if rows:
                # blank line ends the table so adjacent tables stay separate
                lines.extend(rows)
                lines.append("")

    if not lines:
        warnings.append("Document contains no extractable text.")

    logger.info(
        "extract_raw_structured_text: %d lines, %d warnings", len(lines), len(warnings)
    )
    return RawExtraction(text="\n".join(lines), warnings=tuple(warnings))


class DocumentParser:
    """Async facade used by the routers; parsing runs in a worker thread."""

    async def parse_document(self, file_bytes: bytes, filename: str) -> RawExtraction:
        """
        Validate and parse an uploaded Word document.

        Raises:
            UnsupportedUploadError: Unsupported file type.
            UploadTooLargeError:    File too large.
            DocumentFormatError: Unreadable container.
        """
        validate_upload(filename, len(file_bytes))
        return await asyncio.to_thread(extract_raw_structured_text, file_bytes)


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------

def _paragraph_line(para: Paragraph) -> str:
    """Render one paragraph as a (possibly marked) line; empty string to skip."""
    text = normalize_text(para.text)
    if not text:
        return ""

    style_name = para.style.name.lower() if para.style is not None and para.style.name else ""
    level = HEADING_STYLES.get(style_name, 0)
    if level == 0 and _is_implicit_heading(para):
        level = 3
    if level:
        return f"{HEADING_MARKER.format(level=level)} {text}"

    if style_name.startswith("list") or _has_numbering(para):
        return f"{LIST_MARKER} {text}"
    return text


def _table_lines(table: Table) -> List[str]:
    lines: List[str] = []
    for row in table.rows:
        cells = [normalize_text(cell.text).replace("|", "/") for cell in row.cells]
        if any(cells):
            lines.append(f"{TABLE_MARKER} {CELL_SEPARATOR.join(cells)}")
    return lines


def _has_numbering(para: Paragraph) -> bool:
    p_pr = para._p.pPr
    return p_pr is not None and p_pr.numPr is not None


def _is_implicit_heading(para: Paragraph) -> bool:
    """Return True if a DOCX paragraph looks like an unlabelled heading.

    Criteria: short text (≤ 15 words) where every non-whitespace run is bold.
    """
    text = para.text.strip()
    if not text or len(text.split()) > 15:
        return False
    runs_with_text = [r for r in para.runs if r.text.strip()]
    return bool(runs_with_text) and all(r.bold for r in runs_with_text)
