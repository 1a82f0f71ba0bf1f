"""
Exception types raised by the content pipeline.

Only the upload errors and DocumentFormatError are expected to reach an
HTTP caller; the other types are either recovered locally (EnhancementError) or mark states the
pipeline guards against (EmptyKnowledgeError).
"""
from __future__ import annotations


class PagecraftError(Exception):
    """Base class for all pipeline errors."""


class DocumentFormatError(PagecraftError):
    """The uploaded bytes are not a readable Word document."""


class UnsupportedUploadError(PagecraftError):
    """The upload has no filename or a file type the reader does not accept."""


class UploadTooLargeError(PagecraftError):
    """The upload exceeds MAX_FILE_SIZE."""


class EnhancementError(PagecraftError):
    """The enhancement provider failed (timeout, transport, bad response)."""


class EmptyKnowledgeError(PagecraftError):
    """An enabled UI section would be rendered without any content."""


class TemplateNotFoundError(PagecraftError, KeyError):
    """No template is registered under the requested id."""

    def __init__(self, template_id: str) -> None:
        super().__init__(template_id)
        self.template_id = template_id

    def __str__(self) -> str:
        return f"Invalid template ID: {self.template_id!r}"
