"""
Error types raised while ingesting uploaded documents.
"""

from __future__ import annotations


class DocumentProcessingError(Exception):
    """Base class for ingestion failures."""


class UnsupportedFormat(DocumentProcessingError, ValueError):
    """The declared content type is not one we can read."""

    def __init__(self, content_type: str):
        self.content_type = content_type
        super().__init__(f"Unsupported file type: {content_type!r}")


class MalformedSource(DocumentProcessingError):
    """The format library could not parse the byte stream."""
