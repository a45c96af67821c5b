"""Routing helpers for document ingestion.

This module exposes the single entry point used by the rest of the
application to turn an uploaded file into a ProcessedDocument: detect the
source format from the declared MIME type and dispatch to the matching
reader. It keeps no state between calls and has no side effects on import.
"""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import Callable, Dict, Optional

from .config import settings
from .data_models import (
    DOCX_MIME,
    PDF_MIME,
    TEXT_MIME,
    ProcessedDocument,
    ReaderResult,
    SourceFormat,
    UploadedFile,
)
from .docx_pipeline import read_docx
from .exceptions import DocumentProcessingError, UnsupportedFormat
from .pdf_pipeline import read_pdf
from .text_pipeline import read_text

logger = logging.getLogger(__name__)

SOURCE_FORMATS: Dict[str, SourceFormat] = {
    PDF_MIME: "pdf",
    DOCX_MIME: "docx",
    TEXT_MIME: "txt",
}

READERS: Dict[SourceFormat, Callable[[bytes], ReaderResult]] = {
    "pdf": read_pdf,
    "docx": read_docx,
    "txt": read_text,
}


# ---------------------------------------------------------------------------
# Detection helpers
# ---------------------------------------------------------------------------


def _base_type(content_type: Optional[str]) -> str:
    # "text/plain; charset=utf-8" -> "text/plain"
    return (content_type or "").split(";", 1)[0].strip().lower()


def detect_source_format(content_type: Optional[str]) -> SourceFormat:
    """Map a declared MIME type to 'pdf' / 'docx' / 'txt'."""
    kind = SOURCE_FORMATS.get(_base_type(content_type))
    if kind is None:
        raise UnsupportedFormat(content_type or "")
    return kind


def is_supported(content_type: Optional[str]) -> bool:
    return _base_type(content_type) in SOURCE_FORMATS


def load_upload(path: str | Path, content_type: Optional[str] = None) -> UploadedFile:
    """Read a file from disk, guessing its MIME type from the extension."""
    path = Path(path)
    if content_type is None:
        content_type, _ = mimetypes.guess_type(path.name)
    return UploadedFile(name=path.name, content_type=content_type or "", data=path.read_bytes())


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


def process_document(upload: UploadedFile) -> ProcessedDocument:
    """
    High-level entry point:

        - Detect the source format (pdf / docx / txt) from the MIME type
        - Run the matching reader
        - Wrap its output into a ProcessedDocument, defaulting the title
          to the file name

    Unsupported types fail before any bytes are parsed.
    """
    source_format = detect_source_format(upload.content_type)

    max_bytes = settings.MAX_UPLOAD_MB * 1024 * 1024
    if len(upload.data) > max_bytes:
        raise DocumentProcessingError(
            f"{upload.name!r} is {len(upload.data)} bytes, limit is {max_bytes}"
        )

    logger.info(f"Processing {upload.name!r} as {source_format} ({len(upload.data)} bytes)")
    result = READERS[source_format](upload.data)

    metadata = result.metadata
    if not metadata.title:
        metadata.title = upload.name

    return ProcessedDocument(
        elements=result.elements,
        page_count=max(1, result.page_count),
        source_format=source_format,
        page_size=result.page_size,
        metadata=metadata,
    )
