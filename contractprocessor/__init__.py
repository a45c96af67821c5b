"""
Contract document ingestion: positioned elements, fill-in field detection and
PDF reconstruction with field values.
"""

from .data_models import ProcessedDocument, UploadedFile
from .exceptions import DocumentProcessingError, MalformedSource, UnsupportedFormat
from .pdf_reconstructor import render_document, render_processed_document
from .routing import process_document

__all__ = [
    "DocumentProcessingError",
    "MalformedSource",
    "ProcessedDocument",
    "UnsupportedFormat",
    "UploadedFile",
    "process_document",
    "render_document",
    "render_processed_document",
]
