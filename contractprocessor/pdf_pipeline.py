"""
PDF reader.

Walks the text layer of every page with PyMuPDF and emits one element per
text span, keeping the span's exact position. Spans containing a fill-in
pattern become field elements (plus literal text for mixed runs).

Coordinates: PyMuPDF page space is already top-left based, and a span's
``origin`` is its baseline point, i.e. ``(transform[4], pageHeight -
transform[5])`` in PDF terms. We keep that baseline as the element's y.

If the text layer cannot be read we fall back to a degraded pdfplumber pass
that only reports page count, page size and document info.
"""

from __future__ import annotations

import io
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import fitz  # PyMuPDF
import pdfplumber

from .data_models import (
    DocumentElement,
    DocumentMetadata,
    Formatting,
    PageSize,
    Position,
    ReaderResult,
)
from .exceptions import MalformedSource
from .field_patterns import detect_field, estimate_text_width, offset_for
from .field_splitter import is_complete_field, split_by_field
from .layout import field_box, make_field_element

logger = logging.getLogger(__name__)

LINE_HEIGHT_RATIO = 1.2

FONT_FAMILIES = (
    ("Times", "Times New Roman, serif"),
    ("Helvetica", "Helvetica, Arial, sans-serif"),
    ("Courier", "Courier New, monospace"),
    ("Symbol", "Symbol"),
    ("ZapfDingbats", "ZapfDingbats"),
)
DEFAULT_FONT_FAMILY = "Arial, sans-serif"


# ============================ Span helpers ============================


def font_family(font_name: Optional[str]) -> str:
    """Map an embedded font name ("ABCDEF+Times-Bold") to a family string."""
    if not font_name:
        return DEFAULT_FONT_FAMILY
    for key, family in FONT_FAMILIES:
        if key in font_name:
            return family
    return DEFAULT_FONT_FAMILY


def _color_hex(color: Any) -> str:
    if isinstance(color, int):
        return f"#{color & 0xFFFFFF:06x}"
    return "#000000"


def _text_formatting(span: Dict[str, Any], font_size: float) -> Formatting:
    name = (span.get("font") or "").lower()
    return Formatting(
        font_size=font_size,
        font_family=font_family(span.get("font")),
        bold="bold" in name,
        italic="italic" in name,
        color=_color_hex(span.get("color")),
    )


def _span_elements(span: Dict[str, Any], page_num: int) -> List[DocumentElement]:
    """
    Build elements for one span.

    span items look like:
        {"text", "size", "font", "flags", "color", "origin": (x, y), "bbox"}
    """
    text: str = span.get("text", "")
    font_size = abs(float(span.get("size") or 0))
    x, y = span["origin"]
    x0, _, x1, _ = span["bbox"]

    width = (x1 - x0) if x1 > x0 else estimate_text_width(text, font_size)
    height = font_size * LINE_HEIGHT_RATIO

    match = detect_field(text)
    if match is None:
        return [
            DocumentElement(
                kind="text",
                content=text,
                formatting=_text_formatting(span, font_size),
                position=Position(x=x, y=y, width=width, height=height, page=page_num),
            )
        ]

    def field_formatting() -> Formatting:
        return Formatting(font_size=font_size, font_family=font_family(span.get("font")))

    if is_complete_field(text, match):
        return [
            make_field_element(
                match,
                x + offset_for(match, font_size),
                y,
                page_num,
                field_formatting(),
                original_text=text,
            )
        ]

    # Mixed run: walk segments left to right with a running x cursor
    elements: List[DocumentElement] = []
    current_x = x
    for part in split_by_field(text, match):
        if part.is_field:
            elements.append(
                make_field_element(
                    match, current_x, y, page_num, field_formatting(), original_text=part.text
                )
            )
            current_x += field_box(match.field_type)[0]
        elif part.text.strip():
            part_width = estimate_text_width(part.text, font_size)
            elements.append(
                DocumentElement(
                    kind="text",
                    content=part.text,
                    formatting=_text_formatting(span, font_size),
                    position=Position(
                        x=current_x, y=y, width=part_width, height=height, page=page_num
                    ),
                )
            )
            current_x += part_width

    return elements


def _extract_page_elements(page: fitz.Page, page_num: int) -> List[DocumentElement]:
    """All non-blank spans of a page, in content-stream order."""
    elements: List[DocumentElement] = []
    d = page.get_text("dict")
    for block in d.get("blocks", []):
        if block.get("type") != 0:
            continue  # only text blocks
        for line in block.get("lines", []):
            for span in line.get("spans", []):
                if not span.get("text", "").strip():
                    continue
                elements.extend(_span_elements(span, page_num))
    return elements


# ============================ Metadata ============================


def parse_pdf_date(value: Optional[str]) -> Optional[datetime]:
    """Parse a PDF date string such as ``D:20240131120000+01'00'``."""
    if not value:
        return None
    raw = value[2:] if value.startswith("D:") else value
    digits = "".join(ch for ch in raw[:14] if ch.isdigit())
    for fmt, size in (("%Y%m%d%H%M%S", 14), ("%Y%m%d%H%M", 12), ("%Y%m%d", 8), ("%Y", 4)):
        if len(digits) >= size:
            try:
                parsed = datetime.strptime(digits[:size], fmt)
            except ValueError:
                continue
            if raw[14:15] == "Z":
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed
    return None


def _info_text(value: Any) -> Optional[str]:
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    if value is None:
        return None
    return str(value).strip() or None


def _metadata(
    info: Optional[Dict[str, Any]], title_key: str, author_key: str, date_key: str
) -> DocumentMetadata:
    info = info or {}
    return DocumentMetadata(
        title=_info_text(info.get(title_key)),
        author=_info_text(info.get(author_key)),
        created_date=parse_pdf_date(_info_text(info.get(date_key))),
    )


# ============================ Readers ============================


def read_pdf(data: bytes) -> ReaderResult:
    """
    Read a PDF byte stream into positioned elements.

    Pages are read strictly one after another. Any failure in the text
    layer switches to :func:`read_pdf_degraded`, which returns an empty
    element list.
    """
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as exc:
        logger.warning(f"PyMuPDF could not open PDF ({exc}); using degraded reader")
        return read_pdf_degraded(data)

    try:
        if doc.page_count == 0:
            raise ValueError("PDF has no pages")

        # spans come back in unrotated page space
        first = doc[0].cropbox
        page_size = PageSize(width=first.width, height=first.height)

        elements: List[DocumentElement] = []
        for idx, page in enumerate(doc):
            elements.extend(_extract_page_elements(page, idx + 1))

        logger.info(f"Read {len(elements)} elements from {doc.page_count} PDF page(s)")
        return ReaderResult(
            elements=elements,
            page_count=doc.page_count,
            page_size=page_size,
            metadata=_metadata(doc.metadata, "title", "author", "creationDate"),
        )
    except Exception as exc:
        logger.warning(f"PDF text extraction failed ({exc}); using degraded reader")
        return read_pdf_degraded(data)
    finally:
        doc.close()


def read_pdf_degraded(data: bytes) -> ReaderResult:
    """Page count, first-page size and document info only; no elements."""
    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            if not pdf.pages:
                raise MalformedSource("PDF has no pages")
            first = pdf.pages[0]
            result = ReaderResult(
                elements=[],
                page_count=len(pdf.pages),
                page_size=PageSize(width=float(first.width), height=float(first.height)),
                metadata=_metadata(pdf.metadata, "Title", "Author", "CreationDate"),
            )
    except MalformedSource:
        raise
    except Exception as exc:
        logger.error(f"Error processing PDF with pdfplumber: {exc}")
        raise MalformedSource("Failed to process PDF document") from exc

    logger.info(f"Degraded PDF read: {result.page_count} page(s), no text layer")
    return result
