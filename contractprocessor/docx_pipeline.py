"""
DOCX reader.

python-docx gives us the body in document order. Each block is tagged the
way an HTML conversion would tag it (p, h1-h6, li, td) and laid out on the
synthesized 816 x 1056 page, running field detection per block.

Line mode (settings.DOCX_LAYOUT_MODE == "lines") ignores block structure:
every non-blank line of text becomes a plain paragraph.
"""

from __future__ import annotations

import io
import logging
import re
from typing import Iterator, List, Optional, Tuple

from docx import Document
from docx.table import Table
from docx.text.paragraph import Paragraph

from .config import settings
from .data_models import DocumentElement, DocumentMetadata, Formatting, ReaderResult
from .exceptions import MalformedSource
from .layout import (
    DEFAULT_FONT_SIZE,
    LINE_HEIGHT_RATIO,
    SYNTHETIC_PAGE_SIZE,
    PageCursor,
    last_page,
    layout_line,
    layout_plain_lines,
)

logger = logging.getLogger(__name__)

HEADING_SIZES = {"h1": 24, "h2": 20, "h3": 18, "h4": 16, "h5": 14, "h6": 13}
PARAGRAPH_SPACING = 12
BLOCK_SPACING = 6

Block = Tuple[str, str]  # (tag, text)

_HEADING_STYLE_RE = re.compile(r"^heading\s*([1-6])$", re.IGNORECASE)


# ============================ Block walk ============================


def _paragraph_tag(par: Paragraph) -> str:
    style = (par.style.name if par.style is not None else "") or ""
    m = _HEADING_STYLE_RE.match(style.strip())
    if m:
        return f"h{m.group(1)}"
    if style.strip().lower() == "title":
        return "h1"

    p_pr = par._p.pPr
    if style.lower().startswith("list") or (p_pr is not None and p_pr.numPr is not None):
        return "li"
    return "p"


def _table_blocks(table: Table) -> Iterator[Block]:
    seen = set()
    for row in table.rows:
        for cell in row.cells:
            # merged cells come back once per grid column
            if id(cell._tc) in seen:
                continue
            seen.add(id(cell._tc))
            for item in cell.iter_inner_content():
                if isinstance(item, Table):
                    yield from _table_blocks(item)
                else:
                    yield "td", item.text


def iter_blocks(doc) -> Iterator[Block]:
    """Yield (tag, text) for every paragraph and table cell in body order."""
    for item in doc.iter_inner_content():
        if isinstance(item, Paragraph):
            yield _paragraph_tag(item), item.text
        elif isinstance(item, Table):
            yield from _table_blocks(item)


def heading_size(tag: str) -> int:
    return HEADING_SIZES.get(tag, DEFAULT_FONT_SIZE)


# ============================ Layout ============================


def layout_blocks(blocks: List[Block]) -> List[DocumentElement]:
    cursor = PageCursor()
    elements: List[DocumentElement] = []

    for tag, raw_text in blocks:
        # soft line breaks come through as "\n"; each one starts a new line
        lines = [line.strip() for line in raw_text.split("\n") if line.strip()]
        if not lines:
            continue

        is_heading = tag in HEADING_SIZES
        font_size = heading_size(tag)
        line_height = font_size * LINE_HEIGHT_RATIO

        for text in lines:
            cursor.ensure_room(line_height)
            elements.extend(
                layout_line(
                    text,
                    cursor,
                    font_size,
                    line_height,
                    "heading" if is_heading else "paragraph",
                    text_formatting=lambda: Formatting(
                        font_size=font_size, font_family="Arial", bold=is_heading, alignment="left"
                    ),
                    field_formatting=lambda: Formatting(font_size=font_size),
                )
            )
            cursor.advance(line_height)

        cursor.advance(PARAGRAPH_SPACING if tag == "p" else BLOCK_SPACING)

    return elements


def _block_lines(blocks: List[Block]) -> List[str]:
    lines: List[str] = []
    for _, text in blocks:
        lines.extend(text.split("\n"))
    return lines


def _core_metadata(doc) -> DocumentMetadata:
    props = doc.core_properties
    return DocumentMetadata(
        title=props.title or None,
        author=props.author or None,
        created_date=props.created,
    )


def read_docx(data: bytes, mode: Optional[str] = None) -> ReaderResult:
    mode = (mode or settings.DOCX_LAYOUT_MODE).lower()

    try:
        doc = Document(io.BytesIO(data))
        blocks = list(iter_blocks(doc))
    except Exception as exc:
        raise MalformedSource(f"Failed to parse DOCX document: {exc}") from exc

    if mode == "lines":
        elements = layout_plain_lines(_block_lines(blocks), skip_blank_lines=True)
    else:
        elements = layout_blocks(blocks)

    page_count = last_page(elements)
    logger.info(
        f"Laid out {len(elements)} elements from {len(blocks)} DOCX blocks "
        f"over {page_count} page(s) ({mode} mode)"
    )
    return ReaderResult(
        elements=elements,
        page_count=page_count,
        page_size=SYNTHETIC_PAGE_SIZE,
        metadata=_core_metadata(doc),
    )
