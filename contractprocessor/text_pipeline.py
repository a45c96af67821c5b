"""
Plain text reader: every line of the file is laid out on the synthesized
page with the same field detection as the other readers.
"""

from __future__ import annotations

import logging
import re

from .data_models import DocumentMetadata, ReaderResult
from .exceptions import MalformedSource
from .layout import SYNTHETIC_PAGE_SIZE, last_page, layout_plain_lines

logger = logging.getLogger(__name__)

_NEWLINE_RE = re.compile(r"\r?\n")


def decode_text(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise MalformedSource(f"Text file is not valid UTF-8: {exc}") from exc


def read_text(data: bytes) -> ReaderResult:
    lines = _NEWLINE_RE.split(decode_text(data))
    elements = layout_plain_lines(lines)
    page_count = last_page(elements)

    logger.info(f"Laid out {len(elements)} elements from {len(lines)} lines over {page_count} page(s)")
    return ReaderResult(
        elements=elements,
        page_count=page_count,
        page_size=SYNTHETIC_PAGE_SIZE,
        metadata=DocumentMetadata(),
    )
