"""
Shared element builders and the synthesized page layout used for sources
that carry no geometry of their own (DOCX, plain text).

The synthesized page is 816 x 1056 user-space units with 72-unit margins.
A cursor walks down the page and wraps to a new page when the next line
would cross the bottom margin.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .data_models import (
    DocumentElement,
    FieldMatch,
    FieldMetadata,
    Formatting,
    PageSize,
    Position,
)
from .field_patterns import detect_field, estimate_text_width
from .field_splitter import is_complete_field, split_by_field

PAGE_WIDTH = 816
PAGE_HEIGHT = 1056
MARGIN = 72
DEFAULT_FONT_SIZE = 12
LINE_HEIGHT_RATIO = 1.5
# Gap left between a field and the text that follows it on a synthesized line.
FIELD_GAP = 5

SYNTHETIC_PAGE_SIZE = PageSize(width=PAGE_WIDTH, height=PAGE_HEIGHT)

# (width, height) of the box drawn for a detected field
FIELD_BOXES = {
    "signature": (250, 80),
    "date": (120, 30),
    "checkbox": (20, 20),
    "initial": (80, 40),
}
DEFAULT_FIELD_BOX = (200, 30)


def field_box(field_type: str) -> Tuple[int, int]:
    return FIELD_BOXES.get(field_type, DEFAULT_FIELD_BOX)


def make_field_element(
    match: FieldMatch,
    x: float,
    y: float,
    page: int,
    formatting: Formatting,
    original_text: Optional[str] = None,
) -> DocumentElement:
    width, height = field_box(match.field_type)
    return DocumentElement(
        kind="field",
        content="",
        formatting=formatting,
        position=Position(x=x, y=y, width=width, height=height, page=page),
        field_metadata=FieldMetadata(
            field_type=match.field_type,
            field_name=match.field_name,
            required=match.required,
            placeholder=match.placeholder or match.field_name,
            original_text=original_text,
        ),
    )


@dataclass
class PageCursor:
    """Running position on the synthesized page."""

    page: int = 1
    y: float = MARGIN

    def ensure_room(self, line_height: float) -> None:
        if self.y + line_height > PAGE_HEIGHT - MARGIN:
            self.page += 1
            self.y = MARGIN

    def advance(self, dy: float) -> None:
        self.y += dy


def layout_line(
    text: str,
    cursor: PageCursor,
    font_size: float,
    line_height: float,
    kind: str,
    text_formatting: Callable[[], Formatting],
    field_formatting: Callable[[], Formatting],
) -> List[DocumentElement]:
    """
    Turn one block of text into elements at the cursor's current line.

    Complete fields sit at the left margin. Mixed runs are laid out left to
    right from the margin: text segments advance by their estimated width,
    fields by their box width plus FIELD_GAP. Plain text spans the full
    content width.
    """
    match = detect_field(text)

    if match is None:
        return [
            DocumentElement(
                kind=kind,
                content=text,
                formatting=text_formatting(),
                position=Position(
                    x=MARGIN,
                    y=cursor.y,
                    width=PAGE_WIDTH - 2 * MARGIN,
                    height=line_height,
                    page=cursor.page,
                ),
            )
        ]

    if is_complete_field(text, match):
        return [
            make_field_element(
                match, MARGIN, cursor.y, cursor.page, field_formatting(), original_text=text
            )
        ]

    elements: List[DocumentElement] = []
    x = float(MARGIN)
    for part in split_by_field(text, match):
        if part.is_field:
            elements.append(
                make_field_element(
                    match, x, cursor.y, cursor.page, field_formatting(), original_text=part.text
                )
            )
            x += field_box(match.field_type)[0] + FIELD_GAP
        elif part.text.strip():
            width = estimate_text_width(part.text, font_size)
            elements.append(
                DocumentElement(
                    kind=kind,
                    content=part.text,
                    formatting=text_formatting(),
                    position=Position(
                        x=x, y=cursor.y, width=width, height=line_height, page=cursor.page
                    ),
                )
            )
            x += width

    return elements


def layout_plain_lines(lines: List[str], skip_blank_lines: bool = False) -> List[DocumentElement]:
    """
    Line-oriented layout: one paragraph element per line at 12 units.

    Blank lines advance the cursor by half a line unless ``skip_blank_lines``
    drops them altogether.
    """
    font_size = DEFAULT_FONT_SIZE
    line_height = font_size * LINE_HEIGHT_RATIO
    cursor = PageCursor()
    elements: List[DocumentElement] = []

    for line in lines:
        if not line.strip():
            if skip_blank_lines:
                continue
            cursor.ensure_room(line_height)
            cursor.advance(line_height / 2)
            continue

        cursor.ensure_room(line_height)
        elements.extend(
            layout_line(
                line,
                cursor,
                font_size,
                line_height,
                "paragraph",
                text_formatting=lambda: Formatting(font_size=font_size, font_family="Arial"),
                field_formatting=lambda: Formatting(font_size=font_size, font_family="Arial"),
            )
        )
        cursor.advance(line_height)

    return elements


def last_page(elements: List[DocumentElement]) -> int:
    pages = [el.position.page for el in elements if el.position is not None]
    return max(pages) if pages else 1
