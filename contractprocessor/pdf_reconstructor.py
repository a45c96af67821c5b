"""
PDF reconstructor.

Re-renders a processed document plus a field-value overlay as a new PDF:

1. For each page, replay text/paragraph/heading elements at their recorded
   position with their recorded font, size, style, color and alignment.
2. Draw every field of that page: background and border, then its value
   (signature image, check mark, text) or a gray placeholder, plus a red
   "*Required" marker when a required field is still empty.
3. Stamp "Page N of TOTAL" on every page and the document id and
   generation date on the last one.

Element y for text is the baseline for PDF sources, matching what the PDF
reader records, and the line top for the synthesized DOCX and text layouts.
A field that cannot be drawn is logged and skipped; it never stops the rest
of the page from rendering.
"""

import base64
import functools
import io
import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

import fitz  # PyMuPDF
from PIL import Image

from .config import settings
from .data_models import TEXT_KINDS, DocumentElement, FieldValue, PageSize, ProcessedDocument, UserField
from .field_values import build_user_fields, has_value

logger = logging.getLogger(__name__)

Color = Tuple[float, float, float]

BLACK: Color = (0, 0, 0)
FIELD_FILL: Color = (245 / 255, 245 / 255, 245 / 255)
FIELD_BORDER: Color = (200 / 255, 200 / 255, 200 / 255)
PLACEHOLDER_GRAY: Color = (150 / 255, 150 / 255, 150 / 255)
FOOTER_GRAY: Color = (128 / 255, 128 / 255, 128 / 255)
REQUIRED_RED: Color = (1, 0, 0)

DEFAULT_FONT_SIZE = 12
FIELD_PADDING = 5
SIGNATURE_INSET = 5
# Measured text may exceed the recorded run width by rounding alone.
WRAP_SLACK = 1.0

# (regular, bold, italic, bold-italic) Base-14 names
_BASE14 = {
    "times": ("tiro", "tibo", "tiit", "tibi"),
    "courier": ("cour", "cobo", "coit", "cobi"),
    "helvetica": ("helv", "hebo", "heit", "hebi"),
    "symbol": ("symb",) * 4,
    "zapfdingbats": ("zadb",) * 4,
}

_TRUTHY = {"true", "on", "yes", "1", "checked", "x"}

# Built-in MuPDF font for CJK text, which the Base-14 fonts have no glyphs for.
FALLBACK_FONT = "china-s"
_CJK = (range(0x2E80, 0xA000), range(0xAC00, 0xD7B0), range(0xF900, 0xFB00), range(0xFF00, 0xFFF0))

# Sources whose element y is the top of the line rather than the baseline.
TOP_ORIGIN_FORMATS = {"docx", "txt"}


# ============================ Coordinates ============================


def to_page_rect(x: float, y: float, width: float = 0, height: float = 0) -> fitz.Rect:
    """
    Map a top-left document box onto the drawing surface.

    MuPDF page space is top-left based as well, so y carries over as is.
    A bottom-left backend would use ``page_height - y - height`` here. This
    is the only place document coordinates become drawing coordinates.
    """
    return fitz.Rect(x, y, x + width, y + height)


# ============================ Text helpers ============================


def base14_font(family: Optional[str], bold: bool = False, italic: bool = False) -> str:
    """Pick the Base-14 font closest to a family string like 'Times New Roman, serif'."""
    family = (family or "").lower().replace(" ", "")
    variants = _BASE14["helvetica"]
    for key, names in _BASE14.items():
        if key in family:
            variants = names
            break
    return variants[(1 if bold else 0) + (2 if italic else 0)]


def hex_to_rgb(color: Optional[str]) -> Color:
    if not color or not color.startswith("#") or len(color) != 7:
        return BLACK
    try:
        return tuple(int(color[i : i + 2], 16) / 255 for i in (1, 3, 5))
    except ValueError:
        return BLACK


def pick_font(text: str, fontname: str) -> str:
    """
    Font able to show ``text``: the requested Base-14 font, or the built-in
    FALLBACK_FONT when the text holds CJK characters.
    """
    if any(ord(ch) in block for ch in text for block in _CJK):
        return FALLBACK_FONT
    return fontname


def needs_unicode_font(text: str) -> bool:
    # simple Base-14 fonts only cover Latin-1
    return any(ord(ch) > 0xFF for ch in text)


@functools.lru_cache(maxsize=None)
def unicode_font(name: str) -> fitz.Font:
    return fitz.Font(name)


def text_width(text: str, fontname: str, fontsize: float) -> float:
    if needs_unicode_font(text):
        return unicode_font(pick_font(text, fontname)).text_length(text, fontsize=fontsize)
    return fitz.get_text_length(text, fontname=fontname, fontsize=fontsize)


def wrap_text(text: str, max_width: float, fontname: str, fontsize: float) -> List[str]:
    """Greedy word wrap; a single over-long word keeps its own line."""
    if max_width <= 0 or text_width(text, fontname, fontsize) <= max_width + WRAP_SLACK:
        return [text]

    lines: List[str] = []
    current = ""
    for word in text.split():
        trial = word if not current else current + " " + word
        if text_width(trial, fontname, fontsize) <= max_width + WRAP_SLACK:
            current = trial
        else:
            if current:
                lines.append(current)
            current = word
    if current:
        lines.append(current)
    return lines


def _aligned_x(x: float, width: float, line_width: float, alignment: Optional[str]) -> float:
    if alignment == "center":
        return x + (width - line_width) / 2
    if alignment == "right":
        return x + width - line_width
    return x


def _insert_line(
    page: fitz.Page, x: float, baseline: float, text: str, fontname: str, fontsize: float, color: Color
) -> None:
    point = to_page_rect(x, baseline).tl
    if not needs_unicode_font(text):
        page.insert_text(point, text, fontsize=fontsize, fontname=fontname, color=color)
        return
    # embedded font with a ToUnicode map, so the text stays extractable
    writer = fitz.TextWriter(page.rect)
    writer.append(point, text, font=unicode_font(pick_font(text, fontname)), fontsize=fontsize)
    writer.write_text(page, color=color)


def draw_text_element(page: fitz.Page, element: DocumentElement, top_origin: bool = False) -> None:
    """
    Draw a text element. With ``top_origin`` the element's y is the top of
    its line and the first baseline sits one font size below it.
    """
    pos = element.position
    fmt = element.formatting
    fontsize = fmt.font_size or DEFAULT_FONT_SIZE
    fontname = base14_font(fmt.font_family, bool(fmt.bold), bool(fmt.italic))
    color = hex_to_rgb(fmt.color)
    line_height = fmt.line_height or fontsize * 1.2

    baseline = pos.y + fontsize if top_origin else pos.y
    for line in wrap_text(element.content, pos.width, fontname, fontsize):
        line_width = text_width(line, fontname, fontsize)
        x = _aligned_x(pos.x, pos.width, line_width, fmt.alignment)
        _insert_line(page, x, baseline, line, fontname, fontsize, color)
        if fmt.underline:
            page.draw_line(
                to_page_rect(x, baseline + 1).tl,
                to_page_rect(x + line_width, baseline + 1).tl,
                color=color,
                width=0.5,
            )
        baseline += line_height


# ============================ Field helpers ============================


def _value_of(entry: Any) -> Any:
    if isinstance(entry, FieldValue):
        return entry.value
    if isinstance(entry, dict):
        return entry.get("value")
    return entry


def is_checked(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY


def decode_image_data_url(value: str) -> bytes:
    """Decode a ``data:image/...;base64,`` URL and normalize it to PNG bytes."""
    _, _, payload = value.partition(",")
    raw = base64.b64decode(payload, validate=True)
    pil = Image.open(io.BytesIO(raw))
    buf = io.BytesIO()
    pil.save(buf, format="PNG")
    return buf.getvalue()


def _draw_signature(page: fitz.Page, field: UserField, value: Any) -> None:
    if not (isinstance(value, str) and value.startswith("data:image")):
        logger.info(f"Signature value for {field.id} is not an image; leaving box empty")
        return
    png_bytes = decode_image_data_url(value)
    box = to_page_rect(
        field.x + SIGNATURE_INSET,
        field.y + SIGNATURE_INSET,
        max(field.width - 2 * SIGNATURE_INSET, 1),
        max(field.height - 2 * SIGNATURE_INSET, 1),
    )
    page.insert_image(box, stream=png_bytes, keep_proportion=True)


def _draw_checkbox(page: fitz.Page, field: UserField, value: Any) -> None:
    if not is_checked(value):
        return
    w, h = field.width, field.height
    points = [
        to_page_rect(field.x + 0.2 * w, field.y + 0.55 * h).tl,
        to_page_rect(field.x + 0.42 * w, field.y + 0.78 * h).tl,
        to_page_rect(field.x + 0.8 * w, field.y + 0.25 * h).tl,
    ]
    page.draw_polyline(points, color=BLACK, width=max(1.0, min(w, h) / 10))


def _draw_aligned_value(page: fitz.Page, field: UserField, value: Any) -> None:
    fontsize = float(field.metadata.get("fontSize") or DEFAULT_FONT_SIZE)
    alignment = field.metadata.get("textAlign") or "left"
    inner_width = field.width - 2 * FIELD_PADDING

    baseline = field.y + field.height / 2 + fontsize / 3
    for line in wrap_text(str(value), inner_width, "helv", fontsize):
        line_width = text_width(line, "helv", fontsize)
        x = _aligned_x(field.x + FIELD_PADDING, inner_width, line_width, alignment)
        _insert_line(page, x, baseline, line, "helv", fontsize, BLACK)
        baseline += fontsize * 1.2


def _draw_dropdown_value(page: fitz.Page, field: UserField, value: Any) -> None:
    fontsize = float(field.metadata.get("fontSize") or DEFAULT_FONT_SIZE)
    baseline = field.y + field.height / 2 + fontsize / 3
    _insert_line(page, field.x + FIELD_PADDING, baseline, str(value), "helv", fontsize, BLACK)


def _draw_raw_value(page: fitz.Page, field: UserField, value: Any) -> None:
    baseline = field.y + field.height / 2 + 4
    _insert_line(page, field.x + FIELD_PADDING, baseline, str(value), "helv", DEFAULT_FONT_SIZE, BLACK)


FIELD_RENDERERS: Dict[str, Callable[[fitz.Page, UserField, Any], None]] = {
    "signature": _draw_signature,
    "checkbox": _draw_checkbox,
    "date": _draw_aligned_value,
    "text": _draw_aligned_value,
    "email": _draw_aligned_value,
    "name": _draw_aligned_value,
    "number": _draw_aligned_value,
    "dropdown": _draw_dropdown_value,
    "radio": _draw_raw_value,
    "initial": _draw_raw_value,
}


def draw_field(page: fitz.Page, field: UserField, value: Any) -> bool:
    """Draw one field; returns False when it was skipped."""
    renderer = FIELD_RENDERERS.get(field.field_type)
    if renderer is None:
        logger.warning(f"Skipping field {field.id}: unsupported field type {field.field_type!r}")
        return False

    box = to_page_rect(field.x, field.y, field.width, field.height)
    page.draw_rect(box, color=None, fill=FIELD_FILL)
    page.draw_rect(box, color=FIELD_BORDER, width=0.5)

    placeholder = field.metadata.get("placeholder")
    if has_value(value):
        try:
            renderer(page, field, value)
        except Exception as e:
            logger.error(f"Error drawing value of field {field.id} ({field.field_type}): {e}")
    elif placeholder:
        _insert_line(
            page,
            field.x + FIELD_PADDING,
            field.y + field.height / 2 + 3,
            str(placeholder),
            "helv",
            10,
            PLACEHOLDER_GRAY,
        )

    if field.metadata.get("required") and not has_value(value):
        _insert_line(page, field.x, field.y - 2, "*Required", "helv", 8, REQUIRED_RED)
    return True


# ============================ Footer ============================


def _centered(page: fitz.Page, center_x: float, baseline: float, text: str, fontsize: float) -> None:
    x = center_x - text_width(text, "helv", fontsize) / 2
    _insert_line(page, x, baseline, text, "helv", fontsize, FOOTER_GRAY)


def stamp_footer(doc: fitz.Document, page_size: PageSize, document_id: str, generated_at: datetime) -> None:
    total = doc.page_count
    for index, page in enumerate(doc, start=1):
        _centered(page, page_size.width / 2, page_size.height - 20, f"Page {index} of {total}", 10)
        if index == total:
            stamp = generated_at.strftime(settings.FOOTER_DATE_FORMAT)
            _centered(
                page,
                page_size.width / 2,
                page_size.height - 10,
                f"Document ID: {document_id} | Generated: {stamp}",
                8,
            )


# ============================ Entry points ============================


def uses_top_origin(source_format: Optional[str]) -> bool:
    return source_format in TOP_ORIGIN_FORMATS


def render_document(
    elements: Iterable[DocumentElement],
    user_fields: Iterable[UserField],
    field_values: Mapping[str, Any],
    page_size: PageSize,
    page_count: int,
    document_id: Optional[str] = None,
    generated_at: Optional[datetime] = None,
    top_origin: bool = False,
) -> bytes:
    """
    Render elements and fields into new PDF bytes.

    ``field_values`` maps field ids to FieldValue objects (or raw values).
    ``top_origin`` says text element y is the line top (synthesized DOCX and
    text layouts) instead of the baseline. Inputs are not modified.
    """
    elements = list(elements)
    user_fields = list(user_fields)
    document_id = document_id or uuid.uuid4().hex
    generated_at = generated_at or datetime.now()
    page_count = max(1, int(page_count))

    doc = fitz.open()
    try:
        for page_num in range(1, page_count + 1):
            page = doc.new_page(width=page_size.width, height=page_size.height)

            for element in elements:
                pos = element.position
                if pos is None or pos.page != page_num:
                    continue
                if element.kind in TEXT_KINDS and element.content.strip():
                    draw_text_element(page, element, top_origin)

            drawn = 0
            for field in user_fields:
                if field.page != page_num:
                    continue
                if draw_field(page, field, _value_of(field_values.get(field.id))):
                    drawn += 1
            logger.debug(f"Page {page_num}: drew {drawn} field(s)")

        stamp_footer(doc, page_size, document_id, generated_at)
        pdf_bytes = doc.tobytes(garbage=3, deflate=True)
    finally:
        doc.close()

    logger.info(f"Rendered {page_count} page(s), {len(pdf_bytes)} bytes for document {document_id}")
    return pdf_bytes


def render_processed_document(
    document: ProcessedDocument,
    field_values: Optional[Mapping[str, Any]] = None,
    user_fields: Optional[List[UserField]] = None,
    document_id: Optional[str] = None,
    generated_at: Optional[datetime] = None,
) -> bytes:
    """Render a processed document, deriving field definitions from its fields if none are given."""
    if user_fields is None:
        user_fields = build_user_fields(document)
    return render_document(
        document.elements,
        user_fields,
        field_values or {},
        document.page_size,
        document.page_count,
        document_id=document_id,
        generated_at=generated_at,
        top_origin=uses_top_origin(document.source_format),
    )
