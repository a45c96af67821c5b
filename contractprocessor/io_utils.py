"""
Helper functions for llm_fields.py and the views.
Assemble the reading-order text of a processed document.
"""

from __future__ import annotations

from typing import Dict, List

from .data_models import DocumentElement, ProcessedDocument

# Elements whose baselines differ by less than this share a line.
LINE_TOLERANCE = 2.0


def assemble_text_lines(elements: List[DocumentElement]) -> List[str]:
    """
    Assemble positioned elements of one page into text lines, preserving
    spatial order.

    Elements are grouped by y (within LINE_TOLERANCE), lines are sorted top
    to bottom and the pieces of each line left to right. Fields are written
    as their original text, or "____" when that is unknown.
    """
    positioned = [el for el in elements if el.position is not None]
    if not positioned:
        return []

    rows: List[List[DocumentElement]] = []
    for el in sorted(positioned, key=lambda e: (e.position.y, e.position.x)):
        if rows and abs(rows[-1][0].position.y - el.position.y) <= LINE_TOLERANCE:
            rows[-1].append(el)
        else:
            rows.append([el])

    lines: List[str] = []
    for row in rows:
        pieces = []
        for el in sorted(row, key=lambda e: e.position.x):
            if el.is_field:
                meta = el.field_metadata
                pieces.append((meta.original_text if meta else None) or "____")
            elif el.content.strip():
                pieces.append(el.content.strip())
        line_text = " ".join(pieces)
        if line_text.strip():
            lines.append(line_text.strip())

    return lines


def document_text(document: ProcessedDocument) -> str:
    """
    Build marked text for the whole document.

    Text format example:
        --- Page 1 ---
        Some text line
        Name: ____________

        --- Page 2 ---
        ...
    """
    by_page: Dict[int, List[DocumentElement]] = {}
    for el in document.elements:
        if el.position is not None:
            by_page.setdefault(el.position.page, []).append(el)

    lines: List[str] = []
    for page in range(1, document.page_count + 1):
        lines.append(f"--- Page {page} ---")
        lines.extend(assemble_text_lines(by_page.get(page, [])))
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"
