"""
Decide whether a text run is entirely a field or literal text with an
embedded blank, and cut mixed runs into ordered segments.
"""

from __future__ import annotations

import re
from typing import List

from .data_models import FieldMatch, Segment

_LABEL_RE = re.compile(r"^[A-Za-z\s]+:?\s*$")

# Field types that own the whole run when they open it ("☐ I agree ...").
_LEADING_FIELD_TYPES = {"checkbox", "initial"}


def is_complete_field(text: str, match: FieldMatch) -> bool:
    matched = text[match.match_start : match.match_end]
    if matched.strip() == text.strip():
        return True

    if match.field_type in _LEADING_FIELD_TYPES and match.match_start == 0:
        return True

    before = text[: match.match_start].strip()
    after = text[match.match_end :].strip()

    # "Name: ____" keeps its label as text
    if before and _LABEL_RE.match(before) and not after:
        return False

    return not before and not after


def split_by_field(text: str, match: FieldMatch) -> List[Segment]:
    """
    Split ``text`` around the match: text before (if any), the field itself,
    text after (if any). Character order is preserved.
    """
    parts: List[Segment] = []

    before = text[: match.match_start]
    if before:
        parts.append(Segment(text=before, is_field=False))

    parts.append(Segment(text=text[match.match_start : match.match_end], is_field=True))

    after = text[match.match_end :]
    if after:
        parts.append(Segment(text=after, is_field=False))

    return parts
