"""
Field pattern matcher.

FIELD_RULES is an ordered table and the first rule that matches a text run
wins, so order encodes priority. Invariant kept by the table layout:

    1. signature   labels / bracket tokens / "X____"
    2. date        labels / bracket tokens / format placeholders
    3. name        labels / bracket tokens
    4. initial     labels / bracket tokens
    5. checkbox    empty pairs and box glyphs
    6. signature   bare underscore run of 10 or more
    7. generic     underscore run of 5 or more
    8. generic     any remaining [token] / {token}

Labeled and bracketed rules always precede the catch-alls in 6-8. Rules that
pair a label with a blank expose the blank as the named group ``blank``; the
match span is then the blank only and the label stays literal text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Pattern, Tuple

from .data_models import FieldMatch

# Rough width of one character in user-space units. Used only when the caller
# has no font size to refine the estimate with.
CHAR_WIDTH_ESTIMATE = 7
# Average glyph advance as a fraction of the font size.
GLYPH_WIDTH_RATIO = 0.5

_REQUIRED_RE = re.compile(r"required", re.IGNORECASE)


@dataclass(frozen=True)
class FieldRule:
    pattern: Pattern[str]
    field_type: str
    category: str
    name: str
    name_from_capture: bool = False


def _rule(regex: str, field_type: str, category: str, name: str, **kw) -> FieldRule:
    return FieldRule(re.compile(regex, re.IGNORECASE), field_type, category, name, **kw)


FIELD_RULES: Tuple[FieldRule, ...] = (
    # Signature
    _rule(r"_+\s*\[signature\]", "signature", "signature", "Signature"),
    _rule(r"signature:\s*(?P<blank>_{5,})", "signature", "signature", "Signature"),
    _rule(r"\[sign here\]|\{signature\}|\[signature\]", "signature", "signature", "Signature"),
    _rule(r"\bsign(?:ed)?:\s*(?P<blank>_{5,})", "signature", "signature", "Signature"),
    _rule(r"\bX\s*_{10,}", "signature", "signature", "Signature"),
    # Date
    _rule(r"\bdate:\s*(?P<blank>_{5,})", "date", "date", "Date"),
    _rule(r"_+\s*\[date\]|\{date\}", "date", "date", "Date"),
    _rule(r"\[mm/dd/yyyy\]|\[dd/mm/yyyy\]|\[date\]", "date", "date", "Date"),
    _rule(r"\bdated:\s*(?P<blank>_{5,})", "date", "date", "Date"),
    # Name
    _rule(r"print name:\s*(?P<blank>_{5,})", "text", "name", "Print Name"),
    _rule(r"\bname:\s*(?P<blank>_{5,})", "text", "name", "Name"),
    _rule(r"_+\s*\[name\]|\{name\}", "text", "name", "Name"),
    _rule(r"\[full name\]|\[print name\]|\[name\]", "text", "name", "Full Name"),
    # Initial
    _rule(r"\binitials?:\s*(?P<blank>_{3,})", "initial", "initial", "Initial"),
    _rule(r"_+\s*\[initial\]|\{initial\}|\[initial\]", "initial", "initial", "Initial"),
    # Checkbox
    _rule(r"\[\s*\]|\(\s\)|\{checkbox\}", "checkbox", "checkbox", "Checkbox"),
    _rule(r"[☐□▢⬜]", "checkbox", "checkbox", "Checkbox"),
    # Catch-alls, must stay last
    _rule(r"_{10,}", "signature", "signature", "Signature"),
    _rule(r"_{5,}", "text", "generic", "Text Field"),
    _rule(r"\[([^\]]+)\]|\{([^}]+)\}", "text", "generic", "Text Field", name_from_capture=True),
)


def _span(match: "re.Match[str]") -> Tuple[int, int]:
    if "blank" in match.re.groupindex and match.group("blank") is not None:
        return match.span("blank")
    return match.span()


def is_required(text: str) -> bool:
    return "*" in text or bool(_REQUIRED_RE.search(text))


def detect_field(text: str) -> Optional[FieldMatch]:
    """
    Return the classification of the first rule matching ``text``, or None.

    Only one field is detected per run; later rules are never consulted once
    an earlier one matches.
    """
    for rule in FIELD_RULES:
        match = rule.pattern.search(text)
        if not match:
            continue

        name = rule.name
        if rule.name_from_capture:
            name = (match.group(1) or match.group(2) or rule.name).strip() or rule.name

        start, end = _span(match)
        return FieldMatch(
            field_type=rule.field_type,
            category=rule.category,
            field_name=name,
            required=is_required(text),
            placeholder=name,
            match_start=start,
            match_length=end - start,
            offset_hint=float(start * CHAR_WIDTH_ESTIMATE) if start > 0 else 0.0,
        )

    return None


def offset_for(match: FieldMatch, font_size: Optional[float] = None) -> float:
    """
    Horizontal offset of the field inside its run.

    Per-character heuristic: with a font size the estimate is
    ``chars * font_size * GLYPH_WIDTH_RATIO``, otherwise the match's
    fixed-width hint. Glyph widths are never measured.
    """
    if match.match_start <= 0:
        return 0.0
    if font_size:
        return match.match_start * font_size * GLYPH_WIDTH_RATIO
    return match.offset_hint


def estimate_text_width(text: str, font_size: float) -> float:
    return len(text) * font_size * GLYPH_WIDTH_RATIO
