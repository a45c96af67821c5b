"""
Element ids, detected-field listings and the field-value overlay.

An element id has the form ``element-<page>-<index>`` where index is the
element's position among the elements of that page, in document order. The
same document always yields the same ids, so values stored against an id
can be looked up again after a reload.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .data_models import DocumentElement, FieldValue, ProcessedDocument, UserField

logger = logging.getLogger(__name__)

Overlay = Dict[str, FieldValue]


def element_id(page: int, index: int) -> str:
    return f"element-{page}-{index}"


def iter_element_ids(document: ProcessedDocument) -> Iterator[Tuple[str, DocumentElement]]:
    """Yield (element_id, element) for every positioned element, page by page."""
    for page in range(1, document.page_count + 1):
        for index, element in enumerate(document.page_elements(page)):
            yield element_id(page, index), element


def find_element(document: ProcessedDocument, wanted: str) -> Optional[DocumentElement]:
    for eid, element in iter_element_ids(document):
        if eid == wanted:
            return element
    return None


def has_value(value: Any) -> bool:
    """0 is a value; None, "" and an unchecked False are not."""
    return value is not None and value is not False and value != ""


def field_guide(
    document: ProcessedDocument, overlay: Optional[Mapping[str, FieldValue]] = None
) -> List[Dict[str, Any]]:
    """Every detected field with its id, label and completion state."""
    overlay = overlay or {}
    guide = []
    for eid, element in iter_element_ids(document):
        if not element.is_field or element.field_metadata is None:
            continue
        meta = element.field_metadata
        current = overlay.get(eid)
        guide.append(
            {
                "elementId": eid,
                "label": meta.field_name or "Field",
                "required": bool(meta.required),
                "completed": current is not None and has_value(current.value),
                "type": meta.field_type or "text",
                "page": element.position.page,
            }
        )
    return sorted(guide, key=lambda item: item["page"])


def build_user_fields(
    document: ProcessedDocument, recipient_email: Optional[str] = None
) -> List[UserField]:
    """Turn detected field elements into field definitions for rendering."""
    fields = []
    for eid, element in iter_element_ids(document):
        if not element.is_field or element.field_metadata is None:
            continue
        meta = element.field_metadata
        pos = element.position
        metadata: Dict[str, Any] = {
            "fieldName": meta.field_name,
            "required": meta.required,
            "placeholder": meta.placeholder,
        }
        if element.formatting.font_size:
            metadata["fontSize"] = element.formatting.font_size
        fields.append(
            UserField(
                id=eid,
                field_type=meta.field_type,
                page=pos.page,
                x=pos.x,
                y=pos.y,
                width=pos.width,
                height=pos.height,
                recipient_email=recipient_email,
                metadata=metadata,
            )
        )
    return fields


def apply_field_values(
    user_fields: Iterable[UserField],
    overlay: Mapping[str, FieldValue],
    updates: Iterable[FieldValue],
    updated_by: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Overlay:
    """
    Return a new overlay with ``updates`` merged in.

    Updates for ids that are not among ``user_fields`` are dropped. The
    input overlay is left untouched.
    """
    known = {f.id for f in user_fields}
    stamp = now or datetime.now(timezone.utc)
    merged: Overlay = dict(overlay)

    for update in updates:
        if update.element_id not in known:
            logger.warning(f"Ignoring value for unknown field {update.element_id!r}")
            continue
        merged[update.element_id] = FieldValue(
            element_id=update.element_id,
            value=update.value,
            type=update.type,
            updated_at=stamp,
            updated_by=updated_by or "unknown",
        )
    return merged


def all_required_filled(user_fields: Iterable[UserField], overlay: Mapping[str, FieldValue]) -> bool:
    for f in user_fields:
        if not f.metadata.get("required"):
            continue
        current = overlay.get(f.id)
        if current is None or not has_value(current.value):
            return False
    return True
