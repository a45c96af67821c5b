"""
Data models shared by the readers, the field matcher and the reconstructor.
Small dataclasses for positioned elements, the processed document and the
field-value overlay, plus their JSON (camelCase) form used for storage.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

ElementKind = Literal["text", "heading", "paragraph", "list", "table", "image", "field"]
FieldType = Literal["text", "signature", "date", "checkbox", "initial"]
SourceFormat = Literal["pdf", "docx", "txt"]

TEXT_KINDS = {"text", "heading", "paragraph"}

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_MIME = "text/plain"


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


@dataclass
class Position:
    x: float
    y: float  # top-left origin, page-local
    width: float
    height: float
    page: int  # 1-based

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "page": self.page,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Position":
        return cls(
            x=float(data["x"]),
            y=float(data["y"]),
            width=float(data["width"]),
            height=float(data["height"]),
            page=int(data.get("page", 1)),
        )


@dataclass
class Formatting:
    """Optional style attributes. None means inherit the renderer default."""

    font_size: Optional[float] = None
    font_family: Optional[str] = None
    bold: Optional[bool] = None
    italic: Optional[bool] = None
    underline: Optional[bool] = None
    color: Optional[str] = None  # "#rrggbb"
    alignment: Optional[str] = None  # left / center / right / justify
    indent: Optional[float] = None
    line_height: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "fontSize": self.font_size,
                "fontFamily": self.font_family,
                "bold": self.bold,
                "italic": self.italic,
                "underline": self.underline,
                "color": self.color,
                "alignment": self.alignment,
                "indent": self.indent,
                "lineHeight": self.line_height,
            }
        )

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Formatting":
        data = data or {}
        return cls(
            font_size=data.get("fontSize"),
            font_family=data.get("fontFamily"),
            bold=data.get("bold"),
            italic=data.get("italic"),
            underline=data.get("underline"),
            color=data.get("color"),
            alignment=data.get("alignment"),
            indent=data.get("indent"),
            line_height=data.get("lineHeight"),
        )


@dataclass
class FieldMetadata:
    field_type: str
    field_name: str
    required: bool = False
    placeholder: Optional[str] = None
    original_text: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "fieldType": self.field_type,
                "fieldName": self.field_name,
                "required": self.required,
                "placeholder": self.placeholder,
                "originalText": self.original_text,
            }
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldMetadata":
        return cls(
            field_type=data.get("fieldType", "text"),
            field_name=data.get("fieldName", "Field"),
            required=bool(data.get("required", False)),
            placeholder=data.get("placeholder"),
            original_text=data.get("originalText"),
        )


@dataclass
class DocumentElement:
    kind: ElementKind
    content: str
    formatting: Formatting = field(default_factory=Formatting)
    position: Optional[Position] = None  # absent only for synthesized fallbacks
    field_metadata: Optional[FieldMetadata] = None  # only when kind == "field"

    @property
    def is_field(self) -> bool:
        return self.kind == "field"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.kind,
            "content": self.content,
            "formatting": self.formatting.to_dict(),
        }
        if self.position is not None:
            data["position"] = self.position.to_dict()
        if self.field_metadata is not None:
            data["metadata"] = self.field_metadata.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DocumentElement":
        position = data.get("position")
        metadata = data.get("metadata")
        return cls(
            kind=data["type"],
            content=data.get("content", ""),
            formatting=Formatting.from_dict(data.get("formatting")),
            position=Position.from_dict(position) if position else None,
            field_metadata=FieldMetadata.from_dict(metadata) if metadata else None,
        )


@dataclass(frozen=True)
class PageSize:
    width: float
    height: float

    def to_dict(self) -> Dict[str, Any]:
        return {"width": self.width, "height": self.height}


@dataclass
class DocumentMetadata:
    title: Optional[str] = None
    author: Optional[str] = None
    created_date: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "title": self.title,
                "author": self.author,
                "createdDate": self.created_date.isoformat() if self.created_date else None,
            }
        )

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "DocumentMetadata":
        data = data or {}
        return cls(
            title=data.get("title"),
            author=data.get("author"),
            created_date=_parse_datetime(data.get("createdDate")),
        )


@dataclass
class ProcessedDocument:
    """
    Result of ingesting one uploaded file.

    elements are kept in source reading order. For PDF sources that is
    content-stream order, which is not necessarily sorted by y.
    """

    elements: List[DocumentElement]
    page_count: int
    source_format: SourceFormat
    page_size: PageSize
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)

    def page_elements(self, page: int) -> List[DocumentElement]:
        return [
            el for el in self.elements if el.position is not None and el.position.page == page
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "elements": [el.to_dict() for el in self.elements],
            "pages": self.page_count,
            "originalFormat": self.source_format,
            "pageSize": self.page_size.to_dict(),
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProcessedDocument":
        size = data.get("pageSize") or {}
        return cls(
            elements=[DocumentElement.from_dict(el) for el in data.get("elements", [])],
            page_count=int(data.get("pages", 1)),
            source_format=data.get("originalFormat", "pdf"),
            page_size=PageSize(
                width=float(size.get("width", 816)), height=float(size.get("height", 1056))
            ),
            metadata=DocumentMetadata.from_dict(data.get("metadata")),
        )


@dataclass
class UploadedFile:
    """Decoded upload: raw bytes plus the declared MIME type."""

    name: str
    content_type: str
    data: bytes


@dataclass
class ReaderResult:
    """What a format reader hands back to the assembler."""

    elements: List[DocumentElement]
    page_count: int
    page_size: PageSize
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)


# ----------------------------- Field detection --------------------------------


@dataclass(frozen=True)
class FieldMatch:
    field_type: FieldType
    category: str  # signature / date / name / initial / checkbox / generic
    field_name: str
    required: bool
    placeholder: str
    match_start: int
    match_length: int
    offset_hint: float  # estimated width of the text before the match

    @property
    def match_end(self) -> int:
        return self.match_start + self.match_length


@dataclass
class Segment:
    text: str
    is_field: bool


# ----------------------------- Field overlay ----------------------------------


@dataclass
class UserField:
    """A fill-in location the reconstructor draws: type, owner, page and box."""

    id: str
    field_type: str
    page: int
    x: float
    y: float
    width: float
    height: float
    recipient_email: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "fieldType": self.field_type,
            "recipientEmail": self.recipient_email,
            "page": self.page,
            "position": {"x": self.x, "y": self.y, "width": self.width, "height": self.height},
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserField":
        pos = data.get("position") or {}
        return cls(
            id=str(data["id"]),
            field_type=str(data.get("fieldType", "text")),
            page=int(data.get("page", 1)),
            x=float(pos.get("x", 0)),
            y=float(pos.get("y", 0)),
            width=float(pos.get("width", 0)),
            height=float(pos.get("height", 0)),
            recipient_email=data.get("recipientEmail"),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass
class FieldValue:
    element_id: str
    value: Any  # str / bool / number; signatures are data URLs
    type: str
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "elementId": self.element_id,
                "value": self.value,
                "type": self.type,
                "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
                "updatedBy": self.updated_by,
            }
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any], element_id: Optional[str] = None) -> "FieldValue":
        return cls(
            element_id=element_id or data.get("elementId") or data.get("fieldId", ""),
            value=data.get("value"),
            type=data.get("type", "text"),
            updated_at=_parse_datetime(data.get("updatedAt")),
            updated_by=data.get("updatedBy"),
        )
