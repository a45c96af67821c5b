import json
import logging
from typing import Any, Dict, List, Optional

from openai import OpenAI

from .config import settings
from .data_models import ProcessedDocument
from .io_utils import document_text

logger = logging.getLogger(__name__)

FIELD_TYPES = {"text", "signature", "date", "checkbox", "initial"}

SYSTEM_PROMPT = (
    "You are a document field detection AI. Analyze the following contract text and identify "
    "all input fields that need to be filled out.\n\n"
    "For each field found, return a JSON object with:\n"
    '- type: "text" | "signature" | "date" | "checkbox" | "initial"\n'
    "- name: A descriptive name for the field\n"
    "- pattern: The exact text pattern that indicates this field\n"
    "- required: boolean indicating if the field seems required\n"
    "- context: The surrounding text (up to 50 characters before and after)\n\n"
    "Common patterns to look for:\n"
    "- Underscores: ____________\n"
    "- Brackets: [Name], [Date], [Signature]\n"
    "- Parentheses with spaces: ( )\n"
    '- Explicit labels: "Name:", "Date:", "Signature:", etc.\n\n'
    'Return ONLY a JSON object of the form {"fields": [...]}.'
)


def _normalize_field(raw: Dict[str, Any]) -> Dict[str, Any]:
    field_type = str(raw.get("type", "text")).lower()
    return {
        "type": field_type if field_type in FIELD_TYPES else "text",
        "name": str(raw.get("name") or "Field"),
        "pattern": str(raw.get("pattern") or ""),
        "required": bool(raw.get("required", False)),
        "context": str(raw.get("context") or ""),
    }


def parse_field_response(output: Optional[str]) -> List[Dict[str, Any]]:
    """
    Parse the model's JSON answer. Accepts either {"fields": [...]} or a bare
    list; anything else yields no fields.
    """
    if not output:
        return []
    try:
        result = json.loads(output)
    except json.JSONDecodeError:
        logger.warning("Field detection response was not valid JSON")
        return []

    fields = result.get("fields", []) if isinstance(result, dict) else result
    if not isinstance(fields, list):
        return []
    return [_normalize_field(f) for f in fields if isinstance(f, dict)]


def detect_fields_with_llm(
    text: str,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Ask an LLM which fill-in fields the contract text contains.

    Args:
        text (str): Reading-order text of the document.
        api_key (str, optional): OpenAI key, defaults to settings.OPENAI_API_KEY.
        model (str, optional): Chat model, defaults to settings.OPENAI_FIELD_MODEL.

    Returns:
        list: [{"type", "name", "pattern", "required", "context"}, ...]
    """
    if not text or not text.strip():
        raise ValueError("Text is required")

    api_key = api_key or settings.OPENAI_API_KEY
    if not api_key:
        raise RuntimeError("No OpenAI API key configured for field detection")

    client = OpenAI(api_key=api_key)
    try:
        completion = client.chat.completions.create(
            model=model or settings.OPENAI_FIELD_MODEL,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": text},
            ],
            temperature=0.3,
            response_format={"type": "json_object"},
        )
    except Exception as e:
        raise RuntimeError(f"LLM field detection failed: {str(e)}")

    fields = parse_field_response(completion.choices[0].message.content)
    logger.info(f"LLM detected {len(fields)} field(s)")
    return fields


def detect_document_fields_with_llm(document: ProcessedDocument, **kwargs) -> List[Dict[str, Any]]:
    return detect_fields_with_llm(document_text(document), **kwargs)
