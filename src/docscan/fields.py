"""
Field formatting shared by every renderer.

All four output encodings enumerate structured fields through
`eligible_fields` and pick the full text through `full_text_of`, so the
same extraction always yields the same labeled fields in the same order.
"""

import json
import logging
import re
from typing import Any, Dict, List, Tuple

from .errors import RenderFailed

logger = logging.getLogger(__name__)

RAW_TEXT_KEY = "rawText"

_INTERNAL_CAPITAL = re.compile(r"(?<!^)([A-Z])")


def label_for(key: str) -> str:
    """
    Convert a camelCase field key into a display label.

    A space goes before every uppercase letter except the first character,
    then the first character is uppercased. No acronym handling:
    `issueDate` -> `Issue Date`, `mrzLine1` -> `Mrz Line1`.
    """
    key = str(key)
    spaced = _INTERNAL_CAPITAL.sub(r" \1", key)
    return spaced[:1].upper() + spaced[1:]


def compact_json(value: Any) -> str:
    """Stable compact serialization for nested values."""
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
    except (TypeError, ValueError) as e:
        raise RenderFailed(f"Cannot serialize field value: {e}")


def _primitive(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return json.dumps(value)
    return str(value)


def display_for(value: Any) -> str:
    """
    Convert a field value into its display string.

    Lists render each element (mappings and lists as compact JSON,
    primitives stringified) joined with ", ". Mappings render as compact
    JSON. Anything else is stringified. None is never displayed; callers
    skip it through `eligible_fields`.
    """
    if isinstance(value, (list, tuple)):
        return ", ".join(
            compact_json(item) if isinstance(item, (dict, list, tuple)) else _primitive(item)
            for item in value
        )
    if isinstance(value, dict):
        return compact_json(value)
    return _primitive(value)


def is_eligible(key: str, value: Any) -> bool:
    if key == RAW_TEXT_KEY or value is None:
        return False
    if isinstance(value, (list, tuple)) and len(value) == 0:
        return False
    return True


def eligible_fields(data: Dict[str, Any]) -> List[Tuple[str, Any]]:
    """Structured fields to render, in insertion order."""
    if not data:
        return []
    return [(k, v) for k, v in data.items() if is_eligible(k, v)]


def labeled_fields(data: Dict[str, Any]) -> List[Tuple[str, str]]:
    """(label, display) pairs for every eligible field."""
    return [(label_for(k), display_for(v)) for k, v in eligible_fields(data)]


def full_text_of(extraction) -> str:
    """
    Single full-text source for an extraction.

    `extracted_text` wins when non-empty; otherwise `structuredData.rawText`
    is used. Never both.
    """
    if extraction is None:
        return ""
    text = extraction.extracted_text or ""
    if text:
        return text
    raw = (extraction.structured_data or {}).get(RAW_TEXT_KEY)
    if raw is not None and raw != "":
        return str(raw)
    return ""
