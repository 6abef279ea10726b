"""
Extraction data model for scanned documents.

Provides:
- DocumentType enumeration and per-type field schemas
- ExtractionResult (structured output of the vision model)
- SavedDocument (persisted scan record)
- Parsing of the raw model reply into an ExtractionResult
"""

import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


# ============================================================================
# Document Types
# ============================================================================

class DocumentType(str, Enum):
    """Document type tags returned by the extraction model."""
    PASSPORT = "passport"
    ID_CARD = "id_card"
    RECEIPT = "receipt"
    INVOICE = "invoice"
    LETTER = "letter"
    FORM = "form"
    OTHER = "other"

    @classmethod
    def from_tag(cls, tag: Optional[str]) -> "DocumentType":
        """Normalize a model tag, falling back to OTHER."""
        if not tag:
            return cls.OTHER
        tag = str(tag).strip().lower()
        tag = TYPE_ALIASES.get(tag, tag)
        try:
            return cls(tag)
        except ValueError:
            logger.debug(f"Unknown document type tag: {tag!r}")
            return cls.OTHER


# The prompt lets the model answer with these synonyms
TYPE_ALIASES = {
    "national_id": "id_card",
    "contract": "letter",
}


# ============================================================================
# Field Schemas
# ============================================================================

class FieldKind:
    """Value shapes a schema field can hold."""
    TEXT = "text"
    DATE = "date"
    NUMBER = "number"
    ITEMS = "items"    # list of mappings
    PARTY = "party"    # nested mapping (name, address)


@dataclass(frozen=True)
class FieldSpec:
    key: str
    kind: str = FieldKind.TEXT


@dataclass(frozen=True)
class DocumentSchema:
    """Known fields for one document type, in prompt order."""
    document_type: DocumentType
    fields: Tuple[FieldSpec, ...]

    @property
    def keys(self) -> Tuple[str, ...]:
        return tuple(f.key for f in self.fields)

    def known_fields(self, data: Dict[str, Any]) -> List[Tuple[str, Any]]:
        """Entries of `data` covered by this schema, in insertion order."""
        keys = set(self.keys)
        return [(k, v) for k, v in data.items() if k in keys]

    def extra_fields(self, data: Dict[str, Any]) -> List[Tuple[str, Any]]:
        """Entries of `data` outside this schema, in insertion order."""
        keys = set(self.keys)
        return [(k, v) for k, v in data.items() if k not in keys]

    def missing_keys(self, data: Dict[str, Any]) -> List[str]:
        return [k for k in self.keys if data.get(k) is None]


def _schema(document_type: DocumentType, *specs) -> DocumentSchema:
    fields = tuple(
        spec if isinstance(spec, FieldSpec) else FieldSpec(spec)
        for spec in specs
    )
    return DocumentSchema(document_type, fields)


SCHEMAS: Dict[DocumentType, DocumentSchema] = {
    DocumentType.PASSPORT: _schema(
        DocumentType.PASSPORT,
        "fullName",
        FieldSpec("dateOfBirth", FieldKind.DATE),
        "placeOfBirth",
        "passportNumber",
        "nationality",
        "gender",
        FieldSpec("issueDate", FieldKind.DATE),
        FieldSpec("expiryDate", FieldKind.DATE),
        "issuingAuthority",
        "mrzLine1",
        "mrzLine2",
    ),
    DocumentType.ID_CARD: _schema(
        DocumentType.ID_CARD,
        "fullName",
        "idNumber",
        FieldSpec("dateOfBirth", FieldKind.DATE),
        "nationality",
        "address",
        FieldSpec("issueDate", FieldKind.DATE),
        FieldSpec("expiryDate", FieldKind.DATE),
        "issuingAuthority",
    ),
    DocumentType.RECEIPT: _schema(
        DocumentType.RECEIPT,
        "vendorName",
        "vendorAddress",
        FieldSpec("date", FieldKind.DATE),
        "time",
        FieldSpec("items", FieldKind.ITEMS),
        FieldSpec("subtotal", FieldKind.NUMBER),
        FieldSpec("tax", FieldKind.NUMBER),
        FieldSpec("total", FieldKind.NUMBER),
        "paymentMethod",
        "currency",
    ),
    DocumentType.INVOICE: _schema(
        DocumentType.INVOICE,
        "invoiceNumber",
        FieldSpec("issueDate", FieldKind.DATE),
        FieldSpec("dueDate", FieldKind.DATE),
        FieldSpec("seller", FieldKind.PARTY),
        FieldSpec("buyer", FieldKind.PARTY),
        FieldSpec("items", FieldKind.ITEMS),
        FieldSpec("subtotal", FieldKind.NUMBER),
        FieldSpec("tax", FieldKind.NUMBER),
        FieldSpec("total", FieldKind.NUMBER),
        "currency",
        "paymentTerms",
    ),
    DocumentType.LETTER: _schema(
        DocumentType.LETTER,
        FieldSpec("date", FieldKind.DATE),
        "sender",
        "recipient",
        "subject",
        "body",
        "signatureBlock",
    ),
    DocumentType.FORM: _schema(
        DocumentType.FORM,
        "formTitle",
        FieldSpec("fields", FieldKind.ITEMS),
        "rawText",
    ),
    DocumentType.OTHER: _schema(
        DocumentType.OTHER,
        "rawText",
        "detectedLanguage",
    ),
}


def schema_for(document_type) -> DocumentSchema:
    """Get the field schema for a document type (enum or tag)."""
    if not isinstance(document_type, DocumentType):
        document_type = DocumentType.from_tag(document_type)
    return SCHEMAS[document_type]


# ============================================================================
# Extraction Result
# ============================================================================

@dataclass
class ExtractionResult:
    """Structured extraction of a single scanned document."""
    document_type: DocumentType = DocumentType.OTHER
    language: str = ""
    languages: List[str] = field(default_factory=list)
    extracted_text: str = ""
    structured_data: Dict[str, Any] = field(default_factory=dict)
    formatted_summary: str = ""

    @property
    def schema(self) -> DocumentSchema:
        return schema_for(self.document_type)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ExtractionResult":
        """Build from the camelCase wire format, defaulting missing keys."""
        data = data or {}
        structured = data.get("structuredData")
        languages = data.get("languages")
        return cls(
            document_type=DocumentType.from_tag(data.get("documentType")),
            language=data.get("language") or "",
            languages=list(languages) if isinstance(languages, list) else [],
            extracted_text=data.get("extractedText") or "",
            structured_data=dict(structured) if isinstance(structured, dict) else {},
            formatted_summary=data.get("formattedSummary") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "documentType": self.document_type.value,
            "language": self.language,
            "languages": list(self.languages),
            "extractedText": self.extracted_text,
            "structuredData": dict(self.structured_data),
            "formattedSummary": self.formatted_summary,
        }


_CODE_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


def parse_model_response(content: str) -> ExtractionResult:
    """
    Parse the text reply of the extraction model.

    The model is asked for a bare JSON object but sometimes wraps it in a
    markdown code fence; the fence is stripped before parsing.

    Args:
        content: Raw message content returned by the model

    Returns:
        Normalized ExtractionResult

    Raises:
        ValueError: If the content holds no JSON object
    """
    if not content or not content.strip():
        raise ValueError("Empty response from extraction model")

    text = content.strip()
    match = _CODE_FENCE.search(text)
    if match:
        text = match.group(1).strip()

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Could not parse extraction response: {e}")

    if not isinstance(parsed, dict):
        raise ValueError("Extraction response is not a JSON object")

    result = ExtractionResult.from_dict(parsed)
    logger.debug(
        f"Parsed {result.document_type.value} extraction with "
        f"{len(result.structured_data)} structured fields"
    )
    return result


def fallback_extraction(text: str) -> ExtractionResult:
    """Extraction for plain OCR output with no structuring."""
    return ExtractionResult(
        document_type=DocumentType.OTHER,
        extracted_text=text,
        structured_data={"rawText": text},
        formatted_summary=(
            text[:200] + ("..." if len(text) > 200 else "")
            if text.strip()
            else "No text could be extracted from this image."
        ),
    )


# ============================================================================
# Saved Document
# ============================================================================

@dataclass
class SavedDocument:
    """A persisted scan: image reference plus optional extraction."""
    id: str
    name: str
    uri: Optional[str] = None
    original_uri: Optional[str] = None
    extraction: Optional[ExtractionResult] = None
    created_at: str = ""
    source: str = "camera"
    size: int = 0
    was_edited: bool = False
    edited_at: Optional[str] = None

    @property
    def image_uri(self) -> Optional[str]:
        """Primary image reference, falling back to the original one."""
        return self.uri or self.original_uri

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SavedDocument":
        extraction = data.get("extraction")
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name") or "",
            uri=data.get("uri") or None,
            original_uri=data.get("originalUri") or None,
            extraction=ExtractionResult.from_dict(extraction) if extraction else None,
            created_at=data.get("createdAt") or "",
            source=data.get("source") or "camera",
            size=int(data.get("size") or 0),
            was_edited=bool(data.get("wasEdited", False)),
            edited_at=data.get("editedAt"),
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "id": self.id,
            "name": self.name,
            "uri": self.uri,
            "originalUri": self.original_uri,
            "size": self.size,
            "source": self.source,
            "createdAt": self.created_at,
        }
        if self.extraction is not None:
            result["extraction"] = self.extraction.to_dict()
        if self.was_edited:
            result["wasEdited"] = True
            result["editedAt"] = self.edited_at
        return result
