"""Shared test fixtures for the export pipeline tests."""

import sys
from pathlib import Path

import pytest

# Add src directory to path so we can import the modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from docscan.schema import DocumentType, ExtractionResult, SavedDocument


@pytest.fixture
def receipt_extraction() -> ExtractionResult:
    """Receipt with a line item and both text sources."""
    return ExtractionResult(
        document_type=DocumentType.RECEIPT,
        language="en",
        languages=["en"],
        extracted_text="Acme Store\nPen x2",
        structured_data={
            "vendorName": "Acme",
            "items": [{"name": "Pen", "quantity": 2, "unitPrice": 1.5, "total": 3.0}],
            "total": 3.0,
        },
        formatted_summary="",
    )


@pytest.fixture
def raw_text_only_extraction() -> ExtractionResult:
    """Fallback OCR output: text only in structuredData.rawText."""
    return ExtractionResult(
        document_type=DocumentType.OTHER,
        extracted_text="",
        structured_data={"rawText": "Raw line one\nRaw line two", "detectedLanguage": "en"},
        formatted_summary="Plain scan",
    )


@pytest.fixture
def passport_extraction() -> ExtractionResult:
    return ExtractionResult(
        document_type=DocumentType.PASSPORT,
        language="en",
        extracted_text="PASSPORT\nDOE JOHN",
        structured_data={
            "fullName": "John Doe",
            "dateOfBirth": "1990-01-15",
            "passportNumber": "X1234567",
            "placeOfBirth": None,
            "issueDate": "2020-05-01",
            "mrzLine1": "P<UTODOE<<JOHN<<<<<<<<<<<<<<<<<<<<<<<<<<<<<<",
            "visaPages": [],
            "rawText": "PASSPORT\nDOE JOHN",
        },
        formatted_summary="Passport of John Doe",
    )


@pytest.fixture
def saved_receipt(receipt_extraction) -> SavedDocument:
    return SavedDocument(
        id="1718000000000",
        name="document_1718000000000.jpg",
        uri="/data/documents/document_1718000000000.jpg",
        original_uri="/tmp/picker/IMG_0001.jpg",
        extraction=receipt_extraction,
        created_at="2024-06-10T09:00:00",
    )
