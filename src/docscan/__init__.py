"""
Scanned Document Export Pipeline
================================

Turns a scanned document's structured extraction into shareable files.

Main components:
- Extraction data model and per-type field schemas
- Shared field formatting (labels, display values, full text)
- Plain text, HTML, DOCX and paginated PDF rendering
- Export coordination and delivery (save + share, or download)
"""

__version__ = "1.0.0"

from .schema import DocumentType, ExtractionResult, SavedDocument, parse_model_response, schema_for
from .fields import label_for, display_for, eligible_fields, full_text_of
from .renderers import TextRenderer, HtmlRenderer
from .document_model import DocumentModelRenderer, DocumentTree, DocxEncoder
from .pdf_layout import PageConfig, PdfLayoutEngine, PdfEncoder, wrap_text, layout
from .delivery import RenderedArtifact, DeliveryResult, SaveAndShareDelivery, DownloadDelivery
from .export import ExportCoordinator, ExportFormat, FormatRegistry
from .errors import (
    ExportError, UnsupportedFormat, NoDocument, NoImageAvailable, DeliveryFailed, RenderFailed,
)
from .io import DocumentStore, FileImageSource, load_json, save_json

__all__ = [
    # Schema
    "DocumentType", "ExtractionResult", "SavedDocument", "parse_model_response", "schema_for",
    # Fields
    "label_for", "display_for", "eligible_fields", "full_text_of",
    # Renderers
    "TextRenderer", "HtmlRenderer", "DocumentModelRenderer", "DocumentTree", "DocxEncoder",
    "PageConfig", "PdfLayoutEngine", "PdfEncoder", "wrap_text", "layout",
    # Delivery and export
    "RenderedArtifact", "DeliveryResult", "SaveAndShareDelivery", "DownloadDelivery",
    "ExportCoordinator", "ExportFormat", "FormatRegistry",
    # Errors
    "ExportError", "UnsupportedFormat", "NoDocument", "NoImageAvailable",
    "DeliveryFailed", "RenderFailed",
    # IO
    "DocumentStore", "FileImageSource", "load_json", "save_json",
]
