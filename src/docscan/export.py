"""
Export coordination for saved documents.

Provides:
- ExportFormat / FormatRegistry (immutable table of supported formats)
- ExportCoordinator dispatching a saved document to exactly one renderer
  and handing the artifact to a delivery
"""

import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Iterator, Optional, Protocol, Tuple

from .delivery import DeliveryPort, DeliveryResult, RenderedArtifact
from .document_model import DocumentModelRenderer, DocxEncoder
from .errors import (
    DeliveryFailed,
    NoDocument,
    NoImageAvailable,
    UnsupportedFormat,
)
from .pdf_layout import PageConfig, PdfEncoder, PdfLayoutEngine
from .renderers import HtmlRenderer, TextRenderer
from .schema import ExtractionResult, SavedDocument

logger = logging.getLogger(__name__)


# ============================================================================
# Format Registry
# ============================================================================

@dataclass(frozen=True)
class ExportFormat:
    id: str
    label: str
    mime: str
    ext: str

    @property
    def is_image(self) -> bool:
        return self.mime.startswith("image/")


DEFAULT_FORMATS = (
    ExportFormat("pdf", "PDF", "application/pdf", "pdf"),
    ExportFormat("jpeg", "JPEG", "image/jpeg", "jpg"),
    ExportFormat("png", "PNG", "image/png", "png"),
    ExportFormat(
        "docx",
        "Word (DOCX)",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "docx",
    ),
    ExportFormat("txt", "Plain Text (TXT)", "text/plain", "txt"),
    ExportFormat("html", "HTML", "text/html", "html"),
)


class FormatRegistry:
    """Read-only lookup of export formats by id."""

    def __init__(self, formats: Iterable[ExportFormat]):
        self._formats = MappingProxyType({f.id: f for f in formats})

    @classmethod
    def default(cls) -> "FormatRegistry":
        return cls(DEFAULT_FORMATS)

    def get(self, format_id: str) -> Optional[ExportFormat]:
        return self._formats.get(format_id)

    def require(self, format_id: str) -> ExportFormat:
        fmt = self.get(format_id)
        if fmt is None:
            raise UnsupportedFormat(format_id)
        return fmt

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(self._formats)

    def __contains__(self, format_id) -> bool:
        return format_id in self._formats

    def __iter__(self) -> Iterator[ExportFormat]:
        return iter(self._formats.values())

    def __len__(self) -> int:
        return len(self._formats)


# ============================================================================
# Collaborators
# ============================================================================

class ImageSource(Protocol):
    def fetch(self, uri: str) -> Tuple[bytes, str]: ...


class DocumentLookup(Protocol):
    def get(self, document_id: str) -> Optional[SavedDocument]: ...


_EXTENSION = re.compile(r"\.[^.]+$")
_DIRECTORY = re.compile(r"^.*[\\/]")
_IMAGE_EXTENSIONS = {"image/png": "png", "image/jpeg": "jpg"}


def base_name(name: Optional[str]) -> str:
    """Document name without directory parts or extension ('document' when unnamed)."""
    name = _DIRECTORY.sub("", name or "")
    if name in ("", ".", ".."):
        name = "document"
    return _EXTENSION.sub("", name)


# ============================================================================
# Export Coordinator
# ============================================================================

class ExportCoordinator:
    """
    Export a saved document in one of the registered formats.

    Image formats deliver the document's own image bytes. Every other
    format is rendered from the extraction.
    """

    def __init__(
        self,
        delivery: DeliveryPort,
        image_source: Optional[ImageSource] = None,
        registry: Optional[FormatRegistry] = None,
        page_config: Optional[PageConfig] = None,
        docx_template: Optional[str] = None,
        pdf_font_path: Optional[str] = None
    ):
        self.delivery = delivery
        self.image_source = image_source
        self.registry = registry or FormatRegistry.default()
        self.page_config = page_config or PageConfig()

        self.text_renderer = TextRenderer()
        self.html_renderer = HtmlRenderer()
        self.document_renderer = DocumentModelRenderer()
        self.docx_encoder = DocxEncoder(template_path=docx_template)
        self.layout_engine = PdfLayoutEngine(self.page_config)
        self.pdf_encoder = PdfEncoder(self.page_config, font_path=pdf_font_path)

        self._renderers = {
            "pdf": self._render_pdf,
            "docx": self._render_docx,
            "txt": self._render_txt,
            "html": self._render_html,
        }

    def export(
        self,
        saved_document: Optional[SavedDocument],
        format_id: str
    ) -> DeliveryResult:
        """
        Export a document and deliver the result.

        Args:
            saved_document: Document record to export
            format_id: One of the registry ids (pdf, jpeg, png, docx, txt, html)

        Returns:
            DeliveryResult from the delivery

        Raises:
            NoDocument: If no document is given
            UnsupportedFormat: If format_id is not registered
            NoImageAvailable: If an image format is requested without an image
            DeliveryFailed: If fetching the image or delivering fails
        """
        if saved_document is None:
            raise NoDocument()

        fmt = self.registry.require(format_id)
        filename = f"{base_name(saved_document.name)}.{fmt.ext}"

        if fmt.is_image:
            artifact = self._image_artifact(saved_document, fmt, filename)
        else:
            render = self._renderers.get(fmt.id)
            if render is None:
                raise UnsupportedFormat(format_id)
            content = render(saved_document.extraction or ExtractionResult(), saved_document.name)
            artifact = RenderedArtifact(content=content, mime_type=fmt.mime, filename=filename)

        result = self.delivery.deliver(artifact)
        logger.info(f"Exported document {saved_document.id} as {artifact.filename}")
        return result

    def export_by_id(
        self,
        store: DocumentLookup,
        document_id: str,
        format_id: str
    ) -> DeliveryResult:
        """Look a document up in the store and export it."""
        document = store.get(document_id)
        if document is None:
            raise NoDocument(f"Document not found: {document_id}")
        return self.export(document, format_id)

    def render(
        self,
        extraction: Optional[ExtractionResult],
        format_id: str,
        document_name: Optional[str] = None
    ):
        """Render an extraction without delivering it (text-derived formats only)."""
        fmt = self.registry.require(format_id)
        render = self._renderers.get(fmt.id)
        if render is None:
            raise UnsupportedFormat(format_id)
        return render(extraction or ExtractionResult(), document_name)

    # ------------------------------------------------------------------
    # Renderers
    # ------------------------------------------------------------------

    def _render_txt(self, extraction: ExtractionResult, name: Optional[str]) -> str:
        return self.text_renderer.render(extraction)

    def _render_html(self, extraction: ExtractionResult, name: Optional[str]) -> str:
        return self.html_renderer.render(extraction, name)

    def _render_docx(self, extraction: ExtractionResult, name: Optional[str]) -> bytes:
        tree = self.document_renderer.render(extraction, name)
        return self.docx_encoder.encode(tree)

    def _render_pdf(self, extraction: ExtractionResult, name: Optional[str]) -> bytes:
        pages = self.layout_engine.layout(extraction, name)
        return self.pdf_encoder.encode(pages)

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def _image_artifact(
        self,
        saved_document: SavedDocument,
        fmt: ExportFormat,
        filename: str
    ) -> RenderedArtifact:
        image_uri = saved_document.image_uri
        if not image_uri:
            raise NoImageAvailable()
        if self.image_source is None:
            raise DeliveryFailed("Could not load image: no image source configured")

        try:
            data, actual_mime = self.image_source.fetch(image_uri)
        except (OSError, ValueError) as e:
            raise DeliveryFailed(f"Could not load image: {e}")

        mime = fmt.mime
        if actual_mime in _IMAGE_EXTENSIONS and actual_mime != fmt.mime:
            # Keep the file valid: name it after the bytes it actually holds
            mime = actual_mime
            filename = f"{_EXTENSION.sub('', filename)}.{_IMAGE_EXTENSIONS[actual_mime]}"
            logger.debug(f"Image is {actual_mime}, saving as {filename}")

        return RenderedArtifact(content=data, mime_type=mime, filename=filename)
