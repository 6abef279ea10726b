"""
Word-processor document model for extraction results.

Provides:
- An abstract document tree (paragraphs, runs, a key/value table)
- DocumentModelRenderer building the tree from an extraction
- DocxEncoder serializing the tree with python-docx
"""

import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from .fields import full_text_of, labeled_fields
from .schema import ExtractionResult

logger = logging.getLogger(__name__)


# ============================================================================
# Document Tree
# ============================================================================

class ParagraphStyle:
    """Paragraph roles understood by encoders."""
    TITLE = "title"
    HEADING = "heading"
    BODY = "body"
    SPACER = "spacer"


@dataclass(frozen=True)
class TextRun:
    text: str
    bold: bool = False
    italic: bool = False


@dataclass
class Paragraph:
    """A paragraph of runs. Spacing is in twips."""
    runs: List[TextRun] = field(default_factory=list)
    style: str = ParagraphStyle.BODY
    spacing_before: int = 0
    spacing_after: int = 0

    @property
    def text(self) -> str:
        return "".join(run.text for run in self.runs)


@dataclass
class TableCell:
    paragraph: Paragraph
    width_pct: int


@dataclass
class TableRow:
    cells: List[TableCell] = field(default_factory=list)


@dataclass
class Table:
    rows: List[TableRow] = field(default_factory=list)
    width_pct: int = 100
    bordered: bool = True


Block = Union[Paragraph, Table]


@dataclass
class DocumentTree:
    """Ordered blocks of a single-section document."""
    children: List[Block] = field(default_factory=list)

    @property
    def paragraphs(self) -> List[Paragraph]:
        return [c for c in self.children if isinstance(c, Paragraph)]

    @property
    def tables(self) -> List[Table]:
        return [c for c in self.children if isinstance(c, Table)]


# ============================================================================
# Renderer
# ============================================================================

class DocumentModelRenderer:
    """Build a DocumentTree from an extraction."""

    LABEL_WIDTH_PCT = 30
    VALUE_WIDTH_PCT = 70

    def render(
        self,
        extraction: Optional[ExtractionResult],
        document_name: Optional[str] = None
    ) -> DocumentTree:
        """
        Build the document tree.

        Title, optional italic summary, a bordered label/value table followed
        by a spacer, then a "Full text" heading and the text verbatim.
        Wrapping is left to whatever encodes the tree.
        """
        extraction = extraction or ExtractionResult()
        children: List[Block] = [
            Paragraph(
                runs=[TextRun(document_name or "Document")],
                style=ParagraphStyle.TITLE,
                spacing_after=200,
            )
        ]

        if extraction.formatted_summary:
            children.append(Paragraph(
                runs=[TextRun(extraction.formatted_summary, italic=True)],
                spacing_after=200,
            ))

        fields = labeled_fields(extraction.structured_data)
        if fields:
            rows = [
                TableRow(cells=[
                    TableCell(Paragraph(runs=[TextRun(label, bold=True)]), self.LABEL_WIDTH_PCT),
                    TableCell(Paragraph(runs=[TextRun(display)]), self.VALUE_WIDTH_PCT),
                ])
                for label, display in fields
            ]
            children.append(Table(rows=rows))
            children.append(Paragraph(style=ParagraphStyle.SPACER, spacing_after=200))

        full_text = full_text_of(extraction)
        if full_text:
            children.append(Paragraph(
                runs=[TextRun("Full text")],
                style=ParagraphStyle.HEADING,
                spacing_before=400,
                spacing_after=200,
            ))
            children.append(Paragraph(runs=[TextRun(full_text)], spacing_after=200))

        return DocumentTree(children=children)


# ============================================================================
# DOCX Encoder
# ============================================================================

class DocxEncoder:
    """Serialize a DocumentTree to DOCX bytes using python-docx."""

    def __init__(self, template_path: Optional[str] = None):
        self.template_path = template_path

    def encode(self, tree: DocumentTree) -> bytes:
        """
        Encode the tree as a .docx package.

        Args:
            tree: Document tree to encode

        Returns:
            DOCX file contents
        """
        from docx import Document as DocxDocument

        if self.template_path and Path(self.template_path).exists():
            doc = DocxDocument(self.template_path)
        else:
            doc = DocxDocument()

        for block in tree.children:
            if isinstance(block, Table):
                self._add_table(doc, block)
            else:
                self._add_paragraph(doc, block)

        file_stream = io.BytesIO()
        doc.save(file_stream)
        logger.debug(f"Encoded DOCX with {len(tree.children)} blocks")
        return file_stream.getvalue()

    def _add_paragraph(self, doc, block: Paragraph):
        if block.style == ParagraphStyle.TITLE:
            p = doc.add_heading(level=0)
        elif block.style == ParagraphStyle.HEADING:
            p = doc.add_heading(level=2)
        else:
            p = doc.add_paragraph()

        self._add_runs(p, block.runs)
        self._apply_spacing(p, block)

    def _add_runs(self, p, runs: List[TextRun]):
        for run in runs:
            r = p.add_run(run.text)
            if run.bold:
                r.bold = True
            if run.italic:
                r.italic = True

    def _apply_spacing(self, p, block: Paragraph):
        from docx.shared import Twips

        if block.spacing_before:
            p.paragraph_format.space_before = Twips(block.spacing_before)
        if block.spacing_after:
            p.paragraph_format.space_after = Twips(block.spacing_after)

    def _add_table(self, doc, block: Table):
        """Add a key/value table to the DOCX document."""
        from docx.shared import Emu

        if not block.rows:
            return

        num_cols = max(len(row.cells) for row in block.rows)
        table = doc.add_table(rows=len(block.rows), cols=num_cols)
        if block.bordered:
            table.style = 'Table Grid'
        table.autofit = False

        section = doc.sections[-1]
        usable = section.page_width - section.left_margin - section.right_margin
        table_width = int(usable * block.width_pct / 100)

        for i, row_data in enumerate(block.rows):
            row = table.rows[i]
            for j, cell_data in enumerate(row_data.cells):
                cell = row.cells[j]
                cell.width = Emu(int(table_width * cell_data.width_pct / 100))
                self._add_runs(cell.paragraphs[0], cell_data.paragraph.runs)
