"""
PDF page layout for extraction results.

Provides:
- PageConfig (page geometry, fonts, pagination thresholds)
- wrap_text, the line wrapper shared by every text block
- PdfLayoutEngine producing positioned draw instructions per page
- PdfEncoder drawing the pages with fpdf2
"""

import logging
import textwrap
from dataclasses import dataclass, field
from typing import List, Optional

from .fields import full_text_of, labeled_fields
from .schema import ExtractionResult

logger = logging.getLogger(__name__)

PT_TO_MM = 25.4 / 72


# ============================================================================
# Configuration
# ============================================================================

class FontClass:
    """Text classes used by the layout."""
    TITLE = "title"
    HEADING = "heading"
    BODY = "body"


@dataclass
class PageConfig:
    """Page geometry in millimetres, font sizes in points."""
    page_width: float = 210.0
    page_height: float = 297.0
    margin_left: float = 20.0
    margin_right: float = 20.0
    margin_top: float = 20.0
    margin_bottom: float = 20.0

    title_font_size: float = 18.0
    heading_font_size: float = 12.0
    body_font_size: float = 10.0
    # Line height in mm per point of font size
    title_line_ratio: float = 2 / 3
    heading_line_ratio: float = 2 / 3
    body_line_ratio: float = 0.6
    # Average glyph width as a fraction of the em
    char_width_ratio: float = 0.5

    summary_gap: float = 6.0
    field_gap: float = 4.0
    section_gap: float = 8.0

    field_safety_margin: float = 7.0
    section_break_reserve: float = 37.0
    line_safety_margin: float = 2.0

    @property
    def content_width(self) -> float:
        return self.page_width - self.margin_left - self.margin_right

    @property
    def bottom_limit(self) -> float:
        return self.page_height - self.margin_bottom

    @property
    def field_threshold(self) -> float:
        """A field block may not end below this y."""
        return self.bottom_limit - self.field_safety_margin

    @property
    def section_threshold(self) -> float:
        """Full text starts on a new page when y is already below this."""
        return self.bottom_limit - self.section_break_reserve

    @property
    def line_threshold(self) -> float:
        """A full-text line starting below this y moves to a new page."""
        return self.bottom_limit - self.line_safety_margin

    def font_size(self, font_class: str) -> float:
        return {
            FontClass.TITLE: self.title_font_size,
            FontClass.HEADING: self.heading_font_size,
            FontClass.BODY: self.body_font_size,
        }[font_class]

    def line_height(self, font_class: str) -> float:
        ratio = {
            FontClass.TITLE: self.title_line_ratio,
            FontClass.HEADING: self.heading_line_ratio,
            FontClass.BODY: self.body_line_ratio,
        }[font_class]
        return round(self.font_size(font_class) * ratio, 3)


# ============================================================================
# Line Wrapping
# ============================================================================

def char_width(font_size: float, char_width_ratio: float = 0.5) -> float:
    """Width of one average glyph in mm."""
    return font_size * PT_TO_MM * char_width_ratio


def text_width(text: str, font_size: float, char_width_ratio: float = 0.5) -> float:
    return len(text) * char_width(font_size, char_width_ratio)


def wrap_text(
    text: str,
    max_width: float,
    font_size: float,
    char_width_ratio: float = 0.5
) -> List[str]:
    """
    Wrap text into lines no wider than max_width.

    Hard line breaks are kept (an empty input line stays an empty output
    line), words are packed greedily and a word longer than a full line is
    split by character.

    Args:
        text: Text to wrap
        max_width: Available width in mm
        font_size: Font size in points
        char_width_ratio: Average glyph width as a fraction of the em

    Returns:
        Wrapped lines
    """
    if not text:
        return []

    max_chars = max(1, int(max_width / char_width(font_size, char_width_ratio) + 1e-9))
    wrapper = textwrap.TextWrapper(
        width=max_chars,
        break_long_words=True,
        break_on_hyphens=False,
        replace_whitespace=False,
        drop_whitespace=True,
    )

    lines = []
    for paragraph in text.replace("\r\n", "\n").replace("\r", "\n").split("\n"):
        wrapped = wrapper.wrap(paragraph.expandtabs(4))
        lines.extend(wrapped if wrapped else [""])
    return lines


# ============================================================================
# Layout
# ============================================================================

@dataclass(frozen=True)
class DrawInstruction:
    """A single line of text at an absolute position (mm, baseline y)."""
    text: str
    x: float
    y: float
    font_class: str
    italic: bool = False


@dataclass
class Page:
    number: int
    instructions: List[DrawInstruction] = field(default_factory=list)

    @property
    def lines(self) -> List[str]:
        return [i.text for i in self.instructions]


class _Cursor:
    """Running page list and vertical position."""

    def __init__(self, config: PageConfig):
        self.config = config
        self.pages: List[Page] = []
        self.y = config.margin_top
        self.new_page()

    @property
    def page(self) -> Page:
        return self.pages[-1]

    def new_page(self):
        self.pages.append(Page(number=len(self.pages) + 1))
        self.y = self.config.margin_top

    def draw(self, text: str, font_class: str, y: Optional[float] = None, italic: bool = False):
        self.page.instructions.append(DrawInstruction(
            text=text,
            x=round(self.config.margin_left, 3),
            y=round(self.y if y is None else y, 3),
            font_class=font_class,
            italic=italic,
        ))


class PdfLayoutEngine:
    """
    Paginate an extraction into fixed-size pages.

    Structured fields are checked for overflow once per field, so a field's
    lines stay on one page unless the field is taller than a whole page;
    such a field starts on a fresh page and breaks per line. Full text is
    checked per line and may continue on the next page at any line.
    """

    def __init__(self, config: Optional[PageConfig] = None):
        self.config = config or PageConfig()

    def wrap(self, text: str, font_class: str = FontClass.BODY) -> List[str]:
        return wrap_text(
            text,
            self.config.content_width,
            self.config.font_size(font_class),
            self.config.char_width_ratio,
        )

    def layout(
        self,
        extraction: Optional[ExtractionResult],
        document_name: Optional[str] = None
    ) -> List[Page]:
        """
        Lay out the title, summary, details and full text.

        Args:
            extraction: Extraction to lay out
            document_name: Title drawn at the top of page 1

        Returns:
            Pages numbered from 1
        """
        cfg = self.config
        extraction = extraction or ExtractionResult()
        cursor = _Cursor(cfg)
        body_lh = cfg.line_height(FontClass.BODY)

        # Title
        cursor.draw(document_name or "Document", FontClass.TITLE)
        cursor.y += cfg.line_height(FontClass.TITLE)

        # Summary: drawn as one block, no overflow check
        if extraction.formatted_summary:
            lines = self.wrap(extraction.formatted_summary)
            for i, line in enumerate(lines):
                cursor.draw(line, FontClass.BODY, y=cursor.y + i * body_lh, italic=True)
            cursor.y += len(lines) * body_lh + cfg.summary_gap

        # Details: overflow checked once per field
        fields = labeled_fields(extraction.structured_data)
        if fields:
            cursor.draw("Details", FontClass.HEADING)
            cursor.y += cfg.line_height(FontClass.HEADING)
            page_room = cfg.field_threshold - cfg.margin_top
            for label, display in fields:
                lines = self.wrap(f"{label}: {display}")
                height = len(lines) * body_lh
                if height > page_room:
                    # Taller than a page: start fresh, then break per line
                    if cursor.y > cfg.margin_top:
                        cursor.new_page()
                    for line in lines:
                        if cursor.y + body_lh > cfg.field_threshold:
                            cursor.new_page()
                        cursor.draw(line, FontClass.BODY)
                        cursor.y += body_lh
                    cursor.y += cfg.field_gap
                    continue
                if cursor.y + height > cfg.field_threshold:
                    cursor.new_page()
                for i, line in enumerate(lines):
                    cursor.draw(line, FontClass.BODY, y=cursor.y + i * body_lh)
                cursor.y += height + cfg.field_gap
            cursor.y += cfg.section_gap

        # Full text: overflow checked per line
        full_text = full_text_of(extraction)
        if full_text:
            if cursor.y > cfg.section_threshold:
                cursor.new_page()
            cursor.draw("Full text", FontClass.HEADING)
            cursor.y += cfg.line_height(FontClass.HEADING)
            for line in self.wrap(full_text):
                if cursor.y > cfg.line_threshold:
                    cursor.new_page()
                cursor.draw(line, FontClass.BODY)
                cursor.y += body_lh

        logger.debug(f"Laid out {len(cursor.pages)} page(s) for {document_name!r}")
        return cursor.pages


def layout(
    extraction: Optional[ExtractionResult],
    document_name: Optional[str] = None,
    page_config: Optional[PageConfig] = None
) -> List[Page]:
    """Lay out an extraction with the given page configuration."""
    return PdfLayoutEngine(page_config).layout(extraction, document_name)


# ============================================================================
# PDF Encoder
# ============================================================================

class PdfEncoder:
    """Draw laid-out pages into a PDF using fpdf2."""

    FONT_STYLES = {
        FontClass.TITLE: "B",
        FontClass.HEADING: "B",
        FontClass.BODY: "",
    }

    def __init__(
        self,
        config: Optional[PageConfig] = None,
        font_path: Optional[str] = None,
        font_family: str = "Helvetica"
    ):
        self.config = config or PageConfig()
        self.font_path = font_path
        self.font_family = font_family

    def encode(self, pages: List[Page]) -> bytes:
        """
        Encode pages to PDF bytes.

        Without a TrueType font only Latin-1 text can be drawn; other
        characters are replaced.
        """
        from fpdf import FPDF

        cfg = self.config
        pdf = FPDF(unit="mm", format=(cfg.page_width, cfg.page_height))
        pdf.set_auto_page_break(auto=False)
        pdf.set_margins(cfg.margin_left, cfg.margin_top, cfg.margin_right)

        family = self.font_family
        unicode_font = bool(self.font_path)
        if unicode_font:
            family = "DocScan"
            pdf.add_font(family, "", self.font_path)

        for page in pages:
            pdf.add_page()
            for instr in page.instructions:
                style = "" if unicode_font else self._style(instr)
                pdf.set_font(family, style, cfg.font_size(instr.font_class))
                text = instr.text if unicode_font else self._latin1(instr.text)
                pdf.text(instr.x, instr.y, text)

        logger.debug(f"Encoded PDF with {len(pages)} page(s)")
        return bytes(pdf.output())

    def _style(self, instr: DrawInstruction) -> str:
        style = self.FONT_STYLES.get(instr.font_class, "")
        if instr.italic:
            style += "I"
        return style

    @staticmethod
    def _latin1(text: str) -> str:
        return text.encode("latin-1", "replace").decode("latin-1")
