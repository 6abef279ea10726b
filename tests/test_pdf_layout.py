"""
Tests for PDF line wrapping, pagination and encoding.
"""

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from docscan.pdf_layout import (
    FontClass,
    PageConfig,
    PdfEncoder,
    PdfLayoutEngine,
    layout,
    wrap_text,
)
from docscan.schema import DocumentType, ExtractionResult


def body_lines(pages, start_after):
    """(page number, instruction) pairs for body text after a heading."""
    result = []
    seen = False
    for page in pages:
        for instr in page.instructions:
            if instr.font_class == FontClass.HEADING:
                seen = instr.text == start_after
                continue
            if seen and instr.font_class == FontClass.BODY:
                result.append((page.number, instr))
    return result


class TestPageConfig:
    """Tests for derived page geometry."""

    def test_defaults(self):
        cfg = PageConfig()

        assert cfg.content_width == 170
        assert cfg.field_threshold == 270
        assert cfg.section_threshold == 240
        assert cfg.line_threshold == 275

    def test_line_heights(self):
        cfg = PageConfig()

        assert cfg.line_height(FontClass.TITLE) == 12.0
        assert cfg.line_height(FontClass.HEADING) == 8.0
        assert cfg.line_height(FontClass.BODY) == 6.0


class TestWrapText:
    """Tests for wrap_text."""

    def test_short_text_single_line(self):
        assert wrap_text("Hello world", 170, 10) == ["Hello world"]

    def test_empty_text(self):
        assert wrap_text("", 170, 10) == []

    def test_lines_fit_width(self):
        text = " ".join(["word"] * 200)
        lines = wrap_text(text, 170, 10)

        assert len(lines) > 1
        # 170mm at 10pt with 0.5em glyphs holds 96 characters
        assert all(len(line) <= 96 for line in lines)
        assert " ".join(lines) == text

    def test_hard_breaks_preserved(self):
        assert wrap_text("one\n\ntwo", 170, 10) == ["one", "", "two"]

    def test_long_word_is_split(self):
        word = "x" * 250
        lines = wrap_text(word, 170, 10)

        assert [len(line) for line in lines] == [96, 96, 58]
        assert "".join(lines) == word

    def test_narrow_width_still_progresses(self):
        assert wrap_text("abc", 0.1, 10) == ["a", "b", "c"]

    def test_deterministic(self):
        text = "Lorem ipsum dolor sit amet " * 40
        assert wrap_text(text, 120, 12) == wrap_text(text, 120, 12)


class TestLayout:
    """Tests for PdfLayoutEngine."""

    def test_title_and_details_positions(self, receipt_extraction):
        pages = PdfLayoutEngine().layout(receipt_extraction, "Receipt")
        first = pages[0].instructions

        assert pages[0].number == 1
        assert (first[0].text, first[0].y, first[0].font_class) == ("Receipt", 20.0, FontClass.TITLE)
        assert (first[1].text, first[1].y, first[1].font_class) == ("Details", 32.0, FontClass.HEADING)
        assert (first[2].text, first[2].y) == ("Vendor Name: Acme", 40.0)
        assert first[2].x == 20.0

    def test_summary_is_italic_block(self, passport_extraction):
        pages = PdfLayoutEngine().layout(passport_extraction, "Passport")
        summary = [i for i in pages[0].instructions if i.italic]

        assert [i.text for i in summary] == ["Passport of John Doe"]
        assert summary[0].y == 32.0
        details = next(i for i in pages[0].instructions if i.text == "Details")
        # 32 + one line (6) + gap (6)
        assert details.y == 44.0

    def test_fields_never_split_across_pages(self):
        """Each field block stays on one page; pages are as few as possible."""
        cfg = PageConfig()
        engine = PdfLayoutEngine(cfg)
        data = {f"f{i:02d}": " ".join(["abcd"] * 50) for i in range(30)}
        extraction = ExtractionResult(structured_data=data)

        assert len(engine.wrap("F00: " + data["f00"])) == 3

        pages = engine.layout(extraction, "Fields")
        lines = body_lines(pages, "Details")
        assert len(lines) == 90

        blocks = [lines[i:i + 3] for i in range(0, len(lines), 3)]
        for block in blocks:
            assert len({page for page, _ in block}) == 1
            ys = [instr.y for _, instr in block]
            assert ys == [ys[0], ys[0] + 6, ys[0] + 12]
            assert block[0][1].text.startswith("F")
            assert ys[-1] + 6 <= cfg.field_threshold

        # A block only moves to the next page when it would not fit
        for prev, nxt in zip(blocks, blocks[1:]):
            if prev[0][0] != nxt[0][0]:
                next_y = prev[0][1].y + 3 * 6 + cfg.field_gap
                assert next_y + 3 * 6 > cfg.field_threshold
                assert nxt[0][1].y == cfg.margin_top

        assert len(pages) == 3
        assert [p.number for p in pages] == [1, 2, 3]

    def test_field_taller_than_page_breaks_per_line(self):
        """A field longer than a page starts a new page and keeps every line on paper."""
        cfg = PageConfig()
        body = "\n".join(f"para {i}" for i in range(60))
        extraction = ExtractionResult(
            document_type=DocumentType.LETTER,
            structured_data={"body": body, "signatureBlock": "Jane"},
        )

        pages = layout(extraction, "Letter", cfg)
        lines = body_lines(pages, "Details")

        assert [instr.text for _, instr in lines] == (
            ["Body: para 0"] + [f"para {i}" for i in range(1, 60)] + ["Signature Block: Jane"]
        )
        assert all(
            instr.y + cfg.line_height(instr.font_class) <= cfg.field_threshold
            for page in pages for instr in page.instructions
        )
        assert len(pages) == 3
        assert [page for page, _ in lines].count(2) == 41
        assert lines[0][1].y == cfg.margin_top
        assert lines[41][1].y == cfg.margin_top
        # Following fields continue after the tall one
        assert lines[-1][0] == 3
        assert lines[-1][1].y == 138.0

    def test_full_text_splits_per_line(self):
        cfg = PageConfig()
        text = "\n".join(f"line {i}" for i in range(100))
        extraction = ExtractionResult(extracted_text=text)

        pages = layout(extraction, "Long", cfg)
        lines = body_lines(pages, "Full text")

        assert [instr.text for _, instr in lines] == text.split("\n")
        assert len(pages) == 3
        assert all(instr.y <= cfg.line_threshold for _, instr in lines)
        # Continuation lines start at the top margin
        second_page = [instr for page, instr in lines if page == 2]
        assert second_page[0].y == cfg.margin_top

    def test_full_text_moves_to_new_page_when_low(self):
        cfg = PageConfig()
        # 20 one-line fields push y past the section threshold
        data = {f"k{i}": "v" for i in range(20)}
        extraction = ExtractionResult(structured_data=data, extracted_text="tail")

        pages = layout(extraction, "Doc", cfg)

        heading = pages[-1].instructions[0]
        assert heading.text == "Full text"
        assert heading.y == cfg.margin_top
        assert len(pages) == 2

    def test_raw_text_not_a_detail(self, raw_text_only_extraction):
        pages = layout(raw_text_only_extraction, "Scan")
        texts = [i.text for p in pages for i in p.instructions]

        assert "Detected Language: en" in texts
        assert not any(t.startswith("Raw Text") for t in texts)
        assert texts[-2:] == ["Raw line one", "Raw line two"]

    def test_reproducible(self, passport_extraction):
        first = layout(passport_extraction, "Passport")
        second = layout(passport_extraction, "Passport")
        assert first == second

    def test_empty_extraction(self):
        pages = layout(ExtractionResult(document_type=DocumentType.OTHER), None)

        assert len(pages) == 1
        assert pages[0].lines == ["Document"]


class TestPdfEncoder:
    """Tests for PDF encoding with fpdf2."""

    def test_encode_produces_pdf(self, receipt_extraction):
        pages = layout(receipt_extraction, "Receipt")
        data = PdfEncoder().encode(pages)

        assert data.startswith(b"%PDF")

    def test_multi_page_document(self):
        text = "\n".join(f"line {i}" for i in range(100))
        pages = layout(ExtractionResult(extracted_text=text), "Long")

        assert len(pages) == 3
        assert PdfEncoder().encode(pages).startswith(b"%PDF")

    def test_non_latin_text_is_replaced(self):
        extraction = ExtractionResult(extracted_text="Привет 你好")
        pages = layout(extraction, "Unicode")

        assert PdfEncoder().encode(pages).startswith(b"%PDF")
