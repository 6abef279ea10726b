"""
Tests for the plain text and HTML renderers.
"""

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from docscan.renderers import TextRenderer, HtmlRenderer
from docscan.schema import DocumentType, ExtractionResult


class TestTextRenderer:
    """Tests for TextRenderer."""

    def test_receipt_scenario(self, receipt_extraction):
        """Receipt export lists fields and ends with the full text."""
        text = TextRenderer().render(receipt_extraction)
        lines = text.split("\n")

        assert lines[0] == "RECEIPT DOCUMENT"
        assert lines[1] == "=" * 40
        assert "Vendor Name: Acme" in lines
        assert any(line.startswith("Items: ") for line in lines)
        assert "Total: 3.0" in lines
        assert text.endswith("FULL TEXT:\nAcme Store\nPen x2")

    def test_summary_block(self):
        extraction = ExtractionResult(
            document_type=DocumentType.LETTER,
            formatted_summary="Letter from Bob",
            structured_data={"sender": "Bob"},
        )
        text = TextRenderer().render(extraction)

        assert text == (
            "LETTER DOCUMENT\n" + "=" * 40 + "\n\n"
            "Letter from Bob\n\n"
            "Sender: Bob"
        )

    def test_raw_text_fallback(self, raw_text_only_extraction):
        """rawText shows once, as full text, never as a field."""
        text = TextRenderer().render(raw_text_only_extraction)

        assert text.endswith("FULL TEXT:\nRaw line one\nRaw line two")
        assert "Raw Text:" not in text
        assert text.count("Raw line one") == 1
        assert "Detected Language: en" in text

    def test_extracted_text_wins(self, passport_extraction):
        passport_extraction.structured_data["rawText"] = "DIFFERENT RAW"
        text = TextRenderer().render(passport_extraction)

        assert "PASSPORT\nDOE JOHN" in text
        assert "DIFFERENT RAW" not in text

    def test_skips_null_and_empty_fields(self, passport_extraction):
        text = TextRenderer().render(passport_extraction)

        assert "Place Of Birth" not in text
        assert "Visa Pages" not in text
        assert "Mrz Line1: P<UTODOE" in text

    def test_field_order_follows_insertion(self, passport_extraction):
        text = TextRenderer().render(passport_extraction)
        labels = [line.split(":")[0] for line in text.split("\n") if ": " in line]

        assert labels == ["Full Name", "Date Of Birth", "Passport Number", "Issue Date", "Mrz Line1"]

    def test_empty_extraction(self):
        text = TextRenderer().render(None)
        assert text == "OTHER DOCUMENT\n" + "=" * 40

    def test_idempotent(self, receipt_extraction):
        renderer = TextRenderer()
        assert renderer.render(receipt_extraction) == renderer.render(receipt_extraction)


class TestHtmlRenderer:
    """Tests for HtmlRenderer."""

    def test_document_structure(self, receipt_extraction):
        html = HtmlRenderer().render(receipt_extraction, "Receipt")

        assert html.startswith("<!DOCTYPE html>")
        assert '<meta charset="utf-8">' in html
        assert "<title>Receipt</title>" in html
        assert "<h1>Receipt</h1>" in html
        assert html.rstrip().endswith("</html>")

    def test_key_value_table(self, receipt_extraction):
        html = HtmlRenderer().render(receipt_extraction, "Receipt")

        assert "<table>" in html
        assert '<td class="label"><strong>Vendor Name</strong></td>' in html
        assert "<td>Acme</td>" in html
        # JSON quotes in nested values are escaped
        assert "{&quot;name&quot;:&quot;Pen&quot;" in html

    def test_escapes_all_reserved_characters(self):
        extraction = ExtractionResult(
            structured_data={"note": "<script>alert(\"x & 'y'\")</script>"},
            extracted_text="a < b & c > d",
        )
        html = HtmlRenderer().render(extraction, "Tom & Jerry's \"scan\"")

        assert "<script>" not in html
        assert "&lt;script&gt;alert(&quot;x &amp; &#39;y&#39;&quot;)&lt;/script&gt;" in html
        assert "<pre>a &lt; b &amp; c &gt; d</pre>" in html
        assert "<title>Tom &amp; Jerry&#39;s &quot;scan&quot;</title>" in html

    def test_full_text_block(self, raw_text_only_extraction):
        html = HtmlRenderer().render(raw_text_only_extraction, "Scan")

        assert "<h2>Full text</h2>" in html
        assert "<pre>Raw line one\nRaw line two</pre>" in html
        assert "Raw Text" not in html

    def test_omits_empty_sections(self):
        html = HtmlRenderer().render(ExtractionResult(), "Empty")

        assert 'class="summary"' not in html
        assert "<table>" not in html
        assert "<pre>" not in html
        assert "<h2>" not in html

    def test_summary_paragraph(self, passport_extraction):
        html = HtmlRenderer().render(passport_extraction, "Passport")
        assert '<p class="summary">Passport of John Doe</p>' in html

    def test_default_title(self):
        html = HtmlRenderer().render(ExtractionResult())
        assert "<h1>Document</h1>" in html

    def test_field_order_matches_text_export(self, passport_extraction):
        """Both encodings list the same fields in the same order."""
        html = HtmlRenderer().render(passport_extraction, "Passport")
        text = TextRenderer().render(passport_extraction)

        html_labels = [
            part.split("</strong>")[0]
            for part in html.split("<strong>")[1:]
        ]
        text_labels = [line.split(":")[0] for line in text.split("\n") if ": " in line]
        assert html_labels == text_labels

    def test_idempotent(self, receipt_extraction):
        renderer = HtmlRenderer()
        assert renderer.render(receipt_extraction, "R") == renderer.render(receipt_extraction, "R")
