"""
Text-based renderers for extraction results.

Provides:
- Plain text export
- Standalone HTML export (all content escaped)
"""

import logging
from typing import Optional

from .fields import full_text_of, labeled_fields
from .schema import ExtractionResult

logger = logging.getLogger(__name__)


# ============================================================================
# Plain Text Renderer
# ============================================================================

class TextRenderer:
    """Render an extraction to plain text."""

    def __init__(self, rule_char: str = "=", rule_width: int = 40):
        self.rule_char = rule_char
        self.rule_width = rule_width

    def render(self, extraction: Optional[ExtractionResult]) -> str:
        """
        Build the plain text export.

        Layout is a header with a rule, the summary, one `Label: value`
        line per field, then a `FULL TEXT:` section. Blocks are separated
        by a blank line and absent blocks are skipped.
        """
        extraction = extraction or ExtractionResult()
        doc_type = extraction.document_type.value

        blocks = [f"{doc_type.upper()} DOCUMENT\n{self.rule_char * self.rule_width}"]

        if extraction.formatted_summary:
            blocks.append(extraction.formatted_summary)

        fields = labeled_fields(extraction.structured_data)
        if fields:
            blocks.append("\n".join(f"{label}: {display}" for label, display in fields))

        full_text = full_text_of(extraction)
        if full_text:
            blocks.append(f"FULL TEXT:\n{full_text}")

        return "\n\n".join(blocks)


# ============================================================================
# HTML Renderer
# ============================================================================

class HtmlRenderer:
    """Render an extraction to a standalone HTML document."""

    STYLE = (
        "body { font-family: -apple-system, BlinkMacSystemFont, sans-serif; "
        "padding: 24px; color: #111; max-width: 800px; margin: 0 auto; }\n"
        "    table { width: 100%; border-collapse: collapse; }\n"
        "    td { padding: 8px 12px; border-bottom: 1px solid #eee; vertical-align: top; }\n"
        "    td.label { font-weight: 600; color: #374151; width: 30%; }\n"
        "    pre { white-space: pre-wrap; font-family: monospace; background: #f9fafb; "
        "padding: 16px; border-radius: 8px; }"
    )

    def render(
        self,
        extraction: Optional[ExtractionResult],
        document_name: Optional[str] = None
    ) -> str:
        """
        Build the HTML export.

        Args:
            extraction: Extraction to render
            document_name: Title for the page (defaults to "Document")

        Returns:
            Complete HTML document as a string
        """
        extraction = extraction or ExtractionResult()
        name = self._escape_html(document_name or "Document")

        body = [f"  <h1>{name}</h1>"]

        if extraction.formatted_summary:
            body.append(
                f'  <p class="summary">{self._escape_html(extraction.formatted_summary)}</p>'
            )

        fields = labeled_fields(extraction.structured_data)
        if fields:
            body.append("  <table>")
            for label, display in fields:
                body.append("    <tr>")
                body.append(f'      <td class="label"><strong>{self._escape_html(label)}</strong></td>')
                body.append(f"      <td>{self._escape_html(display)}</td>")
                body.append("    </tr>")
            body.append("  </table>")

        full_text = full_text_of(extraction)
        if full_text:
            body.append("  <h2>Full text</h2>")
            body.append(f"  <pre>{self._escape_html(full_text)}</pre>")

        lines = [
            "<!DOCTYPE html>",
            "<html>",
            "<head>",
            '  <meta charset="utf-8">',
            f"  <title>{name}</title>",
            "  <style>",
            f"    {self.STYLE}",
            "  </style>",
            "</head>",
            "<body>",
            *body,
            "</body>",
            "</html>",
        ]
        return "\n".join(lines) + "\n"

    def _escape_html(self, text: str) -> str:
        """Escape HTML special characters."""
        return (str(text)
            .replace('&', '&amp;')
            .replace('<', '&lt;')
            .replace('>', '&gt;')
            .replace('"', '&quot;')
            .replace("'", '&#39;'))
