"""
Export error taxonomy.

Every error carries a user-facing message that callers display verbatim.
"""


class ExportError(Exception):
    """Base class for all export failures."""


class UnsupportedFormat(ExportError):
    """Requested format id is not in the registry."""

    def __init__(self, format_id: str):
        self.format_id = format_id
        super().__init__(f"Unsupported format: {format_id}")


class NoDocument(ExportError):
    """Export was called without a document."""

    def __init__(self, message: str = "No document provided"):
        super().__init__(message)


class NoImageAvailable(ExportError):
    """Image export requested for a document with no image reference."""

    def __init__(self, message: str = "Document has no image to export"):
        super().__init__(message)


class DeliveryFailed(ExportError):
    """Saving, sharing or fetching the artifact failed."""


class RenderFailed(ExportError):
    """A renderer met a structure it cannot serialize."""
