"""
I/O utilities for the scanned document store.

Handles:
- JSON store files
- Directory management
- Image bytes by reference (paths, file:// and data: URIs)
- The JSON-file document store
"""

import base64
import io
import json
import logging
import mimetypes
import shutil
import time
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union
from urllib.parse import unquote, urlparse

from .schema import ExtractionResult, SavedDocument

logger = logging.getLogger(__name__)


# ============================================================================
# JSON Files
# ============================================================================

def save_json(data: Any, output_path: Union[str, Path]) -> Path:
    """
    Write JSON-compatible data to a file.

    The file is written next to its target and then moved into place, so a
    reader never sees a half-written store.
    """
    output_path = Path(output_path)
    ensure_dir(output_path.parent)

    tmp_path = output_path.with_name(output_path.name + ".tmp")
    with open(tmp_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    tmp_path.replace(output_path)

    logger.debug(f"Saved JSON: {output_path}")
    return output_path


def load_json(json_path: Union[str, Path]) -> Any:
    """Load data from a JSON file."""
    with open(json_path, 'r', encoding='utf-8') as f:
        return json.load(f)


# ============================================================================
# Directory Management
# ============================================================================

def ensure_dir(path: Union[str, Path]) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def format_file_size(size: int) -> str:
    """Human readable size, e.g. 1536 -> '1.5 KB'."""
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    value = float(size)
    i = 0
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    return f"{round(value, 2):g} {units[i]}"


# ============================================================================
# Image Source
# ============================================================================

def uri_to_path(uri: str) -> Path:
    """Convert a file:// URI or plain path to a Path."""
    if uri.startswith("file://"):
        return Path(unquote(urlparse(uri).path))
    return Path(uri)


def detect_image_mime(data: bytes) -> Optional[str]:
    """Detect the MIME type of image bytes with Pillow."""
    from PIL import Image, UnidentifiedImageError

    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError):
        return None
    return Image.MIME.get(fmt) if fmt else None


class FileImageSource:
    """Fetch image bytes for a stored image reference."""

    def fetch(self, uri: str) -> Tuple[bytes, str]:
        """
        Read the image behind `uri`.

        Args:
            uri: Local path, file:// URI or base64 data: URI

        Returns:
            Tuple of (raw bytes, detected MIME type)

        Raises:
            FileNotFoundError: If the referenced file doesn't exist
            ValueError: If a data: URI cannot be decoded
        """
        if uri.startswith("data:"):
            data, declared = self._decode_data_uri(uri)
        else:
            path = uri_to_path(uri)
            if not path.is_file():
                raise FileNotFoundError(f"Image file not found: {path}")
            data = path.read_bytes()
            declared = mimetypes.guess_type(str(path))[0]

        mime = detect_image_mime(data) or declared or "application/octet-stream"
        logger.debug(f"Fetched {len(data)} bytes ({mime}) from image reference")
        return data, mime

    @staticmethod
    def _decode_data_uri(uri: str) -> Tuple[bytes, Optional[str]]:
        header, sep, payload = uri.partition(",")
        if not sep:
            raise ValueError("Malformed data URI")
        declared = header[len("data:"):].split(";")[0] or None
        try:
            if ";base64" in header:
                return base64.b64decode(payload, validate=True), declared
            return unquote(payload).encode("utf-8"), declared
        except ValueError as e:
            raise ValueError(f"Could not decode data URI: {e}")


# ============================================================================
# Document Store
# ============================================================================

class DocumentStore:
    """
    Saved documents kept as one JSON list, newest first.

    Every write rewrites the whole file, so the most recent write wins.
    """

    def __init__(
        self,
        store_path: Union[str, Path],
        documents_dir: Optional[Union[str, Path]] = None
    ):
        self.store_path = Path(store_path)
        self.documents_dir = Path(documents_dir) if documents_dir else None

    def _read(self) -> List[dict]:
        if not self.store_path.exists():
            return []
        try:
            data = load_json(self.store_path)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read document store {self.store_path}: {e}")
            return []
        if not isinstance(data, list):
            logger.warning(f"Document store {self.store_path} is not a list, ignoring")
            return []
        return data

    def _write(self, records: List[dict]):
        save_json(records, self.store_path)

    def all(self) -> List[SavedDocument]:
        return [SavedDocument.from_dict(r) for r in self._read()]

    def get(self, document_id: str) -> Optional[SavedDocument]:
        """Look a document up by id; None when absent."""
        for record in self._read():
            if str(record.get("id")) == str(document_id):
                return SavedDocument.from_dict(record)
        return None

    def save(
        self,
        image_uri: str,
        extraction: Optional[ExtractionResult] = None,
        source: str = "camera"
    ) -> SavedDocument:
        """
        Create a document record for a captured image.

        The image is copied into `documents_dir` when one is configured; if
        the copy fails the record keeps the original reference.
        """
        records = self._read()
        existing = {str(r.get("id")) for r in records}

        timestamp = int(time.time() * 1000)
        while str(timestamp) in existing:
            timestamp += 1
        doc_id = str(timestamp)
        name = f"document_{doc_id}.jpg"

        uri = image_uri
        size = 0
        if self.documents_dir is not None and not image_uri.startswith("data:"):
            target = self.documents_dir / name
            try:
                ensure_dir(self.documents_dir)
                shutil.copyfile(uri_to_path(image_uri), target)
                uri = str(target)
                size = target.stat().st_size
            except OSError as e:
                logger.warning(f"File copy failed, saving with original URI: {e}")

        document = SavedDocument(
            id=doc_id,
            name=name,
            uri=uri,
            original_uri=image_uri,
            extraction=extraction,
            created_at=datetime.now().isoformat(),
            source=source,
            size=size,
        )
        self._write([document.to_dict()] + records)
        logger.info(f"Document saved: {doc_id} ({format_file_size(size)})")
        return document

    def update_extraction(self, document_id: str, extraction: ExtractionResult) -> bool:
        """Attach or replace a document's extraction and mark it edited."""
        records = self._read()
        found = False
        for record in records:
            if str(record.get("id")) == str(document_id):
                record["extraction"] = extraction.to_dict()
                record["wasEdited"] = True
                record["editedAt"] = datetime.now().isoformat()
                found = True
        if not found:
            raise KeyError(f"Document not found: {document_id}")
        self._write(records)
        logger.info(f"Document extraction updated: {document_id}")
        return True

    def delete(self, document_id: str) -> bool:
        """Remove a record, and its copied image when it lives in documents_dir."""
        records = self._read()
        target = next((r for r in records if str(r.get("id")) == str(document_id)), None)
        if target is None:
            return False

        uri = target.get("uri")
        if self.documents_dir is not None and uri:
            path = uri_to_path(uri)
            if path.parent == self.documents_dir:
                try:
                    path.unlink()
                except OSError as e:
                    logger.warning(f"Could not delete file {path}: {e}")

        self._write([r for r in records if r is not target])
        logger.info(f"Document deleted: {document_id}")
        return True
