"""
Delivery of rendered artifacts.

Two deliveries share one interface:
- SaveAndShareDelivery: write to a cache directory, then hand the file to a
  share handler (native share sheet)
- DownloadDelivery: write straight into a downloads directory (browser
  download)
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Protocol, Union

from .errors import DeliveryFailed
from .io import ensure_dir

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedArtifact:
    """Self-contained export output, handed to delivery once."""
    content: Union[bytes, str]
    mime_type: str
    filename: str

    def to_bytes(self) -> bytes:
        if isinstance(self.content, bytes):
            return self.content
        return self.content.encode("utf-8")


@dataclass
class DeliveryResult:
    success: bool
    message: str
    filename: str
    path: Optional[Path] = None


class DeliveryPort(Protocol):
    def deliver(self, artifact: RenderedArtifact) -> DeliveryResult: ...


# Receives (path, filename, mime type); returns False when sharing failed
ShareHandler = Callable[[Path, str, str], bool]


def _write(directory: Path, artifact: RenderedArtifact) -> Path:
    filename = artifact.filename
    if not filename or filename in (".", "..") or "/" in filename or "\\" in filename:
        raise DeliveryFailed(f"Invalid export filename: {filename!r}")
    path = directory / filename
    try:
        ensure_dir(path.parent)
        path.write_bytes(artifact.to_bytes())
    except OSError as e:
        raise DeliveryFailed(f"Could not write {artifact.filename}: {e}")
    return path


class SaveAndShareDelivery:
    """Save the artifact to a cache path and offer it to a share handler."""

    def __init__(
        self,
        cache_dir: Union[str, Path],
        share_handler: Optional[ShareHandler] = None
    ):
        self.cache_dir = Path(cache_dir)
        self.share_handler = share_handler

    def deliver(self, artifact: RenderedArtifact) -> DeliveryResult:
        path = _write(self.cache_dir, artifact)
        logger.info(f"Saved {artifact.filename} to {path}")

        if self.share_handler is None:
            logger.debug("Sharing not available, file kept in cache")
            return DeliveryResult(True, f"Exported as {artifact.filename}", artifact.filename, path)

        try:
            shared = self.share_handler(path, artifact.filename, artifact.mime_type)
        except Exception as e:
            self._cleanup(path)
            raise DeliveryFailed(f"Could not share {artifact.filename}: {e}")

        if shared is False:
            self._cleanup(path)
            raise DeliveryFailed(f"Could not share {artifact.filename}")

        return DeliveryResult(True, f"Exported as {artifact.filename}", artifact.filename, path)

    def _cleanup(self, path: Path):
        try:
            path.unlink()
        except OSError as e:
            logger.warning(f"Failed to remove {path}: {e}")


class DownloadDelivery:
    """Write the artifact into a downloads directory."""

    def __init__(self, downloads_dir: Union[str, Path]):
        self.downloads_dir = Path(downloads_dir)

    def deliver(self, artifact: RenderedArtifact) -> DeliveryResult:
        path = _write(self.downloads_dir, artifact)
        logger.info(f"Downloaded {artifact.filename} to {path}")
        return DeliveryResult(True, f"Downloaded {artifact.filename}", artifact.filename, path)
