"""
Configuration and constants for the document export pipeline.

This module provides:
- Logging setup
- Delivery, store and export settings
- PDF page configuration
- Environment overrides
"""

import os
from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path
import logging

from docscan.pdf_layout import PageConfig

# ============================================================================
# Logging Configuration
# ============================================================================

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("docscan")


# ============================================================================
# Directory Paths
# ============================================================================

DATA_DIR = Path.home() / ".docscan"
CACHE_DIR = DATA_DIR / "cache"
DOWNLOADS_DIR = Path.home() / "Downloads"
STORE_PATH = DATA_DIR / "documents.json"


# ============================================================================
# Configuration
# ============================================================================

class DeliveryMode:
    """How exported files reach the user."""
    SHARE = "share"        # save to cache, then share
    DOWNLOAD = "download"  # write into the downloads directory


@dataclass
class DeliveryConfig:
    """Delivery configuration."""
    mode: str = DeliveryMode.SHARE
    cache_dir: Path = CACHE_DIR
    downloads_dir: Path = DOWNLOADS_DIR


@dataclass
class StoreConfig:
    """Document store configuration."""
    store_path: Path = STORE_PATH
    # Captured images are copied here on save (None = keep original reference)
    documents_dir: Optional[Path] = None


@dataclass
class ExportConfig:
    """Export configuration."""
    docx_template: Optional[str] = None
    # TrueType font for non Latin-1 text in PDFs
    pdf_font_path: Optional[str] = None
    page: PageConfig = field(default_factory=PageConfig)


@dataclass
class AppConfig:
    """Main application configuration."""
    delivery: DeliveryConfig = field(default_factory=DeliveryConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    debug_mode: bool = False


# ============================================================================
# Default Configuration Instance
# ============================================================================

def get_config() -> AppConfig:
    """Get the default configuration with environment overrides."""
    config = AppConfig()

    mode = os.environ.get("DOCSCAN_DELIVERY_MODE", "").lower()
    if mode in (DeliveryMode.SHARE, DeliveryMode.DOWNLOAD):
        config.delivery.mode = mode
    elif mode:
        logger.warning(f"Ignoring unknown DOCSCAN_DELIVERY_MODE: {mode}")

    if os.environ.get("DOCSCAN_CACHE_DIR"):
        config.delivery.cache_dir = Path(os.environ["DOCSCAN_CACHE_DIR"])
    if os.environ.get("DOCSCAN_DOWNLOADS_DIR"):
        config.delivery.downloads_dir = Path(os.environ["DOCSCAN_DOWNLOADS_DIR"])
    if os.environ.get("DOCSCAN_STORE_PATH"):
        config.store.store_path = Path(os.environ["DOCSCAN_STORE_PATH"])

    config.export.docx_template = os.environ.get("DOCSCAN_DOCX_TEMPLATE")
    config.export.pdf_font_path = os.environ.get("DOCSCAN_PDF_FONT")

    if os.environ.get("DOCSCAN_DEBUG", "").lower() == "true":
        config.debug_mode = True

    return config
