#!/usr/bin/env python
"""
Command-line interface for the Document Export Pipeline.

Usage:
    python src/cli.py --id <document_id> --format <format> [options]

Examples:
    # Export a saved document as PDF and DOCX
    python src/cli.py --id 1718000000000 --format pdf docx

    # Export an extraction JSON file straight to the downloads folder
    python src/cli.py --input receipt.json --format txt --mode download

    # List saved documents
    python src/cli.py --list
"""

import sys
from pathlib import Path

# Add src directory to path for imports when running as script
_src_dir = Path(__file__).parent
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

import argparse
import json
import logging
from typing import List, Optional

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("docscan")


def setup_argparser() -> argparse.ArgumentParser:
    """Create argument parser."""
    from docscan.export import DEFAULT_FORMATS

    parser = argparse.ArgumentParser(
        description="Document Export Pipeline - Export scanned documents to shareable files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Export a saved document as PDF:
    python -m cli --id 1718000000000 --format pdf

  Export an extraction file as text and HTML into ./out:
    python -m cli --input extraction.json --format txt html --output ./out

  Show supported formats:
    python -m cli --list-formats
        """
    )

    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--id",
        help="Id of a saved document in the store"
    )
    source.add_argument(
        "--input", "-i",
        help="Extraction JSON, saved-document JSON, raw model reply or OCR text (.txt) file"
    )

    parser.add_argument(
        "--format", "-f",
        nargs="+",
        default=["pdf"],
        choices=[f.id for f in DEFAULT_FORMATS],
        help="Output format(s) (default: pdf)"
    )

    parser.add_argument(
        "--store",
        default=None,
        help="Path to the document store JSON (default: ~/.docscan/documents.json)"
    )

    parser.add_argument(
        "--mode",
        choices=["share", "download"],
        default=None,
        help="Delivery mode (default: share)"
    )

    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Output directory (overrides the cache/downloads directory)"
    )

    parser.add_argument(
        "--list",
        action="store_true",
        help="List saved documents and exit"
    )

    parser.add_argument(
        "--list-formats",
        action="store_true",
        help="List supported export formats and exit"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress non-error output"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 1.0.0"
    )

    return parser


def load_input_document(input_path: Path):
    """
    Load a SavedDocument from an input file.

    Accepts a saved-document JSON record, a bare extraction JSON object,
    a raw extraction-model reply (JSON wrapped in a code fence) or, for
    `.txt` files, plain OCR text.
    """
    from docscan.schema import ExtractionResult, SavedDocument, fallback_extraction, parse_model_response

    text = input_path.read_text(encoding="utf-8")

    if input_path.suffix.lower() == ".txt":
        extraction = fallback_extraction(text)
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            # Model replies often wrap the JSON in a markdown fence
            extraction = parse_model_response(text)
        else:
            if not isinstance(data, dict):
                raise ValueError(f"Expected a JSON object in {input_path}")
            if "extraction" in data or "uri" in data:
                document = SavedDocument.from_dict(data)
                if document.extraction is not None:
                    log_schema_coverage(document.extraction)
                return document
            extraction = ExtractionResult.from_dict(data)

    log_schema_coverage(extraction)
    return SavedDocument(
        id=input_path.stem,
        name=input_path.stem,
        extraction=extraction,
    )


def log_schema_coverage(extraction):
    """Report how the structured data lines up with its type's schema."""
    data = extraction.structured_data
    schema = extraction.schema
    known = schema.known_fields(data)
    extra = schema.extra_fields(data)
    logger.debug(
        f"{extraction.document_type.value}: {len(known)} schema field(s), "
        f"{len(extra)} extra field(s)"
    )
    missing = schema.missing_keys(data)
    if missing:
        logger.info(f"No value for: {', '.join(missing)}")


def build_coordinator(config, output_dir: Optional[str] = None):
    """Create an ExportCoordinator for the configured delivery mode."""
    from docscan.delivery import DownloadDelivery, SaveAndShareDelivery
    from docscan.export import ExportCoordinator
    from docscan.io import FileImageSource
    from config import DeliveryMode

    if config.delivery.mode == DeliveryMode.DOWNLOAD:
        delivery = DownloadDelivery(output_dir or config.delivery.downloads_dir)
    else:
        delivery = SaveAndShareDelivery(output_dir or config.delivery.cache_dir)

    return ExportCoordinator(
        delivery=delivery,
        image_source=FileImageSource(),
        page_config=config.export.page,
        docx_template=config.export.docx_template,
        pdf_font_path=config.export.pdf_font_path,
    )


def list_documents(store) -> int:
    documents = store.all()
    if not documents:
        print("No saved documents")
        return 0
    for doc in documents:
        doc_type = doc.extraction.document_type.value if doc.extraction else "-"
        edited = " (edited)" if doc.was_edited else ""
        print(f"{doc.id}  {doc.name}  {doc_type}{edited}  {doc.created_at}")
    return 0


def list_formats() -> int:
    from docscan.export import FormatRegistry

    for fmt in FormatRegistry.default():
        print(f"{fmt.id:<6} {fmt.label:<18} .{fmt.ext:<5} {fmt.mime}")
    return 0


def run_export(args) -> int:
    """Run the export for every requested format."""
    from docscan.errors import ExportError, NoDocument
    from docscan.io import DocumentStore
    from config import get_config

    config = get_config()
    if args.store:
        config.store.store_path = Path(args.store)
    if args.mode:
        config.delivery.mode = args.mode

    store = DocumentStore(config.store.store_path, config.store.documents_dir)

    if args.list:
        return list_documents(store)
    if args.list_formats:
        return list_formats()

    if not args.id and not args.input:
        logger.error("One of --id or --input is required")
        return 1

    coordinator = build_coordinator(config, args.output)

    try:
        if args.input:
            document = load_input_document(Path(args.input))
        else:
            document = store.get(args.id)
            if document is None:
                raise NoDocument(f"Document not found: {args.id}")
    except (OSError, ValueError) as e:
        logger.error(f"Could not load input: {e}")
        return 1
    except ExportError as e:
        logger.error(str(e))
        return 1

    formats: List[str] = args.format
    failed = 0
    for format_id in formats:
        try:
            result = coordinator.export(document, format_id)
        except ExportError as e:
            logger.error(str(e))
            failed += 1
            continue
        if not args.quiet:
            print(f"{result.message}: {result.path}")

    return 1 if failed else 0


def main():
    """Main entry point."""
    parser = setup_argparser()
    args = parser.parse_args()

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger().setLevel(logging.ERROR)

    try:
        exit_code = run_export(args)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)


if __name__ == "__main__":
    main()
