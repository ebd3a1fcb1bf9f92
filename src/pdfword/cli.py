#!/usr/bin/env python
"""
Command-line interface for PDF to Word conversion.

Usage:
    pdfword --input <pdf> --output <docx> [options]

Examples:
    # Convert a PDF, asking what to do with scanned pages
    pdfword --input report.pdf --output report.docx

    # OCR scanned pages without prompting
    pdfword --input scan.pdf --output scan.docx --scanned ocr --lang deu

    # Also write the structured content as JSON
    pdfword --input report.pdf --output report.docx --json report.json
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional

from . import __version__
from .assembler import PdfToWordConverter, PendingChoice
from .config import get_config
from .errors import ConversionError
from .io import read_pdf_bytes, save_json

logger = logging.getLogger("pdfword")


def setup_argparser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        description="PDF to Word - Rebuild a PDF as an editable DOCX document",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Convert a PDF:
    pdfword --input report.pdf --output report.docx

  Embed scanned pages as images without prompting:
    pdfword --input scan.pdf --output scan.docx --scanned image

  Put each PDF page on its own Word page:
    pdfword --input report.pdf --output report.docx --page-breaks
        """
    )

    # Required arguments
    parser.add_argument(
        "--input", "-i",
        required=True,
        help="Input PDF file"
    )

    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Output DOCX file (default: input name with .docx)"
    )

    # Optional arguments
    parser.add_argument(
        "--scanned",
        choices=["ask", "image", "ocr"],
        default="ask",
        help="How to handle pages without text (default: ask)"
    )

    parser.add_argument(
        "--lang",
        default=None,
        help="Tesseract language for OCR (default: eng)"
    )

    parser.add_argument(
        "--page-breaks",
        action="store_true",
        help="Start every PDF page on a new Word page"
    )

    parser.add_argument(
        "--json",
        default=None,
        metavar="PATH",
        help="Also save the structured page content as JSON"
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
        version=f"%(prog)s {__version__}"
    )

    return parser


def ask_scanned_choice(pending: PendingChoice) -> Optional[str]:
    """Prompt on stdin for the scanned page treatment. None cancels."""
    print(
        f"\n{pending.scanned_page_count} of {pending.page_count} page(s) have no text layer "
        f"(pages {', '.join(str(n) for n in pending.scanned_pages)})."
    )
    print("  [i] Embed them as images")
    print("  [o] Recognize their text with OCR")
    print("  [c] Cancel")

    while True:
        try:
            answer = input("Choice [i/o/c]: ").strip().lower()
        except EOFError:
            return None
        if answer in ("i", "image"):
            return "image"
        if answer in ("o", "ocr"):
            return "ocr"
        if answer in ("c", "cancel", "q"):
            return None


def print_progress(percent: float):
    sys.stderr.write(f"\rProgress: {percent:5.1f}%")
    if percent >= 100:
        sys.stderr.write("\n")
    sys.stderr.flush()


def run_conversion(args) -> int:
    """Run the conversion pipeline."""
    start_time = time.time()

    config = get_config()
    if args.lang:
        config.ocr.tesseract_lang = args.lang
    if args.page_breaks:
        config.export.page_breaks = True

    input_path = Path(args.input)
    output_path = Path(args.output) if args.output else input_path.with_suffix(".docx")

    data = read_pdf_bytes(input_path)
    converter = PdfToWordConverter(config)
    on_progress = None if args.quiet else print_progress

    result = converter.convert(data, on_progress=on_progress)

    if isinstance(result, PendingChoice):
        choice = args.scanned
        if choice == "ask":
            choice = ask_scanned_choice(result)
            if choice is None:
                logger.info("Conversion cancelled")
                return 1
        logger.info(f"Handling {result.scanned_page_count} scanned page(s) as: {choice}")
        result = converter.resume_with_choice(result, choice, on_progress=on_progress)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(result.data)
    logger.info(f"Saved DOCX: {output_path}")

    if args.json:
        save_json(result.to_dict(), args.json)
        logger.info(f"Saved JSON: {args.json}")

    elapsed = time.time() - start_time

    if not args.quiet:
        tables = sum(len(p.tables) for p in result.pages)
        images = sum(len(p.images) for p in result.pages)
        paragraphs = sum(len(p.paragraphs) for p in result.pages)

        print("\n" + "=" * 60)
        print("CONVERSION COMPLETE")
        print("=" * 60)
        print(f"Source: {input_path}")
        print(f"Output: {output_path}")
        print(f"Pages: {result.page_count}")
        print(f"Method: {result.method.value}")
        print(f"Processing time: {elapsed:.2f}s")
        print()
        print(f"  Paragraphs: {paragraphs}")
        print(f"  Tables: {tables}")
        print(f"  Images: {images}")
        if result.warnings:
            print(f"  Warnings: {len(result.warnings)}")
            for warning in result.warnings:
                print(f"    - {warning}")
        print("=" * 60)

    return 0


def main(argv=None):
    """Main entry point."""
    parser = setup_argparser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Configure logging level
    if args.verbose or get_config().debug_mode:
        logging.getLogger().setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger().setLevel(logging.ERROR)

    try:
        exit_code = run_conversion(args)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)
    except (ConversionError, FileNotFoundError, ValueError) as e:
        logger.error(f"Conversion failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
