"""
Conversion orchestrator.

Runs the full PDF-to-Word pipeline:
1. Extract every page (text fragments, images, rasters for pages without text)
2. If some pages have no usable text, pause and ask how to treat them
3. Optionally OCR those pages
4. Synthesize structured blocks per page
5. Build the DOCX package
"""

import copy
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from .config import PipelineConfig, get_config
from .errors import ConversionError, ConversionFailedError, ExtractionWarning, OcrFailure
from .export import DocxBuilder
from .extraction import ExtractedPage, PageExtractor
from .io import PdfReader
from .ocr_text import PageOCR
from .progress import (
    EXTRACTION_BAND, OCR_BAND, SYNTHESIS_BAND, ProgressCallback, ProgressTracker, band_percent,
)
from .synthesis import PageContent, PageSynthesizer

logger = logging.getLogger(__name__)


# ============================================================================
# States and Results
# ============================================================================

class ConversionState(Enum):
    EXTRACTING = "extracting"
    ALL_TEXT_PRESENT = "all_text_present"
    SCANNED_PAGES_FOUND = "scanned_pages_found"
    AWAITING_USER_CHOICE = "awaiting_user_choice"
    RUNNING_OCR = "running_ocr"
    SYNTHESIZING = "synthesizing"
    ASSEMBLING = "assembling"
    DONE = "done"
    FAILED = "failed"


class ConversionMethod(Enum):
    """How the document was converted."""
    TEXT = "text"  # every page had a text layer
    IMAGE = "image"  # pages without text embedded as full-page images
    OCR = "ocr"  # pages without text recognized with OCR


@dataclass
class PendingChoice:
    """
    Extracted pages waiting for the caller to decide on scanned pages.

    Plain data: it can be stored (e.g. in a web session) and passed back to
    `PdfToWordConverter.resume_with_choice` later.
    """
    scanned_page_count: int
    pages: List[ExtractedPage]
    warnings: List[ExtractionWarning] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def scanned_pages(self) -> List[int]:
        return [p.page_number for p in self.pages if not p.has_text]


@dataclass
class ConversionResult:
    """A finished conversion."""
    data: bytes
    page_count: int
    method: ConversionMethod
    warnings: List[ExtractionWarning] = field(default_factory=list)
    pages: List[PageContent] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page_count": self.page_count,
            "method": self.method.value,
            "size_bytes": len(self.data),
            "warnings": [w.to_dict() for w in self.warnings],
            "pages": [p.to_dict() for p in self.pages]
        }


# ============================================================================
# Converter
# ============================================================================

class PdfToWordConverter:
    """
    Orchestrates the conversion pipeline.

    Coordinates:
    - Page extraction
    - The scanned page decision (image or OCR)
    - OCR engine lifecycle
    - Paragraph/table/image synthesis
    - DOCX assembly
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        reader_factory: Callable[[bytes], Any] = PdfReader,
        ocr_factory: Optional[Callable[[Any], Any]] = None,
        builder: Optional[Any] = None
    ):
        self.config = config or get_config()
        self.reader_factory = reader_factory
        self.ocr_factory = ocr_factory or PageOCR.from_config
        self.builder = builder or DocxBuilder(self.config.export)

        self.extractor = PageExtractor(self.config.extraction)
        self.synthesizer = PageSynthesizer(self.config.synthesis, self.config.geometry)
        self.state: Optional[ConversionState] = None

    def convert(
        self,
        data: bytes,
        on_progress: Optional[ProgressCallback] = None
    ) -> Union[ConversionResult, PendingChoice]:
        """
        Convert PDF bytes.

        Returns:
            ConversionResult when every page has text, otherwise a
            PendingChoice to pass to `resume_with_choice`

        Raises:
            ConversionError: On any fatal error
        """
        tracker = ProgressTracker(callback=on_progress)

        with self._failing_state():
            self.state = ConversionState.EXTRACTING
            with self.reader_factory(data) as reader:
                pages = self.extractor.extract(reader, tracker)
            tracker.report(EXTRACTION_BAND[1])

            scanned = sum(1 for p in pages if not p.has_text)
            if scanned:
                self.state = ConversionState.SCANNED_PAGES_FOUND
                logger.info(f"{scanned} of {len(pages)} page(s) have no usable text")
                self.state = ConversionState.AWAITING_USER_CHOICE
                return PendingChoice(
                    scanned_page_count=scanned,
                    pages=pages,
                    warnings=list(tracker.warnings)
                )

            self.state = ConversionState.ALL_TEXT_PRESENT
            return self._finish(pages, ConversionMethod.TEXT, tracker)

    def resume_with_choice(
        self,
        pending: PendingChoice,
        choice: Union[str, ConversionMethod],
        on_progress: Optional[ProgressCallback] = None
    ) -> ConversionResult:
        """
        Continue a paused conversion.

        Args:
            pending: Value returned by `convert`
            choice: "image" to embed scanned pages as pictures, "ocr" to
                recognize their text

        Raises:
            ValueError: For an unknown choice
            ConversionError: On any fatal error
        """
        method = ConversionMethod(choice)
        if method == ConversionMethod.TEXT:
            raise ValueError("Choice must be 'image' or 'ocr'")

        tracker = ProgressTracker(
            callback=on_progress,
            warnings=list(pending.warnings)
        )
        tracker.report(EXTRACTION_BAND[1])

        with self._failing_state():
            # The pending value stays reusable if OCR fails part way
            pages = copy.deepcopy(pending.pages)
            if method == ConversionMethod.OCR:
                self._run_ocr(pages, tracker)
            return self._finish(pages, method, tracker)

    # ------------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------------

    def _run_ocr(self, pages: List[ExtractedPage], tracker: ProgressTracker):
        """Recognize every page without usable text, in place."""
        self.state = ConversionState.RUNNING_OCR
        tracker.update("ocr")

        targets = [p for p in pages if not p.has_text]
        engine = self.ocr_factory(self.config.ocr)
        try:
            for done, page in enumerate(targets, 1):
                logger.info(f"Running OCR on page {page.page_number} ({done}/{len(targets)})")
                if page.raster is None:
                    tracker.warn(page.page_number, "No raster available for OCR", kind="render")
                else:
                    page.text = self._recognize(engine, page)
                    page.ocr_applied = True
                    page.has_text = True
                    page.raster = None
                tracker.report(band_percent(OCR_BAND, done, len(targets)))
        finally:
            engine.terminate()

    def _recognize(self, engine: Any, page: ExtractedPage) -> str:
        try:
            result = engine.recognize(page.raster)
        except OcrFailure as e:
            e.page_number = page.page_number
            raise
        except Exception as e:
            raise OcrFailure(f"OCR failed on page {page.page_number}: {e}", page.page_number) from e
        return result.text

    def _finish(
        self,
        pages: List[ExtractedPage],
        method: ConversionMethod,
        tracker: ProgressTracker
    ) -> ConversionResult:
        tracker.report(OCR_BAND[1])

        self.state = ConversionState.SYNTHESIZING
        tracker.update("synthesizing")
        contents = []
        for done, page in enumerate(pages, 1):
            contents.append(self.synthesizer.synthesize(page, tracker, is_first=done == 1))
            tracker.report(band_percent(SYNTHESIS_BAND, done, len(pages)))

        self.state = ConversionState.ASSEMBLING
        tracker.update("assembling")
        data = self.builder.build(contents)

        self.state = ConversionState.DONE
        tracker.report(100.0)
        logger.info(
            f"Conversion complete: {len(pages)} page(s), method={method.value}, "
            f"{len(tracker.warnings)} warning(s)"
        )

        return ConversionResult(
            data=data,
            page_count=len(pages),
            method=method,
            warnings=list(tracker.warnings),
            pages=contents
        )

    @contextmanager
    def _failing_state(self):
        """Mark the converter FAILED on error and wrap unexpected exceptions."""
        try:
            yield
        except ConversionError as e:
            self.state = ConversionState.FAILED
            logger.error(f"Conversion failed: {e}")
            raise
        except Exception as e:
            self.state = ConversionState.FAILED
            logger.error(f"Unexpected error during conversion: {e}")
            raise ConversionFailedError(str(e)) from e
