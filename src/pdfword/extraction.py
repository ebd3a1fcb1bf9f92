"""
Page extraction driver.

Walks every page of a document once, collecting text fragments, painted
images and (for pages without usable text) a full-page raster.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from .config import ExtractionConfig
from .geometry import TextFragment
from .images import RasterImage, repair_image_anchors
from .progress import EXTRACTION_BAND, ProgressTracker, band_percent

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class ExtractedPage:
    """Raw content of one page before synthesis."""
    page_number: int  # 1-indexed
    text: str = ""
    fragments: List[TextFragment] = field(default_factory=list)
    has_text: bool = False
    raster: Optional[np.ndarray] = None  # RGBA render, only for pages without text
    images: List[RasterImage] = field(default_factory=list)
    width: float = 0.0
    height: float = 0.0
    ocr_applied: bool = False

    @property
    def is_scanned(self) -> bool:
        return not self.has_text

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page_number": self.page_number,
            "has_text": self.has_text,
            "ocr_applied": self.ocr_applied,
            "width": self.width,
            "height": self.height,
            "fragments": len(self.fragments),
            "images": len(self.images),
            "rendered": self.raster is not None,
        }


# ============================================================================
# Extractor
# ============================================================================

class PageExtractor:
    """Runs page extraction over an open reader."""

    def __init__(self, config: Optional[ExtractionConfig] = None):
        self.config = config or ExtractionConfig()

    def has_usable_text(self, text: str) -> bool:
        return len(text.strip()) > self.config.min_text_length

    def extract(self, reader: Any, tracker: Optional[ProgressTracker] = None) -> List[ExtractedPage]:
        """
        Extract all pages of a document.

        Args:
            reader: Open PdfReader (or anything with the same page interface)
            tracker: Receives progress in the 0-20 band and page warnings

        Returns:
            One ExtractedPage per page, in document order
        """
        tracker = tracker or ProgressTracker()
        tracker.update("extracting")

        total = reader.page_count
        pages: List[ExtractedPage] = []
        images_before = 0

        for handle in reader.pages():
            logger.info(f"Extracting page {handle.number}/{total}")

            content = reader.read_page_content(handle, tracker)
            text = content.text
            has_text = self.has_usable_text(text)

            raster = None
            if not has_text:
                try:
                    raster = reader.render_page(handle, self.config.render_scale)
                except RuntimeError as e:
                    tracker.warn(handle.number, f"Page could not be rendered: {e}", kind="render")

            images = repair_image_anchors(
                content.images,
                content.fragments,
                page_height=handle.height,
                images_before=images_before,
                page_number=handle.number,
                tracker=tracker,
                caption_offset=self.config.caption_offset,
                tolerance=self.config.anchor_tolerance
            )
            images_before += len(images)

            pages.append(ExtractedPage(
                page_number=handle.number,
                text=text,
                fragments=content.fragments,
                has_text=has_text,
                raster=raster,
                images=images,
                width=handle.width,
                height=handle.height
            ))

            tracker.report(band_percent(EXTRACTION_BAND, handle.number, total))

        scanned = sum(1 for p in pages if p.is_scanned)
        logger.info(f"Extracted {len(pages)} page(s), {scanned} without usable text")
        return pages
