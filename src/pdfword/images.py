"""
Raster image utilities for the reconstruction pipeline.

Provides:
- RasterImage data class (RGBA pixel buffer plus page anchor)
- Conversion between PIL images, numpy arrays and PNG bytes
- Image anchor repair from figure captions
- Scaling for embedding
"""

import io
import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image

from .geometry import TextFragment
from .progress import ProgressTracker

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class RasterImage:
    """A decoded bitmap located on a page."""
    pixels: np.ndarray  # HxWx4 uint8, RGBA
    y: float = 0.0
    x: float = 0.0
    name: str = ""

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


# ============================================================================
# Conversion
# ============================================================================

def to_rgba(image: Image.Image) -> np.ndarray:
    """Convert any PIL image mode to an RGBA numpy array."""
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    return np.array(image, dtype=np.uint8)


def encode_png(pixels: np.ndarray) -> bytes:
    """Encode an RGBA (or grayscale/RGB) uint8 array as PNG bytes."""
    if pixels.ndim == 3 and pixels.shape[2] not in (3, 4):
        raise ValueError(f"Unexpected image shape: {pixels.shape}")

    image = Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8))
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def to_grayscale(pixels: np.ndarray) -> np.ndarray:
    """
    Convert an RGBA/RGB raster to grayscale for OCR.

    Transparent regions are composited onto white first.
    """
    import cv2

    if pixels.ndim == 2:
        return pixels
    if pixels.shape[2] == 4:
        alpha = pixels[:, :, 3:4].astype(np.float32) / 255.0
        rgb = pixels[:, :, :3].astype(np.float32) * alpha + 255.0 * (1.0 - alpha)
        return cv2.cvtColor(rgb.astype(np.uint8), cv2.COLOR_RGB2GRAY)
    if pixels.shape[2] == 3:
        return cv2.cvtColor(pixels, cv2.COLOR_RGB2GRAY)

    raise ValueError(f"Unexpected image shape: {pixels.shape}")


def scale_to_fit(width: int, height: int, max_width: int = 600) -> Tuple[int, int]:
    """
    Scale dimensions down (never up) so width fits within `max_width`.

    Aspect ratio is preserved.
    """
    if width <= 0 or height <= 0:
        return max(width, 0), max(height, 0)
    scale = min(max_width / width, 1.0)
    return round(width * scale), round(height * scale)


# ============================================================================
# Anchor Repair
# ============================================================================

def anchor_in_bounds(y: float, page_height: float, tolerance: float = 1.0) -> bool:
    return 0.0 <= y <= page_height + tolerance


def find_caption_y(fragments: Sequence[TextFragment], figure_number: int) -> Optional[float]:
    """Y of the first fragment containing "Figure N:" for the given number."""
    pattern = re.compile(rf"Figure\s+{figure_number}:", re.IGNORECASE)
    for fragment in fragments:
        if pattern.search(fragment.text):
            return fragment.y
    return None


def repair_image_anchors(
    images: List[RasterImage],
    fragments: Sequence[TextFragment],
    page_height: float,
    images_before: int,
    page_number: int,
    tracker: Optional[ProgressTracker] = None,
    caption_offset: float = 50.0,
    tolerance: float = 1.0
) -> List[RasterImage]:
    """
    Re-anchor images whose Y lies outside the page using figure captions.

    The figure number of the i-th image on a page is the count of images
    extracted on earlier pages plus i + 1. When a matching caption exists the
    image is placed `caption_offset` units above it; otherwise the anchor is
    kept and a warning reported. Images are never dropped here.

    Args:
        images: Images of one page, in paint order (modified in place)
        fragments: The page's text fragments
        page_height: Page height in page units
        images_before: Images extracted on all previous pages
        page_number: 1-based page number, for warnings
        tracker: Receives anchor warnings

    Returns:
        The same list of images
    """
    for idx, image in enumerate(images):
        if anchor_in_bounds(image.y, page_height, tolerance):
            continue

        figure_number = images_before + idx + 1
        caption_y = find_caption_y(fragments, figure_number)

        if caption_y is not None:
            logger.debug(
                f"Re-anchored image {idx} on page {page_number} from y={image.y:.1f} "
                f"to Figure {figure_number} caption"
            )
            image.y = caption_y + caption_offset
        else:
            message = (
                f"Image {idx} (Figure {figure_number}) has unusual Y={image.y:.1f}, "
                f"no Figure caption found"
            )
            if tracker is not None:
                tracker.warn(page_number, message, kind="anchor")
            else:
                logger.warning(message)

    return images
