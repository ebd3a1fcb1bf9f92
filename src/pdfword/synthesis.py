"""
Paragraph, table and image synthesis.

Turns ordered page content into structured blocks for the document builder:
- Paragraphs with alignment, heading and list classification, styled runs
- Tables padded to a rectangular grid
- Images scaled to the layout width
"""

import logging
import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .config import GeometryConfig, SynthesisConfig
from .geometry import Row, TextFragment, group_by_row, sorted_rows
from .images import RasterImage, encode_png, scale_to_fit
from .layout import ContentKind, order_page_content
from .progress import ProgressTracker
from .tables import detect_table_ranges

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes and Enums
# ============================================================================

class RowKind(Enum):
    """Classification of a text row."""
    HEADING = "heading"
    BODY = "body"
    BULLET_ITEM = "bullet_item"
    NUMBERED_ITEM = "numbered_item"


class Alignment(Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


@dataclass
class StyledRun:
    """A run of text with character formatting. Size is in half-points."""
    text: str
    size: int = 22
    font: str = "Calibri"
    bold: bool = False
    italic: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "size": self.size,
            "font": self.font,
            "bold": self.bold,
            "italic": self.italic
        }


@dataclass
class ParagraphBlock:
    runs: List[StyledRun]
    kind: RowKind = RowKind.BODY
    alignment: Alignment = Alignment.LEFT
    spacing_before: int = 120
    spacing_after: int = 120

    @property
    def text(self) -> str:
        return "".join(r.text for r in self.runs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "paragraph",
            "kind": self.kind.value,
            "alignment": self.alignment.value,
            "spacing": [self.spacing_before, self.spacing_after],
            "text": self.text,
            "runs": [r.to_dict() for r in self.runs]
        }


@dataclass
class TableBlock:
    """A table of single-run cells. Width is always 100%, columns equal."""
    rows: List[List[StyledRun]]
    num_cols: int

    @property
    def num_rows(self) -> int:
        return len(self.rows)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "table",
            "num_rows": self.num_rows,
            "num_cols": self.num_cols,
            "rows": [[cell.text for cell in row] for row in self.rows]
        }


@dataclass
class ImageBlock:
    """PNG image with its layout size (pixels at 96 DPI)."""
    data: bytes
    width: int
    height: int
    alignment: Alignment = Alignment.CENTER
    spacing_before: int = 200
    spacing_after: int = 200
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "image",
            "width": self.width,
            "height": self.height,
            "alignment": self.alignment.value,
            "spacing": [self.spacing_before, self.spacing_after],
            "description": self.description
        }


Block = Union[ParagraphBlock, TableBlock, ImageBlock]


@dataclass
class PageContent:
    """Structured content of one source page, in reading order."""
    page_number: int
    blocks: List[Block] = field(default_factory=list)
    source: str = "text"  # text, image, ocr

    @property
    def paragraphs(self) -> List[ParagraphBlock]:
        return [b for b in self.blocks if isinstance(b, ParagraphBlock)]

    @property
    def tables(self) -> List[TableBlock]:
        return [b for b in self.blocks if isinstance(b, TableBlock)]

    @property
    def images(self) -> List[ImageBlock]:
        return [b for b in self.blocks if isinstance(b, ImageBlock)]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page_number": self.page_number,
            "source": self.source,
            "blocks": [b.to_dict() for b in self.blocks]
        }


# ============================================================================
# Row Classification
# ============================================================================

BULLET_CHARS = "•·○●■□▪▫-"
BULLET_PATTERN = re.compile(rf"^[{re.escape(BULLET_CHARS)}]\s")
NUMBERED_PATTERN = re.compile(r"^\d+[.)]\s")
LIST_MARKER_PATTERN = re.compile(rf"^\s*(?:[{re.escape(BULLET_CHARS)}]|\d+[.)])\s*")
STYLE_SUFFIX_PATTERN = re.compile(r"-(BoldItalic|Bold|Italic)", re.IGNORECASE)
SUBSET_PREFIX_PATTERN = re.compile(r"^[A-Z]{6}\+")


def row_text(row: Row) -> str:
    return row.text.strip()


def mean_height(row: Row, default: float = 11.0) -> float:
    if not row.fragments:
        return default
    return sum(f.height or default for f in row.fragments) / len(row.fragments)


def is_page_number(row: Row, max_y: float = 100.0) -> bool:
    """
    Running page-number footer: a bare number (or number with trailing
    dots, but not a section number like "2.1") in a short row or near the
    bottom of the page.
    """
    text = row_text(row)
    numeric = (
        re.fullmatch(r"\d+", text) is not None or
        re.fullmatch(r"\d+\.{2,}", text) is not None
    )
    if not numeric:
        return False
    return len(row) <= 2 or row.mean_y < max_y


def is_bullet_item(row: Row) -> bool:
    return BULLET_PATTERN.match(row_text(row)) is not None


def is_numbered_item(row: Row) -> bool:
    return NUMBERED_PATTERN.match(row_text(row)) is not None


def is_heading(row: Row, heading_height: float = 14.0, max_length: int = 100) -> bool:
    text = row_text(row)
    if mean_height(row) > heading_height:
        return True
    return text == text.upper() and len(text) < max_length


def classify_row(row: Row, config: Optional[SynthesisConfig] = None) -> RowKind:
    """List markers win over heading cues; everything else is body text."""
    config = config or SynthesisConfig()
    if is_bullet_item(row):
        return RowKind.BULLET_ITEM
    if is_numbered_item(row):
        return RowKind.NUMBERED_ITEM
    if is_heading(row, config.heading_height, config.heading_max_length):
        return RowKind.HEADING
    return RowKind.BODY


def infer_alignment(row: Row, page_width: float, centered_ratio: float = 0.35) -> Alignment:
    """Infer paragraph alignment from the row's margins."""
    n = len(row.fragments)
    if n == 0:
        return Alignment.LEFT

    mean_x = sum(f.x for f in row.fragments) / n
    mean_width = sum(f.width for f in row.fragments) / n
    left_margin = mean_x
    right_margin = page_width - mean_x - mean_width

    if left_margin > page_width * centered_ratio and right_margin > page_width * centered_ratio:
        return Alignment.CENTER
    if right_margin < left_margin * 0.5:
        return Alignment.RIGHT
    return Alignment.LEFT


# ============================================================================
# Run Styling
# ============================================================================

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def font_size(fragment: TextFragment, default: int = 22) -> int:
    """Half-point size: twice the glyph height."""
    if not fragment.height:
        return default
    return _round_half_up(fragment.height * 2)


def font_family(font_name: str, default: str = "Calibri") -> str:
    """Font family without subset prefix and style suffixes."""
    if not font_name:
        return default
    name = SUBSET_PREFIX_PATTERN.sub("", font_name)
    name = STYLE_SUFFIX_PATTERN.sub("", name)
    return name or default


def is_bold_font(font_name: str) -> bool:
    return "bold" in (font_name or "").lower()


def is_italic_font(font_name: str) -> bool:
    return "italic" in (font_name or "").lower()


def style_run(
    fragment: TextFragment,
    text: str,
    force_bold: bool = False,
    config: Optional[SynthesisConfig] = None
) -> StyledRun:
    config = config or SynthesisConfig()
    return StyledRun(
        text=text,
        size=font_size(fragment, config.default_font_size),
        font=font_family(fragment.font_name, config.default_font),
        bold=force_bold or is_bold_font(fragment.font_name),
        italic=is_italic_font(fragment.font_name)
    )


def _strip_list_marker(runs: List[StyledRun]) -> List[StyledRun]:
    """Remove the leading bullet/number marker, which may span runs."""
    joined = "".join(r.text for r in runs)
    match = LIST_MARKER_PATTERN.match(joined)
    if not match:
        return runs

    remaining = match.end()
    stripped = []
    for run in runs:
        if remaining >= len(run.text):
            remaining -= len(run.text)
            continue
        if remaining > 0:
            run = StyledRun(run.text[remaining:], run.size, run.font, run.bold, run.italic)
            remaining = 0
        stripped.append(run)
    return stripped


# ============================================================================
# Block Synthesis
# ============================================================================

def synthesize_paragraph(
    row: Row,
    page_width: float,
    config: Optional[SynthesisConfig] = None
) -> Optional[ParagraphBlock]:
    """
    Build a paragraph from one text row.

    Returns:
        ParagraphBlock, or None for empty rows and page-number footers
    """
    config = config or SynthesisConfig()
    if not row.fragments:
        return None

    if is_page_number(row, config.page_number_max_y):
        logger.debug(f"Suppressed page number row: {row_text(row)!r}")
        return None

    kind = classify_row(row, config)
    heading = kind == RowKind.HEADING
    last = len(row.fragments) - 1

    runs = []
    for index, fragment in enumerate(row.fragments):
        if not fragment.text:
            continue
        separator = "" if fragment.has_eol or index == last else " "
        runs.append(style_run(fragment, fragment.text + separator, heading, config))

    if kind in (RowKind.BULLET_ITEM, RowKind.NUMBERED_ITEM):
        runs = _strip_list_marker(runs)

    if not runs:
        return None

    before, after = config.heading_spacing if heading else config.body_spacing
    return ParagraphBlock(
        runs=runs,
        kind=kind,
        alignment=infer_alignment(row, page_width, config.centered_margin_ratio),
        spacing_before=before,
        spacing_after=after
    )


def synthesize_table(
    rows: Sequence[Row],
    config: Optional[SynthesisConfig] = None
) -> Optional[TableBlock]:
    """Build a rectangular table; short rows are padded with empty cells."""
    config = config or SynthesisConfig()
    if not rows:
        return None

    num_cols = max(len(row) for row in rows)
    grid = []
    for row in rows:
        cells = []
        for i in range(num_cols):
            if i < len(row.fragments):
                fragment = row.fragments[i]
                cell = style_run(fragment, fragment.text, config=config)
                cell.italic = False
            else:
                cell = StyledRun(
                    text="",
                    size=config.default_font_size,
                    font=config.default_font
                )
            cells.append(cell)
        grid.append(cells)

    return TableBlock(rows=grid, num_cols=num_cols)


def synthesize_image(
    pixels: Any,
    width: int,
    height: int,
    config: Optional[SynthesisConfig] = None,
    spacing: Optional[Tuple[int, int]] = None,
    description: str = ""
) -> ImageBlock:
    """Encode a raster and scale it to the layout width. Raises on encode failure."""
    config = config or SynthesisConfig()
    before, after = spacing or config.image_spacing
    out_width, out_height = scale_to_fit(width, height, config.max_image_width)
    return ImageBlock(
        data=encode_png(pixels),
        width=out_width,
        height=out_height,
        alignment=Alignment.CENTER,
        spacing_before=before,
        spacing_after=after,
        description=description
    )


# ============================================================================
# Page Synthesizer
# ============================================================================

class PageSynthesizer:
    """
    Synthesizes structured blocks for extracted pages.

    Three paths:
    - Pages with text fragments: rows, tables and images in reading order
    - Scanned pages kept as images: one centered full-page raster
    - OCR'd pages: recognized text as body paragraphs
    """

    def __init__(
        self,
        config: Optional[SynthesisConfig] = None,
        geometry: Optional[GeometryConfig] = None
    ):
        self.config = config or SynthesisConfig()
        self.geometry = geometry or GeometryConfig()

    def synthesize(
        self,
        page: Any,
        tracker: Optional[ProgressTracker] = None,
        is_first: bool = False
    ) -> PageContent:
        """
        Synthesize one ExtractedPage.

        Args:
            page: ExtractedPage
            tracker: Receives embed warnings
            is_first: True for the first page of the document
        """
        tracker = tracker or ProgressTracker()

        if not page.has_text and page.raster is not None:
            return self.synthesize_scanned_page(page, tracker, is_first)

        if page.ocr_applied:
            return self.synthesize_ocr_page(page)

        return self.synthesize_text_page(page, tracker)

    def synthesize_text_page(self, page: Any, tracker: ProgressTracker) -> PageContent:
        page_width = page.width or self.config.default_page_width
        rows = sorted_rows(group_by_row(page.fragments, self.geometry.row_tolerance))
        ranges = detect_table_ranges(
            rows,
            tolerance_x=self.geometry.column_tolerance,
            min_alignment=self.geometry.min_alignment
        )
        items = order_page_content(rows, ranges, page.images or [])

        content = PageContent(page_number=page.page_number, source="text")
        for item in items:
            if item.kind == ContentKind.IMAGE:
                block = self._image_block(item.data, page.page_number, tracker)
            elif item.kind == ContentKind.TABLE:
                block = synthesize_table(item.data, self.config)
            else:
                block = synthesize_paragraph(item.data, page_width, self.config)

            if block is not None:
                content.blocks.append(block)

        logger.debug(
            f"Page {page.page_number}: {len(content.paragraphs)} paragraphs, "
            f"{len(content.tables)} tables, {len(content.images)} images"
        )
        return content

    def synthesize_scanned_page(
        self,
        page: Any,
        tracker: ProgressTracker,
        is_first: bool
    ) -> PageContent:
        content = PageContent(page_number=page.page_number, source="image")
        before, after = self.config.scanned_page_spacing
        raster = page.raster
        try:
            block = synthesize_image(
                raster,
                width=raster.shape[1],
                height=raster.shape[0],
                config=self.config,
                spacing=(0 if is_first else before, after),
                description=f"Scanned page {page.page_number}"
            )
        except (ValueError, OSError, TypeError) as e:
            tracker.warn(page.page_number, f"Scanned page image could not be embedded: {e}", kind="embed")
            content.blocks.append(ParagraphBlock(
                runs=[StyledRun(
                    text=f"[Image from page {page.page_number} could not be embedded]",
                    size=self.config.default_font_size,
                    font=self.config.default_font,
                    italic=True
                )],
                spacing_before=0,
                spacing_after=200
            ))
            return content

        content.blocks.append(block)
        return content

    def synthesize_ocr_page(self, page: Any) -> PageContent:
        content = PageContent(page_number=page.page_number, source="ocr")
        before, after = self.config.body_spacing
        for paragraph in re.split(r"\n\s*\n", page.text or ""):
            text = " ".join(paragraph.split())
            if not text:
                continue
            content.blocks.append(ParagraphBlock(
                runs=[StyledRun(
                    text=text,
                    size=self.config.default_font_size,
                    font=self.config.default_font
                )],
                spacing_before=before,
                spacing_after=after
            ))
        return content

    def _image_block(
        self,
        image: RasterImage,
        page_number: int,
        tracker: ProgressTracker
    ) -> Optional[ImageBlock]:
        try:
            return synthesize_image(
                image.pixels,
                width=image.width,
                height=image.height,
                config=self.config,
                description=image.name
            )
        except (ValueError, OSError, TypeError) as e:
            tracker.warn(page_number, f"Failed to embed image {image.name or ''}: {e}".strip(), kind="embed")
            return None
