"""
I/O utilities for the PDF-to-Word pipeline.

Handles:
- Opening PDFs (pikepdf object model, pdfminer.six text layout)
- Reading positioned text fragments per page
- Locating painted images by walking content-stream operators
- Rendering pages to rasters (pdf2image / poppler)
- JSON serialization and file helpers
"""

import io
import json
import logging
from dataclasses import dataclass, asdict
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, List, Optional, Sequence, Union

import numpy as np
import pikepdf
from pdfminer.high_level import extract_pages
from pdfminer.layout import (
    LAParams, LTAnno, LTChar, LTContainer, LTPage, LTTextLine, LTTextLineVertical,
)
from pdfminer.pdfparser import PDFSyntaxError

from .errors import InvalidInputError
from .geometry import TextFragment, TransformStack, page_base_matrix, rotated_size
from .images import RasterImage, to_rgba
from .progress import ProgressTracker

logger = logging.getLogger(__name__)

# Nested form XObjects deeper than this are not followed
MAX_FORM_DEPTH = 12


# ============================================================================
# Page Handles
# ============================================================================

@dataclass
class PageHandle:
    """One page of an open document, as seen by both PDF libraries."""
    number: int  # 1-indexed
    page: Any  # pikepdf.Page
    layout: LTPage
    mediabox: Sequence[float]
    rotation: int = 0

    @property
    def width(self) -> float:
        return rotated_size(self.mediabox, self.rotation)[0]

    @property
    def height(self) -> float:
        return rotated_size(self.mediabox, self.rotation)[1]


@dataclass
class PageContentData:
    """Everything read from one page's content stream."""
    fragments: List[TextFragment]
    images: List[RasterImage]

    @property
    def text(self) -> str:
        return " ".join(f.text for f in self.fragments)


class PdfReader:
    """
    Page-content reader for a PDF held in memory.

    Pages must be consumed sequentially; the layout engine parses pages
    lazily from one shared document handle.
    """

    def __init__(self, data: bytes, laparams: Optional[LAParams] = None):
        self.data = data
        self.laparams = laparams or LAParams(all_texts=True)

        try:
            self.pdf = pikepdf.open(io.BytesIO(data))
        except pikepdf.PasswordError as e:
            raise InvalidInputError("PDF is encrypted/password-protected") from e
        except pikepdf.PdfError as e:
            raise InvalidInputError(f"Not a parseable PDF: {e}") from e

        logger.info(f"Opened PDF with {self.page_count} page(s)")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def page_count(self) -> int:
        return len(self.pdf.pages)

    def pages(self) -> Iterator[PageHandle]:
        """Iterate page handles in document order."""
        layouts = extract_pages(io.BytesIO(self.data), laparams=self.laparams)
        try:
            for number, (pdf_page, layout) in enumerate(zip(self.pdf.pages, layouts), 1):
                mediabox = [float(v) for v in pdf_page.mediabox]
                yield PageHandle(
                    number=number,
                    page=pdf_page,
                    layout=layout,
                    mediabox=mediabox,
                    rotation=_page_rotation(pdf_page)
                )
        except PDFSyntaxError as e:
            raise InvalidInputError(f"Failed to parse PDF page content: {e}") from e

    def read_page_content(
        self,
        handle: PageHandle,
        tracker: Optional[ProgressTracker] = None
    ) -> PageContentData:
        return PageContentData(
            fragments=read_text_fragments(handle.layout),
            images=read_painted_images(handle, tracker)
        )

    def render_page(self, handle: PageHandle, scale: float = 1.5) -> np.ndarray:
        return render_page(self.data, handle.number, scale)

    def close(self):
        self.pdf.close()


# ============================================================================
# Text Fragments
# ============================================================================

def _iter_text_lines(element) -> Iterator[LTTextLine]:
    if isinstance(element, LTTextLine):
        yield element
    elif isinstance(element, LTContainer):
        for child in element:
            yield from _iter_text_lines(child)


def _run_fragment(run: list, has_eol: bool, direction: str) -> Optional[TextFragment]:
    chars = [item for item in run if isinstance(item, LTChar)]
    text = "".join(item.get_text() for item in run).replace("\n", "")
    if not chars or not text.strip():
        return None

    first, last = chars[0], chars[-1]
    return TextFragment(
        text=text,
        transform=tuple(float(v) for v in first.matrix),
        width=float(last.x1 - first.x0),
        height=float(max(c.size for c in chars)),
        font_name=first.fontname or "",
        has_eol=has_eol,
        direction=direction
    )


def line_fragments(line: LTTextLine) -> List[TextFragment]:
    """
    Split a laid-out text line into fragments at font changes.

    The last fragment of the line is marked as ending it.
    """
    direction = "ttb" if isinstance(line, LTTextLineVertical) else "ltr"
    runs = []
    current = []
    current_font = None

    for item in line:
        if isinstance(item, LTChar):
            if current and item.fontname != current_font:
                runs.append(current)
                current = []
            current_font = item.fontname
            current.append(item)
        elif isinstance(item, LTAnno) and current:
            current.append(item)
    if current:
        runs.append(current)

    fragments = []
    for i, run in enumerate(runs):
        fragment = _run_fragment(run, has_eol=(i == len(runs) - 1), direction=direction)
        if fragment is not None:
            fragments.append(fragment)
    return fragments


def read_text_fragments(layout: LTPage) -> List[TextFragment]:
    """All text fragments of a page in layout order."""
    fragments = []
    for line in _iter_text_lines(layout):
        fragments.extend(line_fragments(line))
    return fragments


# ============================================================================
# Painted Images
# ============================================================================

def _inherited(pdf_page, key: str) -> Optional[Any]:
    """Page attribute, following inheritance through the page tree."""
    obj = pdf_page.obj if hasattr(pdf_page, "obj") else pdf_page
    value = obj.get(key)
    parent = obj.get("/Parent")
    while value is None and parent is not None:
        value = parent.get(key)
        parent = parent.get("/Parent")
    return value


def _page_rotation(pdf_page) -> int:
    rotation = _inherited(pdf_page, "/Rotate")
    return int(rotation) % 360 if rotation is not None else 0


def _page_resources(pdf_page) -> Optional[Any]:
    return _inherited(pdf_page, "/Resources")


def _decode_image(pdf_image) -> np.ndarray:
    return to_rgba(pdf_image.as_pil_image())


def _walk_content(
    instructions,
    resources,
    stack: TransformStack,
    images: List[RasterImage],
    page_number: int,
    tracker: Optional[ProgressTracker],
    depth: int = 0
):
    """Walk content-stream instructions, recording each painted image."""
    xobjects = resources.get("/XObject") if resources is not None else None

    for instruction in instructions:
        operator = bytes(instruction.operator).decode()
        operands = instruction.operands

        if operator == "q":
            stack.save()
        elif operator == "Q":
            stack.restore()
        elif operator == "cm" and len(operands) == 6:
            stack.concat([float(v) for v in operands])
        elif operator == "Do" and operands and xobjects is not None:
            name = operands[0]
            xobject = xobjects.get(name)
            if xobject is None:
                continue
            subtype = xobject.get("/Subtype")

            if subtype == pikepdf.Name.Image:
                _record_image(
                    lambda: _decode_image(pikepdf.PdfImage(xobject)),
                    str(name), stack, images, page_number, tracker
                )
            elif subtype == pikepdf.Name.Form and depth < MAX_FORM_DEPTH:
                stack.save()
                if "/Matrix" in xobject:
                    stack.concat([float(v) for v in xobject.Matrix])
                try:
                    _walk_content(
                        pikepdf.parse_content_stream(xobject),
                        xobject.get("/Resources", resources),
                        stack, images, page_number, tracker, depth + 1
                    )
                finally:
                    stack.restore()
        elif operator == "INLINE IMAGE" and operands:
            inline = operands[0]
            _record_image(
                lambda: _decode_image(inline),
                "inline", stack, images, page_number, tracker
            )


def _record_image(decode, name, stack, images, page_number, tracker):
    x, y = stack.origin
    try:
        pixels = decode()
    except Exception as e:
        message = f"Failed to extract image {name}: {e}"
        if tracker is not None:
            tracker.warn(page_number, message, kind="decode")
        else:
            logger.warning(message)
        return

    images.append(RasterImage(pixels=pixels, y=y, x=x, name=name))
    logger.debug(f"Image {name} on page {page_number} at ({x:.1f}, {y:.1f})")


def read_painted_images(
    handle: PageHandle,
    tracker: Optional[ProgressTracker] = None
) -> List[RasterImage]:
    """
    Decode every image painted on a page with its page-space anchor.

    The anchor is where the image's unit square origin lands under the
    transform in effect when the paint operator runs.
    """
    stack = TransformStack(page_base_matrix(handle.mediabox, handle.rotation))
    images: List[RasterImage] = []

    try:
        instructions = pikepdf.parse_content_stream(handle.page)
    except pikepdf.PdfError as e:
        message = f"Could not parse content stream: {e}"
        if tracker is not None:
            tracker.warn(handle.number, message, kind="decode")
        else:
            logger.warning(message)
        return images

    _walk_content(
        instructions, _page_resources(handle.page), stack, images,
        handle.number, tracker
    )
    return images


# ============================================================================
# Page Rendering
# ============================================================================

def render_page(data: bytes, page_number: int, scale: float = 1.5) -> np.ndarray:
    """
    Render one PDF page to an RGBA raster using pdf2image (poppler backend).

    Args:
        data: PDF file bytes
        page_number: Page to render (1-indexed)
        scale: Multiple of the 72 DPI page size

    Raises:
        ImportError: If pdf2image is not installed
        RuntimeError: If poppler is missing or the page cannot be rendered
    """
    try:
        from pdf2image import convert_from_bytes
        from pdf2image.exceptions import (
            PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError as RenderSyntaxError,
        )
    except ImportError:
        raise ImportError(
            "pdf2image is required. Install with: pip install pdf2image\n"
            "Also ensure poppler is installed on your system."
        )

    dpi = int(round(72 * scale))
    try:
        pil_images = convert_from_bytes(
            data,
            dpi=dpi,
            first_page=page_number,
            last_page=page_number,
            fmt="png"
        )
    except PDFInfoNotInstalledError:
        raise RuntimeError(
            "Poppler is not installed. Install with:\n"
            "  macOS: brew install poppler\n"
            "  Linux: sudo apt-get install poppler-utils"
        )
    except (PDFPageCountError, RenderSyntaxError) as e:
        raise RuntimeError(f"Failed to render page {page_number}: {e}")

    if not pil_images:
        raise RuntimeError(f"Renderer returned no image for page {page_number}")

    logger.debug(f"Rendered page {page_number} at {dpi} DPI")
    return to_rgba(pil_images[0])


# ============================================================================
# JSON Serialization
# ============================================================================

class EnhancedJSONEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy values, enums and dataclasses."""

    def default(self, obj):
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, bytes):
            return len(obj)
        if hasattr(obj, "to_dict"):
            return obj.to_dict()
        if hasattr(obj, "__dataclass_fields__"):
            return asdict(obj)
        if isinstance(obj, Path):
            return str(obj)
        return super().default(obj)


def save_json(
    data: Any,
    output_path: Union[str, Path],
    indent: int = 2,
    ensure_ascii: bool = False
) -> Path:
    """Save data to a JSON file, creating parent directories."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=indent, ensure_ascii=ensure_ascii, cls=EnhancedJSONEncoder)

    logger.debug(f"Saved JSON: {output_path}")
    return output_path


def load_json(json_path: Union[str, Path]) -> Any:
    json_path = Path(json_path)
    if not json_path.exists():
        raise FileNotFoundError(f"JSON file not found: {json_path}")

    with open(json_path, 'r', encoding='utf-8') as f:
        return json.load(f)


# ============================================================================
# File Helpers
# ============================================================================

def read_pdf_bytes(pdf_path: Union[str, Path]) -> bytes:
    """
    Read a PDF file from disk.

    Raises:
        FileNotFoundError: If the file doesn't exist
        InvalidInputError: If the file does not start with a PDF header
    """
    pdf_path = Path(pdf_path)
    if not pdf_path.exists():
        raise FileNotFoundError(f"PDF file not found: {pdf_path}")

    data = pdf_path.read_bytes()
    if b"%PDF" not in data[:1024]:
        raise InvalidInputError(f"Not a PDF file: {pdf_path}")
    return data
