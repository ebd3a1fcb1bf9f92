"""
Fragment geometry utilities for PDF page reconstruction.

Provides:
- Text fragment and row data classes
- Row grouping by vertical coordinate
- Column alignment scoring between rows
- Affine matrix helpers and an explicit graphics-state transform stack

All coordinates are PDF page space: origin bottom-left, Y increasing upward.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Tuple

logger = logging.getLogger(__name__)

Matrix = Tuple[float, float, float, float, float, float]

IDENTITY: Matrix = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class TextFragment:
    """One run of text as laid out on a page."""
    text: str
    transform: Matrix
    width: float = 0.0
    height: float = 0.0
    font_name: str = ""
    has_eol: bool = False
    direction: str = "ltr"

    @property
    def x(self) -> float:
        return self.transform[4]

    @property
    def y(self) -> float:
        return self.transform[5]

    def to_dict(self):
        return {
            "text": self.text,
            "transform": list(self.transform),
            "width": self.width,
            "height": self.height,
            "font_name": self.font_name,
            "has_eol": self.has_eol,
            "direction": self.direction
        }


@dataclass
class Row:
    """Fragments sharing approximately the same vertical coordinate."""
    y: float
    fragments: List[TextFragment] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.fragments)

    @property
    def text(self) -> str:
        return "".join(f.text for f in self.fragments)

    @property
    def mean_y(self) -> float:
        if not self.fragments:
            return self.y
        return sum(f.y for f in self.fragments) / len(self.fragments)

    @property
    def x_positions(self) -> List[float]:
        return [f.x for f in self.fragments]


# ============================================================================
# Row Grouping
# ============================================================================

def group_by_row(
    fragments: Iterable[TextFragment],
    tolerance_y: float = 5.0
) -> Dict[float, Row]:
    """
    Group fragments into rows by vertical coordinate.

    A fragment joins the first existing bucket whose representative Y is
    within `tolerance_y`; otherwise it opens a new bucket keyed by its own Y.
    The result depends on insertion order when several buckets lie within
    twice the tolerance of each other, and downstream table detection relies
    on exactly these row shapes.

    Args:
        fragments: Fragments in reading-stream order
        tolerance_y: Maximum distance (exclusive) to a bucket's key

    Returns:
        Mapping of representative Y to Row, in bucket creation order
    """
    buckets: Dict[float, Row] = {}

    for fragment in fragments:
        y = fragment.y
        for key, row in buckets.items():
            if abs(y - key) < tolerance_y:
                row.fragments.append(fragment)
                break
        else:
            buckets[y] = Row(y=y, fragments=[fragment])

    for row in buckets.values():
        row.fragments.sort(key=lambda f: f.x)

    return buckets


def sorted_rows(groups: Dict[float, Row]) -> List[Row]:
    """Rows ordered top of page first (descending Y)."""
    return sorted(groups.values(), key=lambda r: r.y, reverse=True)


def column_alignment_score(
    row_a: Row,
    row_b: Row,
    tolerance_x: float = 10.0
) -> float:
    """
    Fraction of fragments in `row_a` that line up with a column in `row_b`.

    A fragment is aligned when its horizontal anchor is within `tolerance_x`
    (exclusive) of some anchor in `row_b`. The count is divided by the size
    of the smaller row.
    """
    if not row_a.fragments or not row_b.fragments:
        return 0.0

    b_positions = row_b.x_positions
    aligned = sum(
        1 for x in row_a.x_positions
        if any(abs(x - bx) < tolerance_x for bx in b_positions)
    )
    return aligned / min(len(row_a), len(row_b))


# ============================================================================
# Affine Transforms
# ============================================================================

def multiply(m1: Sequence[float], m2: Sequence[float]) -> Matrix:
    """Concatenate two affine matrices: the result applies m1, then m2."""
    a1, b1, c1, d1, e1, f1 = m1
    a2, b2, c2, d2, e2, f2 = m2
    return (
        a1 * a2 + b1 * c2,
        a1 * b2 + b1 * d2,
        c1 * a2 + d1 * c2,
        c1 * b2 + d1 * d2,
        e1 * a2 + f1 * c2 + e2,
        e1 * b2 + f1 * d2 + f2,
    )


def apply_to_point(m: Sequence[float], x: float, y: float) -> Tuple[float, float]:
    a, b, c, d, e, f = m
    return (a * x + c * y + e, b * x + d * y + f)


def page_base_matrix(mediabox: Sequence[float], rotation: int = 0) -> Matrix:
    """
    Base transform from unrotated user space into displayed page space.

    Matches the transform the text layout engine applies, so image anchors
    and text fragments share one coordinate system on rotated pages.
    """
    x0, y0, x1, y1 = (float(v) for v in mediabox)
    rotation = int(rotation) % 360

    if rotation == 90:
        return (0.0, -1.0, 1.0, 0.0, -y0, x1)
    if rotation == 180:
        return (-1.0, 0.0, 0.0, -1.0, x1, y1)
    if rotation == 270:
        return (0.0, 1.0, -1.0, 0.0, y1, -x0)
    return (1.0, 0.0, 0.0, 1.0, -x0, -y0)


def rotated_size(mediabox: Sequence[float], rotation: int = 0) -> Tuple[float, float]:
    """Displayed (width, height) of a page."""
    x0, y0, x1, y1 = (float(v) for v in mediabox)
    width, height = abs(x1 - x0), abs(y1 - y0)
    if int(rotation) % 180 == 90:
        return height, width
    return width, height


class TransformStack:
    """
    Graphics-state transform tracking for one content stream walk.

    `save` and `restore` mirror the q/Q operators; `concat` applies a cm
    operand, which is composed before the current transform.
    """

    def __init__(self, base: Sequence[float] = IDENTITY):
        self.current: Matrix = tuple(float(v) for v in base)
        self._saved: List[Matrix] = []

    def save(self):
        self._saved.append(self.current)

    def restore(self):
        # Unbalanced Q operators occur in the wild; keep the current state
        if self._saved:
            self.current = self._saved.pop()
        else:
            logger.debug("Restore with empty graphics state stack ignored")

    def concat(self, m: Sequence[float]):
        self.current = multiply(tuple(float(v) for v in m), self.current)

    @property
    def depth(self) -> int:
        return len(self._saved)

    @property
    def origin(self) -> Tuple[float, float]:
        """Where the unit square's origin lands in page space."""
        return self.current[4], self.current[5]
