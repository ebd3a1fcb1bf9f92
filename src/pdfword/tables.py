"""
Table detection for text rows.

Two consecutive rows that are structurally similar (several fragments each,
fragment counts within one) and column-aligned are treated as tabular data.
Runs of such rows form a TableRange.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .geometry import Row, column_alignment_score

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class TableRange:
    """A contiguous run of rows forming one table.

    Rows are processed top to bottom, so `start_y` is the topmost row and
    `start_y >= end_y`. Both ends are inclusive.
    """
    start_y: float
    end_y: float

    def contains(self, y: float) -> bool:
        return self.end_y <= y <= self.start_y

    def to_dict(self) -> Dict[str, Any]:
        return {"start_y": self.start_y, "end_y": self.end_y}


# ============================================================================
# Detection
# ============================================================================

def is_candidate_pair(row_a: Row, row_b: Row) -> bool:
    """Both rows have more than one fragment and similar fragment counts."""
    return (
        len(row_a) > 1 and len(row_b) > 1 and
        abs(len(row_a) - len(row_b)) <= 1
    )


def detect_table_ranges(
    rows: List[Row],
    tolerance_x: float = 10.0,
    min_alignment: float = 0.5
) -> List[TableRange]:
    """
    Find table ranges in rows sorted top to bottom.

    A single aligned pair is enough to open a range.

    Args:
        rows: Rows sorted by descending Y
        tolerance_x: Column anchor tolerance for alignment scoring
        min_alignment: Minimum alignment score for a pair to be tabular

    Returns:
        Non-overlapping ranges in top-to-bottom order
    """
    ranges: List[TableRange] = []
    current: Optional[TableRange] = None

    for upper, lower in zip(rows, rows[1:]):
        aligned = (
            is_candidate_pair(upper, lower) and
            column_alignment_score(upper, lower, tolerance_x) >= min_alignment
        )

        if aligned:
            if current is None:
                current = TableRange(start_y=upper.y, end_y=lower.y)
            else:
                current.end_y = lower.y
        elif current is not None:
            ranges.append(current)
            current = None

    if current is not None:
        ranges.append(current)

    if ranges:
        logger.debug(f"Detected {len(ranges)} table range(s)")
    return ranges


def split_rows(
    rows: List[Row],
    ranges: List[TableRange]
) -> Tuple[List[List[Row]], List[Row]]:
    """
    Partition rows into per-range table rows and the remaining text rows.

    Returns:
        (one row list per range, in range order; rows outside every range)
    """
    table_rows: List[List[Row]] = [[] for _ in ranges]
    text_rows: List[Row] = []

    for row in rows:
        for i, table_range in enumerate(ranges):
            if table_range.contains(row.y):
                table_rows[i].append(row)
                break
        else:
            text_rows.append(row)

    return table_rows, text_rows
