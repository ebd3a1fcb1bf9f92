"""
Content classification and reading order for one page.

Text rows, detected tables and placed images are merged into a single
vertically ordered stream: top of the page first.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Union

from .geometry import Row
from .images import RasterImage
from .tables import TableRange, split_rows

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes and Enums
# ============================================================================

class ContentKind(Enum):
    """Types of page content items."""
    TEXT = "text"
    TABLE = "table"
    IMAGE = "image"


@dataclass
class ContentItem:
    """One orderable unit of page content.

    `data` is a Row for TEXT, a list of Rows for TABLE and a RasterImage
    for IMAGE. `y` is the ordering key.
    """
    kind: ContentKind
    y: float
    data: Union[Row, List[Row], RasterImage]


# ============================================================================
# Ordering
# ============================================================================

def order_page_content(
    rows: Sequence[Row],
    table_ranges: Sequence[TableRange],
    images: Sequence[RasterImage] = ()
) -> List[ContentItem]:
    """
    Build the reading-order content stream of a page.

    Args:
        rows: Text rows sorted top to bottom
        table_ranges: Detected table ranges for these rows
        images: Placed images of the page

    Returns:
        Content items sorted by descending Y. The sort is stable, so ties keep
        images before tables before text rows.
    """
    items: List[ContentItem] = [
        ContentItem(kind=ContentKind.IMAGE, y=image.y, data=image)
        for image in images
    ]

    table_rows, text_rows = split_rows(list(rows), list(table_ranges))

    for group in table_rows:
        if not group:
            continue
        mean_y = sum(r.y for r in group) / len(group)
        items.append(ContentItem(kind=ContentKind.TABLE, y=mean_y, data=group))

    for row in text_rows:
        items.append(ContentItem(kind=ContentKind.TEXT, y=row.y, data=row))

    items.sort(key=lambda item: item.y, reverse=True)
    return items
