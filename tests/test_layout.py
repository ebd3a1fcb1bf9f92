"""
Tests for page content ordering.
"""

import numpy as np
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pdfword.geometry import Row, TextFragment
from pdfword.images import RasterImage
from pdfword.layout import ContentKind, order_page_content
from pdfword.tables import TableRange


def make_row(y, xs):
    return Row(y=y, fragments=[
        TextFragment(text=f"c{i}", transform=(11, 0, 0, 11, x, y), width=20, height=11)
        for i, x in enumerate(xs)
    ])


def make_image(y):
    return RasterImage(pixels=np.zeros((4, 4, 4), dtype=np.uint8), y=y)


class TestOrderPageContent:
    """Tests for reading order assembly."""

    def test_empty_page(self):
        assert order_page_content([], []) == []

    def test_text_rows_top_first(self):
        rows = [make_row(700, [50]), make_row(500, [50])]
        items = order_page_content(rows, [])
        assert [item.kind for item in items] == [ContentKind.TEXT, ContentKind.TEXT]
        assert [item.y for item in items] == [700, 500]

    def test_table_emitted_once_at_mean_y(self):
        rows = [
            make_row(720, [50]),
            make_row(700, [50, 150]),
            make_row(680, [50, 150]),
            make_row(660, [50, 150]),
            make_row(600, [50]),
        ]
        items = order_page_content(rows, [TableRange(700, 660)])

        kinds = [item.kind for item in items]
        assert kinds == [ContentKind.TEXT, ContentKind.TABLE, ContentKind.TEXT]

        table = items[1]
        assert table.y == 680
        assert [r.y for r in table.data] == [700, 680, 660]

    def test_each_range_is_its_own_table(self):
        rows = [
            make_row(700, [50, 150]),
            make_row(680, [50, 150]),
            make_row(640, [50]),
            make_row(600, [300, 400]),
            make_row(580, [300, 400]),
        ]
        items = order_page_content(rows, [TableRange(700, 680), TableRange(600, 580)])
        tables = [item for item in items if item.kind == ContentKind.TABLE]
        assert len(tables) == 2
        assert [len(t.data) for t in tables] == [2, 2]

    def test_images_interleave_by_y(self):
        rows = [make_row(700, [50]), make_row(300, [50])]
        items = order_page_content(rows, [], [make_image(500)])
        assert [item.kind for item in items] == [ContentKind.TEXT, ContentKind.IMAGE, ContentKind.TEXT]

    def test_image_before_text_on_tie(self):
        items = order_page_content([make_row(500, [50])], [], [make_image(500)])
        assert [item.kind for item in items] == [ContentKind.IMAGE, ContentKind.TEXT]

    def test_ordering_is_repeatable(self):
        rows = [
            make_row(700, [50, 150]),
            make_row(680, [50, 150]),
            make_row(500, [50]),
            make_row(400, [50]),
        ]
        ranges = [TableRange(700, 680)]
        images = [make_image(500), make_image(400), make_image(690)]

        def signature(items):
            # Tables hold a fresh list per call, so compare the rows inside
            return [
                (item.kind, item.y, tuple(id(r) for r in item.data) if item.kind == ContentKind.TABLE else id(item.data))
                for item in items
            ]

        first = order_page_content(rows, ranges, images)
        second = order_page_content(rows, ranges, images)

        assert signature(first) == signature(second)
        assert [item.kind for item in first] == [
            ContentKind.IMAGE, ContentKind.TABLE,
            ContentKind.IMAGE, ContentKind.TEXT,
            ContentKind.IMAGE, ContentKind.TEXT,
        ]
