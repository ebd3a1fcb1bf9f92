"""
Tests for table detection from row alignment.
"""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pdfword.geometry import Row, TextFragment
from pdfword.tables import TableRange, detect_table_ranges, is_candidate_pair, split_rows


def frag(text, x, y):
    return TextFragment(text=text, transform=(11, 0, 0, 11, x, y), width=20.0, height=11.0)


def make_row(y, xs, texts=None):
    texts = texts or [str(i) for i in range(len(xs))]
    return Row(y=y, fragments=[frag(t, x, y) for t, x in zip(texts, xs)])


class TestTableRange:
    """Tests for TableRange."""

    def test_contains_is_inclusive(self):
        r = TableRange(start_y=700, end_y=660)
        assert r.contains(700)
        assert r.contains(680)
        assert r.contains(660)
        assert not r.contains(700.1)
        assert not r.contains(659.9)

    def test_to_dict(self):
        assert TableRange(10, 5).to_dict() == {"start_y": 10, "end_y": 5}


class TestCandidatePair:
    """Tests for the fragment-count precondition."""

    def test_single_fragment_rows_never_pair(self):
        assert not is_candidate_pair(make_row(700, [50]), make_row(680, [50]))

    def test_count_difference_of_one_allowed(self):
        assert is_candidate_pair(make_row(700, [50, 150]), make_row(680, [50, 150, 250]))

    def test_count_difference_of_two_rejected(self):
        assert not is_candidate_pair(make_row(700, [50, 150]), make_row(680, [50, 150, 250, 350]))


class TestDetectTableRanges:
    """Tests for table range detection."""

    @pytest.fixture
    def grid_rows(self):
        return [
            make_row(700, [50, 150, 250]),
            make_row(680, [50, 150, 250]),
            make_row(660, [50, 150, 250]),
        ]

    def test_no_rows(self):
        assert detect_table_ranges([]) == []

    def test_single_row(self):
        assert detect_table_ranges([make_row(700, [50, 150])]) == []

    def test_aligned_grid_is_one_range(self, grid_rows):
        ranges = detect_table_ranges(grid_rows)
        assert ranges == [TableRange(start_y=700, end_y=660)]

    def test_single_aligned_pair_opens_range(self):
        rows = [make_row(700, [50, 150]), make_row(680, [52, 149])]
        assert detect_table_ranges(rows) == [TableRange(700, 680)]

    def test_prose_between_tables_splits_ranges(self):
        rows = [
            make_row(700, [50, 150]),
            make_row(680, [50, 150]),
            make_row(640, [50]),
            make_row(600, [300, 400]),
            make_row(580, [300, 400]),
        ]
        assert detect_table_ranges(rows) == [TableRange(700, 680), TableRange(600, 580)]

    def test_misaligned_rows_are_not_tabular(self):
        rows = [make_row(700, [50, 150]), make_row(680, [90, 300])]
        assert detect_table_ranges(rows) == []

    def test_min_alignment_threshold(self):
        # One of two columns aligned: score 0.5
        rows = [make_row(700, [50, 150]), make_row(680, [50, 300])]
        assert len(detect_table_ranges(rows, min_alignment=0.5)) == 1
        assert detect_table_ranges(rows, min_alignment=0.6) == []


class TestSplitRows:
    """Tests for partitioning rows by table range."""

    def test_split(self):
        rows = [
            make_row(720, [50]),
            make_row(700, [50, 150]),
            make_row(680, [50, 150]),
            make_row(640, [50]),
        ]
        table_rows, text_rows = split_rows(rows, [TableRange(700, 680)])
        assert [[r.y for r in group] for group in table_rows] == [[700, 680]]
        assert [r.y for r in text_rows] == [720, 640]

    def test_no_ranges(self):
        rows = [make_row(700, [50])]
        table_rows, text_rows = split_rows(rows, [])
        assert table_rows == []
        assert text_rows == rows
