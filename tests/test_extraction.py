"""
Tests for the page extraction driver.
"""

import pytest
import numpy as np
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pdfword.config import ExtractionConfig
from pdfword.extraction import PageExtractor
from pdfword.geometry import TextFragment
from pdfword.images import RasterImage
from pdfword.io import PageContentData
from pdfword.progress import ProgressTracker


def frag(text, y=700.0):
    return TextFragment(text=text, transform=(11, 0, 0, 11, 72, y), width=100, height=11)


@dataclass
class FakeHandle:
    number: int
    width: float = 612.0
    height: float = 792.0


@dataclass
class FakePage:
    fragments: List[TextFragment] = field(default_factory=list)
    images: List[RasterImage] = field(default_factory=list)


class FakeReader:
    """In-memory stand-in for PdfReader."""

    def __init__(self, pages, fail_render=False):
        self._pages = pages
        self.fail_render = fail_render
        self.rendered = []

    @property
    def page_count(self):
        return len(self._pages)

    def pages(self):
        for i in range(len(self._pages)):
            yield FakeHandle(number=i + 1)

    def read_page_content(self, handle, tracker=None):
        page = self._pages[handle.number - 1]
        return PageContentData(fragments=list(page.fragments), images=list(page.images))

    def render_page(self, handle, scale=1.5):
        if self.fail_render:
            raise RuntimeError("Poppler is not installed")
        self.rendered.append((handle.number, scale))
        return np.zeros((int(792 * scale), int(612 * scale), 4), dtype=np.uint8)


def image_at(y):
    return RasterImage(pixels=np.zeros((4, 4, 4), dtype=np.uint8), y=y)


class TestPageExtractor:
    """Tests for PageExtractor."""

    @pytest.fixture
    def extractor(self):
        return PageExtractor(ExtractionConfig())

    def test_text_threshold_is_strict(self, extractor):
        assert not extractor.has_usable_text("0123456789")
        assert extractor.has_usable_text("0123456789A")
        assert not extractor.has_usable_text("   short    ")

    def test_text_page_not_rendered(self, extractor):
        reader = FakeReader([FakePage(fragments=[frag("A full sentence of text.")])])
        pages = extractor.extract(reader)

        assert len(pages) == 1
        assert pages[0].has_text
        assert pages[0].raster is None
        assert pages[0].text == "A full sentence of text."
        assert reader.rendered == []

    def test_scanned_page_rendered_at_scale(self, extractor):
        reader = FakeReader([FakePage(), FakePage(fragments=[frag("Some real text here")])])
        pages = extractor.extract(reader)

        assert not pages[0].has_text
        assert pages[0].raster is not None
        assert reader.rendered == [(1, 1.5)]
        assert pages[1].has_text

    def test_fragments_joined_with_spaces(self, extractor):
        reader = FakeReader([FakePage(fragments=[frag("Hello"), frag("there", 680)])])
        assert extractor.extract(reader)[0].text == "Hello there"

    def test_render_failure_is_warning(self, extractor):
        tracker = ProgressTracker()
        pages = extractor.extract(FakeReader([FakePage()], fail_render=True), tracker)

        assert pages[0].raster is None
        assert [w.kind for w in tracker.warnings] == ["render"]

    def test_progress_in_extraction_band(self, extractor):
        seen = []
        tracker = ProgressTracker(callback=seen.append)
        reader = FakeReader([FakePage(fragments=[frag("Enough text on page")])] * 4)

        extractor.extract(reader, tracker)

        assert seen == [5.0, 10.0, 15.0, 20.0]

    def test_image_counter_spans_pages(self, extractor):
        # Page 1 has two in-bounds images, page 2's image is off-page and
        # captioned as the third figure of the document
        page1 = FakePage(fragments=[frag("Figure 1: one", 300)], images=[image_at(400), image_at(200)])
        page2 = FakePage(
            fragments=[frag("Figure 3: third", 300), frag("Figure 1: wrong", 100)],
            images=[image_at(20000)]
        )
        pages = extractor.extract(FakeReader([page1, page2]))

        assert [img.y for img in pages[0].images] == [400, 200]
        assert pages[1].images[0].y == 350

    def test_to_dict(self, extractor):
        pages = extractor.extract(FakeReader([FakePage()]))
        d = pages[0].to_dict()
        assert d["page_number"] == 1
        assert d["rendered"] is True
        assert d["has_text"] is False
