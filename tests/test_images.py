"""
Tests for raster utilities and image anchor repair.
"""

import io
import pytest
import numpy as np
import sys
from pathlib import Path
from PIL import Image

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pdfword.geometry import TextFragment
from pdfword.images import (
    RasterImage,
    anchor_in_bounds,
    encode_png,
    find_caption_y,
    repair_image_anchors,
    scale_to_fit,
    to_grayscale,
    to_rgba,
)
from pdfword.progress import ProgressTracker


def frag(text, y):
    return TextFragment(text=text, transform=(11, 0, 0, 11, 72, y), width=100, height=11)


def make_image(y):
    return RasterImage(pixels=np.zeros((8, 8, 4), dtype=np.uint8), y=y)


class TestConversion:
    """Tests for pixel conversions."""

    def test_to_rgba_from_grayscale(self):
        pixels = to_rgba(Image.new("L", (6, 4), color=128))
        assert pixels.shape == (4, 6, 4)
        assert pixels[0, 0].tolist() == [128, 128, 128, 255]

    def test_encode_png_roundtrip_size(self):
        data = encode_png(np.zeros((5, 7, 4), dtype=np.uint8))
        with Image.open(io.BytesIO(data)) as img:
            assert img.size == (7, 5)

    def test_encode_png_rejects_odd_channels(self):
        with pytest.raises(ValueError):
            encode_png(np.zeros((5, 5, 2), dtype=np.uint8))

    def test_grayscale_composites_transparency_on_white(self):
        pixels = np.zeros((2, 2, 4), dtype=np.uint8)  # fully transparent black
        gray = to_grayscale(pixels)
        assert gray.shape == (2, 2)
        assert gray.min() == 255

    def test_raster_image_dimensions(self):
        image = RasterImage(pixels=np.zeros((30, 40, 4), dtype=np.uint8))
        assert (image.width, image.height) == (40, 30)


class TestScaleToFit:
    """Tests for layout scaling."""

    @pytest.mark.parametrize("size,expected", [
        ((1200, 400), (600, 200)),
        ((600, 300), (600, 300)),
        ((100, 50), (100, 50)),
        ((601, 100), (600, 100)),
    ])
    def test_scale(self, size, expected):
        assert scale_to_fit(*size, max_width=600) == expected


class TestAnchorRepair:
    """Tests for re-anchoring images from figure captions."""

    def test_in_bounds(self):
        assert anchor_in_bounds(0, 792)
        assert anchor_in_bounds(792.5, 792, tolerance=1.0)
        assert not anchor_in_bounds(-0.1, 792)
        assert not anchor_in_bounds(800, 792)

    def test_find_caption(self):
        fragments = [frag("Some text", 600), frag("figure 2: Results", 300)]
        assert find_caption_y(fragments, 2) == 300
        assert find_caption_y(fragments, 1) is None

    def test_caption_requires_colon(self):
        assert find_caption_y([frag("Figure 1 shows", 300)], 1) is None

    def test_in_bounds_images_untouched(self):
        images = [make_image(400)]
        repair_image_anchors(images, [frag("Figure 1: A", 100)], 792, 0, 1)
        assert images[0].y == 400

    def test_out_of_bounds_uses_caption(self):
        images = [make_image(15000)]
        repair_image_anchors(images, [frag("Figure 1: Chart", 300)], 792, 0, 1)
        assert images[0].y == 350

    def test_figure_number_counts_previous_pages(self):
        images = [make_image(400), make_image(-20)]
        fragments = [frag("Figure 4: Second on page", 200), frag("Figure 2: wrong", 500)]
        # Two images on earlier pages, so the second image here is Figure 4
        repair_image_anchors(images, fragments, 792, images_before=2, page_number=3)
        assert images[1].y == 250

    def test_missing_caption_warns_and_keeps_image(self):
        tracker = ProgressTracker()
        images = [make_image(-50)]

        result = repair_image_anchors(images, [], 792, 0, 5, tracker=tracker)

        assert result[0].y == -50
        assert len(tracker.warnings) == 1
        assert tracker.warnings[0].kind == "anchor"
        assert tracker.warnings[0].page_number == 5
