"""
Tests for the DOCX builder. Output is read back with python-docx.
"""

import io
import pytest
import numpy as np
import sys
from pathlib import Path

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml.ns import qn
from docx.shared import Pt

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pdfword.config import ExportConfig
from pdfword.errors import AssemblyError
from pdfword.export import DocxBuilder
from pdfword.images import encode_png
from pdfword.synthesis import (
    Alignment, ImageBlock, PageContent, ParagraphBlock, RowKind, StyledRun, TableBlock,
)


def read_back(data):
    return Document(io.BytesIO(data))


def png(width=20, height=10):
    return encode_png(np.full((height, width, 4), 255, dtype=np.uint8))


class TestParagraphs:
    """Tests for paragraph output."""

    @pytest.fixture
    def builder(self):
        return DocxBuilder(ExportConfig())

    def test_runs_and_formatting(self, builder):
        block = ParagraphBlock(
            runs=[
                StyledRun("Plain ", size=22, font="Arial"),
                StyledRun("bold", size=24, font="Arial", bold=True),
                StyledRun(" italic", italic=True),
            ],
            alignment=Alignment.CENTER,
            spacing_before=120,
            spacing_after=240
        )
        doc = read_back(builder.build([PageContent(1, [block])]))

        paragraph = doc.paragraphs[-1]
        assert paragraph.text == "Plain bold italic"
        assert paragraph.alignment == WD_ALIGN_PARAGRAPH.CENTER
        assert paragraph.paragraph_format.space_before == Pt(6)
        assert paragraph.paragraph_format.space_after == Pt(12)

        runs = paragraph.runs
        assert runs[0].font.size == Pt(11)
        assert runs[0].font.name == "Arial"
        assert runs[1].font.bold
        assert runs[1].font.size == Pt(12)
        assert runs[2].font.italic

    def test_paragraph_styles(self, builder):
        blocks = [
            ParagraphBlock(runs=[StyledRun("Title")], kind=RowKind.HEADING),
            ParagraphBlock(runs=[StyledRun("point")], kind=RowKind.BULLET_ITEM),
            ParagraphBlock(runs=[StyledRun("step")], kind=RowKind.NUMBERED_ITEM),
            ParagraphBlock(runs=[StyledRun("body")]),
        ]
        doc = read_back(builder.build([PageContent(1, blocks)]))

        styles = [p.style.name for p in doc.paragraphs]
        assert styles == ["Heading 2", "List Bullet", "List Number", "Normal"]

    def test_right_alignment(self, builder):
        block = ParagraphBlock(runs=[StyledRun("7 March 2024")], alignment=Alignment.RIGHT)
        doc = read_back(builder.build([PageContent(1, [block])]))
        assert doc.paragraphs[0].alignment == WD_ALIGN_PARAGRAPH.RIGHT


class TestTables:
    """Tests for table output."""

    def test_table_grid(self):
        block = TableBlock(
            rows=[
                [StyledRun("1"), StyledRun("2"), StyledRun("3")],
                [StyledRun("4", bold=True), StyledRun("5"), StyledRun("")],
            ],
            num_cols=3
        )
        doc = read_back(DocxBuilder().build([PageContent(1, [block])]))

        assert len(doc.tables) == 1
        table = doc.tables[0]
        assert len(table.rows) == 2
        assert len(table.columns) == 3
        assert [c.text for c in table.rows[1].cells] == ["4", "5", ""]
        assert table.rows[1].cells[0].paragraphs[0].runs[0].font.bold
        assert table.style.name == "Table Grid"

    def test_full_width_equal_columns(self):
        block = TableBlock(rows=[[StyledRun("a"), StyledRun("b")]], num_cols=2)
        doc = read_back(DocxBuilder().build([PageContent(1, [block])]))

        tbl_w = doc.tables[0]._tbl.tblPr.find(qn("w:tblW"))
        assert tbl_w.get(qn("w:type")) == "pct"
        assert tbl_w.get(qn("w:w")) == "5000"

        tc_w = doc.tables[0].rows[0].cells[1]._tc.tcPr.find(qn("w:tcW"))
        assert tc_w.get(qn("w:w")) == "2500"

    def test_empty_table_skipped(self):
        doc = read_back(DocxBuilder().build([PageContent(1, [TableBlock(rows=[], num_cols=0)])]))
        assert doc.tables == []


class TestImages:
    """Tests for image output."""

    def test_picture_size_and_alignment(self):
        block = ImageBlock(data=png(), width=300, height=150)
        doc = read_back(DocxBuilder().build([PageContent(1, [block])]))

        assert len(doc.inline_shapes) == 1
        shape = doc.inline_shapes[0]
        assert shape.width == 300 * 9525
        assert shape.height == 150 * 9525
        assert doc.paragraphs[0].alignment == WD_ALIGN_PARAGRAPH.CENTER

    def test_corrupt_image_is_assembly_error(self):
        block = ImageBlock(data=b"not a png", width=10, height=10)
        with pytest.raises(AssemblyError):
            DocxBuilder().build([PageContent(1, [block])])


class TestDocument:
    """Tests for document-level behavior."""

    def test_pages_in_order(self):
        pages = [
            PageContent(1, [ParagraphBlock(runs=[StyledRun("page one")])]),
            PageContent(2, [ParagraphBlock(runs=[StyledRun("page two")])]),
        ]
        doc = read_back(DocxBuilder().build(pages))
        assert [p.text for p in doc.paragraphs] == ["page one", "page two"]

    def test_page_breaks(self):
        pages = [
            PageContent(1, [ParagraphBlock(runs=[StyledRun("one")])]),
            PageContent(2, [ParagraphBlock(runs=[StyledRun("two")])]),
        ]
        data = DocxBuilder(ExportConfig(page_breaks=True)).build(pages)
        body = read_back(data).element.body.xml
        assert body.count('w:type="page"') == 1

    def test_empty_document(self):
        doc = read_back(DocxBuilder().build([]))
        assert doc.paragraphs == [] or all(not p.text for p in doc.paragraphs)

    def test_save(self, tmp_path):
        path = DocxBuilder().save(
            [PageContent(1, [ParagraphBlock(runs=[StyledRun("saved")])])],
            tmp_path / "out" / "doc.docx"
        )
        assert path.exists()
        assert read_back(path.read_bytes()).paragraphs[0].text == "saved"
