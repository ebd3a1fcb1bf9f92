"""
DOCX document builder.

Serializes synthesized page content into a Word document with python-docx:
- Styled runs (font, size, bold, italic)
- Heading and list paragraph styles, alignment and spacing
- Full-width tables with equal columns
- Embedded PNG images
"""

import io
import logging
from pathlib import Path
from typing import Any, List, Optional, Union

from .config import ExportConfig
from .errors import AssemblyError
from .synthesis import (
    Alignment, ImageBlock, PageContent, ParagraphBlock, RowKind, StyledRun, TableBlock,
)

logger = logging.getLogger(__name__)

EMU_PER_PIXEL = 9525  # 96 DPI
FULL_WIDTH_PCT = 5000  # fiftieths of a percent

PARAGRAPH_STYLES = {
    RowKind.HEADING: "Heading 2",
    RowKind.BULLET_ITEM: "List Bullet",
    RowKind.NUMBERED_ITEM: "List Number",
}


# ============================================================================
# DOCX Builder
# ============================================================================

class DocxBuilder:
    """Build a DOCX package from synthesized pages using python-docx."""

    def __init__(self, config: Optional[ExportConfig] = None):
        self.config = config or ExportConfig()

    def build(self, pages: List[PageContent]) -> bytes:
        """
        Build the document and return the serialized DOCX bytes.

        Raises:
            AssemblyError: If the document cannot be built or serialized
        """
        try:
            doc = self._new_document()

            for index, page in enumerate(pages):
                if index > 0 and self.config.page_breaks:
                    doc.add_page_break()
                for block in page.blocks:
                    self._add_block(doc, block)

            buffer = io.BytesIO()
            doc.save(buffer)
        except AssemblyError:
            raise
        except Exception as e:
            raise AssemblyError(f"Failed to build DOCX: {e}") from e

        data = buffer.getvalue()
        logger.info(f"Built DOCX from {len(pages)} page(s) ({len(data)} bytes)")
        return data

    def save(self, pages: List[PageContent], output_path: Union[str, Path]) -> Path:
        """Build the document and write it to `output_path`."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(self.build(pages))
        logger.info(f"Exported DOCX to: {output_path}")
        return output_path

    def _new_document(self) -> Any:
        try:
            from docx import Document as DocxDocument
        except ImportError:
            raise ImportError(
                "python-docx is required for DOCX export. "
                "Install with: pip install python-docx"
            )

        if self.config.docx_template and Path(self.config.docx_template).exists():
            return DocxDocument(self.config.docx_template)
        return DocxDocument()

    def _add_block(self, doc: Any, block: Any):
        if isinstance(block, ParagraphBlock):
            self._add_paragraph(doc, block)
        elif isinstance(block, TableBlock):
            self._add_table(doc, block)
        elif isinstance(block, ImageBlock):
            self._add_image(doc, block)
        else:
            raise AssemblyError(f"Unknown block type: {type(block).__name__}")

    # ------------------------------------------------------------------------
    # Paragraphs
    # ------------------------------------------------------------------------

    def _add_paragraph(self, doc: Any, block: ParagraphBlock):
        from docx.shared import Pt

        p = doc.add_paragraph()
        style = PARAGRAPH_STYLES.get(block.kind)
        if style:
            p.style = doc.styles[style]

        p.alignment = _alignment(block.alignment)
        p.paragraph_format.space_before = Pt(block.spacing_before / 20)
        p.paragraph_format.space_after = Pt(block.spacing_after / 20)

        for styled in block.runs:
            _add_run(p, styled)

    # ------------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------------

    def _add_table(self, doc: Any, block: TableBlock):
        """Add a table spanning the full text width with equal columns."""
        if block.num_rows == 0 or block.num_cols == 0:
            return

        table = doc.add_table(rows=block.num_rows, cols=block.num_cols)
        table.style = self.config.table_style
        _set_width(table._tbl.tblPr, "w:tblW", FULL_WIDTH_PCT)

        cell_pct = FULL_WIDTH_PCT // block.num_cols
        for i, row_data in enumerate(block.rows):
            row = table.rows[i]
            for j, styled in enumerate(row_data):
                if j >= len(row.cells):
                    break
                cell = row.cells[j]
                _set_width(cell._tc.get_or_add_tcPr(), "w:tcW", cell_pct)
                paragraph = cell.paragraphs[0]
                if styled.text:
                    _add_run(paragraph, styled)

    # ------------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------------

    def _add_image(self, doc: Any, block: ImageBlock):
        from docx.shared import Emu, Pt

        p = doc.add_paragraph()
        p.alignment = _alignment(block.alignment)
        p.paragraph_format.space_before = Pt(block.spacing_before / 20)
        p.paragraph_format.space_after = Pt(block.spacing_after / 20)

        run = p.add_run()
        run.add_picture(
            io.BytesIO(block.data),
            width=Emu(block.width * EMU_PER_PIXEL),
            height=Emu(block.height * EMU_PER_PIXEL)
        )


# ============================================================================
# Helpers
# ============================================================================

def _alignment(alignment: Alignment) -> Any:
    from docx.enum.text import WD_ALIGN_PARAGRAPH

    return {
        Alignment.LEFT: WD_ALIGN_PARAGRAPH.LEFT,
        Alignment.CENTER: WD_ALIGN_PARAGRAPH.CENTER,
        Alignment.RIGHT: WD_ALIGN_PARAGRAPH.RIGHT,
    }[alignment]


def _add_run(paragraph: Any, styled: StyledRun) -> Any:
    from docx.shared import Pt

    run = paragraph.add_run(styled.text)
    run.font.size = Pt(styled.size / 2)
    run.font.name = styled.font
    run.font.bold = styled.bold
    run.font.italic = styled.italic
    return run


def _set_width(parent: Any, tag: str, pct: int):
    """Replace the width element `tag` under `parent` with a percentage width."""
    from docx.oxml import OxmlElement
    from docx.oxml.ns import qn

    existing = parent.find(qn(tag))
    if existing is not None:
        parent.remove(existing)

    width = OxmlElement(tag)
    width.set(qn("w:w"), str(pct))
    width.set(qn("w:type"), "pct")

    # Width elements sit after the style element
    style = parent.find(qn("w:tblStyle"))
    if style is not None:
        style.addnext(width)
    else:
        parent.insert(0, width)
