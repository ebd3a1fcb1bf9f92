#!/usr/bin/env python
"""
Generate synthetic sample PDFs for trying the conversion pipeline.

This script creates:
- A report with a heading, body text and lists
- A page with a numeric table
- A page with a figure and its caption
- A scanned page (image only, no text layer)

Usage:
    python examples/generate_samples.py
"""

import io
from pathlib import Path

import numpy as np
import pikepdf
from pikepdf import Dictionary, Name


PAGE_SIZE = (612, 792)


def _text_ops(lines):
    """Content stream ops for (font, size, x, y, text) tuples."""
    ops = [b"BT"]
    for font, size, x, y, text in lines:
        text = text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
        ops.append(f"/{font} {size} Tf 1 0 0 1 {x} {y} Tm ({text}) Tj".encode("latin-1"))
    ops.append(b"ET")
    return ops


def _fonts(pdf):
    def font(base):
        return pdf.make_indirect(Dictionary(Type=Name.Font, Subtype=Name.Type1, BaseFont=Name(base)))

    return Dictionary(F1=font("/Helvetica"), F2=font("/Helvetica-Bold"))


def _image(pdf, pixels):
    """Image XObject from an RGB uint8 array."""
    height, width, _ = pixels.shape
    image = pikepdf.Stream(pdf, np.ascontiguousarray(pixels, dtype=np.uint8).tobytes())
    image.Type = Name.XObject
    image.Subtype = Name.Image
    image.Width = width
    image.Height = height
    image.ColorSpace = Name.DeviceRGB
    image.BitsPerComponent = 8
    return image


def _add_page(pdf, ops, resources):
    page = pdf.add_blank_page(page_size=PAGE_SIZE)
    page.obj.Contents = pikepdf.Stream(pdf, b"\n".join(ops))
    page.obj.Resources = resources
    return page


def create_report_page(pdf, fonts):
    """Heading, body paragraphs, bullet and numbered lists."""
    lines = [
        ("F2", 18, 200, 740, "Quarterly Operations Report"),
        ("F1", 11, 72, 700, "Revenue grew in every region during the third quarter."),
        ("F1", 11, 72, 684, "The largest gains came from the northern distribution centers."),
        ("F2", 14, 72, 650, "Highlights"),
        ("F1", 11, 72, 630, "- Shipping times fell by two days on average"),
        ("F1", 11, 72, 614, "- Customer returns dropped below three percent"),
        ("F2", 14, 72, 580, "Next Steps"),
        ("F1", 11, 72, 560, "1. Expand the western warehouse"),
        ("F1", 11, 72, 544, "2. Renegotiate carrier contracts"),
        ("F1", 10, 300, 40, "1"),
    ]
    _add_page(pdf, _text_ops(lines), Dictionary(Font=fonts))


def create_table_page(pdf, fonts):
    """Numeric table below an introductory sentence."""
    lines = [("F1", 11, 72, 720, "Units shipped per region and month:")]
    rows = [
        ("Region", "July", "August", "September"),
        ("North", "1200", "1350", "1410"),
        ("South", "980", "1010", "1105"),
        ("West", "640", "700", "760"),
    ]
    y = 680
    for row in rows:
        for col, cell in enumerate(row):
            font = "F2" if y == 680 else "F1"
            lines.append((font, 11, 72 + col * 120, y, cell))
        y -= 20
    _add_page(pdf, _text_ops(lines), Dictionary(Font=fonts))


def create_figure_page(pdf, fonts):
    """A gradient figure with a caption below it."""
    gradient = np.zeros((120, 240, 3), dtype=np.uint8)
    gradient[..., 0] = np.linspace(30, 220, 240, dtype=np.uint8)[None, :]
    gradient[..., 2] = np.linspace(220, 30, 120, dtype=np.uint8)[:, None]

    ops = [b"q 240 0 0 120 186 520 cm /Im1 Do Q"]
    ops += _text_ops([
        ("F1", 11, 72, 720, "The chart below summarizes monthly demand."),
        ("F1", 10, 230, 500, "Figure 1: Monthly demand"),
    ])
    resources = Dictionary(Font=fonts, XObject=Dictionary(Im1=_image(pdf, gradient)))
    _add_page(pdf, ops, resources)


def create_scanned_page(pdf):
    """A page that is only an image of text, like a scanner produces."""
    import cv2

    scan = np.full((1100, 850, 3), 250, dtype=np.uint8)
    cv2.putText(scan, "Scanned Memo", (300, 120), cv2.FONT_HERSHEY_DUPLEX, 1.2, (20, 20, 20), 2)
    y = 220
    for line in [
        "This page has no text layer.",
        "Convert it as an image or run OCR",
        "to recover the words below.",
    ]:
        cv2.putText(scan, line, (80, y), cv2.FONT_HERSHEY_SIMPLEX, 1.0, (20, 20, 20), 2)
        y += 60

    ops = [f"q {PAGE_SIZE[0]} 0 0 {PAGE_SIZE[1]} 0 0 cm /Scan Do Q".encode("latin-1")]
    _add_page(pdf, ops, Dictionary(XObject=Dictionary(Scan=_image(pdf, scan))))


def save(pdf, path):
    buffer = io.BytesIO()
    pdf.save(buffer)
    path.write_bytes(buffer.getvalue())
    print(f"Created: {path}")


def main():
    output_dir = Path(__file__).parent / "samples"
    output_dir.mkdir(exist_ok=True)

    print("Generating sample PDFs...")

    pdf = pikepdf.new()
    fonts = _fonts(pdf)
    create_report_page(pdf, fonts)
    create_table_page(pdf, fonts)
    create_figure_page(pdf, fonts)
    save(pdf, output_dir / "report.pdf")

    pdf = pikepdf.new()
    fonts = _fonts(pdf)
    create_report_page(pdf, fonts)
    create_scanned_page(pdf)
    save(pdf, output_dir / "mixed_scanned.pdf")

    print(f"\nSample PDFs saved to: {output_dir}")
    print("\nTo convert them:")
    print(f"  pdfword --input {output_dir / 'report.pdf'}")
    print(f"  pdfword --input {output_dir / 'mixed_scanned.pdf'} --scanned ocr")


if __name__ == "__main__":
    main()
