"""
Configuration and constants for the PDF-to-Word reconstruction pipeline.

This module provides:
- Geometry thresholds for row grouping and table detection
- Page extraction parameters
- Paragraph/table synthesis heuristics
- OCR and export settings
"""

import os
from dataclasses import dataclass, field
from typing import Optional


# ============================================================================
# Processing Configuration
# ============================================================================

@dataclass
class GeometryConfig:
    """Row grouping and column alignment configuration (page units)."""
    row_tolerance: float = 5.0
    column_tolerance: float = 10.0
    min_alignment: float = 0.5


@dataclass
class ExtractionConfig:
    """Page extraction configuration."""
    render_scale: float = 1.5
    min_text_length: int = 10  # trimmed text must be longer than this
    caption_offset: float = 50.0  # image placed this far above its caption
    anchor_tolerance: float = 1.0  # slack above page height before repair


@dataclass
class SynthesisConfig:
    """Paragraph and table synthesis configuration."""
    heading_height: float = 14.0
    heading_max_length: int = 100
    centered_margin_ratio: float = 0.35
    page_number_max_y: float = 100.0
    max_image_width: int = 600
    default_font_size: int = 22  # half-points
    default_font: str = "Calibri"
    default_page_width: float = 600.0
    # Paragraph spacing in twentieths of a point
    heading_spacing: tuple = (240, 120)
    body_spacing: tuple = (120, 120)
    image_spacing: tuple = (200, 200)
    scanned_page_spacing: tuple = (400, 200)


@dataclass
class OCRConfig:
    """OCR configuration."""
    tesseract_lang: str = "eng"
    tesseract_config: str = "--oem 3 --psm 6"
    # Post-processing
    fix_hyphenation: bool = True
    merge_lines: bool = True


@dataclass
class ExportConfig:
    """DOCX export configuration."""
    docx_template: Optional[str] = None
    page_breaks: bool = False
    table_style: str = "Table Grid"


@dataclass
class PipelineConfig:
    """Main pipeline configuration."""
    geometry: GeometryConfig = field(default_factory=GeometryConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    synthesis: SynthesisConfig = field(default_factory=SynthesisConfig)
    ocr: OCRConfig = field(default_factory=OCRConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    # Global settings
    debug_mode: bool = False


# ============================================================================
# Default Configuration Instance
# ============================================================================

def get_config() -> PipelineConfig:
    """Get the default pipeline configuration with environment overrides."""
    config = PipelineConfig()

    if os.environ.get("PDFWORD_DEBUG", "").lower() == "true":
        config.debug_mode = True

    if os.environ.get("PDFWORD_OCR_LANG"):
        config.ocr.tesseract_lang = os.environ["PDFWORD_OCR_LANG"]

    if os.environ.get("PDFWORD_PAGE_BREAKS", "").lower() == "true":
        config.export.page_breaks = True

    return config


# ============================================================================
# Output Format
# ============================================================================

DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
