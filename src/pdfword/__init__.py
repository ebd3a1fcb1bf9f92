"""
PDF to Word Reconstruction
==========================

Converts PDF documents into editable DOCX files that keep the source
structure: paragraphs with alignment and font styling, headings, lists,
tables inferred from column alignment, and embedded images.

Main components:
- Page extraction (text fragments, painted images, page rasters)
- Row grouping and table detection from fragment geometry
- Paragraph/table/image synthesis
- Optional OCR for scanned pages
- DOCX assembly
"""

__version__ = "1.0.0"
__author__ = "Document Reconstruction Team"

from .assembler import (
    ConversionMethod, ConversionResult, ConversionState, PdfToWordConverter, PendingChoice,
)
from .config import PipelineConfig, get_config
from .errors import (
    AssemblyError, ConversionError, ConversionFailedError, ExtractionWarning,
    InvalidInputError, OcrFailure,
)

__all__ = [
    "PdfToWordConverter",
    "ConversionMethod",
    "ConversionResult",
    "ConversionState",
    "PendingChoice",
    "PipelineConfig",
    "get_config",
    "ConversionError",
    "InvalidInputError",
    "OcrFailure",
    "AssemblyError",
    "ConversionFailedError",
    "ExtractionWarning",
]
