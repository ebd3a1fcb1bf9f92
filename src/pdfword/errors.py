"""
Error taxonomy for the conversion pipeline.

Fatal errors derive from ConversionError and abort the conversion from any
state. ExtractionWarning is a record, not an exception: it is collected and
returned alongside a successful result.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


class ConversionError(Exception):
    """Base class for fatal conversion errors."""


class InvalidInputError(ConversionError):
    """The supplied file is not a parseable PDF."""


class OcrFailure(ConversionError):
    """The OCR engine failed to initialize or to recognize a page."""

    def __init__(self, message: str, page_number: Optional[int] = None):
        super().__init__(message)
        self.page_number = page_number


class AssemblyError(ConversionError):
    """The document builder failed to serialize the output."""


class ConversionFailedError(ConversionError):
    """An unexpected error terminated the pipeline."""


@dataclass
class ExtractionWarning:
    """A non-fatal problem with a single image or anchor."""
    page_number: int
    message: str
    kind: str = "decode"  # decode, anchor, embed, render

    def __str__(self) -> str:
        return f"Page {self.page_number}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page_number": self.page_number,
            "kind": self.kind,
            "message": self.message
        }
