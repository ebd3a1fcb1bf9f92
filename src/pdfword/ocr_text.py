"""
Text OCR for scanned pages.

Provides:
- Tesseract engine wrapper with the acquire/recognize/terminate lifecycle
- Confidence scoring
- Post-processing (hyphenation fix, line merge into paragraphs)
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from .config import OCRConfig
from .errors import OcrFailure
from .images import to_grayscale

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class LineResult:
    """OCR result for a line of text."""
    text: str
    confidence: float
    bbox: Optional[Tuple[int, int, int, int]] = None


@dataclass
class RecognizedText:
    """Complete OCR result for one page raster."""
    text: str
    confidence: float = 0.0
    lines: List[LineResult] = field(default_factory=list)
    raw_text: Optional[str] = None  # Before post-processing
    engine_used: str = ""

    @property
    def is_low_confidence(self) -> bool:
        return self.confidence < 0.65

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "confidence": self.confidence,
            "engine": self.engine_used
        }


# ============================================================================
# Tesseract Engine
# ============================================================================

class TesseractEngine:
    """OCR using Tesseract through pytesseract."""

    name = "tesseract"

    def __init__(
        self,
        language: str = "eng",
        config: str = "--oem 3 --psm 6"
    ):
        try:
            import pytesseract
            self.pytesseract = pytesseract

            # Test that tesseract is installed
            pytesseract.get_tesseract_version()

        except Exception as e:
            raise OcrFailure(
                f"Tesseract not available: {e}\n"
                "Install with: pip install pytesseract\n"
                "Also install Tesseract: https://github.com/tesseract-ocr/tesseract"
            ) from e

        self.language = language
        self.config = config

    def _preprocess_for_ocr(self, raster: np.ndarray) -> np.ndarray:
        """Grayscale, upscale tiny rasters and denoise."""
        import cv2

        gray = to_grayscale(raster)

        h, w = gray.shape
        if h < 30:
            scale = 30.0 / h
            gray = cv2.resize(gray, None, fx=scale, fy=scale, interpolation=cv2.INTER_CUBIC)

        return cv2.medianBlur(gray, 3)

    def recognize(self, raster: np.ndarray) -> RecognizedText:
        """
        Recognize the text of a page raster.

        Raises:
            OcrFailure: If Tesseract fails on the image
        """
        processed = self._preprocess_for_ocr(raster)

        try:
            data = self.pytesseract.image_to_data(
                processed,
                lang=self.language,
                config=self.config,
                output_type=self.pytesseract.Output.DICT
            )
        except Exception as e:
            raise OcrFailure(f"Tesseract error: {e}") from e

        # Words are grouped into lines keyed by (block, paragraph, line)
        lines: List[LineResult] = []
        current_words: List[str] = []
        current_confs: List[float] = []
        current_key = None
        paragraph_of_line = []
        confidences = []

        for i in range(len(data['text'])):
            text = data['text'][i].strip()
            conf = float(data['conf'][i])
            if conf < 0 or not text:
                continue

            key = (data['block_num'][i], data['par_num'][i], data['line_num'][i])
            if key != current_key:
                if current_words:
                    lines.append(LineResult(' '.join(current_words), float(np.mean(current_confs))))
                    paragraph_of_line.append(current_key[:2])
                current_words, current_confs = [], []
                current_key = key

            current_words.append(text)
            current_confs.append(conf / 100.0)
            confidences.append(conf / 100.0)

        if current_words:
            lines.append(LineResult(' '.join(current_words), float(np.mean(current_confs))))
            paragraph_of_line.append(current_key[:2])

        # Blank line between Tesseract paragraphs
        parts = []
        for i, line in enumerate(lines):
            if i > 0 and paragraph_of_line[i] != paragraph_of_line[i - 1]:
                parts.append("")
            parts.append(line.text)

        return RecognizedText(
            text='\n'.join(parts),
            confidence=float(np.mean(confidences)) if confidences else 0.0,
            lines=lines,
            engine_used=self.name
        )

    def terminate(self):
        """Release the engine. Tesseract runs per call, so nothing is held."""
        logger.debug("Tesseract engine released")


# ============================================================================
# Page OCR
# ============================================================================

class PageOCR:
    """
    OCR front end used by the converter.

    Wraps an engine with text post-processing. Acquire once per document
    and always call `terminate()`.
    """

    def __init__(self, engine: Any, fix_hyphenation: bool = True, merge_lines: bool = True):
        self.engine = engine
        self.fix_hyphenation = fix_hyphenation
        self.merge_lines = merge_lines

    @classmethod
    def from_config(cls, config: Optional[OCRConfig] = None) -> "PageOCR":
        config = config or OCRConfig()
        logger.info(f"Initializing OCR engine (tesseract, lang={config.tesseract_lang})")
        engine = TesseractEngine(language=config.tesseract_lang, config=config.tesseract_config)
        return cls(engine, config.fix_hyphenation, config.merge_lines)

    def recognize(self, raster: np.ndarray) -> RecognizedText:
        result = self.engine.recognize(raster)
        result.raw_text = result.text

        if self.fix_hyphenation:
            result.text = fix_hyphenation(result.text)

        if self.merge_lines:
            result.text = merge_lines(result.text)

        return result

    def terminate(self):
        self.engine.terminate()


# ============================================================================
# Post-processing
# ============================================================================

HYPHENATED_PREFIXES = ('self', 'non', 'pre', 'post', 'anti', 'co', 're')


def fix_hyphenation(text: str) -> str:
    """
    Fix hyphenated words that were split across lines.

    Example: "docu-\\nment" -> "document"
    """
    pattern = r'(\w+)-[ \t]*\n[ \t]*(\w+)'

    def replace_hyphen(match):
        word1 = match.group(1)
        word2 = match.group(2)
        if word1.lower() in HYPHENATED_PREFIXES:
            return f"{word1}-{word2}"
        return word1 + word2

    return re.sub(pattern, replace_hyphen, text)


def merge_lines(text: str) -> str:
    """
    Merge lines into paragraphs separated by blank lines.

    Blank lines are kept as paragraph breaks; a line ending in sentence
    punctuation also closes its paragraph.
    """
    merged = []
    current_para = []

    for line in text.split('\n'):
        line = line.strip()

        if not line:
            if current_para:
                merged.append(' '.join(current_para))
                current_para = []
            continue

        if current_para and not current_para[-1].rstrip().endswith(('.', '!', '?', ':')):
            current_para.append(line)
        else:
            if current_para:
                merged.append(' '.join(current_para))
            current_para = [line]

    if current_para:
        merged.append(' '.join(current_para))

    return '\n\n'.join(merged)
