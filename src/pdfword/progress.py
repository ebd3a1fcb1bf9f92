"""
Progress and warning reporting shared by all pipeline stages.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .errors import ExtractionWarning

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


# ============================================================================
# Progress Bands
# ============================================================================

EXTRACTION_BAND = (0.0, 20.0)
OCR_BAND = (20.0, 60.0)
SYNTHESIS_BAND = (60.0, 100.0)


def band_percent(band: tuple, done: int, total: int) -> float:
    """Map `done` out of `total` steps linearly into a progress band."""
    start, end = band
    if total <= 0:
        return end
    return start + (end - start) * (done / total)


@dataclass
class ProgressTracker:
    """Track progress of one conversion call.

    Reported percentages are clamped to [0, 100] and never go backwards, so
    the callback sees a monotonically non-decreasing sequence.
    """
    callback: Optional[ProgressCallback] = None
    percent: float = 0.0
    current_stage: str = ""
    warnings: List[ExtractionWarning] = field(default_factory=list)

    def report(self, percent: float):
        percent = max(0.0, min(100.0, percent))
        if percent < self.percent:
            return
        self.percent = percent
        if self.callback is not None:
            self.callback(percent)

    def update(self, stage: str):
        self.current_stage = stage
        logger.debug(f"Stage: {stage}")

    def warn(self, page_number: int, message: str, kind: str = "decode") -> ExtractionWarning:
        warning = ExtractionWarning(page_number=page_number, message=message, kind=kind)
        self.warnings.append(warning)
        logger.warning(str(warning))
        return warning
