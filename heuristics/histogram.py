from __future__ import annotations

import logging
from typing import Any, Dict

import numpy as np

from heuristics.utils import AnalysisFactor, Category, PixelBuffer, banded, gray_rounded

logger = logging.getLogger(__name__)

SPIKE_FACTOR = 5

_BANDS = (
    (50, "Unnatural color histogram detected - possible manipulation"),
    (25, "Minor color distribution anomalies"),
)
_NATURAL = "Natural color distribution pattern"


def luminance_histogram(buf: PixelBuffer) -> np.ndarray:
    """256-bin histogram of rounded (R+G+B)/3."""
    return np.bincount(gray_rounded(buf), minlength=256)


def histogram_anomalies(hist: np.ndarray, total_pixels: int) -> Dict[str, Any]:
    """Count isolated empty bins (gaps) and over-full bins (spikes) in 1..254."""
    inner = hist[1:255]
    gaps = (inner == 0) & (hist[:254] > 0) & (hist[2:] > 0)
    spikes = inner > (total_pixels / 256) * SPIKE_FACTOR
    return {"gaps": int(gaps.sum()), "spikes": int(spikes.sum())}


def analyze_color_distribution(buf: PixelBuffer) -> AnalysisFactor:
    a = histogram_anomalies(luminance_histogram(buf), buf.pixel_count)
    score = min(a["gaps"] * 5 + a["spikes"] * 3, 100)
    logger.debug("Histogram: gaps=%d spikes=%d score=%d", a["gaps"], a["spikes"], score)

    return AnalysisFactor(
        name="Color Distribution",
        score=score,
        description=banded(score, _BANDS, _NATURAL),
        category=Category.TEXTURE,
    )
