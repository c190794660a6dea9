from __future__ import annotations

import logging
from typing import Any, Dict

import numpy as np

from heuristics.utils import AnalysisFactor, Category, PixelBuffer, banded, gray_mean

logger = logging.getLogger(__name__)

EDGE_DIFF = 30
SMOOTH_DIFF = 3

_BANDS = (
    (50, "Unusual texture patterns detected - possible AI artifacts"),
    (25, "Minor texture irregularities - could be compression or AI"),
)
_NATURAL = "Natural texture patterns observed"


def texture_ratios(buf: PixelBuffer) -> Dict[str, Any]:
    """
    Compare each pixel's gray level with the next one in memory order
    (rows wrap into the next row).  Both ratios are taken over the full
    pixel count, not the number of comparisons.
    """
    gray = gray_mean(buf)
    diff = np.abs(np.diff(gray))
    total = gray.size
    edges = int((diff > EDGE_DIFF).sum())
    smooth = int((diff < SMOOTH_DIFF).sum())
    return {
        "edge_transitions": edges,
        "smooth_transitions": smooth,
        "edge_ratio": edges / total,
        "smooth_ratio": smooth / total,
    }


def analyze_texture_patterns(buf: PixelBuffer) -> AnalysisFactor:
    r = texture_ratios(buf)
    edge_ratio = r["edge_ratio"]
    smooth_ratio = r["smooth_ratio"]

    suspicion = 0
    if smooth_ratio > 0.7:
        suspicion += 40       # over-smoothed
    elif smooth_ratio < 0.2:
        suspicion += 20       # over-sharpened

    if edge_ratio < 0.05 or edge_ratio > 0.4:
        suspicion += 30

    score = min(suspicion, 100)
    logger.debug("Texture: edge=%.4f smooth=%.4f score=%d", edge_ratio, smooth_ratio, score)

    return AnalysisFactor(
        name="Texture Analysis",
        score=score,
        description=banded(score, _BANDS, _NATURAL),
        category=Category.TEXTURE,
    )
