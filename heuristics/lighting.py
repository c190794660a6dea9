from __future__ import annotations

import logging
import math
from typing import Any, Dict, List

import numpy as np

from heuristics.utils import AnalysisFactor, Category, PixelBuffer, banded, gray_mean

logger = logging.getLogger(__name__)

_BANDS = (
    (50, "Inconsistent lighting across face regions - suspicious"),
    (25, "Some lighting variations detected"),
)
_NATURAL = "Consistent lighting patterns - appears natural"


def quadrant_means(buf: PixelBuffer) -> List[float]:
    """
    Mean brightness of the four quadrants in order
    [top-left, top-right, bottom-left, bottom-right].

    Rows with ``y < height / 2`` are the top half and columns with
    ``x < width / 2`` the left half.  An empty quadrant yields NaN.
    """
    gray = gray_mean(buf).reshape(buf.height, buf.width)
    top = np.arange(buf.height) < buf.height / 2
    left = np.arange(buf.width) < buf.width / 2

    means = []
    for rows in (top, ~top):
        for cols in (left, ~left):
            q = gray[np.ix_(rows, cols)]
            means.append(float(q.sum() / q.size) if q.size else math.nan)
    return means


def lighting_stats(buf: PixelBuffer) -> Dict[str, Any]:
    means = quadrant_means(buf)
    if any(math.isnan(m) for m in means):
        return {"quadrant_means": means, "max_diff": math.nan, "variance": math.nan}

    center = sum(means) / 4
    return {
        "quadrant_means": means,
        "max_diff": max(means) - min(means),
        "variance": sum((m - center) ** 2 for m in means) / 4,
    }


def analyze_lighting_consistency(buf: PixelBuffer) -> AnalysisFactor:
    s = lighting_stats(buf)
    max_diff = s["max_diff"]
    variance = s["variance"]

    # NaN compares False everywhere: degenerate buffers score 0
    score = 0
    if max_diff > 80:
        score += 40
    elif max_diff > 50:
        score += 20

    if variance > 1000:
        score += 30
    elif variance > 500:
        score += 15

    score = min(score, 100)
    logger.debug("Lighting: means=%s max_diff=%.2f var=%.2f score=%d",
                 s["quadrant_means"], max_diff, variance, score)

    return AnalysisFactor(
        name="Lighting Consistency",
        score=score,
        description=banded(score, _BANDS, _NATURAL),
        category=Category.LIGHTING,
    )
