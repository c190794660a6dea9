from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from heuristics.utils import AnalysisFactor, Category, Landmark, banded

logger = logging.getLogger(__name__)

MIN_LANDMARKS = 10
INSUFFICIENT_SCORE = 50

_BANDS = (
    (60, "Unusual facial asymmetry detected - common in AI-generated faces"),
    (30, "Minor symmetry variations - within normal range"),
)
_NATURAL = "Natural facial symmetry patterns observed"


def analyze_facial_symmetry(landmarks: Sequence[Landmark]) -> AnalysisFactor:
    """
    Score left/right asymmetry around the landmarks' mean x.

    A landmark is unmatched when no other landmark sits at nearly the same
    distance from the midline (< 5 px) and height (< 10 px); unmatched
    landmarks further than 10 px from the midline each add 2 to the
    accumulator, and the score is ``min(acc * 3, 100)``.
    """
    if len(landmarks) < MIN_LANDMARKS:
        return AnalysisFactor(
            name="Facial Symmetry",
            score=INSUFFICIENT_SCORE,
            description="Insufficient landmarks detected for symmetry analysis",
            category=Category.FACIAL,
        )

    xs = np.array([p.x for p in landmarks], dtype=np.float64)
    ys = np.array([p.y for p in landmarks], dtype=np.float64)
    mid_x = xs.sum() / xs.size
    dist = np.abs(xs - mid_x)

    # pairwise: [i, j] True if j mirrors i
    mirrors = (np.abs(dist[None, :] - dist[:, None]) < 5) & (np.abs(ys[None, :] - ys[:, None]) < 10)
    np.fill_diagonal(mirrors, False)

    unmatched = ~mirrors.any(axis=1) & (dist > 10)
    asymmetry = 2 * int(unmatched.sum())
    score = min(asymmetry * 3, 100)
    logger.debug("Symmetry: midline=%.1f unmatched=%d score=%d", mid_x, int(unmatched.sum()), score)

    return AnalysisFactor(
        name="Facial Symmetry",
        score=score,
        description=banded(score, _BANDS, _NATURAL),
        category=Category.FACIAL,
    )
