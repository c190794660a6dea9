"""
ScoreAggregator: combines the four factor scores into a single AnalysisResult.

=== Scoring ===

    avg        = mean of the 4 factor scores
    jitter     = (U - 0.5) * amplitude        U ~ rng.random(), amplitude = 10
    final      = clamp(avg + jitter, 0, 100)
    confidence = round(final)                 (half-up)

The verdict is thresholded on the *unrounded* ``final`` score:

    final >= 60  -> POTENTIAL_DEEPFAKE
    final >= 35  -> INCONCLUSIVE
    otherwise    -> LIKELY_REAL

The jitter models estimator uncertainty.  It mixes noise into the verdict,
so two runs over the same image may disagree near a threshold; pass a
seeded ``random.Random`` (or ``jitter_amplitude=0``) for reproducibility.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Sequence, Tuple

from heuristics.skin import FaceDetection
from heuristics.utils import AnalysisFactor, Category, clamp, round_half_up

logger = logging.getLogger(__name__)

FACTOR_COUNT = 4
DEEPFAKE_THRESHOLD = 60.0
INCONCLUSIVE_THRESHOLD = 35.0
DEFAULT_JITTER_AMPLITUDE = 10.0

NO_FACE_FACTOR = AnalysisFactor(
    name="Face Detection",
    score=40,
    description="No clear face detected - analysis may be limited",
    category=Category.FACIAL,
)


class Verdict(str, Enum):
    LIKELY_REAL = "LIKELY_REAL"
    POTENTIAL_DEEPFAKE = "POTENTIAL_DEEPFAKE"
    INCONCLUSIVE = "INCONCLUSIVE"


SUMMARIES = {
    Verdict.POTENTIAL_DEEPFAKE: (
        "Multiple indicators suggest this image may be artificially generated or "
        "manipulated. High-confidence signals include unusual texture patterns and "
        "facial inconsistencies."
    ),
    Verdict.INCONCLUSIVE: (
        "Analysis shows mixed signals. Some indicators are within normal range while "
        "others show minor anomalies. Manual review recommended."
    ),
    Verdict.LIKELY_REAL: (
        "No significant manipulation indicators detected. Image characteristics are "
        "consistent with authentic photographs."
    ),
}


@dataclass(frozen=True)
class AnalysisResult:
    """The final, immutable report for one analyzed image."""

    is_deepfake: bool
    confidence: int                       # [0, 100]
    verdict: Verdict
    factors: Tuple[AnalysisFactor, ...]   # exactly 4, fixed order
    summary: str

    def to_dict(self) -> dict:
        return {
            "is_deepfake": self.is_deepfake,
            "confidence": self.confidence,
            "verdict": self.verdict.value,
            "factors": [f.to_dict() for f in self.factors],
            "summary": self.summary,
        }


def verdict_for(score: float) -> Verdict:
    """Step function from the clamped, unrounded score to a verdict."""
    if score >= DEEPFAKE_THRESHOLD:
        return Verdict.POTENTIAL_DEEPFAKE
    if score >= INCONCLUSIVE_THRESHOLD:
        return Verdict.INCONCLUSIVE
    return Verdict.LIKELY_REAL


class ScoreAggregator:
    """
    Builds the 4-factor list and turns it into an AnalysisResult.

    Args:
        rng: source of the jitter draw; a fresh unseeded ``random.Random``
             when omitted.
        jitter_amplitude: width of the jitter interval (default 10 -> [-5, +5]).
    """

    def __init__(self, rng: random.Random | None = None, jitter_amplitude: float = DEFAULT_JITTER_AMPLITUDE):
        self.rng = rng if rng is not None else random.Random()
        self.jitter_amplitude = jitter_amplitude

    def assemble_factors(
        self,
        face: FaceDetection,
        symmetry: Callable[[Sequence], AnalysisFactor],
        texture: AnalysisFactor,
        lighting: AnalysisFactor,
        color: AnalysisFactor,
    ) -> List[AnalysisFactor]:
        """Order factors as [facial, texture, lighting, color].

        *symmetry* is only called when a face was found.
        """
        facial = symmetry(face.landmarks) if face.found else NO_FACE_FACTOR
        return [facial, texture, lighting, color]

    def jitter(self) -> float:
        if self.jitter_amplitude == 0:
            return 0.0
        return (self.rng.random() - 0.5) * self.jitter_amplitude

    def aggregate(self, factors: Sequence[AnalysisFactor]) -> AnalysisResult:
        if len(factors) != FACTOR_COUNT:
            raise ValueError(f"Expected {FACTOR_COUNT} factors, got {len(factors)}")

        avg_score = sum(f.score for f in factors) / len(factors)
        jitter = self.jitter()
        final_score = clamp(avg_score + jitter, 0.0, 100.0)
        verdict = verdict_for(final_score)

        logger.info(
            "Aggregate: avg=%.2f jitter=%+.2f final=%.2f verdict=%s",
            avg_score, jitter, final_score, verdict.value,
        )

        return AnalysisResult(
            is_deepfake=verdict is Verdict.POTENTIAL_DEEPFAKE,
            confidence=round_half_up(final_score),
            verdict=verdict,
            factors=tuple(factors),
            summary=SUMMARIES[verdict],
        )
