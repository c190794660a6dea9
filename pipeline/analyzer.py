"""
DeepfakeAnalyzer — orchestrates the heuristic scorers for one image.

Flow
----
  1. ImagePreprocessor      — rasterize + downscale to a PixelBuffer
  2. detect_face_region     — skin-tone scan, pseudo-landmarks
  3. facial symmetry        — only when a face was found
  4. texture / lighting / color distribution scorers
  5. ScoreAggregator        — average + jitter -> confidence, verdict

Steps 1–5 run in a worker thread while the ProgressSimulator runs on the
event loop; both are awaited before the result is returned, so callers see
at least the simulator's full duration.

Usage
-----
    from pipeline.analyzer import DeepfakeAnalyzer
    analyzer = DeepfakeAnalyzer()
    result = analyzer.analyze("photo.jpg", on_progress=print)
    print(result.verdict, result.confidence)
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Optional

from heuristics.histogram import analyze_color_distribution
from heuristics.lighting import analyze_lighting_consistency
from heuristics.preprocess import BaseRasterizer, ImagePreprocessor, RenderingContextUnavailable
from heuristics.skin import GRID_STRIDE, detect_face_region
from heuristics.symmetry import analyze_facial_symmetry
from heuristics.texture import analyze_texture_patterns
from heuristics.utils import PixelBuffer

from .aggregator import AnalysisResult, ScoreAggregator
from .config import AnalyzerConfig
from .progress import ProgressCallback, ProgressSimulator

logger = logging.getLogger(__name__)


class DeepfakeAnalyzer:
    """
    Args:
        preprocessor: turns image handles into PixelBuffers (PIL-backed by default).
        aggregator: factor aggregation + jitter source.
        progress: simulator joined with every analysis; ``None`` disables it.
        grid_stride: skin-tone sampling stride.
    """

    def __init__(
        self,
        preprocessor: Optional[ImagePreprocessor] = None,
        aggregator: Optional[ScoreAggregator] = None,
        progress: Optional[ProgressSimulator] = None,
        grid_stride: int = GRID_STRIDE,
    ):
        self.preprocessor = preprocessor if preprocessor is not None else ImagePreprocessor()
        self.aggregator = aggregator if aggregator is not None else ScoreAggregator()
        self.progress = progress
        self.grid_stride = grid_stride

    @classmethod
    def from_config(
        cls,
        config: AnalyzerConfig,
        rasterizer: Optional[BaseRasterizer] = None,
    ) -> "DeepfakeAnalyzer":
        progress = None
        if config.progress_enabled:
            progress = ProgressSimulator(interval_ms=config.progress_interval_ms)
        return cls(
            preprocessor=ImagePreprocessor(rasterizer, max_dimension=config.max_dimension),
            aggregator=ScoreAggregator(
                rng=random.Random(config.random_seed),
                jitter_amplitude=config.jitter_amplitude,
            ),
            progress=progress,
            grid_stride=config.grid_stride,
        )

    # ------------------------------------------------------------------
    # Synchronous pipeline
    # ------------------------------------------------------------------

    def score_buffer(self, buf: PixelBuffer) -> AnalysisResult:
        """Run every scorer on an already-prepared buffer."""
        face = detect_face_region(buf, stride=self.grid_stride)
        factors = self.aggregator.assemble_factors(
            face,
            analyze_facial_symmetry,
            texture=analyze_texture_patterns(buf),
            lighting=analyze_lighting_consistency(buf),
            color=analyze_color_distribution(buf),
        )
        return self.aggregator.aggregate(factors)

    def run_pipeline(self, image: Any) -> AnalysisResult:
        buf = self.preprocessor.preprocess(image)
        logger.info("Analyzing %dx%d buffer", buf.width, buf.height)
        return self.score_buffer(buf)

    # ------------------------------------------------------------------
    # Concurrent analysis
    # ------------------------------------------------------------------

    async def analyze_async(
        self,
        image: Any,
        on_progress: Optional[ProgressCallback] = None,
    ) -> AnalysisResult:
        scoring = asyncio.to_thread(self.run_pipeline, image)
        if self.progress is None:
            outcome = await asyncio.gather(scoring, return_exceptions=True)
        else:
            outcome = await asyncio.gather(
                scoring, self.progress.run(on_progress), return_exceptions=True
            )

        # both tasks have finished here; surface the first failure, if any
        for item in outcome:
            if isinstance(item, BaseException):
                if isinstance(item, RenderingContextUnavailable):
                    logger.error("Analysis aborted: %s", item)
                raise item

        result = outcome[0]
        logger.info("Verdict %s (confidence %d)", result.verdict.value, result.confidence)
        return result

    def analyze(self, image: Any, on_progress: Optional[ProgressCallback] = None) -> AnalysisResult:
        """Blocking wrapper around :meth:`analyze_async`."""
        return asyncio.run(self.analyze_async(image, on_progress=on_progress))
