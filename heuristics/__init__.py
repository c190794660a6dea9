"""
Heuristic image-feature scorers for deepfake likelihood estimation.

Each scorer lives in its own module, operates on a shared
:class:`~heuristics.utils.PixelBuffer` and returns an
:class:`~heuristics.utils.AnalysisFactor`.  The ``pipeline`` package
orchestrates them and aggregates the factors into a verdict.

Modules
-------
utils        PixelBuffer / Landmark / AnalysisFactor, gray helpers, JSON I/O
preprocess   Rasterizer capability + downscale to a bounded PixelBuffer
skin         Stride-grid skin-tone scan producing pseudo-landmarks
symmetry     Left/right landmark asymmetry
texture      Adjacent-pixel edge / smoothness ratios
lighting     Quadrant brightness spread
histogram    Luminance histogram gaps and spikes
"""

from .utils import AnalysisFactor, Category, Landmark, PixelBuffer
from .preprocess import (
    ArrayRasterizer,
    BaseRasterizer,
    DetectorError,
    ImagePreprocessor,
    PILRasterizer,
    RenderingContextUnavailable,
)
from .skin import FaceDetection, detect_face_region
from .symmetry import analyze_facial_symmetry
from .texture import analyze_texture_patterns
from .lighting import analyze_lighting_consistency
from .histogram import analyze_color_distribution

__all__ = [
    "AnalysisFactor", "Category", "Landmark", "PixelBuffer",
    "ArrayRasterizer", "BaseRasterizer", "DetectorError", "ImagePreprocessor",
    "PILRasterizer", "RenderingContextUnavailable",
    "FaceDetection", "detect_face_region",
    "analyze_facial_symmetry",
    "analyze_texture_patterns",
    "analyze_lighting_consistency",
    "analyze_color_distribution",
]
