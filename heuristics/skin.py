"""
Cheap skin-tone scan used as a stand-in for face detection.

The buffer is sampled on a fixed stride grid; matching samples around
their centroid become pseudo-landmarks for the symmetry scorer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

import numpy as np

from heuristics.utils import Landmark, PixelBuffer

logger = logging.getLogger(__name__)

GRID_STRIDE = 5
MIN_SKIN_SAMPLES = 50
MAX_LANDMARKS = 100
MIN_FACE_LANDMARKS = 30


@dataclass(frozen=True)
class FaceDetection:
    found: bool
    landmarks: List[Landmark] = field(default_factory=list)
    skin_samples: int = 0


def skin_mask(rgb: np.ndarray) -> np.ndarray:
    """Boolean mask of skin-toned pixels for an (..., 3) array."""
    c = rgb.astype(np.int16)
    r, g, b = c[..., 0], c[..., 1], c[..., 2]
    return (
        (r > 95) & (g > 40) & (b > 20)
        & (r > g) & (r > b)
        & (np.abs(r - g) > 15)
        & (r - b > 15)
    )


def detect_face_region(buf: PixelBuffer, stride: int = GRID_STRIDE) -> FaceDetection:
    """Scan the stride grid for skin tones and derive pseudo-landmarks.

    Samples are visited row by row; the first ``MAX_LANDMARKS`` samples
    within a quarter of the image size of the centroid are kept.
    """
    grid = buf.rgba()[::stride, ::stride, :3]
    ys, xs = np.nonzero(skin_mask(grid))       # row-major order
    xs = xs * stride
    ys = ys * stride

    if xs.size < MIN_SKIN_SAMPLES:
        logger.debug("Only %d skin samples, no face", xs.size)
        return FaceDetection(found=False, landmarks=[], skin_samples=int(xs.size))

    cx = float(xs.mean())
    cy = float(ys.mean())
    near = (np.abs(xs - cx) < buf.width / 4) & (np.abs(ys - cy) < buf.height / 4)
    kept_x = xs[near][:MAX_LANDMARKS]
    kept_y = ys[near][:MAX_LANDMARKS]

    landmarks = [Landmark(int(x), int(y)) for x, y in zip(kept_x, kept_y)]
    found = len(landmarks) > MIN_FACE_LANDMARKS
    logger.debug(
        "Skin samples=%d centroid=(%.1f, %.1f) landmarks=%d found=%s",
        xs.size, cx, cy, len(landmarks), found,
    )
    return FaceDetection(found=found, landmarks=landmarks, skin_samples=int(xs.size))
