"""
Image preprocessing: turn an opaque image handle into a bounded PixelBuffer.

The rasterization surface is a capability supplied by the host.  Two
implementations ship with the package:

* :class:`PILRasterizer` — file paths, file objects and ``PIL.Image``
  instances (EXIF orientation applied, bilinear resampling).
* :class:`ArrayRasterizer` — in-memory ``numpy`` frames (gray, RGB/BGR,
  RGBA/BGRA), converted and resized with OpenCV.

Drawing onto a rasterizer's surface is serialized by a non-reentrant lock
so a single rasterizer instance can be shared across concurrent analyses.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterator, Tuple

import cv2
import numpy as np
from PIL import Image, ImageOps

from heuristics.utils import PixelBuffer, round_half_up

logger = logging.getLogger(__name__)

MAX_DIMENSION = 512


class DetectorError(Exception):
    """Base class for errors raised by the detection engine."""
    pass


class RenderingContextUnavailable(DetectorError):
    """The rasterization surface could not be acquired or drawn on."""
    pass


def target_size(natural_width: int, natural_height: int, max_dim: int = MAX_DIMENSION) -> Tuple[int, int]:
    """Scale so the longer side equals *max_dim*; ties pin the height."""
    if natural_width <= 0 or natural_height <= 0:
        raise ValueError(f"Image has no pixels: {natural_width}x{natural_height}")

    if natural_width > natural_height:
        width = max_dim
        height = round_half_up(natural_height * max_dim / natural_width)
    else:
        width = round_half_up(natural_width * max_dim / natural_height)
        height = max_dim
    return max(1, width), max(1, height)


# ---------------------------------------------------------------------------
# Rasterizers
# ---------------------------------------------------------------------------

class BaseRasterizer(ABC):
    """Host capability that draws an image handle onto an RGBA surface."""

    def __init__(self) -> None:
        self._surface_lock = threading.Lock()

    @abstractmethod
    def natural_size(self, image: Any) -> Tuple[int, int]:
        """Return the image's natural ``(width, height)``."""

    @abstractmethod
    def _draw(self, image: Any, width: int, height: int) -> np.ndarray:
        """Draw *image* scaled to ``width x height``; return ``(H, W, 4)`` uint8."""

    @contextmanager
    def surface(self) -> Iterator[None]:
        """Exclusive access to the drawing surface for one draw."""
        with self._surface_lock:
            yield

    def rasterize(self, image: Any, width: int, height: int) -> np.ndarray:
        with self.surface():
            try:
                rgba = self._draw(image, width, height)
            except (OSError, MemoryError, cv2.error) as exc:
                raise RenderingContextUnavailable(
                    f"Could not draw image onto a {width}x{height} surface: {exc}"
                ) from exc

        if rgba is None or rgba.shape != (height, width, 4):
            got = None if rgba is None else rgba.shape
            raise RenderingContextUnavailable(
                f"Surface returned {got}, expected {(height, width, 4)}"
            )
        return rgba.astype(np.uint8, copy=False)


class PILRasterizer(BaseRasterizer):
    """Rasterize paths, file objects or ``PIL.Image`` instances with Pillow."""

    def _open(self, image: Any) -> Image.Image:
        if isinstance(image, Image.Image):
            return ImageOps.exif_transpose(image)
        if hasattr(image, "seek"):
            image.seek(0)     # file objects are opened once per call
        return ImageOps.exif_transpose(Image.open(image))

    def natural_size(self, image: Any) -> Tuple[int, int]:
        return self._open(image).size

    def _draw(self, image: Any, width: int, height: int) -> np.ndarray:
        canvas = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        scaled = self._open(image).convert("RGBA").resize(
            (width, height), Image.Resampling.BILINEAR
        )
        canvas.paste(scaled, (0, 0))
        return np.array(canvas, dtype=np.uint8)


class ArrayRasterizer(BaseRasterizer):
    """Rasterize in-memory numpy frames with OpenCV.

    Args:
        channel_order: "RGB" (default) or "BGR", the order of 3/4-channel input.
    """

    _CONVERSIONS = {
        ("RGB", 3): cv2.COLOR_RGB2RGBA,
        ("BGR", 3): cv2.COLOR_BGR2RGBA,
        ("BGR", 4): cv2.COLOR_BGRA2RGBA,
    }

    def __init__(self, channel_order: str = "RGB") -> None:
        super().__init__()
        if channel_order not in ("RGB", "BGR"):
            raise ValueError(f"Unsupported channel order '{channel_order}'")
        self.channel_order = channel_order

    def _validate(self, image: Any) -> np.ndarray:
        arr = np.asarray(image)
        if arr.dtype != np.uint8:
            raise ValueError(f"Expected uint8 frame, got {arr.dtype}")
        if arr.ndim == 2 or (arr.ndim == 3 and arr.shape[2] in (3, 4)):
            return arr
        raise ValueError(f"Unsupported frame shape {arr.shape}")

    def natural_size(self, image: Any) -> Tuple[int, int]:
        arr = self._validate(image)
        return int(arr.shape[1]), int(arr.shape[0])

    def _to_rgba(self, arr: np.ndarray) -> np.ndarray:
        if arr.ndim == 2:
            return cv2.cvtColor(arr, cv2.COLOR_GRAY2RGBA)
        code = self._CONVERSIONS.get((self.channel_order, arr.shape[2]))
        if code is None:
            return arr.copy()
        return cv2.cvtColor(arr, code)

    def _draw(self, image: Any, width: int, height: int) -> np.ndarray:
        rgba = self._to_rgba(self._validate(image))
        return cv2.resize(rgba, (width, height), interpolation=cv2.INTER_LINEAR)


# ---------------------------------------------------------------------------
# Preprocessor
# ---------------------------------------------------------------------------

class ImagePreprocessor:
    """Decode + downscale an image handle into a PixelBuffer."""

    def __init__(self, rasterizer: BaseRasterizer | None = None, max_dimension: int = MAX_DIMENSION):
        self.rasterizer = rasterizer if rasterizer is not None else PILRasterizer()
        self.max_dimension = int(max_dimension)

    def preprocess(self, image: Any) -> PixelBuffer:
        natural_w, natural_h = self.rasterizer.natural_size(image)
        width, height = target_size(natural_w, natural_h, self.max_dimension)
        logger.debug("Rasterizing %dx%d -> %dx%d", natural_w, natural_h, width, height)

        rgba = self.rasterizer.rasterize(image, width, height)
        return PixelBuffer.from_rgba(rgba)
