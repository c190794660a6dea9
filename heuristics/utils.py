"""
Shared types and helpers for the heuristic scorers.

Provides:
- PixelBuffer / Landmark / AnalysisFactor data classes
- Category enum (closed set of factor categories)
- Grayscale helpers operating on the flat RGBA buffer
- Half-up rounding and score-band description selection
- JSON sanitising / saving helpers used by the CLI
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Tuple, Union

import numpy as np


# ── Enums ────────────────────────────────────────────────────────────

class Category(str, Enum):
    """Analytical dimension a factor belongs to."""
    FACIAL = "facial"
    TEXTURE = "texture"
    LIGHTING = "lighting"
    METADATA = "metadata"


# ── Data classes ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class PixelBuffer:
    """Downscaled RGBA raster, row-major, 4 bytes per pixel."""
    width: int
    height: int
    data: np.ndarray                  # flat uint8, len == width * height * 4

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"PixelBuffer needs positive size, got {self.width}x{self.height}")
        data = np.ascontiguousarray(self.data, dtype=np.uint8).reshape(-1)
        if data.size != self.width * self.height * 4:
            raise ValueError(
                f"PixelBuffer data length {data.size} does not match "
                f"{self.width}x{self.height}x4"
            )
        if data.flags.writeable:
            data = data.copy()
            data.flags.writeable = False
        object.__setattr__(self, "data", data)

    @classmethod
    def from_rgba(cls, rgba: np.ndarray) -> "PixelBuffer":
        """Build from an (H, W, 4) uint8 array."""
        h, w = rgba.shape[:2]
        return cls(width=int(w), height=int(h), data=rgba.reshape(-1))

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def rgba(self) -> np.ndarray:
        """Read-only (H, W, 4) view."""
        return self.data.reshape(self.height, self.width, 4)


@dataclass(frozen=True)
class Landmark:
    x: int
    y: int


@dataclass(frozen=True)
class AnalysisFactor:
    """One independently computed suspicion score."""
    name: str
    score: int                        # [0, 100], higher = more suspicious
    description: str
    category: Category

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "score": self.score,
            "description": self.description,
            "category": self.category.value,
        }


# ── Pixel helpers ────────────────────────────────────────────────────

def channel_sums(buf: PixelBuffer) -> np.ndarray:
    """Per-pixel R+G+B as int64, shape (H*W,)."""
    px = buf.data.reshape(-1, 4)[:, :3].astype(np.int64)
    return px.sum(axis=1)


def gray_mean(buf: PixelBuffer) -> np.ndarray:
    """Per-pixel unrounded (R+G+B)/3 as float64, shape (H*W,)."""
    return channel_sums(buf).astype(np.float64) / 3.0


def gray_rounded(buf: PixelBuffer) -> np.ndarray:
    """Per-pixel round((R+G+B)/3), half-up, as int64 in [0, 255]."""
    return np.floor(gray_mean(buf) + 0.5).astype(np.int64)


# ── Scoring helpers ──────────────────────────────────────────────────

def round_half_up(x: float) -> int:
    """Round to nearest integer, ties towards +inf."""
    return int(math.floor(x + 0.5))


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def banded(score: float, bands: Tuple[Tuple[float, str], ...], default: str) -> str:
    """Return the text of the first ``(threshold, text)`` band with score > threshold."""
    for threshold, text in bands:
        if score > threshold:
            return text
    return default


# ── JSON helpers ─────────────────────────────────────────────────────

def ensure_dir(path: Union[str, Path]) -> Path:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def json_sanitize(obj: Any) -> Any:
    """Convert results and paths in a report dict to JSON-safe values."""
    if isinstance(obj, Path):
        return str(obj)
    if hasattr(obj, "to_dict"):
        return json_sanitize(obj.to_dict())
    if isinstance(obj, (list, tuple)):
        return [json_sanitize(x) for x in obj]
    if isinstance(obj, dict):
        return {str(k): json_sanitize(v) for k, v in obj.items()}
    return obj


def save_json(data: Dict[str, Any], out_path: Union[str, Path]) -> str:
    out_path = str(out_path)
    safe = json_sanitize(data)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(safe, f, ensure_ascii=False, indent=2)
    return out_path
