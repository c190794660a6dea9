"""Tests for the texture, lighting and color-distribution scorers."""

import math

import numpy as np
import pytest

from heuristics.histogram import analyze_color_distribution, histogram_anomalies, luminance_histogram
from heuristics.lighting import analyze_lighting_consistency, lighting_stats, quadrant_means
from heuristics.texture import analyze_texture_patterns, texture_ratios
from heuristics.utils import Category, PixelBuffer, gray_rounded


def _buffer(rgb: np.ndarray) -> PixelBuffer:
    h, w = rgb.shape[:2]
    alpha = np.full((h, w, 1), 255, dtype=np.uint8)
    return PixelBuffer.from_rgba(np.concatenate([rgb.astype(np.uint8), alpha], axis=2))


def _gray_image(gray: np.ndarray) -> PixelBuffer:
    return _buffer(np.repeat(gray.astype(np.uint8)[..., None], 3, axis=2))


def _uniform(w: int = 64, h: int = 64, value: int = 128) -> PixelBuffer:
    return _gray_image(np.full((h, w), value))


# ---------------------------------------------------------------------------
# Texture
# ---------------------------------------------------------------------------

def test_texture_ratios_use_full_pixel_count():
    r = texture_ratios(_gray_image(np.array([[0, 40, 41, 41]])))
    assert r["edge_transitions"] == 1
    assert r["smooth_transitions"] == 2
    assert r["edge_ratio"] == pytest.approx(0.25)
    assert r["smooth_ratio"] == pytest.approx(0.5)


def test_texture_uses_unrounded_channel_mean():
    # grays 1/3 and 3: rounded they would differ by 3, unrounded by 2.67
    rgb = np.array([[[0, 0, 1], [0, 0, 9]]], dtype=np.uint8)
    assert texture_ratios(_buffer(rgb))["smooth_transitions"] == 1


def test_uniform_image_is_over_smoothed():
    f = analyze_texture_patterns(_uniform())
    assert f.score == 70          # +40 smooth, +30 edge ratio below 0.05
    assert f.score >= 40
    assert f.category is Category.TEXTURE
    assert f.description.startswith("Unusual texture")


def test_checkerboard_triggers_edge_penalty():
    # odd width so the step across each row wrap is an edge too
    ys, xs = np.mgrid[0:64, 0:63]
    buf = _gray_image((xs + ys) % 2 * 255)
    r = texture_ratios(buf)
    assert r["edge_transitions"] == 64 * 63 - 1
    assert r["smooth_transitions"] == 0
    assert r["edge_ratio"] > 0.4
    f = analyze_texture_patterns(buf)
    assert f.score == 50          # +20 over-sharpened, +30 edge ratio
    assert f.description.startswith("Minor texture")


def test_moderate_texture_scores_zero():
    # per period: 2 smooth steps, 2 in-between steps (10, 28), 1 edge (40 -> 0)
    pattern = np.array([0, 1, 2, 12, 40] * 12)
    buf = _gray_image(np.tile(pattern, (8, 1)))
    r = texture_ratios(buf)
    assert 0.2 <= r["smooth_ratio"] <= 0.7
    assert 0.05 <= r["edge_ratio"] <= 0.4
    assert analyze_texture_patterns(buf).score == 0


# ---------------------------------------------------------------------------
# Lighting
# ---------------------------------------------------------------------------

def _quadrants(tl, tr, bl, br, w=64, h=64) -> PixelBuffer:
    g = np.zeros((h, w))
    g[: h // 2, : w // 2] = tl
    g[: h // 2, w // 2:] = tr
    g[h // 2:, : w // 2] = bl
    g[h // 2:, w // 2:] = br
    return _gray_image(g)


def test_uniform_lighting_scores_zero():
    f = analyze_lighting_consistency(_uniform())
    assert f.score == 0
    assert f.category is Category.LIGHTING
    assert lighting_stats(_uniform())["variance"] == 0


def test_dark_top_bright_bottom_hits_both_penalties():
    buf = _quadrants(0, 0, 255, 255)
    s = lighting_stats(buf)
    assert s["max_diff"] == 255
    assert s["variance"] == pytest.approx(16256.25)
    f = analyze_lighting_consistency(buf)
    assert f.score == 70          # 40 + 30, the cap is never reached
    assert f.description.startswith("Inconsistent lighting")


def test_moderate_lighting_variation():
    f = analyze_lighting_consistency(_quadrants(100, 100, 160, 160))
    assert f.score == 35          # max diff 60 -> +20, variance 900 -> +15
    assert f.description == "Some lighting variations detected"


def test_odd_dimensions_split_at_fractional_midpoint():
    # width 3: x < 1.5 -> columns 0,1 are left; height 3: rows 0,1 are top
    g = np.array([
        [10, 10, 90],
        [10, 10, 90],
        [50, 50, 200],
    ])
    assert quadrant_means(_gray_image(g)) == [10.0, 90.0, 50.0, 200.0]


def test_single_row_buffer_has_empty_quadrants():
    buf = _gray_image(np.array([[0, 0, 255, 255]]))
    means = quadrant_means(buf)
    assert math.isnan(means[2]) and math.isnan(means[3])
    assert analyze_lighting_consistency(buf).score == 0


# ---------------------------------------------------------------------------
# Color distribution
# ---------------------------------------------------------------------------

def test_gray_levels_round_half_up():
    rgb = np.array([[[1, 1, 2], [1, 2, 2], [255, 255, 254]]], dtype=np.uint8)
    assert gray_rounded(_buffer(rgb)).tolist() == [1, 2, 255]


def test_uniform_image_has_one_spike_and_no_gaps():
    buf = _uniform(value=128)
    hist = luminance_histogram(buf)
    assert hist[128] == buf.pixel_count
    assert histogram_anomalies(hist, buf.pixel_count) == {"gaps": 0, "spikes": 1}
    f = analyze_color_distribution(buf)
    assert f.score == 3
    assert f.category is Category.TEXTURE
    assert f.description == "Natural color distribution pattern"


def test_isolated_empty_bin_counts_as_gap():
    g = np.tile(np.array([10, 12]), (16, 16))
    f = analyze_color_distribution(_gray_image(g))
    assert f.score == 5 + 2 * 3   # one gap at 11, spikes at 10 and 12


def test_comb_histogram_is_capped():
    values = np.arange(2, 102, 2)                 # 50 levels, every other bin
    g = np.tile(values, (20, 1))
    buf = _gray_image(g)
    a = histogram_anomalies(luminance_histogram(buf), buf.pixel_count)
    assert a["gaps"] == 49
    f = analyze_color_distribution(buf)
    assert f.score == 100
    assert f.description.startswith("Unnatural color histogram")


def test_edge_bins_are_not_scanned():
    # only bins 0 and 255 populated: nothing in 1..254 can be a gap or spike
    g = np.tile(np.array([0, 255]), (8, 8))
    assert analyze_color_distribution(_gray_image(g)).score == 0
