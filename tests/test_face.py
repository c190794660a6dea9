"""Tests for the skin-tone scan and the facial symmetry scorer."""

import numpy as np

from heuristics.skin import detect_face_region, skin_mask
from heuristics.symmetry import analyze_facial_symmetry
from heuristics.utils import Category, Landmark, PixelBuffer
from pipeline.aggregator import NO_FACE_FACTOR, ScoreAggregator
from pipeline.analyzer import DeepfakeAnalyzer

SKIN = (200, 120, 90)


def _buffer(rgb: np.ndarray) -> PixelBuffer:
    h, w = rgb.shape[:2]
    alpha = np.full((h, w, 1), 255, dtype=np.uint8)
    return PixelBuffer.from_rgba(np.concatenate([rgb.astype(np.uint8), alpha], axis=2))


def _solid(w: int, h: int, color) -> np.ndarray:
    arr = np.zeros((h, w, 3), dtype=np.uint8)
    arr[:] = color
    return arr


# ---------------------------------------------------------------------------
# Skin detection
# ---------------------------------------------------------------------------

def test_skin_rule():
    px = np.array([
        SKIN,              # skin
        (90, 60, 40),      # R too low
        (120, 110, 50),    # |R-G| too small
        (120, 60, 110),    # R-B too small
        (200, 120, 15),    # B too low
    ], dtype=np.uint8)
    assert skin_mask(px).tolist() == [True, False, False, False, False]


def test_no_skin_means_no_face():
    face = detect_face_region(_buffer(_solid(100, 100, (0, 0, 0))))
    assert face.found is False
    assert face.landmarks == []
    assert face.skin_samples == 0


def test_too_few_skin_samples_means_no_face():
    arr = _solid(100, 100, (0, 0, 0))
    arr[0:40, 0:20] = SKIN          # 8 rows x 4 cols of grid samples = 32
    face = detect_face_region(_buffer(arr))
    assert face.skin_samples == 32
    assert face.found is False
    assert face.landmarks == []


def test_skin_filled_image_yields_landmarks_around_centroid():
    face = detect_face_region(_buffer(_solid(100, 100, SKIN)))

    # 20x20 grid samples, centroid (47.5, 47.5), quarter size 25 -> x,y in 25..70
    assert face.skin_samples == 400
    assert face.found is True
    assert len(face.landmarks) == 100
    assert face.landmarks[0] == Landmark(25, 25)
    assert all(25 <= p.x <= 70 and 25 <= p.y <= 70 for p in face.landmarks)


def test_landmarks_are_capped_in_scan_order():
    face = detect_face_region(_buffer(_solid(200, 200, SKIN)))
    assert len(face.landmarks) == 100
    ys = [p.y for p in face.landmarks]
    assert ys == sorted(ys)


def test_enough_skin_but_scattered_blobs_means_no_face():
    arr = _solid(200, 200, (0, 0, 0))
    arr[0:50, 0:30] = SKIN            # 10 x 6 grid samples
    arr[150:200, 170:200] = SKIN      # 10 x 6 grid samples
    buf = _buffer(arr)

    # centroid (97.5, 97.5) sits between the blobs, quarter size 50
    face = detect_face_region(buf)
    assert face.skin_samples == 120
    assert face.skin_samples >= 50
    assert face.found is False
    assert face.landmarks == []

    result = DeepfakeAnalyzer(aggregator=ScoreAggregator(jitter_amplitude=0)).score_buffer(buf)
    assert result.factors[0] == NO_FACE_FACTOR


def _landmark_threshold_image(with_center: bool) -> np.ndarray:
    """Skin grid points symmetric about (95, 95); 30 fall near the centroid."""
    arr = _solid(200, 200, (0, 0, 0))
    points = [(x, 0) for x in range(0, 100, 5)] + [(x, 190) for x in range(95, 195, 5)]
    for i in range(1, 10):
        points += [(95 + 5 * i, 95), (95 - 5 * i, 95)]
    for i in range(6):
        points += [(95 + 5 * i, 100), (95 - 5 * i, 90)]
    if with_center:
        points.append((95, 95))
    for x, y in points:
        arr[y, x] = SKIN
    return arr


def test_thirty_landmarks_is_not_a_face():
    face = detect_face_region(_buffer(_landmark_threshold_image(with_center=False)))
    assert face.skin_samples == 70
    assert len(face.landmarks) == 30
    assert face.found is False


def test_thirty_one_landmarks_is_a_face():
    face = detect_face_region(_buffer(_landmark_threshold_image(with_center=True)))
    assert face.skin_samples == 71
    assert len(face.landmarks) == 31
    assert face.found is True


# ---------------------------------------------------------------------------
# Symmetry
# ---------------------------------------------------------------------------

def _mirrored_pairs(n: int = 10):
    pts = []
    for i in range(n):
        pts.append(Landmark(30, 20 * i))
        pts.append(Landmark(70, 20 * i))
    return pts


def test_too_few_landmarks_scores_neutral():
    f = analyze_facial_symmetry([Landmark(i, i) for i in range(9)])
    assert f.score == 50
    assert f.category is Category.FACIAL
    assert "Insufficient" in f.description


def test_mirrored_landmarks_score_zero():
    f = analyze_facial_symmetry(_mirrored_pairs())
    assert f.score == 0
    assert f.description == "Natural facial symmetry patterns observed"


def test_minor_asymmetry_band():
    # three unmatched points on each side, midline stays at x=50
    extra = [Landmark(0, 5), Landmark(100, 45),
             Landmark(0, 85), Landmark(100, 125),
             Landmark(0, 165), Landmark(100, 205)]
    f = analyze_facial_symmetry(_mirrored_pairs() + extra)
    assert f.score == 36          # 6 unmatched * 2 * 3
    assert f.description.startswith("Minor symmetry")


def test_fully_unmatched_landmarks_are_capped():
    left = [Landmark(0, 20 * i) for i in range(10)]
    right = [Landmark(100, 20 * i + 10) for i in range(10)]
    f = analyze_facial_symmetry(left + right)
    assert f.score == 100
    assert f.description.startswith("Unusual facial asymmetry")


def test_points_near_midline_are_never_asymmetric():
    pts = [Landmark(50 + (i % 2) * 4, 30 * i) for i in range(12)]
    assert analyze_facial_symmetry(pts).score == 0
