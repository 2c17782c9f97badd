"""
Feature extraction from hand landmarks.

All functions are pure and fail soft: missing or non-finite coordinates are
read as 0 and never propagate NaN/Inf into the feature vectors.
"""
import math
from collections.abc import Mapping
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np


# Landmark indices
WRIST = 0
THUMB_TIP = 4
INDEX_TIP = 8
FINGER_TIPS = [4, 8, 12, 16, 20]

NUM_LANDMARKS = 21
HEURISTIC_FEATURE_LENGTH = 5
MODEL_FEATURE_LENGTH = NUM_LANDMARKS * 3 + HEURISTIC_FEATURE_LENGTH

SCALE_FLOOR = 1e-6


def safe_value(value: Any) -> float:
    """Return value as a float, or 0.0 if it is missing or not finite."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def landmark_coords(point: Any) -> Tuple[float, float, float]:
    """
    Read (x, y, z) from a landmark-like object.

    Accepts objects with x/y/z attributes (Landmark, MediaPipe landmarks),
    mappings with "x"/"y"/"z" keys and (x, y[, z]) sequences.

    Args:
        point: Landmark-like value, may be None

    Returns:
        (x, y, z) with every missing or non-finite coordinate set to 0
    """
    if point is None:
        return (0.0, 0.0, 0.0)
    if isinstance(point, Mapping):
        return (safe_value(point.get("x")), safe_value(point.get("y")), safe_value(point.get("z")))
    if isinstance(point, (list, tuple, np.ndarray)):
        coords = [safe_value(point[i]) if i < len(point) else 0.0 for i in range(3)]
        return (coords[0], coords[1], coords[2])
    return (
        safe_value(getattr(point, "x", None)),
        safe_value(getattr(point, "y", None)),
        safe_value(getattr(point, "z", None)),
    )


def flatten_landmarks(landmarks: Sequence[Any]) -> List[float]:
    """Flatten landmarks into [x0, y0, z0, x1, y1, z1, ...]."""
    flat: List[float] = []
    for point in landmarks:
        flat.extend(landmark_coords(point))
    return flat


def euclidean_distance(a: Any, b: Any) -> float:
    """
    Euclidean distance between two landmarks.

    Returns 0 if either landmark is missing.
    """
    if a is None or b is None:
        return 0.0
    ax, ay, az = landmark_coords(a)
    bx, by, bz = landmark_coords(b)
    return math.sqrt((ax - bx) ** 2 + (ay - by) ** 2 + (az - bz) ** 2)


def variance(values: Sequence[float]) -> float:
    """Population variance. Empty input gives 0."""
    if not values:
        return 0.0
    clean = [safe_value(v) for v in values]
    mean = sum(clean) / len(clean)
    return sum((v - mean) ** 2 for v in clean) / len(clean)


def _spread(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return max(values) - min(values)


def _landmark_at(landmarks: Sequence[Any], index: int) -> Optional[Any]:
    return landmarks[index] if index < len(landmarks) else None


def heuristic_features(landmarks: Sequence[Any]) -> np.ndarray:
    """
    Compute the 5 heuristic pose features.

    Args:
        landmarks: Hand observation of any length (may be empty)

    Returns:
        [average fingertip-to-wrist distance, horizontal fingertip spread,
         vertical fingertip spread, thumb-index distance, fingertip z variance]
    """
    if len(landmarks) == 0:
        return np.zeros(HEURISTIC_FEATURE_LENGTH)

    wrist = landmarks[WRIST]
    tips = [landmarks[i] for i in FINGER_TIPS if i < len(landmarks) and landmarks[i] is not None]
    tip_coords = [landmark_coords(p) for p in tips]

    average_tip_distance = sum(euclidean_distance(p, wrist) for p in tips) / max(len(tips), 1)
    horizontal_spread = _spread([c[0] for c in tip_coords])
    vertical_spread = _spread([c[1] for c in tip_coords])
    thumb_index_distance = euclidean_distance(
        _landmark_at(landmarks, THUMB_TIP), _landmark_at(landmarks, INDEX_TIP)
    )
    z_variance = variance([c[2] for c in tip_coords])

    return np.array([
        average_tip_distance,
        horizontal_spread,
        vertical_spread,
        thumb_index_distance,
        z_variance,
    ], dtype=np.float64)


def normalize_landmarks(landmarks: Sequence[Any]) -> np.ndarray:
    """
    Wrist-relative, scale-normalized coordinates of the first 21 landmarks.

    Each landmark has the wrist subtracted and is divided by the largest
    wrist distance. Absent landmarks contribute zeros.

    Returns:
        Flat array of 21 * 3 values
    """
    points = np.zeros((NUM_LANDMARKS, 3))
    present = min(len(landmarks), NUM_LANDMARKS)
    for i in range(present):
        points[i] = landmark_coords(landmarks[i])

    wrist = points[WRIST].copy()
    relative = points[:present] - wrist
    distances = np.sqrt((relative ** 2).sum(axis=1))
    scale = max(float(distances.max(initial=0.0)), SCALE_FLOOR)

    normalized = np.zeros((NUM_LANDMARKS, 3))
    normalized[:present] = relative / scale
    return normalized.reshape(-1)


def model_features(landmarks: Sequence[Any]) -> np.ndarray:
    """
    Build the input vector of the learned model.

    Args:
        landmarks: Hand observation of any length (may be empty)

    Returns:
        Array of length 68: 63 normalized coordinates then the 5 heuristic features
    """
    if len(landmarks) == 0:
        return np.zeros(MODEL_FEATURE_LENGTH)

    return np.concatenate([normalize_landmarks(landmarks), heuristic_features(landmarks)])
