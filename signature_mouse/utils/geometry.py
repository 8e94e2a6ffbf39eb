"""Small polyline helpers shared by the refiner, the path model and replay.

Provides:
    - as_points: coerce a point sequence into an (N, 2) float64 array
    - polyline_length / segment_lengths: Euclidean arc length
    - polyline_bbox / strokes_bbox: axis-aligned bounds

All coordinates are pixels in the image frame (top-left origin, +Y down).
"""

from typing import Iterable, Sequence, Tuple

import numpy as np


def as_points(points) -> np.ndarray:
    """Return ``points`` as a float64 array of shape (N, 2).

    Accepts numpy arrays, lists of tuples and empty sequences.
    """
    arr = np.asarray(points, dtype=np.float64)
    if arr.size == 0:
        return np.zeros((0, 2), dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f"Expected (N, 2) points, got shape {arr.shape}")
    return arr


def segment_lengths(points: np.ndarray) -> np.ndarray:
    """Lengths of the N-1 segments of an (N, 2) polyline."""
    if len(points) < 2:
        return np.zeros(0, dtype=np.float64)
    return np.hypot(*(points[1:] - points[:-1]).T)


def polyline_length(points: np.ndarray) -> float:
    """Total length of a polyline; 0.0 for fewer than two points."""
    return float(segment_lengths(points).sum())


def polyline_bbox(points: np.ndarray) -> Tuple[float, float, float, float]:
    """Compute axis-aligned bounding box of polyline.

    Returns
    -------
    Tuple[float, float, float, float]
        (xmin, ymin, xmax, ymax); (0, 0, 0, 0) when there are no points
    """
    if len(points) == 0:
        return (0.0, 0.0, 0.0, 0.0)
    xmin, ymin = points.min(axis=0)
    xmax, ymax = points.max(axis=0)
    return (float(xmin), float(ymin), float(xmax), float(ymax))


def strokes_bbox(strokes: Iterable[np.ndarray]) -> Tuple[float, float, float, float]:
    """Bounding box over several polylines, ignoring empty ones."""
    non_empty = [s for s in strokes if len(s) > 0]
    if not non_empty:
        return (0.0, 0.0, 0.0, 0.0)
    return polyline_bbox(np.concatenate(non_empty, axis=0))


def distance(p0: Sequence[float], p1: Sequence[float]) -> float:
    return float(np.hypot(p1[0] - p0[0], p1[1] - p0[1]))
