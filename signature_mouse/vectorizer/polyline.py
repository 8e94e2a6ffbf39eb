"""Polyline refinement: simplify, resample, smooth and order strokes.

All functions take and return (N, 2) float64 arrays of (x, y) and never
modify their inputs.
"""

import logging
from typing import List, Sequence

import numpy as np

from .. import defaults
from ..utils.geometry import as_points

logger = logging.getLogger(__name__)


def _perpendicular_distances(points: np.ndarray, start: np.ndarray, end: np.ndarray) -> np.ndarray:
    """Distance of each point to the infinite line through start and end.

    Falls back to the distance from ``start`` when the chord is shorter
    than the degenerate-chord tolerance on both axes.
    """
    dx, dy = end - start
    rel = points - start
    if abs(dx) < defaults.RDP_DEGENERATE_CHORD and abs(dy) < defaults.RDP_DEGENERATE_CHORD:
        return np.hypot(rel[:, 0], rel[:, 1])
    t = (rel[:, 0] * dx + rel[:, 1] * dy) / (dx * dx + dy * dy)
    return np.hypot(rel[:, 0] - t * dx, rel[:, 1] - t * dy)


def simplify_rdp(points, epsilon: float) -> np.ndarray:
    """Ramer-Douglas-Peucker simplification (iterative, explicit stack).

    Parameters
    ----------
    points : array-like
        Polyline, shape (N, 2)
    epsilon : float
        Keep a vertex only if it lies more than this far from its chord

    Returns
    -------
    np.ndarray
        Simplified polyline; a copy of the input for fewer than 3 points or
        epsilon <= 0. Among equally distant vertices the first one splits.
    """
    pts = as_points(points)
    n = len(pts)
    if n < 3 or epsilon <= 0:
        return pts.copy()

    keep = np.zeros(n, dtype=bool)
    keep[0] = keep[-1] = True
    stack = [(0, n - 1)]
    while stack:
        lo, hi = stack.pop()
        if hi - lo < 2:
            continue
        d = _perpendicular_distances(pts[lo + 1:hi], pts[lo], pts[hi])
        i = int(np.argmax(d))
        if d[i] > epsilon:
            split = lo + 1 + i
            keep[split] = True
            stack.append((split, hi))
            stack.append((lo, split))

    return pts[keep].copy()


def resample(points, spacing: float) -> np.ndarray:
    """Resample at fixed arc-length ``spacing`` with linear interpolation.

    The first input point is always the first output point. The last input
    point is appended when the last sample misses it by more than 0.01.
    Fewer than 2 points or non-positive spacing returns a copy.
    """
    pts = as_points(points)
    if len(pts) < 2 or spacing <= 0:
        return pts.copy()

    out = [pts[0]]
    remaining = spacing
    for i in range(1, len(pts)):
        prev = pts[i - 1]
        cur = pts[i]
        seg = float(np.hypot(*(cur - prev)))
        while seg >= remaining:
            t = remaining / seg
            prev = prev + (cur - prev) * t
            out.append(prev)
            seg = float(np.hypot(*(cur - prev)))
            remaining = spacing
        remaining -= seg

    if np.hypot(*(out[-1] - pts[-1])) > defaults.RESAMPLE_END_TOLERANCE:
        out.append(pts[-1])
    return np.array(out, dtype=np.float64)


def smooth_chaikin(points, iterations: int, preserve_endpoints: bool = True) -> np.ndarray:
    """Chaikin corner cutting.

    Each iteration replaces every edge (p0, p1) with the points at 25 % and
    75 % along it. With ``preserve_endpoints`` the first and last points are
    kept exactly. Fewer than 3 points or ``iterations <= 0`` returns a copy.
    """
    pts = as_points(points)
    if iterations <= 0 or len(pts) < 3:
        return pts.copy()

    cur = pts
    for _ in range(iterations):
        p0, p1 = cur[:-1], cur[1:]
        q = 0.75 * p0 + 0.25 * p1
        r = 0.25 * p0 + 0.75 * p1
        cut = np.empty((2 * len(p0), 2), dtype=np.float64)
        cut[0::2] = q
        cut[1::2] = r
        if preserve_endpoints:
            # First q becomes the original start, last r the original end
            cut[0] = cur[0]
            cut[-1] = cur[-1]
        cur = cut
    return cur


def order_strokes(strokes: Sequence[np.ndarray]) -> List[np.ndarray]:
    """Nearest-neighbour drawing order.

    Starts with the stroke holding the smallest x (first such stroke on
    ties), then repeatedly appends the remaining stroke whose start or end
    is closest to the last emitted point, reversed when its end is closer.
    Starts are compared before ends and only a strictly smaller distance
    replaces the current best.
    """
    remaining = [as_points(s) for s in strokes]
    if not remaining:
        return []

    start_index = 0
    best_min_x = np.inf
    for i, stroke in enumerate(remaining):
        if len(stroke) == 0:
            continue
        min_x = stroke[:, 0].min()
        if min_x < best_min_x:
            best_min_x, start_index = min_x, i

    ordered = [remaining.pop(start_index).copy()]
    current_end = ordered[-1][-1] if len(ordered[-1]) else np.zeros(2)

    while remaining:
        best_index = 0
        reverse = False
        best_dist = np.inf
        for i, stroke in enumerate(remaining):
            if len(stroke) == 0:
                continue
            d_start = float(np.hypot(*(stroke[0] - current_end)))
            d_end = float(np.hypot(*(stroke[-1] - current_end)))
            if d_start < best_dist:
                best_dist, best_index, reverse = d_start, i, False
            if d_end < best_dist:
                best_dist, best_index, reverse = d_end, i, True

        nxt = remaining.pop(best_index)
        nxt = nxt[::-1].copy() if reverse else nxt.copy()
        ordered.append(nxt)
        if len(nxt):
            current_end = nxt[-1]

    return ordered


def refine_strokes(
    strokes: Sequence[np.ndarray],
    simplify_epsilon: float,
    resample_spacing: float,
    smooth_iterations: int = 0,
) -> List[np.ndarray]:
    """Simplify → resample → (smooth → resample) each stroke, then order them.

    Strokes that end up empty are dropped.
    """
    refined = []
    for stroke in strokes:
        s = simplify_rdp(stroke, simplify_epsilon)
        s = resample(s, resample_spacing)
        if smooth_iterations > 0:
            s = smooth_chaikin(s, smooth_iterations, preserve_endpoints=True)
            s = resample(s, resample_spacing)
        if len(s) > 0:
            refined.append(s)

    ordered = order_strokes(refined)
    logger.debug(
        f"Refined {len(strokes)} stroke(s) -> {len(ordered)}, "
        f"{sum(len(s) for s in ordered)} points"
    )
    return ordered
