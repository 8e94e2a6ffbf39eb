"""Skeleton → one continuous polyline per connected skeleton piece.

Each piece is walked depth-first over its pixel graph (8-connected), with
every undirected pixel-to-pixel edge used at most once going forward. At a
junction the walk prefers the straightest continuation (largest dot product
with the incoming direction), then the neighbour with the lower degree, then
neighbour order. Dead ends backtrack along an explicit stack; positions
visited while backtracking are emitted when the walk later moves forward
again, so the pen retraces the branch instead of lifting. The final retrace
after the last new edge is not emitted.
"""

import logging
from typing import List, Optional, Set, Tuple

import numpy as np
from scipy import ndimage

from .morphology import neighbor_count

logger = logging.getLogger(__name__)

# (dx, dy): NW, N, NE, W, E, SW, S, SE
NEIGHBOR_OFFSETS = (
    (-1, -1), (0, -1), (1, -1),
    (-1, 0),           (1, 0),
    (-1, 1),  (0, 1),  (1, 1),
)

Pixel = Tuple[int, int]  # (x, y)


def degree_map(skel: np.ndarray) -> np.ndarray:
    """Number of 8-connected skeleton neighbours of each skeleton pixel (0 elsewhere)."""
    skel = np.asarray(skel, dtype=bool)
    return neighbor_count(skel) * skel


def _edge_key(width: int, a: Pixel, b: Pixel) -> Tuple[int, int]:
    ia = a[1] * width + a[0]
    ib = b[1] * width + b[0]
    return (ia, ib) if ia < ib else (ib, ia)


def choose_start(xs: np.ndarray, ys: np.ndarray, degrees: np.ndarray) -> Pixel:
    """Smallest (x, y) endpoint (degree 1), else smallest (x, y) pixel."""
    endpoints = degrees == 1
    if np.any(endpoints):
        xs, ys = xs[endpoints], ys[endpoints]
    i = np.lexsort((ys, xs))[0]
    return int(xs[i]), int(ys[i])


def _select_next(
    cur: Pixel,
    prev: Optional[Pixel],
    skel: List[List[bool]],
    degree: List[List[int]],
    visited: Set[Tuple[int, int]],
    width: int,
    height: int,
) -> Optional[Pixel]:
    x, y = cur
    if prev is None:
        dx1 = dy1 = 0
    else:
        dx1, dy1 = x - prev[0], y - prev[1]

    best = None
    best_dot = 0
    best_degree = 0
    for dx, dy in NEIGHBOR_OFFSETS:
        nx, ny = x + dx, y + dy
        if nx < 0 or ny < 0 or nx >= width or ny >= height or not skel[ny][nx]:
            continue
        if _edge_key(width, cur, (nx, ny)) in visited:
            continue
        dot = dx1 * dx + dy1 * dy
        deg = degree[ny][nx]
        if best is None or dot > best_dot or (dot == best_dot and deg < best_degree):
            best, best_dot, best_degree = (nx, ny), dot, deg
    return best


def walk_component(
    skel: List[List[bool]],
    degree: List[List[int]],
    start: Pixel,
    width: int,
    height: int,
) -> List[Pixel]:
    """Depth-first walk of one skeleton piece starting at ``start``.

    Returns the visited positions in order. Consecutive positions are always
    8-neighbours, and together they cover every edge of the piece.
    """
    visited: Set[Tuple[int, int]] = set()
    stack: List[Pixel] = []
    points: List[Pixel] = [start]
    backtrack: List[Pixel] = []

    cur, prev = start, None
    while True:
        nxt = _select_next(cur, prev, skel, degree, visited, width, height)
        if nxt is not None:
            visited.add(_edge_key(width, cur, nxt))
            stack.append(cur)
            points.extend(backtrack)
            backtrack.clear()
            prev, cur = cur, nxt
            points.append(cur)
            continue

        if not stack:
            break
        prev, cur = cur, stack.pop()
        backtrack.append(cur)

    return points


def trace_skeleton(skel: np.ndarray) -> List[np.ndarray]:
    """Trace every connected piece of a skeleton into a polyline.

    Parameters
    ----------
    skel : np.ndarray
        Boolean skeleton, shape (H, W)

    Returns
    -------
    List[np.ndarray]
        One (N, 2) float64 array of (x, y) pixel positions per piece, in
        raster order of each piece's first pixel. Isolated pixels give a
        single-point polyline.
    """
    skel = np.asarray(skel, dtype=bool)
    h, w = skel.shape
    labels, n = ndimage.label(skel, structure=np.ones((3, 3), dtype=bool))
    if n == 0:
        return []

    degree = degree_map(skel)
    ys, xs = np.nonzero(labels)
    piece = labels[ys, xs]
    order = np.argsort(piece, kind='stable')
    ys, xs, piece = ys[order], xs[order], piece[order]
    bounds = np.searchsorted(piece, np.arange(1, n + 2))

    skel_rows = skel.tolist()
    degree_rows = degree.tolist()

    polylines = []
    for i in range(n):
        sl = slice(bounds[i], bounds[i + 1])
        start = choose_start(xs[sl], ys[sl], degree[ys[sl], xs[sl]])
        points = walk_component(skel_rows, degree_rows, start, w, h)
        polylines.append(np.asarray(points, dtype=np.float64))

    logger.debug(
        f"Traced {n} skeleton piece(s), {sum(len(p) for p in polylines)} points total"
    )
    return polylines
