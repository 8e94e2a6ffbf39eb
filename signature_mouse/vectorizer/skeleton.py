"""Zhang-Suen thinning of a boolean ink mask to a 1-pixel skeleton.

Neighbour naming (clockwise from north, image rows grow downward):

    P9 P2 P3
    P8 P1 P4
    P7 P6 P5

A pixel P1 is removed in a sub-pass when
    - 2 <= B(P1) <= 6, B = number of ink neighbours
    - A(P1) == 1, A = number of 0→1 transitions in P2, P3, ..., P9, P2
    - sub-pass 1: P2·P4·P6 == 0 and P4·P6·P8 == 0
    - sub-pass 2: P2·P4·P8 == 0 and P2·P6·P8 == 0

Each sub-pass evaluates every pixel against the same snapshot and removes
the marked pixels together. Only interior pixels are examined, so pixels on
the image border are never removed.
"""

import logging
from typing import Optional

import numpy as np

logger = logging.getLogger(__name__)


def _neighbors(img: np.ndarray):
    """P2..P9 for every interior pixel, each shaped (H-2, W-2)."""
    return (
        img[:-2, 1:-1],   # P2  N
        img[:-2, 2:],     # P3  NE
        img[1:-1, 2:],    # P4  E
        img[2:, 2:],      # P5  SE
        img[2:, 1:-1],    # P6  S
        img[2:, :-2],     # P7  SW
        img[1:-1, :-2],   # P8  W
        img[:-2, :-2],    # P9  NW
    )


def _subpass(img: np.ndarray, first: bool) -> int:
    """Run one sub-pass in place on a uint8 image; return pixels removed."""
    p2, p3, p4, p5, p6, p7, p8, p9 = _neighbors(img)
    ring = (p2, p3, p4, p5, p6, p7, p8, p9, p2)

    b = p2 + p3 + p4 + p5 + p6 + p7 + p8 + p9
    a = sum(((ring[i] == 0) & (ring[i + 1] == 1)).astype(np.uint8) for i in range(8))

    if first:
        corner = (p2 * p4 * p6 == 0) & (p4 * p6 * p8 == 0)
    else:
        corner = (p2 * p4 * p8 == 0) & (p2 * p6 * p8 == 0)

    remove = (img[1:-1, 1:-1] == 1) & (b >= 2) & (b <= 6) & (a == 1) & corner
    n = int(np.count_nonzero(remove))
    if n:
        img[1:-1, 1:-1][remove] = 0
    return n


def zhang_suen_thin(mask: np.ndarray, max_iterations: Optional[int] = None) -> np.ndarray:
    """Thin a boolean mask with the Zhang-Suen algorithm.

    Parameters
    ----------
    mask : np.ndarray
        Boolean ink mask, shape (H, W); not modified
    max_iterations : int, optional
        Stop after this many full iterations (both sub-passes); None or
        values <= 0 run until a full iteration removes nothing

    Returns
    -------
    np.ndarray
        Boolean skeleton, shape (H, W)
    """
    img = np.asarray(mask, dtype=bool).astype(np.uint8)
    h, w = img.shape
    if h < 3 or w < 3:
        return img.astype(bool)

    iterations = 0
    while True:
        removed = _subpass(img, first=True)
        removed += _subpass(img, first=False)
        iterations += 1
        if removed == 0:
            break
        if max_iterations is not None and 0 < max_iterations <= iterations:
            break

    logger.debug(f"Thinning finished after {iterations} iteration(s): {int(img.sum())} skeleton px")
    return img.astype(bool)
