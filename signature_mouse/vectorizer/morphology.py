"""Mask cleanup between binarization and signature isolation.

Provides:
    - despeckle: one pass dropping isolated ink and filling pinholes
    - remove_small_components: drop components below a size threshold,
      always keeping the largest one(s)
    - close_mask: disk dilation followed by erosion (gap bridging)

Every function returns a new boolean array; inputs are left untouched.
"""

import logging
from typing import Optional

import cv2
import numpy as np
from scipy import ndimage
from skimage.morphology import disk

from .. import defaults
from .regions import label_components

logger = logging.getLogger(__name__)

_RING = np.array([[1, 1, 1],
                  [1, 0, 1],
                  [1, 1, 1]], dtype=np.float32)


def neighbor_count(mask: np.ndarray) -> np.ndarray:
    """Number of 8-connected ink neighbours per pixel (outside counts as empty)."""
    counts = cv2.filter2D(mask.astype(np.float32), -1, _RING, borderType=cv2.BORDER_CONSTANT)
    return np.rint(counts).astype(np.int32)


def despeckle(mask: np.ndarray) -> np.ndarray:
    """Single despeckle pass over interior pixels.

    Ink pixels with fewer than 2 ink neighbours are dropped; background
    pixels with at least 6 ink neighbours become ink. Border pixels are
    copied unchanged. Decisions use the input mask only (no cascading).
    """
    mask = np.asarray(mask, dtype=bool)
    out = mask.copy()
    h, w = mask.shape
    if h < 3 or w < 3:
        return out

    counts = neighbor_count(mask)[1:-1, 1:-1]
    inner = mask[1:-1, 1:-1]
    out[1:-1, 1:-1] = np.where(
        inner,
        counts >= defaults.DESPECKLE_MIN_NEIGHBORS,
        counts >= defaults.DESPECKLE_FILL_NEIGHBORS,
    )
    changed = int(np.count_nonzero(out != mask))
    logger.debug(f"Despeckle changed {changed} px")
    return out


def remove_small_components(mask: np.ndarray, min_size: Optional[int] = None) -> np.ndarray:
    """Drop 8-connected components smaller than ``min_size``.

    Parameters
    ----------
    mask : np.ndarray
        Boolean ink mask, shape (H, W)
    min_size : int, optional
        Size threshold in pixels; defaults to
        ``max(10, int(0.002 * total_ink))``

    Returns
    -------
    np.ndarray
        Mask holding the surviving components. Components whose size equals
        the largest component size always survive.
    """
    mask = np.asarray(mask, dtype=bool)
    labels, components = label_components(mask)
    if not components:
        return mask.copy()

    total_ink = sum(c.count for c in components)
    if min_size is None:
        min_size = max(defaults.MIN_COMPONENT_FLOOR, int(total_ink * defaults.MIN_COMPONENT_FRACTION))
    largest = max(c.count for c in components)

    keep = np.zeros(len(components) + 1, dtype=bool)
    for c in components:
        keep[c.label] = c.count >= min_size or c.count == largest

    removed = len(components) - int(keep.sum())
    logger.debug(f"Removed {removed}/{len(components)} components smaller than {min_size}px")
    return keep[labels]


def close_mask(mask: np.ndarray, radius: int) -> np.ndarray:
    """Morphological closing with a disk of ``radius`` (no-op for radius <= 0).

    The disk holds every offset with ``dx² + dy² <= radius²``. Pixels outside
    the image count as background for both steps, so erosion removes ink
    whose disk would reach past the edge.
    """
    mask = np.asarray(mask, dtype=bool)
    if radius <= 0:
        return mask.copy()

    selem = disk(radius).astype(bool)
    dilated = ndimage.binary_dilation(mask, structure=selem, border_value=0)
    closed = ndimage.binary_erosion(dilated, structure=selem, border_value=0)
    logger.debug(f"Closing r={radius}: {int(mask.sum())} -> {int(closed.sum())} ink px")
    return closed
