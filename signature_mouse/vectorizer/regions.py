"""Connected-component analysis and signature isolation.

Workflow:
    1. label_components: 8-connected labels in raster order, with pixel
       count, bounding box and border contact per component
    2. select_seed: score every component (size, centrality, middle band,
       border contact, density) and keep the best as the signature seed
    3. merge_fragments: grow a bounding group around the seed by absorbing
       components within a gap (Chebyshev box distance) until nothing changes
    4. crop_to_signature: crop to the group box plus a margin

An empty mask is returned uncropped with offset (0, 0).
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
from scipy import ndimage

from .. import defaults

logger = logging.getLogger(__name__)

# 8-connectivity
_STRUCTURE = np.ones((3, 3), dtype=bool)

BBox = Tuple[int, int, int, int]  # (min_x, min_y, max_x, max_y), inclusive


@dataclass(frozen=True)
class Component:
    """One 8-connected ink component.

    Attributes
    ----------
    label : int
        Label in the array returned by label_components (1-based)
    count : int
        Pixel count
    bbox : BBox
        Inclusive (min_x, min_y, max_x, max_y)
    touches_border : bool
        Any pixel lies on the first/last row or column
    """
    label: int
    count: int
    bbox: BBox
    touches_border: bool

    @property
    def width(self) -> int:
        return self.bbox[2] - self.bbox[0] + 1

    @property
    def height(self) -> int:
        return self.bbox[3] - self.bbox[1] + 1

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.bbox[0] + self.bbox[2]) / 2.0, (self.bbox[1] + self.bbox[3]) / 2.0)

    @property
    def density(self) -> float:
        return self.count / max(1, self.width * self.height)


@dataclass(frozen=True, eq=False)
class CropResult:
    """Cropped mask and the position of its (0, 0) pixel in the input."""
    mask: np.ndarray
    offset_x: int
    offset_y: int


# ============================================================================
# LABELING
# ============================================================================

def label_components(mask: np.ndarray) -> Tuple[np.ndarray, List[Component]]:
    """Label 8-connected ink components.

    Labels follow raster order of each component's first pixel (top row
    first, then left to right), so component order is deterministic.

    Parameters
    ----------
    mask : np.ndarray
        Boolean ink mask, shape (H, W)

    Returns
    -------
    labels : np.ndarray
        int32 label image, 0 = background
    components : List[Component]
        One entry per label, in label order
    """
    mask = np.asarray(mask, dtype=bool)
    h, w = mask.shape
    labels, n = ndimage.label(mask, structure=_STRUCTURE)
    if n == 0:
        return labels, []

    counts = np.bincount(labels.ravel(), minlength=n + 1)
    components = []
    for idx, slc in enumerate(ndimage.find_objects(labels), start=1):
        ys, xs = slc
        min_x, max_x = xs.start, xs.stop - 1
        min_y, max_y = ys.start, ys.stop - 1
        # Bbox on an edge implies a pixel on that edge
        touches = min_x == 0 or min_y == 0 or max_x == w - 1 or max_y == h - 1
        components.append(Component(
            label=idx,
            count=int(counts[idx]),
            bbox=(min_x, min_y, max_x, max_y),
            touches_border=bool(touches),
        ))
    return labels, components


# ============================================================================
# SEED SELECTION
# ============================================================================

def score_component(component: Component, width: int, height: int) -> float:
    """Signature-likeness score of a component in a width × height image.

    score = count × (0.4 + 0.6 × centrality) × middle × border × density_bonus
    """
    cx, cy = width / 2.0, height / 2.0
    max_dist = math.sqrt(cx * cx + cy * cy)
    comp_x, comp_y = component.center
    dist = math.hypot(comp_x - cx, comp_y - cy)
    centrality = 1.0 - min(1.0, dist / max_dist) if max_dist > 0 else 1.0

    lo, hi = defaults.MIDDLE_BAND
    in_middle = (width * lo < comp_x < width * hi) and (height * lo < comp_y < height * hi)
    middle = defaults.MIDDLE_BONUS if in_middle else defaults.OFF_MIDDLE_PENALTY
    border = defaults.BORDER_PENALTY if component.touches_border else 1.0
    density_bonus = float(np.clip(component.density * defaults.DENSITY_SCALE, *defaults.DENSITY_BONUS_RANGE))

    return (
        component.count
        * (defaults.CENTRALITY_BASE + defaults.CENTRALITY_WEIGHT * centrality)
        * middle
        * border
        * density_bonus
    )


def select_seed(components: List[Component], width: int, height: int) -> Optional[Component]:
    """Highest-scoring component; the earliest label wins ties."""
    best = None
    best_score = -math.inf
    for component in components:
        score = score_component(component, width, height)
        if score > best_score:
            best, best_score = component, score
    return best


# ============================================================================
# FRAGMENT MERGING
# ============================================================================

def box_distance(a: BBox, b: BBox) -> int:
    """Chebyshev gap between two inclusive boxes (0 when they overlap)."""
    dx = max(0, a[0] - b[2], b[0] - a[2])
    dy = max(0, a[1] - b[3], b[1] - a[3])
    return max(dx, dy)


def merge_gap(seed: Component, width: int, height: int) -> int:
    return max(
        defaults.MERGE_GAP_FLOOR,
        int(min(width, height) * defaults.MERGE_GAP_IMAGE_FRACTION),
        int(max(seed.width, seed.height) * defaults.MERGE_GAP_SEED_FRACTION),
    )


def merge_fragments(
    seed: Component,
    components: List[Component],
    width: int,
    height: int,
) -> Tuple[BBox, List[Component]]:
    """Grow a bounding group from the seed until no component is within the gap.

    Components touching the border are skipped unless the seed does.

    Returns
    -------
    bbox : BBox
        Inclusive group bounds
    members : List[Component]
        Seed first, then absorbed components in absorption order
    """
    gap = merge_gap(seed, width, height)
    allow_border = seed.touches_border
    group = seed.bbox
    members = [seed]
    pending = [c for c in components if c.label != seed.label]

    changed = True
    while changed:
        changed = False
        remaining = []
        for component in pending:
            if (not allow_border and component.touches_border) or box_distance(component.bbox, group) > gap:
                remaining.append(component)
                continue
            group = (
                min(group[0], component.bbox[0]),
                min(group[1], component.bbox[1]),
                max(group[2], component.bbox[2]),
                max(group[3], component.bbox[3]),
            )
            members.append(component)
            changed = True
        pending = remaining

    logger.debug(f"Merged {len(members) - 1} fragment(s) into seed {seed.label} (gap={gap}px)")
    return group, members


# ============================================================================
# CROP
# ============================================================================

def crop_margin(width: int, height: int) -> int:
    return max(defaults.CROP_MARGIN_FLOOR, int(min(width, height) * defaults.CROP_MARGIN_FRACTION))


def crop_to_signature(mask: np.ndarray) -> CropResult:
    """Isolate the signature: seed selection, fragment merging, padded crop.

    Parameters
    ----------
    mask : np.ndarray
        Boolean ink mask, shape (H, W)

    Returns
    -------
    CropResult
        Cropped copy of the mask and its offset in the input; the input mask
        itself with offset (0, 0) when it holds no ink
    """
    mask = np.asarray(mask, dtype=bool)
    h, w = mask.shape
    _, components = label_components(mask)
    if not components:
        logger.info("No ink components; skipping crop")
        return CropResult(mask=mask, offset_x=0, offset_y=0)

    seed = select_seed(components, w, h)
    (gx0, gy0, gx1, gy1), members = merge_fragments(seed, components, w, h)

    margin = crop_margin(w, h)
    x0 = max(0, gx0 - margin)
    y0 = max(0, gy0 - margin)
    x1 = min(w - 1, gx1 + margin)
    y1 = min(h - 1, gy1 + margin)

    logger.info(
        f"Signature: seed={seed.label} ({seed.count}px), {len(members)}/{len(components)} "
        f"components kept, crop x={x0}..{x1} y={y0}..{y1}"
    )
    return CropResult(mask=mask[y0:y1 + 1, x0:x1 + 1].copy(), offset_x=x0, offset_y=y0)
