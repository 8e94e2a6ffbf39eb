"""Tests for signature_mouse.vectorizer.regions.

Tests:
    - 8-connected labeling order, bounding boxes and border contact
    - Chebyshev box distance and merge gap / crop margin formulas
    - Seed selection prefers central components over border-touching ones
    - Fragment merging absorbs nearby pieces (transitively) and skips far ones
    - crop_to_signature on the two-blob scenario and on an empty mask

Run:
    pytest tests/test_regions.py -v
"""

import numpy as np
import pytest

from signature_mouse.vectorizer import regions


@pytest.fixture
def two_blobs():
    """200x200: central 20x20 block plus a distant 5x8 block."""
    mask = np.zeros((200, 200), dtype=bool)
    mask[90:110, 90:110] = True
    mask[10:18, 10:15] = True
    return mask


# ============================================================================
# LABELING
# ============================================================================

def test_label_order_and_bbox():
    mask = np.zeros((8, 10), dtype=bool)
    mask[1:3, 6:8] = True
    mask[4:6, 1:3] = True
    mask[7, 9] = True

    labels, comps = regions.label_components(mask)
    assert [c.label for c in comps] == [1, 2, 3]
    assert comps[0].bbox == (6, 1, 7, 2), "Topmost component is labeled first"
    assert comps[1].bbox == (1, 4, 2, 5)
    assert [c.count for c in comps] == [4, 4, 1]
    assert [c.touches_border for c in comps] == [False, False, True]
    assert labels[7, 9] == 3


def test_diagonal_pixels_are_connected():
    mask = np.eye(6, dtype=bool)
    _, comps = regions.label_components(mask)
    assert len(comps) == 1
    assert comps[0].width == comps[0].height == 6


def test_component_density():
    comp = regions.Component(label=1, count=8, bbox=(0, 0, 3, 3), touches_border=True)
    assert comp.density == pytest.approx(0.5)
    assert comp.center == (1.5, 1.5)


# ============================================================================
# GEOMETRY HELPERS
# ============================================================================

@pytest.mark.parametrize("a,b,expected", [
    ((0, 0, 2, 2), (5, 1, 6, 2), 3),
    ((0, 0, 2, 2), (1, 1, 4, 4), 0),
    ((0, 0, 2, 2), (4, 9, 5, 10), 7),
])
def test_box_distance(a, b, expected):
    assert regions.box_distance(a, b) == expected
    assert regions.box_distance(b, a) == expected


def test_merge_gap_and_crop_margin():
    seed = regions.Component(label=1, count=400, bbox=(0, 0, 99, 9), touches_border=False)
    assert regions.merge_gap(seed, 200, 200) == 24
    assert regions.merge_gap(seed, 50, 50) == 20
    assert regions.crop_margin(200, 200) == 5
    assert regions.crop_margin(1000, 800) == 16


# ============================================================================
# SEED + MERGE
# ============================================================================

def test_central_component_beats_border_component():
    mask = np.zeros((200, 200), dtype=bool)
    mask[0:30, 0:30] = True          # larger, in the corner
    mask[90:110, 90:110] = True      # smaller, central
    _, comps = regions.label_components(mask)
    seed = regions.select_seed(comps, 200, 200)
    assert seed.bbox == (90, 90, 109, 109)


def test_merge_absorbs_nearby_fragments_transitively():
    mask = np.zeros((200, 200), dtype=bool)
    mask[90:110, 90:110] = True      # seed
    mask[95:100, 125:130] = True     # 16 px right of the seed
    mask[95:100, 150:155] = True     # 21 px right of the previous fragment
    _, comps = regions.label_components(mask)
    seed = regions.select_seed(comps, 200, 200)

    bbox, members = regions.merge_fragments(seed, comps, 200, 200)
    assert members[0] is seed
    assert len(members) == 3
    assert bbox == (90, 90, 154, 109)


def test_merge_skips_border_fragments():
    mask = np.zeros((200, 200), dtype=bool)
    mask[90:110, 90:110] = True
    mask[95:100, 115:200] = True     # touches the right edge, 6 px away
    _, comps = regions.label_components(mask)
    seed = next(c for c in comps if not c.touches_border)

    _, members = regions.merge_fragments(seed, comps, 200, 200)
    assert members == [seed]


# ============================================================================
# CROP
# ============================================================================

def test_crop_keeps_only_larger_blob(two_blobs):
    crop = regions.crop_to_signature(two_blobs)
    assert (crop.offset_x, crop.offset_y) == (85, 85)
    assert crop.mask.shape == (30, 30)
    assert crop.mask.sum() == 400, "Distant small blob is excluded"


def test_crop_is_a_copy(two_blobs):
    crop = regions.crop_to_signature(two_blobs)
    crop.mask[:] = False
    assert two_blobs.sum() == 440


def test_crop_empty_mask():
    mask = np.zeros((10, 12), dtype=bool)
    crop = regions.crop_to_signature(mask)
    assert (crop.offset_x, crop.offset_y) == (0, 0)
    assert crop.mask.shape == (10, 12)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
