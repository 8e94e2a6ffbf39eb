"""Tests for signature_mouse.vectorizer.skeleton (Zhang-Suen thinning).

Tests:
    - Thick bar thins to a connected, one-pixel-wide line inside the input
    - One-pixel lines are already skeletons
    - Border pixels are never removed
    - Iteration cap stops early
    - Input is not modified; tiny images pass through

Run:
    pytest tests/test_skeleton.py -v
"""

import numpy as np
import pytest
from scipy import ndimage

from signature_mouse.vectorizer.skeleton import zhang_suen_thin


@pytest.fixture
def thick_bar():
    mask = np.zeros((9, 24), dtype=bool)
    mask[2:7, 2:22] = True
    return mask


def _has_2x2_block(mask: np.ndarray) -> bool:
    blocks = mask[:-1, :-1] & mask[1:, :-1] & mask[:-1, 1:] & mask[1:, 1:]
    return bool(blocks.any())


def test_thick_bar_becomes_thin(thick_bar):
    skel = zhang_suen_thin(thick_bar)

    assert skel.dtype == bool
    assert skel.any()
    assert not (skel & ~thick_bar).any(), "Skeleton must stay inside the mask"
    assert not _has_2x2_block(skel), "Skeleton must be one pixel wide"
    _, n = ndimage.label(skel, structure=np.ones((3, 3)))
    assert n == 1, "Thinning must preserve connectivity"

    xs = np.nonzero(skel)[1]
    assert xs.max() - xs.min() >= 12, "Skeleton should span most of the bar"


@pytest.mark.parametrize("line", [
    np.eye(7, dtype=bool),
    np.pad(np.ones((1, 5), dtype=bool), 2),
])
def test_one_pixel_lines_unchanged(line):
    assert np.array_equal(zhang_suen_thin(line), line)


def test_border_pixels_survive():
    mask = np.ones((5, 5), dtype=bool)
    assert np.array_equal(zhang_suen_thin(mask), mask)


def test_iteration_cap(thick_bar):
    full = zhang_suen_thin(thick_bar)
    capped = zhang_suen_thin(thick_bar, max_iterations=1)
    assert capped.sum() > full.sum()
    assert capped.sum() < thick_bar.sum()


def test_input_not_modified(thick_bar):
    before = thick_bar.copy()
    zhang_suen_thin(thick_bar)
    assert np.array_equal(thick_bar, before)


def test_tiny_image_passthrough():
    mask = np.ones((2, 5), dtype=bool)
    assert np.array_equal(zhang_suen_thin(mask), mask)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
