"""End-to-end tests for signature_mouse.vectorizer.pipeline.vectorize.

Scenarios:
    - 100x100 white canvas with a 3 px black diagonal band → one stroke
      from about (10, 10) to about (90, 90), two points after RDP
    - Two distant blobs (10x size ratio) → crop keeps only the larger one
    - Fully transparent and uniform canvases → zero strokes, no exception
    - Invalid rotation → ConfigurationError (ValidationError on the bare model),
      also when an unvalidated config reaches vectorize
    - Right-angle rotation keeps the stroke count
    - Skeleton preview written as a grayscale image

Run:
    pytest tests/test_pipeline.py -v
"""

import numpy as np
import pydantic
import pytest
from PIL import Image

from signature_mouse.errors import ConfigurationError
from signature_mouse.utils import validators
from signature_mouse.vectorizer import PixelBuffer, vectorize
from signature_mouse.vectorizer.pipeline import clean_mask, render_mask_preview


@pytest.fixture
def diagonal_band():
    gray = np.full((100, 100), 255, dtype=np.uint8)
    for x in range(10, 91):
        gray[x - 1:x + 2, x] = 0
    return PixelBuffer.from_gray(gray)


@pytest.fixture
def diagonal_config():
    return validators.build_vectorize_config(
        despeckle=False,
        min_component_size=1,
        simplify_epsilon=1.5,
        resample_spacing=1000.0,
    )


@pytest.fixture
def two_blobs():
    gray = np.full((200, 200), 255, dtype=np.uint8)
    gray[90:110, 90:110] = 0    # 400 px
    gray[10:18, 10:15] = 0      # 40 px
    return PixelBuffer.from_gray(gray)


# ============================================================================
# SCENARIOS
# ============================================================================

def test_diagonal_band(diagonal_band, diagonal_config):
    sig = vectorize(diagonal_band, diagonal_config)

    assert len(sig.strokes) == 1
    assert len(sig.strokes[0]) == 2, "RDP collapses a straight skeleton to its endpoints"
    assert (sig.offset_x, sig.offset_y) == (5, 4)
    assert (sig.width, sig.height) == (91, 93)

    (stroke,) = sig.source_strokes()
    assert np.allclose(stroke[0], [10, 10], atol=1.0)
    assert np.allclose(stroke[-1], [90, 90], atol=1.0)


def test_default_resampling_keeps_line(diagonal_band, diagonal_config):
    cfg = validators.build_vectorize_config(diagonal_config, resample_spacing=2.0)
    (stroke,) = vectorize(diagonal_band, cfg).source_strokes()

    steps = np.hypot(*np.diff(stroke, axis=0).T)
    assert (steps <= 2.0 + 1e-9).all()
    assert np.allclose(stroke[:, 0], stroke[:, 1], atol=1.0), "Points stay on the diagonal"


def test_two_blobs_keeps_larger(two_blobs):
    sig = vectorize(two_blobs)

    assert (sig.offset_x, sig.offset_y) == (85, 85)
    assert (sig.width, sig.height) == (30, 30)
    assert sig.strokes, "The central blob must produce at least one stroke"
    for stroke in sig.source_strokes():
        assert (stroke >= 90).all() and (stroke <= 109).all()


def test_transparent_canvas():
    pixels = PixelBuffer(
        gray=np.zeros((40, 50), dtype=np.uint8),
        alpha=np.zeros((40, 50), dtype=np.uint8),
    )
    sig = vectorize(pixels)
    assert sig.strokes == []
    assert (sig.width, sig.height) == (50, 40)


def test_uniform_canvas():
    sig = vectorize(PixelBuffer.from_gray(np.full((64, 64), 200, dtype=np.uint8)))
    assert sig.strokes == []


def test_invalid_rotation():
    with pytest.raises(ConfigurationError):
        validators.build_vectorize_config(rotation_deg=45)
    with pytest.raises(pydantic.ValidationError):
        validators.VectorizeV1(rotation_deg=45)


def test_unvalidated_rotation_rejected_by_pipeline(diagonal_band):
    cfg = validators.VectorizeV1.model_construct(rotation_deg=45)
    with pytest.raises(ConfigurationError):
        vectorize(diagonal_band, cfg)


@pytest.mark.parametrize("rotation", [90, -90, 180])
def test_rotation_keeps_single_stroke(diagonal_band, diagonal_config, rotation):
    cfg = validators.build_vectorize_config(diagonal_config, rotation_deg=rotation)
    sig = vectorize(diagonal_band, cfg)
    assert len(sig.strokes) == 1
    assert sig.point_count >= 2


def test_input_buffer_untouched(diagonal_band, diagonal_config):
    before = diagonal_band.gray.copy()
    vectorize(diagonal_band, diagonal_config)
    assert np.array_equal(diagonal_band.gray, before)


# ============================================================================
# HELPERS
# ============================================================================

def test_skeleton_preview(diagonal_band, diagonal_config, tmp_path):
    out = tmp_path / "debug" / "skeleton.png"
    sig = vectorize(diagonal_band, diagonal_config, debug_preview_path=out)

    with Image.open(out) as img:
        assert img.mode == "L"
        assert img.size == (sig.width, sig.height)
        arr = np.asarray(img)
    assert set(np.unique(arr).tolist()) == {0, 255}
    assert not list(out.parent.glob("*.tmp*")), "No temporary files left behind"


def test_render_mask_preview():
    mask = np.array([[True, False]])
    assert render_mask_preview(mask).tolist() == [[0, 255]]


def test_clean_mask_closing():
    mask = np.zeros((7, 11), dtype=bool)
    mask[2:5, 2:5] = True
    mask[2:5, 6:9] = True
    cfg = validators.build_vectorize_config(despeckle=False, close_radius=1)
    assert clean_mask(mask, cfg)[3, 5]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
