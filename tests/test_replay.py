"""Tests for signature_mouse.replay (engine, placement, dry-run backend).

Tests:
    - One mouse-down/up pair per stroke, interpolated integer moves
    - Cursor anchoring, absolute offsets, scale and fit-to-size
    - Target rectangle placement with padding; invalid padding
    - Delay and step timing through an injected sleep function
    - Cancellation before and during a stroke always releases the button
    - ScreenRect parsing and backend factory

Run:
    pytest tests/test_replay.py -v
"""

import threading

import numpy as np
import pytest

from signature_mouse.errors import ConfigurationError, ReplayCancelled
from signature_mouse.replay import (
    DryRunBackend,
    Placement,
    ReplayEngine,
    ScreenRect,
    compute_placement,
    create_backend,
    resolve_placement,
)
from signature_mouse.utils.validators import ReplayV1, build_replay_config
from signature_mouse.vector import SignaturePath


@pytest.fixture
def line():
    return SignaturePath(width=10, height=10, strokes=[np.array([[0.0, 0.0], [4.0, 0.0]])])


@pytest.fixture
def two_strokes():
    return SignaturePath(
        width=100,
        height=50,
        strokes=[
            np.array([[0.0, 0.0], [100.0, 0.0]]),
            np.array([[100.0, 50.0], [0.0, 50.0], [0.0, 10.0]]),
        ],
    )


def _options(**kw):
    kw.setdefault("delay_s", 0.0)
    return build_replay_config(**kw)


def _kinds(backend):
    return [e.kind for e in backend.events]


# ============================================================================
# MOTION
# ============================================================================

def test_single_stroke_events(line):
    backend = DryRunBackend(cursor=(100, 50))
    sleeps = []
    engine = ReplayEngine(backend, _options(step_px=2.0, speed_px_s=1000.0), sleep_fn=sleeps.append)

    stats = engine.replay(line)

    assert _kinds(backend) == ["move", "down", "move", "move", "up"]
    assert backend.moves == [(100, 50), (102, 50), (104, 50)]
    assert (backend.events[-1].x, backend.events[-1].y) == (104, 50), "Pointer lands on the last point"
    assert sleeps == pytest.approx([0.002, 0.002])
    assert (stats.strokes, stats.moves) == (1, 2)


def test_down_up_per_stroke(two_strokes):
    backend = DryRunBackend()
    ReplayEngine(backend, _options(), sleep_fn=lambda s: None).replay(two_strokes)

    kinds = _kinds(backend)
    assert kinds.count("down") == kinds.count("up") == 2
    assert backend.moves[-1] == (0, 10)
    assert "2 stroke(s)" in backend.summary()


def test_moves_are_rounded_integers():
    sig = SignaturePath(width=5, height=5, strokes=[np.array([[0.0, 0.0], [3.0, 1.0]])])
    backend = DryRunBackend()
    ReplayEngine(backend, _options(step_px=1.0), sleep_fn=lambda s: None).replay(sig)

    # ceil(sqrt(10) / 1) = 4 sub-steps
    assert backend.moves == [(0, 0), (1, 0), (2, 0), (2, 1), (3, 1)]
    assert all(isinstance(v, int) for m in backend.moves for v in m)


def test_delay_and_fallback_timing(line):
    sleeps = []
    opts = _options(delay_s=3.0, step_px=0.0, speed_px_s=0.0)
    ReplayEngine(DryRunBackend(), opts, sleep_fn=sleeps.append).replay(line)

    assert sleeps[0] == 3.0
    # step falls back to 2 px, speed to 800 px/s
    assert sleeps[1:] == pytest.approx([2.0 / 800.0] * 2)


# ============================================================================
# PLACEMENT
# ============================================================================

def test_cursor_anchor_and_scale(two_strokes):
    opts = _options(scale=2.0)
    placement = resolve_placement(two_strokes, opts, cursor=(500, 300))
    assert placement == Placement(2.0, 500.0, 300.0)


def test_absolute_offsets(line):
    backend = DryRunBackend(cursor=(999, 999))
    opts = _options(offset_x=10.0, offset_y=20.0)
    ReplayEngine(backend, opts, sleep_fn=lambda s: None).replay(line)
    assert backend.moves[0] == (10, 20)
    assert backend.moves[-1] == (14, 20)


@pytest.mark.parametrize("kw,expected", [
    ({"target_width": 200.0}, 2.0),
    ({"target_height": 25.0}, 0.5),
    ({"target_width": 50.0, "target_height": 100.0}, 0.5),
    ({"scale": 0.0}, 1.0),
    ({"scale": 3.0, "target_width": 100.0}, 3.0),
])
def test_fit_to_size(two_strokes, kw, expected):
    placement = resolve_placement(two_strokes, _options(**kw), cursor=(0, 0))
    assert placement.scale == pytest.approx(expected)


def test_compute_placement_centres(two_strokes):
    rect = ScreenRect(0, 0, 1000, 500)
    placement = compute_placement(two_strokes, rect, padding=0.1)
    assert placement.scale == pytest.approx(8.0)
    assert placement.offset_x == pytest.approx(100.0)
    assert placement.offset_y == pytest.approx(50.0)


def test_compute_placement_with_offset_bounds():
    sig = SignaturePath(width=0, height=0, strokes=[np.array([[10.0, 20.0], [30.0, 40.0]])])
    placement = compute_placement(sig, ScreenRect(100, 100, 40, 40), padding=0.0)
    assert placement.apply(10.0, 20.0) == pytest.approx((100.0, 100.0))
    assert placement.apply(30.0, 40.0) == pytest.approx((140.0, 140.0))


@pytest.mark.parametrize("padding", [-0.01, 0.45, 0.9])
def test_compute_placement_rejects_padding(two_strokes, padding):
    with pytest.raises(ConfigurationError):
        compute_placement(two_strokes, ScreenRect(0, 0, 100, 100), padding=padding)


def test_replay_with_fixed_placement(line):
    backend = DryRunBackend(cursor=(7, 7))
    engine = ReplayEngine(backend, _options(), sleep_fn=lambda s: None)
    engine.replay(line, Placement(10.0, 5.0, 5.0))
    assert backend.moves[0] == (5, 5)
    assert backend.moves[-1] == (45, 5)


# ============================================================================
# CANCELLATION
# ============================================================================

def test_cancel_before_start(line):
    event = threading.Event()
    event.set()
    backend = DryRunBackend()
    engine = ReplayEngine(backend, _options(), sleep_fn=lambda s: None, cancel_event=event)

    with pytest.raises(ReplayCancelled):
        engine.replay(line)
    assert backend.events == []


def test_cancel_mid_stroke_releases_button():
    sig = SignaturePath(width=10, height=10, strokes=[np.array([[0.0, 0.0], [10.0, 0.0]])])
    backend = DryRunBackend()
    engine = ReplayEngine(backend, _options(step_px=2.0))
    engine._sleep = lambda s: engine.cancel()

    with pytest.raises(ReplayCancelled):
        engine.replay(sig)
    assert _kinds(backend) == ["move", "down", "move", "up"]


# ============================================================================
# MISC
# ============================================================================

def test_screen_rect_parse():
    assert ScreenRect.parse("10, 20,300,200") == ScreenRect(10, 20, 300, 200)
    for bad in ["1,2,3", "a,b,c,d", "0,0,0,10"]:
        with pytest.raises(ConfigurationError):
            ScreenRect.parse(bad)


def test_create_backend():
    backend = create_backend("DRY-RUN")
    assert isinstance(backend, DryRunBackend)
    assert backend.screen_size() == (1920, 1080)
    with pytest.raises(ValueError):
        create_backend("xdotool")


def test_default_options():
    opts = ReplayV1()
    assert opts.delay_s == 10.0
    assert opts.speed_px_s == 3000.0
    assert opts.step_px == 2.0
    assert opts.padding == pytest.approx(0.10)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
