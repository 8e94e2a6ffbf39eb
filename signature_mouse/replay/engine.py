"""Replay engine -- draws a SignaturePath with a pointer backend.

Placement
    By default the first point of the first stroke is anchored to the pointer
    position captured after the start delay.  ``offset_x`` / ``offset_y``
    pin the stroke origin to absolute screen coordinates instead, ``scale``
    multiplies all coordinates, and ``target_width`` / ``target_height`` fit
    the stroke bounds into a box.  A target rectangle (compute_placement)
    replaces all of these with a centred, padded fit.

Motion
    Each stroke is: move to start -> button down -> interpolated moves ->
    button up.  Segments are split into ``ceil(length / step)`` moves,
    rounded to whole pixels, with ``step / speed`` seconds between moves.

Cancellation
    ``cancel()`` (or setting the shared ``threading.Event``) stops the replay
    at the next move; the button is always released on exit.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from .. import defaults
from ..errors import ConfigurationError, ReplayCancelled
from ..utils.geometry import distance
from ..utils.validators import ReplayV1
from ..vector.signature_path import SignaturePath
from .backend import ReplayBackend

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Placement
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScreenRect:
    """Axis-aligned screen rectangle in pixels."""

    left: int
    top: int
    width: int
    height: int

    @classmethod
    def parse(cls, text: str) -> ScreenRect:
        """Parse ``"left,top,width,height"``."""
        parts = [p.strip() for p in text.split(",")]
        if len(parts) != 4:
            raise ConfigurationError(f"Rectangle must be 'left,top,width,height', got '{text}'")
        try:
            left, top, width, height = (int(float(p)) for p in parts)
        except ValueError as exc:
            raise ConfigurationError(f"Rectangle values must be numbers, got '{text}'") from exc
        if width <= 0 or height <= 0:
            raise ConfigurationError(f"Rectangle width and height must be positive, got '{text}'")
        return cls(left, top, width, height)


@dataclass(frozen=True)
class Placement:
    """Screen transform: ``screen = point * scale + offset``."""

    scale: float
    offset_x: float
    offset_y: float

    def apply(self, x: float, y: float) -> tuple[float, float]:
        return x * self.scale + self.offset_x, y * self.scale + self.offset_y


def _bbox_size(signature: SignaturePath) -> tuple[float, float, float, float]:
    min_x, min_y, max_x, max_y = signature.bounds()
    return min_x, min_y, max(1.0, max_x - min_x), max(1.0, max_y - min_y)


def compute_placement(
    signature: SignaturePath,
    rect: ScreenRect,
    padding: float = defaults.REPLAY_PADDING,
) -> Placement:
    """Fit and centre the signature bounds inside ``rect``.

    Parameters
    ----------
    signature : SignaturePath
        Strokes to place.
    rect : ScreenRect
        Target rectangle.
    padding : float
        Fraction of the rectangle kept empty on each side, in [0, 0.45).

    Raises
    ------
    ConfigurationError
        If padding is out of range or leaves no drawable area.
    """
    if not (0.0 <= padding < defaults.REPLAY_MAX_PADDING):
        raise ConfigurationError(
            f"Padding must be between 0.0 and {defaults.REPLAY_MAX_PADDING}, got {padding}"
        )

    min_x, min_y, bbox_w, bbox_h = _bbox_size(signature)
    avail_w = rect.width * (1.0 - 2.0 * padding)
    avail_h = rect.height * (1.0 - 2.0 * padding)
    if avail_w <= 0 or avail_h <= 0:
        raise ConfigurationError("Padding leaves no drawable area inside the rectangle")

    scale = min(avail_w / bbox_w, avail_h / bbox_h)
    offset_x = rect.left + (rect.width - bbox_w * scale) / 2.0 - min_x * scale
    offset_y = rect.top + (rect.height - bbox_h * scale) / 2.0 - min_y * scale
    return Placement(scale, offset_x, offset_y)


def resolve_placement(
    signature: SignaturePath,
    options: ReplayV1,
    cursor: tuple[int, int],
) -> Placement:
    """Placement from scale / fit / offset options and the cursor anchor."""
    _, _, bbox_w, bbox_h = _bbox_size(signature)

    scale = options.scale if options.scale > 0 else 1.0
    if options.target_width is not None or options.target_height is not None:
        fit_x = options.target_width / bbox_w if options.target_width else math.inf
        fit_y = options.target_height / bbox_h if options.target_height else math.inf
        fit = min(fit_x, fit_y)
        if math.isinf(fit) or fit <= 0:
            fit = 1.0
        scale *= fit

    start_x, start_y = signature.start_point()
    anchor_x = cursor[0] - start_x * scale
    anchor_y = cursor[1] - start_y * scale
    return Placement(
        scale,
        options.offset_x if options.offset_x is not None else anchor_x,
        options.offset_y if options.offset_y is not None else anchor_y,
    )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


@dataclass
class ReplayStats:
    """Counters for a finished (or cancelled) replay."""

    strokes: int = 0
    moves: int = 0


class ReplayEngine:
    """Replays strokes through a backend.

    Parameters
    ----------
    backend : ReplayBackend
        Pointer backend.
    options : ReplayV1, optional
        Timing and placement options; defaults when None.
    sleep_fn : callable, optional
        ``sleep_fn(seconds)`` used between moves and for the start delay.
        Defaults to waiting on the cancel event, so cancel() interrupts a
        pending sleep.
    cancel_event : threading.Event, optional
        Shared cancel flag (e.g. set from a signal handler).
    """

    def __init__(
        self,
        backend: ReplayBackend,
        options: ReplayV1 | None = None,
        *,
        sleep_fn: Callable[[float], object] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self._backend = backend
        self._opts = options or ReplayV1()
        self._cancel = cancel_event or threading.Event()
        self._sleep = sleep_fn or self._cancel.wait
        self._pen_down = False

    def cancel(self) -> None:
        """Request cancellation; takes effect at the next move."""
        self._cancel.set()

    def _check_cancel(self) -> None:
        if self._cancel.is_set():
            raise ReplayCancelled("Replay cancelled")

    def _move(self, x: float, y: float) -> None:
        self._backend.move_to(int(round(x)), int(round(y)))

    def replay(
        self,
        signature: SignaturePath,
        placement: Placement | None = None,
    ) -> ReplayStats:
        """Draw every stroke of ``signature``.

        Parameters
        ----------
        signature : SignaturePath
            Strokes in drawing order.
        placement : Placement, optional
            Fixed screen transform (e.g. from compute_placement).  When None
            it is resolved from the options after the start delay.

        Raises
        ------
        ReplayCancelled
            If cancelled before the last stroke finished.
        """
        opts = self._opts
        stats = ReplayStats()

        if opts.delay_s > 0:
            logger.info("Replaying in %.1fs", opts.delay_s)
            self._sleep(opts.delay_s)
        self._check_cancel()

        if placement is None:
            placement = resolve_placement(signature, opts, self._backend.get_cursor_position())

        step = opts.step_px if opts.step_px > 0 else defaults.REPLAY_STEP_PX
        speed = opts.speed_px_s if opts.speed_px_s > 0 else defaults.REPLAY_FALLBACK_SPEED_PX_S
        step_delay = max(0.0, step / speed)

        logger.info(
            "Replay via %s: %d stroke(s), scale=%.3f, offset=(%.1f, %.1f)",
            self._backend.name, len(signature.strokes),
            placement.scale, placement.offset_x, placement.offset_y,
        )
        started = time.monotonic()

        try:
            for stroke in signature.strokes:
                self._check_cancel()
                points = [placement.apply(float(x), float(y)) for x, y in stroke]

                self._move(*points[0])
                self._backend.mouse_down()
                self._pen_down = True

                for (x0, y0), (x1, y1) in zip(points[:-1], points[1:]):
                    n = max(1, math.ceil(distance((x0, y0), (x1, y1)) / step))
                    for s in range(1, n + 1):
                        self._check_cancel()
                        t = s / n
                        self._move(x0 + (x1 - x0) * t, y0 + (y1 - y0) * t)
                        stats.moves += 1
                        if step_delay > 0:
                            self._sleep(step_delay)

                self._backend.mouse_up()
                self._pen_down = False
                stats.strokes += 1
        finally:
            if self._pen_down:
                self._backend.mouse_up()
                self._pen_down = False

        logger.info(
            "Replay finished: %d stroke(s), %d move(s) in %.2fs",
            stats.strokes, stats.moves, time.monotonic() - started,
        )
        return stats
