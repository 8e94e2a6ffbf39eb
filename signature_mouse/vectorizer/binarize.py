"""Gray + alpha buffer → boolean ink mask.

Threshold selection, in order:
    1. Explicit threshold: used as-is; ``invert`` picks light ink.
    2. Auto polarity (default): Otsu's threshold, accepted for dark ink if
       the dark ink ratio is plausible, else for light ink; otherwise a
       background-percentile fallback with the polarity whose ink ratio is
       closest to the target ratio.
    3. Auto polarity disabled: Otsu's threshold with ``invert`` deciding.

Fully transparent pixels (alpha == 0) are never ink and are excluded from
the histogram. An image without any opaque pixel yields an all-false mask.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .. import defaults
from .pixel_buffer import PixelBuffer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ThresholdDecision:
    """Chosen threshold and polarity.

    ``dark_ink`` means ink is ``gray < threshold``; otherwise ink is
    ``gray > threshold``. ``source`` records which rule produced it.
    """
    threshold: int
    dark_ink: bool
    source: str


def intensity_histogram(pixels: PixelBuffer) -> np.ndarray:
    """256-bin histogram of gray values over pixels with nonzero alpha."""
    visible = pixels.gray[pixels.alpha > 0]
    return np.bincount(visible.ravel(), minlength=256).astype(np.int64)


def otsu_threshold(histogram: np.ndarray) -> int:
    """Otsu's threshold for a 256-bin histogram.

    Maximizes ``wB * wF * (mB - mF)**2`` where class B holds levels ``<= t``.
    Levels with an empty class score zero; the first maximizing level wins.
    Returns 0 when no level separates two non-empty classes.

    Parameters
    ----------
    histogram : np.ndarray
        Counts per gray level, shape (256,)

    Returns
    -------
    int
        Threshold level in [0, 255]
    """
    hist = np.asarray(histogram, dtype=np.float64)
    total = hist.sum()
    if total <= 0:
        return 0

    levels = np.arange(hist.size, dtype=np.float64)
    w_b = np.cumsum(hist)
    w_f = total - w_b
    sum_b = np.cumsum(levels * hist)
    sum_all = sum_b[-1]

    valid = (w_b > 0) & (w_f > 0)
    with np.errstate(divide='ignore', invalid='ignore'):
        m_b = sum_b / w_b
        m_f = (sum_all - sum_b) / w_f
        between = np.where(valid, w_b * w_f * (m_b - m_f) ** 2, 0.0)

    t = int(np.argmax(between))
    return t if between[t] > 0 else 0


def _count_below(cumulative: np.ndarray, t: int) -> int:
    """Pixels with gray < t."""
    if t <= 0:
        return 0
    return int(cumulative[min(t, cumulative.size) - 1])


def _count_below_or_equal(cumulative: np.ndarray, t: int) -> int:
    """Pixels with gray <= t."""
    if t < 0:
        return 0
    return int(cumulative[min(t, cumulative.size - 1)])


def _ratio_ok(ratio: float) -> bool:
    return defaults.INK_RATIO_MIN <= ratio <= defaults.INK_RATIO_MAX


def background_percentile(histogram: np.ndarray, fraction: float = defaults.BACKGROUND_PERCENTILE) -> int:
    """First gray level whose cumulative count reaches ``round(total * fraction)``."""
    cumulative = np.cumsum(histogram)
    target = round(float(cumulative[-1]) * fraction)
    idx = int(np.searchsorted(cumulative, target, side='left'))
    return min(idx, cumulative.size - 1)


def decide_threshold(
    histogram: np.ndarray,
    threshold: Optional[int] = None,
    invert: bool = False,
    auto_polarity: bool = True,
) -> ThresholdDecision:
    """Pick threshold and ink polarity for a histogram.

    Parameters
    ----------
    histogram : np.ndarray
        Output of intensity_histogram, shape (256,)
    threshold : int, optional
        Forced threshold; disables all automatic selection
    invert : bool
        Light ink for forced / non-auto thresholds
    auto_polarity : bool
        Run the ink-ratio heuristic when no threshold is forced

    Returns
    -------
    ThresholdDecision
    """
    if threshold is not None:
        return ThresholdDecision(int(threshold), not invert, "explicit")

    histogram = np.asarray(histogram, dtype=np.int64)
    total = int(histogram.sum())
    otsu = otsu_threshold(histogram)
    if total == 0 or not auto_polarity:
        return ThresholdDecision(otsu, not invert, "otsu")

    cumulative = np.cumsum(histogram)

    dark_ratio = _count_below(cumulative, otsu) / total
    if _ratio_ok(dark_ratio):
        return ThresholdDecision(otsu, True, "otsu")

    light_ratio = (total - _count_below_or_equal(cumulative, otsu)) / total
    if _ratio_ok(light_ratio):
        return ThresholdDecision(otsu, False, "otsu-light")

    # Otsu split the background (washed-out or near-blank scan)
    background = background_percentile(histogram)
    fallback = int(np.clip(background - defaults.BACKGROUND_OFFSET, 0, 255))
    fallback_dark = _count_below(cumulative, fallback) / total
    fallback_light = (total - _count_below_or_equal(cumulative, fallback)) / total

    dark_score = abs(fallback_dark - defaults.TARGET_INK_RATIO)
    light_score = abs(fallback_light - defaults.TARGET_INK_RATIO)
    return ThresholdDecision(fallback, dark_score <= light_score, "fallback")


def apply_threshold(pixels: PixelBuffer, decision: ThresholdDecision) -> np.ndarray:
    """Ink mask for a decision; alpha == 0 is always background."""
    if decision.dark_ink:
        mask = pixels.gray < decision.threshold
    else:
        mask = pixels.gray > decision.threshold
    return mask & (pixels.alpha > 0)


def binarize(
    pixels: PixelBuffer,
    threshold: Optional[int] = None,
    invert: bool = False,
    auto_polarity: bool = True,
) -> np.ndarray:
    """Convert a pixel buffer to an (H, W) boolean ink mask.

    Parameters
    ----------
    pixels : PixelBuffer
        Source buffer (not modified)
    threshold : int, optional
        Forced gray threshold 0-255
    invert : bool
        Treat lighter pixels as ink when the threshold is forced
    auto_polarity : bool
        Guess polarity from ink ratios when no threshold is forced

    Returns
    -------
    np.ndarray
        Boolean mask, shape (H, W)
    """
    histogram = intensity_histogram(pixels)
    if histogram.sum() == 0:
        logger.info("No opaque pixels; mask is empty")
        return np.zeros((pixels.height, pixels.width), dtype=bool)

    decision = decide_threshold(histogram, threshold, invert, auto_polarity)
    mask = apply_threshold(pixels, decision)
    logger.info(
        f"Threshold {decision.threshold} ({decision.source}, "
        f"{'dark' if decision.dark_ink else 'light'} ink): "
        f"{int(mask.sum())} ink px / {int(histogram.sum())}"
    )
    return mask
