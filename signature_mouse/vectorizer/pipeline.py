"""End-to-end vectorization: pixel buffer → ordered signature strokes.

Stages (each returns a new array; nothing is modified in place):
    1. rotate / downscale the buffer
    2. binarize (threshold + polarity)
    3. despeckle, small-component removal, closing
    4. isolate the signature (seed, merge, padded crop)
    5. Zhang-Suen thinning
    6. trace the skeleton into polylines
    7. simplify, resample, smooth and order the strokes

Degenerate input (transparent, uniform, no ink left after cleanup) yields a
SignaturePath with zero strokes rather than an error.

Usage:
    from signature_mouse.vectorizer import load_pixel_buffer, vectorize
    sig = vectorize(load_pixel_buffer("scan.png"), cfg)
    sig.save_svg("scan.svg")
"""

import logging
from pathlib import Path
from typing import Optional, Union

import numpy as np

from ..utils import fs
from ..utils.geometry import polyline_length
from ..utils.logging_config import log_context
from ..utils.validators import VectorizeV1
from ..vector.signature_path import SignaturePath
from .binarize import binarize
from .morphology import close_mask, despeckle, remove_small_components
from .pixel_buffer import PixelBuffer
from .polyline import refine_strokes
from .regions import crop_to_signature
from .skeleton import zhang_suen_thin
from .tracer import trace_skeleton

logger = logging.getLogger(__name__)


def render_mask_preview(mask: np.ndarray) -> np.ndarray:
    """Grayscale preview of a mask: ink 0 (black), background 255 (white)."""
    return np.where(np.asarray(mask, dtype=bool), 0, 255).astype(np.uint8)


def clean_mask(mask: np.ndarray, config: VectorizeV1) -> np.ndarray:
    """Morphology stage: despeckle (optional), small components, closing."""
    if config.despeckle:
        mask = despeckle(mask)
    mask = remove_small_components(mask, config.min_component_size)
    if config.close_radius > 0:
        mask = close_mask(mask, config.close_radius)
    return mask


def vectorize(
    pixels: PixelBuffer,
    config: Optional[VectorizeV1] = None,
    *,
    debug_preview_path: Optional[Union[str, Path]] = None,
) -> SignaturePath:
    """Run the full pipeline on a pixel buffer.

    Parameters
    ----------
    pixels : PixelBuffer
        Decoded source image (not modified)
    config : VectorizeV1, optional
        Pipeline parameters; defaults when None. Build it with
        ``validators.build_vectorize_config`` or ``load_vectorize_config``
        so invalid values raise ConfigurationError; constructing
        ``VectorizeV1`` directly raises pydantic's ValidationError instead.
    debug_preview_path : str or Path, optional
        Write the thinned skeleton here as a grayscale image (ink black)

    Returns
    -------
    SignaturePath
        Canvas = cropped signature region; strokes in canvas pixels with
        the crop origin in ``offset_x`` / ``offset_y``

    Raises
    ------
    ConfigurationError
        If the rotation is not a right angle
    """
    cfg = config or VectorizeV1()

    with log_context(stage="prepare"):
        pixels = pixels.rotated(cfg.rotation_deg).downscaled(cfg.max_size)
        logger.info(f"Input {pixels.width}x{pixels.height} (rotation={cfg.rotation_deg})")

    with log_context(stage="binarize"):
        mask = binarize(pixels, cfg.threshold, cfg.invert, cfg.auto_polarity)

    with log_context(stage="cleanup"):
        mask = clean_mask(mask, cfg)
        logger.info(f"{int(mask.sum())} ink px after cleanup")

    with log_context(stage="isolate"):
        crop = crop_to_signature(mask)

    with log_context(stage="thin"):
        skeleton = zhang_suen_thin(crop.mask, cfg.thin_iterations)
        logger.info(f"Skeleton: {int(skeleton.sum())} px")
        if debug_preview_path is not None:
            fs.atomic_save_image(render_mask_preview(skeleton), debug_preview_path)
            logger.info(f"Saved skeleton preview to {debug_preview_path}")

    with log_context(stage="trace"):
        raw = trace_skeleton(skeleton)

    with log_context(stage="refine"):
        strokes = refine_strokes(raw, cfg.simplify_epsilon, cfg.resample_spacing, cfg.smooth_iterations)
        logger.info(
            f"{len(strokes)} stroke(s), {sum(len(s) for s in strokes)} points, "
            f"{sum(polyline_length(s) for s in strokes):.1f}px of ink"
        )

    h, w = crop.mask.shape
    return SignaturePath(
        width=w,
        height=h,
        strokes=strokes,
        offset_x=crop.offset_x,
        offset_y=crop.offset_y,
    )
