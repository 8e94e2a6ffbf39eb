"""Gray + alpha pixel buffer fed to the binarizer.

Decoding goes through Pillow; everything after that is plain numpy.
Rotation and downscaling return new buffers and never touch the source.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from .. import defaults
from ..errors import InputError
from ..utils.validators import normalize_rotation

logger = logging.getLogger(__name__)


def luma(rgb: np.ndarray) -> np.ndarray:
    """Rec. 709 luma of an (H, W, 3) uint8 array, truncated to uint8.

    Parameters
    ----------
    rgb : np.ndarray
        (H, W, 3) or (H, W, 4) array; a fourth channel is ignored

    Returns
    -------
    np.ndarray
        (H, W) uint8, ``int(0.2126 R + 0.7152 G + 0.0722 B)`` clamped to [0, 255]
    """
    wr, wg, wb = (np.float32(w) for w in defaults.LUMA_WEIGHTS)
    rgb = rgb[..., :3].astype(np.float32)
    y = wr * rgb[..., 0] + wg * rgb[..., 1] + wb * rgb[..., 2]
    return np.clip(y.astype(np.int32), 0, 255).astype(np.uint8)


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """Width × height grid of gray intensity and alpha, both uint8 (H, W).

    Attributes
    ----------
    gray : np.ndarray
        Intensity 0-255, row-major (H, W)
    alpha : np.ndarray
        Opacity 0-255, same shape; 0 marks pixels that are never ink
    """
    gray: np.ndarray
    alpha: np.ndarray

    def __post_init__(self):
        gray = np.ascontiguousarray(self.gray, dtype=np.uint8)
        alpha = np.ascontiguousarray(self.alpha, dtype=np.uint8)
        if gray.ndim != 2:
            raise ValueError(f"gray must be 2-D (H, W), got shape {gray.shape}")
        if alpha.shape != gray.shape:
            raise ValueError(f"alpha shape {alpha.shape} != gray shape {gray.shape}")
        object.__setattr__(self, 'gray', gray)
        object.__setattr__(self, 'alpha', alpha)

    @property
    def width(self) -> int:
        return self.gray.shape[1]

    @property
    def height(self) -> int:
        return self.gray.shape[0]

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_gray(cls, gray: np.ndarray, alpha: Optional[np.ndarray] = None) -> 'PixelBuffer':
        """Opaque buffer from a gray array unless ``alpha`` is given."""
        if alpha is None:
            alpha = np.full(np.shape(gray), 255, dtype=np.uint8)
        return cls(gray=gray, alpha=alpha)

    @classmethod
    def from_rgba(cls, rgba: np.ndarray) -> 'PixelBuffer':
        """Buffer from an (H, W, 3) or (H, W, 4) uint8 array."""
        rgba = np.asarray(rgba)
        if rgba.ndim != 3 or rgba.shape[2] not in (3, 4):
            raise ValueError(f"Expected (H, W, 3|4) array, got shape {rgba.shape}")
        if rgba.shape[2] == 4:
            alpha = rgba[..., 3]
        else:
            alpha = np.full(rgba.shape[:2], 255, dtype=np.uint8)
        return cls(gray=luma(rgba), alpha=alpha)

    @classmethod
    def from_image(cls, img: Image.Image) -> 'PixelBuffer':
        """Buffer from any Pillow image (converted to RGBA first)."""
        return cls.from_rgba(np.asarray(img.convert("RGBA")))

    # ------------------------------------------------------------------
    # Transforms
    # ------------------------------------------------------------------

    def rotated(self, degrees: float) -> 'PixelBuffer':
        """Rotate counter-clockwise by a right angle.

        Raises
        ------
        ConfigurationError
            If ``degrees`` is not equivalent to 0, 90, -90 or 180
        """
        angle = normalize_rotation(degrees)
        if angle == 0:
            return self
        k = {90: 1, -90: -1, 180: 2}[angle]
        return PixelBuffer(gray=np.rot90(self.gray, k), alpha=np.rot90(self.alpha, k))

    def downscaled(self, max_size: int) -> 'PixelBuffer':
        """Shrink (Lanczos) so neither side exceeds ``max_size``; 0 disables.

        Aspect ratio is kept. Gray and alpha are resampled together as an
        LA image so transparent pixels do not bleed into the gray channel.
        """
        w, h = self.width, self.height
        if max_size <= 0 or (w <= max_size and h <= max_size):
            return self

        scale = min(max_size / w, max_size / h)
        new_w = max(1, int(round(w * scale)))
        new_h = max(1, int(round(h * scale)))

        la = Image.fromarray(np.dstack([self.gray, self.alpha]))
        resized = np.asarray(la.resize((new_w, new_h), Image.Resampling.LANCZOS))
        logger.debug(f"Downscaled {w}x{h} -> {new_w}x{new_h} (max_size={max_size})")
        return PixelBuffer(gray=resized[..., 0], alpha=resized[..., 1])


def load_pixel_buffer(path: Union[str, Path]) -> PixelBuffer:
    """Decode an image file into a PixelBuffer.

    Raises
    ------
    InputError
        If the file is missing or Pillow cannot decode it
    """
    path = Path(path)
    if not path.exists():
        raise InputError(f"Input image not found: {path}")

    try:
        with Image.open(path) as img:
            img.load()
            buffer = PixelBuffer.from_image(img)
    except (UnidentifiedImageError, OSError) as e:
        raise InputError(f"Failed to decode image {path}: {e}") from e

    logger.info(f"Loaded {path.name}: {buffer.width}x{buffer.height}")
    return buffer
