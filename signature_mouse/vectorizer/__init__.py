"""Raster signature → ordered vector strokes.

Modules (leaf-first):
    - pixel_buffer: Pillow decoding, luma, right-angle rotation, downscale
    - binarize: histogram, Otsu, auto polarity → boolean ink mask
    - regions: 8-connected labeling, seed scoring, fragment merging, crop
    - morphology: despeckle, small-component removal, disk closing
    - skeleton: Zhang-Suen thinning
    - tracer: depth-first skeleton walk → one polyline per piece
    - polyline: RDP, resampling, Chaikin smoothing, stroke ordering
    - pipeline: vectorize() running all of the above

Heuristic constants live in signature_mouse.defaults.
"""

from .pipeline import vectorize
from .pixel_buffer import PixelBuffer, load_pixel_buffer

__all__ = ['vectorize', 'PixelBuffer', 'load_pixel_buffer']
