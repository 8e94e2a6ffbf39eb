"""Signature path container and its file formats.

Modules:
    - signature_path: SignaturePath (canvas size, ordered strokes, crop offset),
      YAML export (signature_path.v1)
    - svg_path: M/L path markup inside an SVG document
"""

from .signature_path import SignaturePath, load_signature
from .svg_path import build_path, load_svg, parse_path, save_svg

__all__ = [
    'SignaturePath',
    'load_signature',
    'build_path',
    'parse_path',
    'load_svg',
    'save_svg',
]
