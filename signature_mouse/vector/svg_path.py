"""SVG path markup for signature strokes.

Format:
    One ``<path id="signature">`` whose ``d`` attribute holds a subpath per
    stroke: ``M x0 y0 L x1 y1 L x2 y2 ...`` with two decimals. The root
    ``<svg>`` carries width, height and ``viewBox="0 0 W H"``.

Writing uses svgwrite; reading uses ElementTree and accepts any SVG whose
paths only use absolute M/L commands (all ``<path>`` elements are read in
document order, and viewBox size wins over width/height).
"""

import io
import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Iterable, List, Optional, Union

import numpy as np
import svgwrite

from ..errors import InputError
from ..utils import fs
from .signature_path import SignaturePath

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"[ML]|[-+]?\d*\.?\d+(?:[eE][-+]?\d+)?")
_LENGTH_RE = re.compile(r"^\s*([-\d.]+)")


def build_path(strokes: Iterable[np.ndarray]) -> str:
    """Path data for strokes; empty strokes are skipped."""
    parts = []
    for stroke in strokes:
        if len(stroke) == 0:
            continue
        x, y = stroke[0]
        parts.append(f"M {x:.2f} {y:.2f}")
        parts.extend(f"L {x:.2f} {y:.2f}" for x, y in stroke[1:])
    return " ".join(parts)


def parse_path(d: str) -> List[np.ndarray]:
    """Parse M/L path data into strokes.

    ``M`` opens a new stroke and implies ``L`` for following pairs. Numbers
    before any command also open a stroke. Parsing stops at a dangling
    coordinate; other commands and separators are ignored.
    """
    strokes: List[List[List[float]]] = []
    if not d or not d.strip():
        return []

    tokens = _TOKEN_RE.findall(d)
    cmd = None
    current: Optional[List[List[float]]] = None
    i = 0
    while i < len(tokens):
        tok = tokens[i]
        if tok in ("M", "L"):
            cmd = tok
            i += 1
            continue
        if i + 1 >= len(tokens) or tokens[i + 1] in ("M", "L"):
            break
        x, y = float(tok), float(tokens[i + 1])
        i += 2

        if cmd == "L" and current is not None:
            current.append([x, y])
        else:
            current = [[x, y]]
            strokes.append(current)
            cmd = "L"

    return [np.asarray(s, dtype=np.float64) for s in strokes]


def svg_document(signature: SignaturePath) -> str:
    """Serialize a signature as an SVG document string."""
    w, h = int(signature.width), int(signature.height)
    dwg = svgwrite.Drawing(size=(w, h), debug=False)
    dwg["viewBox"] = f"0 0 {w} {h}"
    dwg.add(dwg.path(
        d=build_path(signature.strokes),
        id="signature",
        fill="none",
        stroke="black",
        stroke_width=1,
    ))
    buf = io.StringIO()
    dwg.write(buf, pretty=True)
    return buf.getvalue()


def save_svg(signature: SignaturePath, path: Union[str, Path]) -> None:
    """Write ``signature`` to ``path`` atomically."""
    fs.atomic_write_text(path, svg_document(signature))
    logger.info(f"Saved {len(signature.strokes)} stroke(s) to {path}")


def _parse_length(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    m = _LENGTH_RE.match(value)
    if not m:
        return None
    try:
        return float(m.group(1))
    except ValueError:
        return None


def _local_name(tag: str) -> str:
    return tag.rsplit('}', 1)[-1]


def load_svg(path: Union[str, Path]) -> SignaturePath:
    """Read strokes from every ``<path>`` in an SVG file.

    Raises
    ------
    InputError
        If the file is missing, is not valid XML, or has no path elements
    """
    path = Path(path)
    if not path.exists():
        raise InputError(f"SVG file not found: {path}")

    try:
        root = ET.parse(path).getroot()
    except ET.ParseError as e:
        raise InputError(f"Invalid SVG {path}: {e}") from e

    width = _parse_length(root.get('width')) or 0.0
    height = _parse_length(root.get('height')) or 0.0
    view_box = root.get('viewBox')
    if view_box:
        parts = re.split(r"[\s,]+", view_box.strip())
        if len(parts) >= 4:
            vb_w, vb_h = _parse_length(parts[2]), _parse_length(parts[3])
            width = vb_w if vb_w is not None else width
            height = vb_h if vb_h is not None else height

    path_elems = [el for el in root.iter() if _local_name(el.tag) == 'path']
    if not path_elems:
        raise InputError(f"Invalid SVG {path}: no path elements found")

    strokes: List[np.ndarray] = []
    for el in path_elems:
        strokes.extend(parse_path(el.get('d', '')))

    logger.info(f"Loaded {len(strokes)} stroke(s) from {path}")
    return SignaturePath(width=int(round(width)), height=int(round(height)), strokes=strokes)
