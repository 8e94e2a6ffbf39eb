"""SignaturePath: the vectorizer's output and the replay engine's input.

A canvas size plus an ordered list of strokes, each an (N, 2) float64 array
of (x, y) pixels in canvas coordinates. ``offset_x`` / ``offset_y`` give the
canvas origin inside the (rotated, downscaled) source image.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

import numpy as np

from ..utils.geometry import as_points, strokes_bbox


@dataclass(eq=False)
class SignaturePath:
    """Canvas size and ordered, non-empty strokes."""
    width: int
    height: int
    strokes: List[np.ndarray] = field(default_factory=list)
    offset_x: int = 0
    offset_y: int = 0

    def __post_init__(self):
        self.strokes = [as_points(s) for s in self.strokes]
        for i, stroke in enumerate(self.strokes):
            if len(stroke) == 0:
                raise ValueError(f"Stroke {i} is empty")

    @property
    def point_count(self) -> int:
        return sum(len(s) for s in self.strokes)

    def bounds(self) -> Tuple[float, float, float, float]:
        """(min_x, min_y, max_x, max_y) over all points; zeros when empty."""
        return strokes_bbox(self.strokes)

    def start_point(self) -> Tuple[float, float]:
        """First point of the first stroke, (0, 0) without strokes."""
        if not self.strokes:
            return (0.0, 0.0)
        x, y = self.strokes[0][0]
        return (float(x), float(y))

    def source_strokes(self) -> List[np.ndarray]:
        """Strokes shifted back into source-image coordinates."""
        shift = np.array([self.offset_x, self.offset_y], dtype=np.float64)
        return [s + shift for s in self.strokes]

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            'schema': 'signature_path.v1',
            'width': int(self.width),
            'height': int(self.height),
            'offset': [int(self.offset_x), int(self.offset_y)],
            'strokes': [s.tolist() for s in self.strokes],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SignaturePath':
        """Build from a signature_path.v1 mapping (validated with pydantic).

        Raises
        ------
        pydantic.ValidationError
            If the mapping does not match the schema
        """
        from ..utils.validators import SignaturePathV1

        model = SignaturePathV1(**data)
        return cls._from_model(model)

    @classmethod
    def _from_model(cls, model) -> 'SignaturePath':
        return cls(
            width=model.width,
            height=model.height,
            strokes=[np.asarray(s, dtype=np.float64) for s in model.strokes],
            offset_x=model.offset[0],
            offset_y=model.offset[1],
        )

    def save_yaml(self, path: Union[str, Path]) -> None:
        from ..utils import fs

        fs.atomic_yaml_dump(self.to_dict(), path)

    @classmethod
    def load_yaml(cls, path: Union[str, Path]) -> 'SignaturePath':
        """Load a YAML export; raises InputError on missing or invalid files."""
        from ..utils.validators import load_signature_path

        return cls._from_model(load_signature_path(path))

    def save_svg(self, path: Union[str, Path]) -> None:
        from .svg_path import save_svg

        save_svg(self, path)

    @classmethod
    def load_svg(cls, path: Union[str, Path]) -> 'SignaturePath':
        from .svg_path import load_svg

        return load_svg(path)


def load_signature(path: Union[str, Path]) -> SignaturePath:
    """Load a signature from ``.svg`` or ``.yaml``/``.yml`` by extension."""
    path = Path(path)
    if path.suffix.lower() in ('.yaml', '.yml'):
        return SignaturePath.load_yaml(path)
    return SignaturePath.load_svg(path)
