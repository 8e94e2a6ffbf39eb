"""YAML schema validation and config loading.

Provides centralized validation for the package's YAML documents using pydantic:
    - Vectorizer schema (signature_vectorizer.v1): thresholding, cleanup,
      thinning and refinement parameters for ``vectorize``
    - Replay schema (replay.v1): pointer timing, scaling and placement
    - Signature path schema (signature_path.v1): YAML export of the strokes

CLI flags override values loaded from YAML; both paths go through these models
so a bad value fails before any image is touched.

Units:
    - Geometry: pixels (image frame, top-left origin, +Y down)
    - Speed: px/s
    - Time: seconds

Usage:
    from signature_mouse.utils import validators

    cfg = validators.load_vectorize_config("configs/signature_vectorizer_v1.yaml")
    cfg = validators.build_vectorize_config(simplify_epsilon=2.0, rotation_deg=-90)
"""

import math
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..errors import ConfigurationError, InputError
from .. import defaults


# ============================================================================
# ROTATION
# ============================================================================

def normalize_rotation(degrees: float) -> int:
    """Map an angle to one of 0, 90, -90 or 180.

    Parameters
    ----------
    degrees : float
        Counter-clockwise rotation; any multiple of 360 may be added.

    Returns
    -------
    int
        Canonical angle in (-180, 180]

    Raises
    ------
    ConfigurationError
        If the angle is not a right angle (within 0.01°)
    """
    normalized = math.fmod(degrees, 360.0)
    if normalized <= -180.0:
        normalized += 360.0
    elif normalized > 180.0:
        normalized -= 360.0

    for candidate in (0, 90, -90, 180):
        if abs(normalized - candidate) < defaults.ROTATION_TOLERANCE_DEG:
            return candidate
    # -180 lands on 180 after normalization but may sit just above -180
    if abs(abs(normalized) - 180.0) < defaults.ROTATION_TOLERANCE_DEG:
        return 180
    raise ConfigurationError(f"Rotation must be 0, 90, -90 or 180 degrees, got {degrees}")


# ============================================================================
# VECTORIZER SCHEMA V1
# ============================================================================

class VectorizeV1(BaseModel):
    """Vectorizer parameters (signature_vectorizer.v1 schema)."""
    model_config = ConfigDict(populate_by_name=True, extra='forbid')

    schema_version: str = Field("signature_vectorizer.v1", alias="schema", description="Schema version")
    threshold: Optional[int] = Field(None, ge=0, le=255, description="Forced gray threshold; skips auto thresholding")
    invert: bool = Field(False, description="Treat lighter pixels as ink")
    auto_polarity: bool = Field(True, description="Guess ink polarity when no threshold is forced")
    max_size: int = Field(defaults.MAX_SIZE, ge=0, description="Downscale so the longer side is at most this (0 = off)")
    despeckle: bool = Field(True, description="Drop isolated pixels and fill pinholes")
    min_component_size: Optional[int] = Field(None, ge=1, description="Remove components smaller than this (px)")
    close_radius: int = Field(defaults.CLOSE_RADIUS, ge=0, description="Closing disk radius (px)")
    thin_iterations: Optional[int] = Field(None, ge=1, description="Cap on Zhang-Suen iterations")
    simplify_epsilon: float = Field(defaults.SIMPLIFY_EPSILON, gt=0.0, description="RDP tolerance (px)")
    resample_spacing: float = Field(defaults.RESAMPLE_SPACING, gt=0.0, description="Arc-length spacing (px)")
    smooth_iterations: int = Field(defaults.SMOOTH_ITERATIONS, ge=0, description="Chaikin iterations")
    rotation_deg: int = Field(0, description="Counter-clockwise pre-rotation: 0, 90, -90 or 180")

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "signature_vectorizer.v1":
            raise ValueError(f"Expected schema 'signature_vectorizer.v1', got '{v}'")
        return v

    @field_validator('rotation_deg', mode='before')
    @classmethod
    def validate_rotation(cls, v: Any) -> int:
        try:
            degrees = float(v)
        except (TypeError, ValueError) as e:
            raise ValueError(f"rotation_deg must be a number, got {v!r}") from e
        return normalize_rotation(degrees)


# ============================================================================
# REPLAY SCHEMA V1
# ============================================================================

class ReplayV1(BaseModel):
    """Pointer replay settings (replay.v1 schema).

    Non-positive speed, step or scale fall back to the engine defaults
    instead of failing, so a stray ``0`` in a YAML file still replays.
    """
    model_config = ConfigDict(populate_by_name=True, extra='forbid')

    schema_version: str = Field("replay.v1", alias="schema", description="Schema version")
    delay_s: float = Field(defaults.REPLAY_DELAY_S, ge=0.0, description="Wait before the first move (s)")
    speed_px_s: float = Field(defaults.REPLAY_SPEED_PX_S, description="Pointer speed (px/s)")
    step_px: float = Field(defaults.REPLAY_STEP_PX, description="Interpolation step (px)")
    scale: float = Field(1.0, description="Uniform scale applied to the strokes")
    target_width: Optional[float] = Field(None, gt=0.0, description="Fit the bounds into this width (px)")
    target_height: Optional[float] = Field(None, gt=0.0, description="Fit the bounds into this height (px)")
    offset_x: Optional[float] = Field(None, description="Absolute screen x of the stroke origin")
    offset_y: Optional[float] = Field(None, description="Absolute screen y of the stroke origin")
    padding: float = Field(defaults.REPLAY_PADDING, description="Padding ratio inside a target rectangle")
    backend: str = Field("pyautogui", description="Input backend name")

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "replay.v1":
            raise ValueError(f"Expected schema 'replay.v1', got '{v}'")
        return v

    @field_validator('padding')
    @classmethod
    def validate_padding(cls, v: float) -> float:
        if not (0.0 <= v < defaults.REPLAY_MAX_PADDING):
            raise ValueError(f"padding must be in [0, {defaults.REPLAY_MAX_PADDING}), got {v}")
        return v

    @field_validator('backend')
    @classmethod
    def validate_backend(cls, v: str) -> str:
        allowed = {"pyautogui", "dry-run"}
        v = v.lower()
        if v not in allowed:
            raise ValueError(f"backend must be one of {sorted(allowed)}, got '{v}'")
        return v


# ============================================================================
# SIGNATURE PATH SCHEMA V1
# ============================================================================

class SignaturePathV1(BaseModel):
    """YAML export of a vectorized signature (signature_path.v1 schema)."""
    model_config = ConfigDict(populate_by_name=True, extra='forbid')

    schema_version: str = Field("signature_path.v1", alias="schema", description="Schema version")
    width: int = Field(..., ge=0, description="Canvas width (px)")
    height: int = Field(..., ge=0, description="Canvas height (px)")
    offset: List[int] = Field(default_factory=lambda: [0, 0], description="Crop origin [x, y] in the source image")
    strokes: List[List[List[float]]] = Field(default_factory=list, description="Strokes as [[x, y], ...]")

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "signature_path.v1":
            raise ValueError(f"Expected schema 'signature_path.v1', got '{v}'")
        return v

    @field_validator('offset')
    @classmethod
    def validate_offset(cls, v: List[int]) -> List[int]:
        if len(v) != 2:
            raise ValueError(f"offset must have 2 elements [x, y], got {len(v)}")
        return v

    @model_validator(mode='after')
    def validate_strokes(self) -> 'SignaturePathV1':
        for i, stroke in enumerate(self.strokes):
            if not stroke:
                raise ValueError(f"Stroke {i} is empty")
            for j, pt in enumerate(stroke):
                if len(pt) != 2:
                    raise ValueError(f"Stroke {i} point {j} must have 2 coordinates, got {len(pt)}")
        return self


# ============================================================================
# PUBLIC API
# ============================================================================

def _format_validation_error(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


def build_vectorize_config(base: Optional[VectorizeV1] = None, **overrides) -> VectorizeV1:
    """Build a validated vectorizer config from keyword overrides.

    Parameters
    ----------
    base : VectorizeV1, optional
        Starting values (e.g. loaded from YAML); defaults otherwise
    **overrides
        Field values to replace; ``None`` values are ignored so argparse
        namespaces can be passed through unchanged

    Raises
    ------
    ConfigurationError
        If any value fails validation
    """
    data: Dict[str, Any] = base.model_dump() if base is not None else {}
    data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return VectorizeV1(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid vectorizer config: {_format_validation_error(e)}") from e


def build_replay_config(base: Optional[ReplayV1] = None, **overrides) -> ReplayV1:
    """Same as build_vectorize_config for ReplayV1."""
    data: Dict[str, Any] = base.model_dump() if base is not None else {}
    data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return ReplayV1(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid replay config: {_format_validation_error(e)}") from e


def load_vectorize_config(path: Union[str, Path]) -> VectorizeV1:
    """Load and validate vectorizer config from YAML.

    Parameters
    ----------
    path : Union[str, Path]
        Path to a signature_vectorizer.v1 YAML file

    Returns
    -------
    VectorizeV1
        Validated vectorizer configuration

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ConfigurationError
        If validation fails (with the offending keys)
    """
    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Vectorizer config not found: {path}")

    data = fs.load_yaml(path)
    if not isinstance(data, dict):
        raise ConfigurationError(f"Vectorizer config at {path} must be a YAML mapping, got {type(data).__name__}")
    try:
        return VectorizeV1(**data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Vectorizer config validation failed at {path}: {_format_validation_error(e)}"
        ) from e


def load_replay_config(path: Union[str, Path]) -> ReplayV1:
    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Replay config not found: {path}")

    data = fs.load_yaml(path)
    if not isinstance(data, dict):
        raise ConfigurationError(f"Replay config at {path} must be a YAML mapping, got {type(data).__name__}")
    try:
        return ReplayV1(**data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Replay config validation failed at {path}: {_format_validation_error(e)}"
        ) from e


def load_signature_path(path: Union[str, Path]) -> SignaturePathV1:
    """Load and validate a signature_path.v1 YAML export.

    Raises
    ------
    InputError
        If the file is missing, unparsable or fails validation
    """
    import yaml

    from . import fs

    path = Path(path)
    if not path.exists():
        raise InputError(f"Signature path file not found: {path}")

    try:
        data = fs.load_yaml(path)
        if not isinstance(data, dict):
            raise InputError(f"Signature path file {path} must be a YAML mapping, got {type(data).__name__}")
        return SignaturePathV1(**data)
    except yaml.YAMLError as e:
        raise InputError(str(e)) from e
    except ValidationError as e:
        raise InputError(
            f"Signature path validation failed at {path}: {_format_validation_error(e)}"
        ) from e
