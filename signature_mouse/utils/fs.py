"""Atomic file writes and YAML loading.

Provides:
    - Atomic writes: tmp file → fsync → rename, so a reader never sees a
      half-written SVG, YAML export or preview image
    - YAML load/dump (PyYAML safe API)
    - Directory creation with exist_ok semantics

Usage:
    from signature_mouse.utils import fs
    fs.atomic_write_text(out_dir / "signature.svg", svg_text)
    fs.atomic_save_image(preview, out_dir / "skeleton.png")
    fs.atomic_yaml_dump(signature.to_dict(), out_dir / "signature.yaml")

Named ``fs`` rather than ``io`` to avoid shadowing the stdlib module.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np
import yaml
from PIL import Image


def ensure_dir(p: Union[str, Path]) -> Path:
    """Create directory (and parents) if missing; return it as a Path."""
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p


def atomic_write_bytes(
    path: Union[str, Path],
    data: bytes,
    tmp_suffix: str = ".tmp"
) -> None:
    """Write bytes to ``path`` atomically.

    Parameters
    ----------
    path : Union[str, Path]
        Target file path
    data : bytes
        Payload
    tmp_suffix : str
        Suffix appended to the temporary sibling file, default ".tmp"

    Raises
    ------
    RuntimeError
        If creating the directory, writing or renaming fails; the temporary
        file is removed first.

    Notes
    -----
    The temporary file lives in the target directory so the final rename
    stays on one filesystem.
    """
    path = Path(path)
    tmp_path = path.with_suffix(path.suffix + tmp_suffix)
    try:
        ensure_dir(path.parent)
        with open(tmp_path, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        tmp_path.replace(path)
    except Exception as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise RuntimeError(f"Failed to write {path} atomically: {e}") from e


def atomic_write_text(
    path: Union[str, Path],
    text: str,
    encoding: str = "utf-8"
) -> None:
    atomic_write_bytes(path, text.encode(encoding))


def atomic_save_image(
    img: np.ndarray,
    path: Union[str, Path],
    pil_kwargs: Optional[Dict[str, Any]] = None
) -> None:
    """Save an image array atomically through Pillow.

    Parameters
    ----------
    img : np.ndarray
        (H, W) grayscale, (H, W, 3) RGB or (H, W, 4) RGBA. Boolean arrays
        are written as 0/255; other dtypes are clipped to [0, 255].
    path : Union[str, Path]
        Target path; the extension selects the format
    pil_kwargs : dict, optional
        Extra keyword arguments for ``PIL.Image.save``
    """
    path = Path(path)
    pil_kwargs = pil_kwargs or {}

    if img.dtype == np.bool_:
        img = img.astype(np.uint8) * 255
    elif img.dtype != np.uint8:
        img = np.clip(img, 0, 255).astype(np.uint8)
    if img.ndim == 3 and img.shape[2] == 1:
        img = img[:, :, 0]

    # Keep the real extension last so Pillow can infer the format
    tmp_path = path.with_name(path.stem + ".tmp" + path.suffix)
    try:
        ensure_dir(path.parent)
        Image.fromarray(img).save(tmp_path, **pil_kwargs)
        tmp_path.replace(path)
    except Exception as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise RuntimeError(f"Failed to save image {path} atomically: {e}") from e


def atomic_yaml_dump(obj: Any, path: Union[str, Path]) -> None:
    """Dump ``obj`` with ``yaml.safe_dump`` (insertion order kept) atomically."""
    yaml_str = yaml.safe_dump(
        obj,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True
    )
    atomic_write_bytes(path, yaml_str.encode('utf-8'))


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a YAML mapping with ``yaml.safe_load``.

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    yaml.YAMLError
        If parsing fails (message includes the path)
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Failed to parse YAML file {path}: {e}") from e
    return data if data is not None else {}
