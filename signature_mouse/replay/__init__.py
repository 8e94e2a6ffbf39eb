"""Pointer replay of vectorized signatures.

Modules:
    - backend: ReplayBackend interface, pyautogui and dry-run backends
    - engine: placement (cursor anchor, scale/fit, target rectangle) and
      ReplayEngine
"""

from .backend import DryRunBackend, PyAutoGUIBackend, ReplayBackend, create_backend
from .engine import (
    Placement,
    ReplayEngine,
    ReplayStats,
    ScreenRect,
    compute_placement,
    resolve_placement,
)

__all__ = [
    'ReplayBackend',
    'PyAutoGUIBackend',
    'DryRunBackend',
    'create_backend',
    'Placement',
    'ReplayEngine',
    'ReplayStats',
    'ScreenRect',
    'compute_placement',
    'resolve_placement',
]
