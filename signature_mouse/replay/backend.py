"""Pointer backends for the replay engine.

Backends
    ``pyautogui``
        Drives the real system pointer.  Imported lazily because pyautogui
        needs a display at import time.
    ``dry-run``
        Records every call in memory and never touches the pointer.  Used by
        ``--dry-run`` and by the tests.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------


class ReplayBackend(ABC):
    """Display surface + pointer abstraction consumed by ReplayEngine."""

    name: str = "abstract"

    @abstractmethod
    def screen_size(self) -> tuple[int, int]:
        """Return (width, height) of the primary screen in pixels."""

    @abstractmethod
    def get_cursor_position(self) -> tuple[int, int]:
        """Return the current pointer position."""

    @abstractmethod
    def move_to(self, x: int, y: int) -> None:
        """Move the pointer to an absolute screen position."""

    @abstractmethod
    def mouse_down(self) -> None:
        """Press the primary button (pen down)."""

    @abstractmethod
    def mouse_up(self) -> None:
        """Release the primary button (pen up)."""


# ---------------------------------------------------------------------------
# Implementations
# ---------------------------------------------------------------------------


class PyAutoGUIBackend(ReplayBackend):
    """Real pointer via pyautogui.

    pyautogui's fail-safe stays enabled: slamming the pointer into a screen
    corner raises ``pyautogui.FailSafeException`` and aborts the replay.
    """

    name = "pyautogui"

    def __init__(self) -> None:
        import pyautogui

        self._gui = pyautogui
        # Timing is handled by the engine
        self._gui.PAUSE = 0
        logger.debug("pyautogui backend ready (screen %dx%d)", *self.screen_size())

    def screen_size(self) -> tuple[int, int]:
        w, h = self._gui.size()
        return int(w), int(h)

    def get_cursor_position(self) -> tuple[int, int]:
        x, y = self._gui.position()
        return int(x), int(y)

    def move_to(self, x: int, y: int) -> None:
        self._gui.moveTo(x, y, _pause=False)

    def mouse_down(self) -> None:
        self._gui.mouseDown(_pause=False)

    def mouse_up(self) -> None:
        self._gui.mouseUp(_pause=False)


@dataclass
class PointerEvent:
    """One recorded backend call."""

    kind: str  # "move", "down" or "up"
    x: int
    y: int


@dataclass
class DryRunBackend(ReplayBackend):
    """In-memory backend that records pointer events."""

    cursor: tuple[int, int] = (0, 0)
    size: tuple[int, int] = (1920, 1080)
    events: list[PointerEvent] = field(default_factory=list)
    name: str = "dry-run"

    def screen_size(self) -> tuple[int, int]:
        return self.size

    def get_cursor_position(self) -> tuple[int, int]:
        return self.cursor

    def move_to(self, x: int, y: int) -> None:
        self.cursor = (x, y)
        self.events.append(PointerEvent("move", x, y))

    def mouse_down(self) -> None:
        self.events.append(PointerEvent("down", *self.cursor))

    def mouse_up(self) -> None:
        self.events.append(PointerEvent("up", *self.cursor))

    @property
    def moves(self) -> list[tuple[int, int]]:
        return [(e.x, e.y) for e in self.events if e.kind == "move"]

    def summary(self) -> str:
        downs = sum(1 for e in self.events if e.kind == "down")
        return f"{downs} stroke(s), {len(self.moves)} move(s)"


def create_backend(name: str) -> ReplayBackend:
    """Instantiate a backend by name ("pyautogui" or "dry-run")."""
    key = name.lower()
    if key == "pyautogui":
        try:
            return PyAutoGUIBackend()
        except ImportError as e:
            raise ConfigurationError(
                "The pyautogui backend needs the 'replay' extra (pip install signature-mouse[replay])"
            ) from e
    if key == "dry-run":
        return DryRunBackend()
    raise ValueError(f"Unknown backend: {name}")
