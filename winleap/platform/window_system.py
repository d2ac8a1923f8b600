"""IWindowSystem interface, GrabStatus and WindowSystemError."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import Optional

from winleap.core.events import KeyEvent
from winleap.core.snapshot import WindowRecord


class WindowSystemError(RuntimeError):
    """The display or the window list could not be read."""


class GrabStatus(Enum):
    SUCCESS = auto()
    ALREADY_HELD = auto()
    OTHER_ERROR = auto()


class IWindowSystem(ABC):
    """Everything the engine needs from the window manager.

    Commands (``switch_workspace``, ``activate``, ``raise_and_focus``) are
    fire-and-forget: implementations flush the request and return.
    """

    @abstractmethod
    def list_windows(self) -> list[WindowRecord]: ...

    @abstractmethod
    def active_window(self) -> Optional[int]: ...

    @abstractmethod
    def current_workspace(self) -> Optional[int]: ...

    @abstractmethod
    def switch_workspace(self, index: int) -> None: ...

    @abstractmethod
    def activate(self, window_id: int) -> None: ...

    @abstractmethod
    def raise_and_focus(self, window_id: int) -> None: ...

    @abstractmethod
    def acquire_keyboard(self) -> GrabStatus: ...

    @abstractmethod
    def release_keyboard(self) -> None: ...

    @abstractmethod
    def next_key_event(self) -> KeyEvent: ...

    def close(self) -> None:
        """Release the connection. Default: nothing to release."""
