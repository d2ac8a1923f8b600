"""WindowRecord, WindowSnapshot and the Limits that cap them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator

logger = logging.getLogger(__name__)

UNTITLED = "(untitled)"
UNKNOWN_WORKSPACE = -1


@dataclass(frozen=True)
class Limits:
    """Upper bounds on the data a single run works with.

    Anything beyond a limit is dropped (and logged), never an error.
    """
    max_windows: int = 256
    max_groups: int = 128
    max_marks: int = 100
    max_buffer: int = 63


DEFAULT_LIMITS = Limits()


@dataclass(frozen=True)
class WindowRecord:
    window_id: int          # X11 window id, opaque to the engine
    wm_class: str           # class part of WM_CLASS, case preserved
    title: str = UNTITLED
    workspace: int = UNKNOWN_WORKSPACE

    @property
    def class_key(self) -> str:
        """Lower-cased class used for grouping and comparison."""
        return self.wm_class.lower()

    def describe(self) -> str:
        return f"[{self.window_id}] desktop={self.workspace} {self.wm_class} - {self.title}"


@dataclass(frozen=True)
class WindowSnapshot:
    """Point-in-time, ordered list of windows in client-list order."""
    windows: tuple[WindowRecord, ...] = field(default_factory=tuple)

    @classmethod
    def from_records(
        cls,
        records: Iterable[WindowRecord],
        limits: Limits = DEFAULT_LIMITS,
    ) -> WindowSnapshot:
        kept: list[WindowRecord] = []
        dropped = 0
        for rec in records:
            if not rec.wm_class:
                # A window without a readable class never reaches grouping
                logger.debug("Skipping window %s without WM_CLASS", rec.window_id)
                continue
            if len(kept) >= limits.max_windows:
                dropped += 1
                continue
            kept.append(rec)
        if dropped:
            logger.warning(
                "Window cap reached: kept %d windows, dropped %d", limits.max_windows, dropped
            )
        return cls(windows=tuple(kept))

    def __len__(self) -> int:
        return len(self.windows)

    def __iter__(self) -> Iterator[WindowRecord]:
        return iter(self.windows)

    def __bool__(self) -> bool:
        return bool(self.windows)
