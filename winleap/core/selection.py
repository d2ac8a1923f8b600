"""Mark-mode disambiguation: cycle to the next instance, or pick one by key.

Cycle policy: when the active window is one of the candidates, the next
candidate in discovery order is chosen (wrapping around); otherwise the
first one.

Keyed policy: every candidate gets one character of the instance-key
alphabet, in order (``q`` → first window, ``w`` → second, ...), and a
single key press picks the window. The alphabet must be at least as long
as the candidate list; there is no fallback to cycling.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Sequence

import winleap.log  # registers TRACE level and logger.trace()
from winleap.core.event_bus import EventBus
from winleap.core.events import EventType, KeyEvent, KeyKind, SelectionEventData
from winleap.core.snapshot import WindowRecord

logger = logging.getLogger(__name__)


class SelectionPolicy(Enum):
    CYCLE = "cycle"
    KEYED = "keyed"


class SelectionError(RuntimeError):
    """Candidates cannot be disambiguated with the configured keys."""


def select_cycle(candidates: Sequence[WindowRecord], active_window: Optional[int]) -> WindowRecord:
    """Window to activate under the cycle policy."""
    if not candidates:
        raise SelectionError("No candidates to cycle through")
    for idx, rec in enumerate(candidates):
        if active_window is not None and rec.window_id == active_window:
            target = candidates[(idx + 1) % len(candidates)]
            logger.debug("Active window is candidate %d, cycling to %s", idx, target.window_id)
            return target
    logger.debug("Active window %s is not a candidate, taking the first", active_window)
    return candidates[0]


def assign_selectors(alphabet: str, candidates: Sequence[WindowRecord]) -> dict[str, WindowRecord]:
    """Map the first ``len(candidates)`` alphabet characters to the candidates."""
    if len(candidates) > len(alphabet):
        raise SelectionError(
            f"Too many windows ({len(candidates)}) for instance_keys length ({len(alphabet)})"
        )
    return {alphabet[i].lower(): rec for i, rec in enumerate(candidates)}


@dataclass
class SelectionSession:
    """One disambiguation episode in keyed mode."""
    candidates: list[WindowRecord]
    assignments: dict[str, WindowRecord] = field(default_factory=dict)
    selected: Optional[WindowRecord] = None
    cancelled: bool = False

    @classmethod
    def create(cls, alphabet: str, candidates: Sequence[WindowRecord]) -> SelectionSession:
        return cls(candidates=list(candidates), assignments=assign_selectors(alphabet, candidates))

    @property
    def finished(self) -> bool:
        return self.cancelled or self.selected is not None

    def feed(self, event: KeyEvent, bus: Optional[EventBus] = None) -> bool:
        """Apply one key event; True once the session is resolved either way."""
        if self.finished:
            return True
        if event.kind is KeyKind.CANCEL:
            logger.info("Selection cancelled by user")
            self.cancelled = True
            return True
        if event.kind is not KeyKind.PRINTABLE or not event.char:
            logger.trace("Ignored non-selector key %r", event.name)  # type: ignore[attr-defined]
            return False
        typed = event.char[0].lower()
        rec = self.assignments.get(typed)
        if rec is None:
            logger.debug("Ignored selector key %r", typed)
            if bus is not None:
                bus.emit(EventType.SELECTOR_IGNORED, typed)
            return False
        logger.debug("Selected %r -> %s", typed, rec.describe())
        self.selected = rec
        return True

    def run(self, next_event: Callable[[], KeyEvent], bus: Optional[EventBus] = None) -> Optional[WindowRecord]:
        """Wait for a selector key. Returns the chosen window, None if cancelled."""
        if bus is not None:
            bus.emit(EventType.SELECTION_STARTED, SelectionEventData(assignments=dict(self.assignments)))
        while not self.finished:
            self.feed(next_event(), bus)
        return self.selected
