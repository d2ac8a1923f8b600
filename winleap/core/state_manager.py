"""StateManager — drives the free-typing prompt one key event at a time."""

from __future__ import annotations

import logging
from typing import Callable, Optional

import winleap.log  # registers TRACE level and logger.trace()
from winleap.core.event_bus import EventBus
from winleap.core.events import EventType, KeyEvent, KeyKind, MatchEventData
from winleap.core.match_engine import MatchResult, match_prefix
from winleap.core.prefix_engine import PrefixTable
from winleap.core.snapshot import DEFAULT_LIMITS, Limits, WindowRecord
from winleap.core.states import TERMINAL_STATES, PromptContext, State
from winleap.core.transitions import can_transition, next_state

logger = logging.getLogger(__name__)


class StateManager:
    """Consumes key events and resolves the typed buffer to one window.

    Feed events with :meth:`feed` (tests replay a scripted list) or let
    :meth:`run` pull them from a blocking event source until the prompt
    reaches UNIQUE or CANCELLED.
    """

    def __init__(
        self,
        table: PrefixTable,
        bus: Optional[EventBus] = None,
        limits: Limits = DEFAULT_LIMITS,
    ):
        self.table = table
        self.bus = bus
        self.limits = limits
        self.context = PromptContext()

    @property
    def state(self) -> State:
        return self.context.state

    @property
    def buffer(self) -> str:
        return self.context.text

    @property
    def finished(self) -> bool:
        return self.context.state in TERMINAL_STATES

    @property
    def selected(self) -> Optional[WindowRecord]:
        if self.context.state is State.UNIQUE and self.context.last_result is not None:
            return self.context.last_result.window
        return None

    def _transition(self, event_name: str) -> bool:
        if not can_transition(self.context.state, event_name):
            logger.trace("Ignored transition %r from %s", event_name, self.context.state)  # type: ignore[attr-defined]
            return False
        new_state = next_state(self.context.state, event_name)
        logger.debug("State: %s → %s (on %r)", self.context.state, new_state, event_name)
        self.context.state = new_state
        return True

    def _evaluate(self) -> MatchResult:
        result = match_prefix(self.context.text, self.table)
        self.context.last_result = result
        if self.bus is not None:
            self.bus.emit(EventType.MATCH_UPDATED, MatchEventData(buffer=self.context.text, result=result))
        return result

    # -- event handlers -----------------------------------------------------

    def on_char(self, char: str) -> None:
        if len(self.context.buffer) >= self.limits.max_buffer:
            logger.debug("Buffer full (%d chars), ignoring %r", self.limits.max_buffer, char)
            return
        for ch in char.lower():
            if len(self.context.buffer) >= self.limits.max_buffer:
                break
            self.context.buffer.append(ch)
        result = self._evaluate()
        if result.is_unique:
            self._transition("unique")

    def on_backspace(self) -> None:
        if self.context.buffer:
            self.context.buffer.pop()
        self._evaluate()

    def on_enter(self) -> None:
        if not self.context.buffer:
            return
        result = self._evaluate()
        if result.is_unique:
            self._transition("unique")

    def on_cancel(self) -> None:
        self._transition("cancel")

    def feed(self, event: KeyEvent) -> State:
        """Apply one key event and return the resulting state."""
        if self.finished:
            return self.context.state
        logger.trace("Key %s %r, buffer=%r", event.kind.name, event.char or event.name, self.buffer)  # type: ignore[attr-defined]
        if event.kind is KeyKind.CANCEL:
            self.on_cancel()
        elif event.kind is KeyKind.BACKSPACE:
            self.on_backspace()
        elif event.kind is KeyKind.ENTER:
            self.on_enter()
        elif event.kind is KeyKind.PRINTABLE and event.char:
            self.on_char(event.char)
        return self.context.state

    def run(self, next_event: Callable[[], KeyEvent]) -> State:
        """Pull events from *next_event* until a terminal state is reached."""
        while not self.finished:
            self.feed(next_event())
        return self.context.state
