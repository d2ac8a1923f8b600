"""Typed event definitions (dataclasses)."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any


class KeyKind(Enum):
    PRINTABLE = auto()
    BACKSPACE = auto()
    ENTER = auto()
    CANCEL = auto()
    OTHER = auto()


@dataclass(frozen=True)
class KeyEvent:
    kind: KeyKind
    char: str = ""          # set for PRINTABLE
    name: str = ""          # keysym name, e.g. 'Escape', 'F5'

    @classmethod
    def printable(cls, char: str) -> KeyEvent:
        return cls(KeyKind.PRINTABLE, char=char, name=char)

    @classmethod
    def backspace(cls) -> KeyEvent:
        return cls(KeyKind.BACKSPACE, name="BackSpace")

    @classmethod
    def enter(cls) -> KeyEvent:
        return cls(KeyKind.ENTER, name="Return")

    @classmethod
    def cancel(cls) -> KeyEvent:
        return cls(KeyKind.CANCEL, name="Escape")

    @classmethod
    def other(cls, name: str = "") -> KeyEvent:
        return cls(KeyKind.OTHER, name=name)


class EventType(Enum):
    # Free-typing progress
    MATCH_UPDATED = auto()
    # Mark mode
    SELECTION_STARTED = auto()
    SELECTOR_IGNORED = auto()
    # Outcomes
    WINDOW_ACTIVATED = auto()
    CANCELLED = auto()


@dataclass
class Event:
    type: EventType
    data: Any = None
    timestamp: float = field(default_factory=time.time)


@dataclass
class MatchEventData:
    buffer: str
    result: Any             # MatchResult


@dataclass
class SelectionEventData:
    assignments: dict[str, Any]     # selector char -> WindowRecord
