"""State definitions and PromptContext dataclass for free typing."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from winleap.core.match_engine import MatchResult


class State(Enum):
    PROMPTING = auto()
    UNIQUE = auto()
    CANCELLED = auto()


TERMINAL_STATES = frozenset({State.UNIQUE, State.CANCELLED})


@dataclass
class PromptContext:
    state: State = State.PROMPTING

    # Lower-cased characters typed so far
    buffer: list[str] = field(default_factory=list)

    # Result of the last match attempt
    last_result: Optional[MatchResult] = None

    @property
    def text(self) -> str:
        return "".join(self.buffer)
