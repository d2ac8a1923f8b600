"""MatchResult and the two pure matchers (typed prefix, fixed class)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from winleap.core.prefix_engine import PrefixTable
from winleap.core.snapshot import WindowRecord, WindowSnapshot


class MatchKind(Enum):
    NO_MATCH = auto()
    UNIQUE = auto()
    AMBIGUOUS = auto()


@dataclass(frozen=True)
class MatchResult:
    kind: MatchKind
    candidates: tuple[WindowRecord, ...] = ()

    @classmethod
    def from_candidates(cls, candidates: list[WindowRecord]) -> MatchResult:
        if not candidates:
            return cls(MatchKind.NO_MATCH)
        if len(candidates) == 1:
            return cls(MatchKind.UNIQUE, (candidates[0],))
        return cls(MatchKind.AMBIGUOUS, tuple(candidates))

    @property
    def window(self) -> Optional[WindowRecord]:
        """The matched window for a UNIQUE result, else None."""
        return self.candidates[0] if self.kind is MatchKind.UNIQUE else None

    @property
    def is_unique(self) -> bool:
        return self.kind is MatchKind.UNIQUE

    def __len__(self) -> int:
        return len(self.candidates)


def match_prefix(buffer: str, table: PrefixTable) -> MatchResult:
    """Windows whose identifier starts with *buffer*, case-insensitively.

    An empty buffer matches everything and is always AMBIGUOUS.
    """
    if not buffer:
        return MatchResult(MatchKind.AMBIGUOUS, tuple(e.window for e in table.entries))
    needle = buffer.lower()
    return MatchResult.from_candidates(
        [e.window for e in table.entries if e.identifier.lower().startswith(needle)]
    )


def match_class(
    snapshot: WindowSnapshot,
    target_class: str,
    scope_workspace: bool = False,
    current_workspace: Optional[int] = None,
) -> list[WindowRecord]:
    """Windows whose class equals *target_class*, case-insensitively.

    With *scope_workspace* only windows on *current_workspace* count; an
    unknown current workspace then matches nothing.
    """
    wanted = target_class.lower()
    found = []
    for rec in snapshot:
        if rec.class_key != wanted:
            continue
        if scope_workspace:
            if current_workspace is None or current_workspace < 0:
                continue
            if rec.workspace != current_workspace:
                continue
        found.append(rec)
    return found
