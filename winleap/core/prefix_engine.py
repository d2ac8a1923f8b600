"""Shortest-unique-prefix identifiers for the free-typing mode.

Windows are grouped by lower-cased application class. Each group gets the
shortest prefix of its class that no other group's class starts with; a
group with several windows appends the 1-based window ordinal, so three
Firefox windows next to one Alacritty become ``f1``, ``f2``, ``f3`` and
``a``.

When one class is itself a prefix of another (``code`` vs ``code-oss``)
no such prefix exists for the shorter one and the full class is used.
That group is reported in :attr:`PrefixTable.ambiguous_groups`; typing
its identifier still leaves the longer class as a candidate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from winleap.core.snapshot import DEFAULT_LIMITS, Limits, WindowRecord, WindowSnapshot

logger = logging.getLogger(__name__)


@dataclass
class AppGroup:
    class_key: str
    windows: list[WindowRecord] = field(default_factory=list)
    prefix_len: int = 0

    @property
    def prefix(self) -> str:
        return self.class_key[:self.prefix_len]

    @property
    def full_length_fallback(self) -> bool:
        return self.prefix_len == len(self.class_key)


@dataclass(frozen=True)
class PrefixEntry:
    identifier: str
    window: WindowRecord


@dataclass(frozen=True)
class PrefixTable:
    entries: tuple[PrefixEntry, ...]
    groups: tuple[AppGroup, ...]
    ambiguous_groups: tuple[str, ...] = ()


def group_windows(snapshot: WindowSnapshot, limits: Limits = DEFAULT_LIMITS) -> list[AppGroup]:
    """Group windows by lower-cased class, in order of first appearance."""
    groups: dict[str, AppGroup] = {}
    dropped: set[str] = set()
    for rec in snapshot:
        key = rec.class_key
        group = groups.get(key)
        if group is None:
            if len(groups) >= limits.max_groups:
                dropped.add(key)
                continue
            group = groups[key] = AppGroup(class_key=key)
        group.windows.append(rec)
    if dropped:
        logger.warning(
            "Group cap reached (%d): dropped classes %s", limits.max_groups, sorted(dropped)
        )
    return list(groups.values())


def shortest_unique_prefix_len(class_key: str, others: list[str]) -> int:
    """Smallest L such that ``class_key[:L]`` differs from every other ``other[:L]``.

    Falls back to ``len(class_key)`` when every length collides.
    """
    for length in range(1, len(class_key) + 1):
        head = class_key[:length]
        if all(other[:length] != head for other in others):
            return length
    return len(class_key)


def compute_prefixes(snapshot: WindowSnapshot, limits: Limits = DEFAULT_LIMITS) -> PrefixTable:
    """Assign an identifier to every window of *snapshot* (within the group cap)."""
    groups = group_windows(snapshot, limits)
    keys = [g.class_key for g in groups]
    ambiguous: list[str] = []

    for idx, group in enumerate(groups):
        others = keys[:idx] + keys[idx + 1:]
        group.prefix_len = shortest_unique_prefix_len(group.class_key, others)
        if group.full_length_fallback and any(o.startswith(group.class_key) for o in others):
            ambiguous.append(group.class_key)
            logger.debug("Prefix for %r falls back to the full class", group.class_key)

    by_key = {g.class_key: g for g in groups}
    ordinals: dict[str, int] = {}
    entries: list[PrefixEntry] = []
    for rec in snapshot:
        group = by_key.get(rec.class_key)
        if group is None:
            continue  # dropped by the group cap
        if len(group.windows) == 1:
            identifier = group.prefix
        else:
            ordinals[group.class_key] = ordinals.get(group.class_key, 0) + 1
            identifier = f"{group.prefix}{ordinals[group.class_key]}"
        entries.append(PrefixEntry(identifier=identifier, window=rec))
        logger.debug("  %r -> %s", identifier, rec.describe())

    return PrefixTable(entries=tuple(entries), groups=tuple(groups), ambiguous_groups=tuple(ambiguous))
