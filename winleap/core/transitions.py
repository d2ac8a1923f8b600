"""State transition rules for the free-typing prompt."""

from __future__ import annotations

from winleap.core.states import State


# Allowed transitions: {from_state: {event_name: to_state}}
TRANSITIONS: dict[State, dict[str, State]] = {
    State.PROMPTING: {
        "unique": State.UNIQUE,
        "cancel": State.CANCELLED,
    },
    # UNIQUE and CANCELLED are terminal
}


def can_transition(from_state: State, event_name: str) -> bool:
    return event_name in TRANSITIONS.get(from_state, {})


def next_state(from_state: State, event_name: str) -> State:
    try:
        return TRANSITIONS[from_state][event_name]
    except KeyError:
        raise ValueError(f"No transition from {from_state!r} on event {event_name!r}")
