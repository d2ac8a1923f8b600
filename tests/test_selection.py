"""Tests for mark-mode disambiguation (cycle and keyed policies)."""

from __future__ import annotations

import pytest

from winleap.core.event_bus import EventBus
from winleap.core.events import EventType, KeyEvent
from winleap.core.selection import (
    SelectionError,
    SelectionSession,
    assign_selectors,
    select_cycle,
)
from tests.conftest import make_snapshot


@pytest.fixture
def candidates():
    return list(make_snapshot(("Slack", "w1"), ("Slack", "w2"), ("Slack", "w3")))


# ------------------------------------------------------------------
# Cycle policy
# ------------------------------------------------------------------

class TestSelectCycle:

    def test_active_in_middle_goes_to_next(self, candidates):
        assert select_cycle(candidates, candidates[1].window_id).title == "w3"

    def test_active_last_wraps_to_first(self, candidates):
        assert select_cycle(candidates, candidates[2].window_id).title == "w1"

    def test_active_not_a_candidate_takes_first(self, candidates):
        assert select_cycle(candidates, 0xbeef).title == "w1"

    def test_unknown_active_takes_first(self, candidates):
        assert select_cycle(candidates, None).title == "w1"

    def test_empty_candidates(self):
        with pytest.raises(SelectionError):
            select_cycle([], None)


# ------------------------------------------------------------------
# Keyed policy
# ------------------------------------------------------------------

class TestAssignSelectors:

    def test_assigns_in_discovery_order(self, candidates):
        mapping = assign_selectors("qaz", candidates)
        assert {k: w.title for k, w in mapping.items()} == {"q": "w1", "a": "w2", "z": "w3"}

    def test_uses_only_needed_prefix_of_alphabet(self, candidates):
        assert list(assign_selectors("asdfgh", candidates)) == ["a", "s", "d"]

    def test_alphabet_too_short(self, candidates):
        with pytest.raises(SelectionError, match=r"Too many windows \(3\) for instance_keys length \(2\)"):
            assign_selectors("qa", candidates)


class TestSelectionSession:

    def test_press_selects_assigned_window(self, candidates):
        session = SelectionSession.create("qaz", candidates)
        assert session.feed(KeyEvent.printable("a")) is True
        assert session.selected.title == "w2"

    def test_selection_is_case_insensitive(self, candidates):
        session = SelectionSession.create("qaz", candidates)
        session.feed(KeyEvent.printable("Z"))
        assert session.selected.title == "w3"

    def test_unassigned_key_is_ignored(self, candidates):
        bus = EventBus()
        ignored = []
        bus.subscribe(EventType.SELECTOR_IGNORED, lambda e: ignored.append(e.data))
        session = SelectionSession.create("qaz", candidates)
        assert session.feed(KeyEvent.printable("x"), bus) is False
        assert not session.finished
        assert ignored == ["x"]

    def test_non_printable_keys_are_ignored(self, candidates):
        session = SelectionSession.create("qaz", candidates)
        for ev in (KeyEvent.enter(), KeyEvent.backspace(), KeyEvent.other("F1")):
            assert session.feed(ev) is False
        assert not session.finished

    def test_cancel(self, candidates):
        session = SelectionSession.create("qaz", candidates)
        session.feed(KeyEvent.cancel())
        assert session.cancelled
        assert session.selected is None

    def test_run_waits_for_assigned_key(self, candidates):
        script = iter([KeyEvent.printable("x"), KeyEvent.other("Tab"), KeyEvent.printable("a")])
        session = SelectionSession.create("qaz", candidates)
        assert session.run(lambda: next(script)).title == "w2"

    def test_run_returns_none_on_cancel(self, candidates):
        script = iter([KeyEvent.printable("x"), KeyEvent.cancel()])
        session = SelectionSession.create("qaz", candidates)
        assert session.run(lambda: next(script)) is None

    def test_run_announces_assignments(self, candidates):
        bus = EventBus()
        started = []
        bus.subscribe(EventType.SELECTION_STARTED, started.append)
        script = iter([KeyEvent.printable("q")])
        SelectionSession.create("qaz", candidates).run(lambda: next(script), bus)
        assert list(started[0].data.assignments) == ["q", "a", "z"]

    def test_create_fails_before_reading_keys(self, candidates):
        def next_event():
            raise AssertionError("no key should be read")

        with pytest.raises(SelectionError):
            SelectionSession.create("qaz", candidates + candidates[:1]).run(next_event)
