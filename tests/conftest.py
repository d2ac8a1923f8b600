import signal
import os
import sys
import pytest

from winleap.core.events import KeyEvent
from winleap.core.snapshot import WindowRecord, WindowSnapshot
from winleap.platform.window_system import GrabStatus, IWindowSystem


def pytest_addoption(parser):
    parser.addoption(
        "--keyboard-watchdog",
        action="store",
        default="10",
        help="Timeout in seconds after which the watchdog aborts a test that may hold the X keyboard grab"
    )


class KeysExhausted(Exception):
    """Scripted key list ran out; a test would otherwise block forever."""


class FakeWindowSystem(IWindowSystem):
    """Scripted IWindowSystem: fixed windows, replayed keys, recorded calls."""

    def __init__(self, windows=(), keys=(), active=None, workspace=0,
                 grab_statuses=(), list_error=None):
        self.windows = list(windows)
        self.keys = list(keys)
        self.active = active
        self.workspace = workspace
        self.grab_statuses = list(grab_statuses)
        self.list_error = list_error
        self.calls = []
        self.grab_attempts = 0
        self.grabbed = False
        self.closed = False
        self.keys_read_while_grabbed = 0

    def list_windows(self):
        self.calls.append(("list_windows",))
        if self.list_error is not None:
            raise self.list_error
        return list(self.windows)

    def active_window(self):
        self.calls.append(("active_window",))
        return self.active

    def current_workspace(self):
        self.calls.append(("current_workspace",))
        return self.workspace

    def switch_workspace(self, index):
        self.calls.append(("switch_workspace", index))

    def activate(self, window_id):
        self.calls.append(("activate", window_id))

    def raise_and_focus(self, window_id):
        self.calls.append(("raise_and_focus", window_id))

    def acquire_keyboard(self):
        self.grab_attempts += 1
        self.calls.append(("acquire_keyboard",))
        status = self.grab_statuses.pop(0) if self.grab_statuses else GrabStatus.SUCCESS
        if status is GrabStatus.SUCCESS:
            self.grabbed = True
        return status

    def release_keyboard(self):
        self.calls.append(("release_keyboard",))
        self.grabbed = False

    def next_key_event(self):
        if not self.keys:
            raise KeysExhausted("no more scripted keys")
        if self.grabbed:
            self.keys_read_while_grabbed += 1
        return self.keys.pop(0)

    def close(self):
        self.closed = True

    # -- helpers for assertions --------------------------------------------

    def call_names(self):
        return [c[0] for c in self.calls]

    def activated(self):
        return [c[1] for c in self.calls if c[0] == "activate"]


def keys(text, enter=False):
    """KeyEvents for typing *text* (optionally followed by Enter)."""
    events = [KeyEvent.printable(ch) for ch in text]
    if enter:
        events.append(KeyEvent.enter())
    return events


def make_snapshot(*entries):
    """WindowSnapshot from (class, title[, workspace]) tuples; ids start at 0x100."""
    records = []
    for idx, entry in enumerate(entries):
        wm_class, title = entry[0], entry[1]
        workspace = entry[2] if len(entry) > 2 else 0
        records.append(WindowRecord(window_id=0x100 + idx, wm_class=wm_class, title=title, workspace=workspace))
    return WindowSnapshot.from_records(records)


@pytest.fixture
def no_sleep():
    """Sleep replacement that records requested durations."""
    slept = []

    def sleep(seconds):
        slept.append(seconds)

    sleep.calls = slept
    return sleep


@pytest.fixture
def browser_snapshot():
    return make_snapshot(
        ("Firefox", "Tab A"),
        ("Firefox", "Tab B"),
        ("Alacritty", "term"),
    )


@pytest.fixture(autouse=True)
def keyboard_watchdog(request):
    timeout = int(request.config.getoption('--keyboard-watchdog') or 10)

    def handler(signum, frame):
        # Exiting closes every X connection of this process, which drops any keyboard grab
        print(f"⚠️ Keyboard watchdog triggered after {timeout}s; aborting test run to free the keyboard.", file=sys.stderr)
        os._exit(70)

    old_handler = signal.signal(signal.SIGALRM, handler)
    signal.alarm(timeout)
    try:
        yield
    finally:
        signal.alarm(0)
        signal.signal(signal.SIGALRM, old_handler)
