"""Tests for X11WindowSystem against an in-memory display double."""

import os
import types

import pytest
from Xlib import X, XK, Xatom
from Xlib import error as xerror

import winleap.platform.x11_window_system as x11
from winleap.core.events import KeyKind
from winleap.platform.window_system import GrabStatus
from winleap.platform.x11_window_system import X11WindowSystem, keysym_to_char, keysym_to_event

DISPLAY = os.environ.get("DISPLAY")

ATOMS = {
    "_NET_CLIENT_LIST": 300,
    "_NET_WM_NAME": 301,
    "UTF8_STRING": 302,
    "_NET_WM_DESKTOP": 303,
    "_NET_ACTIVE_WINDOW": 304,
    "_NET_CURRENT_DESKTOP": 305,
}


class WindowGone(xerror.XError):
    """BadWindow stand-in that needs no wire data."""

    def __init__(self):
        Exception.__init__(self, "BadWindow")


def prop(value):
    return types.SimpleNamespace(value=value)


class FakeWindow:
    def __init__(self, wid, props=None, wm_name=None, broken=False):
        self.id = wid
        self.props = props or {}
        self.wm_name = wm_name
        self.broken = broken
        self.calls = []
        self.sent = []
        self.grab_status = X.GrabSuccess

    def get_full_property(self, atom, type_):
        if self.broken:
            raise WindowGone()
        return self.props.get(atom)

    def get_wm_name(self):
        return self.wm_name

    def map(self):
        self.calls.append("map")

    def configure(self, **kw):
        self.calls.append(("configure", kw))

    def set_input_focus(self, revert_to, time):
        self.calls.append(("set_input_focus", revert_to))

    def send_event(self, ev, event_mask=0):
        self.sent.append((ev, event_mask))

    def grab_keyboard(self, owner_events, pointer_mode, keyboard_mode, time):
        return self.grab_status


class FakeDisplay:
    def __init__(self, root, windows=()):
        self.root = root
        self.windows = {w.id: w for w in windows}
        self.windows[root.id] = root
        self.events = []
        self.keymap = {}
        self.flushed = 0
        self.ungrabbed = 0
        self.closed = False
        self.interned = []

    def screen(self):
        return types.SimpleNamespace(root=self.root)

    def intern_atom(self, name):
        self.interned.append(name)
        return ATOMS[name]

    def create_resource_object(self, kind, wid):
        return self.windows.setdefault(wid, FakeWindow(wid))

    def flush(self):
        self.flushed += 1

    def next_event(self):
        return self.events.pop(0)

    def keycode_to_keysym(self, keycode, index):
        return self.keymap.get((keycode, index), X.NoSymbol)

    def ungrab_keyboard(self, time):
        self.ungrabbed += 1

    def close(self):
        self.closed = True


@pytest.fixture
def desktop():
    firefox = FakeWindow(0x101, {
        Xatom.WM_CLASS: prop(b"Navigator\0Firefox\0"),
        ATOMS["_NET_WM_NAME"]: prop("Mozilla Firefox — ünïcode".encode("utf-8")),
        ATOMS["_NET_WM_DESKTOP"]: prop([1]),
    })
    xterm = FakeWindow(0x102, {
        Xatom.WM_CLASS: prop(b"xterm"),
        ATOMS["_NET_WM_DESKTOP"]: prop([0xFFFFFFFF]),
    }, wm_name="bash")
    no_class = FakeWindow(0x103, {ATOMS["_NET_WM_DESKTOP"]: prop([0])})
    gone = FakeWindow(0x104, broken=True)
    untitled = FakeWindow(0x105, {Xatom.WM_CLASS: prop(b"app\0App\0")})
    root = FakeWindow(0x1, {
        ATOMS["_NET_CLIENT_LIST"]: prop([0x101, 0x102, 0x103, 0x104, 0x105]),
        ATOMS["_NET_ACTIVE_WINDOW"]: prop([0x102]),
        ATOMS["_NET_CURRENT_DESKTOP"]: prop([2]),
    })
    return FakeDisplay(root, [firefox, xterm, no_class, gone, untitled])


# ------------------------------------------------------------------
# Window list
# ------------------------------------------------------------------

class TestListWindows:

    def test_reads_class_title_and_desktop(self, desktop):
        ws = X11WindowSystem(display=desktop)
        windows = ws.list_windows()
        assert [w.window_id for w in windows] == [0x101, 0x102, 0x105]
        firefox, xterm, app = windows
        assert firefox.wm_class == "Firefox"
        assert firefox.title == "Mozilla Firefox — ünïcode"
        assert firefox.workspace == 1
        assert xterm.wm_class == "xterm"   # instance only
        assert xterm.title == "bash"       # WM_NAME fallback
        assert xterm.workspace == -1       # sticky
        assert app.title == "(untitled)"
        assert app.workspace == -1         # no _NET_WM_DESKTOP

    def test_missing_client_list_raises(self, desktop):
        del desktop.root.props[ATOMS["_NET_CLIENT_LIST"]]
        with pytest.raises(x11.WindowSystemError):
            X11WindowSystem(display=desktop).list_windows()

    @pytest.mark.parametrize("raw, expected", [
        (b"xterm\0", "xterm"),            # instance only, NUL terminated
        (b"xterm", "xterm"),
        (b"navigator\0Firefox\0", "Firefox"),
        (b"\0Firefox\0", "Firefox"),
        (b"inst\0\0", "inst"),            # empty class part
    ])
    def test_wm_class_forms(self, raw, expected):
        win = FakeWindow(0x201, {Xatom.WM_CLASS: prop(raw)})
        root = FakeWindow(0x1, {ATOMS["_NET_CLIENT_LIST"]: prop([0x201])})
        windows = X11WindowSystem(display=FakeDisplay(root, [win])).list_windows()
        assert [w.wm_class for w in windows] == [expected]

    def test_atoms_are_interned_once(self, desktop):
        ws = X11WindowSystem(display=desktop)
        ws.list_windows()
        ws.list_windows()
        assert desktop.interned.count("_NET_WM_NAME") == 1


class TestQueries:

    def test_active_window(self, desktop):
        assert X11WindowSystem(display=desktop).active_window() == 0x102

    def test_no_active_window(self, desktop):
        desktop.root.props[ATOMS["_NET_ACTIVE_WINDOW"]] = prop([0])
        assert X11WindowSystem(display=desktop).active_window() is None

    def test_current_workspace(self, desktop):
        assert X11WindowSystem(display=desktop).current_workspace() == 2

    def test_current_workspace_unknown(self, desktop):
        del desktop.root.props[ATOMS["_NET_CURRENT_DESKTOP"]]
        assert X11WindowSystem(display=desktop).current_workspace() is None


# ------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------

class TestCommands:

    @pytest.fixture
    def messages(self, monkeypatch):
        sent = []

        def fake_client_message(**kw):
            sent.append(kw)
            return kw

        monkeypatch.setattr(x11.xevent, "ClientMessage", fake_client_message)
        return sent

    def test_activate_sends_net_active_window(self, desktop, messages):
        ws = X11WindowSystem(display=desktop)
        ws.activate(0x101)
        assert messages[0]["client_type"] == ATOMS["_NET_ACTIVE_WINDOW"]
        assert messages[0]["window"].id == 0x101
        assert messages[0]["data"] == (32, [2, X.CurrentTime, 0, 0, 0])
        ev, mask = desktop.root.sent[0]
        assert mask == X.SubstructureRedirectMask | X.SubstructureNotifyMask
        assert desktop.flushed

    def test_switch_workspace(self, desktop, messages):
        X11WindowSystem(display=desktop).switch_workspace(3)
        assert messages[0]["client_type"] == ATOMS["_NET_CURRENT_DESKTOP"]
        assert messages[0]["window"] is desktop.root
        assert messages[0]["data"][1][0] == 3

    def test_raise_and_focus(self, desktop):
        X11WindowSystem(display=desktop).raise_and_focus(0x101)
        calls = desktop.windows[0x101].calls
        assert calls[0] == "map"
        assert calls[1] == ("configure", {"stack_mode": X.Above})
        assert calls[2] == ("set_input_focus", X.RevertToPointerRoot)


# ------------------------------------------------------------------
# Keyboard
# ------------------------------------------------------------------

def key_press(keycode, state=0):
    return types.SimpleNamespace(type=X.KeyPress, detail=keycode, state=state)


class TestKeyboard:

    @pytest.mark.parametrize("x_status, expected", [
        (X.GrabSuccess, GrabStatus.SUCCESS),
        (X.AlreadyGrabbed, GrabStatus.ALREADY_HELD),
        (X.GrabFrozen, GrabStatus.OTHER_ERROR),
    ])
    def test_grab_status_mapping(self, desktop, x_status, expected):
        desktop.root.grab_status = x_status
        assert X11WindowSystem(display=desktop).acquire_keyboard() is expected

    def test_close_releases_held_grab(self, desktop):
        ws = X11WindowSystem(display=desktop)
        ws.acquire_keyboard()
        ws.close()
        assert desktop.ungrabbed == 1
        assert desktop.closed

    def test_close_without_grab(self, desktop):
        X11WindowSystem(display=desktop).close()
        assert desktop.ungrabbed == 0

    def test_next_key_event_skips_non_key_events(self, desktop):
        desktop.events = [types.SimpleNamespace(type=X.KeyRelease, detail=38, state=0), key_press(38)]
        desktop.keymap[(38, 0)] = XK.XK_a
        key = X11WindowSystem(display=desktop).next_key_event()
        assert key.kind is KeyKind.PRINTABLE
        assert key.char == "a"

    def test_shift_uses_second_keysym(self, desktop):
        desktop.events = [key_press(38, X.ShiftMask)]
        desktop.keymap[(38, 0)] = XK.XK_a
        desktop.keymap[(38, 1)] = XK.XK_A
        assert X11WindowSystem(display=desktop).next_key_event().char == "A"

    def test_shift_without_second_keysym_falls_back(self, desktop):
        desktop.events = [key_press(9, X.ShiftMask)]
        desktop.keymap[(9, 0)] = XK.XK_Escape
        assert X11WindowSystem(display=desktop).next_key_event().kind is KeyKind.CANCEL


class TestKeysymMapping:

    @pytest.mark.parametrize("keysym, kind", [
        (XK.XK_Escape, KeyKind.CANCEL),
        (XK.XK_Return, KeyKind.ENTER),
        (XK.XK_KP_Enter, KeyKind.ENTER),
        (XK.XK_BackSpace, KeyKind.BACKSPACE),
        (XK.XK_f, KeyKind.PRINTABLE),
        (XK.XK_F5, KeyKind.OTHER),
        (XK.XK_Shift_L, KeyKind.OTHER),
    ])
    def test_kinds(self, keysym, kind):
        assert keysym_to_event(keysym).kind is kind

    def test_other_carries_keysym_name(self):
        assert keysym_to_event(XK.XK_F5).name == "F5"

    def test_chars(self):
        assert keysym_to_char(XK.XK_2) == "2"
        assert keysym_to_char(XK.XK_KP_7) == "7"
        assert keysym_to_char(XK.XK_eacute) == "é"
        assert keysym_to_char(0x01000416) == "Ж"
        assert keysym_to_char(XK.XK_F1) == ""


# ------------------------------------------------------------------
# Live X11 tests (skipped when no DISPLAY — safe for CI)
# ------------------------------------------------------------------

@pytest.mark.skipif(not DISPLAY, reason="No DISPLAY — X11 tests skipped")
class TestLiveDisplay:

    def test_list_windows_returns_records(self):
        ws = X11WindowSystem()
        try:
            for rec in ws.list_windows():
                assert rec.wm_class
        except x11.WindowSystemError:
            pytest.skip("Window manager does not publish _NET_CLIENT_LIST")
        finally:
            ws.close()

    def test_current_workspace_is_int_or_none(self):
        ws = X11WindowSystem()
        try:
            value = ws.current_workspace()
            assert value is None or isinstance(value, int)
        finally:
            ws.close()
