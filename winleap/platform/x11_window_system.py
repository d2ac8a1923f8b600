"""X11WindowSystem — IWindowSystem on top of python-xlib and EWMH.

Reads ``_NET_CLIENT_LIST`` / ``WM_CLASS`` / ``_NET_WM_NAME`` /
``_NET_WM_DESKTOP`` for the snapshot, sends ``_NET_CURRENT_DESKTOP`` and
``_NET_ACTIVE_WINDOW`` client messages for activation and grabs the
keyboard on the root window for key input.
"""

from __future__ import annotations

import logging
from typing import Optional

from Xlib import X, XK, Xatom
from Xlib import display as xdisplay
from Xlib import error as xerror
from Xlib.protocol import event as xevent

import winleap.log  # registers TRACE level and logger.trace()
from winleap.core.events import KeyEvent
from winleap.core.snapshot import UNKNOWN_WORKSPACE, UNTITLED, WindowRecord
from winleap.platform.window_system import GrabStatus, IWindowSystem, WindowSystemError

logger = logging.getLogger(__name__)

# _NET_WM_DESKTOP value for windows shown on every desktop
ALL_DESKTOPS = 0xFFFFFFFF

# Source indication for _NET_ACTIVE_WINDOW: 2 = pager
SOURCE_PAGER = 2

_CLIENT_MESSAGE_MASK = X.SubstructureRedirectMask | X.SubstructureNotifyMask


def _as_text(value, encoding: str = "latin-1") -> str:
    if isinstance(value, bytes):
        return value.decode(encoding, errors="replace")
    return str(value)


def keysym_to_char(keysym: int) -> str:
    """Printable character for a Latin-1, Unicode or keypad-digit keysym."""
    if 0x20 <= keysym <= 0x7E or 0xA0 <= keysym <= 0xFF:
        return chr(keysym)
    if 0x01000100 <= keysym <= 0x0110FFFF:
        return chr(keysym - 0x01000000)
    if XK.XK_KP_0 <= keysym <= XK.XK_KP_9:
        return chr(ord("0") + keysym - XK.XK_KP_0)
    return ""


_KEYSYM_NAMES: dict[int, str] = {}


def keysym_name(keysym: int) -> str:
    """XKeysymToString equivalent over the keysym tables python-xlib has loaded."""
    if not _KEYSYM_NAMES:
        for attr, value in vars(XK).items():
            if attr.startswith("XK_") and isinstance(value, int):
                _KEYSYM_NAMES.setdefault(value, attr[3:])
    return _KEYSYM_NAMES.get(keysym, f"0x{keysym:x}")


def keysym_to_event(keysym: int) -> KeyEvent:
    if keysym == XK.XK_Escape:
        return KeyEvent.cancel()
    if keysym in (XK.XK_Return, XK.XK_KP_Enter):
        return KeyEvent.enter()
    if keysym == XK.XK_BackSpace:
        return KeyEvent.backspace()
    char = keysym_to_char(keysym)
    if char and char.isprintable():
        return KeyEvent.printable(char)
    return KeyEvent.other(keysym_name(keysym))


class X11WindowSystem(IWindowSystem):
    """Real window system adapter. Pass *display* to inject a test double."""

    def __init__(self, display=None, display_name: Optional[str] = None) -> None:
        if display is None:
            try:
                display = xdisplay.Display(display_name)
            except xerror.DisplayError as exc:
                raise WindowSystemError(f"Cannot open display: {exc}") from exc
        self._display = display
        self._root = display.screen().root
        self._atoms: dict[str, int] = {}
        self._grabbed = False

    # -- private helpers ----------------------------------------------------

    def _atom(self, name: str) -> int:
        atom = self._atoms.get(name)
        if atom is None:
            atom = self._atoms[name] = self._display.intern_atom(name)
        return atom

    def _window(self, window_id: int):
        return self._display.create_resource_object("window", window_id)

    def _cardinal(self, window, name: str) -> Optional[int]:
        prop = window.get_full_property(self._atom(name), Xatom.CARDINAL)
        if prop is None or not len(prop.value):
            return None
        return int(prop.value[0])

    def _send_client_message(self, window_id: int, name: str, data: list[int]) -> None:
        ev = xevent.ClientMessage(
            window=self._window(window_id),
            client_type=self._atom(name),
            data=(32, (data + [0] * 5)[:5]),
        )
        self._root.send_event(ev, event_mask=_CLIENT_MESSAGE_MASK)
        self._display.flush()

    def read_wm_class(self, window) -> str:
        """Class part of WM_CLASS (instance when no class is set), '' if unreadable."""
        prop = window.get_full_property(Xatom.WM_CLASS, Xatom.STRING)
        if prop is None or not prop.value:
            return ""
        text = _as_text(prop.value)
        if text.endswith("\0"):
            text = text[:-1]
        parts = text.split("\0")
        if len(parts) > 1 and parts[1]:
            return parts[1]
        return parts[0]

    def read_title(self, window) -> str:
        prop = window.get_full_property(self._atom("_NET_WM_NAME"), self._atom("UTF8_STRING"))
        if prop is not None and prop.value:
            return _as_text(prop.value, "utf-8")
        name = window.get_wm_name()
        if name:
            return _as_text(name)
        return UNTITLED

    def read_workspace(self, window) -> int:
        desktop = self._cardinal(window, "_NET_WM_DESKTOP")
        if desktop is None or desktop == ALL_DESKTOPS:
            return UNKNOWN_WORKSPACE
        return desktop

    # -- IWindowSystem -------------------------------------------------------

    def list_windows(self) -> list[WindowRecord]:
        prop = self._root.get_full_property(self._atom("_NET_CLIENT_LIST"), Xatom.WINDOW)
        if prop is None:
            raise WindowSystemError("Cannot get _NET_CLIENT_LIST")

        records = []
        for window_id in prop.value:
            window = self._window(window_id)
            try:
                wm_class = self.read_wm_class(window)
                if not wm_class:
                    continue
                record = WindowRecord(
                    window_id=int(window_id),
                    wm_class=wm_class,
                    title=self.read_title(window),
                    workspace=self.read_workspace(window),
                )
            except xerror.XError as exc:
                # Window went away between listing and reading it
                logger.debug("Skipping window %s: %s", window_id, exc)
                continue
            logger.debug("  Found: %s", record.describe())
            records.append(record)
        logger.debug("Total windows: %d", len(records))
        return records

    def active_window(self) -> Optional[int]:
        prop = self._root.get_full_property(self._atom("_NET_ACTIVE_WINDOW"), Xatom.WINDOW)
        if prop is None or not len(prop.value) or not prop.value[0]:
            return None
        return int(prop.value[0])

    def current_workspace(self) -> Optional[int]:
        return self._cardinal(self._root, "_NET_CURRENT_DESKTOP")

    def switch_workspace(self, index: int) -> None:
        self._send_client_message(self._root.id, "_NET_CURRENT_DESKTOP", [index, X.CurrentTime])

    def activate(self, window_id: int) -> None:
        self._send_client_message(window_id, "_NET_ACTIVE_WINDOW", [SOURCE_PAGER, X.CurrentTime, 0])

    def raise_and_focus(self, window_id: int) -> None:
        window = self._window(window_id)
        window.map()
        window.configure(stack_mode=X.Above)
        window.set_input_focus(X.RevertToPointerRoot, X.CurrentTime)
        self._display.flush()

    def acquire_keyboard(self) -> GrabStatus:
        status = self._root.grab_keyboard(True, X.GrabModeAsync, X.GrabModeAsync, X.CurrentTime)
        if status == X.GrabSuccess:
            self._grabbed = True
            self._display.flush()
            return GrabStatus.SUCCESS
        if status == X.AlreadyGrabbed:
            return GrabStatus.ALREADY_HELD
        logger.debug("XGrabKeyboard returned %d", status)
        return GrabStatus.OTHER_ERROR

    def release_keyboard(self) -> None:
        self._display.ungrab_keyboard(X.CurrentTime)
        self._display.flush()
        self._grabbed = False

    def next_key_event(self) -> KeyEvent:
        while True:
            ev = self._display.next_event()
            if ev.type != X.KeyPress:
                continue
            shifted = bool(ev.state & X.ShiftMask)
            keysym = self._display.keycode_to_keysym(ev.detail, 1 if shifted else 0)
            if keysym == X.NoSymbol and shifted:
                keysym = self._display.keycode_to_keysym(ev.detail, 0)
            key = keysym_to_event(keysym)
            logger.trace("KeyPress keycode=%d keysym=0x%x -> %s", ev.detail, keysym, key)  # type: ignore[attr-defined]
            return key

    def close(self) -> None:
        if self._grabbed:
            self.release_keyboard()
        self._display.close()
