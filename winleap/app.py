"""WinLeapApp — one invocation: snapshot, resolve, activate."""

from __future__ import annotations

import logging
import time
from enum import IntEnum
from typing import Callable, Optional

import winleap.log  # registers TRACE level and logger.trace()
from winleap.config import MarkConfig
from winleap.core.activation import activate_window
from winleap.core.event_bus import EventBus
from winleap.core.events import EventType
from winleap.core.grab import GrabError, keyboard_grab
from winleap.core.match_engine import match_class
from winleap.core.prefix_engine import compute_prefixes
from winleap.core.selection import SelectionError, SelectionPolicy, SelectionSession, select_cycle
from winleap.core.snapshot import DEFAULT_LIMITS, Limits, WindowRecord, WindowSnapshot
from winleap.core.state_manager import StateManager
from winleap.core.states import State
from winleap.platform.window_system import IWindowSystem, WindowSystemError

logger = logging.getLogger(__name__)


class ExitStatus(IntEnum):
    SUCCESS = 0         # a window was activated
    CANCELLED = 1       # user pressed Escape
    SETUP_FAILURE = 2   # no display / window list / grab / valid config
    NO_MATCH = 3        # nothing to activate


class WinLeapApp:
    """Runs one of the selection modes against a window system.

    The window system is created lazily by ``_init_platform()`` so that
    tests can inject a fake without touching a real X server.
    """

    def __init__(
        self,
        window_system: Optional[IWindowSystem] = None,
        config: Optional[MarkConfig] = None,
        bus: Optional[EventBus] = None,
        limits: Limits = DEFAULT_LIMITS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.window_system = window_system
        self.config = config
        self.bus = bus if bus is not None else EventBus()
        self.limits = limits
        self._sleep = sleep

    def __enter__(self) -> WinLeapApp:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Platform
    # ------------------------------------------------------------------

    def _init_platform(self) -> IWindowSystem:
        if self.window_system is None:
            from winleap.platform.x11_window_system import X11WindowSystem
            self.window_system = X11WindowSystem()
        return self.window_system

    def close(self) -> None:
        if self.window_system is not None:
            self.window_system.close()

    def take_snapshot(self) -> WindowSnapshot:
        ws = self._init_platform()
        return WindowSnapshot.from_records(ws.list_windows(), self.limits)

    def _activate(self, target: WindowRecord, current_workspace: Optional[int] = None) -> None:
        ws = self._init_platform()
        if current_workspace is None:
            current_workspace = ws.current_workspace()
        activate_window(ws, target, current_workspace, sleep=self._sleep)
        self.bus.emit(EventType.WINDOW_ACTIVATED, target)

    # ------------------------------------------------------------------
    # Free typing
    # ------------------------------------------------------------------

    def run_prefix_mode(self) -> ExitStatus:
        """Grab the keyboard, then resolve typed characters to a window.

        The grab comes first so that keys typed right after the hotkey
        are not lost while the window list is read.
        """
        try:
            ws = self._init_platform()
            with keyboard_grab(ws, sleep=self._sleep):
                snapshot = self.take_snapshot()
                if not snapshot:
                    logger.warning("No windows to switch to")
                    return ExitStatus.NO_MATCH
                table = compute_prefixes(snapshot, self.limits)
                manager = StateManager(table, bus=self.bus, limits=self.limits)
                logger.debug("Waiting for input (Escape cancels)")
                state = manager.run(ws.next_key_event)
        except GrabError as exc:
            logger.error("%s", exc)
            return ExitStatus.SETUP_FAILURE
        except WindowSystemError as exc:
            logger.error("%s", exc)
            return ExitStatus.SETUP_FAILURE

        if state is State.CANCELLED:
            logger.info("Cancelled by user")
            self.bus.emit(EventType.CANCELLED)
            return ExitStatus.CANCELLED

        target = manager.selected
        logger.info("Unique match %r", manager.buffer)
        self._activate(target)
        return ExitStatus.SUCCESS

    # ------------------------------------------------------------------
    # Marks
    # ------------------------------------------------------------------

    def run_mark_mode(
        self,
        mark: int,
        current_workspace_only: bool = False,
        policy: SelectionPolicy = SelectionPolicy.KEYED,
    ) -> ExitStatus:
        if self.config is None:
            logger.error("Mark mode needs a loaded config")
            return ExitStatus.SETUP_FAILURE

        target_class = self.config.class_for_mark(mark)
        if target_class is None:
            logger.error("No mapping found for mark %d", mark)
            return ExitStatus.NO_MATCH
        logger.debug("Mark %d -> WM_CLASS %s", mark, target_class)

        try:
            ws = self._init_platform()
            snapshot = self.take_snapshot()
            current_workspace = ws.current_workspace() if current_workspace_only else None
        except WindowSystemError as exc:
            logger.error("%s", exc)
            return ExitStatus.SETUP_FAILURE

        candidates = match_class(snapshot, target_class, current_workspace_only, current_workspace)
        if not candidates:
            logger.warning(
                "No windows found for: %s%s",
                target_class, " (current workspace)" if current_workspace_only else "",
            )
            return ExitStatus.NO_MATCH
        for idx, rec in enumerate(candidates):
            logger.debug("  [%d] %s", idx, rec.describe())

        if len(candidates) == 1:
            target = candidates[0]
            logger.debug("Single instance: immediate activation")
        elif policy is SelectionPolicy.CYCLE:
            active = ws.active_window()
            logger.debug("Active window: %s", active)
            target = select_cycle(candidates, active)
        else:
            try:
                target = self._select_keyed(ws, candidates)
            except SelectionError as exc:
                logger.error("%s", exc)
                return ExitStatus.SETUP_FAILURE
            except GrabError as exc:
                logger.error("Instance selection: %s", exc)
                return ExitStatus.SETUP_FAILURE
            if target is None:
                self.bus.emit(EventType.CANCELLED)
                return ExitStatus.CANCELLED

        self._activate(target, current_workspace)
        return ExitStatus.SUCCESS

    def _select_keyed(self, ws: IWindowSystem, candidates: list[WindowRecord]) -> Optional[WindowRecord]:
        # Raises SelectionError before any grab when the alphabet is too short
        session = SelectionSession.create(self.config.instance_keys, candidates)
        logger.debug("Multiple instances (%d): entering instance-select mode", len(candidates))
        with keyboard_grab(ws, sleep=self._sleep):
            return session.run(ws.next_key_event, self.bus)
