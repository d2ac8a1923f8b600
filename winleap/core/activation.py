"""Two-phase window activation: switch workspace, then raise and focus."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from winleap.core.snapshot import WindowRecord
from winleap.platform.window_system import IWindowSystem

logger = logging.getLogger(__name__)

WORKSPACE_SETTLE_DELAY = 0.05


def needs_workspace_switch(target: WindowRecord, current_workspace: Optional[int]) -> bool:
    if target.workspace < 0:
        return False
    if current_workspace is None or current_workspace < 0:
        return True
    return target.workspace != current_workspace


def activate_window(
    window_system: IWindowSystem,
    target: WindowRecord,
    current_workspace: Optional[int] = None,
    sleep: Callable[[float], None] = time.sleep,
    settle_delay: float = WORKSPACE_SETTLE_DELAY,
) -> None:
    """Bring *target* to the front. Best effort, nothing is confirmed.

    Both the EWMH ``_NET_ACTIVE_WINDOW`` request and a direct
    raise + focus are sent; window managers that ignore one usually honour
    the other.
    """
    logger.info("Activating %s", target.describe())

    if needs_workspace_switch(target, current_workspace):
        logger.debug("Switching to workspace %d (current: %s)", target.workspace, current_workspace)
        window_system.switch_workspace(target.workspace)
        sleep(settle_delay)

    window_system.activate(target.window_id)
    window_system.raise_and_focus(target.window_id)
