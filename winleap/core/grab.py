"""Keyboard grab acquisition with bounded exponential backoff.

Right after a global-hotkey launch the window manager (or the hotkey
daemon) usually still holds the keyboard for a few milliseconds, so the
first XGrabKeyboard answers AlreadyGrabbed. We retry up to 10 times,
sleeping 10 ms, 15 ms, 22.5 ms, ... in between.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Callable, Iterator

import winleap.log  # registers TRACE level and logger.trace()
from winleap.platform.window_system import GrabStatus, IWindowSystem

logger = logging.getLogger(__name__)

MAX_GRAB_ATTEMPTS = 10
INITIAL_DELAY_US = 10_000


class GrabError(RuntimeError):
    def __init__(self, status: GrabStatus, attempts: int):
        super().__init__(f"Failed to grab keyboard ({status.name} after {attempts} attempts)")
        self.status = status
        self.attempts = attempts


def backoff_delays_us(attempts: int = MAX_GRAB_ATTEMPTS, initial_us: int = INITIAL_DELAY_US) -> list[int]:
    """Sleep durations (µs) between *attempts* tries: 10000, 15000, 22500, ..."""
    delays = []
    delay = initial_us
    for _ in range(attempts - 1):
        delays.append(delay)
        delay = delay * 3 // 2
    return delays


def acquire_keyboard(
    window_system: IWindowSystem,
    max_attempts: int = MAX_GRAB_ATTEMPTS,
    initial_delay_us: int = INITIAL_DELAY_US,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Grab the keyboard, retrying while somebody else holds it.

    Returns the number of attempts used. Raises ``GrabError`` on any
    status other than ALREADY_HELD, or when the attempts run out.
    """
    delay_us = initial_delay_us
    status = GrabStatus.OTHER_ERROR
    for attempt in range(1, max_attempts + 1):
        status = window_system.acquire_keyboard()
        if status is GrabStatus.SUCCESS:
            if attempt > 1:
                logger.debug("Keyboard grabbed on attempt %d", attempt)
            return attempt
        if status is GrabStatus.ALREADY_HELD and attempt < max_attempts:
            logger.trace("Keyboard already grabbed, retrying in %d us", delay_us)  # type: ignore[attr-defined]
            sleep(delay_us / 1_000_000)
            delay_us = delay_us * 3 // 2
            continue
        logger.error("Failed to grab keyboard (%s, attempt %d)", status.name, attempt)
        raise GrabError(status, attempt)
    raise GrabError(status, max_attempts)


@contextmanager
def keyboard_grab(
    window_system: IWindowSystem,
    sleep: Callable[[float], None] = time.sleep,
) -> Iterator[IWindowSystem]:
    """Hold the keyboard grab for the duration of the block.

    The grab is released on every exit path, including exceptions raised
    inside the block. Nothing is released if acquisition itself failed.
    """
    acquire_keyboard(window_system, sleep=sleep)
    try:
        yield window_system
    finally:
        window_system.release_keyboard()
        logger.debug("Keyboard released")
