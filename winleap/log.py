"""TRACE logging level for winleap.

winleap logs at four levels:
    TRACE =  5  — each raw key event and each ignored transition
    DEBUG = 10  — snapshot contents, prefix table, match progress
    INFO  = 20  — activations, cancellations, startup/shutdown
    WARNING+    — caps hit, nothing to activate, setup failures

Importing this module once gives every ``logging.Logger`` a ``trace()``
method; modules that call it import ``winleap.log`` for that side effect.
"""

import logging

TRACE: int = 5


def _trace(self: logging.Logger, message: object, *args: object, **kwargs: object) -> None:
    if self.isEnabledFor(TRACE):
        self._log(TRACE, message, args, **kwargs)  # type: ignore[attr-defined]


def install() -> None:
    """Register the TRACE level name and Logger.trace(); safe to call again."""
    if logging.getLevelName(TRACE) != "TRACE":
        logging.addLevelName(TRACE, "TRACE")
    if getattr(logging.Logger, "trace", None) is not _trace:
        logging.Logger.trace = _trace  # type: ignore[attr-defined]


install()
