"""Mark file loader for winleap.

The mark file is a flat ``key=value`` list::

    # number = WM_CLASS
    1=firefox
    2=Alacritty
    7=Slack
    instance_keys=asdfjkl;
    debug=false

``load_config(path)`` returns a frozen :class:`MarkConfig`; anything the
parser cannot accept raises :class:`ConfigError`.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

from winleap.core.snapshot import DEFAULT_LIMITS, Limits

logger = logging.getLogger(__name__)

DEFAULT_INSTANCE_KEYS = "qwertyuiopasdfghjklzxcvbnm1234567890"
CONFIG_FILENAME = "winleap.conf"

_LINE_RE = re.compile(r"^\s*([A-Za-z_]+|\d+)\s*=\s*(.*\S)\s*$", re.ASCII)

_TRUE_VALUES = frozenset({"true", "yes", "1"})
_FALSE_VALUES = frozenset({"false", "no", "0"})


class ConfigError(ValueError):
    """Mark file missing, unreadable or invalid."""


@dataclass(frozen=True)
class MarkMapping:
    number: int
    wm_class: str


@dataclass(frozen=True)
class MarkConfig:
    marks: tuple[MarkMapping, ...] = ()
    instance_keys: str = DEFAULT_INSTANCE_KEYS
    debug: bool = False
    path: Optional[str] = field(default=None, compare=False)

    def class_for_mark(self, number: int) -> Optional[str]:
        """WM_CLASS bound to *number*; the first entry wins on duplicates."""
        for mark in self.marks:
            if mark.number == number:
                return mark.wm_class
        return None


# ------------------------------------------------------------------
# Value parsers
# ------------------------------------------------------------------

def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"Invalid debug value: {value!r}")


def parse_instance_keys(raw: str) -> str:
    """Normalize an instance_keys value.

    Whitespace and non-printable characters are dropped and the rest is
    lower-cased. Selectors must be distinct.
    """
    seen: set[str] = set()
    keys: list[str] = []
    for ch in raw:
        if ch.isspace() or not ch.isprintable():
            continue
        ch = ch.lower()
        if ch in seen:
            raise ConfigError(f"Duplicate selector key in instance_keys: {ch!r}")
        seen.add(ch)
        keys.append(ch)
    if not keys:
        raise ConfigError("instance_keys cannot be empty")
    return "".join(keys)


# ------------------------------------------------------------------
# Parsing
# ------------------------------------------------------------------

def parse_config_lines(
    lines: Iterable[str],
    limits: Limits = DEFAULT_LIMITS,
    path: Optional[str] = None,
) -> MarkConfig:
    """Parse mark file lines. Does not require any mark to be present."""
    marks: list[MarkMapping] = []
    instance_keys = DEFAULT_INSTANCE_KEYS
    debug = False
    dropped = 0

    for lineno, raw_line in enumerate(lines, start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        m = _LINE_RE.match(line)
        if not m:
            logger.debug("Skipping line %d: %r", lineno, line)
            continue
        key, value = m.group(1), m.group(2)
        lowered = key.lower()

        if lowered == "instance_keys":
            instance_keys = parse_instance_keys(value)
            continue
        if lowered == "debug":
            debug = parse_bool(value)
            continue
        if not key.isdigit():
            # Unknown keys are left for future versions
            logger.debug("Skipping unknown key %r on line %d", key, lineno)
            continue

        number = int(key)
        if number <= 0:
            continue
        if len(marks) >= limits.max_marks:
            dropped += 1
            continue
        marks.append(MarkMapping(number=number, wm_class=value))

    if dropped:
        logger.warning("Mark cap reached (%d): dropped %d mark lines", limits.max_marks, dropped)

    return MarkConfig(marks=tuple(marks), instance_keys=instance_keys, debug=debug, path=path)


def load_config(path: str, limits: Limits = DEFAULT_LIMITS) -> MarkConfig:
    """Read and parse the mark file at *path*.

    Raises ``ConfigError`` when the file cannot be read, a value is
    invalid, or no mark mapping was loaded.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            config = parse_config_lines(f, limits=limits, path=path)
    except OSError as exc:
        raise ConfigError(f"Failed to open config: {path} ({exc.strerror})") from exc
    except UnicodeDecodeError as exc:
        raise ConfigError(f"Config is not valid UTF-8: {path}") from exc

    if not config.marks:
        raise ConfigError(f"No mark mappings in config: {path}")
    for mark in config.marks:
        logger.debug("  Mark %d -> %s", mark.number, mark.wm_class)
    logger.debug("Loaded %d marks from %s", len(config.marks), path)
    return config


# ------------------------------------------------------------------
# Path resolution
# ------------------------------------------------------------------

def config_candidates(argv0: str = "", environ: Optional[dict] = None) -> list[str]:
    """Config file locations in lookup order (without ``--config``)."""
    env = os.environ if environ is None else environ
    candidates = []
    xdg = env.get("XDG_CONFIG_HOME")
    if xdg:
        candidates.append(os.path.join(xdg, "winleap", CONFIG_FILENAME))
    home = env.get("HOME")
    if home:
        candidates.append(os.path.join(home, ".config", "winleap", CONFIG_FILENAME))
    exe_dir = os.path.dirname(argv0) if argv0 else ""
    candidates.append(os.path.join(exe_dir, CONFIG_FILENAME) if exe_dir else CONFIG_FILENAME)
    return candidates


def resolve_config_path(
    override: Optional[str] = None,
    argv0: str = "",
    environ: Optional[dict] = None,
) -> str:
    """Pick the config file to use.

    ``--config`` wins; otherwise the first readable candidate; if none is
    readable, the first candidate (so error messages name a sensible path).
    """
    if override:
        return override
    candidates = config_candidates(argv0, environ)
    for candidate in candidates:
        if os.access(candidate, os.R_OK):
            return candidate
    return candidates[0]


def resolve_debug_log_path(environ: Optional[dict] = None) -> str:
    env = os.environ if environ is None else environ
    state = env.get("XDG_STATE_HOME")
    if state:
        base = os.path.join(state, "winleap")
    elif env.get("HOME"):
        base = os.path.join(env["HOME"], ".local", "state", "winleap")
    else:
        base = "."
    return os.path.join(base, "debug.log")
