#!/usr/bin/env python3
"""
winleap CLI entry points with debug-file logging
"""

from __future__ import annotations
import sys
import argparse
import os
import logging
import logging.handlers
import traceback
from pathlib import Path

import winleap.log  # registers TRACE level and logger.trace()
from winleap.__version__ import __version__
from winleap.app import ExitStatus, WinLeapApp
from winleap.config import ConfigError, load_config, resolve_config_path, resolve_debug_log_path
from winleap.core.event_bus import EventBus
from winleap.core.events import Event, EventType
from winleap.core.match_engine import MatchKind
from winleap.core.selection import SelectionPolicy
from winleap.platform.window_system import WindowSystemError

LOG_FORMAT = '[%(asctime)s] %(levelname)-8s %(message)s'
LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'


def setup_logging(debug: bool = False, log_file: str | None = None) -> logging.Logger:
    """Setup logging to stderr and, when debugging, to the debug log file

    Args:
        debug: Enable debug level logging
        log_file: Path to the debug log (only opened when given)
    """
    logger = logging.getLogger('winleap')
    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    # Calling twice (tests, --debug after config) must not duplicate output
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # Console handler (only problems in production, all in debug)
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if debug else logging.WARNING)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    logger.addHandler(console_handler)

    if log_file is not None:
        attach_file_handler(logger, log_file)

    return logger


def attach_file_handler(logger: logging.Logger, log_file: str) -> bool:
    """Log everything to *log_file* (rotated). Returns False if it can't be opened."""
    try:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10*1024*1024,  # 10 MB
            backupCount=5,  # Keep 5 old log files
        )
    except OSError as e:
        print(f"Warning: cannot open debug log file {log_file}: {e}", file=sys.stderr)
        return False
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    logger.addHandler(file_handler)
    logger.setLevel(logging.DEBUG)
    return True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='winleap',
        description='Jump to an open window: type its prefix, or pass a mark number',
        epilog=(
            'Config resolution order: --config, $XDG_CONFIG_HOME/winleap/winleap.conf, '
            '~/.config/winleap/winleap.conf, winleap.conf next to the executable. '
            'Exit status: 0 activated, 1 cancelled, 2 setup failure, 3 nothing to activate.'
        ),
    )
    parser.add_argument(
        'mark',
        nargs='?',
        type=int,
        default=None,
        help='Mark number from the config; omit to type a window prefix instead'
    )
    parser.add_argument(
        '--current-workspace',
        action='store_true',
        help='Only consider windows in the current workspace (mark mode)'
    )
    parser.add_argument(
        '--cycle',
        action='store_true',
        help='Cycle through instances instead of picking one with instance keys'
    )
    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Path to the mark file'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Force debug logging on for this run'
    )
    parser.add_argument(
        '--logfile',
        type=str,
        default=None,
        help='Path to the debug log (default: $XDG_STATE_HOME/winleap/debug.log)'
    )
    parser.add_argument(
        '--open-debug',
        action='store_true',
        help='Print the debug log path and contents, then exit'
    )
    parser.add_argument(
        '--version',
        action='version',
        version='%(prog)s ' + __version__
    )
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.mark is not None and args.mark <= 0:
        parser.error(f"Invalid mark number: {args.mark}")
    return args


def print_debug_log(debug_path: str) -> int:
    print(f"Debug log path: {debug_path}")
    try:
        with open(debug_path, 'r', encoding='utf-8', errors='replace') as f:
            contents = f.read()
    except FileNotFoundError:
        print("Debug log does not exist yet. Run with debug enabled to create it.")
        return 0
    except OSError as e:
        print(f"Failed to open debug log: {e}", file=sys.stderr)
        return 1
    print("\n----- begin debug log -----")
    print(contents)
    print("----- end debug log -----")
    return 0


def subscribe_reporters(bus: EventBus, log: logging.Logger) -> None:
    """Report engine progress through the log."""

    def on_match(event: Event) -> None:
        result = event.data.result
        if result.kind is MatchKind.NO_MATCH:
            log.debug(f"NO MATCH for buffer={event.data.buffer!r}")
        elif result.kind is MatchKind.AMBIGUOUS:
            log.debug(f"PARTIAL MATCH: {len(result)} possible for buffer={event.data.buffer!r}")

    def on_selection(event: Event) -> None:
        for key, rec in event.data.assignments.items():
            log.info(f"  '{key}' -> {rec.describe()}")

    def on_activated(event: Event) -> None:
        log.info(f"Activated {event.data.describe()}")

    def on_cancelled(event: Event) -> None:
        log.info("Cancelled, no window activated")

    def on_ignored(event: Event) -> None:
        log.debug(f"Ignored key {event.data!r}: not an instance key")

    bus.subscribe(EventType.MATCH_UPDATED, on_match)
    bus.subscribe(EventType.SELECTION_STARTED, on_selection)
    bus.subscribe(EventType.WINDOW_ACTIVATED, on_activated)
    bus.subscribe(EventType.CANCELLED, on_cancelled)
    bus.subscribe(EventType.SELECTOR_IGNORED, on_ignored)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for winleap"""
    args = parse_args(argv)

    config_path = resolve_config_path(args.config, argv0=sys.argv[0])
    debug_path = args.logfile or resolve_debug_log_path()

    if args.open_debug:
        return print_debug_log(debug_path)

    # Setup logging first
    log = setup_logging(debug=args.debug, log_file=debug_path if args.debug else None)

    config = None
    if args.mark is not None:
        try:
            config = load_config(config_path)
        except ConfigError as e:
            log.error(f"Failed to read config: {e}")
            return int(ExitStatus.SETUP_FAILURE)
        if config.debug and not args.debug:
            attach_file_handler(log, debug_path)

    log.info(f"{'='*40}")
    log.info(f"winleap started (version {__version__}, PID {os.getpid()})")
    if args.mark is not None:
        log.info(f"Mark requested: {args.mark}")
        log.info(f"Scope: {'current workspace' if args.current_workspace else 'global'}")
        log.info(f"Config path: {config_path}")
        log.info(f"Instance keys: {config.instance_keys}")
    else:
        log.info("Mode: prefix typing")

    bus = EventBus()
    subscribe_reporters(bus, log)
    status = ExitStatus.SETUP_FAILURE
    try:
        with WinLeapApp(config=config, bus=bus) as app:
            if args.mark is None:
                status = app.run_prefix_mode()
            else:
                policy = SelectionPolicy.CYCLE if args.cycle else SelectionPolicy.KEYED
                status = app.run_mark_mode(
                    args.mark,
                    current_workspace_only=args.current_workspace,
                    policy=policy,
                )
    except WindowSystemError as e:
        log.error(f"❌ {e}")
        status = ExitStatus.SETUP_FAILURE
    except KeyboardInterrupt:
        log.info("Interrupted (Ctrl+C)")
        status = ExitStatus.CANCELLED
    except Exception as e:
        log.error(f"❌ Unhandled error: {type(e).__name__}: {e}")
        log.debug(traceback.format_exc())
        status = ExitStatus.SETUP_FAILURE
    finally:
        log.info(f"Exit status: {status.name}")

    return int(status)


def grab_keys_main(argv: list[str] | None = None) -> int:
    """Grab the keyboard and print one line per key press until Escape.

    Output protocol: ``READY`` once the grab is held, then ``KEY:<char>``,
    ``RETURN``, ``BACKSPACE`` or ``SYM:<keysym name>``; ``ESCAPE`` ends it.
    """
    from winleap.core.events import KeyKind
    from winleap.core.grab import GrabError, keyboard_grab
    from winleap.platform.x11_window_system import X11WindowSystem

    parser = argparse.ArgumentParser(
        prog='winleap-grab-keys',
        description='Grab the keyboard and echo key presses to stdout',
    )
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    args = parser.parse_args(argv)
    log = setup_logging(debug=args.debug)

    try:
        ws = X11WindowSystem()
    except WindowSystemError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    try:
        with keyboard_grab(ws):
            _emit('READY')
            while True:
                key = ws.next_key_event()
                if key.kind is KeyKind.CANCEL:
                    _emit('ESCAPE')
                    break
                if key.kind is KeyKind.ENTER:
                    _emit('RETURN')
                elif key.kind is KeyKind.BACKSPACE:
                    _emit('BACKSPACE')
                elif key.kind is KeyKind.PRINTABLE:
                    _emit(f'KEY:{key.char}')
                elif key.name:
                    _emit(f'SYM:{key.name}')
    except GrabError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except BrokenPipeError:
        log.debug("Reader went away")
        return 0
    finally:
        ws.close()
    return 0


def _emit(line: str) -> None:
    sys.stdout.write(line + '\n')
    sys.stdout.flush()


if __name__ == '__main__':
    sys.exit(main())
