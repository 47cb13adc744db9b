"""SprayFlow command-line interface.

Argparse-based CLI that initializes structured logging early and drives
sessions either in real time on a Qt event loop (``run``) or on simulated
time (``simulate``). Exposed via ``python -m sprayflow``.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import signal
import sys
from dataclasses import replace
from typing import Optional

# Keep pygame's banner out of stdout so JSON outputs stay parseable.
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

from .catalog import CATEGORY_LABELS, MOVEMENT_CATEGORIES, MovementCategory, all_movements, movements_in, parse_category
from .engine.outputs import DeviceOutputs, NullOutputs
from .engine.selector import MovementSelector
from .logging_utils import LogMode, get_default_log_path, setup_logging
from .session.clock import ManualTickSource
from .session.events import SessionEvent, SessionEventType
from .session.runner import SessionRunner, enabled_movement_count
from .session.stats import format_time
from .settings import DURATION_RANGE_MIN, INTERVAL_RANGE_S, Settings, SettingsError, SettingsStore

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CONFIG = 2


def _add_logging_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Set log level (default: WARNING)",
    )
    parser.add_argument(
        "--log-mode",
        choices=[mode.value for mode in LogMode],
        default=LogMode.NORMAL.value,
        help="Logging preset: quiet suppresses console info, trace forces DEBUG with per-second clock lines",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help=f"Path to log file (default: {get_default_log_path().name} in the per-user SprayFlow directory)",
    )
    parser.add_argument(
        "--log-format",
        choices=["plain", "json"],
        default="plain",
        help="Log format (plain or json)",
    )


def _build_logging_parent() -> argparse.ArgumentParser:
    parent = argparse.ArgumentParser(add_help=False)
    _add_logging_args(parent)
    return parent


def _category_arg(text: str) -> MovementCategory:
    try:
        return parse_category(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


def _add_settings_args(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group("session settings")
    group.add_argument(
        "--interval", type=int, default=None, metavar="SECONDS",
        help=f"Seconds between movements (controls offer {INTERVAL_RANGE_S[0]}-{INTERVAL_RANGE_S[1]})",
    )
    length = group.add_mutually_exclusive_group()
    length.add_argument(
        "--minutes", type=int, default=None,
        help=f"Session length in minutes (controls offer {DURATION_RANGE_MIN[0]}-{DURATION_RANGE_MIN[1]})",
    )
    length.add_argument("--seconds", type=int, default=None, help="Session length in seconds")
    group.add_argument(
        "--category", dest="categories", action="append", type=_category_arg, default=None,
        help="Only draw from this category (repeatable; replaces the saved selection)",
    )
    group.add_argument("--enable", action="append", type=_category_arg, default=None, help="Enable one category")
    group.add_argument("--disable", action="append", type=_category_arg, default=None, help="Disable one category")
    group.add_argument("--voice", action=argparse.BooleanOptionalAction, default=None, help="Speak movement names")
    group.add_argument("--beep", action=argparse.BooleanOptionalAction, default=None, help="Beep with each movement")


def _settings_from_args(base: Settings, args: argparse.Namespace) -> Settings:
    """Apply command-line overrides on top of *base*."""
    settings = base
    if getattr(args, "interval", None) is not None:
        settings = replace(settings, interval=args.interval)
    if getattr(args, "minutes", None) is not None:
        settings = replace(settings, duration=args.minutes * 60)
    elif getattr(args, "seconds", None) is not None:
        settings = replace(settings, duration=args.seconds)
    if getattr(args, "categories", None):
        settings = replace(settings, enabled_categories=tuple(args.categories))
    for category in getattr(args, "enable", None) or []:
        settings = settings.with_category(category, True)
    for category in getattr(args, "disable", None) or []:
        settings = settings.with_category(category, False)
    if getattr(args, "voice", None) is not None:
        settings = replace(settings, use_voice=args.voice)
    if getattr(args, "beep", None) is not None:
        settings = replace(settings, use_beep=args.beep)
    return settings


def _format_settings(settings: Settings) -> list[str]:
    enabled = ", ".join(CATEGORY_LABELS[c] for c in settings.enabled_categories) or "(none)"
    return [
        f"Interval:   {settings.interval}s",
        f"Duration:   {format_time(settings.duration)} ({settings.duration}s)",
        f"Categories: {enabled}",
        f"Movements:  {enabled_movement_count(settings)} eligible",
        f"Voice:      {'on' if settings.use_voice else 'off'}",
        f"Beep:       {'on' if settings.use_beep else 'off'}",
    ]


# ===== movements =====

def cmd_movements(args) -> int:
    wanted = args.categories or list(MOVEMENT_CATEGORIES)
    movements = movements_in(wanted, all_movements())
    if args.json:
        print(json.dumps([m.to_dict() for m in movements], ensure_ascii=False))
        return EXIT_OK
    for category in MOVEMENT_CATEGORIES:
        group = [m for m in movements if m.category is category]
        if not group:
            continue
        print(f"{CATEGORY_LABELS[category]} ({len(group)})")
        for m in group:
            print(f"  {m.id:>3}  {m.name}")
    return EXIT_OK


# ===== settings =====

def cmd_settings(args) -> int:
    log = logging.getLogger(__name__)
    store = SettingsStore()
    settings = store.load()
    action = args.settings_cmd

    try:
        if action == "set":
            settings = _settings_from_args(settings, args)
            is_valid, error = settings.validate()
            if not is_valid:
                print(f"Invalid settings: {error}", file=sys.stderr)
                return EXIT_CONFIG
            store.save(settings)
        elif action == "reset":
            settings = store.reset()
    except OSError as exc:
        log.error("Failed to save settings: %s", exc)
        print(f"Failed to save settings to {store.path}: {exc}", file=sys.stderr)
        return EXIT_ERROR

    if getattr(args, "json", False):
        print(json.dumps(settings.to_dict()))
    else:
        for line in _format_settings(settings):
            print(line)
    return EXIT_OK


# ===== simulate =====

def _simulation_actions(args) -> list[tuple[float, int, str]]:
    actions: list[tuple[float, int, str]] = []
    order = 0

    def add(when: float, action: str) -> None:
        nonlocal order
        actions.append((float(when), order, action))
        order += 1

    if args.pause_at is not None:
        add(args.pause_at, "pause")
        add(args.pause_at + args.pause_for, "resume")
    for when in args.skip_at or []:
        add(when, "skip")
    if args.stop_at is not None:
        add(args.stop_at, "stop")
    actions.sort()
    return actions


def cmd_simulate(args) -> int:
    """Run a session on simulated time and print the outcome as JSON."""
    settings = _settings_from_args(SettingsStore().load() if args.use_saved else Settings(), args)

    source = ManualTickSource()
    selector = MovementSelector(seed=args.seed)
    runner = SessionRunner(tick_source=source, outputs=NullOutputs(), selector=selector)

    cues: list[dict] = []

    def on_cue(event: SessionEvent) -> None:
        data = event.data or {}
        cues.append({
            "t": source.now,
            "movement": data["movement"].name,
            "category": data["movement"].category.value,
            "manual": bool(data.get("manual")),
        })

    completed_at: list[float] = []
    runner.event_emitter.subscribe(SessionEventType.CUE, on_cue)
    runner.event_emitter.subscribe(SessionEventType.SESSION_END, lambda _evt: completed_at.append(source.now))

    try:
        runner.start(settings)
    except SettingsError as exc:
        print(f"Cannot start session: {exc}", file=sys.stderr)
        return EXIT_CONFIG

    for when, _order, action in _simulation_actions(args):
        if runner.is_idle() or runner.is_completed():
            break
        source.advance_to(when)
        if action == "pause":
            runner.pause()
        elif action == "resume":
            runner.resume()
        elif action == "skip":
            runner.skip()
        elif action == "stop":
            runner.stop()

    if runner.is_running():
        source.advance(runner.time_remaining)

    stats = runner.stats
    result = {
        "state": runner.state.name.lower(),
        "seed": selector.seed,
        "elapsed": source.now,
        "completedAt": completed_at[0] if completed_at else None,
        "timeRemaining": runner.time_remaining,
        "settings": settings.to_dict(),
        "cues": cues,
        "stats": stats.to_dict() if stats else None,
    }
    runner.shutdown()
    print(json.dumps(result, ensure_ascii=False))
    return EXIT_OK


# ===== run =====

def cmd_run(args) -> int:
    """Run a real-time session on a Qt event loop."""
    from PyQt6.QtCore import QCoreApplication, QSocketNotifier, QTimer
    from .console import SessionConsole
    from .session.qt_clock import QtTickSource

    log = logging.getLogger(__name__)
    store = SettingsStore()
    settings = _settings_from_args(store.load(), args)

    is_valid, error = settings.validate()
    if not is_valid:
        print(f"Cannot start session: {error}", file=sys.stderr)
        return EXIT_CONFIG

    if args.save:
        try:
            store.save(settings)
        except OSError as exc:
            log.warning("Failed to save settings: %s", exc)

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    outputs = DeviceOutputs()
    runner = SessionRunner(
        tick_source=QtTickSource(app),
        outputs=outputs,
        selector=MovementSelector(seed=args.seed),
    )
    console = SessionConsole(runner, stream=sys.stderr if args.json else sys.stdout)
    console.attach()

    runner.event_emitter.subscribe(SessionEventType.SESSION_END, lambda _evt: app.quit())
    runner.event_emitter.subscribe(SessionEventType.SESSION_STOP, lambda _evt: app.quit())

    # Python only sees SIGINT when the interpreter runs; a short no-op timer
    # hands control back to it periodically while Qt's loop is blocking.
    def _on_sigint(*_args) -> None:
        if not runner.stop():
            app.quit()

    signal.signal(signal.SIGINT, _on_sigint)
    signal_pump = QTimer(app)
    signal_pump.timeout.connect(lambda: None)
    signal_pump.start(200)

    notifier = None
    if os.name != "nt" and sys.stdin is not None and not args.no_input:
        notifier = QSocketNotifier(sys.stdin.fileno(), QSocketNotifier.Type.Read, app)

        def _read_stdin(*_args) -> None:
            line = sys.stdin.readline()
            if not line:
                # EOF: stop watching, let the session run to completion
                notifier.setEnabled(False)
                return
            console.handle_command(line)

        notifier.activated.connect(_read_stdin)

    runner.start(settings)
    try:
        app.exec()
    finally:
        runner.shutdown()
        outputs.close()
        if notifier is not None:
            notifier.setEnabled(False)

    stats = runner.stats
    if args.json:
        print(json.dumps({"state": runner.state.name.lower(), "stats": stats.to_dict() if stats else None}))
    elif runner.is_idle() and stats is not None:
        # Stopped early: completed sessions already printed their summary
        for line in stats.format_summary():
            print(line)
    if runner.is_completed():
        runner.acknowledge_completion()
    return EXIT_OK


def selftest() -> int:
    """Fast import-and-init smoke test. Returns exit code."""
    try:
        import PyQt6.QtCore  # noqa: F401
        import numpy  # noqa: F401
        from .engine import audio, speech, tone  # noqa: F401

        runner = SessionRunner()
        runner.start(Settings(interval=1, duration=2, enabled_categories=(MovementCategory.BALANCE,)))
        runner.clock.tick_source.advance(2)
        if not runner.is_completed() or runner.stats is None or not runner.stats.is_consistent():
            raise RuntimeError(f"Simulated session ended in {runner.state.name}")

        msg = "Selftest OK: imports + simulated session"
        logging.getLogger(__name__).info(msg)
        print(msg)
        return EXIT_OK
    except Exception as e:
        logging.getLogger(__name__).error("Selftest failed: %s", e)
        print(f"Selftest failed: {e}", file=sys.stderr)
        return EXIT_ERROR


def build_parser() -> argparse.ArgumentParser:
    logging_parent = _build_logging_parent()
    parser = argparse.ArgumentParser(
        prog="sprayflow",
        description="SprayFlow - movement metronome for spray wall warmups",
        parents=[logging_parent],
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def add_subparser(name: str, **kwargs: object) -> argparse.ArgumentParser:
        parents = list(kwargs.pop("parents", []))
        parents.insert(0, logging_parent)
        return sub.add_parser(name, parents=parents, **kwargs)

    p_mov = add_subparser("movements", help="List the movement catalog")
    p_mov.add_argument("--category", dest="categories", action="append", type=_category_arg, default=None)
    p_mov.add_argument("--json", action="store_true", help="Print JSON instead of a table")

    p_set = add_subparser("settings", help="Show or change saved settings")
    set_sub = p_set.add_subparsers(dest="settings_cmd", required=True)
    set_parent = argparse.ArgumentParser(add_help=False)
    set_parent.add_argument("--json", action="store_true", help="Print the settings record as JSON")
    set_sub.add_parser("show", parents=[set_parent], help="Print saved settings")
    p_set_set = set_sub.add_parser("set", parents=[set_parent], help="Change and save settings")
    _add_settings_args(p_set_set)
    set_sub.add_parser("reset", parents=[set_parent], help="Restore defaults")

    p_run = add_subparser("run", help="Run a session in real time")
    _add_settings_args(p_run)
    p_run.add_argument("--save", action="store_true", help="Persist the overrides as the new saved settings")
    p_run.add_argument("--seed", type=int, default=None, help="Seed the movement selection")
    p_run.add_argument("--json", action="store_true", help="Print the final summary as JSON (console goes to stderr)")
    p_run.add_argument("--no-input", action="store_true", help="Do not read commands from stdin")

    p_sim = add_subparser("simulate", help="Run a session on simulated time and print JSON")
    _add_settings_args(p_sim)
    p_sim.add_argument("--seed", type=int, default=None, help="Seed the movement selection")
    p_sim.add_argument("--use-saved", action="store_true", help="Start from saved settings instead of defaults")
    p_sim.add_argument("--pause-at", type=float, default=None, metavar="T", help="Pause at T seconds")
    p_sim.add_argument("--pause-for", type=float, default=0.0, metavar="D", help="Resume D seconds after pausing")
    p_sim.add_argument("--skip-at", type=float, action="append", default=None, metavar="T", help="Skip at T seconds (repeatable)")
    p_sim.add_argument("--stop-at", type=float, default=None, metavar="T", help="Stop at T seconds")

    add_subparser("selftest", help="Quick import/init smoke test")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(
        level=args.log_level,
        log_file=args.log_file,
        json_format=(args.log_format == "json"),
        log_mode=args.log_mode,
    )

    cmd = args.command
    if cmd == "movements":
        return cmd_movements(args)
    if cmd == "settings":
        return cmd_settings(args)
    if cmd == "simulate":
        return cmd_simulate(args)
    if cmd == "run":
        return cmd_run(args)
    if cmd == "selftest":
        return selftest()
    parser.error(f"Unknown command: {cmd}")
    return EXIT_ERROR
