"""Terminal presentation for a running session.

Reads runner state through session events and turns single-letter commands
into runner intents. Holds no session state of its own.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

from .catalog import CATEGORY_LABELS
from .session.events import SessionEvent, SessionEventType
from .session.runner import SessionRunner
from .session.stats import format_time

logger = logging.getLogger(__name__)

HELP_TEXT = "Commands: [p] pause/resume  [n] next movement  [q] stop  [h] help"


class SessionConsole:
    """Prints cues and countdown; dispatches typed commands.

    Args:
        runner: Session to display and control
        stream: Output stream (stdout by default)
        live_countdown: Redraw the countdown in place every second. Only
            useful on a terminal; off by default for pipes.
    """

    def __init__(self, runner: SessionRunner, stream: TextIO | None = None, live_countdown: bool | None = None):
        self.runner = runner
        self.stream = stream if stream is not None else sys.stdout
        if live_countdown is None:
            live_countdown = bool(getattr(self.stream, "isatty", lambda: False)())
        self.live_countdown = live_countdown
        self._attached = False

    def attach(self) -> None:
        if self._attached:
            return
        emitter = self.runner.event_emitter
        emitter.subscribe(SessionEventType.SESSION_START, self._on_start)
        emitter.subscribe(SessionEventType.CUE, self._on_cue)
        emitter.subscribe(SessionEventType.TICK, self._on_tick)
        emitter.subscribe(SessionEventType.SESSION_PAUSE, self._on_pause)
        emitter.subscribe(SessionEventType.SESSION_RESUME, self._on_resume)
        emitter.subscribe(SessionEventType.SESSION_STOP, self._on_stop)
        emitter.subscribe(SessionEventType.SESSION_END, self._on_end)
        self._attached = True

    # ===== Intents =====

    def handle_command(self, text: str) -> bool:
        """Dispatch one typed command. Returns False for unknown input."""
        command = text.strip().lower()
        if not command:
            return True
        if command in ("p", "pause", "r", "resume"):
            if self.runner.is_paused():
                return self.runner.resume()
            return self.runner.pause()
        if command in ("n", "next", "s", "skip"):
            return self.runner.skip()
        if command in ("q", "quit", "stop"):
            return self.runner.stop()
        if command in ("h", "help", "?"):
            self._write(HELP_TEXT)
            return True
        self._write(f"Unknown command {command!r}. {HELP_TEXT}")
        return False

    # ===== Event handlers =====

    def _write(self, line: str) -> None:
        if self.live_countdown:
            # Clear the countdown line before printing over it
            self.stream.write("\r\033[K")
        self.stream.write(line + "\n")
        self.stream.flush()

    def _on_start(self, event: SessionEvent) -> None:
        data = event.data or {}
        self._write(
            f"Session started: {format_time(data.get('duration', 0))} total, "
            f"new movement every {data.get('interval')}s"
        )
        self._write(HELP_TEXT)

    def _on_cue(self, event: SessionEvent) -> None:
        data = event.data or {}
        movement = data["movement"]
        label = CATEGORY_LABELS[movement.category]
        self._write(
            f"[{format_time(data.get('time_remaining', 0))}] "
            f"#{data.get('cue_number')}  {movement.name}  ({label})"
        )

    def _on_tick(self, event: SessionEvent) -> None:
        if not self.live_countdown:
            return
        remaining = (event.data or {}).get("time_remaining", 0)
        self.stream.write(f"\r\033[K  {format_time(remaining)} remaining")
        self.stream.flush()

    def _on_pause(self, event: SessionEvent) -> None:
        self._write(f"Paused at {format_time(self.runner.time_remaining)}. Press p to resume.")

    def _on_resume(self, event: SessionEvent) -> None:
        self._write("Resumed.")

    def _on_stop(self, event: SessionEvent) -> None:
        self._write(f"Session stopped with {format_time(self.runner.time_remaining)} left.")

    def _on_end(self, event: SessionEvent) -> None:
        self._write("Session complete!")
        stats = (event.data or {}).get("stats")
        if stats is not None:
            for line in stats.format_summary():
                self._write(line)
