"""Qt-backed tick source.

Runs session triggers as ``QTimer`` instances on the Qt event loop. The loop
delivers timer callbacks and stdin intents one at a time on the main thread,
which is the only concurrency model the session runner relies on.
"""

from __future__ import annotations

import itertools
import logging
from typing import Callable

from PyQt6.QtCore import QObject, Qt, QTimer

from .clock import TickSource, TimerHandle

logger = logging.getLogger(__name__)


class QtTickSource(TickSource):
    """Tick source backed by precise ``QTimer`` objects.

    Requires a running ``QCoreApplication`` (or ``QApplication``) event loop
    for callbacks to fire.
    """

    def __init__(self, parent: QObject | None = None):
        self._parent = parent
        self._ids = itertools.count(1)
        self._timers: dict[int, QTimer] = {}

    def call_every(self, interval_s: float, callback: Callable[[], None]) -> TimerHandle:
        if interval_s <= 0:
            raise ValueError(f"interval_s must be positive, got {interval_s}")
        handle = TimerHandle(next(self._ids), float(interval_s), callback)

        timer = QTimer(self._parent)
        timer.setInterval(int(round(interval_s * 1000)))
        timer.setTimerType(Qt.TimerType.PreciseTimer)

        def _fire() -> None:
            # A timeout already queued before cancel() must not run the callback
            if handle.active:
                handle.callback()

        timer.timeout.connect(_fire)
        self._timers[handle.timer_id] = timer
        timer.start()
        return handle

    def cancel(self, handle: TimerHandle) -> None:
        handle.active = False
        timer = self._timers.pop(handle.timer_id, None)
        if timer is None:
            return
        timer.stop()
        timer.deleteLater()

    def active_count(self) -> int:
        return len(self._timers)
