"""
Session system for SprayFlow.

Runs a timed practice session that announces a random movement at a fixed
interval and counts down to the end.

Core Components:
- SessionRunner: State machine (idle/running/paused/completed)
- SessionClock: Cue and countdown triggers on a pluggable tick source
- SessionStats: Per-category cue totals
- SessionEventEmitter: Broadcasts transitions and cues to the console layer

QtTickSource lives in ``sprayflow.session.qt_clock`` and is imported
separately so the core never requires Qt.
"""

from .clock import (
    TickSource,
    TimerHandle,
    ManualTickSource,
    SessionClock,
    ClockHandle,
)

from .events import (
    SessionEventType,
    SessionEvent,
    SessionEventEmitter
)

from .stats import SessionStats, record_cue, format_time

from .runner import SessionRunner, SessionState

__all__ = [
    # Clock
    'TickSource',
    'TimerHandle',
    'ManualTickSource',
    'SessionClock',
    'ClockHandle',

    # Event system
    'SessionEventType',
    'SessionEvent',
    'SessionEventEmitter',

    # Statistics
    'SessionStats',
    'record_cue',
    'format_time',

    # Execution
    'SessionRunner',
    'SessionState',
]
