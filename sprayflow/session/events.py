"""Session events broadcast by the runner.

The runner never talks to a display directly. It emits one ``SessionEvent``
per transition, cue and countdown step; the console, the CLI and the tests
subscribe to what they need.

Payloads (``event.data``):
    SESSION_START   interval, duration
    CUE             movement, cue_number, manual, time_remaining
    TICK            time_remaining
    SESSION_PAUSE   time_remaining
    SESSION_RESUME  time_remaining
    SESSION_STOP    time_remaining, total_cues
    SESSION_END     stats
    ERROR           output, error

Usage:
    emitter = SessionEventEmitter()
    emitter.subscribe(SessionEventType.CUE, lambda evt: print(evt.data["movement"].name))
"""

from __future__ import annotations
import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, DefaultDict, Dict, List

EventCallback = Callable[["SessionEvent"], None]


class SessionEventType(Enum):
    """Everything a subscriber can observe about a session."""

    # Lifecycle
    SESSION_START = auto()
    SESSION_PAUSE = auto()
    SESSION_RESUME = auto()
    SESSION_STOP = auto()      # Ended early by the climber
    SESSION_END = auto()       # Countdown reached zero
    SESSION_RESET = auto()     # Completion acknowledged

    # Running session
    CUE = auto()
    TICK = auto()

    # Speech/tone failure; the session keeps going
    ERROR = auto()


@dataclass
class SessionEvent:
    """One emitted event.

    Attributes:
        event_type: What happened
        data: Payload, see the module docstring for the keys per type
        timestamp: Wall-clock time, filled in by the emitter
    """
    event_type: SessionEventType
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: float | None = None

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def __str__(self) -> str:
        if not self.data:
            return f"SessionEvent({self.event_type.name})"
        payload = ", ".join(f"{key}={value}" for key, value in self.data.items())
        return f"SessionEvent({self.event_type.name}, {payload})"


class SessionEventEmitter:
    """Synchronous fan-out of session events.

    Callbacks run in subscription order on the emitting thread. A callback
    that raises is logged and skipped so a broken display cannot stall the
    session.
    """

    def __init__(self):
        self._callbacks: DefaultDict[SessionEventType, List[EventCallback]] = defaultdict(list)
        self.logger = logging.getLogger(__name__)

    def subscribe(self, event_type: SessionEventType, callback: EventCallback) -> None:
        """Call *callback* for every future event of *event_type*.

        Subscribing the same callback twice has no effect.
        """
        callbacks = self._callbacks[event_type]
        if callback in callbacks:
            return
        callbacks.append(callback)
        self.logger.debug(f"[events] +{event_type.name} ({len(callbacks)} listeners)")

    def subscribe_all(self, callback: EventCallback) -> None:
        for event_type in SessionEventType:
            self.subscribe(event_type, callback)

    def unsubscribe(self, event_type: SessionEventType, callback: EventCallback) -> None:
        callbacks = self._callbacks.get(event_type)
        if callbacks and callback in callbacks:
            callbacks.remove(callback)
            self.logger.debug(f"[events] -{event_type.name} ({len(callbacks)} listeners)")

    def listener_count(self, event_type: SessionEventType) -> int:
        return len(self._callbacks.get(event_type, ()))

    def emit(self, event: SessionEvent) -> None:
        if event.timestamp is None:
            event.timestamp = time.time()
        # Ticks arrive every second; keep them out of debug logs
        if event.event_type is not SessionEventType.TICK:
            self.logger.debug(f"[events] {event}")

        for callback in tuple(self._callbacks.get(event.event_type, ())):
            try:
                callback(event)
            except Exception as e:
                self.logger.error(f"[events] {event.event_type.name} listener failed: {e}", exc_info=True)

    def clear_all(self) -> None:
        self._callbacks.clear()
        self.logger.debug("[events] Listeners cleared")
