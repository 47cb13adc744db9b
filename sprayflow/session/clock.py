"""
Session Clock - cue and countdown triggers for a running session.

Two periodic triggers run while a session is active:
- Cue trigger: fires every ``interval`` seconds and asks for a new movement
- Countdown trigger: fires every second and decrements the time remaining

Both are scheduled on a ``TickSource`` (the host timer primitive). Production
code uses the Qt event loop (see ``qt_clock.QtTickSource``); tests and the
``simulate`` command use ``ManualTickSource`` which only moves when told to.

Every ``start`` opens a new generation. Callbacks carry the generation they
were scheduled under and do nothing once it is stale, so a timer that the host
already queued can never act after ``stop`` returns.
"""

from __future__ import annotations

import heapq
import itertools
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Optional

logger = logging.getLogger(__name__)

COUNTDOWN_STEP_S = 1


@dataclass(eq=False)
class TimerHandle:
    """Opaque handle for one repeating timer."""
    timer_id: int
    interval_s: float
    callback: Callable[[], None] = field(repr=False)
    active: bool = True


class TickSource(ABC):
    """Schedules repeating callbacks on the host's event loop."""

    @abstractmethod
    def call_every(self, interval_s: float, callback: Callable[[], None]) -> TimerHandle:
        """Invoke *callback* every *interval_s* seconds until cancelled."""

    @abstractmethod
    def cancel(self, handle: TimerHandle) -> None:
        """Stop a timer. Cancelling twice is a no-op."""


class ManualTickSource(TickSource):
    """
    Deterministic tick source driven by :meth:`advance`.

    Due callbacks fire in chronological order; callbacks due at the same
    instant fire in the order their timers were created. Callbacks may cancel
    or create timers while time is advancing.

    Example:
        source = ManualTickSource()
        source.call_every(1.0, on_tick)
        source.advance(3)  # on_tick fires three times
    """

    def __init__(self) -> None:
        self._now = 0.0
        self._ids = itertools.count(1)
        self._queue: list[tuple[float, int, TimerHandle]] = []

    @property
    def now(self) -> float:
        """Simulated seconds since creation."""
        return self._now

    def call_every(self, interval_s: float, callback: Callable[[], None]) -> TimerHandle:
        if interval_s <= 0:
            raise ValueError(f"interval_s must be positive, got {interval_s}")
        handle = TimerHandle(next(self._ids), float(interval_s), callback)
        heapq.heappush(self._queue, (self._now + handle.interval_s, handle.timer_id, handle))
        return handle

    def cancel(self, handle: TimerHandle) -> None:
        handle.active = False

    def active_count(self) -> int:
        return sum(1 for _, _, handle in self._queue if handle.active)

    def advance(self, seconds: float) -> None:
        """Move simulated time forward, firing every timer that comes due."""
        if seconds < 0:
            raise ValueError(f"Cannot advance by negative time: {seconds}")
        target = self._now + seconds
        while self._queue and self._queue[0][0] <= target + 1e-9:
            due, timer_id, handle = heapq.heappop(self._queue)
            if not handle.active:
                continue
            self._now = due
            handle.callback()
            if handle.active:
                heapq.heappush(self._queue, (due + handle.interval_s, timer_id, handle))
        self._now = target

    def advance_to(self, when: float) -> None:
        self.advance(max(0.0, when - self._now))


@dataclass(frozen=True)
class ClockHandle:
    """Identifies one started run of the clock."""
    generation: int
    interval_s: int


class SessionClock:
    """
    Owns the time remaining and the two session triggers.

    Pausing is ``stop()``: both triggers are cancelled and the time remaining
    is kept. Resuming is ``start()`` again with the same interval; the cue
    cadence restarts from the resume point.

    A cue that would fall at or after the end of the session is dropped, so
    the number of cues does not depend on whether the cue trigger or the
    countdown trigger happens to fire first at the final second.
    """

    def __init__(self, tick_source: TickSource):
        self.tick_source = tick_source
        self._time_remaining = 0
        self._generation = 0
        self._running = False
        self._cue_timer: Optional[TimerHandle] = None
        self._countdown_timer: Optional[TimerHandle] = None

        # Per-run bookkeeping for dropping cues at the session boundary
        self._run_start_remaining = 0
        self._run_cues_fired = 0
        self._run_interval = 0

    @property
    def time_remaining(self) -> int:
        return self._time_remaining

    @property
    def generation(self) -> int:
        return self._generation

    def is_running(self) -> bool:
        return self._running

    def reset(self, seconds: int) -> None:
        """Set the countdown. Only valid while stopped."""
        if self._running:
            raise RuntimeError("Cannot reset a running clock")
        if seconds < 0:
            raise ValueError(f"seconds must be non-negative, got {seconds}")
        self._time_remaining = int(seconds)

    def start(
        self,
        interval_s: int,
        on_cue: Callable[[], None],
        on_complete: Callable[[], None],
        on_tick: Optional[Callable[[int], None]] = None,
    ) -> ClockHandle:
        """
        Start both triggers.

        Args:
            interval_s: Seconds between cues
            on_cue: Called for every scheduled cue
            on_complete: Called once when the countdown reaches 0 (after both
                triggers are stopped)
            on_tick: Called with the new time remaining after each decrement

        Returns:
            Handle for :meth:`stop`
        """
        if interval_s <= 0:
            raise ValueError(f"interval_s must be positive, got {interval_s}")
        if self._running:
            self.stop()

        self._generation += 1
        generation = self._generation
        self._running = True
        self._run_start_remaining = self._time_remaining
        self._run_cues_fired = 0
        self._run_interval = int(interval_s)

        def cue_fired() -> None:
            if generation != self._generation or not self._running:
                return
            self._run_cues_fired += 1
            due_remaining = self._run_start_remaining - self._run_cues_fired * self._run_interval
            if due_remaining <= 0:
                logger.debug(f"[clock] Dropping cue at session boundary (gen={generation})")
                return
            on_cue()

        def countdown_fired() -> None:
            if generation != self._generation or not self._running:
                return
            self._time_remaining = max(0, self._time_remaining - COUNTDOWN_STEP_S)
            logger.debug(f"[clock.trace] remaining={self._time_remaining}s gen={generation}")
            if on_tick is not None:
                on_tick(self._time_remaining)
            if generation != self._generation:
                return  # on_tick stopped or restarted the clock
            if self._time_remaining <= 0:
                self.stop()
                on_complete()

        # Countdown first so a cue sharing an instant with a tick reports the
        # already-decremented time remaining on deterministic sources
        self._countdown_timer = self.tick_source.call_every(float(COUNTDOWN_STEP_S), countdown_fired)
        self._cue_timer = self.tick_source.call_every(float(interval_s), cue_fired)
        logger.debug(
            f"[clock] Started gen={generation} interval={interval_s}s remaining={self._time_remaining}s"
        )
        return ClockHandle(generation=generation, interval_s=int(interval_s))

    def stop(self, handle: Optional[ClockHandle] = None) -> None:
        """
        Stop both triggers. Idempotent.

        With a handle, only stops if that run is still the current one.
        """
        if handle is not None and handle.generation != self._generation:
            return
        if not self._running and self._cue_timer is None and self._countdown_timer is None:
            return
        self._running = False
        # Bump the generation so callbacks already queued by the host are inert
        self._generation += 1
        for timer in (self._cue_timer, self._countdown_timer):
            if timer is not None:
                self.tick_source.cancel(timer)
        self._cue_timer = None
        self._countdown_timer = None
        logger.debug(f"[clock] Stopped (remaining={self._time_remaining}s)")
