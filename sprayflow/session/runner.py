"""
Session Runner - State machine for a timed movement session.

The SessionRunner owns everything that changes during a session:
- Session state (IDLE, RUNNING, PAUSED, COMPLETED)
- The movement currently announced
- The countdown (through its SessionClock)
- Cue statistics

Architecture:
    start(settings) → first cue immediately → clock drives further cues
    Clock countdown reaches 0 → COMPLETED
    pause()/resume() stop and restart the clock without losing time
    stop() → IDLE from RUNNING or PAUSED
    acknowledge_completion() → IDLE from COMPLETED

Speech and tone are best-effort: a failing output is logged and reported as
an ERROR event, and the session carries on.
"""

from __future__ import annotations
import logging
from enum import Enum, auto
from typing import Any, Optional

from ..catalog import MOVEMENTS, Movement, MovementCategory
from ..engine.outputs import CueOutputs, NullOutputs
from ..engine.selector import MovementSelector
from ..settings import Settings
from .clock import ClockHandle, ManualTickSource, SessionClock, TickSource
from .events import SessionEvent, SessionEventEmitter, SessionEventType
from .stats import SessionStats, record_cue


class SessionState(Enum):
    """Session execution states."""
    IDLE = auto()       # Not running, can be started
    RUNNING = auto()    # Clock active, cues being announced
    PAUSED = auto()     # Clock stopped, time remaining frozen
    COMPLETED = auto()  # Countdown reached zero, summary available


class SessionRunner:
    """
    Runs one session at a time.

    Usage:
        runner = SessionRunner(tick_source=QtTickSource(), outputs=DeviceOutputs())
        runner.start(Settings(interval=5, duration=300))
        ...
        runner.pause(); runner.resume(); runner.skip()
        runner.stop()

    Invalid transitions (pausing an idle session, skipping while paused, ...)
    log a warning and return False without touching state.
    """

    def __init__(
        self,
        tick_source: Optional[TickSource] = None,
        outputs: Optional[CueOutputs] = None,
        selector: Optional[MovementSelector] = None,
        event_emitter: Optional[SessionEventEmitter] = None,
        catalog: tuple[Movement, ...] = MOVEMENTS,
    ):
        """
        Initialize session runner.

        Args:
            tick_source: Host timer primitive (ManualTickSource when omitted)
            outputs: Speech/tone capabilities (silent when omitted)
            selector: Movement selector (randomly seeded when omitted)
            event_emitter: Event bus for state changes (created when omitted)
            catalog: Movements available to the selector
        """
        self.clock = SessionClock(tick_source if tick_source is not None else ManualTickSource())
        self.outputs = outputs if outputs is not None else NullOutputs()
        self.selector = selector if selector is not None else MovementSelector(catalog)
        self.event_emitter = event_emitter or SessionEventEmitter()

        self.logger = logging.getLogger(__name__)

        self._state = SessionState.IDLE
        self._settings: Optional[Settings] = None
        self._current_movement: Optional[Movement] = None
        self._stats: Optional[SessionStats] = None
        self._clock_handle: Optional[ClockHandle] = None

    # ===== Read access =====

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def settings(self) -> Optional[Settings]:
        """Settings captured at the last start (None before the first session)."""
        return self._settings

    @property
    def current_movement(self) -> Optional[Movement]:
        return self._current_movement

    @property
    def time_remaining(self) -> int:
        return self.clock.time_remaining

    @property
    def stats(self) -> Optional[SessionStats]:
        return self._stats

    def is_idle(self) -> bool:
        return self._state == SessionState.IDLE

    def is_running(self) -> bool:
        return self._state == SessionState.RUNNING

    def is_paused(self) -> bool:
        return self._state == SessionState.PAUSED

    def is_completed(self) -> bool:
        return self._state == SessionState.COMPLETED

    def snapshot(self) -> dict[str, Any]:
        """JSON-friendly view of the current session."""
        return {
            "state": self._state.name.lower(),
            "timeRemaining": self.time_remaining,
            "currentMovement": self._current_movement.to_dict() if self._current_movement else None,
            "settings": self._settings.to_dict() if self._settings else None,
            "stats": self._stats.to_dict() if self._stats else None,
        }

    # ===== Lifecycle =====

    def start(self, settings: Settings) -> bool:
        """Start a new session.

        Returns:
            True if started, False if a session is already active

        Raises:
            SettingsError: If the settings cannot start a session (checked
                before any state changes)
        """
        if self._state != SessionState.IDLE:
            self.logger.warning(f"[session] Cannot start: state is {self._state.name}")
            return False

        settings.require_valid()

        self._settings = settings
        self._stats = SessionStats.empty()
        self._current_movement = None
        self.clock.reset(settings.duration)
        self._state = SessionState.RUNNING

        # Clock runs before any subscriber sees the session, so a stop() or
        # pause() issued from a START/CUE listener always finds it to cancel
        self._start_clock()

        self.logger.info(
            f"[session] Starting session: interval={settings.interval}s duration={settings.duration}s "
            f"categories={[c.value for c in settings.enabled_categories]}"
        )
        self.event_emitter.emit(SessionEvent(
            SessionEventType.SESSION_START,
            data={"interval": settings.interval, "duration": settings.duration},
        ))

        if self._state == SessionState.RUNNING:
            self._emit_cue()
        return True

    def pause(self) -> bool:
        """Pause the session, freezing the countdown."""
        if self._state != SessionState.RUNNING:
            self.logger.warning(f"[session] Cannot pause: state is {self._state.name}")
            return False

        self._stop_clock()
        self._cancel_speech()
        self._state = SessionState.PAUSED

        self.logger.info(f"[session] Session paused ({self.time_remaining}s remaining)")
        self.event_emitter.emit(SessionEvent(
            SessionEventType.SESSION_PAUSE,
            data={"time_remaining": self.time_remaining},
        ))
        return True

    def resume(self) -> bool:
        """Resume from pause with the same interval and time remaining."""
        if self._state != SessionState.PAUSED:
            self.logger.warning(f"[session] Cannot resume: state is {self._state.name}")
            return False

        self._state = SessionState.RUNNING
        self._start_clock()

        self.logger.info(f"[session] Session resumed ({self.time_remaining}s remaining)")
        self.event_emitter.emit(SessionEvent(
            SessionEventType.SESSION_RESUME,
            data={"time_remaining": self.time_remaining},
        ))
        return True

    def skip(self) -> bool:
        """Announce a new movement now.

        The cue trigger keeps its phase, so the next scheduled cue may follow
        sooner than a full interval.
        """
        if self._state != SessionState.RUNNING:
            self.logger.warning(f"[session] Cannot skip: state is {self._state.name}")
            return False

        self.logger.info("[session] Manual skip requested")
        self._emit_cue(manual=True)
        return True

    def stop(self, discard_stats: bool = False) -> bool:
        """Stop the session early.

        Args:
            discard_stats: Drop the partial statistics instead of keeping them
                readable until the next start
        """
        if self._state not in (SessionState.RUNNING, SessionState.PAUSED):
            self.logger.warning(f"[session] Cannot stop: state is {self._state.name}")
            return False

        prev_state = self._state
        self._stop_clock()
        self._cancel_speech()
        self._state = SessionState.IDLE
        self._current_movement = None
        stats = self._stats
        if discard_stats:
            self._stats = None

        self.logger.info(f"[session] Session stopped from {prev_state.name} ({self.time_remaining}s remaining)")
        self.event_emitter.emit(SessionEvent(
            SessionEventType.SESSION_STOP,
            data={
                "time_remaining": self.time_remaining,
                "total_cues": stats.total_cues if stats else 0,
            },
        ))
        return True

    def acknowledge_completion(self) -> bool:
        """Return to IDLE after a completed session, discarding its stats."""
        if self._state != SessionState.COMPLETED:
            self.logger.warning(f"[session] Cannot acknowledge completion: state is {self._state.name}")
            return False

        self._state = SessionState.IDLE
        self._stats = None
        self._current_movement = None
        self.event_emitter.emit(SessionEvent(SessionEventType.SESSION_RESET))
        return True

    def shutdown(self) -> None:
        """Stop timers and speech regardless of state (application exit)."""
        self._stop_clock()
        self._cancel_speech()

    # ===== Internals =====

    def _start_clock(self) -> None:
        assert self._settings is not None
        self._clock_handle = self.clock.start(
            self._settings.interval,
            on_cue=self._on_clock_cue,
            on_complete=self._on_clock_complete,
            on_tick=self._on_clock_tick,
        )

    def _stop_clock(self) -> None:
        if self._clock_handle is not None:
            self.clock.stop(self._clock_handle)
            self._clock_handle = None
        else:
            self.clock.stop()

    def _on_clock_cue(self) -> None:
        if self._state == SessionState.RUNNING:
            self._emit_cue()

    def _on_clock_tick(self, remaining: int) -> None:
        self.event_emitter.emit(SessionEvent(
            SessionEventType.TICK,
            data={"time_remaining": remaining},
        ))

    def _on_clock_complete(self) -> None:
        if self._state != SessionState.RUNNING:
            return
        self._clock_handle = None
        self._state = SessionState.COMPLETED
        self._current_movement = None

        stats = self._stats or SessionStats.empty()
        self.logger.info(f"[session] Session completed: {stats.total_cues} cues")
        self.event_emitter.emit(SessionEvent(
            SessionEventType.SESSION_END,
            data={"stats": stats},
        ))

    def _emit_cue(self, manual: bool = False) -> None:
        assert self._settings is not None and self._stats is not None
        movement = self.selector.pick(self._settings.enabled_categories)
        # Categories are validated at start and cannot change mid-session
        assert movement is not None, "no eligible movement for a running session"

        self._current_movement = movement
        self._stats = record_cue(self._stats, movement)

        self.logger.debug(
            f"[session] Cue #{self._stats.total_cues}: {movement.name} ({movement.category.value})"
            f"{' [skip]' if manual else ''}"
        )
        self._announce(movement)
        self.event_emitter.emit(SessionEvent(
            SessionEventType.CUE,
            data={
                "movement": movement,
                "cue_number": self._stats.total_cues,
                "manual": manual,
                "time_remaining": self.time_remaining,
            },
        ))

    def _announce(self, movement: Movement) -> None:
        settings = self._settings
        assert settings is not None
        if settings.use_voice:
            try:
                self.outputs.speak(movement.name)
            except Exception as exc:
                self._report_output_failure("speech", exc)
        if settings.use_beep:
            try:
                self.outputs.play_tone()
            except Exception as exc:
                self._report_output_failure("tone", exc)

    def _cancel_speech(self) -> None:
        try:
            self.outputs.cancel_speech()
        except Exception as exc:
            self._report_output_failure("speech", exc)

    def _report_output_failure(self, output: str, exc: Exception) -> None:
        self.logger.warning(f"[session] {output} output failed: {exc}")
        self.event_emitter.emit(SessionEvent(
            SessionEventType.ERROR,
            data={"output": output, "error": str(exc)},
        ))


def enabled_movement_count(settings: Settings, catalog: tuple[Movement, ...] = MOVEMENTS) -> int:
    """Number of movements a session with *settings* can draw from."""
    enabled: set[MovementCategory] = set(settings.enabled_categories)
    return sum(1 for m in catalog if m.category in enabled)
