"""Tests for the SessionRunner state machine.

Validates:
- Start emits the first cue immediately, then one per interval
- Completion at zero with summary stats
- Pause/resume freeze the countdown
- Manual skip counts as a cue
- Invalid transitions are rejected without side effects
- Output failures never interrupt the session
"""

import pytest

from ..catalog import MovementCategory
from ..engine.selector import MovementSelector
from ..session import (
    ManualTickSource,
    SessionEventType,
    SessionRunner,
    SessionState,
)
from ..settings import Settings, SettingsError
from .conftest import RecordingOutputs


@pytest.fixture
def source():
    return ManualTickSource()


@pytest.fixture
def runner(source, outputs):
    return SessionRunner(tick_source=source, outputs=outputs, selector=MovementSelector(seed=11))


@pytest.fixture
def events(runner):
    seen = []
    runner.event_emitter.subscribe_all(seen.append)
    return seen


def _types(events, *wanted):
    return [e.event_type for e in events if not wanted or e.event_type in wanted]


def _settings(**kwargs):
    base = dict(interval=5, duration=10, enabled_categories=(MovementCategory.FOOTWORK,))
    base.update(kwargs)
    return Settings(**base)


class TestStart:

    def test_initial_state(self, runner):
        assert runner.state is SessionState.IDLE
        assert runner.current_movement is None
        assert runner.stats is None
        assert runner.time_remaining == 0

    def test_start_emits_first_cue_immediately(self, runner, outputs, events):
        assert runner.start(_settings())
        assert runner.is_running()
        assert runner.time_remaining == 10
        assert runner.stats.total_cues == 1
        assert runner.current_movement.category is MovementCategory.FOOTWORK
        assert outputs.spoken == [runner.current_movement.name]
        assert _types(events) == [SessionEventType.SESSION_START, SessionEventType.CUE]

    def test_start_rejects_invalid_settings_without_side_effects(self, runner, events):
        with pytest.raises(SettingsError):
            runner.start(_settings(enabled_categories=()))
        with pytest.raises(SettingsError):
            runner.start(_settings(duration=0))
        with pytest.raises(SettingsError):
            runner.start(_settings(interval=0))
        assert runner.is_idle()
        assert runner.stats is None
        assert events == []

    def test_stop_from_first_cue_listener_stops_clock(self, runner, source):
        runner.event_emitter.subscribe(
            SessionEventType.CUE,
            lambda evt: runner.stop() if evt.data["cue_number"] == 1 else None,
        )
        runner.start(_settings())
        assert runner.is_idle()
        assert not runner.clock.is_running()
        assert source.active_count() == 0
        source.advance(20)
        assert runner.stats.total_cues == 1

        # a later start must not trip over a clock left running
        runner.event_emitter.clear_all()
        assert runner.start(_settings())
        assert runner.is_running()

    def test_stop_from_start_listener_skips_first_cue(self, runner, source, events):
        runner.event_emitter.subscribe(SessionEventType.SESSION_START, lambda _evt: runner.stop(discard_stats=True))
        runner.start(_settings())
        assert runner.is_idle()
        assert SessionEventType.CUE not in _types(events)
        assert source.active_count() == 0

    def test_pause_from_first_cue_listener_freezes_countdown(self, runner, source):
        runner.event_emitter.subscribe(SessionEventType.CUE, lambda _evt: runner.pause())
        runner.start(_settings())
        assert runner.is_paused()
        source.advance(30)
        assert runner.time_remaining == 10
        assert source.active_count() == 0

    def test_start_while_running_is_rejected(self, runner):
        runner.start(_settings())
        assert runner.start(_settings(duration=60)) is False
        assert runner.time_remaining == 10


class TestTimeline:

    def test_full_session_interval_five_duration_ten(self, runner, source, events):
        runner.start(_settings())
        source.advance(5)
        assert runner.stats.total_cues == 2
        assert runner.time_remaining == 5
        source.advance(5)
        assert runner.is_completed()
        assert runner.time_remaining == 0
        assert runner.current_movement is None
        assert runner.stats.total_cues == 2
        assert runner.stats.category_counts[MovementCategory.FOOTWORK] == 2
        assert runner.stats.is_consistent()

        end = [e for e in events if e.event_type is SessionEventType.SESSION_END]
        assert len(end) == 1
        assert end[0].data["stats"] is runner.stats

    def test_default_session_cue_count(self, runner, source):
        runner.start(Settings())
        source.advance(300)
        assert runner.is_completed()
        # t=0, 5, ..., 295
        assert runner.stats.total_cues == 60

    def test_interval_longer_than_duration(self, runner, source):
        runner.start(_settings(interval=10, duration=3))
        source.advance(3)
        assert runner.is_completed()
        assert runner.stats.total_cues == 1

    def test_one_tick_event_per_second(self, runner, source, events):
        runner.start(_settings())
        source.advance(10)
        ticks = [e.data["time_remaining"] for e in events if e.event_type is SessionEventType.TICK]
        assert ticks == [9, 8, 7, 6, 5, 4, 3, 2, 1, 0]

    def test_no_timers_left_after_completion(self, runner, source):
        runner.start(_settings())
        source.advance(10)
        assert source.active_count() == 0
        source.advance(60)
        assert runner.stats.total_cues == 2


class TestPauseResume:

    def test_pause_freezes_countdown(self, runner, source, outputs):
        runner.start(_settings())
        source.advance(3)
        assert runner.pause()
        assert runner.is_paused()
        assert outputs.cancels == 1
        source.advance(100)
        assert runner.time_remaining == 7
        assert runner.stats.total_cues == 1

        assert runner.resume()
        assert runner.is_running()
        source.advance(7)
        assert runner.is_completed()
        # cue at resume+5 (7 -> 2 remaining); resume+7 is the end
        assert runner.stats.total_cues == 2

    def test_pause_keeps_current_movement(self, runner):
        runner.start(_settings())
        movement = runner.current_movement
        runner.pause()
        assert runner.current_movement is movement

    def test_pause_resume_events(self, runner, events):
        runner.start(_settings())
        runner.pause()
        runner.resume()
        assert _types(events, SessionEventType.SESSION_PAUSE, SessionEventType.SESSION_RESUME) == [
            SessionEventType.SESSION_PAUSE,
            SessionEventType.SESSION_RESUME,
        ]


class TestSkip:

    def test_skip_emits_manual_cue(self, runner, source, events):
        runner.start(_settings(duration=20))
        source.advance(2)
        assert runner.skip()
        assert runner.stats.total_cues == 2
        cues = [e for e in events if e.event_type is SessionEventType.CUE]
        assert [c.data["manual"] for c in cues] == [False, True]
        assert cues[1].data["cue_number"] == 2

    def test_two_quick_skips_add_two_cues(self, runner):
        runner.start(_settings())
        runner.skip()
        runner.skip()
        assert runner.stats.total_cues == 3
        assert runner.time_remaining == 10

    def test_skip_keeps_cue_phase(self, runner, source):
        runner.start(_settings(duration=20))
        source.advance(4)
        runner.skip()
        source.advance(1)
        # scheduled cue at t=5 still fires one second after the skip
        assert runner.stats.total_cues == 3

    def test_stats_stay_consistent_after_many_skips(self, runner, source):
        runner.start(_settings(duration=30, enabled_categories=tuple(MovementCategory)))
        for _ in range(12):
            runner.skip()
            source.advance(1)
        assert runner.stats.is_consistent()
        assert runner.stats.total_cues == len(runner.stats.movements)


class TestStop:

    def test_stop_from_running(self, runner, source, events, outputs):
        runner.start(_settings(duration=60))
        source.advance(7)
        assert runner.stop()
        assert runner.is_idle()
        assert runner.current_movement is None
        assert runner.stats.total_cues == 2  # partial stats stay readable
        assert outputs.cancels == 1
        stop = [e for e in events if e.event_type is SessionEventType.SESSION_STOP][0]
        assert stop.data == {"time_remaining": 53, "total_cues": 2}
        source.advance(100)
        assert runner.stats.total_cues == 2

    def test_stop_from_paused_can_discard_stats(self, runner):
        runner.start(_settings())
        runner.pause()
        assert runner.stop(discard_stats=True)
        assert runner.is_idle()
        assert runner.stats is None

    def test_restart_after_stop_starts_fresh(self, runner, source):
        runner.start(_settings(duration=60))
        source.advance(12)
        runner.stop()
        runner.start(_settings(duration=10))
        assert runner.stats.total_cues == 1
        assert runner.time_remaining == 10


class TestCompletion:

    def test_acknowledge_completion_returns_to_idle(self, runner, source, events):
        runner.start(_settings())
        source.advance(10)
        assert runner.acknowledge_completion()
        assert runner.is_idle()
        assert runner.stats is None
        assert SessionEventType.SESSION_RESET in _types(events)

    def test_start_requires_acknowledgement(self, runner, source):
        runner.start(_settings())
        source.advance(10)
        assert runner.start(_settings()) is False
        runner.acknowledge_completion()
        assert runner.start(_settings())


@pytest.mark.parametrize("action", ["pause", "resume", "skip", "stop", "acknowledge_completion"])
def test_invalid_transitions_from_idle(runner, events, action):
    assert getattr(runner, action)() is False
    assert runner.is_idle()
    assert events == []


def test_invalid_transitions_while_paused(runner):
    runner.start(_settings())
    runner.pause()
    assert runner.pause() is False
    assert runner.skip() is False
    assert runner.acknowledge_completion() is False
    assert runner.stats.total_cues == 1


def test_invalid_transitions_while_completed(runner, source):
    runner.start(_settings())
    source.advance(10)
    for action in ("pause", "resume", "skip", "stop"):
        assert getattr(runner, action)() is False
    assert runner.is_completed()


class TestOutputs:

    def test_voice_off_beep_on(self, source):
        outputs = RecordingOutputs()
        runner = SessionRunner(tick_source=source, outputs=outputs)
        runner.start(_settings(use_voice=False, use_beep=True))
        source.advance(5)
        assert outputs.spoken == []
        assert outputs.tones == 2

    def test_failing_outputs_do_not_interrupt_session(self, source):
        outputs = RecordingOutputs(fail_speech=True, fail_tone=True)
        runner = SessionRunner(tick_source=source, outputs=outputs)
        errors = []
        runner.event_emitter.subscribe(SessionEventType.ERROR, errors.append)

        runner.start(_settings(use_beep=True))
        source.advance(10)
        assert runner.is_completed()
        assert runner.stats.total_cues == 2
        assert {e.data["output"] for e in errors} == {"speech", "tone"}
        assert len(errors) == 4

    def test_failing_subscriber_does_not_interrupt_session(self, runner, source):
        def boom(_event):
            raise RuntimeError("display crashed")

        runner.event_emitter.subscribe(SessionEventType.CUE, boom)
        runner.start(_settings())
        source.advance(10)
        assert runner.is_completed()
        assert runner.stats.total_cues == 2


def test_snapshot_is_json_friendly(runner):
    import json

    runner.start(_settings())
    snap = runner.snapshot()
    assert snap["state"] == "running"
    assert snap["timeRemaining"] == 10
    assert snap["currentMovement"]["category"] == "footwork"
    assert snap["stats"]["totalCues"] == 1
    json.dumps(snap)


def test_seeded_runs_are_reproducible(source):
    names = []
    for _ in range(2):
        src = ManualTickSource()
        runner = SessionRunner(tick_source=src, selector=MovementSelector(seed=5))
        runner.start(Settings(interval=1, duration=20))
        src.advance(20)
        names.append([m.name for m in runner.stats.movements])
    assert names[0] == names[1]
    assert len(names[0]) == 20


def test_shutdown_cancels_timers(runner, source):
    runner.start(_settings())
    runner.shutdown()
    assert source.active_count() == 0
