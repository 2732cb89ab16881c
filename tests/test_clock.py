"""Tests for the pure session clock."""

from __future__ import annotations

import pytest

from pomotune.focus import clock
from pomotune.focus.clock import ClockState, Durations, SessionType, TransitionEvent

DURATIONS = Durations(work_minutes=25, break_minutes=5, long_break_minutes=15)


def run_ticks(state: ClockState, count: int, durations: Durations = DURATIONS):
    events = []
    for _ in range(count):
        state, event = clock.tick(state, durations)
        if event is not None:
            events.append(event)
    return state, events


class TestStart:
    def test_fresh_start_seeds_work_session(self) -> None:
        state = clock.start(ClockState(), DURATIONS)
        assert state.running
        assert not state.paused
        assert state.remaining_seconds == 1500
        assert state.session_type is SessionType.WORK

    def test_exhausted_break_restarts_as_work(self) -> None:
        stored = ClockState(remaining_seconds=0, session_type=SessionType.BREAK, completed_work_sessions=2)
        state = clock.start(stored, DURATIONS)
        assert state.session_type is SessionType.WORK
        assert state.remaining_seconds == 1500
        assert state.completed_work_sessions == 2

    def test_stopped_mid_break_keeps_break(self) -> None:
        stored = ClockState(remaining_seconds=120, session_type=SessionType.BREAK)
        state = clock.start(stored, DURATIONS)
        assert state.session_type is SessionType.BREAK
        assert state.remaining_seconds == 120

    def test_start_when_running_is_noop(self) -> None:
        running = ClockState(running=True, remaining_seconds=42, session_type=SessionType.LONG_BREAK)
        assert clock.start(running, DURATIONS) == running

    def test_start_when_paused_stays_paused(self) -> None:
        paused = ClockState(running=True, paused=True, remaining_seconds=42)
        assert clock.start(paused, DURATIONS) == paused


class TestPauseResume:
    def test_round_trip_keeps_time_and_type(self) -> None:
        state = ClockState(running=True, remaining_seconds=777, session_type=SessionType.BREAK)
        paused = clock.pause(state)
        assert paused.paused
        resumed = clock.resume(paused)
        assert resumed == state

    def test_pause_and_resume_ignored_when_stopped(self) -> None:
        stopped = ClockState(remaining_seconds=10)
        assert clock.pause(stopped) == stopped
        assert clock.resume(stopped) == stopped


class TestReset:
    @pytest.mark.parametrize(
        "state",
        [
            ClockState(),
            ClockState(running=True, remaining_seconds=3, session_type=SessionType.WORK, completed_work_sessions=7),
            ClockState(running=True, paused=True, remaining_seconds=90, session_type=SessionType.LONG_BREAK),
        ],
    )
    def test_reset_from_any_state(self, state: ClockState) -> None:
        assert clock.reset(state, DURATIONS) == ClockState(
            running=False,
            paused=False,
            remaining_seconds=1500,
            session_type=SessionType.WORK,
            completed_work_sessions=0,
        )


class TestTick:
    def test_tick_ignored_while_paused(self) -> None:
        paused = ClockState(running=True, paused=True, remaining_seconds=10)
        assert clock.tick(paused, DURATIONS) == (paused, None)

    def test_tick_ignored_while_stopped(self) -> None:
        stopped = ClockState(remaining_seconds=10)
        assert clock.tick(stopped, DURATIONS) == (stopped, None)

    def test_tick_decrements_by_one(self) -> None:
        state, event = clock.tick(ClockState(running=True, remaining_seconds=10), DURATIONS)
        assert state.remaining_seconds == 9
        assert event is None

    def test_full_work_session_transitions_once(self) -> None:
        state = clock.start(ClockState(), DURATIONS)
        assert state.remaining_seconds == 1500

        state, events = run_ticks(state, 1500)

        assert events == [TransitionEvent(SessionType.WORK, SessionType.BREAK, 1)]
        assert state.session_type is SessionType.BREAK
        assert state.remaining_seconds == 300
        assert state.running

    def test_no_event_one_tick_early(self) -> None:
        state = clock.start(ClockState(), DURATIONS)
        _, events = run_ticks(state, 1499)
        assert events == []

    def test_break_returns_to_work(self) -> None:
        state = ClockState(running=True, remaining_seconds=1, session_type=SessionType.LONG_BREAK, completed_work_sessions=4)
        state, event = clock.tick(state, DURATIONS)
        assert event == TransitionEvent(SessionType.LONG_BREAK, SessionType.WORK, 4)
        assert state.remaining_seconds == 1500
        assert state.completed_work_sessions == 4

    def test_long_break_every_fourth_work_session(self) -> None:
        durations = Durations(work_minutes=1, break_minutes=1, long_break_minutes=2)
        state = clock.start(ClockState(), durations)

        breaks = []
        while len(breaks) < 8:
            state, event = clock.tick(state, durations)
            if event is not None and event.from_type is SessionType.WORK:
                breaks.append(event.to_type)
                assert event.completed_work_sessions == len(breaks)

        assert breaks == [
            SessionType.BREAK,
            SessionType.BREAK,
            SessionType.BREAK,
            SessionType.LONG_BREAK,
            SessionType.BREAK,
            SessionType.BREAK,
            SessionType.BREAK,
            SessionType.LONG_BREAK,
        ]

    def test_fourth_transition_uses_long_break_length(self) -> None:
        state = ClockState(running=True, remaining_seconds=1, completed_work_sessions=3)
        state, event = clock.tick(state, DURATIONS)
        assert event.to_type is SessionType.LONG_BREAK
        assert state.remaining_seconds == 15 * 60
        assert state.completed_work_sessions == 4


class TestClockState:
    def test_cannot_pause_stopped_clock(self) -> None:
        with pytest.raises(ValueError):
            ClockState(running=False, paused=True)

    def test_remaining_display(self) -> None:
        assert ClockState(remaining_seconds=1500).remaining_display == "25:00"
        assert ClockState(remaining_seconds=65).remaining_display == "01:05"

    def test_snapshot_payload(self) -> None:
        state = ClockState(running=True, remaining_seconds=30, session_type=SessionType.LONG_BREAK)
        assert state.snapshot() == {
            "remaining_seconds": 30,
            "session_type": "longBreak",
            "running": True,
            "paused": False,
        }

    def test_from_dict_normalises_stored_flags(self) -> None:
        state = ClockState.from_dict(
            {"running": 0, "paused": 1, "remaining_seconds": -3, "session_type": "break"}
        )
        assert state == ClockState(running=False, paused=False, remaining_seconds=0, session_type=SessionType.BREAK)

    def test_labels(self) -> None:
        assert SessionType.WORK.label == "Work Session"
        assert SessionType.BREAK.label == "Break Time"
        assert SessionType.LONG_BREAK.label == "Long Break"


def test_durations_must_be_positive() -> None:
    with pytest.raises(ValueError):
        Durations(work_minutes=0)
