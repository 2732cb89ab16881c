"""Pomodoro session clock: pure state transitions over a persisted snapshot.

Nothing in this module owns a timer or touches storage. Every operation takes
a ``ClockState`` and returns a new one, which keeps the long-break cadence and
the edge cases (zero-duration seed, reset while running) testable without
event loops or mocks.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

# Every Nth completed work session is followed by a long break
LONG_BREAK_EVERY = 4


class SessionType(Enum):
    """Kind of session the clock is counting down."""
    WORK = "work"
    BREAK = "break"
    LONG_BREAK = "longBreak"

    @property
    def label(self) -> str:
        """Human readable name shown by UIs."""
        return _LABELS[self]

    @property
    def is_break(self) -> bool:
        return self is not SessionType.WORK


_LABELS = {
    SessionType.WORK: "Work Session",
    SessionType.BREAK: "Break Time",
    SessionType.LONG_BREAK: "Long Break",
}


@dataclass(frozen=True)
class Durations:
    """Configured session lengths in minutes."""
    work_minutes: int = 25
    break_minutes: int = 5
    long_break_minutes: int = 15

    def __post_init__(self) -> None:
        for name in ("work_minutes", "break_minutes", "long_break_minutes"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")

    def seconds_for(self, session_type: SessionType) -> int:
        """Length of a fresh session of the given type, in seconds."""
        if session_type is SessionType.WORK:
            return self.work_minutes * 60
        if session_type is SessionType.BREAK:
            return self.break_minutes * 60
        return self.long_break_minutes * 60


@dataclass(frozen=True)
class ClockState:
    """Persisted state of the work/break cycle."""
    running: bool = False
    paused: bool = False
    remaining_seconds: int = 0
    session_type: SessionType = SessionType.WORK
    completed_work_sessions: int = 0

    def __post_init__(self) -> None:
        if self.paused and not self.running:
            raise ValueError("a stopped clock cannot be paused")
        if self.remaining_seconds < 0:
            raise ValueError("remaining_seconds cannot be negative")
        if self.completed_work_sessions < 0:
            raise ValueError("completed_work_sessions cannot be negative")

    @property
    def is_counting(self) -> bool:
        """True while ticks should decrement the clock."""
        return self.running and not self.paused

    @property
    def remaining_display(self) -> str:
        """Format time remaining as MM:SS."""
        minutes, seconds = divmod(self.remaining_seconds, 60)
        return f"{minutes:02d}:{seconds:02d}"

    def snapshot(self) -> dict[str, Any]:
        """Payload broadcast to UI listeners on every persisted change."""
        return {
            "remaining_seconds": self.remaining_seconds,
            "session_type": self.session_type.value,
            "running": self.running,
            "paused": self.paused,
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for database storage."""
        return {
            **self.snapshot(),
            "completed_work_sessions": self.completed_work_sessions,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClockState:
        """Create from a stored dictionary."""
        running = bool(data.get("running", False))
        return cls(
            running=running,
            paused=running and bool(data.get("paused", False)),
            remaining_seconds=max(0, int(data.get("remaining_seconds", 0))),
            session_type=SessionType(data.get("session_type", SessionType.WORK.value)),
            completed_work_sessions=int(data.get("completed_work_sessions", 0)),
        )


@dataclass(frozen=True)
class TransitionEvent:
    """Emitted exactly once when a session runs out."""
    from_type: SessionType
    to_type: SessionType
    completed_work_sessions: int


def start(state: ClockState, durations: Durations) -> ClockState:
    """Start the clock.

    Starting an exhausted (or never initialised) clock always begins a fresh
    work session, whatever session type was stored.
    """
    if state.running:
        return state

    if state.remaining_seconds == 0:
        state = replace(
            state,
            remaining_seconds=durations.seconds_for(SessionType.WORK),
            session_type=SessionType.WORK,
        )

    return replace(state, running=True, paused=False)


def pause(state: ClockState) -> ClockState:
    if not state.running:
        return state
    return replace(state, paused=True)


def resume(state: ClockState) -> ClockState:
    if not state.running:
        return state
    return replace(state, paused=False)


def reset(state: ClockState, durations: Durations) -> ClockState:
    """Hard reset: back to an idle, full-length work session with no history."""
    return ClockState(
        running=False,
        paused=False,
        remaining_seconds=durations.seconds_for(SessionType.WORK),
        session_type=SessionType.WORK,
        completed_work_sessions=0,
    )


def next_session(state: ClockState) -> tuple[SessionType, int]:
    """Session that follows the current one, and the updated work count."""
    if state.session_type is SessionType.WORK:
        completed = state.completed_work_sessions + 1
        if completed % LONG_BREAK_EVERY == 0:
            return SessionType.LONG_BREAK, completed
        return SessionType.BREAK, completed

    return SessionType.WORK, state.completed_work_sessions


def tick(state: ClockState, durations: Durations) -> tuple[ClockState, TransitionEvent | None]:
    """Advance the clock by one second.

    Returns the new state and, when the session ran out, the transition that
    happened. The clock keeps running across transitions.
    """
    if not state.is_counting:
        return state, None

    remaining = state.remaining_seconds - 1
    if remaining > 0:
        return replace(state, remaining_seconds=remaining), None

    next_type, completed = next_session(state)
    event = TransitionEvent(
        from_type=state.session_type,
        to_type=next_type,
        completed_work_sessions=completed,
    )
    new_state = replace(
        state,
        session_type=next_type,
        remaining_seconds=durations.seconds_for(next_type),
        completed_work_sessions=completed,
    )
    return new_state, event
