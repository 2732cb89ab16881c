"""Session clock, intents and day-start scheduling."""

from pomotune.focus.clock import ClockState, Durations, SessionType, TransitionEvent
from pomotune.focus.day_start import DayStartAlarm, next_occurrence
from pomotune.focus.intents import (
    Command,
    MediaCategory,
    NotificationIntent,
    PlaybackAction,
    PlaybackIntent,
)

__all__ = [
    "ClockState",
    "Durations",
    "SessionType",
    "TransitionEvent",
    "DayStartAlarm",
    "next_occurrence",
    "Command",
    "MediaCategory",
    "NotificationIntent",
    "PlaybackAction",
    "PlaybackIntent",
]
