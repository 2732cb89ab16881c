"""Commands accepted by the scheduler and side-effect intents it emits."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Union

from pomotune.focus.clock import SessionType


class Command(Enum):
    """User commands that mutate the clock."""
    START = "start"
    PAUSE = "pause"
    RESUME = "resume"
    RESET = "reset"


class MediaCategory(Enum):
    """Which configured media a playback intent refers to."""
    FOCUS = "focus"
    BREAK = "break"
    DAY_START = "day_start"

    @classmethod
    def for_session(cls, session_type: SessionType) -> MediaCategory:
        return cls.BREAK if session_type.is_break else cls.FOCUS


class PlaybackAction(Enum):
    PLAY = "play"
    PAUSE = "pause"
    RESUME = "resume"


@dataclass(frozen=True)
class PlaybackIntent:
    """Ask the playback collaborator to act on a media reference."""
    action: PlaybackAction
    category: MediaCategory
    media_ref: str

    @property
    def name(self) -> str:
        """Short form such as ``PlayFocus`` or ``PauseDayStart``, used in logs."""
        category = "".join(part.capitalize() for part in self.category.value.split("_"))
        return f"{self.action.value.capitalize()}{category}"


@dataclass(frozen=True)
class NotificationIntent:
    """Ask the notification collaborator to show a message."""
    title: str
    body: str


Intent = Union[PlaybackIntent, NotificationIntent]

# Collaborators receive intents through an async callable; returning means acknowledged
IntentSink = Callable[[Intent], Awaitable[None]]


# Notification shown when a session of the given type runs out
TRANSITION_MESSAGES: dict[SessionType, NotificationIntent] = {
    SessionType.WORK: NotificationIntent("Work Session Complete!", "Time for a break!"),
    SessionType.BREAK: NotificationIntent("Break Complete!", "Time to get back to work!"),
    SessionType.LONG_BREAK: NotificationIntent("Break Complete!", "Time to get back to work!"),
}

DAY_START_BEGIN = NotificationIntent("Good Morning!", "Your day start session is beginning!")
DAY_START_END = NotificationIntent("Day Start Complete", "Have a great day!")
