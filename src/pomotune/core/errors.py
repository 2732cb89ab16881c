"""Error types shared across the timer, storage and collaborator layers."""

from __future__ import annotations


class PomotuneError(Exception):
    """Base class for all Pomotune errors."""


class PersistenceError(PomotuneError):
    """Reading or writing persisted state failed."""


class ConfigInvalid(PomotuneError):
    """Timer settings were rejected at write time."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or [message]


class BroadcastUnavailable(PomotuneError):
    """No listener is subscribed to state updates."""


class PlaybackUnavailable(PomotuneError):
    """The playback collaborator could not locate or control the media."""

    def __init__(self, media_ref: str, reason: str):
        super().__init__(f"Cannot control {media_ref!r}: {reason}")
        self.media_ref = media_ref
        self.reason = reason
