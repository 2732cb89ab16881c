"""Core configuration and error types."""

from pomotune.core.config import Config, TimerSettings, get_config
from pomotune.core.errors import (
    BroadcastUnavailable,
    ConfigInvalid,
    PersistenceError,
    PlaybackUnavailable,
    PomotuneError,
)

__all__ = [
    "Config",
    "TimerSettings",
    "get_config",
    "PomotuneError",
    "PersistenceError",
    "ConfigInvalid",
    "BroadcastUnavailable",
    "PlaybackUnavailable",
]
