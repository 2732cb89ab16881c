"""Notification and playback collaborators."""

from pomotune.adapters.notifier import DesktopNotifier, LoggingNotifier, Notifier
from pomotune.adapters.player import BrowserPlayer, LoggingPlayer, Player

__all__ = [
    "DesktopNotifier",
    "LoggingNotifier",
    "Notifier",
    "BrowserPlayer",
    "LoggingPlayer",
    "Player",
]
