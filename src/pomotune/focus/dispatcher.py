"""Delivers scheduler intents to the notification and playback collaborators."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from pomotune.core.errors import PlaybackUnavailable
from pomotune.focus.intents import Intent, NotificationIntent, PlaybackAction, PlaybackIntent

if TYPE_CHECKING:
    from pomotune.adapters.notifier import Notifier
    from pomotune.adapters.player import Player

logger = logging.getLogger(__name__)


class IntentDispatcher:
    """Intent sink that executes intents best-effort.

    Collaborator calls may block (subprocesses, browser launch), so they run
    in a worker thread. Failures are logged and never reach the scheduler.
    """

    def __init__(self, notifier: Notifier, player: Player):
        self.notifier = notifier
        self.player = player

    async def __call__(self, intent: Intent) -> None:
        try:
            if isinstance(intent, NotificationIntent):
                await asyncio.to_thread(self.notifier.notify, intent.title, intent.body)
            elif isinstance(intent, PlaybackIntent):
                await asyncio.to_thread(self._playback_call(intent.action), intent.media_ref)
            else:
                logger.warning(f"Ignoring unknown intent: {intent!r}")
        except PlaybackUnavailable as e:
            logger.warning(f"{intent.name} skipped: {e}")
        except Exception as e:
            logger.error(f"Error delivering {intent!r}: {e}")

    def _playback_call(self, action: PlaybackAction):
        if action is PlaybackAction.PLAY:
            return self.player.play
        if action is PlaybackAction.PAUSE:
            return self.player.pause
        return self.player.resume
