"""Media playback collaborators keyed by an opaque media reference."""

from __future__ import annotations

import logging
import webbrowser
from typing import Protocol
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from pomotune.core.errors import PlaybackUnavailable

logger = logging.getLogger(__name__)


class Player(Protocol):
    def play(self, media_ref: str) -> None: ...

    def pause(self, media_ref: str) -> None: ...

    def resume(self, media_ref: str) -> None: ...


def with_autoplay(url: str) -> str:
    """Add ``autoplay=1`` to a URL's query string, keeping existing parameters."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "autoplay"]
    query.append(("autoplay", "1"))
    return urlunsplit(parts._replace(query=urlencode(query)))


class BrowserPlayer:
    """Plays media by opening it in the default web browser.

    A browser tab cannot be controlled once opened, so ``pause`` always
    reports the media as unavailable. The tab it opened keeps playing, so
    ``resume`` has nothing to act on and reports the same.
    """

    def __init__(self, new_tab: bool = True):
        self.new_tab = new_tab

    def play(self, media_ref: str) -> None:
        url = with_autoplay(media_ref)
        opened = webbrowser.open(url, new=2 if self.new_tab else 0, autoraise=False)
        if not opened:
            raise PlaybackUnavailable(media_ref, "no browser could be launched")
        logger.info(f"Playing {media_ref}")

    def pause(self, media_ref: str) -> None:
        raise PlaybackUnavailable(media_ref, "browser playback cannot be paused remotely")

    def resume(self, media_ref: str) -> None:
        raise PlaybackUnavailable(media_ref, "browser playback cannot be resumed remotely")


class LoggingPlayer:
    """Records playback calls instead of acting on them (headless mode)."""

    def __init__(self):
        self.calls: list[tuple[str, str]] = []

    def play(self, media_ref: str) -> None:
        self.calls.append(("play", media_ref))
        logger.info(f"Play {media_ref}")

    def pause(self, media_ref: str) -> None:
        self.calls.append(("pause", media_ref))
        logger.info(f"Pause {media_ref}")

    def resume(self, media_ref: str) -> None:
        self.calls.append(("resume", media_ref))
        logger.info(f"Resume {media_ref}")
