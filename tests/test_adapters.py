"""Tests for the intent dispatcher and its notification/playback collaborators."""

from __future__ import annotations

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from pomotune.adapters.notifier import DesktopNotifier, LoggingNotifier
from pomotune.adapters.player import BrowserPlayer, LoggingPlayer, with_autoplay
from pomotune.core.errors import PlaybackUnavailable
from pomotune.focus.dispatcher import IntentDispatcher
from pomotune.focus.intents import (
    MediaCategory,
    NotificationIntent,
    PlaybackAction,
    PlaybackIntent,
)

URL = "https://music.example/watch?v=abc"


class TestWithAutoplay:
    def test_appends_to_existing_query(self) -> None:
        assert with_autoplay(URL) == "https://music.example/watch?v=abc&autoplay=1"

    def test_without_query(self) -> None:
        assert with_autoplay("https://music.example/live") == "https://music.example/live?autoplay=1"

    def test_replaces_existing_autoplay(self) -> None:
        assert with_autoplay("https://music.example/w?autoplay=0&v=1") == "https://music.example/w?v=1&autoplay=1"


class TestBrowserPlayer:
    def test_play_opens_background_tab(self) -> None:
        with patch("pomotune.adapters.player.webbrowser.open", return_value=True) as mock_open:
            BrowserPlayer().play(URL)

        mock_open.assert_called_once_with(with_autoplay(URL), new=2, autoraise=False)

    def test_play_without_browser(self) -> None:
        with patch("pomotune.adapters.player.webbrowser.open", return_value=False):
            with pytest.raises(PlaybackUnavailable) as exc_info:
                BrowserPlayer().play(URL)

        assert exc_info.value.media_ref == URL

    def test_pause_is_unavailable(self) -> None:
        with pytest.raises(PlaybackUnavailable):
            BrowserPlayer().pause(URL)

    def test_pause_resume_cycle_opens_media_once(self) -> None:
        player = BrowserPlayer()
        with patch("pomotune.adapters.player.webbrowser.open", return_value=True) as mock_open:
            player.play(URL)
            with pytest.raises(PlaybackUnavailable):
                player.pause(URL)
            with pytest.raises(PlaybackUnavailable):
                player.resume(URL)

        assert mock_open.call_count == 1


class TestDesktopNotifier:
    def test_uses_notify_send(self) -> None:
        with patch("pomotune.adapters.notifier.sys.platform", "linux"), patch(
            "pomotune.adapters.notifier.shutil.which", return_value="/usr/bin/notify-send"
        ), patch("pomotune.adapters.notifier.subprocess.run") as mock_run:
            DesktopNotifier().notify("Break Complete!", "Time to get back to work!")

        command = mock_run.call_args[0][0]
        assert command == [
            "notify-send",
            "-u",
            "normal",
            "-a",
            "Pomotune",
            "Break Complete!",
            "Time to get back to work!",
        ]

    def test_uses_osascript_on_macos(self) -> None:
        with patch("pomotune.adapters.notifier.sys.platform", "darwin"), patch(
            "pomotune.adapters.notifier.shutil.which", return_value="/usr/bin/osascript"
        ), patch("pomotune.adapters.notifier.subprocess.run") as mock_run:
            DesktopNotifier().notify('Say "hi"', "body")

        command = mock_run.call_args[0][0]
        assert command[:2] == ["osascript", "-e"]
        assert 'with title "Say \\"hi\\""' in command[2]

    def test_no_tool_available_only_logs(self) -> None:
        with patch("pomotune.adapters.notifier.shutil.which", return_value=None), patch(
            "pomotune.adapters.notifier.subprocess.run"
        ) as mock_run:
            DesktopNotifier().notify("title", "body")

        mock_run.assert_not_called()

    def test_failing_tool_is_not_raised(self) -> None:
        with patch("pomotune.adapters.notifier.sys.platform", "linux"), patch(
            "pomotune.adapters.notifier.shutil.which", return_value="/usr/bin/notify-send"
        ), patch(
            "pomotune.adapters.notifier.subprocess.run",
            side_effect=subprocess.CalledProcessError(1, "notify-send"),
        ):
            DesktopNotifier().notify("title", "body")


class TestIntentDispatcher:
    @pytest.mark.asyncio
    async def test_routes_intents(self) -> None:
        notifier = LoggingNotifier()
        player = LoggingPlayer()
        dispatcher = IntentDispatcher(notifier, player)

        await dispatcher(NotificationIntent("Good Morning!", "hello"))
        await dispatcher(PlaybackIntent(PlaybackAction.PLAY, MediaCategory.FOCUS, "f"))
        await dispatcher(PlaybackIntent(PlaybackAction.PAUSE, MediaCategory.FOCUS, "f"))
        await dispatcher(PlaybackIntent(PlaybackAction.RESUME, MediaCategory.BREAK, "b"))

        assert notifier.sent == [("Good Morning!", "hello")]
        assert player.calls == [("play", "f"), ("pause", "f"), ("resume", "b")]

    @pytest.mark.asyncio
    async def test_unavailable_playback_is_swallowed(self) -> None:
        player = MagicMock()
        player.pause.side_effect = PlaybackUnavailable("f", "cannot pause")
        dispatcher = IntentDispatcher(LoggingNotifier(), player)

        await dispatcher(PlaybackIntent(PlaybackAction.PAUSE, MediaCategory.FOCUS, "f"))

        player.pause.assert_called_once_with("f")

    @pytest.mark.asyncio
    async def test_collaborator_crash_is_swallowed(self) -> None:
        notifier = MagicMock()
        notifier.notify.side_effect = RuntimeError("dbus gone")
        dispatcher = IntentDispatcher(notifier, LoggingPlayer())

        await dispatcher(NotificationIntent("t", "b"))

        notifier.notify.assert_called_once_with("t", "b")


def test_playback_intent_names() -> None:
    assert PlaybackIntent(PlaybackAction.PLAY, MediaCategory.FOCUS, "x").name == "PlayFocus"
    assert PlaybackIntent(PlaybackAction.PAUSE, MediaCategory.DAY_START, "x").name == "PauseDayStart"
