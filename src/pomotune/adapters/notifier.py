"""Desktop notification collaborators."""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys
from typing import Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, title: str, body: str) -> None: ...


class DesktopNotifier:
    """Shows notifications with the platform's command line tool.

    Uses ``notify-send`` on Linux and ``osascript`` on macOS. When neither is
    available the message is only logged.
    """

    def __init__(self, urgency: str = "normal", timeout: float = 5.0):
        self.urgency = urgency
        self.timeout = timeout

    def _command(self, title: str, body: str) -> list[str] | None:
        if sys.platform == "darwin" and shutil.which("osascript"):
            script = f"display notification {_applescript_string(body)} with title {_applescript_string(title)}"
            return ["osascript", "-e", script]
        if shutil.which("notify-send"):
            return ["notify-send", "-u", self.urgency, "-a", "Pomotune", title, body]
        return None

    def notify(self, title: str, body: str) -> None:
        command = self._command(title, body)
        if command is None:
            logger.info(f"Notification: {title} - {body}")
            return

        try:
            subprocess.run(
                command,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=self.timeout,
                check=True,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning(f"Could not show notification {title!r}: {e}")


class LoggingNotifier:
    """Records notifications instead of showing them (headless mode)."""

    def __init__(self):
        self.sent: list[tuple[str, str]] = []

    def notify(self, title: str, body: str) -> None:
        self.sent.append((title, body))
        logger.info(f"Notification: {title} - {body}")


def _applescript_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'
