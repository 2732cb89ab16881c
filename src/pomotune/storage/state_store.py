"""Persistence contract for the scheduler: clock state and timer settings."""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import TYPE_CHECKING

from pomotune.core.config import TimerSettings
from pomotune.core.errors import ConfigInvalid, PersistenceError
from pomotune.focus.clock import ClockState

if TYPE_CHECKING:
    from pomotune.storage.database import Database

logger = logging.getLogger(__name__)

SETTINGS_KEY = "timer_settings"


class StateStore:
    """Loads and saves the clock snapshot and timer settings.

    Every storage failure surfaces as ``PersistenceError`` so callers can tell
    it apart from programming errors.
    """

    def __init__(self, db: Database, default_settings: TimerSettings | None = None):
        self.db = db
        self._default_settings = default_settings or TimerSettings()

    async def load(self) -> ClockState:
        """Load the clock, or the initial idle state if nothing was saved yet."""
        try:
            row = await self.db.fetch_one(
                """SELECT running, paused, remaining_seconds, session_type, completed_work_sessions
                   FROM clock_state WHERE id = 1"""
            )
        except (sqlite3.Error, RuntimeError) as e:
            raise PersistenceError(f"Failed to load clock state: {e}") from e

        if row is None:
            return ClockState()

        try:
            return ClockState.from_dict(row)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Stored clock state is corrupt: {e}") from e

    async def save(self, state: ClockState) -> None:
        data = state.to_dict()
        try:
            await self.db.execute(
                """INSERT INTO clock_state
                       (id, running, paused, remaining_seconds, session_type,
                        completed_work_sessions, updated_at)
                   VALUES (1, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
                   ON CONFLICT(id) DO UPDATE SET
                       running = excluded.running,
                       paused = excluded.paused,
                       remaining_seconds = excluded.remaining_seconds,
                       session_type = excluded.session_type,
                       completed_work_sessions = excluded.completed_work_sessions,
                       updated_at = CURRENT_TIMESTAMP""",
                (
                    data["running"],
                    data["paused"],
                    data["remaining_seconds"],
                    data["session_type"],
                    data["completed_work_sessions"],
                ),
            )
        except (sqlite3.Error, RuntimeError) as e:
            raise PersistenceError(f"Failed to save clock state: {e}") from e

    async def load_settings(self) -> TimerSettings:
        """Load timer settings, falling back to the configured defaults."""
        try:
            raw = await self.db.get_setting(SETTINGS_KEY)
        except (sqlite3.Error, RuntimeError) as e:
            raise PersistenceError(f"Failed to load settings: {e}") from e

        if raw is None:
            return self._default_settings

        try:
            return TimerSettings.validated(json.loads(raw))
        except (json.JSONDecodeError, ConfigInvalid) as e:
            raise PersistenceError(f"Stored settings are corrupt: {e}") from e

    async def save_settings(self, settings: TimerSettings) -> None:
        try:
            await self.db.set_setting(SETTINGS_KEY, settings.model_dump_json())
        except (sqlite3.Error, RuntimeError) as e:
            raise PersistenceError(f"Failed to save settings: {e}") from e
        logger.info("Timer settings saved")
