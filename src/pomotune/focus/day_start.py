"""Daily day-start alarm: one shot at the next HH:MM, then every 24 hours."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, time, timedelta
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

DAY_SECONDS = 24 * 60 * 60


def parse_time_of_day(value: str) -> time:
    """Parse an ``HH:MM`` string."""
    try:
        hours, minutes = (int(part) for part in value.split(":"))
        return time(hour=hours, minute=minutes)
    except (TypeError, ValueError) as e:
        raise ValueError(f"time_of_day must be HH:MM, got {value!r}") from e


def next_occurrence(time_of_day: str, now: datetime) -> datetime:
    """Next moment the wall clock reads ``time_of_day``.

    Today if that moment is still strictly in the future, otherwise tomorrow.
    """
    at = parse_time_of_day(time_of_day)
    scheduled = now.replace(hour=at.hour, minute=at.minute, second=0, microsecond=0)
    if scheduled <= now:
        scheduled += timedelta(days=1)
    return scheduled


class DayStartAlarm:
    """Recurring alarm backed by a single asyncio task.

    Re-arming replaces the previous schedule, so at most one alarm is ever
    pending.
    """

    def __init__(
        self,
        on_fire: Callable[[], Awaitable[None]],
        now: Callable[[], datetime] = datetime.now,
        period_seconds: float = DAY_SECONDS,
    ):
        self._on_fire = on_fire
        self._now = now
        self._period = period_seconds
        self._task: asyncio.Task | None = None
        self._next_fire_at: datetime | None = None

    @property
    def is_armed(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def next_fire_at(self) -> datetime | None:
        """When the alarm will next go off, if armed."""
        return self._next_fire_at if self.is_armed else None

    def arm(self, time_of_day: str) -> datetime:
        """Schedule the alarm for the next ``time_of_day``, replacing any previous one."""
        self.disarm()

        now = self._now()
        fire_at = next_occurrence(time_of_day, now)
        delay = (fire_at - now).total_seconds()

        self._next_fire_at = fire_at
        self._task = asyncio.create_task(self._run(delay))
        logger.info(f"Day start alarm set for: {fire_at.isoformat(timespec='minutes')}")
        return fire_at

    def disarm(self) -> None:
        """Clear the alarm. Safe to call when not armed."""
        if self._task is not None:
            self._task.cancel()
            self._task = None
            self._next_fire_at = None
            logger.info("Day start alarm cleared")

    async def _run(self, delay: float) -> None:
        await asyncio.sleep(delay)
        while True:
            try:
                await self._on_fire()
            except Exception as e:
                logger.error(f"Error in day start handler: {e}")

            if self._next_fire_at is not None:
                self._next_fire_at += timedelta(seconds=self._period)
            await asyncio.sleep(self._period)
