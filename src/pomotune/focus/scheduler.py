"""Session scheduler: drives the clock, persists it, and emits side-effect intents."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Coroutine

from pomotune.core.errors import BroadcastUnavailable, PersistenceError
from pomotune.focus import clock
from pomotune.focus.clock import ClockState, TransitionEvent
from pomotune.focus.day_start import DayStartAlarm
from pomotune.focus.intents import (
    DAY_START_BEGIN,
    DAY_START_END,
    TRANSITION_MESSAGES,
    Command,
    Intent,
    IntentSink,
    MediaCategory,
    PlaybackAction,
    PlaybackIntent,
)

if TYPE_CHECKING:
    from pomotune.core.config import TimerSettings
    from pomotune.storage.state_store import StateStore

logger = logging.getLogger(__name__)

_COMMAND_PLAYBACK = {
    Command.START: PlaybackAction.PLAY,
    Command.PAUSE: PlaybackAction.PAUSE,
    Command.RESUME: PlaybackAction.RESUME,
}


def media_ref_for(settings: TimerSettings, category: MediaCategory) -> str | None:
    """Configured media for a category, or None when unset."""
    if category is MediaCategory.FOCUS:
        return settings.media.focus_url
    if category is MediaCategory.BREAK:
        return settings.media.break_url
    return settings.media.day_start_url


class SessionScheduler:
    """Owns the work/break clock and the day-start alarm.

    Persisted state is the single source of truth: every command and every
    tick runs one load -> compute -> save cycle under a lock, and the tick
    loop re-derives whether it should keep going from what it loaded. Intents
    are delivered from background tasks, after the state they stem from has
    been saved.

    Usage:
        scheduler = SessionScheduler(store, sink=dispatcher, on_state=broadcaster.publish)
        await scheduler.restore()

        await scheduler.handle_command(Command.START)
        await scheduler.handle_command(Command.PAUSE)
        await scheduler.set_day_start(True, "06:30")

        await scheduler.close()
    """

    def __init__(
        self,
        store: StateStore,
        sink: IntentSink,
        on_state: Callable[[dict[str, Any]], None] | None = None,
        tick_seconds: float = 1.0,
        handoff_delay: float = 0.5,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self._sink = sink
        self._on_state = on_state
        self._tick_seconds = tick_seconds
        self._handoff_delay = handoff_delay

        self._lock = asyncio.Lock()
        self._tick_task: asyncio.Task | None = None
        self._intent_tasks: set[asyncio.Task] = set()

        self._day_start = DayStartAlarm(self.on_day_start_fired, now=now)
        self._day_start_session: asyncio.Task | None = None

    @property
    def is_ticking(self) -> bool:
        """Whether the tick loop is currently scheduled."""
        return self._tick_task is not None and not self._tick_task.done()

    @property
    def day_start_alarm(self) -> DayStartAlarm:
        return self._day_start

    async def current_state(self) -> ClockState:
        return await self.store.load()

    # Commands

    async def handle_command(self, command: Command) -> ClockState:
        """Apply a user command and persist the result.

        Raises PersistenceError if the state cannot be loaded or saved.
        """
        async with self._lock:
            state = await self.store.load()
            settings = await self.store.load_settings()
            durations = settings.durations

            if command is Command.START:
                new_state = clock.start(state, durations)
            elif command is Command.PAUSE:
                new_state = clock.pause(state)
            elif command is Command.RESUME:
                new_state = clock.resume(state)
            else:
                new_state = clock.reset(state, durations)

            await self.store.save(new_state)

            if new_state.is_counting:
                self._ensure_ticking()
            else:
                await self._stop_ticking()

        logger.info(
            f"Command {command.value}: {new_state.session_type.value} "
            f"{new_state.remaining_display} (running={new_state.running}, paused={new_state.paused})"
        )
        self._publish(new_state)

        if command in _COMMAND_PLAYBACK and new_state != state:
            category = MediaCategory.for_session(new_state.session_type)
            media_ref = media_ref_for(settings, category)
            if media_ref:
                self._spawn(self._emit(PlaybackIntent(_COMMAND_PLAYBACK[command], category, media_ref)))

        return new_state

    async def update_settings(self, changes: dict[str, Any]) -> TimerSettings:
        """Validate and persist new timer settings.

        Raises ConfigInvalid (nothing is stored) or PersistenceError.
        """
        async with self._lock:
            settings = await self.store.load_settings()
            updated = settings.updated(changes)
            await self.store.save_settings(updated)
            self.schedule_day_start(updated.day_start.time_of_day, updated.day_start.enabled)
        return updated

    async def set_day_start(self, enabled: bool, time_of_day: str) -> TimerSettings:
        return await self.update_settings(
            {"day_start": {"enabled": enabled, "time_of_day": time_of_day}}
        )

    # Tick loop

    async def on_tick(self) -> bool:
        """Advance the clock by one tick.

        Returns False when the clock is no longer counting and the loop
        should stop.
        """
        async with self._lock:
            try:
                state = await self.store.load()
                settings = await self.store.load_settings()
            except PersistenceError as e:
                logger.warning(f"Skipping tick: {e}")
                return True

            if not state.is_counting:
                return False

            new_state, event = clock.tick(state, settings.durations)

            try:
                await self.store.save(new_state)
            except PersistenceError as e:
                logger.warning(f"Skipping tick: {e}")
                return True

        self._publish(new_state)

        if event is not None:
            logger.info(
                f"{event.from_type.label} complete, starting {event.to_type.label} "
                f"({event.completed_work_sessions} work sessions completed)"
            )
            self._spawn(self._emit_transition(event, settings))

        return True

    def _ensure_ticking(self) -> None:
        if self.is_ticking:
            return
        self._tick_task = asyncio.create_task(self._tick_loop())

    async def _stop_ticking(self) -> None:
        task = self._tick_task
        self._tick_task = None
        if task is None or task is asyncio.current_task():
            return

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _tick_loop(self) -> None:
        """Main timer tick loop."""
        while True:
            await asyncio.sleep(self._tick_seconds)
            try:
                if not await self.on_tick():
                    break
            except Exception as e:
                logger.error(f"Error in timer tick loop: {e}")

        logger.debug("Tick loop stopped")

    # Intent emission

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._intent_tasks.add(task)
        task.add_done_callback(self._intent_tasks.discard)
        return task

    async def _emit(self, intent: Intent) -> None:
        try:
            await self._sink(intent)
        except Exception as e:
            logger.error(f"Intent sink failed on {intent!r}: {e}")

    async def _emit_transition(self, event: TransitionEvent, settings: TimerSettings) -> None:
        """Pause the old session's media, notify, then play the new session's media.

        Playing waits until the pause was acknowledged or the hand-off delay
        elapsed, so a single shared player never receives both at once.
        """
        from_category = MediaCategory.for_session(event.from_type)
        to_category = MediaCategory.for_session(event.to_type)

        pause_ref = media_ref_for(settings, from_category)
        pause_task: asyncio.Task | None = None
        if pause_ref:
            pause_task = self._spawn(
                self._emit(PlaybackIntent(PlaybackAction.PAUSE, from_category, pause_ref))
            )
            await asyncio.sleep(0)

        await self._emit(TRANSITION_MESSAGES[event.from_type])

        if pause_task is not None:
            done, _ = await asyncio.wait({pause_task}, timeout=self._handoff_delay)
            if not done:
                logger.debug(f"Pause of {pause_ref} not acknowledged after {self._handoff_delay}s")

        play_ref = media_ref_for(settings, to_category)
        if play_ref:
            await self._emit(PlaybackIntent(PlaybackAction.PLAY, to_category, play_ref))

    def _publish(self, state: ClockState) -> None:
        if self._on_state is None:
            return
        try:
            self._on_state(state.snapshot())
        except BroadcastUnavailable:
            logger.debug("No state listeners")
        except Exception as e:
            logger.error(f"Error broadcasting state: {e}")

    async def drain(self) -> None:
        """Wait for all in-flight intent deliveries."""
        while self._intent_tasks:
            await asyncio.gather(*list(self._intent_tasks), return_exceptions=True)

    # Day start

    def schedule_day_start(self, time_of_day: str, enabled: bool) -> datetime | None:
        """Arm (or clear) the daily day-start alarm. Returns the next firing time."""
        if not enabled:
            self._day_start.disarm()
            return None
        return self._day_start.arm(time_of_day)

    async def on_day_start_fired(self) -> bool:
        """Run the day-start session if it is enabled and has media configured.

        Returns True if a session was started.
        """
        try:
            settings = await self.store.load_settings()
        except PersistenceError as e:
            logger.warning(f"Skipping day start: {e}")
            return False

        media_ref = settings.media.day_start_url
        if not settings.day_start.enabled or not media_ref:
            return False

        logger.info(f"Day start session beginning ({settings.day_start.duration_minutes} min)")
        await self._emit(DAY_START_BEGIN)
        await self._emit(PlaybackIntent(PlaybackAction.PLAY, MediaCategory.DAY_START, media_ref))

        if self._day_start_session is not None:
            self._day_start_session.cancel()
        self._day_start_session = asyncio.create_task(
            self._end_day_start_after(media_ref, settings.day_start.duration_minutes * 60)
        )
        return True

    async def _end_day_start_after(self, media_ref: str, delay: float) -> None:
        await asyncio.sleep(delay)
        await self._emit(PlaybackIntent(PlaybackAction.PAUSE, MediaCategory.DAY_START, media_ref))
        await self._emit(DAY_START_END)
        logger.info("Day start session complete")

    # Lifecycle

    async def restore(self) -> ClockState:
        """Re-establish ticking and the day-start alarm from persisted state.

        Safe to call repeatedly, e.g. after the host process wakes up.
        """
        async with self._lock:
            state = await self.store.load()
            settings = await self.store.load_settings()
            await self.store.save(state)
            await self.store.save_settings(settings)

            if state.is_counting:
                self._ensure_ticking()

        self.schedule_day_start(settings.day_start.time_of_day, settings.day_start.enabled)
        self._publish(state)

        logger.info(
            f"Scheduler restored: {state.session_type.label} {state.remaining_display} "
            f"(running={state.running}, paused={state.paused})"
        )
        return state

    async def close(self) -> None:
        """Stop ticking, clear alarms and cancel pending deliveries."""
        async with self._lock:
            await self._stop_ticking()

        self._day_start.disarm()
        if self._day_start_session is not None:
            self._day_start_session.cancel()
            self._day_start_session = None

        for task in list(self._intent_tasks):
            task.cancel()
        if self._intent_tasks:
            await asyncio.gather(*list(self._intent_tasks), return_exceptions=True)

        logger.info("Scheduler stopped")
