"""Shared fixtures for Pomotune tests."""

from __future__ import annotations

import pytest
import pytest_asyncio

from pomotune.core.config import TimerSettings
from pomotune.focus.scheduler import SessionScheduler
from pomotune.storage.database import Database
from pomotune.storage.state_store import StateStore


class RecordingSink:
    """Intent sink that remembers everything it was given."""

    def __init__(self):
        self.intents = []

    async def __call__(self, intent) -> None:
        self.intents.append(intent)


@pytest_asyncio.fixture
async def db(tmp_path):
    database = Database(tmp_path / "pomotune.db")
    await database.connect()
    yield database
    await database.close()


@pytest_asyncio.fixture
async def store(db):
    return StateStore(db)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest_asyncio.fixture
async def scheduler(store, sink):
    # Ticks are driven by hand unless a test builds its own fast scheduler
    sched = SessionScheduler(store, sink=sink, tick_seconds=3600, handoff_delay=0.05)
    yield sched
    await sched.close()


async def configure(store: StateStore, **changes) -> TimerSettings:
    """Persist settings with the given changes applied to the defaults."""
    settings = TimerSettings().updated(changes)
    await store.save_settings(settings)
    return settings
