"""Tests for the state broadcaster."""

from __future__ import annotations

import pytest

from pomotune.core.errors import BroadcastUnavailable
from pomotune.web.broadcast import StateBroadcaster


@pytest.mark.asyncio
async def test_publish_without_listeners() -> None:
    broadcaster = StateBroadcaster()

    with pytest.raises(BroadcastUnavailable):
        broadcaster.publish({"running": False})

    assert broadcaster.last_snapshot == {"running": False}


@pytest.mark.asyncio
async def test_new_subscriber_gets_latest_snapshot() -> None:
    broadcaster = StateBroadcaster()
    with pytest.raises(BroadcastUnavailable):
        broadcaster.publish({"remaining_seconds": 10})

    queue = broadcaster.subscribe()

    assert queue.get_nowait() == {"remaining_seconds": 10}


@pytest.mark.asyncio
async def test_fan_out_to_all_listeners() -> None:
    broadcaster = StateBroadcaster()
    first = broadcaster.subscribe()
    second = broadcaster.subscribe()

    broadcaster.publish({"remaining_seconds": 5})

    assert first.get_nowait() == {"remaining_seconds": 5}
    assert second.get_nowait() == {"remaining_seconds": 5}
    assert broadcaster.listener_count == 2


@pytest.mark.asyncio
async def test_slow_listener_keeps_newest() -> None:
    broadcaster = StateBroadcaster(queue_size=2)
    queue = broadcaster.subscribe()

    for remaining in (3, 2, 1):
        broadcaster.publish({"remaining_seconds": remaining})

    assert queue.get_nowait() == {"remaining_seconds": 2}
    assert queue.get_nowait() == {"remaining_seconds": 1}
    assert queue.empty()


@pytest.mark.asyncio
async def test_unsubscribe() -> None:
    broadcaster = StateBroadcaster()
    queue = broadcaster.subscribe()
    broadcaster.unsubscribe(queue)
    broadcaster.unsubscribe(queue)

    assert broadcaster.listener_count == 0
    with pytest.raises(BroadcastUnavailable):
        broadcaster.publish({})
