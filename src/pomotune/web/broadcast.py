"""Best-effort fan-out of clock snapshots to connected listeners."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from pomotune.core.errors import BroadcastUnavailable

logger = logging.getLogger(__name__)


class StateBroadcaster:
    """Publishes snapshots to every subscribed queue.

    Slow listeners never block the publisher: when a queue is full its oldest
    snapshot is dropped, since only the latest state matters.
    """

    DEFAULT_QUEUE_SIZE = 16

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE):
        self._queue_size = queue_size
        self._subscribers: set[asyncio.Queue] = set()
        self.last_snapshot: dict[str, Any] | None = None

    @property
    def listener_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        if self.last_snapshot is not None:
            queue.put_nowait(self.last_snapshot)
        self._subscribers.add(queue)
        logger.debug(f"Listener subscribed ({len(self._subscribers)} total)")
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)
        logger.debug(f"Listener unsubscribed ({len(self._subscribers)} total)")

    def publish(self, snapshot: dict[str, Any]) -> None:
        """Send a snapshot to all listeners.

        Raises BroadcastUnavailable when nobody is listening.
        """
        self.last_snapshot = snapshot
        if not self._subscribers:
            raise BroadcastUnavailable("no listeners subscribed")

        for queue in self._subscribers:
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(snapshot)
