# recruitsync/realtime/feed.py
"""
In-process change feed.

Producer writes publish a ChangeEvent per touched row; subscribers receive the
events for a single run_id on their own asyncio loop. Delivery is best effort:
a subscriber whose queue is full loses events and has to rely on polling.

`publish` is called from FastAPI's threadpool (sync routes), so subscriber
queues are only ever touched through `loop.call_soon_threadsafe`.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections import defaultdict

from recruitsync.schemas.events import ChangeEvent

logger = logging.getLogger(__name__)


class Subscription:
    def __init__(self, feed: "ChangeFeed", run_id: str, loop: asyncio.AbstractEventLoop, maxsize: int) -> None:
        self.run_id = run_id
        self.dropped = 0
        self._feed = feed
        self._loop = loop
        self._queue: asyncio.Queue[ChangeEvent] = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _put(self, event: ChangeEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning("change feed queue full for run %s; dropped %d event(s)", self.run_id, self.dropped)

    def _deliver(self, event: ChangeEvent) -> bool:
        if self._closed:
            return False
        try:
            self._loop.call_soon_threadsafe(self._put, event)
        except RuntimeError:
            # subscriber's loop is gone
            self.close()
            return False
        return True

    async def get(self, timeout: float | None = None) -> ChangeEvent | None:
        """Next event, or None when `timeout` elapses first."""
        if timeout is None:
            return await self._queue.get()
        try:
            return await asyncio.wait_for(self._queue.get(), timeout)
        except asyncio.TimeoutError:
            return None

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._feed._remove(self)


class ChangeFeed:
    def __init__(self, max_queue: int = 1000) -> None:
        self.max_queue = max_queue
        self._lock = threading.Lock()
        self._subs: dict[str, set[Subscription]] = defaultdict(set)

    def subscribe(self, run_id: str) -> Subscription:
        """Must be called from the coroutine that will consume the events."""
        sub = Subscription(self, run_id, asyncio.get_running_loop(), self.max_queue)
        with self._lock:
            self._subs[run_id].add(sub)
        logger.debug("subscribed to run %s", run_id)
        return sub

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            subs = self._subs.get(sub.run_id)
            if subs is not None:
                subs.discard(sub)
                if not subs:
                    del self._subs[sub.run_id]

    def subscriber_count(self, run_id: str) -> int:
        with self._lock:
            return len(self._subs.get(run_id, ()))

    def publish(self, event: ChangeEvent) -> int:
        with self._lock:
            targets = list(self._subs.get(event.run_id, ()))
        delivered = sum(1 for sub in targets if sub._deliver(event))
        logger.debug("published %s %s for run %s to %d subscriber(s)", event.table, event.type, event.run_id, delivered)
        return delivered
