"""Broadcast Hub - pushes the current snapshot to stream subscribers.

Every broadcast tick reads the store once, encodes one event frame and
offers the same bytes to every subscriber. Delivery never blocks: a
subscriber whose queue is full or closed is dropped on the spot, so one
slow client cannot delay the others or the next tick.

The hub is confined to the event loop that runs it; subscriptions are
created, fed and closed from that loop only.
"""

import asyncio
import itertools
import logging
from datetime import datetime
from typing import AsyncIterator, Callable

from src.core.formatter import encode_sse_event, format_stream_payload
from src.refresher import utcnow
from src.snapshot_store import SnapshotStore
from src.ticker import Ticker


logger = logging.getLogger(__name__)

_ids = itertools.count(1)

# Queued after a close so a waiting reader wakes up and stops
_CLOSED = None


class Subscription:
    """One connected stream client.

    Attributes:
        id: Process-unique subscriber number
        closed: True once the hub has let go of this subscriber
    """

    def __init__(self, queue_size: int = 8) -> None:
        self.id = next(_ids)
        self.closed = False
        self._queue: asyncio.Queue[bytes | None] = asyncio.Queue(maxsize=queue_size)

    def offer(self, frame: bytes) -> bool:
        """Queue a frame without waiting.

        Returns:
            False if the subscription is closed or its queue is full
        """
        if self.closed:
            return False
        try:
            self._queue.put_nowait(frame)
        except asyncio.QueueFull:
            return False
        return True

    def close(self) -> None:
        """Drop pending frames and wake the reader. Idempotent."""
        if self.closed:
            return
        self.closed = True
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self

    async def __anext__(self) -> bytes:
        frame = await self._queue.get()
        if frame is _CLOSED:
            raise StopAsyncIteration
        return frame

    def __repr__(self) -> str:
        return f"Subscription(id={self.id}, closed={self.closed})"


class BroadcastHub:
    """Fans the latest snapshot out to every connected subscriber."""

    def __init__(
        self,
        store: SnapshotStore,
        interval_seconds: float = 5.0,
        queue_size: int = 8,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize the hub.

        Args:
            store: Store to read snapshots from
            interval_seconds: Broadcast period
            queue_size: Frames a subscriber may have pending before it is dropped
            clock: Source of event emission timestamps
        """
        self.store = store
        self.interval_seconds = interval_seconds
        self.queue_size = queue_size
        self.clock = clock
        self._subscribers: set[Subscription] = set()
        self._task: asyncio.Task | None = None

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def subscribe(self) -> Subscription:
        """Register a new subscriber."""
        subscription = Subscription(self.queue_size)
        self._subscribers.add(subscription)
        logger.info(
            "Subscriber %d connected (%d active)",
            subscription.id,
            len(self._subscribers),
        )
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a subscriber and close its queue. Idempotent."""
        subscription.close()
        if subscription in self._subscribers:
            self._subscribers.discard(subscription)
            logger.info(
                "Subscriber %d disconnected (%d active)",
                subscription.id,
                len(self._subscribers),
            )

    def broadcast(self) -> int:
        """Deliver the current snapshot to every subscriber.

        Returns:
            Number of subscribers the frame was delivered to
        """
        snapshot = self.store.current()
        frame = encode_sse_event(format_stream_payload(snapshot, self.clock()))

        delivered = 0
        for subscription in list(self._subscribers):
            if subscription.offer(frame):
                delivered += 1
            else:
                logger.warning(
                    "Dropping subscriber %d: %s",
                    subscription.id,
                    "closed" if subscription.closed else "queue full",
                )
                self.unsubscribe(subscription)

        logger.debug(
            "Broadcast %d earthquakes to %d subscriber(s)",
            snapshot.count,
            delivered,
        )
        return delivered

    async def stream(self) -> AsyncIterator[bytes]:
        """Yield event frames for one connection until it goes away.

        The subscription is removed when the consumer stops iterating,
        is cancelled, or the hub closes it on shutdown.
        """
        subscription = self.subscribe()
        try:
            async for frame in subscription:
                yield frame
        finally:
            self.unsubscribe(subscription)

    async def start(self) -> None:
        """Start the periodic broadcast loop."""
        if self.running:
            raise RuntimeError("Broadcast hub already started")
        self._task = asyncio.create_task(self._run(), name="broadcast-hub")
        logger.info("Broadcast hub started, interval %.1fs", self.interval_seconds)

    async def _run(self) -> None:
        async for _ in Ticker(self.interval_seconds, name="broadcast-hub"):
            try:
                self.broadcast()
            except Exception:
                logger.exception("Unexpected error during broadcast")

    async def stop(self) -> None:
        """Stop the loop and close every subscription. Idempotent."""
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        for subscription in list(self._subscribers):
            self.unsubscribe(subscription)

        if task is not None:
            logger.info("Broadcast hub stopped")
