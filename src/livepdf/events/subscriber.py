"""Per-client delivery channel for change events."""
import asyncio
import contextlib
from collections.abc import Callable
from typing import Any

import structlog

from livepdf.events.errors import SubscriberChannelFull
from livepdf.events.types import ChangeEvent

logger = structlog.get_logger()


class Subscriber:
    """A registered consumer of change events.

    Wraps a bounded asyncio queue owned by the event loop the subscriber
    was created on. ``send`` and ``close`` may be called from any thread:
    off-loop calls are handed to the loop with ``call_soon_threadsafe``,
    which keeps per-subscriber FIFO order. A ``None`` in the queue marks
    the end of the stream.

    Attributes:
        id: Identifier unique among registered subscribers.
        maxsize: Channel capacity.
    """

    def __init__(
        self,
        subscriber_id: str,
        maxsize: int = 16,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        """Initialize subscriber.

        Args:
            subscriber_id: Identifier assigned by the hub.
            maxsize: Maximum queued events before new ones are dropped.
            loop: Loop that drains the channel, the running loop if None.
        """
        self._id = subscriber_id
        self._loop = loop or asyncio.get_running_loop()
        self._maxsize = maxsize
        # one extra slot so the end marker always fits
        self._queue: asyncio.Queue[ChangeEvent | None] = asyncio.Queue(maxsize=maxsize + 1)
        self._closed = False
        self._exhausted = False
        self._dropped_count = 0

    @property
    def id(self) -> str:
        """Subscriber identifier."""
        return self._id

    @property
    def closed(self) -> bool:
        """Whether the channel has been closed."""
        return self._closed

    @property
    def pending(self) -> int:
        """Number of events waiting to be received."""
        return self._queue.qsize()

    @property
    def dropped_events(self) -> int:
        """Events dropped because the channel was full."""
        return self._dropped_count

    def _on_loop(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def _call_on_loop(self, callback: Callable[..., None], *args: Any) -> bool:
        if self._on_loop():
            callback(*args)
            return True
        try:
            self._loop.call_soon_threadsafe(callback, *args)
        except RuntimeError:
            # loop already closed
            self._closed = True
            return False
        return True

    def put_nowait(self, event: ChangeEvent) -> None:
        """Enqueue an event. Must run on the subscriber's loop.

        Args:
            event: Event to enqueue.

        Raises:
            SubscriberChannelFull: If the channel is at capacity.
        """
        if self._queue.qsize() >= self._maxsize:
            raise SubscriberChannelFull(f"Channel full for subscriber {self._id}")
        self._queue.put_nowait(event)

    def _deliver(self, event: ChangeEvent) -> None:
        if self._closed:
            return
        try:
            self.put_nowait(event)
        except SubscriberChannelFull:
            self._dropped_count += 1
            logger.warning(
                "event_dropped",
                subscriber_id=self._id,
                dropped_events=self._dropped_count,
            )

    def send(self, event: ChangeEvent) -> bool:
        """Offer an event without blocking. Safe from any thread.

        Args:
            event: Event to deliver.

        Returns:
            False if the subscriber is closed, True once the event has
            been enqueued or handed to the subscriber's loop. A full
            channel drops the event and counts it.
        """
        if self._closed:
            return False
        return self._call_on_loop(self._deliver, event)

    def _finish(self) -> None:
        self._queue.put_nowait(None)

    def close(self) -> None:
        """Close the channel. Queued events are still received first.

        Idempotent and safe from any thread.
        """
        if self._closed:
            return
        self._closed = True
        self._call_on_loop(self._finish)

    async def receive(self, timeout: float | None = None) -> ChangeEvent | None:
        """Wait for the next event.

        Args:
            timeout: Seconds to wait, forever if None.

        Returns:
            The next event, or None once the channel is closed and drained.

        Raises:
            TimeoutError: If no event arrived within the timeout.
        """
        if self._exhausted:
            return None
        if timeout is None:
            event = await self._queue.get()
        else:
            event = await asyncio.wait_for(self._queue.get(), timeout=timeout)
        if event is None:
            self._exhausted = True
        return event

    def drain(self) -> list[ChangeEvent]:
        """Remove and return every queued event without waiting."""
        events: list[ChangeEvent] = []
        with contextlib.suppress(asyncio.QueueEmpty):
            while True:
                event = self._queue.get_nowait()
                if event is None:
                    self._exhausted = True
                    break
                events.append(event)
        return events

    def __aiter__(self) -> "Subscriber":
        return self

    async def __anext__(self) -> ChangeEvent:
        event = await self.receive()
        if event is None:
            raise StopAsyncIteration
        return event
