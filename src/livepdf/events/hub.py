"""Broadcast hub fanning change events out to SSE clients."""

import threading
import uuid
from collections.abc import AsyncIterator

import structlog
from sse_starlette import ServerSentEvent

from livepdf.events.errors import SubscriberLimitReached
from livepdf.events.subscriber import Subscriber
from livepdf.events.types import ChangeEvent

logger = structlog.get_logger()

CONNECTED_MESSAGE = "connected"
UPDATE_MESSAGE = "update"
UNAVAILABLE_EVENT = "unavailable"
UNAVAILABLE_RETRY_MS = 60_000


class BroadcastHub:
    """Registry of subscribers and fan-out point for change events.

    ``publish`` is called from the watcher's observer thread while
    ``subscribe``/``unsubscribe`` are called from connection handlers on
    the event loop. A threading lock serializes registry mutations and
    the snapshot taken by ``publish``; delivery itself happens outside
    the lock through each subscriber's non-blocking ``send``.

    Attributes:
        queue_size: Capacity of each subscriber channel.
        max_subscribers: Maximum number of concurrent subscribers.
        heartbeat_interval: Seconds between SSE heartbeat comments.
    """

    def __init__(
        self,
        queue_size: int = 16,
        max_subscribers: int = 256,
        heartbeat_interval: float = 15.0,
    ) -> None:
        """Initialize broadcast hub.

        Args:
            queue_size: Maximum items per subscriber channel.
            max_subscribers: Maximum concurrent subscribers allowed.
            heartbeat_interval: Seconds between heartbeats.
        """
        self._subscribers: dict[str, Subscriber] = {}
        self._lock = threading.Lock()
        self._queue_size = queue_size
        self._max_subscribers = max_subscribers
        self._heartbeat_interval = heartbeat_interval
        self._available = True
        self._closed = False
        self._published_count = 0
        self._retired_drops = 0

    @property
    def subscriber_count(self) -> int:
        """Number of registered subscribers."""
        with self._lock:
            return len(self._subscribers)

    @property
    def published_events(self) -> int:
        """Number of events passed to publish."""
        return self._published_count

    @property
    def dropped_events(self) -> int:
        """Events dropped for full channels, across all subscribers ever registered."""
        with self._lock:
            current = sum(s.dropped_events for s in self._subscribers.values())
            return self._retired_drops + current

    @property
    def available(self) -> bool:
        """Whether change notifications can arrive at all."""
        return self._available

    @property
    def closed(self) -> bool:
        """Whether the hub has been shut down."""
        return self._closed

    def mark_unavailable(self, reason: str) -> None:
        """Record that no change events will ever be published.

        Args:
            reason: Why live reload is unavailable.
        """
        self._available = False
        logger.error("live_reload_unavailable", reason=reason)

    def has_capacity(self) -> bool:
        """Whether another subscriber can be registered right now."""
        with self._lock:
            return len(self._subscribers) < self._max_subscribers

    def subscribe(self) -> Subscriber:
        """Register a new subscriber.

        Must be called on the event loop that will drain the subscriber.
        A hub that has been shut down hands out already-closed subscribers.

        Returns:
            The new subscriber with an open delivery channel.

        Raises:
            SubscriberLimitReached: If the maximum subscriber count is reached.
        """
        with self._lock:
            if len(self._subscribers) >= self._max_subscribers:
                raise SubscriberLimitReached("Maximum subscribers reached")

            subscriber_id = str(uuid.uuid4())
            while subscriber_id in self._subscribers:
                subscriber_id = str(uuid.uuid4())

            subscriber = Subscriber(subscriber_id, maxsize=self._queue_size)
            if self._closed:
                subscriber.close()
                return subscriber

            self._subscribers[subscriber_id] = subscriber
            count = len(self._subscribers)

        logger.debug("subscriber_added", subscriber_id=subscriber_id, subscribers=count)
        return subscriber

    def unsubscribe(self, subscriber_id: str) -> bool:
        """Remove a subscriber and close its channel.

        Args:
            subscriber_id: ID of the subscriber to remove.

        Returns:
            True if the subscriber was registered, False if it was already gone.
        """
        with self._lock:
            subscriber = self._subscribers.pop(subscriber_id, None)
            if subscriber is None:
                return False
            self._retired_drops += subscriber.dropped_events

        subscriber.close()
        logger.debug("subscriber_removed", subscriber_id=subscriber_id)
        return True

    def publish(self, event: ChangeEvent) -> int:
        """Deliver an event to every currently registered subscriber.

        Never blocks: a full channel drops the event for that subscriber
        only, and a failing subscriber does not affect the others. Safe to
        call from any thread.

        Args:
            event: Change event to fan out.

        Returns:
            Number of subscribers the event was handed to.
        """
        with self._lock:
            snapshot = list(self._subscribers.values())
            self._published_count += 1

        delivered = 0
        for subscriber in snapshot:
            if subscriber.closed:
                self.unsubscribe(subscriber.id)
                continue
            try:
                if subscriber.send(event):
                    delivered += 1
            except Exception as e:
                logger.error("subscriber_delivery_error", subscriber_id=subscriber.id, error=str(e))

        logger.debug(
            "event_published",
            kind=event.kind.value,
            occurred_at=event.occurred_at.isoformat(),
            delivered_to=delivered,
        )
        return delivered

    async def create_sse_generator(self) -> AsyncIterator[ServerSentEvent]:
        """Create SSE event generator for a client connection.

        Registers a subscriber only once the stream is actually being
        consumed, so a client that goes away before the response starts
        leaves nothing behind. Sends a ``connected`` acknowledgment, then
        one ``update`` message per change event and a heartbeat comment
        whenever the channel is idle. The subscriber is unregistered when
        the stream ends, including when a client disconnect cancels the
        generator.

        Yields:
            Server-sent events for the client.
        """
        try:
            subscriber = self.subscribe()
        except SubscriberLimitReached as e:
            logger.warning("sse_client_rejected", reason=str(e))
            return

        logger.info(
            "sse_client_connected",
            subscriber_id=subscriber.id,
            active_connections=self.subscriber_count,
        )

        try:
            yield ServerSentEvent(data=CONNECTED_MESSAGE)
            while True:
                try:
                    event = await subscriber.receive(timeout=self._heartbeat_interval)
                except TimeoutError:
                    yield ServerSentEvent(comment="heartbeat")
                    continue
                if event is None:
                    break
                yield ServerSentEvent(data=UPDATE_MESSAGE, id=event.occurred_at.isoformat())
        finally:
            self.unsubscribe(subscriber.id)
            logger.info(
                "sse_client_disconnected",
                subscriber_id=subscriber.id,
                active_connections=self.subscriber_count,
            )

    async def create_unavailable_generator(self) -> AsyncIterator[ServerSentEvent]:
        """SSE stream for when live reload could not be set up.

        Acknowledges the connection, reports that no updates will arrive
        and ends, so clients never wait for notifications that cannot come.

        Yields:
            Server-sent events for the client.
        """
        yield ServerSentEvent(data=CONNECTED_MESSAGE)
        yield ServerSentEvent(
            data="live reload unavailable",
            event=UNAVAILABLE_EVENT,
            retry=UNAVAILABLE_RETRY_MS,
        )

    def close_all(self) -> int:
        """Close every subscriber channel and refuse new ones.

        Returns:
            Number of subscribers closed.
        """
        with self._lock:
            self._closed = True
            subscribers = list(self._subscribers.values())
            self._subscribers.clear()
            self._retired_drops += sum(s.dropped_events for s in subscribers)

        for subscriber in subscribers:
            subscriber.close()
        return len(subscribers)

    async def shutdown(self) -> None:
        """Gracefully shut down the hub, ending all open streams."""
        closed = self.close_all()
        logger.info(
            "broadcast_hub_shutdown",
            closed_connections=closed,
            published_events=self._published_count,
            dropped_events=self.dropped_events,
        )
