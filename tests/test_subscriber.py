"""Subscriber delivery channel tests."""

import asyncio
import threading

import pytest

from livepdf.events.errors import SubscriberChannelFull
from livepdf.events.subscriber import Subscriber
from livepdf.events.types import ChangeEvent


@pytest.mark.asyncio
async def test_send_on_loop_enqueues_immediately() -> None:
    """Sends from the owning loop are visible without yielding."""
    subscriber = Subscriber("a", maxsize=4)
    event = ChangeEvent()

    assert subscriber.send(event) is True
    assert subscriber.pending == 1
    assert await subscriber.receive() == event


@pytest.mark.asyncio
async def test_events_are_received_in_order() -> None:
    """The channel is FIFO."""
    subscriber = Subscriber("a", maxsize=4)
    events = [ChangeEvent() for _ in range(3)]
    for event in events:
        subscriber.send(event)

    assert subscriber.drain() == events


@pytest.mark.asyncio
async def test_put_nowait_raises_when_full() -> None:
    """A full channel raises SubscriberChannelFull on direct put."""
    subscriber = Subscriber("a", maxsize=1)
    subscriber.put_nowait(ChangeEvent())
    with pytest.raises(SubscriberChannelFull):
        subscriber.put_nowait(ChangeEvent())


@pytest.mark.asyncio
async def test_send_drops_when_full() -> None:
    """A full channel drops new events and counts them."""
    subscriber = Subscriber("a", maxsize=2)
    first, second, third = ChangeEvent(), ChangeEvent(), ChangeEvent()

    for event in (first, second, third):
        subscriber.send(event)

    assert subscriber.dropped_events == 1
    assert subscriber.drain() == [first, second]


@pytest.mark.asyncio
async def test_send_from_other_thread_wakes_receiver() -> None:
    """Events sent off-loop are handed to the loop and wake a waiting receiver."""
    subscriber = Subscriber("a", maxsize=4)
    event = ChangeEvent()

    receiver = asyncio.create_task(subscriber.receive(timeout=2.0))
    await asyncio.sleep(0)
    thread = threading.Thread(target=subscriber.send, args=(event,))
    thread.start()
    thread.join()

    assert await receiver == event


@pytest.mark.asyncio
async def test_receive_times_out() -> None:
    """An idle channel raises TimeoutError after the timeout."""
    subscriber = Subscriber("a")
    with pytest.raises(TimeoutError):
        await subscriber.receive(timeout=0.01)


@pytest.mark.asyncio
async def test_close_delivers_queued_events_then_ends() -> None:
    """Closing keeps queued events and then ends iteration."""
    subscriber = Subscriber("a", maxsize=4)
    event = ChangeEvent()
    subscriber.send(event)
    subscriber.close()

    received = [e async for e in subscriber]

    assert received == [event]
    assert await subscriber.receive() is None


@pytest.mark.asyncio
async def test_close_on_full_channel_still_ends_stream() -> None:
    """Closing a full channel keeps queued events and still ends the stream."""
    subscriber = Subscriber("a", maxsize=1)
    event = ChangeEvent()
    subscriber.send(event)
    subscriber.send(ChangeEvent())
    subscriber.close()

    assert subscriber.dropped_events == 1
    assert await subscriber.receive(timeout=1.0) == event
    assert await subscriber.receive(timeout=1.0) is None


@pytest.mark.asyncio
async def test_send_after_close_is_refused() -> None:
    """A closed subscriber accepts nothing."""
    subscriber = Subscriber("a")
    subscriber.close()
    subscriber.close()

    assert subscriber.closed
    assert subscriber.send(ChangeEvent()) is False
