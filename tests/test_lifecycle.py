"""Graceful shutdown coordinator tests."""

import asyncio

import pytest

from livepdf.lifecycle import GracefulShutdown


def test_not_triggered_initially() -> None:
    """A fresh coordinator has no reason recorded."""
    shutdown = GracefulShutdown(timeout=3.0)
    assert not shutdown.is_triggered
    assert shutdown.reason is None
    assert shutdown.timeout == 3.0


def test_trigger_is_idempotent() -> None:
    """Only the first trigger's reason is kept."""
    shutdown = GracefulShutdown()
    shutdown.trigger(reason="SIGTERM")
    shutdown.trigger(reason="stop_endpoint")
    assert shutdown.is_triggered
    assert shutdown.reason == "SIGTERM"


@pytest.mark.asyncio
async def test_wait_for_trigger_returns_after_trigger() -> None:
    """Waiters are released by trigger."""
    shutdown = GracefulShutdown()
    waiter = asyncio.create_task(shutdown.wait_for_trigger())
    await asyncio.sleep(0)
    assert not waiter.done()

    shutdown.trigger()
    await asyncio.wait_for(waiter, timeout=1.0)
