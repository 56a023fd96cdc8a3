"""Graceful shutdown coordinator for the server process."""
import asyncio

import structlog

logger = structlog.get_logger()


class GracefulShutdown:
    """Coordinates graceful shutdown between signal handlers and routes.

    Triggered by SIGINT/SIGTERM or the stop endpoint; the serve loop waits
    on it to close event streams and stop the HTTP server.

    Attributes:
        is_triggered: Whether shutdown has been triggered.
        reason: What triggered shutdown, None until triggered.
    """

    def __init__(self, timeout: float = 5.0) -> None:
        """Initialize shutdown coordinator.

        Args:
            timeout: Default seconds to wait for shutdown completion.
        """
        self._reason: str | None = None
        self._event = asyncio.Event()
        self._timeout = timeout

    @property
    def is_triggered(self) -> bool:
        """Check if shutdown has been triggered."""
        return self._reason is not None

    @property
    def reason(self) -> str | None:
        """What triggered shutdown."""
        return self._reason

    @property
    def timeout(self) -> float:
        """Seconds allowed for in-flight work to finish."""
        return self._timeout

    def trigger(self, reason: str = "signal") -> None:
        """Signal the serve loop to begin shutdown.

        Idempotent - only the first call is recorded.

        Args:
            reason: What requested the shutdown.
        """
        if self._reason is not None:
            return
        logger.info("shutdown_triggered", reason=reason)
        self._reason = reason
        self._event.set()

    async def wait_for_trigger(self) -> None:
        """Wait until trigger() is called from a route or signal handler."""
        await self._event.wait()

