"""FastAPI application factory and lifespan management."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from livepdf.config import Settings
from livepdf.events import BroadcastHub, FileWatcher, WatchSetupError
from livepdf.lifecycle import GracefulShutdown
from livepdf.middleware.logging import RequestLoggingMiddleware
from livepdf.routes import admin, document, events, health, viewer

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle events.

    Creates the broadcast hub and starts the file watcher before any
    request is served. A watch that cannot be established aborts startup
    unless ``require_watch`` is disabled, in which case the server runs
    without live reload.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.

    Raises:
        WatchSetupError: If the watch fails and live reload is required.
    """
    settings: Settings = app.state.settings
    target = settings.watch_target
    logger.info("server_startup", host=settings.host, port=settings.port, path=str(target.path))

    broadcast_hub = BroadcastHub(
        queue_size=settings.subscriber_queue_size,
        max_subscribers=settings.max_subscribers,
        heartbeat_interval=settings.sse_heartbeat_interval,
    )
    watcher = FileWatcher(
        target,
        on_change=broadcast_hub.publish,
        debounce_ms=settings.watch_debounce_ms,
    )

    app.state.broadcast_hub = broadcast_hub
    app.state.watcher = None

    try:
        watcher.start()
    except WatchSetupError as e:
        if settings.require_watch:
            logger.error("watch_setup_failed", error=str(e), path=str(target.path))
            raise
        broadcast_hub.mark_unavailable(str(e))
    else:
        app.state.watcher = watcher

    logger.info("server_running", url=f"http://{settings.host}:{settings.port}")

    try:
        yield
    finally:
        if app.state.watcher is not None:
            watcher.stop()
        await broadcast_hub.shutdown()
        logger.info("server_shutdown")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Factory function to create configured FastAPI application.

    Args:
        settings: Configuration instance. Loads from the environment if None.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = Settings()  # pyright: ignore[reportCallIssue]

    app = FastAPI(
        title="livepdf",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.shutdown = GracefulShutdown(timeout=settings.shutdown_timeout)

    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(viewer.router)
    app.include_router(document.router)
    app.include_router(events.router)
    app.include_router(admin.router)
    app.include_router(health.router)

    return app
