"""Entry point for the livepdf server."""

import argparse
import asyncio
import contextlib
import signal
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import structlog
import uvicorn
from pydantic import ValidationError

from livepdf.app import create_app
from livepdf.config import DEFAULT_PORT, Settings
from livepdf.lifecycle import GracefulShutdown
from livepdf.logging import configure_logging

logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="livepdf",
        description="Serve a PDF and reload connected viewers when it changes.",
    )
    parser.add_argument("pdf_path", type=Path, help="PDF file to serve and watch.")
    parser.add_argument("port", nargs="?", default=None, help=f"Port to listen on (default {DEFAULT_PORT}).")
    parser.add_argument("--host", default=None, help="Address to bind (default 127.0.0.1).")
    parser.add_argument("--debug", action="store_true", default=None, help="Enable debug logging.")
    parser.add_argument(
        "--log-format",
        choices=["json", "console"],
        default=None,
        help="Log output format (default json).",
    )
    return parser


def parse_port(raw: str | None) -> int | None:
    """Parse the optional port argument.

    Args:
        raw: Port as typed on the command line.

    Returns:
        The port, None if not given, or the default port if unparsable.
    """
    if raw is None:
        return None
    try:
        port = int(raw)
    except ValueError:
        port = 0
    if not 0 < port < 65536:
        logger.error("invalid_port", port=raw, fallback=DEFAULT_PORT)
        return DEFAULT_PORT
    return port


def load_settings(argv: Sequence[str] | None = None) -> Settings:
    """Build settings from the environment overridden by the command line.

    Args:
        argv: Arguments without the program name, sys.argv if None.

    Returns:
        Validated settings.
    """
    args = build_parser().parse_args(argv)
    overrides: dict[str, Any] = {"pdf_path": args.pdf_path}
    port = parse_port(args.port)
    if port is not None:
        overrides["port"] = port
    if args.host is not None:
        overrides["host"] = args.host
    if args.debug is not None:
        overrides["debug"] = args.debug
    if args.log_format is not None:
        overrides["log_format"] = args.log_format
    return Settings(**overrides)


async def serve(settings: Settings) -> bool:
    """Run uvicorn with graceful shutdown support.

    SIGTERM, SIGINT and the stop endpoint all trigger the same shutdown:
    open event streams are closed first so uvicorn does not wait on them.

    Args:
        settings: Server configuration.

    Returns:
        True if the server started, False if startup failed.
    """
    app = create_app(settings)
    shutdown: GracefulShutdown = app.state.shutdown

    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        lifespan="on",
        log_level="warning",
        access_log=False,
        timeout_graceful_shutdown=int(shutdown.timeout) or None,
    )
    server = uvicorn.Server(config)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown.trigger, sig.name)

    async def run_server() -> None:
        """Serve until stopped, then release the shutdown waiter."""
        try:
            await server.serve()
        finally:
            shutdown.trigger(reason="server_exit")

    async def shutdown_server() -> None:
        """Wait for shutdown signal, end event streams and stop server."""
        await shutdown.wait_for_trigger()
        hub = getattr(app.state, "broadcast_hub", None)
        if hub is not None:
            hub.close_all()
        server.should_exit = True

    await asyncio.gather(run_server(), shutdown_server())
    return server.started


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for the ``livepdf`` command and ``python -m livepdf``."""
    try:
        settings = load_settings(argv)
    except ValidationError as e:
        configure_logging()
        logger.error("invalid_configuration", error=str(e))
        sys.exit(2)

    configure_logging(debug=settings.debug, log_format=settings.log_format)

    if settings.pdf_path.suffix.lower() != ".pdf":
        logger.warning(
            "unexpected_extension",
            path=str(settings.pdf_path),
            message="PDF file should have a .pdf extension, are you sure this is a PDF file?",
        )

    started = False
    with contextlib.suppress(KeyboardInterrupt):
        started = asyncio.run(serve(settings))

    if not started:
        logger.error("startup_failed", path=str(settings.pdf_path))
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main()
