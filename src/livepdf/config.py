"""Server configuration loaded from environment variables."""
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from livepdf.events.types import WatchTarget

DEFAULT_PORT = 8999


class Settings(BaseSettings):
    """Server configuration loaded from environment variables.

    Attributes:
        pdf_path: Document to serve and watch.
        host: Bind address for the server.
        port: Port number for the server.
        debug: Enable debug logging and API documentation.
        shutdown_timeout: Seconds to wait for graceful shutdown.
        subscriber_queue_size: Capacity of each subscriber channel.
        max_subscribers: Maximum number of concurrent event streams.
        sse_heartbeat_interval: Seconds between SSE heartbeat comments.
        watch_debounce_ms: Window for coalescing bursts of writes, 0 to disable.
        require_watch: Refuse to start when the file watch cannot be set up.
        log_format: Log output format, "json" or "console".
    """

    model_config = SettingsConfigDict(
        env_prefix="LIVEPDF_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    pdf_path: Path
    host: str = "127.0.0.1"
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    debug: bool = False
    shutdown_timeout: float = 5.0

    subscriber_queue_size: int = Field(default=16, ge=1)
    max_subscribers: int = Field(default=256, ge=1)
    sse_heartbeat_interval: float = Field(default=15.0, gt=0)
    watch_debounce_ms: int = Field(default=0, ge=0)
    require_watch: bool = True
    log_format: Literal["json", "console"] = "json"

    @property
    def watch_target(self) -> WatchTarget:
        """Watch target for the configured document.

        Returns:
            Target with an absolute path.
        """
        return WatchTarget(path=self.pdf_path)
