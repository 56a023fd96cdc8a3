"""Watchdog observer that tells content writes from attribute changes.

Stock watchdog turns both inotify ``IN_MODIFY`` and ``IN_ATTRIB`` into
``FileModifiedEvent``. On Linux the observer built here re-tags
attribute-only changes (chmod, chown, utime, xattr) as
``FileMetadataModifiedEvent`` so they can be filtered out. Other platforms
use watchdog's default observer, where the two cannot be told apart.
"""

import sys
from typing import Any

import structlog
from watchdog.events import FileModifiedEvent, FileSystemEvent
from watchdog.observers import Observer
from watchdog.observers.api import DEFAULT_OBSERVER_TIMEOUT, BaseObserver

from livepdf.events.errors import TransientWatchReadError

logger = structlog.get_logger()


class FileMetadataModifiedEvent(FileModifiedEvent):
    """A file's attributes changed but its content did not."""


if sys.platform.startswith("linux"):
    from watchdog.observers.inotify import InotifyEmitter
    from watchdog.observers.inotify_buffer import InotifyBuffer
    from watchdog.observers.inotify_c import InotifyEvent

    class _RecordingBuffer:
        """InotifyBuffer wrapper remembering the last raw event read."""

        def __init__(self, buffer: InotifyBuffer) -> None:
            self._buffer = buffer
            self.last: InotifyEvent | tuple[InotifyEvent, InotifyEvent] | None = None

        def read_event(self) -> InotifyEvent | tuple[InotifyEvent, InotifyEvent] | None:
            self.last = self._buffer.read_event()
            return self.last

        def __getattr__(self, name: str) -> Any:
            return getattr(self._buffer, name)

    class MetadataAwareEmitter(InotifyEmitter):
        """Inotify emitter that keeps the modify/attrib distinction.

        Events are translated by the stock emitter; ``queue_event`` looks
        at the raw inotify flags of the event being translated and
        re-tags attribute-only modifications. Errors reading from inotify
        are logged and the emitter keeps running.
        """

        def on_thread_start(self) -> None:
            super().on_thread_start()
            self._inotify = _RecordingBuffer(self._inotify)  # type: ignore[assignment,arg-type]

        def queue_event(self, event: FileSystemEvent) -> None:
            raw = getattr(self._inotify, "last", None)
            if (
                type(event) is FileModifiedEvent
                and isinstance(raw, InotifyEvent)
                and raw.is_attrib
                and not raw.is_modify
            ):
                event = FileMetadataModifiedEvent(event.src_path)
            super().queue_event(event)

        def _read_events(self, timeout: float, **kwargs: Any) -> None:
            try:
                super().queue_events(timeout, **kwargs)
            except OSError as e:
                raise TransientWatchReadError(f"Cannot read events for {self.watch.path}: {e}") from e

        def queue_events(self, timeout: float, **kwargs: Any) -> None:
            try:
                self._read_events(timeout, **kwargs)
            except TransientWatchReadError as e:
                logger.warning("watch_read_error", error=str(e))

    def create_observer() -> BaseObserver:
        """Observer whose events distinguish data from metadata changes."""
        return BaseObserver(MetadataAwareEmitter, timeout=DEFAULT_OBSERVER_TIMEOUT)

else:

    def create_observer() -> BaseObserver:
        """Platform default observer; attribute changes look like writes."""
        return Observer()
