"""Filesystem watcher emitting change events for one document."""

import threading
from collections.abc import Callable

import structlog
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers.api import BaseObserver

from livepdf.events.errors import WatchSetupError
from livepdf.events.normalizer import classify_event, normalize_event
from livepdf.events.observer import create_observer
from livepdf.events.types import ChangeEvent, WatchTarget

logger = structlog.get_logger()

ChangeCallback = Callable[[ChangeEvent], None]


class ChangeHandler(FileSystemEventHandler):
    """Watchdog handler that filters raw events down to ChangeEvents.

    Runs on the observer thread. Every qualifying raw event is passed to
    the callback synchronously unless a debounce window is configured, in
    which case a burst of qualifying events is coalesced into one trailing
    ChangeEvent.

    Attributes:
        debounce_ms: Coalescing window in milliseconds, 0 to disable.
    """

    def __init__(
        self,
        target: WatchTarget,
        callback: ChangeCallback,
        debounce_ms: int = 0,
    ) -> None:
        """Initialize change handler.

        Args:
            target: The watched file.
            callback: Called with each ChangeEvent.
            debounce_ms: Coalescing window in milliseconds.
        """
        super().__init__()
        self._target = target
        self._callback = callback
        self._debounce_ms = debounce_ms
        self._timer: threading.Timer | None = None
        self._pending: ChangeEvent | None = None
        self._lock = threading.Lock()
        self._coalesced_count = 0
        self._emitted_count = 0

    @property
    def coalesced_events(self) -> int:
        """Number of change events merged by debouncing."""
        return self._coalesced_count

    @property
    def emitted_events(self) -> int:
        """Number of change events passed to the callback."""
        return self._emitted_count

    def _emit(self, event: ChangeEvent) -> None:
        logger.info("file_modified", path=str(self._target.path))
        with self._lock:
            self._emitted_count += 1
        try:
            self._callback(event)
        except Exception as e:
            logger.error("watcher_callback_error", error=str(e), path=str(self._target.path))

    def _flush(self) -> None:
        with self._lock:
            event = self._pending
            self._pending = None
            self._timer = None
        if event is not None:
            self._emit(event)

    def _schedule(self, event: ChangeEvent) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._coalesced_count += 1
            self._pending = event
            self._timer = threading.Timer(self._debounce_ms / 1000.0, self._flush)
            self._timer.daemon = True
            self._timer.start()

    def on_any_event(self, event: FileSystemEvent) -> None:
        """Classify, filter and forward a raw watchdog event.

        Args:
            event: Raw watchdog filesystem event.
        """
        raw = classify_event(event)
        change = normalize_event(raw, self._target)
        if change is None:
            logger.debug("watch_event_ignored", kind=raw.kind.value, paths=list(raw.paths))
            return

        if self._debounce_ms > 0:
            self._schedule(change)
        else:
            self._emit(change)

    def cancel_all(self) -> None:
        """Drop any pending debounced event during shutdown."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._pending = None


class FileWatcher:
    """Watches one document for content changes.

    Schedules a watchdog Observer on the document's parent directory
    (non-recursive) and forwards qualifying events to ``on_change``.

    Attributes:
        target: The watched file.
        is_running: Whether the observer is alive.
    """

    def __init__(
        self,
        target: WatchTarget,
        on_change: ChangeCallback,
        debounce_ms: int = 0,
    ) -> None:
        """Initialize file watcher.

        Args:
            target: The watched file.
            on_change: Called on the observer thread with each ChangeEvent.
            debounce_ms: Coalescing window in milliseconds, 0 to disable.
        """
        self._target = target
        self._handler = ChangeHandler(target, on_change, debounce_ms)
        self._observer: BaseObserver | None = None

    @property
    def target(self) -> WatchTarget:
        """The watched file."""
        return self._target

    @property
    def is_running(self) -> bool:
        """Whether the observer thread is alive."""
        return self._observer is not None and self._observer.is_alive()

    def start(self) -> None:
        """Start watching the target's parent directory.

        Raises:
            WatchSetupError: If the target is missing or the OS watch
                cannot be established.
        """
        if self._observer is not None:
            return

        path = self._target.path
        directory = self._target.parent_dir
        if not path.exists():
            raise WatchSetupError(f"Watched file does not exist: {path}")
        if not path.is_file():
            raise WatchSetupError(f"Watched path is not a file: {path}")
        if not directory.is_dir():
            raise WatchSetupError(f"Watch directory is not a directory: {directory}")

        observer = create_observer()
        try:
            observer.schedule(self._handler, str(directory), recursive=False)
            observer.start()
        except OSError as e:
            raise WatchSetupError(f"Cannot watch {directory}: {e}") from e

        self._observer = observer
        logger.info("watcher_started", path=str(path), directory=str(directory))

    def stop(self) -> None:
        """Stop the observer and release the OS watch."""
        self._handler.cancel_all()

        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5.0)
            self._observer = None

        logger.info("watcher_stopped", path=str(self._target.path))
