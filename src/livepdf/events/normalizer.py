"""Classification and filtering of raw watchdog events."""

from pathlib import Path

from watchdog.events import FileSystemEvent

from livepdf.events.observer import FileMetadataModifiedEvent
from livepdf.events.types import ChangeEvent, ChangeKind, RawEvent, RawEventKind, WatchTarget

_STATIC_KINDS: dict[str, RawEventKind] = {
    "created": RawEventKind.CREATED,
    "deleted": RawEventKind.REMOVED,
    "moved": RawEventKind.RENAMED,
    "opened": RawEventKind.ACCESSED,
    "closed": RawEventKind.ACCESSED,
    "closed_no_write": RawEventKind.ACCESSED,
}


def decode_path(path: str | bytes) -> str:
    """Return a watchdog event path as text.

    Args:
        path: Path as reported by watchdog.

    Returns:
        Decoded path string.
    """
    if isinstance(path, str):
        return path
    return bytes(path).decode("utf-8", errors="replace")


def event_paths(raw_event: FileSystemEvent) -> tuple[str, ...]:
    """Collect every path affected by a raw event."""
    paths = [decode_path(raw_event.src_path)]
    dest_path = getattr(raw_event, "dest_path", "")
    if dest_path:
        paths.append(decode_path(dest_path))
    return tuple(paths)


def classify_event(raw_event: FileSystemEvent) -> RawEvent:
    """Classify a raw watchdog event.

    Classification relies only on the event itself, so every raw event is
    judged on what the OS reported when it happened.

    Args:
        raw_event: Event delivered by the watchdog observer.

    Returns:
        Classified event with all affected paths.
    """
    paths = event_paths(raw_event)

    if raw_event.is_directory:
        return RawEvent(kind=RawEventKind.OTHER, paths=paths)

    if isinstance(raw_event, FileMetadataModifiedEvent):
        return RawEvent(kind=RawEventKind.MODIFIED_METADATA, paths=paths)

    if raw_event.event_type == "modified":
        return RawEvent(kind=RawEventKind.MODIFIED_DATA, paths=paths)

    return RawEvent(kind=_STATIC_KINDS.get(raw_event.event_type, RawEventKind.OTHER), paths=paths)


def normalize_event(raw: RawEvent, target: WatchTarget) -> ChangeEvent | None:
    """Filter a classified event down to a change of the watched file.

    Args:
        raw: Classified raw event.
        target: The watched file.

    Returns:
        A ChangeEvent if the target's content was modified, None otherwise.
    """
    if raw.kind is not RawEventKind.MODIFIED_DATA:
        return None

    if not any(Path(p).name == target.name for p in raw.paths):
        return None

    return ChangeEvent(kind=ChangeKind.DATA_MODIFIED)
