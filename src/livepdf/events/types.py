"""Event and target types for document change notification."""
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


class ChangeKind(str, Enum):
    """Kinds of change delivered to subscribers."""

    DATA_MODIFIED = "data.modified"


class RawEventKind(str, Enum):
    """Classification of raw filesystem events before filtering."""

    CREATED = "created"
    MODIFIED_DATA = "modified.data"
    MODIFIED_METADATA = "modified.metadata"
    REMOVED = "removed"
    RENAMED = "renamed"
    ACCESSED = "accessed"
    OTHER = "other"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ChangeEvent(BaseModel):
    """The watched document's content changed.

    Attributes:
        kind: Always DATA_MODIFIED; other raw kinds never reach this type.
        occurred_at: Advisory timestamp, for logging only.
    """

    model_config = ConfigDict(frozen=True)

    kind: ChangeKind = Field(default=ChangeKind.DATA_MODIFIED, description="Change kind")
    occurred_at: datetime = Field(default_factory=_utcnow, description="Event timestamp (UTC)")


class RawEvent(BaseModel):
    """Classified raw filesystem event.

    Attributes:
        kind: Raw event classification.
        paths: Every path the event affects (source and destination for renames).
    """

    model_config = ConfigDict(frozen=True)

    kind: RawEventKind
    paths: tuple[str, ...] = ()


class WatchTarget(BaseModel):
    """The single file observed for changes.

    The parent directory is watched instead of the file itself so that
    editors saving via temp-file-then-rename do not orphan the watch.

    Attributes:
        path: Absolute path to the watched file.
    """

    model_config = ConfigDict(frozen=True)

    path: Path = Field(description="Absolute path to the watched file")

    @field_validator("path")
    @classmethod
    def _absolute(cls, value: Path) -> Path:
        return value.expanduser().absolute()

    @computed_field
    @property
    def parent_dir(self) -> Path:
        """Directory containing the watched file."""
        return self.path.parent

    @computed_field
    @property
    def name(self) -> str:
        """File name matched against raw event paths."""
        return self.path.name
