"""Events subsystem for document change detection and SSE broadcasting."""
from livepdf.events.errors import (
    SubscriberChannelFull,
    SubscriberLimitReached,
    TransientWatchReadError,
    WatchSetupError,
)
from livepdf.events.hub import BroadcastHub
from livepdf.events.subscriber import Subscriber
from livepdf.events.types import ChangeEvent, ChangeKind, WatchTarget
from livepdf.events.watcher import FileWatcher

__all__ = [
    "BroadcastHub",
    "ChangeEvent",
    "ChangeKind",
    "FileWatcher",
    "Subscriber",
    "SubscriberChannelFull",
    "SubscriberLimitReached",
    "TransientWatchReadError",
    "WatchSetupError",
    "WatchTarget",
]
