"""Error taxonomy for the change-notification core."""


class EventsError(Exception):
    """Base class for watcher and broadcast errors."""


class WatchSetupError(EventsError):
    """The filesystem watch could not be established.

    Fatal at startup: the server must not run without live reload unless
    explicitly configured to.
    """


class TransientWatchReadError(EventsError):
    """A raw filesystem event could not be read or classified.

    Logged and ignored; the watch keeps running.
    """


class SubscriberChannelFull(EventsError):
    """A subscriber's delivery channel is at capacity.

    Not a failure: the event is dropped for that subscriber only.
    """


class SubscriberLimitReached(EventsError):
    """The hub already holds the maximum number of subscribers."""
