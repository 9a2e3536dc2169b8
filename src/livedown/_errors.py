"""Livedown error hierarchy.

All livedown-specific errors inherit from LivedownError for easy catching.
"""

from pathlib import Path


class LivedownError(Exception):
    """Base error for all livedown operations."""


class ConfigError(LivedownError):
    """Invalid or unreadable configuration."""


class StartupError(LivedownError):
    """The watched document could not be opened when starting."""


class TransportError(LivedownError):
    """The HTTP listener could not be bound or failed while starting."""


class LifecycleError(LivedownError):
    """Operation not allowed in the current server state."""


class WatchError(LivedownError):
    """A filesystem watch could not be established."""


class DocumentReadError(LivedownError):
    """The watched document could not be read.

    Recoverable: the previous render stays on screen and the watcher keeps
    running.
    """

    def __init__(self, path: Path, cause: BaseException) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"{path.name}: {cause}")
