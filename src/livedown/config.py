"""Livedown configuration.

LivedownConfig is the central configuration object, frozen after creation.
"""

from dataclasses import dataclass

from livedown._errors import ConfigError

DEFAULT_PORT = 1337


@dataclass(frozen=True, slots=True)
class LivedownConfig:
    """Configuration for a livedown server.

    Attributes:
        host: Bind address for the HTTP listener.
        port: Bind port. ``0`` binds an ephemeral port (see ``ServerLifecycle.uri``).
        debounce_ms: Window in which rapid filesystem notifications are
            coalesced into one change event.
        step_ms: Polling step of the watcher while waiting for changes.
        force_polling: Force the polling watcher backend (``None`` = auto).
        drain_timeout: Seconds to wait for viewers to flush pending events
            before the listener is closed.
        open_browser: Open the viewer page in a browser after start.
        browser: Browser command line used instead of the system default.
        verbose: Print progress messages from the CLI.

    """

    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    debounce_ms: int = 50
    step_ms: int = 50
    force_polling: bool | None = None
    drain_timeout: float = 1.0
    open_browser: bool = False
    browser: str | None = None
    verbose: bool = False

    def __post_init__(self) -> None:
        if not 0 <= self.port <= 65535:
            msg = f"port must be between 0 and 65535, got {self.port}"
            raise ConfigError(msg)
        if self.debounce_ms < 0 or self.step_ms <= 0:
            msg = "debounce_ms must be >= 0 and step_ms must be > 0"
            raise ConfigError(msg)
        if self.drain_timeout < 0:
            msg = f"drain_timeout must be >= 0, got {self.drain_timeout}"
            raise ConfigError(msg)

    @property
    def public_host(self) -> str:
        """Host name used in URLs shown to the user."""
        if self.host in {"127.0.0.1", "0.0.0.0", "::", "::1", ""}:
            return "localhost"
        return self.host
