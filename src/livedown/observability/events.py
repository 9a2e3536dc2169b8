"""Event model for live-update observability.

Defines event types for the document pipeline (read, render, stale results),
the push channel (viewer connect/disconnect, broadcasts) and the server
lifecycle.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

"""

import time
from dataclasses import dataclass
from typing import Literal


# ---------------------------------------------------------------------------
# Document pipeline events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DocumentRendered:
    """A document read succeeded and was rendered to HTML.

    Attributes:
        path: Absolute path to the document.
        seq: Change sequence number that triggered the read.
        html_bytes: Size of the rendered HTML in bytes.
        render_ms: Time spent rendering in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    seq: int
    html_bytes: int
    render_ms: float
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class DocumentReadFailed:
    """A document read failed; the previous HTML stays in place."""

    path: str
    seq: int
    error: str
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class StaleResultDiscarded:
    """A read finished after a newer one was already applied.

    Attributes:
        path: Absolute path to the document.
        seq: Sequence number of the discarded result.
        applied_seq: Sequence number currently applied to the document.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    seq: int
    applied_seq: int
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Push channel events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ContentBroadcast:
    """An event was broadcast to every registered viewer."""

    event: str
    clients_notified: int
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class ViewerConnected:
    """A viewer attached to the push channel."""

    client_id: str
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class ViewerDisconnected:
    """A viewer left the push channel."""

    client_id: str
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Lifecycle events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SessionStateChanged:
    """A session or server changed lifecycle state."""

    source: Literal["session", "server"]
    state: str
    path: str
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

type StackEvent = (
    DocumentRendered
    | DocumentReadFailed
    | StaleResultDiscarded
    | ContentBroadcast
    | ViewerConnected
    | ViewerDisconnected
    | SessionStateChanged
)


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
