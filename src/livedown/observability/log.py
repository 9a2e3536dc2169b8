"""Event log — the recent history of one livedown server.

Keeps the last ``max_events`` pipeline events (renders, read failures,
viewer traffic, state changes) for ``/__livedown/stats`` and tests.

Everything runs on the server's event loop, so the log is not locked.
"""

from collections import deque
from typing import Any

from livedown.observability.events import (
    DocumentReadFailed,
    DocumentRendered,
    StackEvent,
    ViewerConnected,
)


class EventLog:
    """Bounded store of pipeline events, oldest dropped first.

    Args:
        max_events: Number of events kept.

    """

    __slots__ = ("_events", "_max_events")

    def __init__(self, max_events: int = 1_000) -> None:
        self._max_events = max_events
        self._events: deque[StackEvent] = deque(maxlen=max_events)

    def __len__(self) -> int:
        return len(self._events)

    def append(self, event: StackEvent) -> None:
        self._events.append(event)

    def query(
        self,
        *,
        event_type: type | None = None,
        path: str | None = None,
        limit: int = 100,
    ) -> list[StackEvent]:
        """Newest-first events, optionally of one type or for one document.

        ``path`` matches events whose document path contains it; events
        without a document (viewer traffic, broadcasts) never match.
        """
        results: list[StackEvent] = []
        for event in reversed(self._events):
            if len(results) >= limit:
                break
            if event_type is not None and not isinstance(event, event_type):
                continue
            if path is not None and path not in getattr(event, "path", ""):
                continue
            results.append(event)
        return results

    def stats(self) -> dict[str, Any]:
        """Summary served by ``/__livedown/stats``.

        Besides per-type counts, reports the newest render and read failure
        and how many viewer connections were logged.
        """
        by_type: dict[str, int] = {}
        last_render: DocumentRendered | None = None
        last_failure: DocumentReadFailed | None = None
        for event in self._events:
            name = type(event).__name__
            by_type[name] = by_type.get(name, 0) + 1
            if isinstance(event, DocumentRendered):
                last_render = event
            elif isinstance(event, DocumentReadFailed):
                last_failure = event

        return {
            "total": len(self._events),
            "max_events": self._max_events,
            "by_type": by_type,
            "viewer_sessions": by_type.get(ViewerConnected.__name__, 0),
            "last_render": None if last_render is None else {
                "seq": last_render.seq,
                "html_bytes": last_render.html_bytes,
                "render_ms": round(last_render.render_ms, 3),
            },
            "last_read_error": None if last_failure is None else {
                "seq": last_failure.seq,
                "error": last_failure.error,
            },
        }
