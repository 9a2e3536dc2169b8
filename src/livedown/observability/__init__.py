"""Observability — structured events for the live-update pipeline.

Aggregates events from:
- **Session**: document reads, renders and discarded stale results
- **ConnectionRegistry**: viewer connect/disconnect and broadcasts
- **ServerLifecycle**: state transitions

All events are frozen dataclasses with monotonic nanosecond timestamps.

Quick Start:
    >>> from livedown.observability import StackCollector, EventLog
    >>> log = EventLog()
    >>> collector = StackCollector(log)
    >>> collector.record_broadcast("content", clients_notified=2)

"""

from livedown.observability.collector import StackCollector
from livedown.observability.events import (
    ContentBroadcast,
    DocumentReadFailed,
    DocumentRendered,
    SessionStateChanged,
    StackEvent,
    StaleResultDiscarded,
    ViewerConnected,
    ViewerDisconnected,
    now_ns,
)
from livedown.observability.log import EventLog

__all__ = [
    "ContentBroadcast",
    "DocumentReadFailed",
    "DocumentRendered",
    "EventLog",
    "SessionStateChanged",
    "StackCollector",
    "StackEvent",
    "StaleResultDiscarded",
    "ViewerConnected",
    "ViewerDisconnected",
    "now_ns",
]
