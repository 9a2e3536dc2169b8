"""Stack collector — records document, push channel and lifecycle events.

Components receive a collector instead of the log itself so event
construction (timestamps, field names) lives in one place.

"""

from __future__ import annotations

from livedown.observability.events import (
    ContentBroadcast,
    DocumentReadFailed,
    DocumentRendered,
    SessionStateChanged,
    StaleResultDiscarded,
    ViewerConnected,
    ViewerDisconnected,
    now_ns,
)
from livedown.observability.log import EventLog


class StackCollector:
    """Unified event collector.

    Args:
        log: The EventLog to store events in.

    """

    __slots__ = ("_log",)

    def __init__(self, log: EventLog | None = None) -> None:
        self._log = log if log is not None else EventLog()

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    # ----- Document pipeline -----

    def record_render(
        self,
        path: str,
        *,
        seq: int,
        html_bytes: int = 0,
        render_ms: float = 0.0,
    ) -> None:
        """Record a successful read + render."""
        self._log.append(
            DocumentRendered(
                path=path,
                seq=seq,
                html_bytes=html_bytes,
                render_ms=render_ms,
                timestamp_ns=now_ns(),
            )
        )

    def record_read_failure(self, path: str, *, seq: int, error: str) -> None:
        """Record a failed document read."""
        self._log.append(
            DocumentReadFailed(path=path, seq=seq, error=error, timestamp_ns=now_ns())
        )

    def record_stale(self, path: str, *, seq: int, applied_seq: int) -> None:
        """Record a read result dropped because a newer one was applied."""
        self._log.append(
            StaleResultDiscarded(
                path=path, seq=seq, applied_seq=applied_seq, timestamp_ns=now_ns(),
            )
        )

    # ----- Push channel -----

    def record_broadcast(self, event: str, *, clients_notified: int) -> None:
        """Record a broadcast to all viewers."""
        self._log.append(
            ContentBroadcast(
                event=event, clients_notified=clients_notified, timestamp_ns=now_ns(),
            )
        )

    def record_connect(self, client_id: str) -> None:
        """Record a viewer connection."""
        self._log.append(ViewerConnected(client_id=client_id, timestamp_ns=now_ns()))

    def record_disconnect(self, client_id: str) -> None:
        """Record a viewer disconnection."""
        self._log.append(ViewerDisconnected(client_id=client_id, timestamp_ns=now_ns()))

    # ----- Lifecycle -----

    def record_state(self, source: str, state: str, path: str = "") -> None:
        """Record a session/server state transition."""
        self._log.append(
            SessionStateChanged(
                source=source,  # type: ignore[arg-type]
                state=state,
                path=path,
                timestamp_ns=now_ns(),
            )
        )
