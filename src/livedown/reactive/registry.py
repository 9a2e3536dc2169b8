"""Connection registry — the set of viewers attached to the push channel.

Every browser tab holds one SSE stream, represented by a ``ViewerConnection``
with its own event queue.  The registry maps connection identity to
connection and fans broadcasts out to all of them.  Delivery to one viewer
follows broadcast order (one FIFO queue per viewer); there is no ordering
between different viewers.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from livedown._types import ClientID, EventName
    from livedown.observability.collector import StackCollector


@dataclass(frozen=True, slots=True)
class ViewerEvent:
    """One push-channel event: an event name and its string payload."""

    event: EventName
    data: str

    def as_sse(self) -> dict[str, str]:
        """Mapping understood by ``sse_starlette.EventSourceResponse``."""
        return {"event": self.event, "data": self.data}


@dataclass(frozen=True, slots=True)
class ViewerConnection:
    """A connected viewer (one browser tab).

    Attributes:
        client_id: Unique identifier for this connection.
        connected_at: Wall-clock time the connection was created.
        queue: Pending events for this viewer; ``None`` ends the stream.

    """

    client_id: ClientID = field(default_factory=lambda: str(uuid.uuid4()))
    connected_at: float = field(default_factory=time.time)
    queue: asyncio.Queue[ViewerEvent | None] = field(
        default_factory=asyncio.Queue, compare=False, hash=False, repr=False,
    )

    def send(self, event: EventName, data: str) -> None:
        """Queue an event for this viewer."""
        self.queue.put_nowait(ViewerEvent(event=event, data=data))

    def close(self) -> None:
        """End this viewer's stream after already queued events."""
        self.queue.put_nowait(None)

    async def events(self) -> AsyncIterator[ViewerEvent]:
        """Async generator yielding queued events in order.

        Stops after a ``kill`` event or when the connection is closed.

        """
        while True:
            event = await self.queue.get()
            if event is None:
                return
            yield event
            if event.event == "kill":
                return


class ConnectionRegistry:
    """Tracks viewer connections and broadcasts events to all of them.

    Connections are added when their SSE stream starts and removed as soon
    as it ends (client disconnect, ``kill``, or server shutdown).

    All methods are called from the event loop thread; broadcasts only
    enqueue, so no method awaits between reading and writing the map.

    """

    def __init__(self, collector: StackCollector | None = None) -> None:
        self._connections: dict[ClientID, ViewerConnection] = {}
        self._collector = collector
        self._empty = asyncio.Event()
        self._empty.set()

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, conn: object) -> bool:
        if not isinstance(conn, ViewerConnection):
            return False
        return self._connections.get(conn.client_id) is conn

    @property
    def connections(self) -> tuple[ViewerConnection, ...]:
        """Snapshot of currently registered connections."""
        return tuple(self._connections.values())

    def get(self, client_id: ClientID) -> ViewerConnection | None:
        return self._connections.get(client_id)

    def register(self, conn: ViewerConnection) -> None:
        """Add a connection. Re-registering the same identity replaces it."""
        self._connections[conn.client_id] = conn
        self._empty.clear()
        if self._collector is not None:
            self._collector.record_connect(conn.client_id)

    def unregister(self, conn: ViewerConnection) -> bool:
        """Remove a connection. Returns False if it was not registered."""
        if self._connections.get(conn.client_id) is not conn:
            return False
        del self._connections[conn.client_id]
        if not self._connections:
            self._empty.set()
        if self._collector is not None:
            self._collector.record_disconnect(conn.client_id)
        return True

    def broadcast(self, event: EventName, data: str) -> int:
        """Queue an event on every registered connection.

        Returns:
            Number of viewers the event was queued for.

        """
        count = 0
        for conn in tuple(self._connections.values()):
            conn.send(event, data)
            count += 1
        if self._collector is not None:
            self._collector.record_broadcast(event, clients_notified=count)
        return count

    def close_all(self) -> int:
        """Ask every connection to end its stream after pending events.

        Connections stay registered until their stream actually finishes;
        use ``wait_empty`` to wait for that.

        """
        conns = tuple(self._connections.values())
        for conn in conns:
            conn.close()
        return len(conns)

    async def wait_empty(self, timeout: float | None = None) -> bool:
        """Wait until no connection is registered.

        Returns:
            True if the registry drained, False on timeout.

        """
        if not self._connections:
            return True
        try:
            await asyncio.wait_for(self._empty.wait(), timeout=timeout)
        except TimeoutError:
            return False
        return True
