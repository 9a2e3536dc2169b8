"""Session — keeps viewers in sync with one watched document.

Orchestrates the live-update flow:
    1. FileWatcher reports a change (ChangeEvent)
    2. The change gets the next sequence number and an async re-read starts
    3. The read result is rendered and stored on the Document, unless a
       newer read has already been applied
    4. The new HTML is broadcast to every registered viewer

Reads for successive changes may overlap.  Only results whose sequence
number is newer than the one already applied are kept, so a slow read of an
older version can never overwrite a newer render.
"""

from __future__ import annotations

import asyncio
import sys
import time
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

from livedown._errors import DocumentReadError, LifecycleError
from livedown.content.document import Document, read_document
from livedown.content.renderer import Renderer
from livedown.content.watcher import FileWatcher

if TYPE_CHECKING:
    from livedown._types import ChangeSeq, DocumentReader
    from livedown.observability.collector import StackCollector
    from livedown.reactive.registry import ConnectionRegistry, ViewerConnection


class SessionState(StrEnum):
    IDLE = "idle"
    WATCHING = "watching"
    STOPPED = "stopped"


class Session:
    """Ties a Document to a FileWatcher and a Renderer.

    New viewers get a targeted replay of the latest known title and content
    (the cached render, no re-read).  Every change re-reads the file and
    broadcasts the new render to all viewers.  Read failures are logged and
    leave the previous render in place.

    Args:
        registry: Viewer connections to broadcast to (owned by the server).
        renderer: Markdown renderer; one is created if omitted.
        watcher: File watcher owned by this session; one is created if omitted.
        reader: Async file reader; defaults to a threaded UTF-8 read.
        collector: Optional observability collector.

    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        *,
        renderer: Renderer | None = None,
        watcher: FileWatcher | None = None,
        reader: DocumentReader | None = None,
        collector: StackCollector | None = None,
    ) -> None:
        self._registry = registry
        self._renderer = renderer if renderer is not None else Renderer()
        self._watcher = watcher if watcher is not None else FileWatcher()
        self._reader = reader if reader is not None else read_document
        self._collector = collector
        self._state = SessionState.IDLE
        self._document: Document | None = None
        self._seq: ChangeSeq = 0
        self._consumer: asyncio.Task[None] | None = None
        self._inflight: set[asyncio.Task[bool]] = set()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def document(self) -> Document | None:
        """The watched document, or None before ``start``."""
        return self._document

    @property
    def watcher(self) -> FileWatcher:
        return self._watcher

    @property
    def last_seq(self) -> ChangeSeq:
        """Sequence number of the most recently initiated read."""
        return self._seq

    async def start(self, path: Path) -> None:
        """Watch ``path`` and load its initial content.

        The title (and, if the first read succeeds, the content) is broadcast
        to viewers that are already connected.  A failed first read is logged;
        the session keeps watching.

        Raises:
            LifecycleError: If the session was already started, or was
                stopped while the watch was being set up.
            WatchError: If the watch cannot be established.

        """
        if self._state is not SessionState.IDLE:
            msg = f"session already {self._state}"
            raise LifecycleError(msg)

        document = Document(path=Path(path))
        await self._watcher.open(document.path)
        if self._state is SessionState.STOPPED:
            # stop() ran while the watch was being set up.
            await self._watcher.close()
            msg = "session stopped while starting"
            raise LifecycleError(msg)
        self._document = document
        self._state = SessionState.WATCHING
        self._record_state()

        self._consumer = asyncio.create_task(
            self._consume_changes(), name=f"livedown-session:{document.title}",
        )
        self._registry.broadcast("title", document.title)
        await self.refresh(self._next_seq())

    async def stop(self) -> None:
        """Stop watching. In-flight reads are cancelled; idempotent."""
        if self._state is SessionState.STOPPED:
            return
        self._state = SessionState.STOPPED

        consumer, self._consumer = self._consumer, None
        pending = [*self._inflight]
        if consumer is not None:
            pending.append(consumer)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._inflight.clear()

        await self._watcher.close()
        self._record_state()

    def attach(self, conn: ViewerConnection) -> None:
        """Register a viewer and replay the current title and content to it.

        Registration and replay happen without yielding to the event loop,
        so no broadcast can slip in between them.

        """
        self._registry.register(conn)
        document = self._document
        if document is None:
            return
        conn.send("title", document.title)
        if document.html is not None:
            conn.send("content", document.html)

    def detach(self, conn: ViewerConnection) -> None:
        self._registry.unregister(conn)

    async def refresh(self, seq: ChangeSeq) -> bool:
        """Re-read, re-render and broadcast the document for change ``seq``.

        Returns:
            True if the result was applied and broadcast.

        """
        document = self._document
        if document is None or self._state is not SessionState.WATCHING:
            return False

        try:
            text = await self._reader(document.path)
        except DocumentReadError as exc:
            print(f"  Read error: {exc}", file=sys.stderr)
            if self._collector is not None:
                self._collector.record_read_failure(
                    str(document.path), seq=seq, error=str(exc.cause),
                )
            return False

        # Stopped while the read was in flight.
        if self._state is not SessionState.WATCHING:
            return False

        if seq <= document.seq:
            if self._collector is not None:
                self._collector.record_stale(
                    str(document.path), seq=seq, applied_seq=document.seq,
                )
            return False

        t0 = time.perf_counter()
        html = self._renderer.render(text)
        render_ms = (time.perf_counter() - t0) * 1000

        document.apply(seq, text, html)
        if self._collector is not None:
            self._collector.record_render(
                str(document.path),
                seq=seq,
                html_bytes=len(html.encode("utf-8")),
                render_ms=render_ms,
            )
        self._registry.broadcast("content", html)
        return True

    def _next_seq(self) -> ChangeSeq:
        self._seq += 1
        return self._seq

    async def _consume_changes(self) -> None:
        """Consumer loop: one refresh task per change event, in arrival order."""
        async for _event in self._watcher.changes():
            if self._state is not SessionState.WATCHING:
                return
            task = asyncio.create_task(self._refresh_logged(self._next_seq()))
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)

    async def _refresh_logged(self, seq: ChangeSeq) -> bool:
        try:
            return await self.refresh(seq)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            name = self._document.title if self._document is not None else "?"
            print(f"  Pipeline error ({name}): {exc}", file=sys.stderr)
            return False

    def _record_state(self) -> None:
        if self._collector is not None:
            path = str(self._document.path) if self._document is not None else ""
            self._collector.record_state("session", str(self._state), path)
