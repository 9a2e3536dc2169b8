"""File watcher — emits a change event whenever the watched document changes.

Watches the document's parent directory (non-recursively) and filters on the
document's name, so the watch survives editors that save by replace/rename
and documents that are deleted and re-created.  Rapid notifications inside
the debounce window arrive as one batch and are coalesced into a single
``ChangeEvent``.
"""

from __future__ import annotations

import asyncio
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from watchfiles import Change, awatch

from livedown._errors import WatchError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

# Delay before re-arming after the watched directory disappeared.
_REARM_DELAY = 0.5

# Upper bound for the watch task to notice its stop event.
_CLOSE_TIMEOUT = 5.0


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """A change to the watched document.

    Attributes:
        path: Absolute path to the document.
        kind: Type of filesystem change, after coalescing a debounced batch.

    """

    path: Path
    kind: Literal["created", "modified", "deleted"]


def coalesce_changes(path: Path, changes: set[tuple[Change, str]]) -> ChangeEvent | None:
    """Fold one debounced batch of raw changes into a single event.

    Returns None if none of the raw changes concern ``path``.
    """
    kinds = {change for change, changed in changes if os.path.basename(changed) == path.name}
    if not kinds:
        return None
    if not path.exists():
        return ChangeEvent(path=path, kind="deleted")
    if Change.added in kinds:
        return ChangeEvent(path=path, kind="created")
    return ChangeEvent(path=path, kind="modified")


class FileWatcher:
    """Watches a single file and queues a ``ChangeEvent`` per settled change.

    Lifecycle: ``open(path)`` -> watching -> ``close()``.  Opening while a
    watch is active closes the previous watch first; ``open`` only returns
    once the old native watch is released and the new watch task is running.
    After ``close`` returns, no further events are delivered: pending events are
    dropped and the ``changes()`` iterator ends.

    Args:
        debounce_ms: Coalescing window for rapid notifications.
        step_ms: How often the backend checks for changes and the stop flag.
        force_polling: Use the polling backend (``None`` lets watchfiles decide).

    """

    def __init__(
        self,
        *,
        debounce_ms: int = 50,
        step_ms: int = 50,
        force_polling: bool | None = None,
    ) -> None:
        self._debounce_ms = debounce_ms
        self._step_ms = step_ms
        self._force_polling = force_polling
        self._path: Path | None = None
        self._queue: asyncio.Queue[ChangeEvent | None] | None = None
        self._stop_event: asyncio.Event | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def path(self) -> Path | None:
        """The watched file, or None when closed."""
        return self._path

    @property
    def is_open(self) -> bool:
        """Whether a watch is currently active."""
        return self._task is not None and not self._task.done()

    async def open(self, path: Path) -> None:
        """Start watching ``path``, closing any previous watch first.

        The file itself may not exist yet; its parent directory must.

        Raises:
            WatchError: If the parent directory does not exist.

        """
        await self.close()

        path = path.resolve()
        if not path.parent.is_dir():
            msg = f"cannot watch {path}: directory {path.parent} does not exist"
            raise WatchError(msg)

        self._path = path
        self._queue = asyncio.Queue()
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(
            self._watch_loop(path, self._queue, self._stop_event),
            name=f"livedown-watch:{path.name}",
        )
        # Give the watch task a first turn so awatch can set up its watcher.
        # watchfiles does not report when the watch is armed, so a write made
        # right after open() returns can still be missed.
        await asyncio.sleep(0)

    async def close(self) -> None:
        """Stop watching and release the native watch. Safe to call repeatedly."""
        task, self._task = self._task, None
        queue, self._queue = self._queue, None
        if self._stop_event is not None:
            self._stop_event.set()
        self._stop_event = None
        self._path = None

        if task is not None and not task.done():
            try:
                await asyncio.wait_for(task, timeout=_CLOSE_TIMEOUT)
            except TimeoutError:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        if queue is not None:
            while not queue.empty():
                queue.get_nowait()
            queue.put_nowait(None)

    async def changes(self) -> AsyncIterator[ChangeEvent]:
        """Async iterator over change events of the current watch.

        Ends when the watch is closed (or immediately, if nothing is open).
        """
        queue = self._queue
        if queue is None:
            return
        while True:
            event = await queue.get()
            if event is None:
                return
            yield event

    async def _watch_loop(
        self,
        path: Path,
        queue: asyncio.Queue[ChangeEvent | None],
        stop_event: asyncio.Event,
    ) -> None:
        """Background task: run awatch on the parent directory and feed the queue."""
        while not stop_event.is_set():
            try:
                async for raw_changes in awatch(
                    path.parent,
                    watch_filter=lambda _change, changed: os.path.basename(changed) == path.name,
                    debounce=self._debounce_ms,
                    step=self._step_ms,
                    stop_event=stop_event,
                    recursive=False,
                    force_polling=self._force_polling,
                ):
                    if stop_event.is_set():
                        return
                    event = coalesce_changes(path, raw_changes)
                    if event is not None:
                        queue.put_nowait(event)
                return
            except OSError as exc:
                # Directory vanished (or became unreadable): keep trying.
                print(f"  Watch error: {path.parent}: {exc}", file=sys.stderr)
                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=_REARM_DELAY)
                except TimeoutError:
                    continue
