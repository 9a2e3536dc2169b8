"""Shared test fixtures for livedown."""

from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture
def doc(tmp_path: Path) -> Path:
    """A Markdown document with one heading, inside its own directory."""
    path = tmp_path / "doc.md"
    path.write_text("# Hi\n", encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _reset_sse_app_status() -> None:
    """sse-starlette keeps a process-wide shutdown event bound to the first
    event loop that created it; each test runs on a fresh loop."""
    from sse_starlette.sse import AppStatus

    if hasattr(AppStatus, "should_exit_event"):
        AppStatus.should_exit_event = None
    if hasattr(AppStatus, "should_exit"):
        AppStatus.should_exit = False


class FakeWatcher:
    """In-memory stand-in for FileWatcher; tests push events by hand."""

    def __init__(self) -> None:
        import asyncio

        self._queue: asyncio.Queue | None = None
        self.path: Path | None = None
        self.opened: list[Path] = []
        self.closed = 0

    @property
    def is_open(self) -> bool:
        return self._queue is not None

    async def open(self, path: Path) -> None:
        import asyncio

        await self.close()
        self.path = path
        self.opened.append(path)
        self._queue = asyncio.Queue()

    async def close(self) -> None:
        if self._queue is not None:
            self.closed += 1
            self._queue.put_nowait(None)
        self._queue = None
        self.path = None

    def emit(self) -> None:
        from livedown.content.watcher import ChangeEvent

        assert self._queue is not None
        assert self.path is not None
        self._queue.put_nowait(ChangeEvent(path=self.path, kind="modified"))

    async def changes(self):  # noqa: ANN201
        queue = self._queue
        if queue is None:
            return
        while True:
            event = await queue.get()
            if event is None:
                return
            yield event
