"""The watched document — path, last good text, last good HTML."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path

from livedown._errors import DocumentReadError


@dataclass(slots=True)
class Document:
    """Latest known state of the watched file.

    ``text`` and ``html`` only ever hold the result of a successful read;
    a failed read leaves them untouched so viewers keep the last valid render.

    Attributes:
        path: Absolute path to the file.
        text: Raw text from the most recent applied read, or None.
        html: Render of ``text``, or None if nothing was read yet.
        seq: Change sequence number of the applied read (0 = none).

    """

    path: Path
    text: str | None = None
    html: str | None = None
    seq: int = 0

    def __post_init__(self) -> None:
        if not self.path.is_absolute():
            self.path = self.path.resolve()

    @property
    def title(self) -> str:
        """The document's basename, shown as the page title."""
        return self.path.name

    @property
    def has_content(self) -> bool:
        return self.html is not None

    def apply(self, seq: int, text: str, html: str) -> bool:
        """Store a read result unless a newer one was already applied.

        Returns True if the result was stored.
        """
        if seq <= self.seq:
            return False
        self.seq = seq
        self.text = text
        self.html = html
        return True


async def read_document(path: Path) -> str:
    """Read a UTF-8 text file without blocking the event loop.

    Raises:
        DocumentReadError: If the file is missing, unreadable or not UTF-8.

    """
    try:
        return await asyncio.to_thread(path.read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise DocumentReadError(path, exc) from exc
