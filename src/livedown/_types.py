"""Shared type definitions for livedown."""

from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Literal

# Push channel event names (server -> viewer)
type EventName = Literal["title", "content", "kill"]

# SSE client identifier
type ClientID = str

# Monotonic change sequence number within one session
type ChangeSeq = int

# Async document reader, injectable for tests
type DocumentReader = Callable[[Path], Awaitable[str]]
