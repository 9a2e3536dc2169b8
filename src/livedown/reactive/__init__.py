"""Reactive layer — change propagation from the watched file to viewers.

Connects file changes to browser updates through the Session and SSE
broadcasting over the ConnectionRegistry.
"""

from livedown.reactive.registry import ConnectionRegistry, ViewerConnection, ViewerEvent
from livedown.reactive.session import Session, SessionState

__all__ = [
    "ConnectionRegistry",
    "Session",
    "SessionState",
    "ViewerConnection",
    "ViewerEvent",
]
