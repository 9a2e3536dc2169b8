"""Content layer — the watched document, its renderer and its file watcher."""

from livedown.content.document import Document, read_document
from livedown.content.renderer import Renderer, render
from livedown.content.watcher import ChangeEvent, FileWatcher

__all__ = [
    "ChangeEvent",
    "Document",
    "FileWatcher",
    "Renderer",
    "read_document",
    "render",
]
