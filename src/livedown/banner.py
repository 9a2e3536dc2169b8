"""Startup banner — document, address and live status.

Detects ``NO_COLOR`` / ``TERM`` for safe fallback.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

from livedown.reactive.viewer import EVENTS_ENDPOINT

if TYPE_CHECKING:
    from pathlib import Path


# ---------------------------------------------------------------------------
# ANSI helpers, respecting NO_COLOR (https://no-color.org)
# ---------------------------------------------------------------------------

def _supports_color() -> bool:
    """Return True if the terminal supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


_COLOR = _supports_color()

_RESET = "\033[0m" if _COLOR else ""
_BOLD = "\033[1m" if _COLOR else ""
_DIM = "\033[2m" if _COLOR else ""
_CYAN = "\033[36m" if _COLOR else ""
_GREEN = "\033[32m" if _COLOR else ""
_YELLOW = "\033[33m" if _COLOR else ""


def _clickable_url(url: str) -> str:
    """Wrap *url* in an OSC 8 hyperlink escape if the terminal supports it."""
    if not _COLOR:
        return url
    return f"\033]8;;{url}\033\\{_BOLD}{_CYAN}{url}{_RESET}\033]8;;\033\\"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def format_banner(
    path: Path,
    uri: str,
    *,
    warnings: list[str] | None = None,
) -> str:
    """Build the startup banner text.

    Args:
        path: The watched document.
        uri: Address of the viewer page.
        warnings: Optional messages shown below the address.

    """
    from livedown import __version__

    lines: list[str] = [
        "",
        f"  {_BOLD}livedown{_RESET} {_DIM}v{__version__}{_RESET}",
        f"  {_DIM}{'─' * 43}{_RESET}",
        f"  {_DIM}├─{_RESET} document: {path.name} {_DIM}({path.parent}){_RESET}",
        f"  {_DIM}└─{_RESET} {_GREEN}live{_RESET} SSE on {_DIM}{EVENTS_ENDPOINT}{_RESET}",
        "",
        f"  {_clickable_url(uri)}",
        "",
        f"  {_DIM}Watching for changes...{_RESET}",
    ]
    if warnings:
        lines.append("")
        lines.extend(f"  {_YELLOW}!{_RESET} {w}" for w in warnings)
    lines.append("")
    return "\n".join(lines)


def print_banner(path: Path, uri: str, *, warnings: list[str] | None = None) -> None:
    """Print the startup banner to stderr."""
    print(format_banner(path, uri, warnings=warnings), file=sys.stderr)
