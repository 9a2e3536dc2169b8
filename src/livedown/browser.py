"""Open the viewer page in a browser."""

from __future__ import annotations

import re
import subprocess
import sys
import webbrowser

# Runs of unquoted characters or quoted chunks; quotes are stripped afterwards.
_ARG_RE = re.compile(r"""(?:[^\s"']+|"[^"]*"|'[^']*')+""")


def split_command_line(cmd: str | None) -> list[str]:
    """Split a browser command on whitespace, keeping quoted parts together.

    >>> split_command_line('firefox -P "work profile"')
    ['firefox', '-P', 'work profile']

    """
    if not cmd:
        return []
    return [part.replace('"', "").replace("'", "") for part in _ARG_RE.findall(cmd)]


def open_browser(uri: str, browser: str | None = None) -> bool:
    """Open ``uri`` with ``browser`` (a command line) or the system default.

    Returns:
        False if no browser could be launched.

    """
    parts = split_command_line(browser)
    if parts:
        try:
            subprocess.Popen(
                [*parts, uri],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as exc:
            print(f"  Browser error: {parts[0]}: {exc}", file=sys.stderr)
            return False
        return True
    try:
        return webbrowser.open(uri)
    except webbrowser.Error as exc:
        print(f"  Browser error: {exc}", file=sys.stderr)
        return False
