"""Livedown CLI — livedown start / livedown stop.

Entry point for the ``livedown`` command-line interface.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the livedown CLI."""
    parser = argparse.ArgumentParser(
        prog="livedown",
        description="Live Markdown preview in the browser.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # livedown start
    start_parser = subparsers.add_parser(
        "start",
        help="Start the preview server for a Markdown file",
    )
    start_parser.add_argument("path", nargs="?", help="Markdown file to watch")
    start_parser.add_argument("--host", default=None, help="Bind address")
    start_parser.add_argument("--port", type=int, default=None, help="Bind port (default 1337)")
    start_parser.add_argument(
        "--open", dest="open_browser", action="store_true", default=None,
        help="Open the preview in a browser",
    )
    start_parser.add_argument(
        "--browser", default=None, help='Browser command, e.g. "firefox -P work"',
    )
    start_parser.add_argument(
        "--verbose", action="store_true", default=None, help="Print progress messages",
    )

    # livedown stop
    stop_parser = subparsers.add_parser(
        "stop",
        help="Stop a running preview server",
    )
    stop_parser.add_argument("--port", type=int, default=None, help="Server port (default 1337)")
    stop_parser.add_argument(
        "--verbose", action="store_true", default=None, help="Print progress messages",
    )

    return parser


def _get_version() -> str:
    """Get the package version."""
    from livedown import __version__

    return __version__


def _log(message: str) -> None:
    print(f"[livedown] {message}", file=sys.stderr)


async def _run_start(path: str, overrides: dict[str, object]) -> int:
    from livedown._errors import LivedownError
    from livedown.app import ServerLifecycle
    from livedown.banner import print_banner
    from livedown.browser import open_browser
    from livedown.config_loader import load_config

    try:
        config = load_config(**overrides)
        server = ServerLifecycle(config)
        await server.start(path)
    except LivedownError as exc:
        print(f"Error starting server: {exc}", file=sys.stderr)
        return 1

    print_banner(Path(path).resolve(), server.uri)
    if config.open_browser and not open_browser(server.uri, config.browser):
        print(f"Cannot open browser, please visit {server.uri}", file=sys.stderr)
    if config.verbose:
        _log(f"Markdown preview started on {server.uri}")

    await server.serve_until_stopped()
    if config.verbose:
        _log("killed" if server.killed else "stopped")
    return 0


def _run_stop(port: int | None, *, verbose: bool) -> int:
    import httpx

    from livedown._errors import LivedownError
    from livedown.config_loader import load_config

    # Same port resolution as start: flag, then livedown.yaml/.toml, then default.
    try:
        config = load_config(port=port)
    except LivedownError as exc:
        print(f"Error reading config: {exc}", file=sys.stderr)
        return 1
    url = f"http://{config.public_host}:{config.port}/"
    try:
        response = httpx.delete(url, timeout=5.0)
        response.raise_for_status()
    except httpx.HTTPError:
        print("Cannot stop the server, is it running?", file=sys.stderr)
        return 1
    if verbose:
        _log(f"Stopped server on {url}")
    return 0


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "stop":
        sys.exit(_run_stop(args.port, verbose=bool(args.verbose)))

    if args.command == "start":
        if not args.path:
            parser.print_help()
            sys.exit(0)
        overrides = {
            "host": args.host,
            "port": args.port,
            "open_browser": args.open_browser,
            "browser": args.browser,
            "verbose": args.verbose,
        }
        try:
            code = asyncio.run(_run_start(args.path, overrides))
        except KeyboardInterrupt:
            code = 0
        sys.exit(code)


if __name__ == "__main__":
    main()
