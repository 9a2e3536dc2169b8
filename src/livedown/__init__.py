"""Livedown — live Markdown preview in the browser.

Renders one local Markdown document to HTML and keeps every open browser tab
in sync with it as the file changes on disk.  Updates are pushed over
Server-Sent Events; viewers never poll.

Quick start::

    livedown start README.md --open

Programmatic use::

    import asyncio
    from livedown import create_server

    async def main():
        server = create_server(port=0)
        await server.start("README.md")
        print(server.uri)
        await server.serve_until_stopped()

    asyncio.run(main())

"""

__version__ = "0.1.0"
__all__ = [
    "LivedownConfig",
    "ServerLifecycle",
    "__version__",
    "create_server",
    "render",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import livedown`` (and ``livedown --version``) fast.
    """
    if name == "LivedownConfig":
        from livedown.config import LivedownConfig

        return LivedownConfig

    if name == "ServerLifecycle":
        from livedown.app import ServerLifecycle

        return ServerLifecycle

    if name == "create_server":
        from livedown.app import create_server

        return create_server

    if name == "render":
        from livedown.content.renderer import render

        return render

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
