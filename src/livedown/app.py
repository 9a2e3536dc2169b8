"""Livedown server — HTTP + SSE transport around one live Session.

``ServerLifecycle`` owns the listener, the ConnectionRegistry and exactly one
Session.  ``create_server`` is the primary entry point.

State machine::

    Idle --start(path)--> Running --stop() / kill()--> Stopped

Routes:
    GET    /                    viewer page
    DELETE /                    kill: notify viewers, then shut down
    GET    /__livedown/events   SSE push channel (title, content, kill)
    GET    /__livedown/stats    JSON state + event log summary
    GET    /<asset>             files next to the watched document
"""

from __future__ import annotations

import asyncio
import socket
import sys
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

import uvicorn
from sse_starlette.sse import EventSourceResponse
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.responses import FileResponse, HTMLResponse, JSONResponse, Response
from starlette.routing import Route

from livedown._errors import LifecycleError, LivedownError, StartupError, TransportError
from livedown.config import LivedownConfig
from livedown.content.watcher import FileWatcher
from livedown.observability import EventLog, StackCollector
from livedown.reactive.registry import ConnectionRegistry, ViewerConnection
from livedown.reactive.session import Session
from livedown.reactive.viewer import EVENTS_ENDPOINT, STATS_ENDPOINT, viewer_page

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from starlette.requests import Request

# Seconds between SSE keep-alive comments.
_SSE_PING = 15

# Upper bound for uvicorn to finish open requests once asked to exit.
_GRACEFUL_SHUTDOWN = 2

# Seconds to wait for the listener to report it is accepting.
_STARTUP_TIMEOUT = 5.0


class ServerState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class ServerLifecycle:
    """Runs the transport and the single active Session.

    Args:
        config: Server configuration (defaults to ``LivedownConfig()``).
        collector: Observability collector; a fresh one is created if omitted.

    """

    def __init__(
        self,
        config: LivedownConfig | None = None,
        *,
        collector: StackCollector | None = None,
    ) -> None:
        self._config = config if config is not None else LivedownConfig()
        self._collector = collector if collector is not None else StackCollector(EventLog())
        self._registry = ConnectionRegistry(self._collector)
        self._session: Session | None = None
        self._starting: Session | None = None
        self._state = ServerState.IDLE
        self._socket: socket.socket | None = None
        self._server: uvicorn.Server | None = None
        self._server_task: asyncio.Task[None] | None = None
        self._stop_task: asyncio.Task[None] | None = None
        self._kill_task: asyncio.Task[None] | None = None
        self._bound_port: int | None = None
        self.killed = False

    # ----- Properties -----

    @property
    def config(self) -> LivedownConfig:
        return self._config

    @property
    def collector(self) -> StackCollector:
        return self._collector

    @property
    def state(self) -> ServerState:
        return self._state

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    @property
    def session(self) -> Session | None:
        """The active session while Running."""
        return self._session

    @property
    def port(self) -> int:
        """Bound port while Running, configured port otherwise."""
        return self._bound_port if self._bound_port is not None else self._config.port

    @property
    def uri(self) -> str:
        """Address of the viewer page, for opening a browser."""
        return f"http://{self._config.public_host}:{self.port}"

    @property
    def accepting(self) -> bool:
        """Whether new viewers may connect."""
        return self._state is ServerState.RUNNING and self._stop_task is None

    @property
    def document_dir(self) -> Path | None:
        session = self._session
        if session is None or session.document is None:
            return None
        return session.document.path.parent

    # ----- Management surface -----

    async def start(self, path: str | Path | None) -> None:
        """Bind the listener and start watching ``path``.

        Raises:
            LifecycleError: If the server was already started.
            StartupError: If ``path`` is missing or is not a file.
            TransportError: If the listener cannot be bound.

        """
        if self._state is not ServerState.IDLE:
            msg = f"cannot start: server is {self._state}"
            raise LifecycleError(msg)
        doc_path = _resolve_document(path)

        sock = self._bind()
        session = self._new_session()
        try:
            await session.start(doc_path)
            await self._serve(sock)
        except BaseException:
            await session.stop()
            sock.close()
            raise

        # stop() ran while we were starting; it already marked us Stopped.
        if self._state is not ServerState.IDLE:
            await self._abort_start(session, sock)
            msg = f"server was stopped while starting {doc_path.name}"
            raise LifecycleError(msg)

        self._socket = sock
        self._session = session
        self._state = ServerState.RUNNING
        self._collector.record_state("server", str(self._state), str(doc_path))

    async def watch(self, path: str | Path) -> None:
        """Switch to another document while Running.

        The previous session (and its watcher) is stopped before the new one
        starts; viewers receive the new title and content.  If the new
        session cannot start, the previous document is watched again and the
        error is re-raised.

        Raises:
            LifecycleError: If the server is not Running, or stops meanwhile.
            StartupError: If ``path`` is missing or is not a file.

        """
        self._check_running("watch")
        doc_path = _resolve_document(path)

        old = self._session
        if old is not None:
            # Stays reachable so a concurrent shutdown can find and stop it.
            await old.stop()
        self._check_running("watch")
        self._session = None

        try:
            session = await self._start_session(doc_path)
        except LifecycleError:
            raise
        except BaseException:
            if old is not None and old.document is not None and self.accepting:
                await self._restore_session(old.document.path)
            raise
        self._session = session

    async def stop(self) -> None:
        """Stop the session and close the listener. Idempotent.

        Returns once the listening socket is released.
        """
        if self._state is ServerState.IDLE:
            self._state = ServerState.STOPPED
            return
        if self._state is ServerState.STOPPED:
            return
        if self._stop_task is None:
            self._stop_task = asyncio.create_task(self._shutdown())
        await asyncio.shield(self._stop_task)

    async def kill(self) -> None:
        """Tell every viewer to close, then stop."""
        if self._state is ServerState.RUNNING and self._stop_task is None:
            self.killed = True
            self._registry.broadcast("kill", "kill")
        await self.stop()

    def request_kill(self) -> None:
        """Schedule ``kill`` without waiting (used from request handlers)."""
        if self._kill_task is None:
            self._kill_task = asyncio.create_task(self.kill())

    async def serve_until_stopped(self) -> None:
        """Block until the server stops (via stop, kill or DELETE /)."""
        task = self._server_task
        if task is not None:
            await asyncio.wait([task])
        if self._kill_task is not None:
            await self._kill_task
        await self.stop()
        if task is not None and not task.cancelled():
            exc = task.exception()
            if exc is not None:
                raise exc

    # ----- Viewer hooks -----

    def attach(self, conn: ViewerConnection) -> None:
        """Register a new viewer and replay the current state to it."""
        if self._session is not None:
            self._session.attach(conn)
        else:
            self._registry.register(conn)

    def detach(self, conn: ViewerConnection) -> None:
        self._registry.unregister(conn)

    # ----- Internals -----

    def _check_running(self, operation: str) -> None:
        if not self.accepting:
            msg = f"cannot {operation}: server is {self._state}"
            if self._stop_task is not None:
                msg = f"cannot {operation}: server is stopping"
            raise LifecycleError(msg)

    async def _start_session(self, doc_path: Path) -> Session:
        """Start a session while Running; shutdown stops it if it races us."""
        session = self._new_session()
        self._starting = session
        try:
            await session.start(doc_path)
        except BaseException:
            await session.stop()
            raise
        finally:
            self._starting = None
        if not self.accepting:
            await session.stop()
            self._check_running("watch")
        return session

    async def _restore_session(self, doc_path: Path) -> None:
        """Go back to watching ``doc_path`` after a failed switch."""
        try:
            self._session = await self._start_session(doc_path)
        except LivedownError as exc:
            print(f"  Watch error: cannot restore {doc_path.name}: {exc}", file=sys.stderr)

    async def _abort_start(self, session: Session, sock: socket.socket) -> None:
        await session.stop()
        server, task = self._server, self._server_task
        self._server = self._server_task = None
        if server is not None:
            server.should_exit = True
        if task is not None:
            await asyncio.wait([task])
        sock.close()

    def _new_session(self) -> Session:
        cfg = self._config
        watcher = FileWatcher(
            debounce_ms=cfg.debounce_ms,
            step_ms=cfg.step_ms,
            force_polling=cfg.force_polling,
        )
        return Session(self._registry, watcher=watcher, collector=self._collector)

    def _bind(self) -> socket.socket:
        """Bind the listening socket here so bind errors stay catchable."""
        host = self._config.host
        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((host, self._config.port))
        except OSError as exc:
            sock.close()
            msg = f"cannot listen on {host}:{self._config.port}: {exc}"
            raise TransportError(msg) from exc
        self._bound_port = sock.getsockname()[1]
        return sock

    async def _serve(self, sock: socket.socket) -> None:
        """Start uvicorn on the bound socket and wait until it accepts."""
        config = uvicorn.Config(
            create_app(self),
            lifespan="off",
            log_level="info" if self._config.verbose else "warning",
            access_log=self._config.verbose,
            timeout_graceful_shutdown=_GRACEFUL_SHUTDOWN,
        )
        server = uvicorn.Server(config)
        # Skip uvicorn's signal handling; Ctrl+C belongs to the caller's loop.
        serve = server._serve if hasattr(server, "_serve") else server.serve
        task = asyncio.create_task(serve(sockets=[sock]), name="livedown-server")

        loop = asyncio.get_running_loop()
        deadline = loop.time() + _STARTUP_TIMEOUT
        while not server.started:
            if task.done():
                exc = task.exception() if not task.cancelled() else None
                msg = f"server exited during startup: {exc}"
                raise TransportError(msg) from exc
            if loop.time() > deadline:
                server.should_exit = True
                await asyncio.wait([task])
                msg = f"server did not start within {_STARTUP_TIMEOUT:.0f}s"
                raise TransportError(msg)
            await asyncio.sleep(0.01)
        self._server = server
        self._server_task = task

    async def _shutdown(self) -> None:
        for session in (self._session, self._starting):
            if session is not None:
                await session.stop()
        self._session = None

        # Flush pending events (e.g. kill) before the listener goes away.
        self._registry.close_all()
        drained = await self._registry.wait_empty(self._config.drain_timeout)
        if not drained:
            print(
                f"  {len(self._registry)} viewer(s) did not disconnect in time",
                file=sys.stderr,
            )

        server, task = self._server, self._server_task
        if server is not None:
            server.should_exit = True
        if task is not None:
            await asyncio.wait([task])
        if self._socket is not None:
            self._socket.close()
            self._socket = None

        self._state = ServerState.STOPPED
        self._collector.record_state("server", str(self._state))


def _resolve_document(path: str | Path | None) -> Path:
    if path is None or str(path) == "":
        msg = "missing path argument"
        raise StartupError(msg)
    doc_path = Path(path).expanduser().resolve()
    if not doc_path.is_file():
        msg = f"cannot open {path}: no such file"
        raise StartupError(msg)
    return doc_path


def create_app(lifecycle: ServerLifecycle) -> Starlette:
    """Build the Starlette application serving one lifecycle."""

    async def index(request: Request) -> Response:
        session = lifecycle.session
        title = session.document.title if session and session.document else "livedown"
        return HTMLResponse(viewer_page(title))

    async def kill(request: Request) -> Response:
        lifecycle.request_kill()
        return Response(status_code=200)

    async def events(request: Request) -> Response:
        if not lifecycle.accepting:
            return Response("server is shutting down", status_code=503)
        conn = ViewerConnection()

        async def generate() -> AsyncIterator[dict[str, str]]:
            lifecycle.attach(conn)
            try:
                async for event in conn.events():
                    yield event.as_sse()
            finally:
                lifecycle.detach(conn)

        return EventSourceResponse(generate(), ping=_SSE_PING)

    async def stats(request: Request) -> Response:
        session = lifecycle.session
        document = session.document if session is not None else None
        return JSONResponse(
            {
                "state": str(lifecycle.state),
                "document": str(document.path) if document is not None else None,
                "seq": document.seq if document is not None else 0,
                "viewers": len(lifecycle.registry),
                "event_log": lifecycle.collector.log.stats(),
            }
        )

    async def asset(request: Request) -> Response:
        root = lifecycle.document_dir
        if root is None:
            raise HTTPException(status_code=404)
        target = (root / request.path_params["asset"]).resolve()
        if not target.is_relative_to(root) or not target.is_file():
            raise HTTPException(status_code=404)
        return FileResponse(target)

    return Starlette(
        routes=[
            Route("/", index, methods=["GET"]),
            Route("/", kill, methods=["DELETE"]),
            Route(EVENTS_ENDPOINT, events, methods=["GET"]),
            Route(STATS_ENDPOINT, stats, methods=["GET"]),
            Route("/{asset:path}", asset, methods=["GET"]),
        ],
    )


def create_server(config: LivedownConfig | None = None, **kwargs: object) -> ServerLifecycle:
    """Create an idle ServerLifecycle.

    Args:
        config: Full configuration; mutually exclusive with ``kwargs``.
        **kwargs: LivedownConfig fields.

    """
    if config is None:
        config = LivedownConfig(**kwargs)  # type: ignore[arg-type]
    return ServerLifecycle(config)
