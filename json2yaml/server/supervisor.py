"""Process supervision for web mode: one shutdown path, uvicorn wiring."""

from __future__ import annotations

import asyncio
import copy
import logging
import signal
import threading
from collections.abc import Callable
from typing import Any

import uvicorn
from uvicorn.config import LOGGING_CONFIG
from uvicorn.protocols.http.h11_impl import H11Protocol

from ..types import Json2YamlConfig, LifecycleState

logger = logging.getLogger(__name__)


class ServerSupervisor:
    """Single consumer of shutdown requests.

    Producers (OS signals, heartbeat staleness, the zero-connection timer)
    call ``request_shutdown``.  The first request wins and is forwarded to
    the attached server; later ones are ignored.

    Thread-safe: the zero-connection timer calls in from its own thread.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = LifecycleState.STARTING
        self._server: Any = None
        self.shutdown_reason: str | None = None
        self.abrupt = False

    @property
    def state(self) -> LifecycleState:
        with self._lock:
            return self._state

    def attach(self, server: Any) -> None:
        """Attach the object that owns ``should_exit``/``force_exit`` (a uvicorn.Server)."""
        with self._lock:
            self._server = server
            if self._state is LifecycleState.SHUTTING_DOWN:
                self._apply_locked()

    def mark_serving(self) -> None:
        with self._lock:
            if self._state is LifecycleState.STARTING:
                self._state = LifecycleState.SERVING

    def mark_stopped(self) -> None:
        with self._lock:
            self._state = LifecycleState.STOPPED

    def request_shutdown(self, reason: str, *, abrupt: bool = False) -> bool:
        """Begin shutdown unless already shutting down. Returns True for the winning call."""
        with self._lock:
            if self._state in (LifecycleState.SHUTTING_DOWN, LifecycleState.STOPPED):
                logger.debug("Shutdown already in progress; ignoring %s", reason)
                return False
            self._state = LifecycleState.SHUTTING_DOWN
            self.shutdown_reason = reason
            self.abrupt = abrupt
            self._apply_locked()
        logger.info("Shutting down (%s%s)", reason, ", immediate" if abrupt else "")
        return True

    def _apply_locked(self) -> None:
        if self._server is None:
            return
        # force_exit skips uvicorn's drain of open connections and tasks
        if self.abrupt:
            self._server.force_exit = True
        self._server.should_exit = True


class SupervisedServer(uvicorn.Server):
    """uvicorn.Server that routes signals through the supervisor."""

    def __init__(self, config: uvicorn.Config, supervisor: ServerSupervisor) -> None:
        super().__init__(config)
        self.supervisor = supervisor
        supervisor.attach(self)

    def handle_exit(self, sig: int, frame: Any) -> None:
        try:
            name = signal.Signals(sig).name
        except ValueError:
            name = str(sig)
        if self.supervisor.request_shutdown(f"signal {name}"):
            print("\nReceived shutdown signal...", flush=True)

    async def startup(self, sockets: list | None = None) -> None:
        await super().startup(sockets=sockets)
        if self.started:
            self.supervisor.mark_serving()


def tracked_protocol(
    on_open: Callable[[Any], None],
    on_close: Callable[[Any], None],
    base: type[asyncio.Protocol] = H11Protocol,
) -> type[asyncio.Protocol]:
    """Build an HTTP protocol class reporting transport open/close.

    uvicorn creates one protocol instance per TCP connection, so the
    instance itself serves as the connection identifier.
    """

    class TrackedProtocol(base):  # type: ignore[valid-type, misc]
        def connection_made(self, transport: asyncio.BaseTransport) -> None:
            super().connection_made(transport)
            on_open(self)

        def connection_lost(self, exc: Exception | None) -> None:
            try:
                super().connection_lost(exc)
            finally:
                on_close(self)

    TrackedProtocol.__name__ = f"Tracked{base.__name__}"
    return TrackedProtocol


def build_log_config(level: str = "info") -> dict:
    """uvicorn's logging dict config plus a ``json2yaml`` logger on its default handler."""
    log_config = copy.deepcopy(LOGGING_CONFIG)
    log_config["loggers"]["json2yaml"] = {
        "handlers": ["default"],
        "level": level.upper(),
        "propagate": False,
    }
    return log_config


def run_server(config: Json2YamlConfig) -> ServerSupervisor:
    """Serve the web GUI until the browser goes away or a signal arrives.

    Blocks. Returns the supervisor so callers can inspect the shutdown reason.
    """
    from .app import create_app
    from .lifecycle import SessionLifecycle

    supervisor = ServerSupervisor()
    session = SessionLifecycle(supervisor, config.lifecycle)
    app = create_app(session, config)

    uv_config = uvicorn.Config(
        app,
        host=config.server.host,
        port=config.server.port,
        http=tracked_protocol(session.connection_opened, session.connection_closed),
        ws="none",
        lifespan="on",
        log_level=config.server.log_level,
        log_config=build_log_config(config.server.log_level),
        timeout_graceful_shutdown=config.server.graceful_timeout,
    )
    server = SupervisedServer(uv_config, supervisor)
    try:
        server.run()
    finally:
        # force_exit skips the lifespan shutdown that normally closes this
        session.scheduler.close()
        supervisor.mark_stopped()
    logger.info("Server stopped (%s)", supervisor.shutdown_reason or "exited")
    return supervisor
