"""Heartbeat server: the worker's liveness endpoint.

Cluster health probes hit it to decide whether the worker is alive, and pods
launched by the worker poll it to notice when their launcher has gone away.
It runs on its own daemon thread with its own event loop so that a stalled
task queue can never block a probe.
"""

from __future__ import annotations

import contextvars
import logging
import threading
import time

import uvicorn
from fastapi import FastAPI
from relay_shared.errors import ConfigurationError, ProgrammingError

logger = logging.getLogger(__name__)

KUBE_HEARTBEAT_PORT = 9000


def create_app() -> FastAPI:
    app = FastAPI(title="relay-worker heartbeat", docs_url=None, redoc_url=None)

    @app.get("/")
    @app.get("/health")
    async def heartbeat() -> dict[str, str]:
        return {"status": "alive"}

    return app


class HeartbeatServer:
    """Serves the heartbeat app on a background thread."""

    def __init__(
        self,
        port: int = KUBE_HEARTBEAT_PORT,
        host: str = "0.0.0.0",
        startup_timeout: float = 10.0,
    ) -> None:
        self.port = port
        self.host = host
        self.startup_timeout = startup_timeout
        self._server = uvicorn.Server(
            uvicorn.Config(create_app(), host=host, port=port, log_level="warning", lifespan="off")
        )
        self._thread: threading.Thread | None = None
        self._error: BaseException | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and self._server.started

    @property
    def bound_port(self) -> int:
        """The port actually bound (differs from `port` when it was 0)."""
        return self._server.servers[0].sockets[0].getsockname()[1]

    def start(self) -> None:
        """Start serving; returns once the socket is bound.

        Runs the server in a copy of the caller's context so its log lines
        carry the same diagnostic context. Raises ConfigurationError if the
        server can't bind (the worker must not run without a liveness probe).
        """
        if self._thread is not None:
            raise ProgrammingError("Heartbeat server already started")

        context = contextvars.copy_context()
        self._thread = threading.Thread(
            target=context.run, args=(self._serve,), name="heartbeat-server", daemon=True
        )
        self._thread.start()

        deadline = time.monotonic() + self.startup_timeout
        while not self._server.started:
            if not self._thread.is_alive() and not self._server.started:
                raise ConfigurationError(
                    f"Heartbeat server failed to start on {self.host}:{self.port}: {self._error}"
                )
            if time.monotonic() > deadline:
                self.stop()
                raise ConfigurationError(
                    f"Heartbeat server did not start within {self.startup_timeout}s"
                )
            time.sleep(0.05)
        logger.info(f"Heartbeat server listening on {self.host}:{self.port}")

    def _serve(self) -> None:
        try:
            self._server.run()
        except BaseException as e:  # uvicorn exits via SystemExit when it can't bind
            self._error = e
            logger.error(f"Heartbeat server stopped: {e!r}")

    def stop(self, timeout: float = 5.0) -> None:
        if self._thread is None:
            return
        self._server.should_exit = True
        self._thread.join(timeout)
