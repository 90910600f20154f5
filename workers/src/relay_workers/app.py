"""Worker bootstrap: heartbeat first, then every category's queue.

Startup is all-or-nothing. The heartbeat server comes up first (a worker
that can't report liveness must not take work), then every queue is built
and registered, and only then are the queues started. If anything after the
heartbeat fails, started queues are shut down and the heartbeat is stopped
before the error propagates, so a half-built worker never looks alive.
"""

from __future__ import annotations

import asyncio
import logging

from relay_process_launch.heartbeat import HeartbeatServer
from relay_shared.settings import MaxWorkersConfig
from temporalio.client import Client

from relay_workers.queue import TaskQueue, TaskQueueFactory
from relay_workers.registry import Dependencies, build_registrations

logger = logging.getLogger(__name__)


class WorkerHandle:
    """The running worker: its started queues and its heartbeat server."""

    def __init__(self, queues: list[TaskQueue], heartbeat: HeartbeatServer) -> None:
        self.queues = queues
        self.heartbeat = heartbeat

    async def wait(self) -> None:
        """Block until every queue stops polling."""
        await asyncio.gather(*(queue.wait() for queue in self.queues))

    async def shutdown(self) -> None:
        for queue in self.queues:
            await queue.shutdown()
        await asyncio.to_thread(self.heartbeat.stop)


class WorkerApp:
    def __init__(
        self,
        client: Client,
        max_workers: MaxWorkersConfig,
        dependencies: Dependencies,
        heartbeat: HeartbeatServer | None = None,
    ) -> None:
        self.client = client
        self.max_workers = max_workers
        self.dependencies = dependencies
        self.heartbeat = heartbeat or HeartbeatServer()

    async def start(self) -> WorkerHandle:
        # start() and stop() block on the server thread; keep them off the event loop.
        await asyncio.to_thread(self.heartbeat.start)

        started: list[TaskQueue] = []
        try:
            factory = TaskQueueFactory(self.client)
            queues = []
            for registration in build_registrations(self.dependencies):
                queue = factory.new_queue(
                    registration.category, self.max_workers.for_category(registration.category)
                )
                queue.register(registration.shape, *registration.handlers)
                queues.append(queue)

            for queue in queues:
                await queue.start()
                started.append(queue)
        except BaseException:
            for queue in started:
                await queue.shutdown()
            await asyncio.to_thread(self.heartbeat.stop)
            raise

        logger.info(f"Worker started with {len(started)} task queues")
        return WorkerHandle(started, self.heartbeat)

    async def run(self) -> None:
        """Start, then serve until the queues stop or the task is cancelled."""
        handle = await self.start()
        try:
            await handle.wait()
        finally:
            await handle.shutdown()
