"""Capacity-bounded task queues.

A TaskQueue is one Temporal worker polling one category's queue. It accepts
exactly one workflow shape and at least one handler, is started once, and
never runs more than `limit` activities at a time: excess tasks stay queued
on the Temporal server (or wait on the capacity gate) rather than failing.

The limit is enforced twice. `max_concurrent_activities` stops the worker
from polling for more tasks than it may run, and CapacityInterceptor gates
every activity execution on a semaphore sized to the same limit.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from relay_connector_jobs.base import ActivityHandler
from relay_shared.errors import ProgrammingError
from relay_shared.task_queues import JobCategory
from temporalio.client import Client
from temporalio.worker import (
    ActivityInboundInterceptor,
    ExecuteActivityInput,
    Interceptor,
    Worker,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkflowShape:
    """The state machine a category's queue runs.

    Usually one workflow class; the connection management shape also carries
    the SyncWorkflow it starts as a child on its own queue.
    """

    workflows: tuple[type, ...]

    @property
    def name(self) -> str:
        return self.workflows[0].__name__


class CapacityInterceptor(Interceptor):
    """Caps how many activities run at once on one worker."""

    def __init__(self, limit: int) -> None:
        if limit < 1:
            raise ProgrammingError(f"Capacity limit must be at least 1, got {limit}")
        self.limit = limit
        self.semaphore = asyncio.Semaphore(limit)
        self.in_flight = 0
        self.peak = 0

    def intercept_activity(self, next: ActivityInboundInterceptor) -> ActivityInboundInterceptor:
        return _CapacityGate(next, self)


class _CapacityGate(ActivityInboundInterceptor):
    def __init__(self, next: ActivityInboundInterceptor, capacity: CapacityInterceptor) -> None:
        super().__init__(next)
        self.capacity = capacity

    async def execute_activity(self, input: ExecuteActivityInput) -> Any:
        async with self.capacity.semaphore:
            self.capacity.in_flight += 1
            self.capacity.peak = max(self.capacity.peak, self.capacity.in_flight)
            try:
                return await super().execute_activity(input)
            finally:
                self.capacity.in_flight -= 1


class TaskQueue:
    """One category's queue: its shape, its handlers and its Temporal worker."""

    def __init__(self, client: Client, category: JobCategory, limit: int) -> None:
        self.client = client
        self.category = category
        self.name = category.task_queue
        self.limit = limit
        self.interceptor = CapacityInterceptor(limit)
        self.shape: WorkflowShape | None = None
        self.handlers: list[ActivityHandler] = []
        self._worker: Worker | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def started(self) -> bool:
        return self._worker is not None

    def register(self, shape: WorkflowShape, *handlers: ActivityHandler) -> None:
        if self.started:
            raise ProgrammingError(f"Cannot register on {self.name} after it started")
        if self.shape is not None:
            raise ProgrammingError(
                f"{self.name} already runs {self.shape.name}; cannot also register {shape.name}"
            )
        if not handlers:
            raise ProgrammingError(f"{self.name} needs at least one handler")
        self.shape = shape
        self.handlers.extend(handlers)

    def activities(self) -> list[Any]:
        return [method for handler in self.handlers for method in handler.activities()]

    async def start(self) -> None:
        """Build the Temporal worker and start polling in a background task."""
        if self.started:
            raise ProgrammingError(f"{self.name} already started")
        if self.shape is None:
            raise ProgrammingError(f"{self.name} has nothing registered")

        self._worker = Worker(
            self.client,
            task_queue=self.name,
            workflows=list(self.shape.workflows),
            activities=self.activities(),
            max_concurrent_activities=self.limit,
            interceptors=[self.interceptor],
        )
        self._task = asyncio.create_task(self._worker.run(), name=f"worker:{self.name}")
        logger.info(
            f"Started {self.name} ({self.shape.name}, "
            f"activities={len(self.activities())}, limit={self.limit})"
        )

    async def wait(self) -> None:
        if self._task is not None:
            await self._task

    async def shutdown(self) -> None:
        if self._worker is None:
            return
        await self._worker.shutdown()
        if self._task is not None and not self._task.done():
            await self._task
        logger.info(f"Stopped {self.name}")


class TaskQueueFactory:
    def __init__(self, client: Client) -> None:
        self.client = client

    def new_queue(self, category: JobCategory, limit: int) -> TaskQueue:
        return TaskQueue(self.client, category, limit)

