"""Fixtures for bootstrap tests: handler dependencies and a patched Temporal Worker."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from relay_process_launch.heartbeat import HeartbeatServer
from relay_workers.registry import Dependencies


@pytest.fixture
def dependencies() -> Dependencies:
    return Dependencies(
        launcher=MagicMock(name="ProcessLauncher"),
        context=MagicMock(name="RuntimeContext"),
        job_persistence=AsyncMock(name="JobPersistence"),
        config_repository=AsyncMock(name="ConfigRepository"),
        orchestrator_config=None,
        normalization_image="relay/normalization:test",
    )


def _fake_worker(*args, **kwargs) -> MagicMock:
    """A Worker whose run() blocks until shutdown() is awaited."""
    worker = MagicMock(name=f"Worker[{kwargs.get('task_queue')}]")
    stopped = asyncio.Event()

    async def run():
        await stopped.wait()

    async def shutdown():
        stopped.set()

    worker.run = run
    worker.shutdown = AsyncMock(side_effect=shutdown)
    return worker


@pytest.fixture
def worker_cls():
    """Replaces temporalio's Worker inside relay_workers.queue."""
    with patch("relay_workers.queue.Worker", side_effect=_fake_worker) as worker_cls:
        yield worker_cls


@pytest.fixture
def heartbeat() -> MagicMock:
    return MagicMock(spec=HeartbeatServer)
