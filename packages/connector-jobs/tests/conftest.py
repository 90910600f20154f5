"""Fixtures for handler tests: a scripted launcher and a real runtime context."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest
from relay_process_launch.base import LaunchedProcess, ProcessLauncher
from relay_shared.runtime import RuntimeContext
from relay_shared.settings import LogConfigs, WorkerEnvironment


class FakeProcess(LaunchedProcess):
    def __init__(self, name: str, output: str, exit_code: int = 0) -> None:
        self.name = name
        self._output = output
        self.exit_code = exit_code
        self.killed = False
        self.released = False

    async def wait(self) -> int:
        return self.exit_code

    async def output(self) -> str:
        return self._output

    async def kill(self) -> None:
        self.killed = True

    async def release(self) -> None:
        self.released = True


class FakeLauncher(ProcessLauncher):
    """Returns canned output per image and records every launch."""

    def __init__(self) -> None:
        self.scripts: dict[str, tuple[str, int]] = {}
        self.launches: list[dict] = []
        self.processes: list[FakeProcess] = []

    def script(self, image: str, *messages: dict, raw: str = "", exit_code: int = 0) -> None:
        lines = [json.dumps(m) for m in messages]
        if raw:
            lines.insert(0, raw)
        self.scripts[image] = ("\n".join(lines), exit_code)

    async def launch(
        self, job_id, attempt_id, job_root, image, args, files=None, env=None, labels=None
    ):
        self.launches.append(
            {
                "job_id": job_id,
                "attempt_id": attempt_id,
                "job_root": job_root,
                "image": image,
                "args": list(args),
                "files": dict(files or {}),
                "labels": dict(labels or {}),
            }
        )
        output, exit_code = self.scripts.get(image, ("", 0))
        process = FakeProcess(f"{image}-{job_id}", output, exit_code)
        self.processes.append(process)
        return process


class PrefixHydrator:
    """Marks hydrated configs so tests can see hydration happened."""

    def hydrate(self, partial_config):
        return {**partial_config, "hydrated": True}


@pytest.fixture
def launcher() -> FakeLauncher:
    return FakeLauncher()


@pytest.fixture
def context(tmp_path) -> RuntimeContext:
    return RuntimeContext(
        workspace_root=tmp_path,
        secrets_hydrator=PrefixHydrator(),
        log_configs=LogConfigs(),
        worker_environment=WorkerEnvironment.DOCKER,
        database_user="relay",
        database_password="secret",
        database_url="postgresql://localhost/relay",
        version="test",
    )


@pytest.fixture
def job_persistence() -> AsyncMock:
    return AsyncMock(name="JobPersistence")


@pytest.fixture
def config_repository() -> AsyncMock:
    return AsyncMock(name="ConfigRepository")
