"""Local container launch strategy: `docker run` on the worker's host.

The worker and the connector containers see the workspace through different
paths. The worker writes into `workspace_root`; the same volume
(`workspace_mount`, a host path or named volume) is mounted into each
connector container at /data, so a job root like `<workspace_root>/42/0`
becomes `/data/42/0` inside the container.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path

from relay_shared.settings import ContainerResources

from relay_process_launch.base import LaunchedProcess, ProcessLauncher, process_name, write_files

logger = logging.getLogger(__name__)

DATA_MOUNT_DESTINATION = Path("/data")
LOCAL_MOUNT_DESTINATION = Path("/local")


class DockerProcess(LaunchedProcess):
    """A `docker run` client process and the container it started."""

    def __init__(self, process: asyncio.subprocess.Process, name: str) -> None:
        self.process = process
        self.name = name
        self._output: str | None = None

    async def wait(self) -> int:
        if self._output is None:
            stdout, _ = await self.process.communicate()
            self._output = (stdout or b"").decode(errors="replace")
        return self.process.returncode if self.process.returncode is not None else -1

    async def output(self) -> str:
        if self._output is None:
            await self.wait()
        return self._output or ""

    async def kill(self) -> None:
        if self.process.returncode is not None:
            return
        # Killing the client alone can leave the container running.
        killer = await asyncio.create_subprocess_exec(
            "docker",
            "kill",
            self.name,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
        await killer.wait()
        if self.process.returncode is None:
            self.process.kill()
        await self.process.wait()


class DockerProcessLauncher(ProcessLauncher):
    """Launches connectors with the local docker CLI."""

    def __init__(
        self,
        workspace_root: Path,
        workspace_mount: str,
        local_mount: str,
        network: str | None,
        resources: ContainerResources | None = None,
    ) -> None:
        self.workspace_root = Path(workspace_root)
        self.workspace_mount = workspace_mount
        self.local_mount = local_mount
        self.network = network
        self.resources = resources or ContainerResources()

    def rebase(self, job_root: Path) -> Path:
        """Path of `job_root` as seen from inside a connector container."""
        return DATA_MOUNT_DESTINATION / Path(job_root).relative_to(self.workspace_root)

    def build_command(
        self,
        name: str,
        job_root: Path,
        image: str,
        args: Sequence[str],
        env: Mapping[str, str] | None = None,
        labels: Mapping[str, str] | None = None,
    ) -> list[str]:
        cmd = [
            "docker",
            "run",
            "--rm",
            "--init",
            "-i",
            "--name",
            name,
            "-w",
            str(self.rebase(job_root)),
            "--log-driver",
            "none",
            "-v",
            f"{self.workspace_mount}:{DATA_MOUNT_DESTINATION}",
            "-v",
            f"{self.local_mount}:{LOCAL_MOUNT_DESTINATION}",
        ]
        if self.network:
            cmd += ["--network", self.network]
        for key, value in (env or {}).items():
            cmd += ["-e", f"{key}={value}"]
        for key, value in (labels or {}).items():
            cmd += ["--label", f"{key}={value}"]
        if self.resources.cpu_limit:
            cmd += ["--cpus", self.resources.cpu_limit]
        if self.resources.memory_request:
            cmd += ["--memory-reservation", self.resources.memory_request]
        if self.resources.memory_limit:
            cmd += ["--memory", self.resources.memory_limit]
        cmd.append(image)
        cmd.extend(args)
        return cmd

    async def launch(
        self,
        job_id: str,
        attempt_id: int,
        job_root: Path,
        image: str,
        args: Sequence[str],
        files: Mapping[str, str] | None = None,
        env: Mapping[str, str] | None = None,
        labels: Mapping[str, str] | None = None,
    ) -> DockerProcess:
        write_files(job_root, files)
        name = process_name(image, job_id, attempt_id)
        cmd = self.build_command(name, job_root, image, args, env, labels)
        logger.info(f"Launching container {name} from {image}")
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
        return DockerProcess(process, name)
