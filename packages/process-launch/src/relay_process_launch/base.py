"""The launch capability every strategy implements.

Handlers depend only on ProcessLauncher and LaunchedProcess, never on a
concrete strategy. Config files are passed as `files` (name -> contents) and
connector args refer to them by bare file name: each strategy makes them
available in the process's working directory.
"""

from __future__ import annotations

import re
import uuid
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from pathlib import Path

_NAME_UNSAFE = re.compile(r"[^a-z0-9-]+")


class LaunchedProcess(ABC):
    """Handle on a running connector process."""

    name: str

    @abstractmethod
    async def wait(self) -> int:
        """Block until the process exits and return its exit code."""

    @abstractmethod
    async def output(self) -> str:
        """Everything the process wrote to stdout/stderr. Call after wait()."""

    @abstractmethod
    async def kill(self) -> None:
        """Terminate the process. Safe to call on an already-exited process."""

    async def release(self) -> None:
        """Free whatever the process left behind once its output is read.

        Idempotent. Strategies whose processes clean up after themselves
        (docker `--rm`) have nothing to do.
        """


class ProcessLauncher(ABC):
    """Starts connector processes for a job attempt."""

    @abstractmethod
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
    ) -> LaunchedProcess:
        """Start `image` with `args`; return immediately with a process handle."""


def process_name(image: str, job_id: str, attempt_id: int) -> str:
    """DNS-safe, unique name for a launched container or pod.

    Example: ("relay/source-postgres:1.0", "42", 0) -> "source-postgres-42-0-a1b2c"
    """
    short_image = image.rsplit("/", 1)[-1].split(":", 1)[0]
    base = _NAME_UNSAFE.sub("-", f"{short_image}-{job_id}-{attempt_id}".lower()).strip("-")
    suffix = uuid.uuid4().hex[:5]
    # Kubernetes names are capped at 63 characters.
    return f"{base[: 63 - len(suffix) - 1].rstrip('-')}-{suffix}"


def write_files(directory: Path, files: Mapping[str, str] | None) -> None:
    """Write config files into a job's directory before launching."""
    directory.mkdir(parents=True, exist_ok=True)
    for name, contents in (files or {}).items():
        (directory / name).write_text(contents)
