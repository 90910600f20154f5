"""Shared machinery for handlers that launch connector processes.

Connectors speak a line-delimited JSON protocol on stdout: every message is an
object with a `type` (SPEC, CONNECTION_STATUS, CATALOG, RECORD, STATE, LOG).
Anything that isn't a JSON object is treated as plain log output.
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from relay_process_launch.base import ProcessLauncher
from relay_shared.errors import ConnectorProcessError
from relay_shared.models import JobRunConfig
from relay_shared.runtime import RuntimeContext

logger = logging.getLogger(__name__)


class ActivityHandler(ABC):
    """A handler object whose bound methods are Temporal activities."""

    @abstractmethod
    def activities(self) -> list[Callable[..., Any]]:
        """The `@activity.defn` methods to register on a task queue."""


def parse_messages(output: str) -> list[dict[str, Any]]:
    """Protocol messages in the order the connector emitted them."""
    messages = []
    for line in output.splitlines():
        line = line.strip()
        if not line.startswith("{"):
            continue
        try:
            message = json.loads(line)
        except json.JSONDecodeError:
            continue
        if isinstance(message, dict) and "type" in message:
            messages.append(message)
    return messages


def last_message(messages: Sequence[dict[str, Any]], message_type: str) -> dict[str, Any] | None:
    for message in reversed(messages):
        if message["type"] == message_type:
            return message
    return None


class ConnectorRunner:
    """Runs one connector command to completion for a job attempt."""

    def __init__(self, launcher: ProcessLauncher, context: RuntimeContext) -> None:
        self.launcher = launcher
        self.context = context

    async def run(
        self,
        job_run_config: JobRunConfig,
        image: str,
        args: Sequence[str],
        files: Mapping[str, str] | None = None,
    ) -> str:
        """Launch, wait, and return the connector's output.

        The output is also appended to the attempt's log file. Raises
        ConnectorProcessError on a non-zero exit. If the calling activity is
        cancelled the process is killed before the cancellation propagates. The
        process is released once its output is read, whatever the outcome.
        """
        job_root = self.context.job_root(job_run_config.job_id, job_run_config.attempt_id)
        process = await self.launcher.launch(
            job_run_config.job_id,
            job_run_config.attempt_id,
            job_root,
            image,
            args,
            files=files,
            labels={"relay-version": self.context.version},
        )
        try:
            try:
                exit_code = await process.wait()
            except asyncio.CancelledError:
                logger.info(f"Cancelled; killing {process.name}")
                await process.kill()
                raise
            output = await process.output()
        finally:
            await process.release()

        self._append_log(job_root, output)
        if exit_code != 0:
            raise ConnectorProcessError(
                f"{image} {' '.join(args[:1])} exited with code {exit_code}", exit_code=exit_code
            )
        return output

    def _append_log(self, job_root, output: str) -> None:
        job_root.mkdir(parents=True, exist_ok=True)
        with open(job_root / self.context.log_configs.log_file_name, "a") as log_file:
            log_file.write(output)


def config_files(**documents: Any) -> dict[str, str]:
    """JSON-encode config documents as files: config_files(config={...}) -> {'config.json': ...}."""
    return {f"{name}.json": json.dumps(document) for name, document in documents.items()}
