"""Check-connection handler: validates a connector configuration."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from relay_process_launch.base import ProcessLauncher
from relay_shared.errors import ConnectorProcessError
from relay_shared.models import CheckConnectionInput, CheckConnectionResult, JobRunConfig
from relay_shared.runtime import RuntimeContext
from temporalio import activity

from relay_connector_jobs.base import (
    ActivityHandler,
    ConnectorRunner,
    config_files,
    last_message,
    parse_messages,
)


class CheckConnectionActivity(ActivityHandler):
    def __init__(self, launcher: ProcessLauncher, context: RuntimeContext) -> None:
        self.context = context
        self.runner = ConnectorRunner(launcher, context)

    def activities(self) -> list[Callable[..., Any]]:
        return [self.run_check]

    @activity.defn
    async def run_check(self, request: CheckConnectionInput) -> CheckConnectionResult:
        """Run `<image> check` against a hydrated config.

        A connector that reports FAILED is an expected outcome and comes back
        as `success=False`; a crash raises.
        """
        launcher = request.launcher
        activity.logger.info(f"Checking connection for {launcher.docker_image}")
        config = self.context.secrets_hydrator.hydrate(request.connection_configuration)
        output = await self.runner.run(
            JobRunConfig(job_id=launcher.job_id, attempt_id=launcher.attempt_id),
            launcher.docker_image,
            ["check", "--config", "config.json"],
            files=config_files(config=config),
        )
        message = last_message(parse_messages(output), "CONNECTION_STATUS")
        if message is None:
            raise ConnectorProcessError(f"{launcher.docker_image} emitted no CONNECTION_STATUS")

        status = message["connectionStatus"]
        succeeded = status.get("status") == "SUCCEEDED"
        return CheckConnectionResult(
            success=succeeded,
            status="succeeded" if succeeded else "failed",
            message=status.get("message") or "",
        )
