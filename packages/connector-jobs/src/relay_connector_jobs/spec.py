"""Spec handler: asks a connector image to describe its configuration."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from relay_process_launch.base import ProcessLauncher
from relay_shared.errors import ConnectorProcessError
from relay_shared.models import ConnectorSpecResult, IntegrationLauncherConfig, JobRunConfig
from relay_shared.runtime import RuntimeContext
from temporalio import activity

from relay_connector_jobs.base import ActivityHandler, ConnectorRunner, last_message, parse_messages


class SpecActivity(ActivityHandler):
    def __init__(self, launcher: ProcessLauncher, context: RuntimeContext) -> None:
        self.runner = ConnectorRunner(launcher, context)

    def activities(self) -> list[Callable[..., Any]]:
        return [self.run_spec]

    @activity.defn
    async def run_spec(self, launcher_config: IntegrationLauncherConfig) -> ConnectorSpecResult:
        """Run `<image> spec` and return the connector's specification."""
        activity.logger.info(f"Fetching spec for {launcher_config.docker_image}")
        output = await self.runner.run(
            JobRunConfig(job_id=launcher_config.job_id, attempt_id=launcher_config.attempt_id),
            launcher_config.docker_image,
            ["spec"],
        )
        message = last_message(parse_messages(output), "SPEC")
        if message is None:
            raise ConnectorProcessError(f"{launcher_config.docker_image} emitted no SPEC message")
        return ConnectorSpecResult(
            success=True,
            message=f"Fetched spec for {launcher_config.docker_image}",
            spec=message["spec"],
        )
