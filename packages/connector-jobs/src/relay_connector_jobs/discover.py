"""Discover handler: asks a source connector for its catalog."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from relay_process_launch.base import ProcessLauncher
from relay_shared.errors import ConnectorProcessError
from relay_shared.models import DiscoverCatalogInput, DiscoverCatalogResult, JobRunConfig
from relay_shared.runtime import RuntimeContext
from temporalio import activity

from relay_connector_jobs.base import (
    ActivityHandler,
    ConnectorRunner,
    config_files,
    last_message,
    parse_messages,
)


class DiscoverCatalogActivity(ActivityHandler):
    def __init__(self, launcher: ProcessLauncher, context: RuntimeContext) -> None:
        self.context = context
        self.runner = ConnectorRunner(launcher, context)

    def activities(self) -> list[Callable[..., Any]]:
        return [self.run_discover]

    @activity.defn
    async def run_discover(self, request: DiscoverCatalogInput) -> DiscoverCatalogResult:
        """Run `<image> discover` and return the source's stream catalog."""
        launcher = request.launcher
        activity.logger.info(f"Discovering catalog for {launcher.docker_image}")
        config = self.context.secrets_hydrator.hydrate(request.connection_configuration)
        output = await self.runner.run(
            JobRunConfig(job_id=launcher.job_id, attempt_id=launcher.attempt_id),
            launcher.docker_image,
            ["discover", "--config", "config.json"],
            files=config_files(config=config),
        )
        message = last_message(parse_messages(output), "CATALOG")
        if message is None:
            raise ConnectorProcessError(f"{launcher.docker_image} emitted no CATALOG message")
        streams = message["catalog"].get("streams", [])
        return DiscoverCatalogResult(
            success=True,
            message=f"Discovered {len(streams)} streams",
            catalog=message["catalog"],
        )
