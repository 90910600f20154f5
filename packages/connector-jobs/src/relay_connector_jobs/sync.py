"""Sync handlers: replication, normalization, dbt transformation, state persistence.

One instance of each is shared by the sync queue and the connection
management queue (which runs syncs as child workflows), so both queues make
the same delegation decision.

When an orchestrator handle is present, replication, normalization and dbt
are delegated to orchestrator pods; otherwise their connectors run directly
through the worker's launch strategy. The handle is decided once per process.
"""

from __future__ import annotations

import asyncio
import json
import shlex
from collections.abc import Callable
from typing import Any

from relay_orchestrator import keys
from relay_orchestrator.config import ContainerOrchestratorConfig
from relay_orchestrator.launcher import OrchestratorLauncher
from relay_process_launch.base import ProcessLauncher
from relay_shared.models import (
    DbtTransformationInput,
    NormalizationInput,
    PersistStateInput,
    RelayResult,
    StandardSyncOutput,
    SyncWorkflowInput,
)
from relay_shared.runtime import RuntimeContext
from temporalio import activity

from relay_connector_jobs.base import (
    ActivityHandler,
    ConnectorRunner,
    config_files,
    last_message,
    parse_messages,
)
from relay_connector_jobs.collaborators import ConfigRepository

REPLICATION_APPLICATION = "replication"
NORMALIZATION_APPLICATION = "normalization"
DBT_APPLICATION = "dbt"


class _DelegatingActivity(ActivityHandler):
    """Base for handlers that run locally or through the orchestrator."""

    def __init__(
        self,
        orchestrator_config: ContainerOrchestratorConfig | None,
        launcher: ProcessLauncher,
        context: RuntimeContext,
    ) -> None:
        self.orchestrator_config = orchestrator_config
        self.context = context
        self.runner = ConnectorRunner(launcher, context)
        self._orchestrator = (
            OrchestratorLauncher(orchestrator_config) if orchestrator_config else None
        )

    @property
    def delegates(self) -> bool:
        return self._orchestrator is not None


class ReplicationActivity(_DelegatingActivity):
    def activities(self) -> list[Callable[..., Any]]:
        return [self.replicate]

    @activity.defn
    async def replicate(self, sync: SyncWorkflowInput) -> StandardSyncOutput:
        """Move records from source to destination.

        Locally: the source `read`s, its messages are handed to the
        destination's `write` as messages.jsonl, and the destination's last
        STATE (falling back to the source's) is what gets committed.
        """
        job = sync.job_run_config
        activity.logger.info(
            f"Replicating connection {sync.sync_input.connection_id} (job {job.job_id}/{job.attempt_id})"
        )
        if self._orchestrator is not None:
            return await self._orchestrator.run(
                job, REPLICATION_APPLICATION, sync, StandardSyncOutput
            )

        hydrate = self.context.secrets_hydrator.hydrate
        source_args = ["read", "--config", "source_config.json", "--catalog", "catalog.json"]
        source_files = config_files(
            source_config=hydrate(sync.sync_input.source_configuration),
            catalog=sync.sync_input.catalog,
        )
        if sync.sync_input.state is not None:
            source_args += ["--state", "state.json"]
            source_files.update(config_files(state=sync.sync_input.state))

        source_output = await self.runner.run(
            job, sync.source_launcher.docker_image, source_args, files=source_files
        )
        source_messages = parse_messages(source_output)
        records = [m for m in source_messages if m["type"] == "RECORD"]

        destination_output = await self.runner.run(
            job,
            sync.destination_launcher.docker_image,
            [
                "write",
                "--config",
                "destination_config.json",
                "--catalog",
                "catalog.json",
                "--input",
                "messages.jsonl",
            ],
            files={
                **config_files(
                    destination_config=hydrate(sync.sync_input.destination_configuration),
                    catalog=sync.sync_input.catalog,
                ),
                "messages.jsonl": "\n".join(json.dumps(m) for m in source_messages),
            },
        )
        state_message = last_message(parse_messages(destination_output), "STATE") or last_message(
            source_messages, "STATE"
        )
        return StandardSyncOutput(
            success=True,
            message=f"Replicated {len(records)} records",
            records_synced=len(records),
            bytes_synced=sum(len(json.dumps(m.get("record", {}))) for m in records),
            state=state_message["state"] if state_message else None,
        )


class NormalizationActivity(_DelegatingActivity):
    def __init__(
        self,
        orchestrator_config: ContainerOrchestratorConfig | None,
        launcher: ProcessLauncher,
        context: RuntimeContext,
        normalization_image: str,
    ) -> None:
        super().__init__(orchestrator_config, launcher, context)
        self.normalization_image = normalization_image

    def activities(self) -> list[Callable[..., Any]]:
        return [self.normalize]

    @activity.defn
    async def normalize(self, request: NormalizationInput) -> RelayResult:
        """Turn the destination's raw tables into typed tables."""
        job = request.job_run_config
        if self._orchestrator is not None:
            return await self._orchestrator.run(
                job, NORMALIZATION_APPLICATION, request, RelayResult
            )

        destination = request.destination_launcher.docker_image
        await self.runner.run(
            job,
            self.normalization_image,
            [
                "run",
                "--integration-type",
                destination.rsplit("/", 1)[-1].split(":", 1)[0],
                "--config",
                "destination_config.json",
                "--catalog",
                "catalog.json",
            ],
            files=config_files(
                destination_config=self.context.secrets_hydrator.hydrate(
                    request.destination_configuration
                ),
                catalog=request.catalog,
            ),
        )
        return RelayResult(success=True, message=f"Normalized output of {destination}")


class DbtTransformationActivity(_DelegatingActivity):
    def activities(self) -> list[Callable[..., Any]]:
        return [self.run_dbt]

    @activity.defn
    async def run_dbt(self, request: DbtTransformationInput) -> RelayResult:
        """Run a connection's custom dbt project against the destination."""
        job = request.job_run_config
        if self._orchestrator is not None:
            return await self._orchestrator.run(job, DBT_APPLICATION, request, RelayResult)

        operator = request.operator
        args = ["--git-repo", operator.git_repo_url]
        if operator.git_repo_branch:
            args += ["--git-branch", operator.git_repo_branch]
        args += ["--config", "destination_config.json", *shlex.split(operator.dbt_arguments)]
        await self.runner.run(
            job,
            operator.docker_image,
            args,
            files=config_files(
                destination_config=self.context.secrets_hydrator.hydrate(
                    request.destination_configuration
                )
            ),
        )
        return RelayResult(success=True, message=f"dbt {operator.dbt_arguments} completed")


class PersistStateActivity(ActivityHandler):
    def __init__(
        self,
        orchestrator_config: ContainerOrchestratorConfig | None,
        config_repository: ConfigRepository,
    ) -> None:
        self.orchestrator_config = orchestrator_config
        self.config_repository = config_repository

    def activities(self) -> list[Callable[..., Any]]:
        return [self.persist]

    @activity.defn
    async def persist(self, request: PersistStateInput) -> RelayResult:
        """Commit the sync's final state to the connection.

        When replication was delegated and its output carries no state (the
        pod failed after committing some progress), the last checkpoint the
        pod wrote to the document store is persisted instead.
        """
        state = request.output.state
        if state is None and self.orchestrator_config is not None and request.job_run_config:
            job = request.job_run_config
            raw = await asyncio.to_thread(
                self.orchestrator_config.document_store.read,
                keys.state_key(job.job_id, job.attempt_id, REPLICATION_APPLICATION),
            )
            if raw is not None:
                state = json.loads(raw)

        if state is None:
            activity.logger.info(f"No state to persist for connection {request.connection_id}")
            return RelayResult(success=False, message="no state")

        await self.config_repository.update_connection_state(request.connection_id, state)
        activity.logger.info(f"Persisted state for connection {request.connection_id}")
        return RelayResult(success=True)
