"""Connection management handlers.

These back the long-running per-connection workflow: how long to wait before
the next sync, creating jobs and attempts, building the sync input from the
stored connection, recording how each job ended, and deleting a connection.
All state lives behind the JobPersistence / ConfigRepository collaborators.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from relay_shared.models import (
    AttemptCreationInput,
    AttemptCreationOutput,
    ConnectionDeletionInput,
    IntegrationLauncherConfig,
    JobCancelledInput,
    JobCreationInput,
    JobCreationOutput,
    JobFailureInput,
    JobRunConfig,
    JobSuccessInput,
    OperatorDbt,
    ScheduleRetrieverInput,
    ScheduleRetrieverOutput,
    StandardSyncInput,
    SyncInputRequest,
    SyncWorkflowInput,
)
from relay_shared.runtime import RuntimeContext
from temporalio import activity

from relay_connector_jobs.base import ActivityHandler
from relay_connector_jobs.collaborators import ConfigRepository, JobPersistence

# A manual connection never comes due on its own; the workflow sleeps until
# it is signalled or continued.
MANUAL_SCHEDULE_WAIT = timedelta(days=100 * 365)


async def _require_connection(
    config_repository: ConfigRepository, connection_id: str
) -> dict[str, Any]:
    connection = await config_repository.get_connection(connection_id)
    if connection is None:
        raise LookupError(f"Unknown connection {connection_id}")
    return connection


class ConfigFetchActivity(ActivityHandler):
    def __init__(
        self,
        config_repository: ConfigRepository,
        job_persistence: JobPersistence,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config_repository = config_repository
        self.job_persistence = job_persistence
        self.clock = clock or (lambda: datetime.now(UTC))

    def activities(self) -> list[Callable[..., Any]]:
        return [self.get_time_to_wait]

    @activity.defn
    async def get_time_to_wait(self, request: ScheduleRetrieverInput) -> ScheduleRetrieverOutput:
        """Seconds until the connection's next scheduled sync.

        Manual connections wait "forever"; a connection that has never run
        is due immediately.
        """
        connection = await _require_connection(self.config_repository, request.connection_id)
        schedule_seconds = connection.get("schedule_seconds")
        if not schedule_seconds:
            return ScheduleRetrieverOutput(
                time_to_wait_seconds=int(MANUAL_SCHEDULE_WAIT.total_seconds())
            )

        last_created = await self.job_persistence.get_last_job_created_at(request.connection_id)
        if last_created is None:
            return ScheduleRetrieverOutput(time_to_wait_seconds=0)

        due = last_created + timedelta(seconds=schedule_seconds)
        remaining = (due - self.clock()).total_seconds()
        return ScheduleRetrieverOutput(time_to_wait_seconds=max(0, int(remaining)))


class JobCreationAndStatusUpdateActivity(ActivityHandler):
    def __init__(self, job_persistence: JobPersistence, context: RuntimeContext) -> None:
        self.job_persistence = job_persistence
        self.context = context

    def activities(self) -> list[Callable[..., Any]]:
        return [
            self.create_new_job,
            self.create_new_attempt,
            self.job_success,
            self.job_failure,
            self.job_cancelled,
        ]

    @activity.defn
    async def create_new_job(self, request: JobCreationInput) -> JobCreationOutput:
        job_id = await self.job_persistence.create_job(request.connection_id)
        activity.logger.info(f"Created job {job_id} for connection {request.connection_id}")
        return JobCreationOutput(job_id=job_id)

    @activity.defn
    async def create_new_attempt(self, request: AttemptCreationInput) -> AttemptCreationOutput:
        log_path = self.context.workspace_root / request.job_id
        attempt_id = await self.job_persistence.create_attempt(request.job_id, str(log_path))
        return AttemptCreationOutput(attempt_id=attempt_id)

    @activity.defn
    async def job_success(self, request: JobSuccessInput) -> None:
        await self.job_persistence.succeed_attempt(
            request.job_id, request.attempt_id, request.output.model_dump()
        )

    @activity.defn
    async def job_failure(self, request: JobFailureInput) -> None:
        """Fail the attempt when there is one, otherwise the whole job."""
        if request.attempt_id is None:
            await self.job_persistence.fail_job(request.job_id, request.reason)
        else:
            await self.job_persistence.fail_attempt(
                request.job_id, request.attempt_id, request.reason
            )
        activity.logger.warning(f"Job {request.job_id} failed: {request.reason}")

    @activity.defn
    async def job_cancelled(self, request: JobCancelledInput) -> None:
        await self.job_persistence.cancel_job(request.job_id, request.attempt_id)


class GenerateInputActivity(ActivityHandler):
    def __init__(self, job_persistence: JobPersistence, config_repository: ConfigRepository) -> None:
        self.job_persistence = job_persistence
        self.config_repository = config_repository

    def activities(self) -> list[Callable[..., Any]]:
        return [self.get_sync_workflow_input]

    @activity.defn
    async def get_sync_workflow_input(self, request: SyncInputRequest) -> SyncWorkflowInput:
        """Assemble a sync's input from the job's connection and its saved state."""
        job = await self.job_persistence.get_job(request.job_id)
        if job is None:
            raise LookupError(f"Unknown job {request.job_id}")
        connection_id = job["connection_id"]
        connection = await _require_connection(self.config_repository, connection_id)
        state = await self.config_repository.get_state(connection_id)

        def launcher(image: str) -> IntegrationLauncherConfig:
            return IntegrationLauncherConfig(
                job_id=request.job_id, attempt_id=request.attempt_id, docker_image=image
            )

        return SyncWorkflowInput(
            job_run_config=JobRunConfig(job_id=request.job_id, attempt_id=request.attempt_id),
            source_launcher=launcher(connection["source_image"]),
            destination_launcher=launcher(connection["destination_image"]),
            sync_input=StandardSyncInput(
                connection_id=connection_id,
                source_configuration=connection["source_configuration"],
                destination_configuration=connection["destination_configuration"],
                catalog=connection["catalog"],
                state=state,
                normalization_enabled=bool(connection.get("normalization_enabled")),
                operations=[OperatorDbt(**op) for op in connection.get("operations") or []],
            ),
        )


class ConnectionDeletionActivity(ActivityHandler):
    def __init__(self, config_repository: ConfigRepository) -> None:
        self.config_repository = config_repository

    def activities(self) -> list[Callable[..., Any]]:
        return [self.delete_connection]

    @activity.defn
    async def delete_connection(self, request: ConnectionDeletionInput) -> None:
        """Soft-delete: the connection is marked deprecated, its history kept."""
        await self.config_repository.deprecate_connection(request.connection_id)
        activity.logger.info(f"Deprecated connection {request.connection_id}")
