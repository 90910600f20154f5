"""ConnectionManagerWorkflow: the per-connection scheduling loop.

One run of the workflow is one job attempt:

1. Ask how long until the next sync is due and sleep (a delete signal wakes it).
2. Create a job (or reuse the failing one) and a new attempt.
3. Build the sync input and run SyncWorkflow as a child on this same queue.
4. Record success, failure or cancellation.
5. continue_as_new, so history stays bounded no matter how long the
   connection lives. A delete signal received at any point ends the loop
   once the current job's status is recorded.

A failed attempt is retried immediately as a new attempt of the same job, up
to MAX_ATTEMPTS; after that the job fails and the loop goes back to waiting
for the schedule.
"""

from datetime import timedelta

from temporalio import workflow
from temporalio.exceptions import ActivityError, CancelledError, ChildWorkflowError

with workflow.unsafe.imports_passed_through():
    from relay_connector_jobs.scheduling import (
        ConfigFetchActivity,
        ConnectionDeletionActivity,
        GenerateInputActivity,
        JobCreationAndStatusUpdateActivity,
    )
    from relay_shared.models import (
        AttemptCreationInput,
        ConnectionDeletionInput,
        ConnectionUpdaterInput,
        JobCancelledInput,
        JobCreationInput,
        JobFailureInput,
        JobSuccessInput,
        ScheduleRetrieverInput,
        SyncInputRequest,
    )

from relay_workflows.sync import SyncWorkflow

MAX_ATTEMPTS = 3
SHORT_ACTIVITY = timedelta(minutes=2)


@workflow.defn
class ConnectionManagerWorkflow:
    """Schedules and supervises the syncs of one connection."""

    def __init__(self) -> None:
        self._deleted = False

    @workflow.signal
    def delete_connection(self) -> None:
        self._deleted = True

    @workflow.run
    async def run(self, state: ConnectionUpdaterInput) -> None:
        if not state.from_failure:
            wait = await workflow.execute_activity_method(
                ConfigFetchActivity.get_time_to_wait,
                ScheduleRetrieverInput(connection_id=state.connection_id),
                start_to_close_timeout=SHORT_ACTIVITY,
            )
            if wait.time_to_wait_seconds > 0:
                try:
                    await workflow.wait_condition(
                        lambda: self._deleted,
                        timeout=timedelta(seconds=wait.time_to_wait_seconds),
                    )
                except TimeoutError:
                    pass

        if self._deleted:
            await self._delete(state.connection_id)
            return

        job_id = state.job_id
        if job_id is None:
            job = await workflow.execute_activity_method(
                JobCreationAndStatusUpdateActivity.create_new_job,
                JobCreationInput(connection_id=state.connection_id),
                start_to_close_timeout=SHORT_ACTIVITY,
            )
            job_id = job.job_id

        attempt = await workflow.execute_activity_method(
            JobCreationAndStatusUpdateActivity.create_new_attempt,
            AttemptCreationInput(job_id=job_id),
            start_to_close_timeout=SHORT_ACTIVITY,
        )
        attempt_id = attempt.attempt_id

        try:
            sync_input = await workflow.execute_activity_method(
                GenerateInputActivity.get_sync_workflow_input,
                SyncInputRequest(job_id=job_id, attempt_id=attempt_id),
                start_to_close_timeout=SHORT_ACTIVITY,
            )
            output = await workflow.execute_child_workflow(
                SyncWorkflow.run,
                sync_input,
                id=f"sync_{job_id}_{attempt_id}",
            )
        except (ActivityError, ChildWorkflowError) as err:
            if isinstance(err.cause, CancelledError):
                await workflow.execute_activity_method(
                    JobCreationAndStatusUpdateActivity.job_cancelled,
                    JobCancelledInput(job_id=job_id, attempt_id=attempt_id),
                    start_to_close_timeout=SHORT_ACTIVITY,
                )
                return await self._next_run(
                    ConnectionUpdaterInput(connection_id=state.connection_id)
                )

            await workflow.execute_activity_method(
                JobCreationAndStatusUpdateActivity.job_failure,
                JobFailureInput(job_id=job_id, attempt_id=attempt_id, reason=str(err.cause or err)),
                start_to_close_timeout=SHORT_ACTIVITY,
            )
            if state.attempt_number < MAX_ATTEMPTS and not self._deleted:
                workflow.continue_as_new(
                    ConnectionUpdaterInput(
                        connection_id=state.connection_id,
                        job_id=job_id,
                        attempt_number=state.attempt_number + 1,
                        from_failure=True,
                    )
                )
            await workflow.execute_activity_method(
                JobCreationAndStatusUpdateActivity.job_failure,
                JobFailureInput(job_id=job_id, reason=f"Failed after {state.attempt_number} attempts"),
                start_to_close_timeout=SHORT_ACTIVITY,
            )
            return await self._next_run(ConnectionUpdaterInput(connection_id=state.connection_id))

        await workflow.execute_activity_method(
            JobCreationAndStatusUpdateActivity.job_success,
            JobSuccessInput(job_id=job_id, attempt_id=attempt_id, output=output),
            start_to_close_timeout=SHORT_ACTIVITY,
        )
        await self._next_run(ConnectionUpdaterInput(connection_id=state.connection_id))

    async def _next_run(self, state: ConnectionUpdaterInput) -> None:
        """Start the next run, unless the connection was deleted during this one."""
        if self._deleted:
            await self._delete(state.connection_id)
            return
        workflow.continue_as_new(state)

    async def _delete(self, connection_id: str) -> None:
        await workflow.execute_activity_method(
            ConnectionDeletionActivity.delete_connection,
            ConnectionDeletionInput(connection_id=connection_id),
            start_to_close_timeout=SHORT_ACTIVITY,
        )
        workflow.logger.info(f"Connection {connection_id} deleted")
