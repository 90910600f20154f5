"""SyncWorkflow: Replication → Persist state → Normalization? → dbt operations.

Runs on the sync queue when started directly, and on the connection
management queue when started as a child of ConnectionManagerWorkflow. Its
activities run on whichever queue the workflow itself runs on, which is why
both queues register the same sync handlers.

State is persisted right after replication so a failing normalization or
dbt step never loses the progress the destination already committed.
"""

from datetime import timedelta

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from relay_connector_jobs.sync import (
        DbtTransformationActivity,
        NormalizationActivity,
        PersistStateActivity,
        ReplicationActivity,
    )
    from relay_shared.models import (
        DbtTransformationInput,
        NormalizationInput,
        PersistStateInput,
        StandardSyncOutput,
        SyncWorkflowInput,
    )

# Connector runs are retried by the connection manager as new attempts,
# not by Temporal inside one attempt.
SINGLE_ATTEMPT = RetryPolicy(maximum_attempts=1)


@workflow.defn
class SyncWorkflow:
    """Moves one connection's data for one job attempt."""

    @workflow.run
    async def run(self, sync: SyncWorkflowInput) -> StandardSyncOutput:
        output: StandardSyncOutput = await workflow.execute_activity_method(
            ReplicationActivity.replicate,
            sync,
            start_to_close_timeout=timedelta(days=3),
            retry_policy=SINGLE_ATTEMPT,
        )

        await workflow.execute_activity_method(
            PersistStateActivity.persist,
            PersistStateInput(
                connection_id=sync.sync_input.connection_id,
                job_run_config=sync.job_run_config,
                output=output,
            ),
            start_to_close_timeout=timedelta(minutes=5),
        )

        if sync.sync_input.normalization_enabled:
            await workflow.execute_activity_method(
                NormalizationActivity.normalize,
                NormalizationInput(
                    job_run_config=sync.job_run_config,
                    destination_launcher=sync.destination_launcher,
                    destination_configuration=sync.sync_input.destination_configuration,
                    catalog=sync.sync_input.catalog,
                ),
                start_to_close_timeout=timedelta(days=1),
                retry_policy=SINGLE_ATTEMPT,
            )

        for operator in sync.sync_input.operations:
            await workflow.execute_activity_method(
                DbtTransformationActivity.run_dbt,
                DbtTransformationInput(
                    job_run_config=sync.job_run_config,
                    destination_launcher=sync.destination_launcher,
                    destination_configuration=sync.sync_input.destination_configuration,
                    operator=operator,
                ),
                start_to_close_timeout=timedelta(days=1),
                retry_policy=SINGLE_ATTEMPT,
            )

        return output
