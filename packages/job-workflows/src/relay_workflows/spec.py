"""SpecWorkflow: one `spec` run of a connector image."""

from datetime import timedelta

from temporalio import workflow

with workflow.unsafe.imports_passed_through():
    from relay_connector_jobs.spec import SpecActivity
    from relay_shared.models import ConnectorSpecResult, IntegrationLauncherConfig


@workflow.defn
class SpecWorkflow:
    @workflow.run
    async def run(self, launcher_config: IntegrationLauncherConfig) -> ConnectorSpecResult:
        return await workflow.execute_activity_method(
            SpecActivity.run_spec,
            launcher_config,
            start_to_close_timeout=timedelta(hours=1),
        )
