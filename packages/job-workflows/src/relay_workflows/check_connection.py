"""CheckConnectionWorkflow: validate a connector configuration."""

from datetime import timedelta

from temporalio import workflow

with workflow.unsafe.imports_passed_through():
    from relay_connector_jobs.check_connection import CheckConnectionActivity
    from relay_shared.models import CheckConnectionInput, CheckConnectionResult


@workflow.defn
class CheckConnectionWorkflow:
    @workflow.run
    async def run(self, request: CheckConnectionInput) -> CheckConnectionResult:
        return await workflow.execute_activity_method(
            CheckConnectionActivity.run_check,
            request,
            start_to_close_timeout=timedelta(hours=1),
        )
