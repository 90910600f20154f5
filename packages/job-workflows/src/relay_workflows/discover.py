"""DiscoverCatalogWorkflow: fetch a source's stream catalog."""

from datetime import timedelta

from temporalio import workflow

with workflow.unsafe.imports_passed_through():
    from relay_connector_jobs.discover import DiscoverCatalogActivity
    from relay_shared.models import DiscoverCatalogInput, DiscoverCatalogResult


@workflow.defn
class DiscoverCatalogWorkflow:
    @workflow.run
    async def run(self, request: DiscoverCatalogInput) -> DiscoverCatalogResult:
        return await workflow.execute_activity_method(
            DiscoverCatalogActivity.run_discover,
            request,
            start_to_close_timeout=timedelta(hours=2),
        )
