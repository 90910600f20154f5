"""Category registry: what each job category's task queue runs.

Every category maps to one workflow shape and the handlers its workflow
steps call. The bootstrap builds them all, in CATEGORY_ORDER, before any
queue starts. A handler that fails to construct aborts the whole startup
with a HandlerConstructionError naming its category.

The sync handlers are built once and registered on both the sync and the
connection management queues: connection management runs SyncWorkflow as a
child on its own queue, so it needs the same activities, and sharing the
instances keeps the delegation decision identical on both.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from relay_connector_jobs.base import ActivityHandler
from relay_connector_jobs.check_connection import CheckConnectionActivity
from relay_connector_jobs.collaborators import ConfigRepository, JobPersistence
from relay_connector_jobs.discover import DiscoverCatalogActivity
from relay_connector_jobs.scheduling import (
    ConfigFetchActivity,
    ConnectionDeletionActivity,
    GenerateInputActivity,
    JobCreationAndStatusUpdateActivity,
)
from relay_connector_jobs.spec import SpecActivity
from relay_connector_jobs.sync import (
    DbtTransformationActivity,
    NormalizationActivity,
    PersistStateActivity,
    ReplicationActivity,
)
from relay_orchestrator.config import ContainerOrchestratorConfig
from relay_process_launch.base import ProcessLauncher
from relay_shared.errors import HandlerConstructionError
from relay_shared.runtime import RuntimeContext
from relay_shared.task_queues import JobCategory
from relay_workflows.check_connection import CheckConnectionWorkflow
from relay_workflows.connection_manager import ConnectionManagerWorkflow
from relay_workflows.discover import DiscoverCatalogWorkflow
from relay_workflows.spec import SpecWorkflow
from relay_workflows.sync import SyncWorkflow

from relay_workers.queue import WorkflowShape

CATEGORY_ORDER: tuple[JobCategory, ...] = (
    JobCategory.SPEC,
    JobCategory.CHECK_CONNECTION,
    JobCategory.DISCOVER_SCHEMA,
    JobCategory.SYNC,
    JobCategory.CONNECTION_MANAGEMENT,
)

SHAPES: dict[JobCategory, WorkflowShape] = {
    JobCategory.SPEC: WorkflowShape((SpecWorkflow,)),
    JobCategory.CHECK_CONNECTION: WorkflowShape((CheckConnectionWorkflow,)),
    JobCategory.DISCOVER_SCHEMA: WorkflowShape((DiscoverCatalogWorkflow,)),
    JobCategory.SYNC: WorkflowShape((SyncWorkflow,)),
    JobCategory.CONNECTION_MANAGEMENT: WorkflowShape((ConnectionManagerWorkflow, SyncWorkflow)),
}


@dataclass(frozen=True)
class Dependencies:
    """Everything handlers are constructed from, built once by the runner."""

    launcher: ProcessLauncher
    context: RuntimeContext
    job_persistence: JobPersistence
    config_repository: ConfigRepository
    orchestrator_config: ContainerOrchestratorConfig | None
    normalization_image: str


@dataclass(frozen=True)
class CategoryRegistration:
    category: JobCategory
    shape: WorkflowShape
    handlers: tuple[ActivityHandler, ...]


def _build(
    category: JobCategory, factory: Callable[[], tuple[ActivityHandler, ...]]
) -> tuple[ActivityHandler, ...]:
    try:
        return factory()
    except Exception as e:
        raise HandlerConstructionError(category.value, e) from e


def _sync_handlers(deps: Dependencies) -> tuple[ActivityHandler, ...]:
    return (
        ReplicationActivity(deps.orchestrator_config, deps.launcher, deps.context),
        NormalizationActivity(
            deps.orchestrator_config, deps.launcher, deps.context, deps.normalization_image
        ),
        DbtTransformationActivity(deps.orchestrator_config, deps.launcher, deps.context),
        PersistStateActivity(deps.orchestrator_config, deps.config_repository),
    )


def _connection_management_handlers(
    deps: Dependencies, sync_handlers: tuple[ActivityHandler, ...]
) -> tuple[ActivityHandler, ...]:
    return (
        ConfigFetchActivity(deps.config_repository, deps.job_persistence),
        JobCreationAndStatusUpdateActivity(deps.job_persistence, deps.context),
        GenerateInputActivity(deps.job_persistence, deps.config_repository),
        ConnectionDeletionActivity(deps.config_repository),
        *sync_handlers,
    )


def build_registrations(deps: Dependencies) -> list[CategoryRegistration]:
    """Construct every category's handlers, in CATEGORY_ORDER."""
    handlers: dict[JobCategory, tuple[ActivityHandler, ...]] = {}
    handlers[JobCategory.SPEC] = _build(
        JobCategory.SPEC, lambda: (SpecActivity(deps.launcher, deps.context),)
    )
    handlers[JobCategory.CHECK_CONNECTION] = _build(
        JobCategory.CHECK_CONNECTION,
        lambda: (CheckConnectionActivity(deps.launcher, deps.context),),
    )
    handlers[JobCategory.DISCOVER_SCHEMA] = _build(
        JobCategory.DISCOVER_SCHEMA,
        lambda: (DiscoverCatalogActivity(deps.launcher, deps.context),),
    )
    handlers[JobCategory.SYNC] = _build(JobCategory.SYNC, lambda: _sync_handlers(deps))
    handlers[JobCategory.CONNECTION_MANAGEMENT] = _build(
        JobCategory.CONNECTION_MANAGEMENT,
        lambda: _connection_management_handlers(deps, handlers[JobCategory.SYNC]),
    )
    return [
        CategoryRegistration(category, SHAPES[category], handlers[category])
        for category in CATEGORY_ORDER
    ]
