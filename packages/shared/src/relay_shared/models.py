"""Pydantic models that cross the Temporal workflow/activity boundary.

Workflows build the inputs; handlers receive them and return the results.
Connector configurations and catalogs are opaque JSON documents owned by the
connectors themselves, so they stay `dict[str, Any]` here.

Results extend RelayResult so callers get a consistent success/message
envelope for expected connector-level failures (e.g. a check that reports bad
credentials). Unexpected failures (process crash, orchestrator unreachable)
are raised instead and handled by Temporal's retry policy.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class RelayResult(BaseModel):
    """Standard result envelope returned by handlers."""

    success: bool
    message: str = ""


# ============================================================================
# Job identity and connector launch
# ============================================================================


class JobRunConfig(BaseModel):
    """Identifies one attempt of one job."""

    job_id: str
    attempt_id: int = Field(default=0, ge=0)


class IntegrationLauncherConfig(BaseModel):
    """Which connector image to launch for a job attempt."""

    job_id: str
    attempt_id: int = 0
    docker_image: str


# ============================================================================
# Spec / check / discover
# ============================================================================


class ConnectorSpecResult(RelayResult):
    spec: dict[str, Any] | None = None


class CheckConnectionInput(BaseModel):
    launcher: IntegrationLauncherConfig
    connection_configuration: dict[str, Any]


class CheckConnectionResult(RelayResult):
    status: Literal["succeeded", "failed"] = "failed"


class DiscoverCatalogInput(BaseModel):
    launcher: IntegrationLauncherConfig
    connection_configuration: dict[str, Any]


class DiscoverCatalogResult(RelayResult):
    catalog: dict[str, Any] | None = None


# ============================================================================
# Sync
# ============================================================================


class OperatorDbt(BaseModel):
    """A custom dbt transformation attached to a connection."""

    docker_image: str
    git_repo_url: str
    git_repo_branch: str | None = None
    dbt_arguments: str = "run"


class StandardSyncInput(BaseModel):
    connection_id: str
    source_configuration: dict[str, Any]
    destination_configuration: dict[str, Any]
    catalog: dict[str, Any]
    state: dict[str, Any] | None = None
    normalization_enabled: bool = False
    operations: list[OperatorDbt] = []


class StandardSyncOutput(RelayResult):
    records_synced: int = 0
    bytes_synced: int = 0
    state: dict[str, Any] | None = None


class NormalizationInput(BaseModel):
    job_run_config: JobRunConfig
    destination_launcher: IntegrationLauncherConfig
    destination_configuration: dict[str, Any]
    catalog: dict[str, Any]


class DbtTransformationInput(BaseModel):
    job_run_config: JobRunConfig
    destination_launcher: IntegrationLauncherConfig
    destination_configuration: dict[str, Any]
    operator: OperatorDbt


class PersistStateInput(BaseModel):
    connection_id: str
    job_run_config: JobRunConfig | None = None
    output: StandardSyncOutput


class SyncWorkflowInput(BaseModel):
    """Input to a sync; replication receives it unchanged."""

    job_run_config: JobRunConfig
    source_launcher: IntegrationLauncherConfig
    destination_launcher: IntegrationLauncherConfig
    sync_input: StandardSyncInput


# ============================================================================
# Connection management
# ============================================================================


class ConnectionUpdaterInput(BaseModel):
    """State carried across continue-as-new runs of a connection's workflow."""

    connection_id: str
    job_id: str | None = None
    attempt_number: int = 1
    from_failure: bool = False


class ScheduleRetrieverInput(BaseModel):
    connection_id: str


class ScheduleRetrieverOutput(BaseModel):
    time_to_wait_seconds: int = Field(ge=0)


class JobCreationInput(BaseModel):
    connection_id: str


class JobCreationOutput(BaseModel):
    job_id: str


class AttemptCreationInput(BaseModel):
    job_id: str


class AttemptCreationOutput(BaseModel):
    attempt_id: int


class SyncInputRequest(BaseModel):
    job_id: str
    attempt_id: int


class JobSuccessInput(BaseModel):
    job_id: str
    attempt_id: int
    output: StandardSyncOutput


class JobFailureInput(BaseModel):
    job_id: str
    attempt_id: int | None = None
    reason: str = ""


class JobCancelledInput(BaseModel):
    job_id: str
    attempt_id: int | None = None


class ConnectionDeletionInput(BaseModel):
    connection_id: str
