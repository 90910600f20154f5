"""Worker settings loaded from environment variables (and an optional .env).

Everything the worker needs from its deployment lives here: which launch
strategy to use, per-category concurrency ceilings, where the workspace is
mounted, how to reach the database and the state storage backend, and whether
sync jobs are delegated to the container orchestrator.

Validation happens once, at startup. `load_settings()` converts pydantic's
ValidationError into ConfigurationError so the runner can report every
startup problem the same way.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from relay_shared.errors import ConfigurationError
from relay_shared.task_queues import JobCategory


class WorkerEnvironment(str, Enum):
    """Where connector processes run."""

    DOCKER = "docker"
    KUBERNETES = "kubernetes"


class MaxWorkersConfig(BaseModel):
    """Concurrency ceiling per job category. Every ceiling is at least 1."""

    max_spec_workers: int = Field(default=5, ge=1)
    max_check_workers: int = Field(default=5, ge=1)
    max_discover_workers: int = Field(default=5, ge=1)
    max_sync_workers: int = Field(default=5, ge=1)

    def for_category(self, category: JobCategory) -> int:
        # Connection management runs child syncs, so it shares the sync ceiling.
        return {
            JobCategory.SPEC: self.max_spec_workers,
            JobCategory.CHECK_CONNECTION: self.max_check_workers,
            JobCategory.DISCOVER_SCHEMA: self.max_discover_workers,
            JobCategory.SYNC: self.max_sync_workers,
            JobCategory.CONNECTION_MANAGEMENT: self.max_sync_workers,
        }[category]


class StateStorageConfig(BaseModel):
    """Backend for the keyed document store that holds orchestrator state."""

    type: Literal["local", "s3", "minio"] = "local"
    bucket: str | None = None
    endpoint: str | None = None
    region: str = "us-east-1"
    access_key: str | None = None
    secret_key: str | None = None
    local_root: Path = Path("/tmp/relay/state-storage")


class LogConfigs(BaseModel):
    """Where per-job logs are written, relative to each job's workspace dir."""

    log_file_name: str = "logs.log"
    level: str = "INFO"


class ContainerResources(BaseModel):
    """Resource requests/limits applied to every launched connector container."""

    cpu_request: str | None = None
    cpu_limit: str | None = None
    memory_request: str | None = None
    memory_limit: str | None = None


class WorkerSettings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Launch strategy
    worker_environment: WorkerEnvironment = WorkerEnvironment.DOCKER
    workspace_root: Path = Path("/tmp/workspace")
    workspace_docker_mount: str | None = None
    local_docker_mount: str | None = None
    docker_network: str | None = "host"
    job_kube_namespace: str = "default"

    # Concurrency ceilings
    max_spec_workers: int = Field(default=5, ge=1)
    max_check_workers: int = Field(default=5, ge=1)
    max_discover_workers: int = Field(default=5, ge=1)
    max_sync_workers: int = Field(default=5, ge=1)

    # Container orchestrator delegation
    container_orchestrator_enabled: bool = False
    container_orchestrator_image: str = "relay/container-orchestrator:dev"
    container_orchestrator_poll_seconds: float = Field(default=5.0, gt=0)

    normalization_image: str = "relay/normalization:dev"

    # State storage (keyed document store)
    state_storage_type: Literal["local", "s3", "minio"] = "local"
    state_storage_bucket: str | None = None
    state_storage_endpoint: str | None = None
    state_storage_region: str = "us-east-1"
    state_storage_access_key: str | None = None
    state_storage_secret_key: str | None = None
    state_storage_local_root: Path = Path("/tmp/relay/state-storage")

    # Connector containers
    job_main_container_cpu_request: str | None = None
    job_main_container_cpu_limit: str | None = None
    job_main_container_memory_request: str | None = None
    job_main_container_memory_limit: str | None = None

    # Database
    database_user: str = ""
    database_password: str = ""
    database_url: str = ""

    relay_version: str = "dev"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @field_validator("worker_environment", mode="before")
    @classmethod
    def _normalize_environment(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @property
    def max_workers(self) -> MaxWorkersConfig:
        return MaxWorkersConfig(
            max_spec_workers=self.max_spec_workers,
            max_check_workers=self.max_check_workers,
            max_discover_workers=self.max_discover_workers,
            max_sync_workers=self.max_sync_workers,
        )

    @property
    def state_storage(self) -> StateStorageConfig:
        return StateStorageConfig(
            type=self.state_storage_type,
            bucket=self.state_storage_bucket,
            endpoint=self.state_storage_endpoint,
            region=self.state_storage_region,
            access_key=self.state_storage_access_key,
            secret_key=self.state_storage_secret_key,
            local_root=self.state_storage_local_root,
        )

    @property
    def log_configs(self) -> LogConfigs:
        return LogConfigs(level=self.log_level)

    @property
    def container_resources(self) -> ContainerResources:
        return ContainerResources(
            cpu_request=self.job_main_container_cpu_request,
            cpu_limit=self.job_main_container_cpu_limit,
            memory_request=self.job_main_container_memory_request,
            memory_limit=self.job_main_container_memory_limit,
        )


def load_settings(**overrides: object) -> WorkerSettings:
    """Build WorkerSettings from the environment, with optional overrides.

    Raises ConfigurationError (not ValidationError) on any invalid value, e.g.
    a concurrency ceiling below 1 or an unknown worker environment.
    """
    try:
        return WorkerSettings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid worker settings: {e}") from e
