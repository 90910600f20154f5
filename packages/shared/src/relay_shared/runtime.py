"""The runtime context shared by every handler.

Built once by the worker bootstrap and handed to each handler at
construction. It is frozen: handlers read from it but can never change it, so
the same instance is safely shared by every concurrently running activity.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from relay_shared.settings import (
    ContainerResources,
    LogConfigs,
    WorkerEnvironment,
    WorkerSettings,
)


class SecretsHydrator(Protocol):
    """Replaces secret references in a connector config with real values."""

    def hydrate(self, partial_config: dict[str, Any]) -> dict[str, Any]: ...


@dataclass(frozen=True)
class RuntimeContext:
    """Read-only configuration bundle injected into every handler."""

    workspace_root: Path
    secrets_hydrator: SecretsHydrator
    log_configs: LogConfigs
    worker_environment: WorkerEnvironment
    database_user: str
    database_password: str = field(repr=False)
    database_url: str
    version: str
    container_resources: ContainerResources = field(default_factory=ContainerResources)

    @classmethod
    def from_settings(
        cls, settings: WorkerSettings, secrets_hydrator: SecretsHydrator
    ) -> RuntimeContext:
        return cls(
            workspace_root=settings.workspace_root,
            secrets_hydrator=secrets_hydrator,
            log_configs=settings.log_configs,
            worker_environment=settings.worker_environment,
            database_user=settings.database_user,
            database_password=settings.database_password,
            database_url=settings.database_url,
            version=settings.relay_version,
            container_resources=settings.container_resources,
        )

    def job_root(self, job_id: str, attempt: int) -> Path:
        """Workspace directory for one attempt of one job."""
        return self.workspace_root / job_id / str(attempt)
