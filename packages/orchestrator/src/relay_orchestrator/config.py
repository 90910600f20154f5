"""Decides, once per process, whether sync jobs are delegated.

The returned handle (or None) is passed explicitly to every handler that can
delegate. Handlers never look it up globally.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from kubernetes import client
from relay_document_store import STATE_STORAGE_PREFIX, DocumentStoreClient, create
from relay_process_launch.kube import new_core_api
from relay_shared.settings import WorkerSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContainerOrchestratorConfig:
    """Everything a handler needs to delegate a job to an orchestrator pod."""

    namespace: str
    document_store: DocumentStoreClient
    kube_api: client.CoreV1Api
    image: str = "relay/container-orchestrator:dev"
    poll_seconds: float = 5.0


def get_container_orchestrator_config(
    settings: WorkerSettings,
) -> ContainerOrchestratorConfig | None:
    """Return a delegation handle when the feature flag is on, else None."""
    if not settings.container_orchestrator_enabled:
        logger.info("Container orchestrator disabled; sync jobs run in-process")
        return None

    kube_api = new_core_api()
    document_store = create(settings.state_storage, STATE_STORAGE_PREFIX)
    logger.info(
        f"Container orchestrator enabled in namespace {settings.job_kube_namespace} "
        f"with state under {STATE_STORAGE_PREFIX}"
    )
    return ContainerOrchestratorConfig(
        namespace=settings.job_kube_namespace,
        document_store=document_store,
        kube_api=kube_api,
        image=settings.container_orchestrator_image,
        poll_seconds=settings.container_orchestrator_poll_seconds,
    )
