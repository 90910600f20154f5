"""Chooses the launch strategy once, at worker startup."""

from __future__ import annotations

import logging
import socket

from relay_shared.errors import ConfigurationError
from relay_shared.settings import WorkerEnvironment, WorkerSettings

from relay_process_launch.base import ProcessLauncher
from relay_process_launch.docker import DockerProcessLauncher
from relay_process_launch.heartbeat import KUBE_HEARTBEAT_PORT
from relay_process_launch.kube import KubePodProcessLauncher, new_core_api

logger = logging.getLogger(__name__)


def local_ip_address() -> str:
    """Address launched pods use to reach this worker's heartbeat server."""
    try:
        return socket.gethostbyname(socket.gethostname())
    except OSError as e:
        raise ConfigurationError(f"Could not resolve this host's address: {e}") from e


def select_strategy(environment: WorkerEnvironment, settings: WorkerSettings) -> ProcessLauncher:
    """Return the launcher for `environment`. Constructs it; launches nothing."""
    if environment is WorkerEnvironment.KUBERNETES:
        heartbeat_url = f"{local_ip_address()}:{KUBE_HEARTBEAT_PORT}"
        logger.info(f"Using Kubernetes namespace: {settings.job_kube_namespace}")
        return KubePodProcessLauncher(
            namespace=settings.job_kube_namespace,
            api=new_core_api(),
            heartbeat_url=heartbeat_url,
            resources=settings.container_resources,
        )

    if not settings.local_docker_mount:
        raise ConfigurationError("LOCAL_DOCKER_MOUNT is required when running with docker")
    logger.info(f"Using docker network: {settings.docker_network or '<default>'}")
    return DockerProcessLauncher(
        workspace_root=settings.workspace_root,
        workspace_mount=settings.workspace_docker_mount or str(settings.workspace_root),
        local_mount=settings.local_docker_mount,
        network=settings.docker_network,
        resources=settings.container_resources,
    )
