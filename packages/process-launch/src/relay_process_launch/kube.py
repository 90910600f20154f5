"""Cluster launch strategy: one pod per connector process.

Config files travel in a ConfigMap mounted at /config, which is also the
container's working directory. ConfigMaps are capped at 1 MiB, so larger
inputs (a local replication's record stream) are refused before anything is
created. Each pod gets the worker's heartbeat URL so the connector side can
stop itself if the worker that launched it dies.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from relay_shared.errors import ConfigurationError, ConnectorProcessError
from relay_shared.settings import ContainerResources
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from relay_process_launch.base import LaunchedProcess, ProcessLauncher, process_name

logger = logging.getLogger(__name__)

CONFIG_DIR = "/config"
HEARTBEAT_URL_ENV = "RELAY_HEARTBEAT_URL"
TERMINAL_PHASES = {"Succeeded", "Failed"}
# The API server rejects ConfigMaps whose data exceeds 1 MiB.
MAX_CONFIG_MAP_BYTES = 1024 * 1024


def _is_transient(error: BaseException) -> bool:
    """API server hiccups worth retrying: throttling and 5xx."""
    return isinstance(error, ApiException) and (error.status == 429 or (error.status or 0) >= 500)


def new_core_api() -> client.CoreV1Api:
    """Build a cluster API client: in-cluster credentials, else local kubeconfig."""
    try:
        config.load_incluster_config()
    except config.ConfigException:
        try:
            config.load_kube_config()
        except config.ConfigException as e:
            raise ConfigurationError(f"No Kubernetes credentials available: {e}") from e
    return client.CoreV1Api()


class KubePodProcess(LaunchedProcess):
    """A connector running as a pod; polled until it reaches a terminal phase."""

    def __init__(
        self,
        api: client.CoreV1Api,
        namespace: str,
        name: str,
        poll_seconds: float = 2.0,
        has_config_map: bool = False,
    ) -> None:
        self.api = api
        self.namespace = namespace
        self.name = name
        self.poll_seconds = poll_seconds
        self.has_config_map = has_config_map

    @retry(
        retry=retry_if_exception(_is_transient),
        wait=wait_exponential(multiplier=1, min=1, max=30),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def _read_pod(self) -> client.V1Pod:
        return await asyncio.to_thread(self.api.read_namespaced_pod, self.name, self.namespace)

    async def wait(self) -> int:
        while True:
            pod = await self._read_pod()
            if pod.status.phase in TERMINAL_PHASES:
                return _exit_code(pod)
            await asyncio.sleep(self.poll_seconds)

    async def output(self) -> str:
        return await asyncio.to_thread(
            self.api.read_namespaced_pod_log, self.name, self.namespace
        )

    async def kill(self) -> None:
        await self.release()

    async def release(self) -> None:
        """Delete the pod and its ConfigMap. Terminal pods are never reaped by the cluster."""
        await self._delete(self.api.delete_namespaced_pod)
        if self.has_config_map:
            await self._delete(self.api.delete_namespaced_config_map)

    async def _delete(self, delete) -> None:
        try:
            await asyncio.to_thread(delete, self.name, self.namespace)
        except ApiException as e:
            if e.status != 404:
                raise


def _exit_code(pod: client.V1Pod) -> int:
    for status in pod.status.container_statuses or []:
        terminated = status.state.terminated if status.state else None
        if terminated is not None:
            return terminated.exit_code
    return 0 if pod.status.phase == "Succeeded" else 1


class KubePodProcessLauncher(ProcessLauncher):
    """Schedules connector pods in one namespace."""

    def __init__(
        self,
        namespace: str,
        api: client.CoreV1Api,
        heartbeat_url: str,
        resources: ContainerResources | None = None,
        poll_seconds: float = 2.0,
    ) -> None:
        self.namespace = namespace
        self.api = api
        self.heartbeat_url = heartbeat_url
        self.resources = resources or ContainerResources()
        self.poll_seconds = poll_seconds

    def _resource_requirements(self) -> client.V1ResourceRequirements:
        requests = {
            k: v
            for k, v in (("cpu", self.resources.cpu_request), ("memory", self.resources.memory_request))
            if v
        }
        limits = {
            k: v
            for k, v in (("cpu", self.resources.cpu_limit), ("memory", self.resources.memory_limit))
            if v
        }
        return client.V1ResourceRequirements(requests=requests or None, limits=limits or None)

    def build_pod(
        self,
        name: str,
        image: str,
        args: Sequence[str],
        env: Mapping[str, str] | None = None,
        labels: Mapping[str, str] | None = None,
        with_config: bool = False,
    ) -> client.V1Pod:
        env_vars = [client.V1EnvVar(name=HEARTBEAT_URL_ENV, value=self.heartbeat_url)]
        env_vars += [client.V1EnvVar(name=k, value=v) for k, v in (env or {}).items()]

        volumes = []
        mounts = []
        if with_config:
            volumes.append(
                client.V1Volume(
                    name="config", config_map=client.V1ConfigMapVolumeSource(name=name)
                )
            )
            mounts.append(client.V1VolumeMount(name="config", mount_path=CONFIG_DIR))

        container = client.V1Container(
            name="main",
            image=image,
            args=list(args),
            env=env_vars,
            working_dir=CONFIG_DIR,
            volume_mounts=mounts or None,
            resources=self._resource_requirements(),
        )
        return client.V1Pod(
            metadata=client.V1ObjectMeta(name=name, namespace=self.namespace, labels=dict(labels or {})),
            spec=client.V1PodSpec(
                containers=[container],
                restart_policy="Never",
                volumes=volumes or None,
            ),
        )

    async def launch(
        self,
        job_id: str,
        attempt_id: int,
        job_root: Path,
        image: str,
        args: Sequence[str],
        files: Mapping[str, str] | None = None,
        env: Mapping[str, str] | None = None,
        labels: Mapping[str, str] | None = None,
    ) -> KubePodProcess:
        name = process_name(image, job_id, attempt_id)
        pod_labels = {"job-id": str(job_id), "attempt-id": str(attempt_id), **(labels or {})}

        if files:
            size = sum(len(k.encode()) + len(v.encode()) for k, v in files.items())
            if size > MAX_CONFIG_MAP_BYTES:
                raise ConnectorProcessError(
                    f"Files for {name} total {size} bytes, over the {MAX_CONFIG_MAP_BYTES} byte "
                    "ConfigMap limit; delegate this job to the container orchestrator instead"
                )
            config_map = client.V1ConfigMap(
                metadata=client.V1ObjectMeta(name=name, namespace=self.namespace, labels=pod_labels),
                data=dict(files),
            )
            await asyncio.to_thread(
                self.api.create_namespaced_config_map, self.namespace, config_map
            )

        pod = self.build_pod(name, image, args, env, pod_labels, with_config=bool(files))
        logger.info(f"Creating pod {name} in namespace {self.namespace} from {image}")
        await asyncio.to_thread(self.api.create_namespaced_pod, self.namespace, pod)
        return KubePodProcess(
            self.api, self.namespace, name, self.poll_seconds, has_config_map=bool(files)
        )
