"""Runs one application of a job in an orchestrator pod.

Protocol, per (job, attempt, application):

1. If a status document already exists, a previous worker launched this pod:
   skip straight to polling (reattach). An INITIALIZING status with no pod
   carrying the job's labels is a launch that never happened; relaunch.
2. Otherwise write the input document and INITIALIZING, then create the pod.
   If pod creation fails the status document is removed again.
3. Poll the status document until SUCCEEDED or FAILED.
4. On SUCCEEDED read and return the output document.

Failures raise OrchestratorError so Temporal's retry policy sees them.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TypeVar

from kubernetes import client
from pydantic import BaseModel
from relay_process_launch.base import process_name
from relay_shared.errors import OrchestratorError
from relay_shared.models import JobRunConfig
from temporalio import activity

from relay_orchestrator import keys
from relay_orchestrator.config import ContainerOrchestratorConfig

logger = logging.getLogger(__name__)

OutputT = TypeVar("OutputT", bound=BaseModel)

STATE_KEY_ENV = "RELAY_STATE_KEY"


def pod_labels(job_run_config: JobRunConfig, application: str) -> dict[str, str]:
    """Labels identifying the pod of one application of a job attempt."""
    return {
        "job-id": job_run_config.job_id,
        "attempt-id": str(job_run_config.attempt_id),
        "application": application,
    }


class JobStatus(str, Enum):
    INITIALIZING = "INITIALIZING"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.SUCCEEDED, JobStatus.FAILED)


class OrchestratorLauncher:
    """Delegates handler work to orchestrator pods and waits for the result."""

    def __init__(self, config: ContainerOrchestratorConfig) -> None:
        self.config = config
        self.store = config.document_store

    async def _read_status(self, key: str) -> JobStatus | None:
        raw = await asyncio.to_thread(self.store.read, key)
        return JobStatus(raw.decode()) if raw is not None else None

    def build_pod(self, name: str, job_run_config: JobRunConfig, application: str) -> client.V1Pod:
        base_key = keys.application_key(
            job_run_config.job_id, job_run_config.attempt_id, application
        )
        container = client.V1Container(
            name="orchestrator",
            image=self.config.image,
            args=[
                "--application",
                application,
                "--job-id",
                job_run_config.job_id,
                "--attempt-id",
                str(job_run_config.attempt_id),
            ],
            env=[client.V1EnvVar(name=STATE_KEY_ENV, value=base_key)],
        )
        return client.V1Pod(
            metadata=client.V1ObjectMeta(
                name=name,
                namespace=self.config.namespace,
                labels=pod_labels(job_run_config, application),
            ),
            spec=client.V1PodSpec(containers=[container], restart_policy="Never"),
        )

    async def run(
        self,
        job_run_config: JobRunConfig,
        application: str,
        input_model: BaseModel,
        output_type: type[OutputT],
    ) -> OutputT:
        job_id, attempt_id = job_run_config.job_id, job_run_config.attempt_id
        status_key = keys.status_key(job_id, attempt_id, application)

        status = await self._read_status(status_key)
        if status is None:
            await self._launch(job_run_config, application, input_model)
        elif status is JobStatus.INITIALIZING and not await self._pod_exists(
            job_run_config, application
        ):
            logger.info(f"No pod behind INITIALIZING {application} for job {job_id}/{attempt_id}")
            await self._launch(job_run_config, application, input_model)
        else:
            logger.info(f"Reattaching to {application} for job {job_id}/{attempt_id}")

        status = await self._await_terminal(status_key)
        if status is JobStatus.FAILED:
            raise OrchestratorError(f"{application} failed for job {job_id}/{attempt_id}")

        raw_output = await asyncio.to_thread(
            self.store.read, keys.output_key(job_id, attempt_id, application)
        )
        if raw_output is None:
            raise OrchestratorError(
                f"{application} succeeded for job {job_id}/{attempt_id} but wrote no output"
            )
        return output_type.model_validate_json(raw_output)

    async def _launch(
        self, job_run_config: JobRunConfig, application: str, input_model: BaseModel
    ) -> None:
        job_id, attempt_id = job_run_config.job_id, job_run_config.attempt_id
        status_key = keys.status_key(job_id, attempt_id, application)
        await asyncio.to_thread(
            self.store.write,
            keys.input_key(job_id, attempt_id, application),
            input_model.model_dump_json().encode(),
        )
        await asyncio.to_thread(self.store.write, status_key, JobStatus.INITIALIZING.value.encode())

        name = process_name(f"orchestrator-{application}", job_id, attempt_id)
        pod = self.build_pod(name, job_run_config, application)
        logger.info(f"Delegating {application} for job {job_id}/{attempt_id} to pod {name}")
        try:
            await asyncio.to_thread(
                self.config.kube_api.create_namespaced_pod, self.config.namespace, pod
            )
        except Exception as e:
            # No pod will ever move this status on; the next run must relaunch.
            await asyncio.to_thread(self.store.delete, status_key)
            raise OrchestratorError(f"Could not create pod {name}: {e}") from e

    async def _pod_exists(self, job_run_config: JobRunConfig, application: str) -> bool:
        selector = ",".join(f"{k}={v}" for k, v in pod_labels(job_run_config, application).items())
        pods = await asyncio.to_thread(
            self.config.kube_api.list_namespaced_pod,
            self.config.namespace,
            label_selector=selector,
        )
        return bool(pods.items)

    async def _await_terminal(self, status_key: str) -> JobStatus:
        while True:
            status = await self._read_status(status_key)
            if status is None:
                raise OrchestratorError(f"Status document {status_key} disappeared")
            if status.is_terminal:
                return status
            if activity.in_activity():
                activity.heartbeat(status.value)
            await asyncio.sleep(self.config.poll_seconds)
