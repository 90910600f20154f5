"""Tests for the cluster pod launch strategy, against a mocked CoreV1Api."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import patch

import pytest
from kubernetes.client.rest import ApiException
from relay_process_launch.kube import (
    HEARTBEAT_URL_ENV,
    MAX_CONFIG_MAP_BYTES,
    KubePodProcess,
    KubePodProcessLauncher,
)
from relay_shared.errors import ConnectorProcessError
from relay_shared.settings import ContainerResources


def _pod(phase: str, exit_code: int | None = None) -> SimpleNamespace:
    terminated = SimpleNamespace(exit_code=exit_code) if exit_code is not None else None
    statuses = [SimpleNamespace(state=SimpleNamespace(terminated=terminated))]
    return SimpleNamespace(status=SimpleNamespace(phase=phase, container_statuses=statuses))


@pytest.fixture
def launcher(core_api) -> KubePodProcessLauncher:
    return KubePodProcessLauncher(
        namespace="jobs",
        api=core_api,
        heartbeat_url="10.1.2.3:9000",
        resources=ContainerResources(memory_limit="2Gi"),
        poll_seconds=0,
    )


class TestBuildPod:
    def test_pod_shape(self, launcher):
        pod = launcher.build_pod("p", "relay/dest-s3:1.0", ["write"], env={"A": "1"}, with_config=True)
        container = pod.spec.containers[0]

        assert pod.metadata.namespace == "jobs"
        assert pod.spec.restart_policy == "Never"
        assert container.args == ["write"]
        assert container.working_dir == "/config"
        env = {e.name: e.value for e in container.env}
        assert env == {HEARTBEAT_URL_ENV: "10.1.2.3:9000", "A": "1"}
        assert container.resources.limits == {"memory": "2Gi"}
        assert pod.spec.volumes[0].config_map.name == "p"

    def test_no_config_volume_without_files(self, launcher):
        pod = launcher.build_pod("p", "img", [])
        assert pod.spec.volumes is None


class TestLaunch:
    @pytest.mark.asyncio
    async def test_creates_config_map_and_pod(self, launcher, core_api, tmp_path):
        launched = await launcher.launch(
            "42", 1, tmp_path, "relay/source-pg:1.0", ["read"], files={"config.json": "{}"}
        )

        namespace, config_map = core_api.create_namespaced_config_map.call_args.args
        assert namespace == "jobs"
        assert config_map.data == {"config.json": "{}"}
        namespace, pod = core_api.create_namespaced_pod.call_args.args
        assert pod.metadata.name == launched.name
        assert pod.metadata.labels["job-id"] == "42"
        assert pod.metadata.labels["attempt-id"] == "1"

    @pytest.mark.asyncio
    async def test_skips_config_map_without_files(self, launcher, core_api, tmp_path):
        await launcher.launch("42", 1, tmp_path, "img", ["spec"])
        core_api.create_namespaced_config_map.assert_not_called()

    @pytest.mark.asyncio
    async def test_refuses_files_over_config_map_limit(self, launcher, core_api, tmp_path):
        records = "x" * MAX_CONFIG_MAP_BYTES
        with pytest.raises(ConnectorProcessError, match="ConfigMap limit"):
            await launcher.launch(
                "42", 1, tmp_path, "relay/dest-pg:1.0", ["write"], files={"messages.jsonl": records}
            )
        core_api.create_namespaced_config_map.assert_not_called()
        core_api.create_namespaced_pod.assert_not_called()


class TestKubePodProcess:
    @pytest.mark.asyncio
    async def test_wait_polls_until_terminal(self, core_api):
        core_api.read_namespaced_pod.side_effect = [
            _pod("Pending"),
            _pod("Running"),
            _pod("Failed", exit_code=137),
        ]
        process = KubePodProcess(core_api, "jobs", "p", poll_seconds=0)
        assert await process.wait() == 137
        assert core_api.read_namespaced_pod.call_count == 3

    @pytest.mark.asyncio
    async def test_wait_retries_transient_api_errors(self, core_api):
        core_api.read_namespaced_pod.side_effect = [ApiException(status=503), _pod("Succeeded", 0)]
        process = KubePodProcess(core_api, "jobs", "p", poll_seconds=0)
        assert await process.wait() == 0

    @pytest.mark.asyncio
    async def test_wait_does_not_retry_missing_pod(self, core_api):
        core_api.read_namespaced_pod.side_effect = ApiException(status=404)
        process = KubePodProcess(core_api, "jobs", "p", poll_seconds=0)
        with pytest.raises(ApiException):
            await process.wait()
        assert core_api.read_namespaced_pod.call_count == 1

    @pytest.mark.asyncio
    async def test_output_reads_pod_log(self, core_api):
        core_api.read_namespaced_pod_log.return_value = "line 1\nline 2\n"
        process = KubePodProcess(core_api, "jobs", "p")
        assert await process.output() == "line 1\nline 2\n"

    @pytest.mark.asyncio
    async def test_kill_ignores_missing_pod(self, core_api):
        core_api.delete_namespaced_pod.side_effect = ApiException(status=404)
        process = KubePodProcess(core_api, "jobs", "p", has_config_map=True)
        await process.kill()
        core_api.delete_namespaced_config_map.assert_called_once_with("p", "jobs")

    @pytest.mark.asyncio
    async def test_release_deletes_pod_and_config_map(self, core_api):
        process = KubePodProcess(core_api, "jobs", "p", has_config_map=True)
        await process.release()
        core_api.delete_namespaced_pod.assert_called_once_with("p", "jobs")
        core_api.delete_namespaced_config_map.assert_called_once_with("p", "jobs")

    @pytest.mark.asyncio
    async def test_kill_surfaces_other_errors(self, core_api):
        core_api.delete_namespaced_pod.side_effect = ApiException(status=500)
        with pytest.raises(ApiException):
            await KubePodProcess(core_api, "jobs", "p").kill()


def test_new_core_api_without_credentials_is_configuration_error():
    from kubernetes.config import ConfigException
    from relay_process_launch.kube import new_core_api
    from relay_shared.errors import ConfigurationError

    with (
        patch("relay_process_launch.kube.config.load_incluster_config", side_effect=ConfigException("no sa")),
        patch("relay_process_launch.kube.config.load_kube_config", side_effect=ConfigException("no file")),
        pytest.raises(ConfigurationError),
    ):
        new_core_api()
