"""Fixtures for launch strategy tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from relay_shared.settings import load_settings


@pytest.fixture
def settings(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return load_settings(
        workspace_root=tmp_path / "workspace",
        workspace_docker_mount="relay_workspace",
        local_docker_mount="/tmp/relay_local",
        docker_network="relay_net",
        job_kube_namespace="jobs",
    )


@pytest.fixture
def core_api() -> MagicMock:
    """Stands in for kubernetes.client.CoreV1Api; calls are recorded."""
    return MagicMock(name="CoreV1Api")
