"""Delegation decider: absent when disabled, populated handle when enabled."""

from __future__ import annotations

import dataclasses
from unittest.mock import MagicMock, patch

import pytest
from relay_document_store import STATE_STORAGE_PREFIX
from relay_orchestrator.config import get_container_orchestrator_config
from relay_shared.errors import ConfigurationError
from relay_shared.settings import load_settings


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)


@pytest.mark.parametrize("namespace", ["default", "ns-1", "airflow-jobs"])
def test_disabled_returns_none(namespace):
    settings = load_settings(container_orchestrator_enabled=False, job_kube_namespace=namespace)
    with patch("relay_orchestrator.config.new_core_api") as new_api:
        assert get_container_orchestrator_config(settings) is None
    new_api.assert_not_called()


@pytest.mark.parametrize("namespace", ["default", "ns-1", "airflow-jobs"])
def test_enabled_returns_handle_with_namespace(namespace, tmp_path):
    settings = load_settings(
        container_orchestrator_enabled=True,
        job_kube_namespace=namespace,
        state_storage_local_root=tmp_path,
    )
    api = MagicMock(name="CoreV1Api")
    with patch("relay_orchestrator.config.new_core_api", return_value=api):
        handle = get_container_orchestrator_config(settings)

    assert handle is not None
    assert handle.namespace == namespace
    assert handle.kube_api is api
    assert handle.document_store.prefix == STATE_STORAGE_PREFIX


def test_handle_is_immutable(tmp_path):
    settings = load_settings(container_orchestrator_enabled=True, state_storage_local_root=tmp_path)
    with patch("relay_orchestrator.config.new_core_api", return_value=MagicMock()):
        handle = get_container_orchestrator_config(settings)
    with pytest.raises(dataclasses.FrozenInstanceError):
        handle.namespace = "other"  # type: ignore[union-attr,misc]


def test_bad_storage_config_fails_at_startup():
    settings = load_settings(container_orchestrator_enabled=True, state_storage_type="s3")
    with (
        patch("relay_orchestrator.config.new_core_api", return_value=MagicMock()),
        pytest.raises(ConfigurationError),
    ):
        get_container_orchestrator_config(settings)
