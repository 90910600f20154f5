"""Fixtures for orchestrator delegation tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from relay_document_store import STATE_STORAGE_PREFIX
from relay_document_store.local import LocalDocumentStore
from relay_orchestrator.config import ContainerOrchestratorConfig


@pytest.fixture
def store(tmp_path) -> LocalDocumentStore:
    return LocalDocumentStore(tmp_path, STATE_STORAGE_PREFIX)


@pytest.fixture
def core_api() -> MagicMock:
    return MagicMock(name="CoreV1Api")


@pytest.fixture
def orchestrator_config(store, core_api) -> ContainerOrchestratorConfig:
    return ContainerOrchestratorConfig(
        namespace="jobs",
        document_store=store,
        kube_api=core_api,
        image="relay/container-orchestrator:test",
        poll_seconds=0,
    )
