"""Keyed document store for orchestrator state.

A durable key -> bytes store addressed under a fixed path prefix. The worker
and the container orchestrator pods it launches both read and write job state
here, so a replacement worker can reattach to a job that outlived its
launcher.

    from relay_document_store import STATE_STORAGE_PREFIX, create

    store = create(settings.state_storage, STATE_STORAGE_PREFIX)
    store.put("42/0/replication/status", b"RUNNING")
"""

from relay_document_store.base import DocumentStoreClient
from relay_document_store.factory import STATE_STORAGE_PREFIX, create

__all__ = ["STATE_STORAGE_PREFIX", "DocumentStoreClient", "create"]
