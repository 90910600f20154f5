"""Builds the configured document store backend."""

from __future__ import annotations

import logging
from pathlib import PurePosixPath

from relay_shared.errors import ConfigurationError
from relay_shared.settings import StateStorageConfig

from relay_document_store.base import DocumentStoreClient
from relay_document_store.local import LocalDocumentStore
from relay_document_store.s3 import S3DocumentStore

logger = logging.getLogger(__name__)

# IMPORTANT: orchestrator pods launched by an older worker keep reading and
# writing under this prefix. Changing it orphans their state when a new
# version is deployed.
STATE_STORAGE_PREFIX = PurePosixPath("/state")


def create(config: StateStorageConfig, prefix: str | PurePosixPath) -> DocumentStoreClient:
    """Return a document store for `config.type`, addressed under `prefix`.

    Raises ConfigurationError when the backend is missing required settings.
    """
    if config.type == "local":
        logger.info(f"Using local document store at {config.local_root}")
        return LocalDocumentStore(config.local_root, prefix)

    if config.type in ("s3", "minio"):
        if not config.bucket:
            raise ConfigurationError(
                f"STATE_STORAGE_BUCKET is required for '{config.type}' state storage"
            )
        if config.type == "minio" and not config.endpoint:
            raise ConfigurationError("STATE_STORAGE_ENDPOINT is required for MinIO state storage")
        return S3DocumentStore(
            bucket=config.bucket,
            prefix=prefix,
            endpoint_url=config.endpoint,
            region=config.region,
            access_key=config.access_key,
            secret_key=config.secret_key,
        )

    raise ConfigurationError(f"Unknown state storage type '{config.type}'")
