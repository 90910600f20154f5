"""S3-compatible document store backend.

Works against AWS S3 and MinIO (any S3-compatible endpoint). Object keys are
the prefix without its leading slash, then the document key verbatim, so
prefix `/state` and key `42/0/status` land at
`s3://<bucket>/state/42/0/status`.
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from relay_document_store.base import DocumentStoreClient

logger = logging.getLogger(__name__)

_MISSING_CODES = {"NoSuchKey", "404", "NotFound"}


class S3DocumentStore(DocumentStoreClient):
    """Document store backed by one S3 bucket."""

    def __init__(
        self,
        bucket: str,
        prefix: str | PurePosixPath,
        endpoint_url: str | None = None,
        region: str = "us-east-1",
        access_key: str | None = None,
        secret_key: str | None = None,
        client: Any | None = None,
    ) -> None:
        super().__init__(prefix)
        self.bucket = bucket

        if client is None:
            client_kwargs: dict[str, Any] = {
                "service_name": "s3",
                "region_name": region,
                "config": Config(signature_version="s3v4"),
            }
            if endpoint_url:
                client_kwargs["endpoint_url"] = endpoint_url
            if access_key and secret_key:
                client_kwargs["aws_access_key_id"] = access_key
                client_kwargs["aws_secret_access_key"] = secret_key
            client = boto3.client(**client_kwargs)
        self.client = client

        logger.info(
            f"S3 document store on bucket '{bucket}' under '{self.prefix}' "
            f"(endpoint: {endpoint_url or 'default'})"
        )

    def _object_key(self, key: str) -> str:
        return f"{str(self.prefix).strip('/')}/{self._check_key(key)}"

    def write(self, key: str, document: bytes) -> None:
        self.client.put_object(Bucket=self.bucket, Key=self._object_key(key), Body=document)

    def read(self, key: str) -> bytes | None:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=self._object_key(key))
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_CODES:
                return None
            raise
        return response["Body"].read()

    def delete(self, key: str) -> bool:
        object_key = self._object_key(key)
        try:
            self.client.head_object(Bucket=self.bucket, Key=object_key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_CODES:
                return False
            raise
        self.client.delete_object(Bucket=self.bucket, Key=object_key)
        return True
