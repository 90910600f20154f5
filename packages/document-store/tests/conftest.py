"""Fixtures for document store tests: a temp-dir store and a moto-backed bucket."""

from __future__ import annotations

import boto3
import pytest
from moto import mock_aws
from relay_document_store import STATE_STORAGE_PREFIX
from relay_document_store.local import LocalDocumentStore


@pytest.fixture
def local_store(tmp_path) -> LocalDocumentStore:
    return LocalDocumentStore(tmp_path, STATE_STORAGE_PREFIX)


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake AWS credentials so boto3 never reaches a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def s3_bucket(aws_credentials):
    """A mocked S3 bucket named 'relay-state'; yields the raw boto3 client."""
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket="relay-state")
        yield client
