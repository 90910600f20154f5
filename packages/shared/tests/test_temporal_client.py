"""Tests for the Temporal client factory's environment handling."""

from unittest.mock import AsyncMock, patch

import pytest
from relay_shared.errors import ConfigurationError
from relay_shared.temporal_client import connect
from temporalio.contrib.pydantic import pydantic_data_converter


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in (
        "TEMPORAL_ADDRESS",
        "TEMPORAL_NAMESPACE",
        "TEMPORAL_API_KEY",
        "TEMPORAL_REGIONAL_ENDPOINT",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.mark.asyncio
async def test_local_defaults():
    with patch("relay_shared.temporal_client.Client.connect", new=AsyncMock()) as client_connect:
        await connect()

    client_connect.assert_awaited_once_with(
        "localhost:7233", namespace="default", data_converter=pydantic_data_converter
    )


@pytest.mark.asyncio
async def test_cloud_uses_api_key_over_tls(monkeypatch):
    monkeypatch.setenv("TEMPORAL_API_KEY", "key")
    monkeypatch.setenv("TEMPORAL_REGIONAL_ENDPOINT", "us-east-1.aws.api.temporal.io:7233")
    monkeypatch.setenv("TEMPORAL_NAMESPACE", "relay.abc12")

    with patch("relay_shared.temporal_client.Client.connect", new=AsyncMock()) as client_connect:
        await connect()

    args, kwargs = client_connect.call_args
    assert args == ("us-east-1.aws.api.temporal.io:7233",)
    assert kwargs["api_key"] == "key"
    assert kwargs["tls"] is True
    assert kwargs["namespace"] == "relay.abc12"


@pytest.mark.asyncio
async def test_api_key_without_endpoint_is_configuration_error(monkeypatch):
    monkeypatch.setenv("TEMPORAL_API_KEY", "key")
    with patch("relay_shared.temporal_client.Client.connect", new=AsyncMock()) as client_connect:
        with pytest.raises(ConfigurationError, match="TEMPORAL_REGIONAL_ENDPOINT"):
            await connect()
    client_connect.assert_not_awaited()
