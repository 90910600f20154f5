"""Temporal client connection factory.

The worker talks to one of two kinds of Temporal deployment:

1. **Self-hosted / local dev**: `TEMPORAL_ADDRESS` (default `localhost:7233`),
   plain gRPC, no auth.

2. **Temporal Cloud**: `TEMPORAL_API_KEY` plus `TEMPORAL_REGIONAL_ENDPOINT`
   (the region-specific endpoint from the namespace "Connect" dialog, not the
   `<ns>.tmprl.cloud` namespace endpoint). API key auth over TLS.

`TEMPORAL_NAMESPACE` applies to both and defaults to `default`. Both use the
pydantic data converter so boundary models cross workflows and activities intact.
"""

import logging
import os

from temporalio.client import Client
from temporalio.contrib.pydantic import pydantic_data_converter

from relay_shared.errors import ConfigurationError

logger = logging.getLogger(__name__)


async def connect() -> Client:
    """Create a connected Temporal client for the configured deployment.

    Raises ConfigurationError when an API key is configured without the
    regional endpoint it must be used with.
    """
    namespace = os.environ.get("TEMPORAL_NAMESPACE", "default")
    api_key = os.environ.get("TEMPORAL_API_KEY")

    if api_key:
        address = os.environ.get("TEMPORAL_REGIONAL_ENDPOINT")
        if not address:
            raise ConfigurationError(
                "TEMPORAL_API_KEY is set but TEMPORAL_REGIONAL_ENDPOINT is missing. "
                "Set it to the regional endpoint shown in the namespace 'Connect' dialog."
            )
        logger.info(f"Connecting to Temporal Cloud at {address} (namespace={namespace})")
        # Namespace routing is handled by the SDK; extra rpc_metadata breaks API key auth.
        return await Client.connect(
            address,
            namespace=namespace,
            api_key=api_key,
            tls=True,
            data_converter=pydantic_data_converter,
        )

    address = os.environ.get("TEMPORAL_ADDRESS", "localhost:7233")
    logger.info(f"Connecting to Temporal at {address} (namespace={namespace})")
    return await Client.connect(
        address, namespace=namespace, data_converter=pydantic_data_converter
    )
