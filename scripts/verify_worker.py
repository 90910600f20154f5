"""Worker verification script.

Dispatches a SpecWorkflow to the spec queue of an already running worker and
checks that the connector's specification comes back. This exercises the
whole path: Temporal connection, the spec task queue, the launch strategy
and the connector protocol parsing.

Prerequisites:
  - Temporal dev server running: `temporal server start-dev`
    OR Temporal Cloud credentials in the environment
  - A worker running: `relay-worker`
  - A connector image the worker can launch

Usage:
  python scripts/verify_worker.py relay/source-faker:latest
"""

import asyncio
import logging
import sys
import uuid

from relay_shared.models import IntegrationLauncherConfig
from relay_shared.task_queues import SPEC_QUEUE
from relay_shared.temporal_client import connect
from relay_workflows.spec import SpecWorkflow

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def main(image: str) -> None:
    client = await connect()
    logger.info("Connected to Temporal server")

    job_id = f"verify-{uuid.uuid4().hex[:8]}"
    result = await client.execute_workflow(
        SpecWorkflow.run,
        IntegrationLauncherConfig(job_id=job_id, docker_image=image),
        id=f"spec-{job_id}",
        task_queue=SPEC_QUEUE,
    )

    logger.info(f"Workflow result: {result.message}")
    assert result.success, f"Spec failed: {result.message}"
    assert result.spec, f"{image} returned an empty spec"

    logger.info("VERIFICATION PASSED: spec dispatched, launched and parsed")


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python scripts/verify_worker.py <connector-image>")
        sys.exit(1)
    asyncio.run(main(sys.argv[1]))
