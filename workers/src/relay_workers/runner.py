"""Worker runner entrypoint.

Usage:
  python -m relay_workers.runner
  relay-worker

All configuration comes from the environment (see relay_shared.settings and
relay_shared.temporal_client). One process serves every job category, each
on its own task queue with its own concurrency ceiling. The worker runs
until interrupted (SIGINT/SIGTERM).

Startup errors are logged and exit with status 1 before any queue polls. Any
other error that ends the worker is logged with its traceback, also with
status 1.
"""

import asyncio
import logging
import sys

from relay_job_persistence.client import build_engine
from relay_job_persistence.hydrator import EnvSecretsHydrator
from relay_job_persistence.repository import ConfigRepository, JobPersistence
from relay_orchestrator.config import get_container_orchestrator_config
from relay_process_launch.selector import select_strategy
from relay_shared.errors import ConfigurationError, RelayError
from relay_shared.log_context import bind, configure_logging
from relay_shared.runtime import RuntimeContext
from relay_shared.settings import WorkerSettings, load_settings
from relay_shared.temporal_client import connect

from relay_workers.app import WorkerApp
from relay_workers.registry import Dependencies

logger = logging.getLogger(__name__)


async def run_worker(settings: WorkerSettings) -> None:
    context = RuntimeContext.from_settings(settings, EnvSecretsHydrator())
    engine = build_engine(context)
    try:
        dependencies = Dependencies(
            launcher=select_strategy(settings.worker_environment, settings),
            context=context,
            job_persistence=JobPersistence(engine),
            config_repository=ConfigRepository(engine),
            orchestrator_config=get_container_orchestrator_config(settings),
            normalization_image=settings.normalization_image,
        )
        client = await connect()
        await WorkerApp(client, settings.max_workers, dependencies).run()
    finally:
        await engine.dispose()


def main() -> None:
    try:
        settings = load_settings()
    except ConfigurationError as e:
        configure_logging()
        logger.error(f"Invalid worker configuration: {e}")
        sys.exit(1)

    configure_logging(settings.log_level)
    with bind(version=settings.relay_version, environment=settings.worker_environment.value):
        logger.info(f"Starting relay worker in {settings.worker_environment.value} mode")
        try:
            asyncio.run(run_worker(settings))
        except RelayError as e:
            logger.error(f"Worker failed to start: {e}")
            sys.exit(1)
        except KeyboardInterrupt:
            logger.info("Worker interrupted; shutting down")
        except Exception:
            logger.exception("Worker stopped on an unexpected error")
            sys.exit(1)


if __name__ == "__main__":
    main()
