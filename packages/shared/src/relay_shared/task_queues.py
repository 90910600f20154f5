"""Job categories and their task queue names.

Every job category gets its own Temporal task queue with its own concurrency
ceiling, so a burst of schema discoveries can never starve syncs (and vice
versa).

These constants are the single source of truth for queue names. Both the
worker bootstrap (which starts a worker polling each queue) and the code that
launches workflows (which targets a queue by name) reference these.
"""

from enum import Enum

SPEC_QUEUE = "spec-queue"
CHECK_CONNECTION_QUEUE = "check-connection-queue"
DISCOVER_SCHEMA_QUEUE = "discover-schema-queue"
SYNC_QUEUE = "sync-queue"

# Long-lived per-connection workflows; child syncs also run here
CONNECTION_MANAGEMENT_QUEUE = "connection-management-queue"


class JobCategory(str, Enum):
    """A class of unit of work with its own queue and concurrency ceiling."""

    SPEC = "spec"
    CHECK_CONNECTION = "check-connection"
    DISCOVER_SCHEMA = "discover-schema"
    SYNC = "sync"
    CONNECTION_MANAGEMENT = "connection-management"

    @property
    def task_queue(self) -> str:
        return TASK_QUEUES[self]


TASK_QUEUES: dict[JobCategory, str] = {
    JobCategory.SPEC: SPEC_QUEUE,
    JobCategory.CHECK_CONNECTION: CHECK_CONNECTION_QUEUE,
    JobCategory.DISCOVER_SCHEMA: DISCOVER_SCHEMA_QUEUE,
    JobCategory.SYNC: SYNC_QUEUE,
    JobCategory.CONNECTION_MANAGEMENT: CONNECTION_MANAGEMENT_QUEUE,
}
