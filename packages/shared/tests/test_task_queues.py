"""Verify job categories map to unique, consistently named task queues."""

from relay_shared.task_queues import (
    CHECK_CONNECTION_QUEUE,
    CONNECTION_MANAGEMENT_QUEUE,
    DISCOVER_SCHEMA_QUEUE,
    SPEC_QUEUE,
    SYNC_QUEUE,
    TASK_QUEUES,
    JobCategory,
)


def test_every_category_has_a_queue() -> None:
    assert set(TASK_QUEUES) == set(JobCategory)


def test_all_queues_are_unique() -> None:
    """Two categories sharing a queue would also share a concurrency ceiling."""
    queues = [category.task_queue for category in JobCategory]
    assert len(queues) == len(set(queues)), "Duplicate task queue names found"


def test_queue_naming_convention() -> None:
    """All queues should follow the pattern: <category>-queue."""
    for category in JobCategory:
        assert category.task_queue == f"{category.value}-queue"


def test_constants_match_categories() -> None:
    assert JobCategory.SPEC.task_queue == SPEC_QUEUE
    assert JobCategory.CHECK_CONNECTION.task_queue == CHECK_CONNECTION_QUEUE
    assert JobCategory.DISCOVER_SCHEMA.task_queue == DISCOVER_SCHEMA_QUEUE
    assert JobCategory.SYNC.task_queue == SYNC_QUEUE
    assert JobCategory.CONNECTION_MANAGEMENT.task_queue == CONNECTION_MANAGEMENT_QUEUE
