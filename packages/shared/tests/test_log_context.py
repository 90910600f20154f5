"""Tests for the ambient log context."""

import asyncio
import logging
import threading
from contextvars import copy_context

import pytest
from relay_shared.log_context import LOG_CONTEXT, ContextFilter, bind


def _render() -> str:
    record = logging.LogRecord("t", logging.INFO, __file__, 1, "msg", None, None)
    ContextFilter().filter(record)
    return record.log_context


def test_bind_adds_and_restores():
    assert _render() == ""
    with bind(job_id=42, attempt=1):
        assert _render() == "attempt=1 job_id=42 "
        with bind(attempt=2):
            assert LOG_CONTEXT.get() == {"job_id": "42", "attempt": "2"}
    assert LOG_CONTEXT.get() == {}


@pytest.mark.asyncio
async def test_tasks_inherit_context():
    async def read():
        return LOG_CONTEXT.get()

    with bind(version="dev"):
        seen = await asyncio.create_task(read())
    assert seen == {"version": "dev"}


def test_threads_need_copied_context():
    seen = {}
    with bind(version="dev"):
        context = copy_context()
        plain = threading.Thread(target=lambda: seen.update(plain=LOG_CONTEXT.get()))
        copied = threading.Thread(target=context.run, args=(lambda: seen.update(copied=LOG_CONTEXT.get()),))
        plain.start()
        copied.start()
        plain.join()
        copied.join()

    assert seen == {"plain": {}, "copied": {"version": "dev"}}
